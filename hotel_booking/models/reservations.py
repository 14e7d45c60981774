# models/reservations.py

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from hotel_booking.models.base import Base, enum_column
from hotel_booking.models.enums import ReservationStatus


class Reservation(Base):
    """
    ORM model for a guest's claim on a room for a date range.

    The room is identified by the canonical (hotel_code, room_number) key;
    room_name is a display label only. The stay is the half-open interval
    [check_in, check_out). total_price is fixed at creation (or reschedule)
    and is the room charge billed at check-out.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("check_out > check_in", name="ck_reservations_stay_range"),
        Index("ix_reservations_room_stay", "hotel_code", "room_number", "check_in", "check_out"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    guest_id = Column(String(64), nullable=False, index=True)
    hotel_code = Column(String(64), nullable=False)
    room_number = Column(String(32), nullable=False)
    room_name = Column(String(128), nullable=True)
    room_type = Column(String(64), nullable=False)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    actual_check_in = Column(DateTime(timezone=True), nullable=True)
    actual_check_out = Column(DateTime(timezone=True), nullable=True)
    total_price = Column(Numeric(12, 2), nullable=False)
    advance_deposit = Column(Numeric(12, 2), nullable=False, default=0)
    assigned_room_number = Column(String(32), nullable=True)
    id_verified = Column(Boolean, nullable=False, default=False)
    status = Column(
        enum_column(ReservationStatus, "reservation_status"),
        nullable=False,
        default=ReservationStatus.PENDING_APPROVAL,
        index=True,
    )
    status_reason = Column(String(512), nullable=True)  # Rejection/cancellation reason
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ReservationCharge(Base):
    """
    Ad-hoc charge (minibar, laundry, room service) appended during a stay.

    position keeps the charges in the order they were added.
    """

    __tablename__ = "reservation_charges"
    __table_args__ = (
        UniqueConstraint("reservation_id", "position", name="uq_reservation_charges_position"),
        CheckConstraint("amount > 0", name="ck_reservation_charges_amount_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(
        Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)
    description = Column(String(256), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
