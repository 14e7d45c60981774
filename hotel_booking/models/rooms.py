"""SQLAlchemy model for the room catalog the booking engine keeps in sync."""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from hotel_booking.models.base import Base, enum_column
from hotel_booking.models.enums import RoomStatus


class Room(Base):
    """
    ORM model for a physical room and its housekeeping status.

    Rooms are owned by the catalog; the booking engine only flips status to
    Occupied at check-in and back to Available at check-out.
    """

    __tablename__ = "rooms"
    __table_args__ = (UniqueConstraint("hotel_code", "room_number", name="uq_rooms_room_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    hotel_code = Column(String(64), nullable=False)
    room_number = Column(String(32), nullable=False)
    room_type = Column(String(64), nullable=False)
    status = Column(
        enum_column(RoomStatus, "room_status"),
        nullable=False,
        default=RoomStatus.AVAILABLE,
    )
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
