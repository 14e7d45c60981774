# models/room_nights.py

from sqlalchemy import Column, Date, ForeignKey, Integer, String, UniqueConstraint

from hotel_booking.models.base import Base


class RoomNight(Base):
    """
    Availability index: one row per room per occupied night.

    The unique (hotel_code, room_number, night) constraint is the source of
    truth for double-booking prevention. Two reservations that overlap on any
    night cannot both commit their claims, no matter how their availability
    reads interleave. Rows are removed when a reservation is rejected or
    cancelled, and moved when a stay is rescheduled or re-assigned.
    """

    __tablename__ = "room_nights"
    __table_args__ = (
        UniqueConstraint("hotel_code", "room_number", "night", name="uq_room_nights_room_night"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    hotel_code = Column(String(64), nullable=False)
    room_number = Column(String(32), nullable=False)
    night = Column(Date, nullable=False)
    reservation_id = Column(
        Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
