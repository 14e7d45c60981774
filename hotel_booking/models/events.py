from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from hotel_booking.models.base import Base, enum_column
from hotel_booking.models.enums import EventStatus, EventType


class BookingEvent(Base):
    """
    Transactional outbox of domain events for the notification collaborator.

    Events are written in the same transaction as the state change that
    produced them and delivered after commit. event_key ("<type>:<reservation
    id>") is unique, so an event is recorded at most once per reservation and
    consumers can deduplicate at-least-once deliveries on it.
    """

    __tablename__ = "booking_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_key = Column(String(128), nullable=False, unique=True)
    event_type = Column(enum_column(EventType, "event_type"), nullable=False)
    reservation_id = Column(
        Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    guest_id = Column(String(64), nullable=False)
    message = Column(String(512), nullable=False)
    payload = Column(JSON, nullable=False)
    status = Column(
        enum_column(EventStatus, "event_status"),
        nullable=False,
        default=EventStatus.PENDING,
        index=True,
    )
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
