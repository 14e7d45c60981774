from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from hotel_booking.models.base import Base


class AuditLogEntry(Base):
    """
    ORM model for the booking audit trail.

    One row per reservation state transition, plus one per business operation
    that was refused (outcome "Failed"). reservation_id is not a
    foreign key so refused creates, which have no reservation, can be logged.
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor = Column(String(128), nullable=False)
    action = Column(String(64), nullable=False, index=True)
    reservation_id = Column(Integer, nullable=True, index=True)
    details = Column(Text, nullable=True)
    outcome = Column(String(16), nullable=False, default="Success")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
