"""SQLAlchemy model for the single payment authorization held by each reservation."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.sql import func

from hotel_booking.models.base import Base, enum_column
from hotel_booking.models.enums import PaymentMethod, PaymentStatus


class Payment(Base):
    """
    ORM model for a reservation's payment authorization.

    Exactly one payment exists per reservation (unique reservation_id).
    idempotency_key is unique so a retried booking request can never
    authorize twice. No funds move at authorization; final_amount is set
    when the authorization is captured at check-out.
    """

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(
        Integer,
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    amount = Column(Numeric(12, 2), nullable=False)  # Authorized (estimated) amount
    advance_amount = Column(Numeric(12, 2), nullable=False, default=0)
    final_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(
        enum_column(PaymentStatus, "payment_status"),
        nullable=False,
        default=PaymentStatus.NOT_STARTED,
    )
    idempotency_key = Column(String(128), nullable=False, unique=True)
    payment_method = Column(
        enum_column(PaymentMethod, "payment_method"),
        nullable=False,
        default=PaymentMethod.CARD_ON_FILE,
    )
    transaction_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
