from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy.sql import func

from hotel_booking.models.base import Base, enum_column
from hotel_booking.models.enums import InvoiceStatus, InvoiceType


class Invoice(Base):
    """
    ORM model for an invoice snapshot of a reservation's charges.

    A Proforma is issued at booking time and a Final at check-out. Line items
    are stored as a JSON list of {"description", "amount", "quantity"} objects
    with amounts serialized as strings. Issued invoices are never edited; only
    their status moves (Issued -> Cancelled for a superseded Proforma).
    """

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(
        Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    invoice_type = Column(enum_column(InvoiceType, "invoice_type"), nullable=False)
    items = Column(JSON, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(5, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        enum_column(InvoiceStatus, "invoice_status"),
        nullable=False,
        default=InvoiceStatus.DRAFT,
    )
    issue_date = Column(DateTime(timezone=True), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
