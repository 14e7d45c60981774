from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import InvoiceStatus, InvoiceType
from hotel_booking.models.invoices import Invoice


def insert_invoice(
    conn: Connection,
    reservation_id: int,
    invoice_type: InvoiceType,
    items: list[dict[str, Any]],
    subtotal: Decimal,
    tax_rate: Decimal,
    tax_amount: Decimal,
    total_amount: Decimal,
    status: InvoiceStatus,
    now: datetime,
    paid_at: Optional[datetime] = None,
) -> int:
    """
    Persist an issued invoice snapshot.

    Args:
        conn: Active connection (within the operation's transaction)
        reservation_id: Reservation the invoice belongs to
        invoice_type: PROFORMA or FINAL
        items: JSON-ready line items
        subtotal: Sum of chargeable lines before tax
        tax_rate: Rate applied
        tax_amount: Tax charged
        total_amount: Amount due on the invoice
        status: Initial status (ISSUED or PAID)
        now: Issue timestamp
        paid_at: Settlement timestamp for invoices issued as paid

    Returns:
        int: Generated invoice id
    """
    result = conn.execute(
        insert(Invoice)
        .values(
            reservation_id=reservation_id,
            invoice_type=invoice_type,
            items=items,
            subtotal=subtotal,
            tax_rate=tax_rate,
            tax_amount=tax_amount,
            total_amount=total_amount,
            status=status,
            issue_date=now,
            paid_at=paid_at,
            created_at=now,
        )
    )
    return int(result.inserted_primary_key[0])


def set_invoice_status(
    conn: Connection,
    reservation_id: int,
    invoice_type: InvoiceType,
    from_status: InvoiceStatus,
    to_status: InvoiceStatus,
) -> int:
    """
    Move a reservation's invoices of one type between statuses.

    Only the status changes; the invoice contents stay as issued.

    Returns:
        int: Number of invoices updated
    """
    result = conn.execute(
        update(Invoice)
        .where(Invoice.reservation_id == reservation_id)
        .where(Invoice.invoice_type == invoice_type)
        .where(Invoice.status == from_status)
        .values(status=to_status)
    )
    return result.rowcount
