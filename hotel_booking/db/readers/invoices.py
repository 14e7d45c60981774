from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import InvoiceStatus, InvoiceType
from hotel_booking.models.invoices import Invoice


def list_invoices(conn: Connection, reservation_id: int) -> list[dict[str, Any]]:
    """
    Fetch every invoice issued for a reservation, oldest first.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        reservation_id (int): Reservation primary key.

    Returns:
        list[dict[str, Any]]: Invoice rows.
    """
    result = conn.execute(
        select(Invoice.__table__)
        .where(Invoice.reservation_id == reservation_id)
        .order_by(Invoice.id)
    )
    return [dict(row) for row in result.mappings()]


def get_invoice(conn: Connection, invoice_id: int) -> Optional[dict[str, Any]]:
    """Fetch a single invoice row, or None."""
    row = (
        conn.execute(select(Invoice.__table__).where(Invoice.id == invoice_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def count_invoices(
    conn: Connection,
    reservation_id: int,
    invoice_type: InvoiceType,
    exclude_status: Optional[InvoiceStatus] = None,
) -> int:
    """Count a reservation's invoices of one type, optionally ignoring a status."""
    stmt = (
        select(Invoice.id)
        .where(Invoice.reservation_id == reservation_id)
        .where(Invoice.invoice_type == invoice_type)
    )
    if exclude_status is not None:
        stmt = stmt.where(Invoice.status != exclude_status)
    return len(conn.execute(stmt).fetchall())
