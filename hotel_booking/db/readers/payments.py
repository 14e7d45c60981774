from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from hotel_booking.models.payments import Payment


def get_payment(
    conn: Connection, payment_id: int, for_update: bool = False
) -> Optional[dict[str, Any]]:
    """
    Fetch a payment row by id.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        payment_id (int): Payment primary key.
        for_update (bool): Lock the row until the transaction ends.

    Returns:
        Optional[dict[str, Any]]: Payment columns, or None if not found.
    """
    stmt = select(Payment.__table__).where(Payment.id == payment_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_payment_for_reservation(
    conn: Connection, reservation_id: int, for_update: bool = False
) -> Optional[dict[str, Any]]:
    """
    Fetch the payment attached to a reservation.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        reservation_id (int): Reservation primary key.
        for_update (bool): Lock the row until the transaction ends.

    Returns:
        Optional[dict[str, Any]]: Payment columns, or None if the reservation has none.
    """
    stmt = select(Payment.__table__).where(Payment.reservation_id == reservation_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_payment_by_idempotency_key(
    conn: Connection, idempotency_key: str
) -> Optional[dict[str, Any]]:
    """
    Fetch the payment created by an earlier request carrying the same idempotency key.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        idempotency_key (str): Caller-supplied request token.

    Returns:
        Optional[dict[str, Any]]: Payment columns, or None if the key is unused.
    """
    row = (
        conn.execute(select(Payment.__table__).where(Payment.idempotency_key == idempotency_key))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None
