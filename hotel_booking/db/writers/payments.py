from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import PaymentMethod, PaymentStatus
from hotel_booking.models.payments import Payment


def insert_payment(
    conn: Connection,
    reservation_id: int,
    amount: Decimal,
    idempotency_key: str,
    status: PaymentStatus,
    now: datetime,
    payment_method: PaymentMethod = PaymentMethod.CARD_ON_FILE,
) -> int:
    """
    Insert the payment record for a reservation.

    Args:
        conn: Active connection (within the booking transaction)
        reservation_id: Reservation the payment belongs to
        amount: Authorized amount
        idempotency_key: Unique request token
        status: Initial status
        now: Creation timestamp
        payment_method: Instrument the authorization was taken against

    Returns:
        int: Generated payment id
    """
    result = conn.execute(
        insert(Payment)
        .values(
            reservation_id=reservation_id,
            amount=amount,
            advance_amount=Decimal("0"),
            final_amount=Decimal("0"),
            status=status,
            idempotency_key=idempotency_key,
            payment_method=payment_method,
            created_at=now,
            updated_at=now,
        )
    )
    return int(result.inserted_primary_key[0])


def update_payment(
    conn: Connection,
    payment_id: int,
    now: datetime,
    expected_status: PaymentStatus | None = None,
    **values: Any,
) -> bool:
    """
    Update payment columns, optionally only while it is in an expected status.

    Args:
        conn: Active connection
        payment_id: Payment to update
        now: Update timestamp
        expected_status: If given, the update only applies in this status
        **values: Columns to set (status, final_amount, advance_amount, ...)

    Returns:
        bool: True if the payment row was updated
    """
    stmt = update(Payment).where(Payment.id == payment_id)
    if expected_status is not None:
        stmt = stmt.where(Payment.status == expected_status)

    return conn.execute(stmt.values(updated_at=now, **values)).rowcount == 1
