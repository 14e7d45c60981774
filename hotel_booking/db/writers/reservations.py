from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from hotel_booking.db.readers.reservations import next_charge_position
from hotel_booking.models.enums import ReservationStatus
from hotel_booking.models.reservations import Reservation, ReservationCharge

logger = structlog.get_logger(__name__)


def insert_reservation(conn: Connection, data: dict[str, Any], now: datetime) -> int:
    """
    Insert a new reservation in PENDING_APPROVAL status.

    Args:
        conn: Active connection (within the booking transaction)
        data: Column values (guest_id, hotel_code, room_number, room_type, dates, price, ...)
        now: Creation timestamp

    Returns:
        int: Generated reservation id
    """
    row = {
        "advance_deposit": Decimal("0"),
        "id_verified": False,
        **data,
        "status": ReservationStatus.PENDING_APPROVAL,
        "created_at": now,
        "updated_at": now,
    }
    result = conn.execute(insert(Reservation).values(row))
    reservation_id = int(result.inserted_primary_key[0])

    logger.debug("reservation_inserted", reservation_id=reservation_id)
    return reservation_id


def transition_reservation(
    conn: Connection,
    reservation_id: int,
    expected: ReservationStatus,
    target: ReservationStatus,
    now: datetime,
    **values: Any,
) -> bool:
    """
    Move a reservation from one status to another with compare-and-set semantics.

    The UPDATE only matches while the row is still in the expected status, so a
    concurrent transition that committed first makes this one a no-op.

    Args:
        conn: Active connection
        reservation_id: Reservation to update
        expected: Status the caller observed
        target: New status
        now: Update timestamp
        **values: Extra columns to set in the same statement (actual_check_in, ...)

    Returns:
        bool: True if the row moved, False if its status had changed underneath
    """
    stmt = (
        update(Reservation)
        .where(Reservation.id == reservation_id)
        .where(Reservation.status == expected)
        .values(status=target, updated_at=now, **values)
    )
    return conn.execute(stmt).rowcount == 1


def update_reservation(
    conn: Connection, reservation_id: int, now: datetime, **values: Any
) -> None:
    """
    Update reservation columns without touching its status.

    Args:
        conn: Active connection
        reservation_id: Reservation to update
        now: Update timestamp
        **values: Columns to set
    """
    conn.execute(
        update(Reservation)
        .where(Reservation.id == reservation_id)
        .values(updated_at=now, **values)
    )


def append_charge(
    conn: Connection, reservation_id: int, description: str, amount: Decimal, now: datetime
) -> dict[str, Any]:
    """
    Append an ad-hoc charge at the end of the reservation's charge list.

    Args:
        conn: Active connection
        reservation_id: Reservation the charge belongs to
        description: What was consumed
        amount: Positive charge amount
        now: Charge timestamp

    Returns:
        dict: The stored charge (position, description, amount, created_at)
    """
    position = next_charge_position(conn, reservation_id)
    row = {
        "reservation_id": reservation_id,
        "position": position,
        "description": description,
        "amount": amount,
        "created_at": now,
    }
    conn.execute(insert(ReservationCharge).values(row))
    return {key: row[key] for key in ("position", "description", "amount", "created_at")}
