from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import RELEASED_STATUSES
from hotel_booking.models.reservations import Reservation


def find_overlapping_reservation(
    conn: Connection,
    hotel_code: str,
    room_number: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[int] = None,
) -> Optional[dict[str, Any]]:
    """
    Find a reservation that still holds the room for part of [check_in, check_out).

    Uses half-open overlap: existing.check_in < check_out AND existing.check_out > check_in,
    so a stay ending on the day another begins is not a conflict. Rejected and
    cancelled reservations are ignored. A reservation holds its assigned room
    when reception allocated one, otherwise the room it was booked for.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        hotel_code (str): Hotel part of the room key.
        room_number (str): Room part of the room key.
        check_in (date): Requested first night.
        check_out (date): Requested departure day.
        exclude_reservation_id (Optional[int]): Reservation to ignore (a reschedule's own row).

    Returns:
        Optional[dict[str, Any]]: The earliest conflicting reservation's id and dates, or None.
    """
    stmt = (
        select(Reservation.id, Reservation.check_in, Reservation.check_out, Reservation.status)
        .where(Reservation.hotel_code == hotel_code)
        .where(func.coalesce(Reservation.assigned_room_number, Reservation.room_number) == room_number)
        .where(Reservation.status.not_in(list(RELEASED_STATUSES)))
        .where(Reservation.check_in < check_out)
        .where(Reservation.check_out > check_in)
        .order_by(Reservation.check_in)
        .limit(1)
    )
    if exclude_reservation_id is not None:
        stmt = stmt.where(Reservation.id != exclude_reservation_id)

    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None
