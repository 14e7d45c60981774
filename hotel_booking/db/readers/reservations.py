from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import ReservationStatus
from hotel_booking.models.reservations import Reservation, ReservationCharge


def get_reservation(
    conn: Connection, reservation_id: int, for_update: bool = False
) -> Optional[dict[str, Any]]:
    """
    Fetch a reservation row as a dict.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        reservation_id (int): Reservation primary key.
        for_update (bool): Lock the row until the transaction ends
            (SELECT ... FOR UPDATE on backends that support it).

    Returns:
        Optional[dict[str, Any]]: Reservation columns, or None if not found.
    """
    stmt = select(Reservation.__table__).where(Reservation.id == reservation_id)
    if for_update:
        stmt = stmt.with_for_update()

    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def list_charges(conn: Connection, reservation_id: int) -> list[dict[str, Any]]:
    """
    Fetch the ad-hoc charges of a reservation in the order they were added.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        reservation_id (int): Reservation primary key.

    Returns:
        list[dict[str, Any]]: Charge rows ordered by position.
    """
    result = conn.execute(
        select(
            ReservationCharge.position,
            ReservationCharge.description,
            ReservationCharge.amount,
            ReservationCharge.created_at,
        )
        .where(ReservationCharge.reservation_id == reservation_id)
        .order_by(ReservationCharge.position)
    )
    return [dict(row) for row in result.mappings()]


def next_charge_position(conn: Connection, reservation_id: int) -> int:
    """Return the position the next appended charge should take."""
    current = conn.execute(
        select(func.max(ReservationCharge.position)).where(
            ReservationCharge.reservation_id == reservation_id
        )
    ).scalar()
    return (current or 0) + 1


def list_reservations(
    conn: Connection,
    status: Optional[ReservationStatus] = None,
    guest_id: Optional[str] = None,
    limit: int = 100,
) -> list[dict[str, Any]]:
    """
    List reservations newest first, optionally filtered by status and guest.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        status (Optional[ReservationStatus]): Only reservations in this status.
        guest_id (Optional[str]): Only reservations owned by this guest.
        limit (int): Maximum rows returned.

    Returns:
        list[dict[str, Any]]: Reservation rows.
    """
    stmt = select(Reservation.__table__)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    if guest_id is not None:
        stmt = stmt.where(Reservation.guest_id == guest_id)

    stmt = stmt.order_by(Reservation.created_at.desc(), Reservation.id.desc()).limit(limit)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_pending_approval(conn: Connection) -> list[dict[str, Any]]:
    """Pending-approval reservations in arrival order (oldest first)."""
    stmt = (
        select(Reservation.__table__)
        .where(Reservation.status == ReservationStatus.PENDING_APPROVAL)
        .order_by(Reservation.created_at.asc(), Reservation.id.asc())
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def count_reservations(
    conn: Connection,
    status: ReservationStatus,
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
) -> int:
    """
    Count reservations in a status, optionally arriving or departing on a day.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        status (ReservationStatus): Status to count.
        check_in (Optional[date]): Only stays starting on this date.
        check_out (Optional[date]): Only stays ending on this date.

    Returns:
        int: Number of matching reservations.
    """
    stmt = select(func.count()).select_from(Reservation).where(Reservation.status == status)
    if check_in is not None:
        stmt = stmt.where(Reservation.check_in == check_in)
    if check_out is not None:
        stmt = stmt.where(Reservation.check_out == check_out)

    return int(conn.execute(stmt).scalar_one())
