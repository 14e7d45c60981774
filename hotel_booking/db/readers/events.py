from typing import Any

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import EventStatus
from hotel_booking.models.events import BookingEvent


def fetch_pending_events(conn: Connection, limit: int = 10) -> list[dict[str, Any]]:
    """
    Fetch undelivered outbox events in the order they were recorded.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        limit (int): Maximum number of events to return.

    Returns:
        list[dict[str, Any]]: Pending event rows.
    """
    result = conn.execute(
        select(BookingEvent.__table__)
        .where(BookingEvent.status == EventStatus.PENDING)
        .order_by(BookingEvent.id)
        .limit(limit)
    )
    return [dict(row) for row in result.mappings()]


def count_pending_events(conn: Connection) -> int:
    """Number of outbox events still waiting for delivery."""
    return int(
        conn.execute(
            select(func.count())
            .select_from(BookingEvent)
            .where(BookingEvent.status == EventStatus.PENDING)
        ).scalar_one()
    )


def list_events_for_reservation(conn: Connection, reservation_id: int) -> list[dict[str, Any]]:
    """All outbox events recorded for a reservation, oldest first."""
    result = conn.execute(
        select(BookingEvent.__table__)
        .where(BookingEvent.reservation_id == reservation_id)
        .order_by(BookingEvent.id)
    )
    return [dict(row) for row in result.mappings()]
