from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import EventStatus, EventType
from hotel_booking.models.events import BookingEvent

logger = structlog.get_logger(__name__)


def event_key(event_type: EventType, reservation_id: int) -> str:
    """Deduplication key combining the event type and the reservation id."""
    return f"{event_type.value}:{reservation_id}"


def record_event(
    conn: Connection,
    event_type: EventType,
    reservation_id: int,
    guest_id: str,
    message: str,
    payload: dict[str, Any],
    now: datetime,
) -> bool:
    """
    Record a domain event in the outbox, once per (event type, reservation).

    Runs inside the transaction of the state change that produced the event,
    so the event exists if and only if the change committed.

    Args:
        conn: Active connection (within the operation's transaction)
        event_type: Kind of event
        reservation_id: Reservation the event is about
        guest_id: Recipient of the notification
        message: Human-readable notification text
        payload: JSON-ready event details
        now: Recording timestamp

    Returns:
        bool: False if an event with the same key was already recorded
    """
    key = event_key(event_type, reservation_id)
    exists = conn.execute(select(BookingEvent.id).where(BookingEvent.event_key == key)).fetchone()
    if exists:
        logger.info("event_already_recorded", event_key=key)
        return False

    conn.execute(
        insert(BookingEvent).values(
            event_key=key,
            event_type=event_type,
            reservation_id=reservation_id,
            guest_id=guest_id,
            message=message,
            payload=payload,
            status=EventStatus.PENDING,
            attempts=0,
            created_at=now,
        )
    )
    return True


def mark_event_sent(conn: Connection, event_id: int, now: datetime) -> None:
    """Mark an outbox event delivered."""
    conn.execute(
        update(BookingEvent)
        .where(BookingEvent.id == event_id)
        .values(
            status=EventStatus.SENT,
            attempts=BookingEvent.attempts + 1,
            dispatched_at=now,
            last_error=None,
        )
    )


def mark_event_failed(conn: Connection, event_id: int, error: str, give_up: bool) -> None:
    """
    Record a failed delivery attempt.

    Args:
        conn: Active connection
        event_id: Outbox row
        error: Failure description
        give_up: Stop retrying (status FAILED) instead of leaving the event PENDING
    """
    conn.execute(
        update(BookingEvent)
        .where(BookingEvent.id == event_id)
        .values(
            status=EventStatus.FAILED if give_up else EventStatus.PENDING,
            attempts=BookingEvent.attempts + 1,
            last_error=error[:2000],
        )
    )
