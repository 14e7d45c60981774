"""
Outbox delivery of booking events to the notification collaborator.

Events are recorded by the booking service inside each operation's
transaction and delivered here after commit. Delivery is at-least-once:
an event is marked SENT only after the dispatcher accepted it, and consumers
deduplicate on ``event_key``.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog
from sqlalchemy.engine import Engine

from hotel_booking.config import EVENT_DISPATCH_BATCH_SIZE
from hotel_booking.db.readers.events import count_pending_events, fetch_pending_events
from hotel_booking.db.writers.events import mark_event_failed, mark_event_sent
from hotel_booking.metrics import events_dispatched, outbox_pending
from hotel_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

MAX_DELIVERY_ATTEMPTS = 5


class NotificationDispatcher(Protocol):
    """Delivers one event; raising marks the attempt failed."""

    def send(self, event: dict[str, Any]) -> None: ...


class LoggingNotificationDispatcher:
    """Default dispatcher: writes each notification to the structured log."""

    def send(self, event: dict[str, Any]) -> None:
        logger.info(
            "notification_sent",
            event_key=event["event_key"],
            event_type=event["event_type"].value,
            guest_id=event["guest_id"],
            message=event["message"],
        )


def dispatch_pending_events(
    engine: Engine,
    dispatcher: NotificationDispatcher,
    limit: int = EVENT_DISPATCH_BATCH_SIZE,
) -> dict[str, Any]:
    """
    Deliver one batch of pending outbox events.

    Each event's outcome is committed on its own, so a failing dispatcher
    never blocks or rolls back deliveries that already succeeded.

    Args:
        engine: Database engine
        dispatcher: Notification collaborator
        limit: Maximum events processed in this batch

    Returns:
        dict: {"processed": n, "details": [{"event_key", "status", "error"?}, ...]}
    """
    with engine.connect() as conn:
        events = fetch_pending_events(conn, limit=limit)

    details: list[dict[str, Any]] = []
    for event in events:
        event_type = event["event_type"].value
        try:
            dispatcher.send(event)
        except Exception as e:
            give_up = event["attempts"] + 1 >= MAX_DELIVERY_ATTEMPTS
            with engine.begin() as conn:
                mark_event_failed(conn, event["id"], str(e), give_up=give_up)
            status = "failed" if give_up else "retry"
            events_dispatched.labels(event_type=event_type, status=status).inc()
            logger.warning(
                "event_dispatch_failed",
                event_key=event["event_key"],
                attempts=event["attempts"] + 1,
                give_up=give_up,
                error=str(e),
            )
            details.append({"event_key": event["event_key"], "status": status, "error": str(e)})
            continue

        with engine.begin() as conn:
            mark_event_sent(conn, event["id"], utc_now())
        events_dispatched.labels(event_type=event_type, status="sent").inc()
        details.append({"event_key": event["event_key"], "status": "sent"})

    with engine.connect() as conn:
        outbox_pending.set(count_pending_events(conn))

    if details:
        logger.info("event_dispatch_batch_completed", processed=len(details))
    return {"processed": len(details), "details": details}
