from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Engine

from hotel_booking.config import EVENT_DISPATCH_BATCH_SIZE
from hotel_booking.dependencies import get_db_engine, get_event_dispatcher
from hotel_booking.services.events import NotificationDispatcher, dispatch_pending_events

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/events/dispatch")
def dispatch_events(
    limit: int = Query(EVENT_DISPATCH_BATCH_SIZE, ge=1, le=100),
    engine: Engine = Depends(get_db_engine),
    dispatcher: NotificationDispatcher = Depends(get_event_dispatcher),
) -> dict[str, Any]:
    """
    Deliver one batch of pending booking events.

    Returns:
        dict: {"processed": n, "details": [...]} for the batch
    """
    result = dispatch_pending_events(engine, dispatcher, limit=limit)
    logger.info("event_dispatch_triggered", processed=result["processed"])
    return result
