"""
Health and readiness check endpoints for Kubernetes probes.

Health checks are used by container orchestration platforms to determine
if the application should be restarted or if it can receive traffic.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from hotel_booking.db.engine import check_engine_health
from hotel_booking.db.readers.events import count_pending_events
from hotel_booking.dependencies import get_db_engine
from hotel_booking.metrics import outbox_pending

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check() -> JSONResponse:
    """
    Liveness probe endpoint.

    Returns 200 if the application is running.

    Example:
        >>> GET /health
        {"status": "ok"}
    """
    return JSONResponse(content={"status": "ok"})


@router.get("/ready")
def readiness_check(engine: Engine = Depends(get_db_engine)) -> JSONResponse:
    """
    Readiness probe endpoint.

    Returns 200 if the database is accessible, with the number of booking
    events still waiting for delivery. Returns 503 if the database is not
    accessible.

    Example:
        >>> GET /ready
        {"status": "ready", "checks": {"database": "ok", "outbox_pending": 0}}
    """
    checks: dict[str, object] = {}

    if not check_engine_health(engine):
        logger.error("readiness_check_failed", reason="database_not_accessible")
        checks["database"] = "failed"
        return JSONResponse(status_code=503, content={"status": "not ready", "checks": checks})

    checks["database"] = "ok"
    try:
        with engine.connect() as conn:
            pending = count_pending_events(conn)
        outbox_pending.set(pending)
        checks["outbox_pending"] = pending
    except SQLAlchemyError as e:
        # Schema not migrated yet: the database answers but the outbox is missing
        logger.error("readiness_check_failed", reason="outbox_unreadable", error=str(e))
        checks["outbox_pending"] = "failed"
        return JSONResponse(status_code=503, content={"status": "not ready", "checks": checks})

    return JSONResponse(content={"status": "ready", "checks": checks})
