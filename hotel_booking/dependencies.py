"""
FastAPI dependency injection providers.

Routes receive the engine, the booking service and the notification dispatcher
through these providers, so tests can swap any of them with
app.dependency_overrides (for example a SQLite engine or a service with a
fixed clock).
"""

from __future__ import annotations

from typing import Generator

from fastapi import Depends, Header
from sqlalchemy.engine import Engine

from hotel_booking.config import load_booking_policy
from hotel_booking.db.engine import engine
from hotel_booking.services.booking import BookingService
from hotel_booking.services.events import LoggingNotificationDispatcher, NotificationDispatcher


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
    """
    yield engine


def get_booking_service(db_engine: Engine = Depends(get_db_engine)) -> BookingService:
    """
    Provide a booking service bound to the request's engine and the configured policy.

    Returns:
        BookingService: Service with the simulated payment gateway
    """
    return BookingService(db_engine, policy=load_booking_policy())


def get_event_dispatcher() -> NotificationDispatcher:
    """Provide the notification collaborator that receives outbox events."""
    return LoggingNotificationDispatcher()


def get_actor(x_actor: str | None = Header(None)) -> str:
    """Acting user recorded in the audit trail (X-Actor header, default "system")."""
    return x_actor or "system"
