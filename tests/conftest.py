"""
Shared fixtures: a fresh SQLite database per test, a controllable clock and
a booking service wired to both.
"""

from __future__ import annotations

import os

# Settings are read at import time; give the application a local database
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_hotel_booking.db")
os.environ.setdefault("ALLOWED_ORIGINS", "*")

from datetime import date, datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any, Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

import hotel_booking.models.audit  # noqa: E402, F401
import hotel_booking.models.events  # noqa: E402, F401
import hotel_booking.models.invoices  # noqa: E402, F401
import hotel_booking.models.payments  # noqa: E402, F401
import hotel_booking.models.reservations  # noqa: E402, F401
import hotel_booking.models.room_nights  # noqa: E402, F401
import hotel_booking.models.rooms  # noqa: E402, F401
from hotel_booking.config import BookingPolicy  # noqa: E402
from hotel_booking.db.engine import build_engine  # noqa: E402
from hotel_booking.models.base import Base  # noqa: E402
from hotel_booking.services.booking import BookingRequest, BookingService  # noqa: E402

# Stays in the scenarios start on 2026-04-01; "today" sits a little before that.
TODAY = datetime(2026, 3, 20, 9, 30, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """File-backed SQLite database with the booking schema, discarded after the test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(TODAY)


@pytest.fixture
def policy() -> BookingPolicy:
    return BookingPolicy(hotel_code="central-hotel", min_nights=1, max_nights=30, tax_rate=Decimal("0.08"))


@pytest.fixture
def service(db_engine: Engine, policy: BookingPolicy, clock: FrozenClock) -> BookingService:
    return BookingService(db_engine, policy=policy, now=clock)


@pytest.fixture
def zero_tax_service(db_engine: Engine, clock: FrozenClock) -> BookingService:
    """Service billing without tax, so check-out totals match the plain scenario arithmetic."""
    return BookingService(db_engine, policy=BookingPolicy(tax_rate=Decimal("0")), now=clock)


@pytest.fixture
def make_request() -> Callable[..., BookingRequest]:
    """Factory for booking requests on room 203, 2026-04-01 to 2026-04-05, price 500."""

    def _make(**overrides: Any) -> BookingRequest:
        values: dict[str, Any] = {
            "guest_id": "guest-1",
            "room_number": "203",
            "room_type": "Deluxe",
            "check_in": date(2026, 4, 1),
            "check_out": date(2026, 4, 5),
            "total_price": Decimal("500"),
        }
        values.update(overrides)
        return BookingRequest(**values)

    return _make


@pytest.fixture
def api_client(
    db_engine: Engine, service: BookingService
) -> Generator[TestClient, None, None]:
    """Test client for the full application, bound to the per-test database and service."""
    from hotel_booking.dependencies import get_booking_service, get_db_engine
    from hotel_booking.main import app

    app.dependency_overrides[get_db_engine] = lambda: db_engine
    app.dependency_overrides[get_booking_service] = lambda: service
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
