"""
Integration tests for concurrent booking requests.

Several threads race for the same room, the same idempotency key or the same
reservation. Whatever the interleaving, exactly one of them may win.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

import pytest
from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from hotel_booking.errors import BookingError, InvalidState, RoomUnavailable
from hotel_booking.models.enums import ReservationStatus
from hotel_booking.models.room_nights import RoomNight
from hotel_booking.services.availability import AvailabilityIndex, AvailabilityResult
from hotel_booking.services.booking import BookingRequest, BookingService

WORKERS = 8


def _race(calls: list[Callable[[], Any]]) -> list[Any]:
    """Start every call at the same moment; return each result or the BookingError it raised."""
    barrier = threading.Barrier(len(calls))

    def run(call: Callable[[], Any]) -> Any:
        barrier.wait()
        try:
            return call()
        except BookingError as e:
            return e

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(run, calls))


def _claimed_nights(engine: Engine) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(RoomNight)).scalar_one()


@pytest.mark.integration
def test_only_one_of_many_simultaneous_bookings_wins(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    """Test that simultaneous requests for the same room and nights produce one reservation."""
    results = _race(
        [
            lambda guest=f"guest-{n}": service.create_booking(make_request(guest_id=guest))
            for n in range(WORKERS)
        ]
    )

    winners = [r for r in results if not isinstance(r, BookingError)]
    losers = [r for r in results if isinstance(r, BookingError)]
    assert len(winners) == 1
    assert len(losers) == WORKERS - 1
    assert all(isinstance(error, RoomUnavailable) for error in losers)
    assert len(service.list_reservations()) == 1
    assert _claimed_nights(db_engine) == 4


@pytest.mark.integration
def test_room_night_constraint_alone_prevents_double_booking(
    service: BookingService,
    make_request: Callable[..., BookingRequest],
    db_engine: Engine,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that the claim index refuses overlapping stays even when every pre-check passes."""
    monkeypatch.setattr(
        AvailabilityIndex,
        "check_overlap",
        lambda self, *args, **kwargs: AvailabilityResult(available=True),
    )

    results = _race(
        [
            lambda guest=f"guest-{n}": service.create_booking(make_request(guest_id=guest))
            for n in range(WORKERS)
        ]
    )

    assert sum(1 for r in results if not isinstance(r, BookingError)) == 1
    assert all(isinstance(r, RoomUnavailable) for r in results if isinstance(r, BookingError))
    assert len(service.list_reservations()) == 1
    assert _claimed_nights(db_engine) == 4


@pytest.mark.integration
def test_simultaneous_retries_share_one_booking(
    service: BookingService, make_request: Callable[..., BookingRequest]
) -> None:
    """Test that concurrent retries with one idempotency key create a single booking."""
    results = _race(
        [lambda: service.create_booking(make_request(), idempotency_key="retry-key")] * 4
    )

    assert not any(isinstance(r, BookingError) for r in results)
    assert sum(1 for r in results if r.created) == 1
    assert len({r.reservation["id"] for r in results}) == 1


@pytest.mark.integration
def test_concurrent_approve_and_reject_leave_one_outcome(
    service: BookingService, make_request: Callable[..., BookingRequest]
) -> None:
    reservation_id = service.create_booking(make_request()).reservation["id"]

    approved, rejected = _race(
        [
            lambda: service.approve(reservation_id),
            lambda: service.reject(reservation_id, "Overbooked"),
        ]
    )

    outcomes = [r for r in (approved, rejected) if not isinstance(r, BookingError)]
    errors = [r for r in (approved, rejected) if isinstance(r, BookingError)]
    assert len(outcomes) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], InvalidState)

    final_status = service.get_reservation(reservation_id)["status"]
    assert final_status == outcomes[0]["status"]
    assert final_status in (ReservationStatus.CONFIRMED, ReservationStatus.REJECTED)
