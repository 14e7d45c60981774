"""
Integration tests for idempotent booking requests.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable

import pytest
from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from hotel_booking.db.readers import payments as payment_reader
from hotel_booking.errors import DuplicateRequest, RoomUnavailable
from hotel_booking.models.enums import PaymentStatus
from hotel_booking.models.payments import Payment
from hotel_booking.services import booking as booking_module
from hotel_booking.services.availability import AvailabilityIndex, AvailabilityResult
from hotel_booking.services.booking import BookingRequest, BookingService
from hotel_booking.services.payment_ledger import PaymentLedger

AUTHORIZED_AT = datetime(2026, 3, 20, 9, 30, tzinfo=timezone.utc)


def _payment_count(engine: Engine) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(Payment)).scalar_one()


@pytest.mark.integration
def test_repeated_key_returns_original_booking(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    """Test that retrying with the same key and details does not book twice."""
    first = service.create_booking(make_request(), idempotency_key="req-001")
    second = service.create_booking(make_request(), idempotency_key="req-001")

    assert first.created
    assert not second.created
    assert second.reservation["id"] == first.reservation["id"]
    assert second.reservation["payment"]["idempotency_key"] == "req-001"
    assert len(service.list_reservations()) == 1
    assert _payment_count(db_engine) == 1


@pytest.mark.integration
def test_replay_reflects_current_state(
    service: BookingService, make_request: Callable[..., BookingRequest]
) -> None:
    first = service.create_booking(make_request(), idempotency_key="req-002")
    service.approve(first.reservation["id"])

    replay = service.create_booking(make_request(), idempotency_key="req-002")

    assert replay.reservation["status"].value == "CONFIRMED"


@pytest.mark.integration
@pytest.mark.parametrize(
    "overrides",
    [
        {"check_out": date(2026, 4, 6)},
        {"room_number": "204"},
        {"guest_id": "guest-9"},
        {"total_price": Decimal("450")},
    ],
)
def test_reused_key_with_different_details_is_refused(
    service: BookingService,
    make_request: Callable[..., BookingRequest],
    db_engine: Engine,
    overrides: dict,
) -> None:
    first = service.create_booking(make_request(), idempotency_key="req-003")

    with pytest.raises(DuplicateRequest) as exc_info:
        service.create_booking(make_request(**overrides), idempotency_key="req-003")

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["reservation_id"] == first.reservation["id"]
    assert _payment_count(db_engine) == 1


@pytest.mark.integration
def test_distinct_keys_are_independent_requests(
    service: BookingService, make_request: Callable[..., BookingRequest]
) -> None:
    service.create_booking(make_request(), idempotency_key="req-004")

    other = service.create_booking(make_request(room_number="204"), idempotency_key="req-005")

    assert other.created


@pytest.mark.integration
def test_ledger_returns_existing_authorization_for_known_key(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    booking = service.create_booking(make_request(), idempotency_key="req-006")

    with db_engine.begin() as conn:
        authorization = PaymentLedger().authorize(
            conn, booking.reservation["id"], Decimal("500"), "req-006", AUTHORIZED_AT
        )

    assert authorization.duplicate
    assert authorization.payment["id"] == booking.reservation["payment"]["id"]
    assert authorization.payment["status"] == PaymentStatus.AUTHORIZED
    assert _payment_count(db_engine) == 1


def _hide_first_key_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make the retry start before the original commits, as under READ COMMITTED."""
    calls = {"count": 0}

    def lookup(conn, key):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return payment_reader.get_payment_by_idempotency_key(conn, key)

    monkeypatch.setattr(booking_module, "get_payment_by_idempotency_key", lookup)
    monkeypatch.setattr(
        AvailabilityIndex,
        "check_overlap",
        lambda self, *args, **kwargs: AvailabilityResult(available=True),
    )


@pytest.mark.integration
def test_retry_losing_room_nights_to_its_original_replays(
    service: BookingService,
    make_request: Callable[..., BookingRequest],
    db_engine: Engine,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that a retry refused by its original's room nights returns the original booking."""
    first = service.create_booking(make_request(), idempotency_key="req-007")
    _hide_first_key_lookup(monkeypatch)

    retry = service.create_booking(make_request(), idempotency_key="req-007")

    assert not retry.created
    assert retry.reservation["id"] == first.reservation["id"]
    assert len(service.list_reservations()) == 1
    assert _payment_count(db_engine) == 1


@pytest.mark.integration
def test_racing_request_with_other_key_still_conflicts(
    service: BookingService,
    make_request: Callable[..., BookingRequest],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    service.create_booking(make_request(), idempotency_key="req-008")
    _hide_first_key_lookup(monkeypatch)

    with pytest.raises(RoomUnavailable):
        service.create_booking(make_request(guest_id="guest-2"), idempotency_key="req-009")
