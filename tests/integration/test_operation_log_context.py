"""
Integration tests for the log context bound around booking operations.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest
import structlog

from hotel_booking.services.availability import AvailabilityIndex
from hotel_booking.services.booking import BookingRequest, BookingService


@pytest.mark.integration
def test_operation_context_is_bound_while_it_runs(
    service: BookingService,
    make_request: Callable[..., BookingRequest],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that log lines emitted inside an operation carry its name and actor."""
    seen: list[dict[str, Any]] = []
    check_overlap = AvailabilityIndex.check_overlap

    def recording_check(self: AvailabilityIndex, *args: Any, **kwargs: Any) -> Any:
        seen.append(structlog.contextvars.get_contextvars())
        return check_overlap(self, *args, **kwargs)

    monkeypatch.setattr(AvailabilityIndex, "check_overlap", recording_check)

    service.create_booking(make_request(), actor="front-desk")

    (context,) = seen
    assert context["operation"] == "create_booking"
    assert context["actor"] == "front-desk"
    assert "reservation_id" not in context
    assert "operation" not in structlog.contextvars.get_contextvars()


@pytest.mark.integration
def test_reservation_id_is_bound_for_transitions(
    service: BookingService,
    make_request: Callable[..., BookingRequest],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    reservation_id = service.create_booking(make_request()).reservation["id"]
    service.approve(reservation_id)
    seen: list[dict[str, Any]] = []
    check_overlap = AvailabilityIndex.check_overlap

    def recording_check(self: AvailabilityIndex, *args: Any, **kwargs: Any) -> Any:
        seen.append(structlog.contextvars.get_contextvars())
        return check_overlap(self, *args, **kwargs)

    monkeypatch.setattr(AvailabilityIndex, "check_overlap", recording_check)

    service.check_in(reservation_id, assigned_room_number="305")

    (context,) = seen
    assert context["operation"] == "check_in"
    assert context["reservation_id"] == reservation_id
    assert context["actor"] == "system"
