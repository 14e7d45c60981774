"""
Unit tests for the reservation transition table.
"""

from __future__ import annotations

import itertools

import pytest

from hotel_booking.errors import InvalidState
from hotel_booking.models.enums import ReservationStatus as S
from hotel_booking.services.booking import ALLOWED_TRANSITIONS, assert_transition

LEGAL = {
    (S.PENDING_APPROVAL, S.CONFIRMED),
    (S.PENDING_APPROVAL, S.REJECTED),
    (S.PENDING_APPROVAL, S.CANCELLED),
    (S.CONFIRMED, S.CHECKED_IN),
    (S.CONFIRMED, S.CANCELLED),
    (S.CHECKED_IN, S.CHECKED_OUT),
}


@pytest.mark.unit
def test_transition_table_matches_lifecycle() -> None:
    table = {(source, target) for source, targets in ALLOWED_TRANSITIONS.items() for target in targets}

    assert table == LEGAL


@pytest.mark.unit
@pytest.mark.parametrize("terminal", [S.CHECKED_OUT, S.REJECTED, S.CANCELLED])
def test_terminal_states_have_no_exits(terminal: S) -> None:
    assert ALLOWED_TRANSITIONS[terminal] == frozenset()


@pytest.mark.unit
@pytest.mark.parametrize(("current", "target"), sorted(LEGAL))
def test_legal_transitions_pass(current: S, target: S) -> None:
    assert_transition(current, target)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("current", "target"),
    [pair for pair in itertools.product(list(S), repeat=2) if pair not in LEGAL],
)
def test_illegal_transitions_raise_invalid_state(current: S, target: S) -> None:
    with pytest.raises(InvalidState) as exc_info:
        assert_transition(current, target)

    error = exc_info.value
    assert error.code == "INVALID_STATUS"
    assert error.status_code == 400
    assert error.details["current_status"] == current.value


@pytest.mark.unit
def test_invalid_state_reason_names_current_status() -> None:
    with pytest.raises(InvalidState) as exc_info:
        assert_transition(S.CONFIRMED, S.CONFIRMED)

    assert exc_info.value.message == "Cannot approve this booking"
    assert "Current status is 'CONFIRMED'" in exc_info.value.reason
    assert "'PENDING_APPROVAL'" in exc_info.value.reason


@pytest.mark.unit
def test_pending_cannot_skip_to_checked_in() -> None:
    with pytest.raises(InvalidState):
        assert_transition(S.PENDING_APPROVAL, S.CHECKED_IN)
