"""
Integration tests for room availability: overlap checks and room-night claims.

Covers the double-booking rules on a real SQLite database: half-open stays,
released reservations, and the unique room-night constraint.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import pytest
from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from hotel_booking.errors import RoomUnavailable
from hotel_booking.models.room_nights import RoomNight
from hotel_booking.services.availability import AvailabilityIndex, AvailabilityResult, RoomKey
from hotel_booking.services.booking import BookingRequest, BookingService


def _nights_held(engine: Engine, reservation_id: int) -> list[date]:
    with engine.connect() as conn:
        rows = conn.execute(
            select(RoomNight.night)
            .where(RoomNight.reservation_id == reservation_id)
            .order_by(RoomNight.night)
        )
        return [row[0] for row in rows]


@pytest.mark.integration
def test_identical_second_request_is_refused(
    service: BookingService, make_request: Callable[..., BookingRequest]
) -> None:
    """Test that the same room and dates cannot be booked twice."""
    first = service.create_booking(make_request())
    assert first.reservation["status"].value == "PENDING_APPROVAL"

    with pytest.raises(RoomUnavailable) as exc_info:
        service.create_booking(make_request(guest_id="guest-2"))

    error = exc_info.value
    assert error.status_code == 409
    assert error.details["conflict_check_in"] == date(2026, 4, 1)
    assert error.details["conflict_check_out"] == date(2026, 4, 5)
    assert "Room 203 is already booked" in error.reason


@pytest.mark.integration
def test_partial_overlap_is_refused(
    service: BookingService, make_request: Callable[..., BookingRequest]
) -> None:
    """Test that a stay overlapping the tail of another is refused."""
    service.create_booking(make_request())

    with pytest.raises(RoomUnavailable):
        service.create_booking(
            make_request(check_in=date(2026, 4, 3), check_out=date(2026, 4, 7))
        )


@pytest.mark.integration
def test_stay_starting_on_check_out_day_is_accepted(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    """Test that back-to-back stays on the same room do not conflict."""
    first = service.create_booking(make_request())
    second = service.create_booking(
        make_request(check_in=date(2026, 4, 5), check_out=date(2026, 4, 8), total_price=375)
    )

    assert second.created
    assert _nights_held(db_engine, first.reservation["id"])[-1] == date(2026, 4, 4)
    assert _nights_held(db_engine, second.reservation["id"]) == [
        date(2026, 4, 5),
        date(2026, 4, 6),
        date(2026, 4, 7),
    ]


@pytest.mark.integration
def test_other_rooms_are_independent(
    service: BookingService, make_request: Callable[..., BookingRequest]
) -> None:
    service.create_booking(make_request())

    assert service.create_booking(make_request(room_number="204")).created


@pytest.mark.integration
def test_same_room_number_in_another_hotel_is_independent(
    service: BookingService, make_request: Callable[..., BookingRequest]
) -> None:
    """Test that the room key includes the hotel code."""
    service.create_booking(make_request())

    other = service.create_booking(make_request(hotel_code="harbour-inn"))

    assert other.reservation["hotel_code"] == "harbour-inn"


@pytest.mark.integration
@pytest.mark.parametrize("release", ["reject", "cancel"])
def test_released_reservations_free_the_room(
    service: BookingService,
    make_request: Callable[..., BookingRequest],
    db_engine: Engine,
    release: str,
) -> None:
    """Test that rejected and cancelled stays no longer block the room."""
    first = service.create_booking(make_request())
    if release == "reject":
        service.reject(first.reservation["id"], "Room under maintenance")
    else:
        service.cancel(first.reservation["id"])

    assert _nights_held(db_engine, first.reservation["id"]) == []
    assert service.create_booking(make_request(guest_id="guest-2")).created


@pytest.mark.integration
def test_check_overlap_reports_earliest_conflict(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    early = service.create_booking(make_request())
    service.create_booking(make_request(check_in=date(2026, 4, 6), check_out=date(2026, 4, 9)))

    with db_engine.connect() as conn:
        result = AvailabilityIndex().check_overlap(
            conn, RoomKey("central-hotel", "203"), date(2026, 4, 2), date(2026, 4, 8)
        )

    assert not result.available
    assert result.conflict_reservation_id == early.reservation["id"]


@pytest.mark.integration
def test_check_overlap_can_ignore_own_reservation(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    booking = service.create_booking(make_request())

    with db_engine.connect() as conn:
        result = AvailabilityIndex().check_overlap(
            conn,
            RoomKey("central-hotel", "203"),
            date(2026, 4, 2),
            date(2026, 4, 6),
            exclude_reservation_id=booking.reservation["id"],
        )

    assert result.available


@pytest.mark.integration
def test_constraint_refuses_claims_the_overlap_check_missed(
    service: BookingService,
    make_request: Callable[..., BookingRequest],
    db_engine: Engine,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that the unique room-night index refuses a double booking on its own."""
    service.create_booking(make_request())

    monkeypatch.setattr(
        AvailabilityIndex,
        "check_overlap",
        lambda self, *args, **kwargs: AvailabilityResult(available=True),
    )

    with pytest.raises(RoomUnavailable) as exc_info:
        service.create_booking(
            make_request(guest_id="guest-2", check_in=date(2026, 4, 4), check_out=date(2026, 4, 6))
        )

    assert exc_info.value.details["conflict_check_in"] == date(2026, 4, 1)
    with db_engine.connect() as conn:
        claimed = conn.execute(select(func.count()).select_from(RoomNight)).scalar_one()
    # Only the first booking's four nights remain; the refused booking rolled back entirely
    assert claimed == 4
    assert len(service.list_reservations()) == 1


@pytest.mark.integration
def test_move_replaces_claims(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    booking = service.create_booking(make_request())
    reservation_id = booking.reservation["id"]

    with db_engine.begin() as conn:
        AvailabilityIndex().move(
            conn, reservation_id, RoomKey("central-hotel", "305"), date(2026, 4, 10), date(2026, 4, 12)
        )

    assert _nights_held(db_engine, reservation_id) == [date(2026, 4, 10), date(2026, 4, 11)]
    with db_engine.connect() as conn:
        rooms = conn.execute(
            select(RoomNight.room_number).where(RoomNight.reservation_id == reservation_id)
        ).scalars()
        assert set(rooms) == {"305"}


@pytest.mark.integration
def test_room_key_rendering() -> None:
    room = RoomKey("central-hotel", "203")

    assert room.label == "Room 203"
    assert str(room) == "central-hotel/203"
    assert room == RoomKey("central-hotel", "203")
