"""
Integration tests for registering rooms in the room catalog.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import pytest
from sqlalchemy.engine import Engine

from hotel_booking.db.readers.rooms import get_room_status
from hotel_booking.errors import ValidationFailed
from hotel_booking.models.enums import PaymentMethod, RoomStatus
from hotel_booking.services.booking import BookingRequest, BookingService
from hotel_booking.services.room_catalog import parse_room_numbers, register_rooms

SEEDED_AT = datetime(2026, 3, 20, 8, 0, tzinfo=timezone.utc)


def _status(engine: Engine, room_number: str) -> RoomStatus | None:
    with engine.connect() as conn:
        return get_room_status(conn, "central-hotel", room_number)


@pytest.mark.unit
def test_room_ranges_are_expanded() -> None:
    assert parse_room_numbers(["201-203", "305", "202"]) == ["201", "202", "203", "305"]
    assert parse_room_numbers(["08-10"]) == ["08", "09", "10"]


@pytest.mark.unit
@pytest.mark.parametrize("room_arg", ["210-201", "2a-5", "-4"])
def test_malformed_room_range_is_refused(room_arg: str) -> None:
    with pytest.raises(ValidationFailed):
        parse_room_numbers([room_arg])


@pytest.mark.integration
def test_registered_rooms_start_available(db_engine: Engine) -> None:
    counts = register_rooms(db_engine, "central-hotel", "Deluxe", ["201", "202"], now=SEEDED_AT)

    assert counts == {"registered": 2, "updated": 0}
    assert _status(db_engine, "201") == RoomStatus.AVAILABLE
    assert _status(db_engine, "999") is None


@pytest.mark.integration
def test_check_in_occupies_a_registered_room(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    """Test that seeded rooms follow the stay: Occupied at check-in, Available at check-out."""
    register_rooms(db_engine, "central-hotel", "Deluxe", parse_room_numbers(["201-205"]), now=SEEDED_AT)
    reservation_id = service.create_booking(make_request()).reservation["id"]
    service.approve(reservation_id)

    service.check_in(reservation_id)
    assert _status(db_engine, "203") == RoomStatus.OCCUPIED

    service.check_out(reservation_id, payment_method=PaymentMethod.CARD_ON_FILE)
    assert _status(db_engine, "203") == RoomStatus.AVAILABLE


@pytest.mark.integration
def test_reseeding_keeps_occupied_rooms_occupied(
    service: BookingService, make_request: Callable[..., BookingRequest], db_engine: Engine
) -> None:
    register_rooms(db_engine, "central-hotel", "Deluxe", ["203"], now=SEEDED_AT)
    reservation_id = service.create_booking(make_request()).reservation["id"]
    service.approve(reservation_id)
    service.check_in(reservation_id)

    counts = register_rooms(db_engine, "central-hotel", "Suite", ["203", "204"], now=SEEDED_AT)

    assert counts == {"registered": 1, "updated": 1}
    assert _status(db_engine, "203") == RoomStatus.OCCUPIED
    assert _status(db_engine, "204") == RoomStatus.AVAILABLE
