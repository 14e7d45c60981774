"""
Room catalog registration for operators.

Check-in marks a catalog room Occupied and check-out marks it Available;
rooms the catalog does not know are skipped, so a hotel registers its rooms
here before opening for bookings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

import structlog
from sqlalchemy.engine import Engine

from hotel_booking.db.writers.rooms import upsert_room
from hotel_booking.errors import ValidationFailed
from hotel_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def parse_room_numbers(room_args: Iterable[str]) -> list[str]:
    """
    Expand room arguments such as ``["201-203", "305"]`` into room numbers.

    A range keeps the zero padding of its start ("08-10" gives 08, 09, 10).

    Raises:
        ValidationFailed: A range is malformed or runs backwards
    """
    rooms: list[str] = []
    for arg in room_args:
        arg = arg.strip()
        if "-" not in arg:
            if arg:
                rooms.append(arg)
            continue

        start, _, end = arg.partition("-")
        if not (start.isdigit() and end.isdigit()) or int(end) < int(start):
            raise ValidationFailed(
                "Invalid room range", f"'{arg}' is not a range like 201-210.", field="rooms"
            )
        width = len(start)
        rooms.extend(str(number).zfill(width) for number in range(int(start), int(end) + 1))

    # Keep first occurrence order
    return list(dict.fromkeys(rooms))


def register_rooms(
    engine: Engine,
    hotel_code: str,
    room_type: str,
    room_numbers: Iterable[str],
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """
    Add rooms to the catalog in one transaction.

    Rooms already registered get the new room type and keep their status,
    so re-running a seed during operation never frees an occupied room.

    Returns:
        dict: {"registered": new rooms, "updated": rooms already present}
    """
    if not room_type.strip():
        raise ValidationFailed("Missing required field", "room_type is required.", field="room_type")

    now = now or utc_now()
    counts = {"registered": 0, "updated": 0}
    with engine.begin() as conn:
        for room_number in room_numbers:
            created = upsert_room(conn, hotel_code, room_number, room_type, now)
            counts["registered" if created else "updated"] += 1

    logger.info("room_catalog_seeded", hotel_code=hotel_code, room_type=room_type, **counts)
    return counts
