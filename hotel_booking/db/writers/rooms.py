from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import RoomStatus
from hotel_booking.models.rooms import Room

logger = structlog.get_logger(__name__)


def upsert_room(
    conn: Connection,
    hotel_code: str,
    room_number: str,
    room_type: str,
    now: datetime,
    status: Optional[RoomStatus] = None,
) -> bool:
    """
    Register a room in the catalog, or update its type if present.

    Args:
        conn: Active connection
        hotel_code: Hotel part of the room key
        room_number: Room part of the room key
        room_type: Catalog room type ("Deluxe", "Suite", ...)
        now: Update timestamp
        status: Housekeeping status to store; None keeps an existing room's status
            and registers a new room as AVAILABLE

    Returns:
        bool: True if the room was newly registered
    """
    existing = conn.execute(
        select(Room.id)
        .where(Room.hotel_code == hotel_code)
        .where(Room.room_number == room_number)
    ).fetchone()

    if existing:
        changes: dict[str, Any] = {"room_type": room_type, "updated_at": now}
        if status is not None:
            changes["status"] = status
        conn.execute(update(Room).where(Room.id == existing[0]).values(**changes))
        return False

    conn.execute(
        insert(Room).values(
            hotel_code=hotel_code,
            room_number=room_number,
            room_type=room_type,
            status=status or RoomStatus.AVAILABLE,
            updated_at=now,
        )
    )
    return True


def set_room_status(
    conn: Connection, hotel_code: str, room_number: str, status: RoomStatus, now: datetime
) -> bool:
    """
    Update a catalog room's status.

    Args:
        conn: Active connection (within the check-in/check-out transaction)
        hotel_code: Hotel part of the room key
        room_number: Room part of the room key
        status: New status
        now: Update timestamp

    Returns:
        bool: False if the room is not in the catalog
    """
    result = conn.execute(
        update(Room)
        .where(Room.hotel_code == hotel_code)
        .where(Room.room_number == room_number)
        .values(status=status, updated_at=now)
    )
    if result.rowcount == 0:
        logger.warning(
            "room_status_update_skipped",
            room=f"{hotel_code}/{room_number}",
            status=status.value,
            reason="room_not_in_catalog",
        )
        return False
    return True
