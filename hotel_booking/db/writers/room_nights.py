from datetime import date

import structlog
from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection

from hotel_booking.models.room_nights import RoomNight

logger = structlog.get_logger(__name__)


def claim_room_nights(
    conn: Connection,
    reservation_id: int,
    hotel_code: str,
    room_number: str,
    nights: list[date],
) -> None:
    """
    Claim every night of a stay in the availability index.

    A night already claimed by another reservation violates the unique
    (hotel_code, room_number, night) constraint and raises IntegrityError;
    the caller's transaction must then be rolled back.

    Args:
        conn: Active connection (within the booking transaction)
        reservation_id: Reservation claiming the nights
        hotel_code: Hotel part of the room key
        room_number: Room part of the room key
        nights: Nights of the stay (check-out day excluded)
    """
    if not nights:
        return

    rows = [
        {
            "hotel_code": hotel_code,
            "room_number": room_number,
            "night": night,
            "reservation_id": reservation_id,
        }
        for night in nights
    ]
    conn.execute(insert(RoomNight), rows)

    logger.debug(
        "room_nights_claimed",
        reservation_id=reservation_id,
        room=f"{hotel_code}/{room_number}",
        nights=len(rows),
    )


def release_room_nights(conn: Connection, reservation_id: int) -> int:
    """
    Release every night claimed by a reservation.

    Args:
        conn: Active connection
        reservation_id: Reservation whose claims are dropped

    Returns:
        int: Number of nights released
    """
    result = conn.execute(delete(RoomNight).where(RoomNight.reservation_id == reservation_id))
    return result.rowcount
