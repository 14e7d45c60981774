from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from hotel_booking.models.enums import RoomStatus
from hotel_booking.models.rooms import Room


def get_room_status(conn: Connection, hotel_code: str, room_number: str) -> Optional[RoomStatus]:
    """
    Current catalog status of a room.

    Args:
        conn (Connection): Active SQLAlchemy connection.
        hotel_code (str): Hotel part of the room key.
        room_number (str): Room part of the room key.

    Returns:
        Optional[RoomStatus]: Status, or None if the room is not registered.
    """
    return conn.execute(
        select(Room.status)
        .where(Room.hotel_code == hotel_code)
        .where(Room.room_number == room_number)
    ).scalar()
