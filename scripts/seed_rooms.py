import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import structlog

from hotel_booking.config import HOTEL_CODE
from hotel_booking.db.engine import engine
from hotel_booking.logging_config import setup_logging
from hotel_booking.services.room_catalog import parse_room_numbers, register_rooms

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Register rooms in the catalog, e.g. ``seed_rooms.py --type Deluxe 201-210 305``.
    """
    parser = argparse.ArgumentParser(description="Register hotel rooms in the room catalog")
    parser.add_argument("rooms", nargs="+", help="Room numbers or ranges such as 201-210")
    parser.add_argument("--type", dest="room_type", required=True, help="Room type, e.g. Deluxe")
    parser.add_argument("--hotel", default=HOTEL_CODE, help="Hotel code")
    args = parser.parse_args()

    try:
        register_rooms(engine, args.hotel, args.room_type, parse_room_numbers(args.rooms))
    except Exception:
        logger.exception("room_catalog_seed_failed", hotel_code=args.hotel)
        raise


if __name__ == "__main__":
    main()
