import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import structlog

from hotel_booking.config import EVENT_DISPATCH_BATCH_SIZE
from hotel_booking.db.engine import engine
from hotel_booking.logging_config import setup_logging
from hotel_booking.services.events import LoggingNotificationDispatcher, dispatch_pending_events

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Deliver pending booking events until the outbox is drained (or one batch with --once).
    """
    parser = argparse.ArgumentParser(description="Deliver pending booking notifications")
    parser.add_argument("--limit", type=int, default=EVENT_DISPATCH_BATCH_SIZE, help="Batch size")
    parser.add_argument("--once", action="store_true", help="Process a single batch")
    args = parser.parse_args()

    dispatcher = LoggingNotificationDispatcher()
    total = 0
    while True:
        result = dispatch_pending_events(engine, dispatcher, limit=args.limit)
        sent = sum(1 for detail in result["details"] if detail["status"] == "sent")
        total += result["processed"]
        # Stop when a batch delivers nothing, so failing events are not retried in a tight loop
        if args.once or result["processed"] < args.limit or sent == 0:
            break

    logger.info("event_dispatch_finished", processed=total)


if __name__ == "__main__":
    main()
