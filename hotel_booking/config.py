import os
from dataclasses import dataclass
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS")
if not ALLOWED_ORIGINS_RAW:
    raise ValueError("ALLOWED_ORIGINS must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

HOTEL_CODE = os.getenv("HOTEL_CODE", "central-hotel")

MIN_STAY_NIGHTS = int(os.getenv("MIN_STAY_NIGHTS", "1"))
MAX_STAY_NIGHTS = int(os.getenv("MAX_STAY_NIGHTS", "30"))
TAX_RATE = Decimal(os.getenv("TAX_RATE", "0.08"))

EVENT_DISPATCH_BATCH_SIZE = int(os.getenv("EVENT_DISPATCH_BATCH_SIZE", "10"))


@dataclass(frozen=True)
class BookingPolicy:
    """
    Booking-window and billing policy injected into the booking service.

    Attributes:
        hotel_code: Hotel component of room keys when a request omits it
        min_nights: Shortest stay accepted at booking or reschedule time
        max_nights: Longest stay accepted at booking or reschedule time
        tax_rate: Fraction applied to the Final invoice subtotal (0.08 = 8%)
    """

    hotel_code: str = "central-hotel"
    min_nights: int = 1
    max_nights: int = 30
    tax_rate: Decimal = Decimal("0.08")


def load_booking_policy() -> BookingPolicy:
    """Build the policy from environment-driven settings."""
    if MIN_STAY_NIGHTS < 1 or MAX_STAY_NIGHTS < MIN_STAY_NIGHTS:
        raise ValueError("MIN_STAY_NIGHTS must be >= 1 and <= MAX_STAY_NIGHTS")

    return BookingPolicy(
        hotel_code=HOTEL_CODE,
        min_nights=MIN_STAY_NIGHTS,
        max_nights=MAX_STAY_NIGHTS,
        tax_rate=TAX_RATE,
    )
