"""Status and type vocabularies shared by the booking tables and services."""

import enum


class ReservationStatus(str, enum.Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


# Reservations in these states no longer hold their room
RELEASED_STATUSES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.REJECTED})


class PaymentStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    AUTHORIZED = "AUTHORIZED"
    CAPTURED = "CAPTURED"
    VOIDED = "VOIDED"
    REFUNDED = "REFUNDED"
    FAILED = "FAILED"


class PaymentMethod(str, enum.Enum):
    """
    How a check-out balance is settled.

    CARD_ON_FILE captures the authorization taken at booking time for the exact
    payable amount. CASH and CARD settle whatever amount the front desk collects.
    """

    CARD_ON_FILE = "card_on_file"
    CASH = "cash"
    CARD = "card"


class InvoiceType(str, enum.Enum):
    PROFORMA = "PROFORMA"
    FINAL = "FINAL"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ISSUED = "ISSUED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class RoomStatus(str, enum.Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    MAINTENANCE = "Maintenance"
    CLEANING = "Cleaning"


class EventStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class EventType(str, enum.Enum):
    BOOKING_CREATED = "booking.created"
    BOOKING_CONFIRMED = "booking.confirmed"
    BOOKING_REJECTED = "booking.rejected"
    BOOKING_CANCELLED = "booking.cancelled"
    CHECKIN_WELCOME = "checkin.welcome"
    CHECKOUT_THANKS = "checkout.thanks"
    HOUSEKEEPING_REQUESTED = "housekeeping.requested"
