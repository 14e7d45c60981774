"""
Business errors raised by the booking engine.

Every error carries a stable machine-readable code, a short message, and a
human-readable reason, so callers can render an actionable message and decide
whether retrying makes sense. Errors are raised inside the operation's
transaction block, so raising one rolls back everything the operation wrote.

Storage faults are not wrapped here: they propagate as SQLAlchemy errors and
are reported to callers as generic internal errors.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any


class BookingError(Exception):
    """
    Base class for recoverable booking-engine errors.

    Attributes:
        code: Stable error kind (e.g. "INVALID_STATUS")
        status_code: HTTP status used by the API layer
        message: Short summary ("Cannot approve this booking")
        reason: Human-readable explanation
        details: Extra structured fields merged into the error body
    """

    code = "BOOKING_ERROR"
    status_code = 400

    def __init__(self, message: str, reason: str | None = None, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason or message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the API error body."""
        body: dict[str, Any] = {"code": self.code, "message": self.message, "reason": self.reason}
        body.update({key: _jsonable(value) for key, value in self.details.items()})
        return body


class ValidationFailed(BookingError):
    """Bad input detected before any state was touched (dates, amounts, missing fields)."""

    code = "VALIDATION_ERROR"

    def __init__(
        self, message: str, reason: str | None = None, code: str | None = None, **details: Any
    ) -> None:
        super().__init__(message, reason, **details)
        if code:
            self.code = code


class ReservationNotFound(BookingError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, reservation_id: int) -> None:
        super().__init__(
            "Booking not found",
            f"No booking exists with id {reservation_id}.",
            reservation_id=reservation_id,
        )


class InvalidState(BookingError):
    """The reservation (or its payment) is not in a state that allows the operation."""

    code = "INVALID_STATUS"


class RoomUnavailable(BookingError):
    """The requested stay overlaps a reservation that still holds the room."""

    code = "ROOM_UNAVAILABLE"
    status_code = 409

    def __init__(
        self,
        room_label: str,
        conflict_check_in: date | None = None,
        conflict_check_out: date | None = None,
    ) -> None:
        if conflict_check_in and conflict_check_out:
            reason = (
                f"{room_label} is already booked from {conflict_check_in.isoformat()} "
                f"to {conflict_check_out.isoformat()}. Please choose different dates."
            )
        else:
            reason = f"{room_label} is already booked for part of the requested stay."
        super().__init__(
            "Room is not available for the selected dates",
            reason,
            conflict_check_in=conflict_check_in,
            conflict_check_out=conflict_check_out,
        )


class DuplicateRequest(BookingError):
    """An idempotency key was reused; the original result is attached."""

    code = "DUPLICATE_REQUEST"
    status_code = 409


class OutstandingBalance(BookingError):
    """Check-out refused because the amount paid does not cover the payable balance."""

    code = "BALANCE_DUE"

    def __init__(self, shortfall: Decimal, financials: dict[str, Any]) -> None:
        super().__init__(
            "Cannot complete check-out",
            f"Outstanding balance of ${shortfall:.2f} must be cleared.",
            shortfall=shortfall,
            financials=financials,
        )
        self.shortfall = shortfall


class IncompleteCheckout(BookingError):
    """A Final invoice was requested before the stay reached check-in."""

    code = "INCOMPLETE_CHECKOUT"


class PaymentDeclined(BookingError):
    code = "PAYMENT_DECLINED"
    status_code = 402


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    return value
