"""
Internal helper functions for booking route handlers.

Serialization of service results and the exception handlers that turn engine
errors into the {"code", "message", "reason", ...} error body.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import BackgroundTasks, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from hotel_booking.errors import BookingError
from hotel_booking.schemas.bookings import ChargeOut, InvoiceOut, ReservationOut
from hotel_booking.services.events import NotificationDispatcher, dispatch_pending_events

logger = structlog.get_logger(__name__)


def serialize_reservation(reservation: dict[str, Any]) -> dict[str, Any]:
    """Render a reservation view as JSON-ready data."""
    return ReservationOut.model_validate(reservation).model_dump(mode="json")


def serialize_invoice(invoice: dict[str, Any]) -> dict[str, Any]:
    return InvoiceOut.model_validate(invoice).model_dump(mode="json")


def serialize_charges(charges: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [ChargeOut.model_validate(charge).model_dump(mode="json") for charge in charges]


def jsonable_amounts(values: dict[str, Any]) -> dict[str, Any]:
    """Render Decimal and datetime values of a flat summary (slip, receipt) as strings."""
    rendered: dict[str, Any] = {}
    for key, value in values.items():
        if hasattr(value, "isoformat"):
            rendered[key] = value.isoformat()
        elif hasattr(value, "quantize"):
            rendered[key] = f"{value:.2f}"
        else:
            rendered[key] = value
    return rendered


def schedule_event_dispatch(
    background_tasks: BackgroundTasks, engine: Engine, dispatcher: NotificationDispatcher
) -> None:
    """Deliver the events a successful request recorded once the response is sent."""
    background_tasks.add_task(dispatch_pending_events, engine, dispatcher)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """
    Convert a BookingError into its HTTP status and error body.

    Args:
        request: Request that failed
        exc: Raised BookingError

    Returns:
        JSONResponse: {"code", "message", "reason", ...details}
    """
    logger.info(
        "request_refused",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report payload validation failures as VALIDATION_ERROR with field-level detail."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    reason = "; ".join(f"{error['field']}: {error['message']}" for error in errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Invalid request",
            "reason": reason,
            "errors": errors,
        },
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Storage and other unexpected faults: nothing was committed, the caller may retry."""
    logger.exception("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )
