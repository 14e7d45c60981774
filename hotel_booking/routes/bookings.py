from typing import Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Header, Query, Response, status
from sqlalchemy.engine import Engine

from hotel_booking.dependencies import (
    get_actor,
    get_booking_service,
    get_db_engine,
    get_event_dispatcher,
)
from hotel_booking.models.enums import ReservationStatus
from hotel_booking.routes._booking_helpers import schedule_event_dispatch, serialize_reservation
from hotel_booking.schemas.bookings import BookingCreatePayload, CancelPayload, ReschedulePayload
from hotel_booking.services.booking import BookingRequest, BookingService
from hotel_booking.services.events import NotificationDispatcher

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/bookings", status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreatePayload,
    response: Response,
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    actor: str = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
    engine: Engine = Depends(get_db_engine),
    dispatcher: NotificationDispatcher = Depends(get_event_dispatcher),
) -> dict[str, Any]:
    """
    Request a room for a stay. The booking starts in PENDING_APPROVAL.

    Args:
        payload: Guest, room, dates and price
        response: Used to answer 200 instead of 201 for a replayed request
        background_tasks: Delivers the booking.created notification after the response
        idempotency_key: Retry token; repeating it returns the original booking

    Returns:
        dict: message, reason and the reservation
    """
    result = service.create_booking(
        BookingRequest(
            guest_id=payload.guest_id,
            room_number=payload.room_number,
            room_type=payload.room_type,
            check_in=payload.check_in,
            check_out=payload.check_out,
            total_price=payload.total_price,
            hotel_code=payload.hotel_code,
            room_name=payload.room_name,
        ),
        idempotency_key=idempotency_key or payload.idempotency_key,
        actor=actor,
    )
    booking = serialize_reservation(result.reservation)

    if not result.created:
        response.status_code = status.HTTP_200_OK
        return {
            "message": "Booking already exists",
            "reason": "This request was already processed; the original booking is returned.",
            "duplicate": True,
            "booking": booking,
        }

    schedule_event_dispatch(background_tasks, engine, dispatcher)
    return {
        "message": "Booking Requested",
        "reason": (
            f"{booking['room_name']} is held from {booking['check_in']} to {booking['check_out']} "
            "pending reception approval."
        ),
        "duplicate": False,
        "booking": booking,
    }


@router.get("/bookings/{reservation_id}")
def get_booking(
    reservation_id: int, service: BookingService = Depends(get_booking_service)
) -> dict[str, Any]:
    return serialize_reservation(service.get_reservation(reservation_id))


@router.get("/bookings")
def list_bookings(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    guest_id: Optional[str] = Query(None, description="Only this guest's bookings"),
    limit: int = Query(100, ge=1, le=500),
    service: BookingService = Depends(get_booking_service),
) -> list[dict[str, Any]]:
    """List bookings newest first, optionally filtered by status and guest."""
    rows = service.list_reservations(status=status_filter, guest_id=guest_id, limit=limit)
    return [serialize_reservation(row) for row in rows]


@router.patch("/bookings/{reservation_id}/dates")
def reschedule_booking(
    reservation_id: int,
    payload: ReschedulePayload,
    actor: str = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> dict[str, Any]:
    """Move a pending or confirmed booking to new dates."""
    view = service.reschedule(
        reservation_id,
        payload.check_in,
        payload.check_out,
        total_price=payload.total_price,
        actor=actor,
    )
    booking = serialize_reservation(view)
    return {
        "message": "Booking Rescheduled",
        "reason": (
            f"New stay {booking['check_in']} to {booking['check_out']}. "
            f"New total: ${booking['total_price']}."
        ),
        "booking": booking,
    }


@router.put("/bookings/{reservation_id}/cancel")
def cancel_booking(
    reservation_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[CancelPayload] = None,
    actor: str = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
    engine: Engine = Depends(get_db_engine),
    dispatcher: NotificationDispatcher = Depends(get_event_dispatcher),
) -> dict[str, Any]:
    """Cancel a pending or confirmed booking and release its room."""
    view = service.cancel(reservation_id, reason=payload.reason if payload else None, actor=actor)
    schedule_event_dispatch(background_tasks, engine, dispatcher)
    return {
        "message": "Booking Cancelled",
        "reason": f"Booking {reservation_id} cancelled. The payment authorization was released.",
        "booking": serialize_reservation(view),
    }
