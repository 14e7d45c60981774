from typing import Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.engine import Engine

from hotel_booking.dependencies import (
    get_actor,
    get_booking_service,
    get_db_engine,
    get_event_dispatcher,
)
from hotel_booking.routes._booking_helpers import (
    jsonable_amounts,
    schedule_event_dispatch,
    serialize_charges,
    serialize_invoice,
    serialize_reservation,
)
from hotel_booking.schemas.bookings import (
    ApprovePayload,
    ChargePayload,
    CheckInPayload,
    CheckoutPayload,
    RejectPayload,
)
from hotel_booking.services.booking import BookingService
from hotel_booking.services.events import NotificationDispatcher

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/bookings/pending")
def pending_bookings(service: BookingService = Depends(get_booking_service)) -> list[dict[str, Any]]:
    """Bookings awaiting approval, oldest first."""
    return [serialize_reservation(row) for row in service.pending_queue()]


@router.get("/stats")
def front_desk_stats(service: BookingService = Depends(get_booking_service)) -> dict[str, int]:
    """Pending approvals, today's arrivals and departures, guests in house."""
    return service.front_desk_stats()


@router.put("/bookings/{reservation_id}/approve")
def approve_booking(
    reservation_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[ApprovePayload] = None,
    actor: str = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
    engine: Engine = Depends(get_db_engine),
    dispatcher: NotificationDispatcher = Depends(get_event_dispatcher),
) -> dict[str, Any]:
    """
    Confirm a pending booking and optionally allocate a room.

    Args:
        reservation_id: Booking to approve
        payload: Optional room allocation

    Returns:
        dict: message, reason and the confirmed booking
    """
    assigned = payload.assigned_room_number if payload else None
    booking = serialize_reservation(
        service.approve(reservation_id, assigned_room_number=assigned, actor=actor)
    )
    schedule_event_dispatch(background_tasks, engine, dispatcher)
    return {
        "message": "Booking Approved",
        "reason": (
            f"Booking confirmed for {booking['guest_id']}. "
            + (f"Room {assigned} assigned. " if assigned else "")
            + f"Guest can check-in from {booking['check_in']}."
        ),
        "booking": booking,
    }


@router.put("/bookings/{reservation_id}/reject")
def reject_booking(
    reservation_id: int,
    payload: RejectPayload,
    background_tasks: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
    engine: Engine = Depends(get_db_engine),
    dispatcher: NotificationDispatcher = Depends(get_event_dispatcher),
) -> dict[str, Any]:
    """Refuse a pending booking; its payment authorization is voided."""
    booking = serialize_reservation(service.reject(reservation_id, payload.reason, actor=actor))
    schedule_event_dispatch(background_tasks, engine, dispatcher)
    return {
        "message": "Booking Rejected",
        "reason": f"Booking {reservation_id} rejected: {payload.reason}",
        "booking": booking,
    }


@router.put("/bookings/{reservation_id}/checkin")
def check_in_guest(
    reservation_id: int,
    payload: CheckInPayload,
    background_tasks: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
    engine: Engine = Depends(get_db_engine),
    dispatcher: NotificationDispatcher = Depends(get_event_dispatcher),
) -> dict[str, Any]:
    """
    Check a confirmed guest in and return the check-in slip.

    Args:
        reservation_id: Booking to check in
        payload: Room allocation, deposit and ID verification

    Returns:
        dict: message, reason, booking and check_in_slip
    """
    result = service.check_in(
        reservation_id,
        assigned_room_number=payload.assigned_room_number,
        deposit_amount=payload.deposit_amount,
        id_verified=payload.id_verified,
        actor=actor,
    )
    schedule_event_dispatch(background_tasks, engine, dispatcher)
    slip = jsonable_amounts(result.slip)
    return {
        "message": "Guest Checked In Successfully",
        "reason": (
            f"{slip['guest_id']} verified and checked into Room {slip['room_number']}. "
            "Check-in slip generated."
        ),
        "booking": serialize_reservation(result.reservation),
        "check_in_slip": slip,
    }


@router.post("/bookings/{reservation_id}/charges", status_code=status.HTTP_201_CREATED)
def add_charge(
    reservation_id: int,
    payload: ChargePayload,
    actor: str = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> dict[str, Any]:
    """Append a service charge to a checked-in stay."""
    charges = service.add_charge(reservation_id, payload.description, payload.amount, actor=actor)
    return {
        "message": "Charge Added",
        "reason": f"{payload.description} added to booking {reservation_id}.",
        "charges": serialize_charges(charges),
    }


@router.put("/bookings/{reservation_id}/checkout")
def check_out_guest(
    reservation_id: int,
    payload: CheckoutPayload,
    background_tasks: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
    engine: Engine = Depends(get_db_engine),
    dispatcher: NotificationDispatcher = Depends(get_event_dispatcher),
) -> dict[str, Any]:
    """
    Settle the bill and check the guest out.

    Returns:
        dict: message, reason, booking, the Final invoice and the receipt
    """
    result = service.check_out(
        reservation_id,
        payment_method=payload.payment_method,
        paid_amount=payload.paid_amount,
        actor=actor,
    )
    schedule_event_dispatch(background_tasks, engine, dispatcher)
    receipt = jsonable_amounts(result.receipt)
    invoice = serialize_invoice(result.invoice)
    return {
        "message": "Check-Out Complete",
        "reason": (
            f"Final invoice #{invoice['id']} generated. "
            f"Payment: ${receipt['amount_paid']} via {receipt['payment_method']}."
        ),
        "booking": serialize_reservation(result.reservation),
        "invoice": invoice,
        "receipt": receipt,
    }
