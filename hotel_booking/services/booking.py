"""
Booking state machine: the only component that moves a reservation between states.

Every operation runs in one database transaction. The reservation row is
locked first (SELECT ... FOR UPDATE), the requested transition is checked
against ALLOWED_TRANSITIONS, and the status is then moved with a
compare-and-set UPDATE. Payment, invoice, room-night, room-catalog, outbox and
audit writes all happen on the same connection, so a refused or failed
operation leaves nothing behind.

    PENDING_APPROVAL --approve--> CONFIRMED --check_in--> CHECKED_IN --check_out--> CHECKED_OUT
    PENDING_APPROVAL --reject---> REJECTED
    PENDING_APPROVAL | CONFIRMED --cancel--> CANCELLED
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterator, Optional

import structlog
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hotel_booking.config import BookingPolicy
from hotel_booking.db.readers.invoices import list_invoices
from hotel_booking.db.readers.payments import (
    get_payment_by_idempotency_key,
    get_payment_for_reservation,
)
from hotel_booking.db.readers.reservations import (
    count_reservations,
    get_reservation,
    list_charges,
    list_pending_approval,
)
from hotel_booking.db.readers.reservations import list_reservations as read_reservations
from hotel_booking.db.writers.audit import record_audit
from hotel_booking.db.writers.events import record_event
from hotel_booking.db.writers.reservations import (
    append_charge,
    insert_reservation,
    transition_reservation,
    update_reservation,
)
from hotel_booking.db.writers.rooms import set_room_status
from hotel_booking.errors import (
    BookingError,
    DuplicateRequest,
    InvalidState,
    OutstandingBalance,
    ReservationNotFound,
    RoomUnavailable,
    ValidationFailed,
)
from hotel_booking.metrics import operation_duration, operations_total
from hotel_booking.models.enums import (
    EventType,
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
    RoomStatus,
)
from hotel_booking.services.availability import AvailabilityIndex, RoomKey
from hotel_booking.services.invoicing import InvoiceGenerator, compute_final_bill, to_money
from hotel_booking.services.payment_ledger import (
    PaymentGateway,
    PaymentLedger,
    SimulatedPaymentGateway,
)
from hotel_booking.utils.datetime import nights_between, utc_now

logger = structlog.get_logger(__name__)

S = ReservationStatus

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    S.PENDING_APPROVAL: frozenset({S.CONFIRMED, S.REJECTED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.CHECKED_IN, S.CANCELLED}),
    S.CHECKED_IN: frozenset({S.CHECKED_OUT}),
    S.CHECKED_OUT: frozenset(),
    S.REJECTED: frozenset(),
    S.CANCELLED: frozenset(),
}

_ACTION_LABELS = {
    S.CONFIRMED: "approve",
    S.REJECTED: "reject",
    S.CHECKED_IN: "check in",
    S.CHECKED_OUT: "check out",
    S.CANCELLED: "cancel",
}


def assert_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    """
    Refuse a status change the state machine does not allow.

    Raises:
        InvalidState: target is not reachable from current in one step
    """
    if target in ALLOWED_TRANSITIONS[current]:
        return

    allowed_from = sorted(
        status.value for status, targets in ALLOWED_TRANSITIONS.items() if target in targets
    )
    raise InvalidState(
        f"Cannot {_ACTION_LABELS.get(target, target.value.lower())} this booking",
        f"Current status is '{current.value}'. Only bookings in "
        f"{' or '.join(repr(s) for s in allowed_from)} can move to '{target.value}'.",
        current_status=current.value,
        target_status=target.value,
    )


@dataclass(frozen=True)
class BookingRequest:
    """Input of create_booking. hotel_code defaults to the policy's hotel."""

    guest_id: str
    room_number: str
    room_type: str
    check_in: date
    check_out: date
    total_price: Decimal
    hotel_code: Optional[str] = None
    room_name: Optional[str] = None


@dataclass(frozen=True)
class BookingResult:
    reservation: dict[str, Any]
    created: bool = True


@dataclass(frozen=True)
class CheckInResult:
    reservation: dict[str, Any]
    slip: dict[str, Any]


@dataclass(frozen=True)
class CheckoutResult:
    reservation: dict[str, Any]
    invoice: dict[str, Any]
    receipt: dict[str, Any]


class BookingService:
    """
    Orchestrates availability, payments, invoices and events for each reservation.

    Args:
        engine: Database engine; each operation opens its own transaction
        policy: Stay-length and tax policy
        gateway: Settles check-out payments
        now: Clock, injectable for tests
    """

    def __init__(
        self,
        engine: Engine,
        policy: Optional[BookingPolicy] = None,
        gateway: Optional[PaymentGateway] = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.engine = engine
        self.policy = policy or BookingPolicy()
        self.gateway = gateway or SimulatedPaymentGateway()
        self.availability = AvailabilityIndex()
        self.ledger = PaymentLedger()
        self.invoices = InvoiceGenerator()
        self._now = now

    # ------------------------------------------------------------------
    # Booking creation
    # ------------------------------------------------------------------

    def create_booking(
        self,
        request: BookingRequest,
        idempotency_key: Optional[str] = None,
        actor: str = "system",
    ) -> BookingResult:
        """
        Reserve a room for a stay, pending reception approval.

        The reservation, its room-night claims, the payment authorization,
        the Proforma invoice and the booking.created event commit together.
        A request repeating an earlier idempotency key with the same details
        returns the earlier reservation (created=False) instead.

        Raises:
            ValidationFailed: Bad dates, stay length or price
            RoomUnavailable: The room is held for part of the stay
            DuplicateRequest: The idempotency key belongs to a different booking
        """
        with self._operation("create_booking", actor=actor):
            now = self._now()
            room = RoomKey(request.hotel_code or self.policy.hotel_code, request.room_number)
            price = self._validate_booking(request, now.date())
            key = idempotency_key or f"booking-{uuid.uuid4().hex}"

            try:
                with self.engine.begin() as conn:
                    existing = get_payment_by_idempotency_key(conn, key)
                    if existing:
                        return self._replay(conn, existing, request, room, price)

                    self.availability.check_overlap(
                        conn, room, request.check_in, request.check_out
                    ).raise_if_conflict(room)

                    reservation_id = insert_reservation(
                        conn,
                        {
                            "guest_id": request.guest_id,
                            "hotel_code": room.hotel_code,
                            "room_number": room.room_number,
                            "room_name": request.room_name or room.label,
                            "room_type": request.room_type,
                            "check_in": request.check_in,
                            "check_out": request.check_out,
                            "total_price": price,
                        },
                        now,
                    )
                    self.availability.claim(
                        conn, reservation_id, room, request.check_in, request.check_out
                    )
                    self.ledger.authorize(conn, reservation_id, price, key, now)

                    reservation = self._require(conn, reservation_id)
                    self.invoices.issue_proforma(conn, reservation, now)
                    self._emit(
                        conn,
                        EventType.BOOKING_CREATED,
                        reservation,
                        f"Your booking request for {reservation['room_name']} "
                        f"({request.check_in.isoformat()} to {request.check_out.isoformat()}) "
                        "has been received and is awaiting confirmation.",
                        now,
                    )
                    record_audit(
                        conn,
                        actor,
                        "BOOKING_CREATED",
                        f"Booking {reservation_id} created for {room.label} ({request.room_type}), "
                        f"{request.check_in.isoformat()} to {request.check_out.isoformat()}",
                        now,
                        reservation_id=reservation_id,
                    )
                    view = self._view(conn, reservation_id)
            except (IntegrityError, RoomUnavailable):
                # A concurrent request with the same idempotency key committed first.
                # Its room nights or its payment row refused this transaction's writes.
                if idempotency_key is None:
                    raise
                with self.engine.connect() as conn:
                    existing = get_payment_by_idempotency_key(conn, key)
                    if existing is None:
                        raise
                    return self._replay(conn, existing, request, room, price)

            logger.info(
                "booking_created",
                reservation_id=reservation_id,
                room=str(room),
                guest_id=request.guest_id,
            )
            return BookingResult(view, created=True)

    def _validate_booking(self, request: BookingRequest, today: date) -> Decimal:
        for field_name in ("guest_id", "room_number", "room_type"):
            if not str(getattr(request, field_name) or "").strip():
                raise ValidationFailed(
                    "Missing required field", f"{field_name} is required.", field=field_name
                )

        self._validate_stay(request.check_in, request.check_out, today)

        price = to_money(request.total_price)
        if price <= 0:
            raise ValidationFailed(
                "Invalid total price", "Total price must be greater than zero.", field="total_price"
            )
        return price

    def _validate_stay(self, check_in: date, check_out: date, today: date) -> None:
        if check_in < today:
            raise ValidationFailed(
                "Invalid check-in date", "Check-in date cannot be in the past.", field="check_in"
            )
        if check_out <= check_in:
            raise ValidationFailed(
                "Invalid dates", "Check-out date must be after check-in date.", field="check_out"
            )

        nights = nights_between(check_in, check_out)
        if nights < self.policy.min_nights:
            raise ValidationFailed(
                "Stay too short",
                f"Minimum stay is {self.policy.min_nights} night(s).",
                field="check_out",
            )
        if nights > self.policy.max_nights:
            raise ValidationFailed(
                "Stay too long",
                f"Maximum stay is {self.policy.max_nights} nights.",
                field="check_out",
            )

    def _replay(
        self,
        conn: Connection,
        payment: dict[str, Any],
        request: BookingRequest,
        room: RoomKey,
        price: Decimal,
    ) -> BookingResult:
        reservation = self._require(conn, payment["reservation_id"])
        same_request = (
            reservation["guest_id"] == request.guest_id
            and reservation["hotel_code"] == room.hotel_code
            and reservation["room_number"] == room.room_number
            and reservation["check_in"] == request.check_in
            and reservation["check_out"] == request.check_out
            and to_money(reservation["total_price"]) == price
        )
        if not same_request:
            raise DuplicateRequest(
                "Duplicate request",
                "This idempotency key was already used for a different booking.",
                reservation_id=reservation["id"],
            )

        logger.info("booking_request_replayed", reservation_id=reservation["id"])
        return BookingResult(self._view(conn, reservation["id"]), created=False)

    # ------------------------------------------------------------------
    # Reception transitions
    # ------------------------------------------------------------------

    def approve(
        self,
        reservation_id: int,
        assigned_room_number: Optional[str] = None,
        actor: str = "system",
    ) -> dict[str, Any]:
        """
        Confirm a pending booking. The payment stays AUTHORIZED.

        An assigned room other than the booked one takes over the stay's
        room-night claims.

        Raises:
            InvalidState: The booking is not PENDING_APPROVAL
            RoomUnavailable: The assigned room is held by another booking
        """
        with self._operation("approve", reservation_id, actor):
            now = self._now()
            with self.engine.begin() as conn:
                reservation = self._lock(conn, reservation_id)
                assert_transition(reservation["status"], S.CONFIRMED)
                extra: dict[str, Any] = {}
                if assigned_room_number:
                    self._reassign(conn, reservation, assigned_room_number)
                    extra["assigned_room_number"] = assigned_room_number
                self._transition(conn, reservation, S.CONFIRMED, now, **extra)

                self._emit(
                    conn,
                    EventType.BOOKING_CONFIRMED,
                    reservation,
                    f"Great news! Your booking for {reservation['room_name']} is confirmed. "
                    f"Check-in: {reservation['check_in'].isoformat()}",
                    now,
                )
                record_audit(
                    conn,
                    actor,
                    "BOOKING_APPROVED",
                    f"Approved booking {reservation_id}. "
                    f"Room: {assigned_room_number or reservation['room_number']}",
                    now,
                    reservation_id=reservation_id,
                )
                view = self._view(conn, reservation_id)

            logger.info("booking_approved", reservation_id=reservation_id)
            return view

    def reject(self, reservation_id: int, reason: str, actor: str = "system") -> dict[str, Any]:
        """
        Refuse a pending booking: void its authorization and free its room nights.

        Raises:
            ValidationFailed: No reason given
            InvalidState: The booking is not PENDING_APPROVAL
        """
        with self._operation("reject", reservation_id, actor):
            if not (reason or "").strip():
                raise ValidationFailed(
                    "Rejection reason required", "A reason must be given.", field="reason"
                )

            now = self._now()
            with self.engine.begin() as conn:
                reservation = self._lock(conn, reservation_id)
                self._transition(conn, reservation, S.REJECTED, now, status_reason=reason)
                self._release(conn, reservation_id, now)

                self._emit(
                    conn,
                    EventType.BOOKING_REJECTED,
                    reservation,
                    f"Your booking for {reservation['room_name']} could not be confirmed. {reason}",
                    now,
                    reason=reason,
                )
                record_audit(
                    conn,
                    actor,
                    "BOOKING_REJECTED",
                    f"Rejected booking {reservation_id}. Reason: {reason}",
                    now,
                    reservation_id=reservation_id,
                )
                view = self._view(conn, reservation_id)

            logger.info("booking_rejected", reservation_id=reservation_id, reason=reason)
            return view

    def cancel(
        self, reservation_id: int, reason: Optional[str] = None, actor: str = "system"
    ) -> dict[str, Any]:
        """
        Cancel a pending or confirmed booking, voiding its authorization.

        Raises:
            InvalidState: The guest already checked in, or the booking is closed
        """
        with self._operation("cancel", reservation_id, actor):
            now = self._now()
            with self.engine.begin() as conn:
                reservation = self._lock(conn, reservation_id)
                self._transition(conn, reservation, S.CANCELLED, now, status_reason=reason)
                self._release(conn, reservation_id, now)

                self._emit(
                    conn,
                    EventType.BOOKING_CANCELLED,
                    reservation,
                    f"Your booking for {reservation['room_name']} "
                    f"({reservation['check_in'].isoformat()}) has been cancelled.",
                    now,
                )
                record_audit(
                    conn,
                    actor,
                    "BOOKING_CANCELLED",
                    f"Cancelled booking {reservation_id}."
                    + (f" Reason: {reason}" if reason else ""),
                    now,
                    reservation_id=reservation_id,
                )
                view = self._view(conn, reservation_id)

            logger.info("booking_cancelled", reservation_id=reservation_id)
            return view

    def check_in(
        self,
        reservation_id: int,
        assigned_room_number: Optional[str] = None,
        deposit_amount: Decimal = Decimal("0"),
        id_verified: bool = True,
        actor: str = "system",
    ) -> CheckInResult:
        """
        Check a confirmed guest in.

        Records the deposit on the reservation and as the payment's advance,
        moves the room-night claims when the guest is given a different room,
        and marks the room Occupied in the catalog.

        Raises:
            ValidationFailed: Negative deposit, or the guest's ID was not verified
            InvalidState: The booking is not CONFIRMED
            RoomUnavailable: The assigned room is held by another booking
        """
        with self._operation("check_in", reservation_id, actor):
            deposit = to_money(deposit_amount or 0)
            if deposit < 0:
                raise ValidationFailed(
                    "Invalid deposit", "Deposit cannot be negative.", field="deposit_amount"
                )
            if not id_verified:
                raise ValidationFailed(
                    "ID Verification Required",
                    "Guest ID must be verified before check-in.",
                    code="ID_NOT_VERIFIED",
                )

            now = self._now()
            with self.engine.begin() as conn:
                reservation = self._lock(conn, reservation_id)
                assert_transition(reservation["status"], S.CHECKED_IN)

                room_number = assigned_room_number or self._held_room(reservation)
                self._reassign(conn, reservation, room_number)

                self._transition(
                    conn,
                    reservation,
                    S.CHECKED_IN,
                    now,
                    actual_check_in=now,
                    assigned_room_number=room_number,
                    advance_deposit=deposit,
                    id_verified=True,
                )
                payment = self._payment(conn, reservation_id)
                self.ledger.record_deposit(conn, payment["id"], deposit, now)
                set_room_status(conn, reservation["hotel_code"], room_number, RoomStatus.OCCUPIED, now)

                room_label = RoomKey(reservation["hotel_code"], room_number).label
                self._emit(
                    conn,
                    EventType.CHECKIN_WELCOME,
                    reservation,
                    f"Welcome! You are now checked in to {room_label}. Enjoy your stay!",
                    now,
                    room_number=room_number,
                )
                record_audit(
                    conn,
                    actor,
                    "GUEST_CHECKIN",
                    f"Checked in booking {reservation_id} to {room_label}. Deposit: ${deposit:.2f}",
                    now,
                    reservation_id=reservation_id,
                )
                view = self._view(conn, reservation_id)

            slip = {
                "slip_number": f"CIS-{reservation_id}-{now:%Y%m%d%H%M%S}",
                "guest_id": reservation["guest_id"],
                "room_number": room_number,
                "check_in_time": now,
                "expected_check_out": reservation["check_out"],
                "deposit_collected": deposit,
                "verified_by": actor,
            }
            logger.info(
                "guest_checked_in",
                reservation_id=reservation_id,
                room_number=room_number,
                deposit=str(deposit),
            )
            return CheckInResult(view, slip)

    def add_charge(
        self, reservation_id: int, description: str, amount: Decimal, actor: str = "system"
    ) -> list[dict[str, Any]]:
        """
        Append an ad-hoc charge to a checked-in stay.

        Returns:
            list[dict]: The reservation's charges after the append

        Raises:
            ValidationFailed: Empty description or non-positive amount
            InvalidState: The guest is not checked in
        """
        with self._operation("add_charge", reservation_id, actor):
            if not (description or "").strip():
                raise ValidationFailed(
                    "Missing required field", "description is required.", field="description"
                )
            value = to_money(amount)
            if value <= 0:
                raise ValidationFailed(
                    "Invalid charge amount", "Charge amount must be greater than zero.", field="amount"
                )

            now = self._now()
            with self.engine.begin() as conn:
                reservation = self._lock(conn, reservation_id)
                if reservation["status"] != S.CHECKED_IN:
                    raise InvalidState(
                        "Cannot add charge",
                        f"Charges can only be added while the guest is checked in. "
                        f"Current status: '{reservation['status'].value}'",
                        current_status=reservation["status"].value,
                    )

                append_charge(conn, reservation_id, description.strip(), value, now)
                record_audit(
                    conn,
                    actor,
                    "CHARGE_ADDED",
                    f"Added charge '{description.strip()}' ${value:.2f} to booking {reservation_id}",
                    now,
                    reservation_id=reservation_id,
                )
                charges = list_charges(conn, reservation_id)

            logger.info("charge_added", reservation_id=reservation_id, amount=str(value))
            return charges

    def check_out(
        self,
        reservation_id: int,
        payment_method: Optional[PaymentMethod] = None,
        paid_amount: Optional[Decimal] = None,
        actor: str = "system",
    ) -> CheckoutResult:
        """
        Settle the stay and close the reservation.

        payable = room charge + ad-hoc charges + tax - advance deposit.
        CARD_ON_FILE pays exactly the payable amount by capturing the booking's
        authorization; CASH and CARD pay ``paid_amount``. A payable of zero or
        less settles without a payment method.

        Raises:
            ValidationFailed: A payment method is needed but missing, or paid_amount is negative
            InvalidState: The guest is not checked in
            OutstandingBalance: The amount paid does not cover the payable amount
            PaymentDeclined: The gateway refused the settlement
        """
        with self._operation("check_out", reservation_id, actor):
            if paid_amount is not None and to_money(paid_amount) < 0:
                raise ValidationFailed(
                    "Invalid paid amount", "Paid amount cannot be negative.", field="paid_amount"
                )

            now = self._now()
            with self.engine.begin() as conn:
                reservation = self._lock(conn, reservation_id)
                assert_transition(reservation["status"], S.CHECKED_OUT)

                payment = self._payment(conn, reservation_id)
                charges = list_charges(conn, reservation_id)
                bill = compute_final_bill(
                    reservation["total_price"],
                    [(charge["description"], charge["amount"]) for charge in charges],
                    reservation["advance_deposit"],
                    self.policy.tax_rate,
                )

                if payment_method is None and bill.payable > 0:
                    raise ValidationFailed(
                        "Payment method required",
                        f"A payment method is required to settle ${bill.payable:.2f}.",
                        field="payment_method",
                    )

                method = payment_method or payment["payment_method"]
                if payment_method is None:
                    paying_now = Decimal("0.00")
                elif method == PaymentMethod.CARD_ON_FILE:
                    paying_now = max(bill.payable, Decimal("0.00"))
                else:
                    paying_now = to_money(paid_amount or 0)

                shortfall = bill.payable - paying_now
                if shortfall > 0:
                    financials = {**bill.as_dict(), "amount_paying": paying_now}
                    raise OutstandingBalance(shortfall, financials)

                captured = self.ledger.capture(
                    conn, payment["id"], paying_now, method, self.gateway, now
                )
                invoice = self.invoices.issue_final(conn, reservation, bill, now)
                self._transition(conn, reservation, S.CHECKED_OUT, now, actual_check_out=now)

                room_number = self._held_room(reservation)
                set_room_status(
                    conn, reservation["hotel_code"], room_number, RoomStatus.AVAILABLE, now
                )
                self._emit(
                    conn,
                    EventType.CHECKOUT_THANKS,
                    reservation,
                    f"Thank you for staying with us! Your final invoice #{invoice['id']} is ready.",
                    now,
                    invoice_id=invoice["id"],
                )
                self._emit(
                    conn,
                    EventType.HOUSEKEEPING_REQUESTED,
                    reservation,
                    f"Checkout cleaning for {RoomKey(reservation['hotel_code'], room_number).label}",
                    now,
                    room_number=room_number,
                    priority="High",
                )
                record_audit(
                    conn,
                    actor,
                    "GUEST_CHECKOUT",
                    f"Checked out booking {reservation_id}. Total: ${bill.payable:.2f}. "
                    f"Paid: ${paying_now:.2f}. Method: {method.value}",
                    now,
                    reservation_id=reservation_id,
                )
                view = self._view(conn, reservation_id)

            receipt = {
                "receipt_number": f"RCT-{reservation_id}-{now:%Y%m%d%H%M%S}",
                "payment_method": method.value,
                "amount_paid": paying_now,
                "change_due": paying_now - bill.payable if paying_now > bill.payable else Decimal("0.00"),
                "transaction_id": captured["transaction_id"],
                "paid_at": now,
                **bill.as_dict(),
            }
            logger.info(
                "guest_checked_out",
                reservation_id=reservation_id,
                total=str(bill.payable),
                paid=str(paying_now),
                method=method.value,
            )
            return CheckoutResult(view, invoice, receipt)

    # ------------------------------------------------------------------
    # Guest changes
    # ------------------------------------------------------------------

    def reschedule(
        self,
        reservation_id: int,
        check_in: date,
        check_out: date,
        total_price: Optional[Decimal] = None,
        actor: str = "system",
    ) -> dict[str, Any]:
        """
        Move a pending or confirmed booking to new dates.

        Without an explicit price the stay is re-priced at its current nightly
        rate. The authorization is re-priced and the Proforma re-issued.

        Raises:
            ValidationFailed: Bad dates or price
            InvalidState: The booking can no longer be changed
            RoomUnavailable: The room is held for part of the new stay
        """
        with self._operation("reschedule", reservation_id, actor):
            now = self._now()
            self._validate_stay(check_in, check_out, now.date())
            if total_price is not None and to_money(total_price) <= 0:
                raise ValidationFailed(
                    "Invalid total price", "Total price must be greater than zero.", field="total_price"
                )

            with self.engine.begin() as conn:
                reservation = self._lock(conn, reservation_id)
                if reservation["status"] not in (S.PENDING_APPROVAL, S.CONFIRMED):
                    raise InvalidState(
                        "Cannot reschedule this booking",
                        f"Only pending or confirmed bookings can be rescheduled. "
                        f"Current status: '{reservation['status'].value}'",
                        current_status=reservation["status"].value,
                    )

                if total_price is not None:
                    price = to_money(total_price)
                else:
                    old_nights = nights_between(reservation["check_in"], reservation["check_out"])
                    nightly = Decimal(reservation["total_price"]) / old_nights
                    price = to_money(nightly * nights_between(check_in, check_out))

                room = RoomKey(reservation["hotel_code"], self._held_room(reservation))
                self.availability.check_overlap(
                    conn, room, check_in, check_out, exclude_reservation_id=reservation_id
                ).raise_if_conflict(room)
                self.availability.move(conn, reservation_id, room, check_in, check_out)

                update_reservation(
                    conn,
                    reservation_id,
                    now,
                    check_in=check_in,
                    check_out=check_out,
                    total_price=price,
                )
                payment = self._payment(conn, reservation_id)
                self.ledger.reprice(conn, payment["id"], price, now)
                self.invoices.cancel_open_proformas(conn, reservation_id)
                self.invoices.issue_proforma(conn, self._require(conn, reservation_id), now)

                record_audit(
                    conn,
                    actor,
                    "BOOKING_RESCHEDULED",
                    f"Rescheduled booking {reservation_id} from "
                    f"{reservation['check_in'].isoformat()}-{reservation['check_out'].isoformat()} "
                    f"to {check_in.isoformat()}-{check_out.isoformat()}. New total: ${price:.2f}",
                    now,
                    reservation_id=reservation_id,
                )
                view = self._view(conn, reservation_id)

            logger.info(
                "booking_rescheduled",
                reservation_id=reservation_id,
                check_in=check_in.isoformat(),
                check_out=check_out.isoformat(),
            )
            return view

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_reservation(self, reservation_id: int) -> dict[str, Any]:
        """Reservation with its charges, payment and invoices."""
        with self.engine.connect() as conn:
            self._require(conn, reservation_id)
            return self._view(conn, reservation_id)

    def list_reservations(
        self,
        status: Optional[ReservationStatus] = None,
        guest_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            return read_reservations(conn, status=status, guest_id=guest_id, limit=limit)

    def pending_queue(self) -> list[dict[str, Any]]:
        """Bookings awaiting approval, oldest first."""
        with self.engine.connect() as conn:
            return list_pending_approval(conn)

    def front_desk_stats(self, today: Optional[date] = None) -> dict[str, int]:
        """Counts shown on the reception dashboard."""
        day = today or self._now().date()
        with self.engine.connect() as conn:
            return {
                "pending_approvals": count_reservations(conn, S.PENDING_APPROVAL),
                "expected_check_ins": count_reservations(conn, S.CONFIRMED, check_in=day),
                "expected_check_outs": count_reservations(conn, S.CHECKED_IN, check_out=day),
                "checked_in": count_reservations(conn, S.CHECKED_IN),
            }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(
        self, operation: str, reservation_id: Optional[int] = None, actor: str = "system"
    ) -> Iterator[None]:
        started = time.perf_counter()
        context = {"operation": operation, "reservation_id": reservation_id, "actor": actor}
        try:
            with structlog.contextvars.bound_contextvars(
                **{key: value for key, value in context.items() if value is not None}
            ):
                yield
        except BookingError as e:
            operations_total.labels(operation=operation, outcome=e.code).inc()
            logger.info(
                "booking_operation_refused",
                operation=operation,
                reservation_id=reservation_id,
                code=e.code,
                reason=e.reason,
            )
            self._audit_refusal(operation, reservation_id, actor, e)
            raise
        else:
            operations_total.labels(operation=operation, outcome="success").inc()
        finally:
            operation_duration.labels(operation=operation).observe(time.perf_counter() - started)

    def _audit_refusal(
        self, operation: str, reservation_id: Optional[int], actor: str, error: BookingError
    ) -> None:
        # The operation's own transaction has rolled back; record the refusal on its own.
        try:
            with self.engine.begin() as conn:
                record_audit(
                    conn,
                    actor,
                    operation.upper(),
                    f"{error.message}: {error.reason}",
                    self._now(),
                    reservation_id=reservation_id,
                    outcome="Failed",
                )
        except SQLAlchemyError as e:
            logger.exception("audit_write_failed", operation=operation, error=str(e))

    def _require(self, conn: Connection, reservation_id: int) -> dict[str, Any]:
        reservation = get_reservation(conn, reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    def _lock(self, conn: Connection, reservation_id: int) -> dict[str, Any]:
        reservation = get_reservation(conn, reservation_id, for_update=True)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    def _payment(self, conn: Connection, reservation_id: int) -> dict[str, Any]:
        payment = get_payment_for_reservation(conn, reservation_id, for_update=True)
        if payment is None:
            raise InvalidState(
                "Booking has no payment",
                f"No payment authorization exists for booking {reservation_id}.",
            )
        return payment

    def _transition(
        self,
        conn: Connection,
        reservation: dict[str, Any],
        target: ReservationStatus,
        now: datetime,
        **values: Any,
    ) -> None:
        current = reservation["status"]
        assert_transition(current, target)
        if not transition_reservation(conn, reservation["id"], current, target, now, **values):
            raise InvalidState(
                f"Cannot {_ACTION_LABELS[target]} this booking",
                "The booking was changed by another request. Reload it and try again.",
                current_status=current.value,
            )
        logger.debug(
            "reservation_transitioned",
            reservation_id=reservation["id"],
            from_status=current.value,
            to_status=target.value,
        )

    @staticmethod
    def _held_room(reservation: dict[str, Any]) -> str:
        return reservation["assigned_room_number"] or reservation["room_number"]

    def _reassign(self, conn: Connection, reservation: dict[str, Any], room_number: str) -> None:
        """Move the stay's room-night claims to another room of the same hotel."""
        if room_number == self._held_room(reservation):
            return

        target = RoomKey(reservation["hotel_code"], room_number)
        self.availability.check_overlap(
            conn,
            target,
            reservation["check_in"],
            reservation["check_out"],
            exclude_reservation_id=reservation["id"],
        ).raise_if_conflict(target)
        self.availability.move(
            conn, reservation["id"], target, reservation["check_in"], reservation["check_out"]
        )

    def _release(self, conn: Connection, reservation_id: int, now: datetime) -> None:
        """Void a still-authorized payment, free the room nights and withdraw the Proforma."""
        payment = self._payment(conn, reservation_id)
        if payment["status"] == PaymentStatus.AUTHORIZED:
            self.ledger.void(conn, payment["id"], now)
        self.availability.release(conn, reservation_id)
        self.invoices.cancel_open_proformas(conn, reservation_id)

    def _emit(
        self,
        conn: Connection,
        event_type: EventType,
        reservation: dict[str, Any],
        message: str,
        now: datetime,
        **extra: Any,
    ) -> None:
        payload = {
            "reservation_id": reservation["id"],
            "room": str(RoomKey(reservation["hotel_code"], self._held_room(reservation))),
            "check_in": reservation["check_in"].isoformat(),
            "check_out": reservation["check_out"].isoformat(),
            **extra,
        }
        record_event(conn, event_type, reservation["id"], reservation["guest_id"], message, payload, now)

    def _view(self, conn: Connection, reservation_id: int) -> dict[str, Any]:
        reservation = self._require(conn, reservation_id)
        reservation["charges"] = list_charges(conn, reservation_id)
        reservation["payment"] = get_payment_for_reservation(conn, reservation_id)
        reservation["invoices"] = list_invoices(conn, reservation_id)
        return reservation
