from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field

from hotel_booking.models.enums import (
    InvoiceStatus,
    InvoiceType,
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
)

# =============================================================================
# Request payloads
# =============================================================================


class BookingCreatePayload(BaseModel):
    """
    Schema for a booking request.

    The room is identified by room_number (plus hotel_code when the service
    hosts more than one hotel); room_name is only a display label.
    """

    guest_id: str = Field(..., min_length=1, description="Owning guest reference")
    room_number: str = Field(..., min_length=1, description="Room number within the hotel")
    room_type: str = Field(..., min_length=1, description="Room type (Deluxe, Suite, ...)")
    check_in: date = Field(..., description="First night of the stay")
    check_out: date = Field(..., description="Departure day (not occupied)")
    total_price: Decimal = Field(..., description="Price of the whole stay")
    hotel_code: Optional[str] = Field(None, description="Hotel code (defaults to HOTEL_CODE)")
    room_name: Optional[str] = Field(None, description="Display name, e.g. 'Ocean View 203'")
    idempotency_key: Optional[str] = Field(
        None, max_length=128, description="Retry token (the Idempotency-Key header takes precedence)"
    )


class ReschedulePayload(BaseModel):
    check_in: date = Field(..., description="New first night")
    check_out: date = Field(..., description="New departure day")
    total_price: Optional[Decimal] = Field(
        None, description="New stay price (defaults to the current nightly rate)"
    )


class CancelPayload(BaseModel):
    reason: Optional[str] = Field(None, description="Why the booking is cancelled")


class ApprovePayload(BaseModel):
    assigned_room_number: Optional[str] = Field(None, description="Room allocated on approval")


class RejectPayload(BaseModel):
    reason: str = Field(..., description="Why the booking could not be confirmed")


class CheckInPayload(BaseModel):
    """
    Schema for a reception check-in.
    Note: id_verified must be true; reception confirms the guest's ID at the desk.
    """

    assigned_room_number: Optional[str] = Field(None, description="Room the guest is given")
    deposit_amount: Decimal = Field(Decimal("0"), description="Advance deposit collected")
    id_verified: bool = Field(True, description="Guest ID checked at the desk")


class ChargePayload(BaseModel):
    description: str = Field(..., description="What was consumed (Minibar, Laundry, ...)")
    amount: Decimal = Field(..., description="Charge amount, greater than zero")


class CheckoutPayload(BaseModel):
    payment_method: Optional[PaymentMethod] = Field(
        None, description="card_on_file, cash or card; optional when nothing is payable"
    )
    paid_amount: Optional[Decimal] = Field(
        None, description="Amount collected now (cash/card); card_on_file pays the exact balance"
    )


# =============================================================================
# Response models
# =============================================================================


class ChargeOut(BaseModel):
    position: int
    description: str
    amount: Decimal
    created_at: datetime


class PaymentOut(BaseModel):
    id: int
    amount: Decimal
    advance_amount: Decimal
    final_amount: Decimal
    status: PaymentStatus
    payment_method: PaymentMethod
    idempotency_key: str
    transaction_id: Optional[str] = None


class InvoiceOut(BaseModel):
    id: int
    invoice_type: InvoiceType
    items: list[dict[str, Any]]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: InvoiceStatus
    issue_date: datetime
    paid_at: Optional[datetime] = None


class ReservationOut(BaseModel):
    """Reservation with its charges, payment and invoices."""

    id: int
    guest_id: str
    hotel_code: str
    room_number: str
    room_name: Optional[str] = None
    room_type: str
    check_in: date
    check_out: date
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    total_price: Decimal
    advance_deposit: Decimal
    assigned_room_number: Optional[str] = None
    id_verified: bool
    status: ReservationStatus
    status_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    charges: list[ChargeOut] = Field(default_factory=list)
    payment: Optional[PaymentOut] = None
    invoices: list[InvoiceOut] = Field(default_factory=list)
