"""
Invoice generation: Proforma at booking time, Final at check-out.

All amounts are Decimal rounded to cents (ROUND_HALF_UP). Issued invoices are
snapshots and are never edited; a superseded Proforma is only marked CANCELLED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

import structlog
from sqlalchemy.engine import Connection

from hotel_booking.db.readers.invoices import get_invoice
from hotel_booking.db.writers.invoices import insert_invoice, set_invoice_status
from hotel_booking.errors import IncompleteCheckout
from hotel_booking.models.enums import InvoiceStatus, InvoiceType, ReservationStatus
from hotel_booking.utils.datetime import nights_between

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Convert to a Decimal rounded half-up to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FinalBill:
    """
    Check-out arithmetic for one reservation.

    total_bill = room_charge + sum(charges)
    payable = total_bill + tax_amount - advance_paid

    Attributes:
        room_charge: Price of the stay fixed at booking (or reschedule)
        charges: Ad-hoc charges as (description, amount) pairs in the order added
        charges_total: Sum of the ad-hoc charges
        subtotal: Room charge plus ad-hoc charges
        tax_rate: Rate applied to the subtotal
        tax_amount: subtotal * tax_rate, rounded to cents
        advance_paid: Deposit collected at check-in
        payable: Amount still owed at check-out (the Final invoice total)
    """

    room_charge: Decimal
    charges: tuple[tuple[str, Decimal], ...]
    charges_total: Decimal
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    advance_paid: Decimal
    payable: Decimal
    line_items: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total_bill(self) -> Decimal:
        return self.subtotal

    def as_dict(self) -> dict[str, Any]:
        """Financial summary used in receipts and balance-due errors."""
        return {
            "room_charge": self.room_charge,
            "service_charges": self.charges_total,
            "total_bill": self.total_bill,
            "tax_rate": str(self.tax_rate),
            "tax_amount": self.tax_amount,
            "advance_paid": self.advance_paid,
            "payable": self.payable,
        }


def compute_final_bill(
    room_charge: Decimal,
    charges: Iterable[tuple[str, Decimal]],
    advance_paid: Decimal,
    tax_rate: Decimal,
) -> FinalBill:
    """
    Compute the Final invoice for a stay.

    The line items (room, each charge, tax, negative advance) always sum to
    ``payable``.

    Example:
        >>> bill = compute_final_bill(Decimal("200"), [("Minibar", Decimal("20"))], Decimal("50"), Decimal("0"))
        >>> bill.payable
        Decimal('170.00')
    """
    room_charge = to_money(room_charge)
    charge_lines = tuple((description, to_money(amount)) for description, amount in charges)
    charges_total = to_money(sum((amount for _, amount in charge_lines), Decimal("0")))
    subtotal = room_charge + charges_total
    tax_amount = to_money(subtotal * Decimal(tax_rate))
    advance_paid = to_money(advance_paid)
    payable = subtotal + tax_amount - advance_paid

    items = [_line("Room charge", room_charge)]
    items.extend(_line(description, amount) for description, amount in charge_lines)
    if tax_amount:
        items.append(_line(f"Tax ({Decimal(tax_rate) * 100:.2f}%)", tax_amount))
    if advance_paid:
        items.append(_line("Advance payment", -advance_paid))

    return FinalBill(
        room_charge=room_charge,
        charges=charge_lines,
        charges_total=charges_total,
        subtotal=subtotal,
        tax_rate=Decimal(tax_rate),
        tax_amount=tax_amount,
        advance_paid=advance_paid,
        payable=payable,
        line_items=items,
    )


def _line(description: str, amount: Decimal, quantity: int = 1) -> dict[str, Any]:
    return {"description": description, "amount": str(amount), "quantity": quantity}


class InvoiceGenerator:
    """Persists invoice snapshots for a reservation."""

    def issue_proforma(
        self, conn: Connection, reservation: dict[str, Any], now: datetime
    ) -> dict[str, Any]:
        """
        Issue the booking-time estimate: one line for the whole stay, no tax.

        Args:
            conn: Active connection (within the booking transaction)
            reservation: Reservation row (id, check_in, check_out, total_price)
            now: Issue timestamp

        Returns:
            dict: The issued invoice row
        """
        nights = nights_between(reservation["check_in"], reservation["check_out"])
        total = to_money(reservation["total_price"])
        label = "night" if nights == 1 else "nights"
        invoice_id = insert_invoice(
            conn,
            reservation["id"],
            InvoiceType.PROFORMA,
            items=[_line(f"Estimated stay, {nights} {label}", total)],
            subtotal=total,
            tax_rate=Decimal("0"),
            tax_amount=Decimal("0"),
            total_amount=total,
            status=InvoiceStatus.ISSUED,
            now=now,
        )
        logger.info("proforma_issued", reservation_id=reservation["id"], invoice_id=invoice_id)
        return self._load(conn, invoice_id)

    def issue_final(
        self,
        conn: Connection,
        reservation: dict[str, Any],
        bill: FinalBill,
        now: datetime,
    ) -> dict[str, Any]:
        """
        Issue the settled check-out invoice.

        Args:
            conn: Active connection (within the check-out transaction)
            reservation: Reservation row as read at the start of check-out
            bill: Computed final bill
            now: Issue and settlement timestamp

        Returns:
            dict: The issued invoice row (status PAID)

        Raises:
            IncompleteCheckout: The reservation has not reached CHECKED_IN
        """
        if reservation["status"] != ReservationStatus.CHECKED_IN:
            raise IncompleteCheckout(
                "Cannot issue final invoice",
                "The final invoice can only be issued for a checked-in stay.",
                status=reservation["status"].value,
            )

        invoice_id = insert_invoice(
            conn,
            reservation["id"],
            InvoiceType.FINAL,
            items=bill.line_items,
            subtotal=bill.subtotal,
            tax_rate=bill.tax_rate,
            tax_amount=bill.tax_amount,
            total_amount=bill.payable,
            status=InvoiceStatus.PAID,
            now=now,
            paid_at=now,
        )
        logger.info(
            "final_invoice_issued",
            reservation_id=reservation["id"],
            invoice_id=invoice_id,
            total=str(bill.payable),
        )
        return self._load(conn, invoice_id)

    def cancel_open_proformas(self, conn: Connection, reservation_id: int) -> int:
        """Mark the reservation's issued Proforma invoices CANCELLED."""
        return set_invoice_status(
            conn,
            reservation_id,
            InvoiceType.PROFORMA,
            InvoiceStatus.ISSUED,
            InvoiceStatus.CANCELLED,
        )

    def _load(self, conn: Connection, invoice_id: int) -> dict[str, Any]:
        invoice = get_invoice(conn, invoice_id)
        if invoice is None:
            raise RuntimeError(f"Invoice {invoice_id} disappeared inside its own transaction")
        return invoice
