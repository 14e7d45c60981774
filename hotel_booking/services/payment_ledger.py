"""
Payment ledger: the single authorization each reservation holds.

States: NOT_STARTED -> AUTHORIZED -> CAPTURED | VOIDED | FAILED. No funds move
at authorization. Settlement at check-out goes through a PaymentGateway, whose
``settle`` contract is the only place a payment method's behavior lives.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Protocol

import structlog
from sqlalchemy.engine import Connection

from hotel_booking.db.readers.payments import get_payment, get_payment_by_idempotency_key
from hotel_booking.db.writers.payments import insert_payment, update_payment
from hotel_booking.errors import InvalidState, PaymentDeclined
from hotel_booking.metrics import payment_transitions
from hotel_booking.models.enums import PaymentMethod, PaymentStatus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SettlementResult:
    """
    Gateway answer to a settle request.

    Attributes:
        status: CAPTURED on success, FAILED otherwise
        transaction_id: Gateway reference for a captured settlement
        error: Decline reason for a failed settlement
    """

    status: PaymentStatus
    transaction_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def captured(self) -> bool:
        return self.status == PaymentStatus.CAPTURED


class PaymentGateway(Protocol):
    """Settles an amount with a payment method."""

    def settle(self, method: PaymentMethod, amount: Decimal) -> SettlementResult: ...


class SimulatedPaymentGateway:
    """
    Gateway that approves every settlement without contacting a processor.

    Card-on-file settlements reference the stored authorization; cash and
    card-present settlements are recorded at the front desk.
    """

    _PREFIXES = {
        PaymentMethod.CARD_ON_FILE: "auth",
        PaymentMethod.CARD: "card",
        PaymentMethod.CASH: "cash",
    }

    def settle(self, method: PaymentMethod, amount: Decimal) -> SettlementResult:
        if amount < 0:
            return SettlementResult(PaymentStatus.FAILED, error="Negative settlement amount")
        reference = f"{self._PREFIXES[method]}-{uuid.uuid4().hex[:12]}"
        return SettlementResult(PaymentStatus.CAPTURED, transaction_id=reference)


@dataclass(frozen=True)
class Authorization:
    """A payment authorization, flagged when it was returned for a reused idempotency key."""

    payment: dict[str, Any]
    duplicate: bool = False


class PaymentLedger:
    """Status rules for the reservation's payment record."""

    def authorize(
        self,
        conn: Connection,
        reservation_id: int,
        amount: Decimal,
        idempotency_key: str,
        now: datetime,
    ) -> Authorization:
        """
        Authorize the estimated stay amount for a new reservation.

        Args:
            conn: Active connection (within the booking transaction)
            reservation_id: Reservation the authorization belongs to
            amount: Amount to authorize
            idempotency_key: Request token; a known key returns the earlier payment
            now: Authorization timestamp

        Returns:
            Authorization: The created payment, or the existing one flagged duplicate
        """
        existing = get_payment_by_idempotency_key(conn, idempotency_key)
        if existing:
            logger.info(
                "payment_authorization_replayed",
                idempotency_key=idempotency_key,
                payment_id=existing["id"],
            )
            return Authorization(existing, duplicate=True)

        payment_id = insert_payment(
            conn, reservation_id, amount, idempotency_key, PaymentStatus.AUTHORIZED, now
        )
        payment_transitions.labels(status=PaymentStatus.AUTHORIZED.value).inc()
        logger.info(
            "payment_authorized",
            payment_id=payment_id,
            reservation_id=reservation_id,
            amount=str(amount),
        )
        return Authorization(self._load(conn, payment_id))

    def void(self, conn: Connection, payment_id: int, now: datetime) -> dict[str, Any]:
        """
        Release an authorization without collecting funds.

        Raises:
            InvalidState: The payment is not AUTHORIZED
        """
        self._require_authorized(conn, payment_id, "void")
        if not update_payment(
            conn, payment_id, now, expected_status=PaymentStatus.AUTHORIZED, status=PaymentStatus.VOIDED
        ):
            raise InvalidState("Cannot void payment", "The payment changed while it was being voided.")

        payment_transitions.labels(status=PaymentStatus.VOIDED.value).inc()
        logger.info("payment_voided", payment_id=payment_id)
        return self._load(conn, payment_id)

    def capture(
        self,
        conn: Connection,
        payment_id: int,
        final_amount: Decimal,
        method: PaymentMethod,
        gateway: PaymentGateway,
        now: datetime,
    ) -> dict[str, Any]:
        """
        Settle the payment for its final amount.

        Args:
            conn: Active connection (within the check-out transaction)
            payment_id: Payment to capture
            final_amount: Amount collected
            method: Payment method used for settlement
            gateway: Settles the amount with the method
            now: Capture timestamp

        Returns:
            dict: The captured payment row

        Raises:
            InvalidState: The payment is not AUTHORIZED
            PaymentDeclined: The gateway refused the settlement
        """
        self._require_authorized(conn, payment_id, "capture")

        result = gateway.settle(method, final_amount)
        if not result.captured:
            payment_transitions.labels(status=PaymentStatus.FAILED.value).inc()
            logger.warning(
                "payment_settlement_declined",
                payment_id=payment_id,
                method=method.value,
                error=result.error,
            )
            raise PaymentDeclined(
                "Payment was declined",
                result.error or "The payment could not be settled.",
                payment_method=method.value,
            )

        if not update_payment(
            conn,
            payment_id,
            now,
            expected_status=PaymentStatus.AUTHORIZED,
            status=PaymentStatus.CAPTURED,
            final_amount=final_amount,
            payment_method=method,
            transaction_id=result.transaction_id,
        ):
            raise InvalidState(
                "Cannot capture payment", "The payment changed while it was being captured."
            )

        payment_transitions.labels(status=PaymentStatus.CAPTURED.value).inc()
        logger.info(
            "payment_captured",
            payment_id=payment_id,
            amount=str(final_amount),
            method=method.value,
        )
        return self._load(conn, payment_id)

    def record_deposit(
        self, conn: Connection, payment_id: int, deposit: Decimal, now: datetime
    ) -> None:
        """Record the advance collected at check-in against the authorization."""
        self._require_authorized(conn, payment_id, "record a deposit on")
        update_payment(conn, payment_id, now, advance_amount=deposit)

    def reprice(self, conn: Connection, payment_id: int, amount: Decimal, now: datetime) -> None:
        """Replace the authorized amount after the stay dates change."""
        self._require_authorized(conn, payment_id, "re-price")
        update_payment(conn, payment_id, now, amount=amount)
        logger.info("payment_repriced", payment_id=payment_id, amount=str(amount))

    def _require_authorized(self, conn: Connection, payment_id: int, action: str) -> dict[str, Any]:
        payment = get_payment(conn, payment_id, for_update=True)
        if payment is None or payment["status"] != PaymentStatus.AUTHORIZED:
            current = payment["status"].value if payment else "missing"
            raise InvalidState(
                f"Cannot {action} payment",
                f"Payment must be AUTHORIZED, but it is {current}.",
                payment_status=current,
            )
        return payment

    def _load(self, conn: Connection, payment_id: int) -> dict[str, Any]:
        payment = get_payment(conn, payment_id)
        if payment is None:
            raise RuntimeError(f"Payment {payment_id} disappeared inside its own transaction")
        return payment
