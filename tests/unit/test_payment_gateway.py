"""
Unit tests for the simulated payment gateway and settlement results.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from hotel_booking.models.enums import PaymentMethod, PaymentStatus
from hotel_booking.services.payment_ledger import SettlementResult, SimulatedPaymentGateway


@pytest.mark.unit
@pytest.mark.parametrize(
    ("method", "prefix"),
    [
        (PaymentMethod.CARD_ON_FILE, "auth-"),
        (PaymentMethod.CARD, "card-"),
        (PaymentMethod.CASH, "cash-"),
    ],
)
def test_every_method_settles(method: PaymentMethod, prefix: str) -> None:
    result = SimulatedPaymentGateway().settle(method, Decimal("170.00"))

    assert result.captured
    assert result.status == PaymentStatus.CAPTURED
    assert result.transaction_id is not None
    assert result.transaction_id.startswith(prefix)


@pytest.mark.unit
def test_zero_amount_settles() -> None:
    assert SimulatedPaymentGateway().settle(PaymentMethod.CASH, Decimal("0")).captured


@pytest.mark.unit
def test_negative_amount_fails() -> None:
    result = SimulatedPaymentGateway().settle(PaymentMethod.CARD, Decimal("-1"))

    assert not result.captured
    assert result.status == PaymentStatus.FAILED
    assert result.error


@pytest.mark.unit
def test_transaction_ids_are_unique() -> None:
    gateway = SimulatedPaymentGateway()
    ids = {gateway.settle(PaymentMethod.CASH, Decimal("1")).transaction_id for _ in range(20)}

    assert len(ids) == 20


@pytest.mark.unit
def test_failed_result_is_not_captured() -> None:
    assert not SettlementResult(PaymentStatus.FAILED, error="Card declined").captured


@pytest.mark.unit
def test_payment_method_values_are_stable() -> None:
    assert [method.value for method in PaymentMethod] == ["card_on_file", "cash", "card"]
