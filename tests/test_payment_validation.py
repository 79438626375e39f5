from decimal import Decimal

import pytest

from balance_ledger.core.exceptions import LedgerError
from balance_ledger.models.receipt import Receipt
from balance_ledger.utils.payment_validation import (
    PaymentValidationError,
    ensure_valid_payment_amount,
    validate_payment_amount,
)


@pytest.mark.parametrize("amount", [0, -5, -0.01, "10", None, True, float("nan"), float("inf")])
def test_ensure_valid_payment_amount_rejects(amount):
    with pytest.raises(PaymentValidationError):
        ensure_valid_payment_amount(amount)


def test_payment_validation_error_is_a_value_error():
    assert issubclass(PaymentValidationError, LedgerError)
    assert issubclass(PaymentValidationError, ValueError)


def test_ensure_valid_payment_amount_accepts_numbers():
    assert ensure_valid_payment_amount(10) == 10.0
    assert ensure_valid_payment_amount(Decimal("12.50")) == 12.5


def test_validate_payment_amount_against_receipt_balance():
    receipt = Receipt(id="r1", total=100, amount_paid=40)

    result = validate_payment_amount(receipt, 50)

    assert result.valid
    assert result.max_amount == 60.0
    assert not result.is_overpayment


def test_overpayment_is_valid_but_flagged():
    receipt = Receipt(id="r1", total=100)

    result = validate_payment_amount(receipt, 150, total_customer_balance=120)

    assert result.valid
    assert result.max_amount == 120
    assert result.is_overpayment


def test_invalid_amount_is_reported_not_raised():
    result = validate_payment_amount(Receipt(id="r1", total=100), 0)

    assert not result.valid
    assert result.error == "Payment amount must be greater than zero"
