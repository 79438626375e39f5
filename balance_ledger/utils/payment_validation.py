"""Payment amount validation."""
import math
from decimal import Decimal
from numbers import Real
from typing import Optional

from balance_ledger.core.exceptions import LedgerError
from balance_ledger.models.receipt import Receipt
from balance_ledger.schemas.payment import PaymentValidation
from balance_ledger.services.receipt_balance import receipt_balance


class PaymentValidationError(LedgerError):
    """Raised when a payment request is invalid; nothing has been applied."""
    pass


def ensure_valid_payment_amount(amount) -> float:
    """
    Return ``amount`` as a float or raise.

    Rules:
    - must be a real number or Decimal (bools and numeric strings are rejected)
    - must be finite
    - must be greater than zero
    """
    if isinstance(amount, bool) or not isinstance(amount, (Real, Decimal)):
        raise PaymentValidationError(f"Invalid payment amount: {amount!r}")
    amount = float(amount)
    if not math.isfinite(amount):
        raise PaymentValidationError(f"Invalid payment amount: {amount!r}")
    if amount <= 0:
        raise PaymentValidationError("Payment amount must be greater than zero")
    return amount


def validate_payment_amount(
    receipt: Receipt,
    amount,
    total_customer_balance: Optional[float] = None
) -> PaymentValidation:
    """Check a payment before recording it. Paying more than is owed is allowed but flagged."""
    try:
        amount = ensure_valid_payment_amount(amount)
    except PaymentValidationError as exc:
        return PaymentValidation(valid=False, error=str(exc))

    max_amount = total_customer_balance if total_customer_balance is not None else receipt_balance(receipt)
    return PaymentValidation(
        valid=True,
        max_amount=max_amount,
        is_overpayment=max_amount > 0 and amount > max_amount
    )
