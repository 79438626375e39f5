"""Money helpers shared by the calculators.

Amounts travel as floats (the record store keeps them that way) and are
snapped to cents after every arithmetic step so repeated payments never
accumulate drift.
"""
from decimal import Decimal, ROUND_HALF_UP

from balance_ledger.core.config import settings

CENT = Decimal("0.01")

# Balances at or below this are treated as fully paid.
PAID_THRESHOLD = 0.01


def round2(value) -> float:
    """Round to 2 decimals, half-up. ``None`` is 0 and sub-cent results are exactly 0."""
    if value is None:
        return 0.0
    rounded = float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))
    if abs(rounded) < PAID_THRESHOLD:
        return 0.0
    return rounded


def is_settled(amount: float) -> bool:
    return amount <= PAID_THRESHOLD


def format_currency(amount: float) -> str:
    return f"{settings.CURRENCY_SYMBOL}{round2(amount):.2f}"
