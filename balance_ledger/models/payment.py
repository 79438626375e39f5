from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from balance_ledger.models.base import LedgerModel, _utcnow


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    OTHER = "other"


class PaymentTransaction(LedgerModel):
    """Record of one payment as handed to the store after a cascade."""
    id: Optional[str] = None
    receipt_id: str
    receipt_number: Optional[str] = None
    customer_name: str
    amount: float
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None

    previous_balance: float
    new_balance: float
    historical_debt_cleared: float = 0.0
    overpayment: float = 0.0

    affected_receipts: List[str] = []
    cascaded_receipts: List[str] = []

    timestamp: datetime = Field(default_factory=_utcnow)
