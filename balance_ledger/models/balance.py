from datetime import datetime
from typing import Optional

from pydantic import Field

from balance_ledger.models.base import LedgerModel, _utcnow
from balance_ledger.models.receipt import OldBalanceProvenance


class ReceiptBalance(LedgerModel):
    receipt_id: str
    balance: float


class HistoricalDebt(LedgerModel):
    """
    Outcome of resolving a receipt's ``oldBalance``.

    ``amount`` is the debt billable against the receipt: the full
    ``oldBalance`` when manual, 0 otherwise.
    """
    receipt_id: Optional[str] = None
    provenance: Optional[OldBalanceProvenance] = None
    is_manual: bool = False
    inferred: bool = False
    amount: float = 0.0


class CustomerBalance(LedgerModel):
    """Derived snapshot; always reproducible from the customer's receipts."""
    customer_name: str
    total_balance: float = 0.0
    unpaid_receipt_count: int = 0
    last_updated: datetime = Field(default_factory=_utcnow)


class ReceiptRunningBalance(LedgerModel):
    """Previous balance shown on a receipt: historical debt plus earlier unpaid receipts."""
    receipt_id: str
    customer_name: str
    previous_balance: float
    receipt_balance: float
    new_balance: float
