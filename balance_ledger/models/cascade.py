from typing import Any, Dict, List, Optional

from balance_ledger.models.base import LedgerModel


class CascadeAdjustment(LedgerModel):
    """
    One receipt touched by a single payment.

    ``balance_before``/``balance_after`` are the receipt's own item balance;
    historical debt billed alongside is reported separately.
    """
    receipt_id: str
    balance_before: float
    historical_debt_before: float = 0.0
    payment_applied: float
    items_portion: float
    historical_portion: float = 0.0
    balance_after: float
    new_amount_paid: float
    new_old_balance: float = 0.0
    fully_paid_after: bool

    def to_receipt_update(self) -> Dict[str, Any]:
        """Field deltas to write back to the receipt document."""
        return {
            "amountPaid": self.new_amount_paid,
            "oldBalance": self.new_old_balance,
            "newBalance": self.balance_after,
            "isPaid": self.fully_paid_after,
        }


class CascadeResult(LedgerModel):
    adjustments: List[CascadeAdjustment] = []
    total_applied: float = 0.0
    overpayment_remainder: float = 0.0
    historical_debt_cleared: float = 0.0

    @property
    def affected_receipt_ids(self) -> List[str]:
        return [adjustment.receipt_id for adjustment in self.adjustments]

    @property
    def cascaded_receipt_ids(self) -> List[str]:
        """Receipts reached beyond the first one paid."""
        return self.affected_receipt_ids[1:]

    def adjustment_for(self, receipt_id: str) -> Optional[CascadeAdjustment]:
        for adjustment in self.adjustments:
            if adjustment.receipt_id == receipt_id:
                return adjustment
        return None
