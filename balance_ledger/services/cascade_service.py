"""
Payment cascade - distributes one payment across a customer's receipts.

Algorithm (FIFO, target first):
1. Pay the target receipt: its own balance, plus the customer's historical
   debt when the target is the oldest receipt and that debt is manual
2. Cascade what is left to the other receipts, oldest first, skipping paid ones
3. Report anything still left as overpayment; the caller decides what to do

Historical debt is resolved once per call, against the oldest receipt of the
whole set, and can be billed to that receipt only.
"""

import logging
from typing import Iterable, List, Optional

from balance_ledger.models.balance import HistoricalDebt
from balance_ledger.models.cascade import CascadeAdjustment, CascadeResult
from balance_ledger.models.receipt import Receipt
from balance_ledger.services.historical_debt import resolve_historical_debt
from balance_ledger.services.receipt_balance import receipt_balance
from balance_ledger.utils.money import PAID_THRESHOLD, is_settled, round2
from balance_ledger.utils.payment_validation import ensure_valid_payment_amount
from balance_ledger.utils.receipt_ordering import sort_key, sort_receipts_by_date_asc

logger = logging.getLogger(__name__)


class HistoricalDebtClaim:
    """The single historical-debt resolution of one cascade call."""

    def __init__(self, owner: Receipt, debt: HistoricalDebt):
        self.owner = owner
        self.debt = debt
        self.claimed = False

    def available_for(self, receipt: Receipt) -> float:
        if self.claimed or receipt is not self.owner or not self.debt.is_manual:
            return 0.0
        return self.debt.amount

    def claim(self, receipt: Receipt) -> float:
        amount = self.available_for(receipt)
        if amount:
            self.claimed = True
        return amount


class CascadeService:
    @staticmethod
    def cascade(
        target: Receipt,
        payment_amount: float,
        other_receipts: Iterable[Receipt] = ()
    ) -> CascadeResult:
        """
        Work out how ``payment_amount`` paid against ``target`` is distributed.

        Pure: nothing is written. The caller persists ``new_amount_paid`` and
        ``new_old_balance`` of each adjustment and then refreshes the cached
        balance. Raises PaymentValidationError for a non-positive or
        non-numeric amount.
        """
        amount = ensure_valid_payment_amount(payment_amount)
        others = [
            receipt for receipt in other_receipts
            if receipt is not target and not (target.id and receipt.id == target.id)
        ]

        ordered = sort_receipts_by_date_asc([target, *others])
        oldest = ordered[0]
        claim = HistoricalDebtClaim(oldest, resolve_historical_debt(oldest, ordered[1:]))

        remaining = round2(amount)
        adjustments: List[CascadeAdjustment] = []
        historical_cleared = 0.0

        # 1. Target receipt
        target_adjustment = CascadeService._settle(target, remaining, claim)
        if target_adjustment is not None:
            adjustments.append(target_adjustment)
            remaining = round2(remaining - target_adjustment.payment_applied)
            historical_cleared = round2(historical_cleared + target_adjustment.historical_portion)

        # 2. Other receipts, oldest first
        if remaining > PAID_THRESHOLD:
            for receipt in sort_receipts_by_date_asc(others):
                if remaining <= PAID_THRESHOLD:
                    break
                if is_settled(receipt_balance(receipt)):
                    continue

                adjustment = CascadeService._settle(receipt, remaining, claim)
                if adjustment is None:
                    continue
                adjustments.append(adjustment)
                remaining = round2(remaining - adjustment.payment_applied)
                historical_cleared = round2(historical_cleared + adjustment.historical_portion)
                logger.debug("Cascaded %s to receipt %s", adjustment.payment_applied, receipt.id)

        if target_adjustment is not None:
            adjustments[0] = CascadeService._reduce_derived_old_balance(
                target, target_adjustment, adjustments[1:], others, claim
            )

        overpayment = max(0.0, remaining)
        result = CascadeResult(
            adjustments=adjustments,
            total_applied=round2(round2(amount) - overpayment),
            overpayment_remainder=overpayment,
            historical_debt_cleared=historical_cleared
        )
        logger.debug(
            "Payment %s on receipt %s: applied %s across %d receipt(s), overpayment %s",
            amount, target.id, result.total_applied, len(adjustments), overpayment
        )
        return result

    @staticmethod
    def _settle(receipt: Receipt, remaining: float, claim: HistoricalDebtClaim) -> Optional[CascadeAdjustment]:
        """Apply up to ``remaining`` to one receipt: its items first, then its historical debt."""
        balance = receipt_balance(receipt)
        historical = claim.available_for(receipt)
        owed = round2(balance + historical)
        if remaining <= 0 or is_settled(owed):
            return None

        applied = round2(min(remaining, owed))
        items_portion = round2(min(applied, balance))
        historical_portion = max(0.0, round2(applied - items_portion))

        new_old_balance = round2(receipt.old_balance)
        if historical:
            claim.claim(receipt)
            new_old_balance = max(0.0, round2(new_old_balance - historical_portion))

        balance_after = max(0.0, round2(balance - items_portion))
        return CascadeAdjustment(
            receipt_id=receipt.id,
            balance_before=balance,
            historical_debt_before=historical,
            payment_applied=applied,
            items_portion=items_portion,
            historical_portion=historical_portion,
            balance_after=balance_after,
            new_amount_paid=round2(receipt.amount_paid + items_portion),
            new_old_balance=new_old_balance,
            fully_paid_after=is_settled(balance_after)
        )

    @staticmethod
    def _reduce_derived_old_balance(
        target: Receipt,
        target_adjustment: CascadeAdjustment,
        cascaded: List[CascadeAdjustment],
        others: List[Receipt],
        claim: HistoricalDebtClaim
    ) -> CascadeAdjustment:
        """
        A derived ``oldBalance`` on the target mirrors what its older receipts
        owe, so it shrinks by what this payment cascaded to them.
        """
        if target.old_balance <= 0 or target_adjustment.historical_debt_before:
            return target_adjustment
        debt = claim.debt if target is claim.owner else resolve_historical_debt(target, others)
        if debt.is_manual:
            return target_adjustment

        target_key = sort_key(target)
        older_ids = {receipt.id for receipt in others if sort_key(receipt) < target_key}
        paid_to_older = 0.0
        for adjustment in cascaded:
            if adjustment.receipt_id in older_ids:
                paid_to_older = round2(paid_to_older + adjustment.payment_applied)
        if not paid_to_older:
            return target_adjustment

        new_old_balance = max(0.0, round2(target.old_balance - paid_to_older))
        return target_adjustment.model_copy(update={"new_old_balance": new_old_balance})
