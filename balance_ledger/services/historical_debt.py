"""
Historical debt resolution.

A receipt's ``oldBalance`` means one of two things:
- manual: debt from before the ledger existed, billed against that receipt
- derived: a running total of older receipts, already counted through them

Newer receipts say which via ``isManualOldBalance``. Legacy receipts lack the
flag; for those the meaning is inferred from the receipts older than them.
Stored data is never rewritten; the inference runs on every read.
"""

import logging
from typing import Iterable

from balance_ledger.models.balance import HistoricalDebt
from balance_ledger.models.receipt import DerivedOldBalance, ManualOldBalance, Receipt
from balance_ledger.services.receipt_balance import receipt_balance
from balance_ledger.utils.money import PAID_THRESHOLD, round2
from balance_ledger.utils.receipt_ordering import is_older, sort_receipts_by_date_asc

logger = logging.getLogger(__name__)


def explained_by_older_receipts(receipt: Receipt, customer_receipts: Iterable[Receipt]) -> float:
    """Sum of balances of the receipts strictly older than ``receipt``."""
    explained = 0.0
    for other in customer_receipts:
        if other is not receipt and is_older(other, receipt):
            explained = round2(explained + receipt_balance(other))
    return explained


def infer_manual_old_balance(receipt: Receipt, customer_receipts: Iterable[Receipt]) -> bool:
    """
    Guess the missing ``isManualOldBalance`` flag.

    Manual when older receipts cannot account for the ``oldBalance``,
    i.e. it exceeds their outstanding balances by more than a cent.
    """
    explained = explained_by_older_receipts(receipt, customer_receipts)
    unexplained = round2(receipt.old_balance - explained)
    return unexplained > PAID_THRESHOLD


def resolve_historical_debt(receipt: Receipt, customer_receipts: Iterable[Receipt] = ()) -> HistoricalDebt:
    """
    Decide whether ``receipt.old_balance`` is debt to bill against ``receipt``.

    ``customer_receipts`` are the customer's other receipts; only needed for
    legacy receipts without the flag.
    """
    provenance = receipt.old_balance_provenance

    if isinstance(provenance, ManualOldBalance):
        is_manual, inferred = True, False
    elif isinstance(provenance, DerivedOldBalance):
        is_manual, inferred = False, False
    else:
        is_manual, inferred = infer_manual_old_balance(receipt, customer_receipts), True
        logger.debug(
            "Inferred isManualOldBalance=%s for legacy receipt %s (oldBalance=%s)",
            is_manual, receipt.id, receipt.old_balance
        )

    return HistoricalDebt(
        receipt_id=receipt.id,
        provenance=provenance,
        is_manual=is_manual,
        inferred=inferred,
        amount=max(0.0, round2(receipt.old_balance)) if is_manual else 0.0
    )


def resolve_customer_historical_debt(receipts: Iterable[Receipt]) -> HistoricalDebt:
    """Historical debt of a customer: carried only by their oldest receipt."""
    ordered = sort_receipts_by_date_asc(receipts)
    if not ordered:
        return HistoricalDebt()
    return resolve_historical_debt(ordered[0], ordered[1:])
