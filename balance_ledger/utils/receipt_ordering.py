"""FIFO ordering of receipts.

``createdAt`` wins over ``date``; receipts with neither sort as the epoch,
i.e. oldest. Ties on the timestamp are broken by receipt id so that every
ordering is independent of the order the caller passed receipts in.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from balance_ledger.models.receipt import Receipt

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def effective_timestamp(receipt: Receipt) -> datetime:
    return receipt.created_at or receipt.date or EPOCH


def sort_key(receipt: Receipt) -> Tuple[datetime, str]:
    return effective_timestamp(receipt), receipt.id


def sort_receipts_by_date_asc(receipts: Iterable[Receipt]) -> List[Receipt]:
    """Oldest first."""
    return sorted(receipts, key=sort_key)


def oldest_receipt(receipts: Iterable[Receipt]) -> Optional[Receipt]:
    return min(receipts, key=sort_key, default=None)


def is_older(receipt: Receipt, other: Receipt) -> bool:
    """True when ``receipt`` is strictly older than ``other`` by timestamp alone."""
    return effective_timestamp(receipt) < effective_timestamp(other)
