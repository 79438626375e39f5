"""
BalanceCache - last computed balance per customer.

The only stateful piece of the ledger. Construct one per process or session
and pass it to whatever needs it.

Concurrency:
- ``recompute`` suspends only while fetching receipts
- concurrent recomputes of one customer are last-write-wins
- ``invalidate``/``clear`` bump a generation; a recompute that started
  before the bump still returns its value but does not store it
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterable, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel

from balance_ledger.core.exceptions import LedgerError
from balance_ledger.models.balance import CustomerBalance
from balance_ledger.models.receipt import Receipt, as_receipts
from balance_ledger.services.balance_service import BalanceService
from balance_ledger.utils.customer_names import customer_key, display_customer_name, is_blank_customer_name
from balance_ledger.utils.money import round2

logger = logging.getLogger(__name__)

FetchReceipts = Callable[[str], Awaitable[Sequence[Receipt]]]


class BalanceFetchError(LedgerError):
    """Receipts for a customer could not be fetched from the record store."""
    pass


class BalanceEventType(str, Enum):
    CALCULATING = "calculating"
    UPDATED = "updated"
    FAILED = "failed"
    INVALIDATED = "invalidated"
    CLEARED = "cleared"


class BalanceEvent(BaseModel):
    type: BalanceEventType
    customer_key: Optional[str] = None
    balance: Optional[CustomerBalance] = None
    error: Optional[str] = None


BalanceListener = Callable[[BalanceEvent], None]


@dataclass
class _CacheEntry:
    balance: Optional[CustomerBalance] = None
    in_flight: int = 0


class BalanceCache:
    def __init__(self):
        self._entries: Dict[str, _CacheEntry] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._listeners: List[BalanceListener] = []

    # Reads

    def get(self, customer_name: str) -> float:
        """Cached total balance, 0 when unknown. Never fetches."""
        balance = self.get_customer_balance(customer_name)
        return balance.total_balance if balance else 0.0

    def get_customer_balance(self, customer_name: str) -> Optional[CustomerBalance]:
        entry = self._entry(customer_name)
        return entry.balance if entry else None

    def is_calculating(self, customer_name: str) -> bool:
        entry = self._entry(customer_name)
        return bool(entry and entry.in_flight > 0)

    def get_receipt_count(self, customer_name: str) -> int:
        """Unpaid receipts counted in the cached balance."""
        balance = self.get_customer_balance(customer_name)
        return balance.unpaid_receipt_count if balance else 0

    def get_all_balances(self) -> List[CustomerBalance]:
        """Customers who owe something, highest balance first."""
        balances = [
            entry.balance for entry in self._entries.values()
            if entry.balance is not None and entry.balance.total_balance > 0
        ]
        balances.sort(key=lambda balance: balance.total_balance, reverse=True)
        return balances

    def get_total_outstanding(self) -> float:
        total = 0.0
        for entry in self._entries.values():
            if entry.balance is not None:
                total = round2(total + entry.balance.total_balance)
        return total

    def __contains__(self, customer_name: str) -> bool:
        return self.get_customer_balance(customer_name) is not None

    def __len__(self) -> int:
        return sum(1 for entry in self._entries.values() if entry.balance is not None)

    # Writes

    async def recompute(
        self,
        customer_name: str,
        fetch_receipts: FetchReceipts,
        raise_errors: bool = False
    ) -> float:
        """
        Fetch the customer's receipts and store their fresh balance.

        On fetch failure the previous cached value is kept, subscribers get a
        FAILED event and 0 is returned (or BalanceFetchError raised when
        ``raise_errors`` is set). There is no retry. The in-progress marker
        is cleared however the call ends, cancellation included.
        """
        if is_blank_customer_name(customer_name):
            return 0.0

        key = customer_key(customer_name)
        display_name = display_customer_name(customer_name)
        token = self._token(key)

        entry = self._entries.setdefault(key, _CacheEntry())
        entry.in_flight += 1
        self._publish(BalanceEvent(type=BalanceEventType.CALCULATING, customer_key=key))

        failure = None
        try:
            receipts = as_receipts(await fetch_receipts(display_name))
            summary = BalanceService.summarize_customer(display_name, receipts)
        except Exception as exc:
            failure = exc
            logger.exception("Failed to fetch receipts for %r", display_name)
        finally:
            # Also runs on cancellation
            self._finish(key, token)

        if failure is not None:
            self._publish(BalanceEvent(type=BalanceEventType.FAILED, customer_key=key, error=str(failure)))
            if raise_errors:
                raise BalanceFetchError(f"Could not fetch receipts for {display_name!r}") from failure
            return 0.0

        if self._token(key) != token:
            logger.info("Discarding balance for %r: entry was invalidated during recompute", display_name)
            return summary.total_balance

        self._store(key, summary)
        return summary.total_balance

    def update_from_known_receipts(self, customer_name: str, receipts: Sequence[Receipt]) -> Optional[CustomerBalance]:
        """Store a balance computed from a snapshot the caller already holds."""
        if is_blank_customer_name(customer_name):
            return None
        summary = BalanceService.summarize_customer(customer_name, as_receipts(receipts))
        self._store(customer_key(customer_name), summary)
        return summary

    def update_many(self, receipts_by_customer: Mapping[str, Sequence[Receipt]]) -> Dict[str, CustomerBalance]:
        updated = {}
        for customer_name, receipts in receipts_by_customer.items():
            summary = self.update_from_known_receipts(customer_name, receipts)
            if summary is not None:
                updated[customer_key(customer_name)] = summary
        logger.debug("Updated %d customer balances", len(updated))
        return updated

    async def consume_feed(self, feed: AsyncIterable[Tuple[str, Sequence[Receipt]]]) -> int:
        """Apply ``(customer_name, receipts)`` snapshots from a live subscription until it ends."""
        count = 0
        async for customer_name, receipts in feed:
            if self.update_from_known_receipts(customer_name, receipts) is not None:
                count += 1
        return count

    def invalidate(self, customer_name: str) -> None:
        """Drop the entry; the next read is 0 until a recompute or update."""
        if is_blank_customer_name(customer_name):
            return
        key = customer_key(customer_name)
        self._entries.pop(key, None)
        self._generations[key] = self._generations.get(key, 0) + 1
        logger.debug("Invalidated balance for %r", key)
        self._publish(BalanceEvent(type=BalanceEventType.INVALIDATED, customer_key=key))

    def clear(self) -> None:
        self._entries.clear()
        self._generations.clear()
        self._epoch += 1
        logger.debug("Cleared all balances")
        self._publish(BalanceEvent(type=BalanceEventType.CLEARED))

    # Notifications

    def subscribe(self, listener: BalanceListener) -> Callable[[], None]:
        """Register ``listener`` for every change; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Internals

    def _entry(self, customer_name: str) -> Optional[_CacheEntry]:
        if is_blank_customer_name(customer_name):
            return None
        return self._entries.get(customer_key(customer_name))

    def _token(self, key: str) -> Tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    def _finish(self, key: str, token: Tuple[int, int]) -> None:
        entry = self._entries.get(key)
        if entry is not None and self._token(key) == token:
            entry.in_flight = max(0, entry.in_flight - 1)

    def _store(self, key: str, summary: CustomerBalance) -> None:
        entry = self._entries.setdefault(key, _CacheEntry())
        entry.balance = summary
        self._publish(BalanceEvent(type=BalanceEventType.UPDATED, customer_key=key, balance=summary))

    def _publish(self, event: BalanceEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Balance listener failed on %s event", event.type.value)
