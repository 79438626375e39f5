from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from balance_ledger.models.receipt import Receipt
from balance_ledger.services.balance_cache import BalanceCache

DAY_ONE = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def day(n: int) -> datetime:
    """Timestamp of the n-th day of the test calendar (day 1 is the oldest)."""
    return DAY_ONE + timedelta(days=n - 1)


@pytest.fixture
def make_receipt():
    """Factory for receipts of one customer, dated by day number."""
    counter = {"next": 0}

    def _make(
        total: float = 0.0,
        amount_paid: float = 0.0,
        old_balance: float = 0.0,
        created_day: int = None,
        receipt_id: str = None,
        customer_name: str = "Ravi Kumar",
        **extra
    ) -> Receipt:
        counter["next"] += 1
        return Receipt(
            id=receipt_id or f"R{counter['next']:03d}",
            customer_name=customer_name,
            total=total,
            amount_paid=amount_paid,
            old_balance=old_balance,
            created_at=day(created_day) if created_day is not None else None,
            **extra
        )

    return _make


@pytest.fixture
def balance_cache():
    return BalanceCache()


@pytest.fixture
def mock_store():
    """Record store double; every method is an AsyncMock."""
    store = AsyncMock()
    store.save_payment_transaction.return_value = None
    return store
