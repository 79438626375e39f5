"""
ReceiptStore - contract of the external record store.

The ledger ships no implementation: the application plugs in whatever keeps
its receipt documents. Receipts may be returned as ``Receipt`` models or as
raw documents; the services coerce them.
"""

from typing import Any, List, Mapping, Optional, Protocol, Sequence, Union

from balance_ledger.models.cascade import CascadeAdjustment
from balance_ledger.models.payment import PaymentTransaction
from balance_ledger.models.receipt import Receipt

ReceiptDocument = Union[Receipt, Mapping[str, Any]]


class ReceiptStore(Protocol):
    async def get_receipt(self, receipt_id: str) -> Optional[ReceiptDocument]:
        """Receipt by id, None when it does not exist."""
        ...

    async def find_by_customer(self, customer_name: str) -> List[ReceiptDocument]:
        """Every receipt of a customer, paid or not, in any order."""
        ...

    async def apply_adjustments(self, adjustments: Sequence[CascadeAdjustment]) -> None:
        """Write ``adjustment.to_receipt_update()`` to each receipt, atomically if the store can."""
        ...

    async def save_payment_transaction(self, transaction: PaymentTransaction) -> Optional[PaymentTransaction]:
        """Persist the transaction; may return it with its store id filled in."""
        ...
