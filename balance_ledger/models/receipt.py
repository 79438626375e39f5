"""
Receipt model - read-only view of a receipt document held by the record store.

Design principles:
- The ledger never creates, deletes or mutates receipts
- Lenient parsing: missing or garbled amounts are 0, missing timestamps are None
- ``oldBalance`` provenance is derived from ``isManualOldBalance`` at read time
"""

import math
from datetime import datetime, timezone
from typing import Any, Iterable, List, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from balance_ledger.models.base import LedgerModel


class ManualOldBalance(BaseModel):
    """Pre-ledger debt typed in by a person when the receipt was created."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["manual"] = "manual"
    amount: float


class DerivedOldBalance(BaseModel):
    """Running total computed from older receipts; already owned by them."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["derived"] = "derived"


class UnknownOldBalance(BaseModel):
    """Legacy receipt without the flag; meaning has to be inferred."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["unknown"] = "unknown"
    amount: float


OldBalanceProvenance = Union[ManualOldBalance, DerivedOldBalance, UnknownOldBalance]


class Receipt(LedgerModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(default="", validation_alias=AliasChoices("id", "_id"))
    receipt_number: Optional[str] = None
    customer_name: str = ""
    status: Optional[str] = None

    # Money
    total: float = 0.0
    amount_paid: float = 0.0
    old_balance: float = 0.0
    is_manual_old_balance: Optional[bool] = None

    # FIFO ordering
    created_at: Optional[datetime] = None
    date: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("customer_name", mode="before")
    @classmethod
    def _coerce_customer_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("total", "amount_paid", "old_balance", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        if value is None or isinstance(value, bool):
            return 0.0
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return 0.0
        return amount if math.isfinite(amount) else 0.0

    @field_validator("created_at", "date", mode="wrap")
    @classmethod
    def _coerce_timestamp(cls, value: Any, handler) -> Optional[datetime]:
        # Firestore-style {"seconds": ..., "nanoseconds": ...}
        if isinstance(value, Mapping) and "seconds" in value:
            value = value["seconds"] + value.get("nanoseconds", 0) / 1e9
        try:
            parsed = handler(value)
        except ValidationError:
            return None
        if parsed is not None and parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @property
    def old_balance_provenance(self) -> OldBalanceProvenance:
        if self.is_manual_old_balance is True:
            return ManualOldBalance(amount=self.old_balance)
        if self.is_manual_old_balance is False:
            return DerivedOldBalance()
        return UnknownOldBalance(amount=self.old_balance)


def as_receipts(items: Iterable[Union[Receipt, Mapping[str, Any]]]) -> List[Receipt]:
    """Accept receipts or raw store documents."""
    return [item if isinstance(item, Receipt) else Receipt.model_validate(item) for item in items]
