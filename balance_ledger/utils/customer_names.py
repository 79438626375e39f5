from typing import Optional

from balance_ledger.core.config import settings


def display_customer_name(name: Optional[str]) -> str:
    """Trimmed display name; blank names become the walk-in customer."""
    stripped = (name or "").strip()
    return stripped or settings.WALK_IN_CUSTOMER_NAME


def customer_key(name: Optional[str]) -> str:
    """Case-insensitive grouping key for a customer name."""
    return " ".join(display_customer_name(name).split()).casefold()


def is_blank_customer_name(name: Optional[str]) -> bool:
    return not (name or "").strip()
