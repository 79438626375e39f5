"""Customer balance ledger and payment cascade engine."""

from balance_ledger.core.log import configure_logging

log = configure_logging()

__version__ = "0.1.0"
