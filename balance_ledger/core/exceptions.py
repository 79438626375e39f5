class LedgerError(ValueError):
    """Base error for the balance ledger."""
    pass
