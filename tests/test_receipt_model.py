"""
Tests for the Receipt model.

Covers:
- camelCase store documents and snake_case construction
- Lenient parsing of amounts and timestamps
- oldBalance provenance
"""

from datetime import datetime, timezone

from balance_ledger.models.receipt import (
    DerivedOldBalance,
    ManualOldBalance,
    Receipt,
    UnknownOldBalance,
    as_receipts,
)


def test_parses_store_document():
    receipt = Receipt.model_validate({
        "_id": "abc123",
        "receiptNumber": "RCP-0042",
        "customerName": "Ravi Kumar",
        "total": 250,
        "amountPaid": "100.50",
        "oldBalance": 80,
        "isManualOldBalance": True,
        "createdAt": "2024-03-01T10:00:00Z",
        "items": [{"name": "Rice", "price": 50}],
    })

    assert receipt.id == "abc123"
    assert receipt.receipt_number == "RCP-0042"
    assert receipt.customer_name == "Ravi Kumar"
    assert receipt.total == 250.0
    assert receipt.amount_paid == 100.5
    assert receipt.old_balance == 80.0
    assert receipt.is_manual_old_balance is True
    assert receipt.created_at == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def test_missing_and_garbled_amounts_default_to_zero():
    receipt = Receipt.model_validate({
        "id": "r1",
        "total": None,
        "amountPaid": "not a number",
        "oldBalance": float("nan"),
    })

    assert receipt.total == 0.0
    assert receipt.amount_paid == 0.0
    assert receipt.old_balance == 0.0
    assert receipt.is_manual_old_balance is None


def test_firestore_timestamp_and_naive_datetimes():
    receipt = Receipt.model_validate({
        "id": "r1",
        "createdAt": {"seconds": 1709287200, "nanoseconds": 0},
        "date": datetime(2024, 3, 1, 10, 0),
    })

    assert receipt.created_at == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert receipt.date.tzinfo == timezone.utc


def test_unparseable_timestamp_is_treated_as_missing():
    receipt = Receipt.model_validate({"id": "r1", "createdAt": "yesterday-ish"})
    assert receipt.created_at is None


def test_old_balance_provenance():
    assert Receipt(id="m", old_balance=80, is_manual_old_balance=True).old_balance_provenance == ManualOldBalance(amount=80)
    assert Receipt(id="d", old_balance=80, is_manual_old_balance=False).old_balance_provenance == DerivedOldBalance()
    assert Receipt(id="u", old_balance=80).old_balance_provenance == UnknownOldBalance(amount=80)


def test_as_receipts_accepts_models_and_documents():
    existing = Receipt(id="r1", total=10)
    receipts = as_receipts([existing, {"id": "r2", "total": 20}])

    assert receipts[0] is existing
    assert receipts[1].id == "r2"
    assert receipts[1].total == 20.0
