import pytest

from balance_ledger.models.receipt import Receipt
from balance_ledger.services.receipt_balance import (
    get_receipt_balance,
    get_unpaid_receipts,
    is_fully_paid,
    receipt_balance,
    sum_receipt_balances,
)


@pytest.mark.parametrize("total, amount_paid, expected", [
    (100, 0, 100.0),
    (100, 40.5, 59.5),
    (100, 100, 0.0),
    (100, 150, 0.0),        # overpaid receipts saturate at 0
    (10.1, 0.2, 9.9),
    (0, 0, 0.0),
])
def test_receipt_balance(total, amount_paid, expected):
    assert receipt_balance(Receipt(id="r", total=total, amount_paid=amount_paid)) == expected


def test_missing_amounts_count_as_zero():
    assert receipt_balance(Receipt.model_validate({"id": "r"})) == 0.0
    assert receipt_balance(Receipt.model_validate({"id": "r", "total": 30})) == 30.0


def test_get_receipt_balance():
    balance = get_receipt_balance(Receipt(id="r9", total=80, amount_paid=30))

    assert balance.receipt_id == "r9"
    assert balance.balance == 50.0
    assert balance.model_dump(by_alias=True) == {"receiptId": "r9", "balance": 50.0}


def test_one_cent_left_counts_as_fully_paid(make_receipt):
    assert is_fully_paid(make_receipt(total=100, amount_paid=99.99))
    assert not is_fully_paid(make_receipt(total=100, amount_paid=99.98))


def test_get_unpaid_receipts_and_sum(make_receipt):
    paid = make_receipt(total=50, amount_paid=50)
    partly = make_receipt(total=50, amount_paid=20.25)
    unpaid = make_receipt(total=19.99)

    assert get_unpaid_receipts([paid, partly, unpaid]) == [partly, unpaid]
    assert sum_receipt_balances([paid, partly, unpaid]) == 49.74
