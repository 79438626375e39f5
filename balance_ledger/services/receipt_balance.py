from typing import Iterable, List

from balance_ledger.models.balance import ReceiptBalance
from balance_ledger.models.receipt import Receipt
from balance_ledger.utils.money import PAID_THRESHOLD, round2


def receipt_balance(receipt: Receipt) -> float:
    """Outstanding balance of one receipt: total - amountPaid, never below 0."""
    return max(0.0, round2(receipt.total - receipt.amount_paid))


def get_receipt_balance(receipt: Receipt) -> ReceiptBalance:
    return ReceiptBalance(receipt_id=receipt.id, balance=receipt_balance(receipt))


def is_fully_paid(receipt: Receipt) -> bool:
    return receipt_balance(receipt) <= PAID_THRESHOLD


def get_unpaid_receipts(receipts: Iterable[Receipt]) -> List[Receipt]:
    return [receipt for receipt in receipts if not is_fully_paid(receipt)]


def sum_receipt_balances(receipts: Iterable[Receipt]) -> float:
    total = 0.0
    for receipt in receipts:
        total = round2(total + receipt_balance(receipt))
    return total
