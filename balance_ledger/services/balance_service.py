import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from balance_ledger.models.balance import CustomerBalance, ReceiptRunningBalance
from balance_ledger.models.receipt import Receipt
from balance_ledger.services.historical_debt import resolve_customer_historical_debt
from balance_ledger.services.receipt_balance import get_unpaid_receipts, receipt_balance, sum_receipt_balances
from balance_ledger.utils.customer_names import customer_key, display_customer_name
from balance_ledger.utils.money import round2
from balance_ledger.utils.receipt_ordering import sort_key, sort_receipts_by_date_asc

logger = logging.getLogger(__name__)


class BalanceService:
    @staticmethod
    def total_balance(receipts: Iterable[Receipt]) -> float:
        """
        Total a customer owes across all of their receipts.

        total = historical debt of the oldest receipt (counted once)
              + sum of every receipt's own balance

        ``oldBalance`` on the newer receipts is never added: it is normally
        derived from the older receipts and would count their debt twice.
        """
        ordered = sort_receipts_by_date_asc(receipts)
        if not ordered:
            return 0.0

        historical = resolve_customer_historical_debt(ordered)
        outstanding = sum_receipt_balances(ordered)
        return round2(historical.amount + outstanding)

    @staticmethod
    def unpaid_count(receipts: Iterable[Receipt]) -> int:
        return len(get_unpaid_receipts(receipts))

    @staticmethod
    def summarize_customer(
        customer_name: str,
        receipts: Iterable[Receipt],
        now: Optional[datetime] = None
    ) -> CustomerBalance:
        receipts = list(receipts)
        summary = CustomerBalance(
            customer_name=display_customer_name(customer_name),
            total_balance=BalanceService.total_balance(receipts),
            unpaid_receipt_count=BalanceService.unpaid_count(receipts),
            last_updated=now or datetime.now(timezone.utc)
        )
        logger.debug(
            "Balance for %r: %s (%d unpaid receipts)",
            summary.customer_name, summary.total_balance, summary.unpaid_receipt_count
        )
        return summary

    @staticmethod
    def group_receipts_by_customer(receipts: Iterable[Receipt]) -> Dict[str, List[Receipt]]:
        """Group by case-insensitive customer key; blank names go to the walk-in customer."""
        groups: Dict[str, List[Receipt]] = defaultdict(list)
        for receipt in receipts:
            groups[customer_key(receipt.customer_name)].append(receipt)
        return dict(groups)

    @staticmethod
    def calculate_customer_balances(receipts: Iterable[Receipt]) -> List[CustomerBalance]:
        """Balance per customer, highest first."""
        now = datetime.now(timezone.utc)
        balances = []
        for group in BalanceService.group_receipts_by_customer(receipts).values():
            ordered = sort_receipts_by_date_asc(group)
            balances.append(BalanceService.summarize_customer(ordered[-1].customer_name, ordered, now=now))

        balances.sort(key=lambda balance: (-balance.total_balance, balance.customer_name.casefold()))
        return balances

    @staticmethod
    def calculate_running_balances(receipts: Iterable[Receipt]) -> List[ReceiptRunningBalance]:
        """
        Previous balance to show on each receipt, oldest first.

        The oldest receipt of a customer starts from its historical debt;
        every later one adds the unpaid amounts of the receipts before it.
        Payments on older receipts are reflected immediately.
        """
        rows = []
        for group in BalanceService.group_receipts_by_customer(receipts).values():
            ordered = sort_receipts_by_date_asc(group)
            historical = resolve_customer_historical_debt(ordered).amount
            unpaid = 0.0

            for receipt in ordered:
                previous = round2(historical + unpaid)
                own = receipt_balance(receipt)
                unpaid = round2(unpaid + own)
                rows.append((sort_key(receipt), ReceiptRunningBalance(
                    receipt_id=receipt.id,
                    customer_name=display_customer_name(receipt.customer_name),
                    previous_balance=previous,
                    receipt_balance=own,
                    new_balance=round2(previous + own)
                )))

        rows.sort(key=lambda row: row[0])
        return [row for _, row in rows]

    @staticmethod
    def calculate_new_customer_balance(current_total_balance: float, payment_amount: float) -> float:
        return max(0.0, round2(current_total_balance - payment_amount))
