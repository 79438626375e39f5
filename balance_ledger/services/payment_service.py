"""
PaymentService - records a payment against a receipt.

Flow:
1. Validate the request
2. Load the target receipt and the customer's other receipts
3. Run the cascade
4. Write the adjustments to the store
5. Invalidate the customer's cached balance
6. Save the payment transaction

Failures are returned as ``PaymentResult(success=False)``; nothing is
written when validation, loading or the cascade fails. Once the adjustments
are written the cache is invalidated even if saving the transaction fails.
"""

import logging
from typing import List, Tuple

from balance_ledger.models.cascade import CascadeResult
from balance_ledger.models.payment import PaymentTransaction
from balance_ledger.models.receipt import Receipt, as_receipts
from balance_ledger.repositories.receipt_store import ReceiptStore
from balance_ledger.schemas.payment import PaymentResult, RecordPaymentRequest
from balance_ledger.services.balance_cache import BalanceCache
from balance_ledger.services.balance_service import BalanceService
from balance_ledger.services.cascade_service import CascadeService
from balance_ledger.utils.customer_names import customer_key, display_customer_name, is_blank_customer_name
from balance_ledger.utils.money import format_currency
from balance_ledger.utils.payment_validation import PaymentValidationError, ensure_valid_payment_amount

logger = logging.getLogger(__name__)


class ReceiptNotFoundError(LookupError):
    pass


class PaymentService:
    def __init__(self, store: ReceiptStore, cache: BalanceCache):
        self.store = store
        self.cache = cache

    async def preview_payment(self, receipt_id: str, amount: float) -> CascadeResult:
        """Cascade a payment without writing anything."""
        target, others = await self._load(receipt_id)
        return CascadeService.cascade(target, amount, others)

    async def record_payment(self, request: RecordPaymentRequest) -> PaymentResult:
        if not request.receipt_id or not request.receipt_id.strip():
            return PaymentResult(success=False, error="Receipt ID is required")

        try:
            amount = ensure_valid_payment_amount(request.amount)
        except PaymentValidationError as exc:
            return PaymentResult(success=False, error=str(exc))

        try:
            target, others = await self._load(request.receipt_id)
        except ReceiptNotFoundError:
            return PaymentResult(success=False, error="Receipt not found")
        except Exception as exc:
            logger.exception("Failed to load receipts for payment on %s", request.receipt_id)
            return PaymentResult(success=False, error=str(exc) or exc.__class__.__name__)

        result = CascadeService.cascade(target, amount, others)
        previous_balance = BalanceService.total_balance([target, *others])
        transaction = PaymentTransaction(
            receipt_id=target.id,
            receipt_number=target.receipt_number,
            customer_name=display_customer_name(target.customer_name),
            amount=amount,
            payment_method=request.payment_method,
            notes=request.notes.strip() if request.notes and request.notes.strip() else None,
            previous_balance=previous_balance,
            new_balance=BalanceService.calculate_new_customer_balance(previous_balance, result.total_applied),
            historical_debt_cleared=result.historical_debt_cleared,
            overpayment=result.overpayment_remainder,
            affected_receipts=result.affected_receipt_ids,
            cascaded_receipts=result.cascaded_receipt_ids
        )

        try:
            await self.store.apply_adjustments(result.adjustments)
        except Exception as exc:
            logger.exception("Failed to write payment on receipt %s", target.id)
            return PaymentResult(success=False, error=str(exc) or exc.__class__.__name__, cascade=result)

        # Receipts are written; the cached total is stale even if the transaction save fails
        if not is_blank_customer_name(target.customer_name):
            self.cache.invalidate(target.customer_name)

        try:
            saved = await self.store.save_payment_transaction(transaction)
        except Exception as exc:
            logger.exception("Receipts updated but payment transaction for receipt %s was not saved", target.id)
            return PaymentResult(success=False, error=str(exc) or exc.__class__.__name__, cascade=result)

        logger.info(
            "Recorded payment of %s on receipt %s: %d receipt(s) updated, balance %s -> %s",
            format_currency(amount), target.id, len(result.adjustments),
            format_currency(transaction.previous_balance), format_currency(transaction.new_balance)
        )
        if result.overpayment_remainder:
            logger.warning(
                "Payment on receipt %s exceeds what is owed by %s",
                target.id, format_currency(result.overpayment_remainder)
            )

        return PaymentResult(
            success=True,
            payment_transaction=saved or transaction,
            updated_receipt=self._updated_target(target, result),
            cascade=result
        )

    async def _load(self, receipt_id: str) -> Tuple[Receipt, List[Receipt]]:
        document = await self.store.get_receipt(receipt_id)
        if document is None:
            raise ReceiptNotFoundError(receipt_id)
        target = as_receipts([document])[0]

        if is_blank_customer_name(target.customer_name):
            return target, []

        key = customer_key(target.customer_name)
        customer_receipts = as_receipts(await self.store.find_by_customer(display_customer_name(target.customer_name)))
        others = [
            receipt for receipt in customer_receipts
            if receipt.id != target.id and customer_key(receipt.customer_name) == key
        ]
        return target, others

    @staticmethod
    def _updated_target(target: Receipt, result: CascadeResult) -> Receipt:
        adjustment = result.adjustment_for(target.id)
        if adjustment is None:
            return target
        return target.model_copy(update={
            "amount_paid": adjustment.new_amount_paid,
            "old_balance": adjustment.new_old_balance
        })
