from typing import Optional

from pydantic import BaseModel

from balance_ledger.models.cascade import CascadeResult
from balance_ledger.models.payment import PaymentMethod, PaymentTransaction
from balance_ledger.models.receipt import Receipt


class RecordPaymentRequest(BaseModel):
    """Payment against one receipt; the surplus cascades to the customer's other receipts."""
    receipt_id: str
    amount: float
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None


class PaymentResult(BaseModel):
    success: bool
    error: Optional[str] = None
    payment_transaction: Optional[PaymentTransaction] = None
    updated_receipt: Optional[Receipt] = None
    cascade: Optional[CascadeResult] = None


class PaymentValidation(BaseModel):
    """Overpayment is valid; it is flagged so the caller can warn."""
    valid: bool
    error: Optional[str] = None
    max_amount: Optional[float] = None
    is_overpayment: bool = False
