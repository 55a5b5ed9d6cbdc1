from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from invoicing.models.money import Money
from invoicing.models.payment import Payment, PaymentMethod

# Exact Decimal inside, plain JSON number on the wire
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class RecordPaymentCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    invoice_id: str
    amount: Decimal = Field(..., description="Major units, e.g. 110.00")
    # Plain string so an unknown method surfaces as INVALID_PAYMENT_METHOD
    payment_method: str
    payment_date: datetime
    reference: Optional[str] = None
    notes: Optional[str] = None


class PaymentDTO(BaseModel):
    id: str
    invoice_id: str
    amount: Amount
    payment_method: PaymentMethod
    payment_date: datetime
    reference: str = ""
    notes: str = ""
    created_at: datetime

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentDTO":
        return cls(
            id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount.to_decimal(),
            payment_method=payment.payment_method,
            payment_date=payment.payment_date,
            reference=payment.reference,
            notes=payment.notes,
            created_at=payment.created_at,
        )

    def to_payment(self, currency: str) -> Payment:
        return Payment(
            id=self.id,
            invoice_id=self.invoice_id,
            amount=Money.from_amount(self.amount, currency),
            payment_method=self.payment_method,
            payment_date=self.payment_date,
            reference=self.reference,
            notes=self.notes,
            created_at=self.created_at,
        )


class PaymentRecordedResponse(BaseModel):
    id: str
    invoice_id: str
    invoice_status: str
    balance: Amount
