"""
Payment - money applied against an issued invoice.

Created once and never mutated; invoices keep them in an append-only list.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from invoicing.core.clock import ensure_utc, utcnow
from invoicing.core.errors import ValidationError
from invoicing.models.money import Money

MAX_REFERENCE_LENGTH = 255
MAX_NOTES_LENGTH = 1000


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CHECK = "Check"
    CREDIT_CARD = "CreditCard"
    BANK_TRANSFER = "BankTransfer"


class Payment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    invoice_id: str
    amount: Money
    payment_method: PaymentMethod
    payment_date: datetime
    reference: str = ""
    notes: str = ""
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("payment_date", "created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @classmethod
    def create(
        cls,
        invoice_id: str,
        amount: Money,
        payment_method: PaymentMethod | str,
        payment_date: datetime,
        now: datetime,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        """
        Validate and build a payment.

        Rules:
        - amount must be positive
        - method must be one of PaymentMethod
        - payment_date cannot fall after the end of today
        - reference <= 255 chars, notes <= 1000 chars
        """
        if not amount.is_positive():
            raise ValidationError(
                "INVALID_PAYMENT_AMOUNT", f"Payment amount must be positive: {amount}"
            )

        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError(
                "INVALID_PAYMENT_METHOD", f"Unknown payment method: {payment_method}"
            )

        payment_date = ensure_utc(payment_date)
        if payment_date.date() > ensure_utc(now).date():
            raise ValidationError("PAYMENT_DATE_IN_FUTURE", "Payment date cannot be in the future")

        if reference and len(reference) > MAX_REFERENCE_LENGTH:
            raise ValidationError(
                "REFERENCE_TOO_LONG",
                f"Reference cannot exceed {MAX_REFERENCE_LENGTH} characters",
            )
        if notes and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(
                "NOTES_TOO_LONG", f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"
            )

        return cls(
            invoice_id=invoice_id,
            amount=amount,
            payment_method=method,
            payment_date=payment_date,
            reference=reference or "",
            notes=notes or "",
            created_at=now,
        )
