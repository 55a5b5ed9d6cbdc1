"""
Invoice aggregate root.

Design principles:
- Owns its line items and payments; nothing else mutates them
- Frozen snapshot: every transition returns a new Invoice, the original is untouched
- Status only moves forward: Draft -> Sent -> Paid
- Totals are derived on read from integer minor units, never stored

Invariants:
- balance >= 0 (payments above the balance are rejected)
- line items change only while Draft, at most MAX_LINE_ITEMS of them
- a soft-deleted invoice accepts no further command
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from invoicing.core.clock import ensure_utc, utcnow
from invoicing.core.errors import (
    CapacityError,
    CurrencyMismatchError,
    InvalidStateError,
    NotFoundError,
    OverpaymentError,
    ValidationError,
)
from invoicing.models.line_item import LineItem
from invoicing.models.money import Money, Numeric, normalize_currency, sum_money, to_decimal
from invoicing.models.payment import Payment, PaymentMethod

MAX_LINE_ITEMS = 100
MAX_COMPANY_INFO_LENGTH = 500
MAX_NOTES_LENGTH = 1000
MAX_TERMS_LENGTH = 500

INVOICE_NUMBER_PREFIX = "INV-"
INVOICE_NUMBER_PATTERN = re.compile(rf"^{INVOICE_NUMBER_PREFIX}\d+$")


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"


def is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def _check_length(value: Optional[str], limit: int, code: str, label: str) -> None:
    if value and len(value) > limit:
        raise ValidationError(code, f"{label} cannot exceed {limit} characters")


def _check_tax_rate(tax_rate: Numeric) -> Decimal:
    rate = to_decimal(tax_rate)
    if rate < 0 or rate > 1:
        raise ValidationError("INVALID_TAX_RATE", f"Tax rate must be between 0 and 1: {tax_rate}")
    return rate


def _check_dates(issue_date: datetime, due_date: datetime) -> None:
    if due_date.date() < issue_date.date():
        raise ValidationError("DUE_DATE_BEFORE_ISSUE_DATE", "Due date cannot be before issue date")


def check_new_invoice(
    customer_id: str,
    issue_date: datetime,
    due_date: datetime,
    now: datetime,
    company_info: Optional[str] = None,
    notes: Optional[str] = None,
    terms: Optional[str] = None,
    tax_rate: Optional[Numeric] = None,
) -> Decimal:
    """Check everything a new invoice needs except its number; returns the tax rate."""
    if not customer_id or not is_uuid(customer_id):
        raise ValidationError("INVALID_CUSTOMER_ID", f"Invalid customer id: {customer_id}")

    _check_length(company_info, MAX_COMPANY_INFO_LENGTH, "COMPANY_INFO_TOO_LONG", "Company info")
    _check_length(notes, MAX_NOTES_LENGTH, "NOTES_TOO_LONG", "Notes")
    _check_length(terms, MAX_TERMS_LENGTH, "TERMS_TOO_LONG", "Terms")
    rate = _check_tax_rate(tax_rate if tax_rate is not None else 0)

    if ensure_utc(issue_date).date() > ensure_utc(now).date():
        raise ValidationError("ISSUE_DATE_IN_FUTURE", "Issue date cannot be in the future")
    _check_dates(ensure_utc(issue_date), ensure_utc(due_date))
    return rate


class Invoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    invoice_number: str
    customer_id: str
    company_info: str = ""
    currency: str = "USD"
    status: InvoiceStatus = InvoiceStatus.DRAFT

    line_items: Tuple[LineItem, ...] = ()
    payments: Tuple[Payment, ...] = ()
    tax_rate: Decimal = Decimal("0")

    notes: str = ""
    terms: str = ""

    issue_date: datetime
    due_date: datetime
    sent_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    # Optimistic lock, compared by the repository on save
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("currency", mode="before")
    @classmethod
    def _normalize_currency(cls, value):
        return normalize_currency(value)

    @field_validator(
        "issue_date", "due_date", "sent_date", "paid_date", "deleted_at", "created_at", "updated_at"
    )
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_ownership(self) -> Invoice:
        for item in self.line_items:
            if item.invoice_id != self.id:
                raise ValidationError(
                    "LINE_ITEM_OWNERSHIP", f"Line item {item.id} belongs to another invoice"
                )
        for payment in self.payments:
            if payment.invoice_id != self.id:
                raise ValidationError(
                    "PAYMENT_OWNERSHIP", f"Payment {payment.id} belongs to another invoice"
                )
        return self

    @classmethod
    def create(
        cls,
        invoice_number: str,
        customer_id: str,
        issue_date: datetime,
        due_date: datetime,
        now: datetime,
        company_info: Optional[str] = None,
        notes: Optional[str] = None,
        terms: Optional[str] = None,
        tax_rate: Optional[Numeric] = None,
        currency: str = "USD",
        invoice_id: Optional[str] = None,
    ) -> Invoice:
        """Validate and build a new Draft invoice with no line items."""
        if not INVOICE_NUMBER_PATTERN.match(invoice_number or ""):
            raise ValidationError(
                "INVALID_INVOICE_NUMBER_FORMAT", f"Invalid invoice number: {invoice_number}"
            )
        rate = check_new_invoice(
            customer_id, issue_date, due_date, now, company_info, notes, terms, tax_rate
        )
        issue_date = ensure_utc(issue_date)
        due_date = ensure_utc(due_date)

        return cls(
            id=invoice_id or str(uuid4()),
            invoice_number=invoice_number,
            customer_id=customer_id,
            company_info=company_info or "",
            currency=currency,
            tax_rate=rate,
            notes=notes or "",
            terms=terms or "",
            issue_date=issue_date,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )

    @property
    def subtotal(self) -> Money:
        return sum_money((item.amount for item in self.line_items), self.currency)

    @property
    def tax_amount(self) -> Money:
        return self.subtotal.multiply_by_rate(self.tax_rate)

    @property
    def total(self) -> Money:
        return self.subtotal.add(self.tax_amount)

    @property
    def amount_paid(self) -> Money:
        return sum_money((payment.amount for payment in self.payments), self.currency)

    @property
    def balance(self) -> Money:
        return self.total.subtract(self.amount_paid)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def line_item(self, line_item_id: str) -> LineItem:
        for item in self.line_items:
            if item.id == line_item_id:
                return item
        raise NotFoundError("LINE_ITEM_NOT_FOUND", f"Line item {line_item_id} not found")

    def payment(self, payment_id: str) -> Payment:
        for payment in self.payments:
            if payment.id == payment_id:
                return payment
        raise NotFoundError("PAYMENT_NOT_FOUND", f"Payment {payment_id} not found")

    # ===== PRIVATE HELPERS =====

    def _ensure_not_deleted(self) -> None:
        if self.is_deleted:
            raise InvalidStateError("INVOICE_DELETED", f"Invoice {self.invoice_number} is deleted")

    def _ensure_draft(self) -> None:
        self._ensure_not_deleted()
        if self.status != InvoiceStatus.DRAFT:
            raise InvalidStateError(
                "CANNOT_MODIFY_NON_DRAFT_INVOICE",
                f"Line items cannot change on a {self.status.value} invoice",
            )

    def _ensure_currency(self, amount: Money) -> None:
        if amount.currency != self.currency:
            raise CurrencyMismatchError(
                "CURRENCY_MISMATCH",
                f"Invoice is billed in {self.currency}, got {amount.currency}",
            )

    def _evolve(self, now: datetime, **changes) -> Invoice:
        changes["updated_at"] = now
        return self.model_copy(update=changes)

    def add_line_item(
        self, description: str, quantity: Numeric, unit_price: Money, now: datetime
    ) -> Tuple[Invoice, LineItem]:
        self._ensure_draft()
        if len(self.line_items) >= MAX_LINE_ITEMS:
            raise CapacityError(
                "MAX_LINE_ITEMS_EXCEEDED",
                f"An invoice cannot hold more than {MAX_LINE_ITEMS} line items",
            )
        item = LineItem.create(self.id, description, quantity, unit_price, created_at=now)
        self._ensure_currency(unit_price)
        return self._evolve(now, line_items=self.line_items + (item,)), item

    def update_line_item(
        self,
        line_item_id: str,
        description: str,
        quantity: Numeric,
        unit_price: Money,
        now: datetime,
    ) -> Tuple[Invoice, LineItem]:
        self._ensure_draft()
        existing = self.line_item(line_item_id)
        updated = existing.update(description, quantity, unit_price)
        self._ensure_currency(unit_price)
        items = tuple(updated if item.id == line_item_id else item for item in self.line_items)
        return self._evolve(now, line_items=items), updated

    def remove_line_item(self, line_item_id: str, now: datetime) -> Invoice:
        self._ensure_draft()
        self.line_item(line_item_id)
        items = tuple(item for item in self.line_items if item.id != line_item_id)
        return self._evolve(now, line_items=items)

    def update_details(
        self,
        now: datetime,
        notes: Optional[str] = None,
        terms: Optional[str] = None,
        due_date: Optional[datetime] = None,
    ) -> Invoice:
        """Change notes, terms or due date. Totals are unaffected."""
        self._ensure_not_deleted()
        changes = {}
        if notes is not None:
            _check_length(notes, MAX_NOTES_LENGTH, "NOTES_TOO_LONG", "Notes")
            changes["notes"] = notes
        if terms is not None:
            _check_length(terms, MAX_TERMS_LENGTH, "TERMS_TOO_LONG", "Terms")
            changes["terms"] = terms
        if due_date is not None:
            due_date = ensure_utc(due_date)
            _check_dates(self.issue_date, due_date)
            changes["due_date"] = due_date
        return self._evolve(now, **changes)

    def mark_as_sent(self, now: datetime) -> Invoice:
        """Draft -> Sent. Requires at least one line item."""
        self._ensure_not_deleted()
        if self.status != InvoiceStatus.DRAFT:
            raise InvalidStateError(
                "INVALID_STATE_TRANSITION",
                f"Cannot send an invoice with status {self.status.value}",
            )
        if not self.line_items:
            raise InvalidStateError(
                "INVOICE_MUST_HAVE_LINE_ITEMS", "Cannot send an invoice without line items"
            )
        return self._evolve(now, status=InvoiceStatus.SENT, sent_date=now)

    def record_payment(
        self,
        amount: Money,
        payment_method: PaymentMethod | str,
        payment_date: datetime,
        now: datetime,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Tuple[Invoice, Payment]:
        """
        Apply a payment against the balance.

        Rejected on Draft or deleted invoices, on non-positive amounts and on
        any amount above the current balance. When the balance reaches zero a
        Sent invoice becomes Paid; an already Paid invoice never re-fires.
        """
        self._ensure_not_deleted()
        if self.status == InvoiceStatus.DRAFT:
            raise InvalidStateError(
                "INVALID_STATE_TRANSITION", "Cannot record payment for a draft invoice"
            )

        payment = Payment.create(
            invoice_id=self.id,
            amount=amount,
            payment_method=payment_method,
            payment_date=payment_date,
            now=now,
            reference=reference,
            notes=notes,
        )

        balance = self.balance
        if payment.amount > balance:
            raise OverpaymentError(
                "PAYMENT_EXCEEDS_BALANCE",
                f"Payment {payment.amount} exceeds balance {balance}",
            )

        paid = self._evolve(now, payments=self.payments + (payment,))
        if paid.balance.is_zero() and paid.status == InvoiceStatus.SENT:
            paid = paid.model_copy(update={"status": InvoiceStatus.PAID, "paid_date": now})
        return paid, payment

    def soft_delete(self, now: datetime) -> Invoice:
        """Mark a Draft invoice deleted. No state changes are accepted afterwards."""
        if self.is_deleted:
            raise InvalidStateError("ALREADY_DELETED", f"Invoice {self.invoice_number} is already deleted")
        if self.status != InvoiceStatus.DRAFT:
            raise InvalidStateError(
                "CANNOT_DELETE_NON_DRAFT_INVOICE",
                f"Cannot delete an invoice with status {self.status.value}",
            )
        return self._evolve(now, deleted_at=now)
