from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from invoicing.models.invoice import Invoice, InvoiceStatus
from invoicing.models.line_item import LineItem
from invoicing.models.money import Money
from invoicing.schemas.payment import Amount, PaymentDTO


class BaseCommand(BaseModel):
    """Commands are immutable intentions; the handler decides whether they apply."""

    model_config = ConfigDict(frozen=True)


class CreateInvoiceCommand(BaseCommand):
    customer_id: str
    company_info: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    tax_rate: Optional[Decimal] = Field(None, description="Flat rate between 0 and 1")
    issue_date: datetime
    due_date: datetime


class UpdateInvoiceCommand(BaseCommand):
    """Metadata only. All fields optional; omitted fields are left untouched."""
    notes: Optional[str] = None
    terms: Optional[str] = None
    due_date: Optional[datetime] = None


class AddLineItemCommand(BaseCommand):
    description: str
    quantity: Decimal
    unit_price: Decimal = Field(..., description="Major units, e.g. 50.00")


class UpdateLineItemCommand(BaseCommand):
    description: str
    quantity: Decimal
    unit_price: Decimal


class RemoveLineItemCommand(BaseCommand):
    pass


class MarkInvoiceAsSentCommand(BaseCommand):
    pass


class DeleteInvoiceCommand(BaseCommand):
    pass


class LineItemDTO(BaseModel):
    id: str
    invoice_id: str
    description: str
    quantity: Amount
    unit_price: Amount
    amount: Amount
    created_at: datetime

    @classmethod
    def from_line_item(cls, item: LineItem) -> "LineItemDTO":
        return cls(
            id=item.id,
            invoice_id=item.invoice_id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price.to_decimal(),
            amount=item.amount.to_decimal(),
            created_at=item.created_at,
        )

    def to_line_item(self, currency: str) -> LineItem:
        # Stored amount is carried over as-is, not recomputed
        return LineItem(
            id=self.id,
            invoice_id=self.invoice_id,
            description=self.description,
            quantity=self.quantity,
            unit_price=Money.from_amount(self.unit_price, currency),
            amount=Money.from_amount(self.amount, currency),
            created_at=self.created_at,
        )


class InvoiceDTO(BaseModel):
    """Read-side snapshot of an invoice. Money fields are major-unit numbers."""

    id: str
    invoice_number: str
    customer_id: str
    company_info: str = ""
    currency: str
    status: InvoiceStatus
    line_items: List[LineItemDTO]
    payments: List[PaymentDTO] = []
    subtotal: Amount
    tax_rate: Amount
    tax_amount: Amount
    total: Amount
    amount_paid: Amount
    balance: Amount
    notes: str = ""
    terms: str = ""
    issue_date: datetime
    due_date: datetime
    sent_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    version: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceDTO":
        return cls(
            id=invoice.id,
            invoice_number=invoice.invoice_number,
            customer_id=invoice.customer_id,
            company_info=invoice.company_info,
            currency=invoice.currency,
            status=invoice.status,
            line_items=[LineItemDTO.from_line_item(item) for item in invoice.line_items],
            payments=[PaymentDTO.from_payment(payment) for payment in invoice.payments],
            subtotal=invoice.subtotal.to_decimal(),
            tax_rate=invoice.tax_rate,
            tax_amount=invoice.tax_amount.to_decimal(),
            total=invoice.total.to_decimal(),
            amount_paid=invoice.amount_paid.to_decimal(),
            balance=invoice.balance.to_decimal(),
            notes=invoice.notes,
            terms=invoice.terms,
            issue_date=invoice.issue_date,
            due_date=invoice.due_date,
            sent_date=invoice.sent_date,
            paid_date=invoice.paid_date,
            deleted_at=invoice.deleted_at,
            version=invoice.version,
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
        )

    def to_invoice(self) -> Invoice:
        """Rebuild the aggregate; derived totals come out identical."""
        return Invoice(
            id=self.id,
            invoice_number=self.invoice_number,
            customer_id=self.customer_id,
            company_info=self.company_info,
            currency=self.currency,
            status=self.status,
            line_items=tuple(item.to_line_item(self.currency) for item in self.line_items),
            payments=tuple(payment.to_payment(self.currency) for payment in self.payments),
            tax_rate=self.tax_rate,
            notes=self.notes,
            terms=self.terms,
            issue_date=self.issue_date,
            due_date=self.due_date,
            sent_date=self.sent_date,
            paid_date=self.paid_date,
            deleted_at=self.deleted_at,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class LineItemCreatedResponse(BaseModel):
    id: str
    invoice: InvoiceDTO
