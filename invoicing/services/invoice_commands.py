"""
Invoice command handlers.

Every handler follows the same shape: load the aggregate, ask it for a new
snapshot, save that snapshot. A rejected command raises before ``save`` is
called, so the stored invoice is left exactly as it was.
"""

import functools
import logging
from typing import Protocol, List, Optional

from invoicing.core.clock import Clock, SystemClock
from invoicing.core.config import settings
from invoicing.core.errors import DomainError, NotFoundError, ValidationError
from invoicing.models.customer import Customer
from invoicing.models.invoice import Invoice, InvoiceStatus, check_new_invoice, is_uuid
from invoicing.models.money import Money
from invoicing.schemas.invoice import (
    AddLineItemCommand,
    CreateInvoiceCommand,
    DeleteInvoiceCommand,
    MarkInvoiceAsSentCommand,
    RemoveLineItemCommand,
    UpdateInvoiceCommand,
    UpdateLineItemCommand,
)
from invoicing.schemas.payment import RecordPaymentCommand

logger = logging.getLogger(__name__)


class InvoiceStore(Protocol):
    async def next_invoice_number(self) -> str: ...
    async def insert(self, invoice: Invoice) -> Invoice: ...
    async def load(self, invoice_id: str) -> Invoice: ...
    async def save(self, invoice: Invoice) -> Invoice: ...
    async def list(
        self,
        status: Optional[InvoiceStatus] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
    ) -> List[Invoice]: ...


class CustomerStore(Protocol):
    async def get(self, customer_id: str) -> Customer: ...


def _logged(command_name: str):
    """Log rejected commands at WARNING and let the error propagate."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except DomainError as exc:
                logger.warning("%s rejected: %s (%s)", command_name, exc.code, exc.message)
                raise

        return wrapper

    return decorator


class InvoiceCommandHandlers:
    def __init__(
        self,
        invoices: InvoiceStore,
        customers: CustomerStore,
        clock: Optional[Clock] = None,
    ):
        self.invoices = invoices
        self.customers = customers
        self.clock = clock or SystemClock()

    @_logged("CreateInvoice")
    async def create_invoice(self, command: CreateInvoiceCommand) -> str:
        if not is_uuid(command.customer_id):
            raise ValidationError("INVALID_CUSTOMER_ID", f"Invalid customer id: {command.customer_id}")
        customer = await self.customers.get(command.customer_id)
        if customer.is_deleted:
            raise NotFoundError("CUSTOMER_NOT_FOUND", f"Customer {command.customer_id} not found")

        now = self.clock.now()
        # Numbers are only handed out to invoices that will be stored
        check_new_invoice(
            customer_id=command.customer_id,
            issue_date=command.issue_date,
            due_date=command.due_date,
            now=now,
            company_info=command.company_info,
            notes=command.notes,
            terms=command.terms,
            tax_rate=command.tax_rate,
        )
        invoice_number = await self.invoices.next_invoice_number()
        invoice = Invoice.create(
            invoice_number=invoice_number,
            customer_id=command.customer_id,
            issue_date=command.issue_date,
            due_date=command.due_date,
            now=now,
            company_info=command.company_info,
            notes=command.notes,
            terms=command.terms,
            tax_rate=command.tax_rate,
            currency=settings.DEFAULT_CURRENCY,
        )
        await self.invoices.insert(invoice)
        logger.info("Invoice %s created as %s", invoice.id, invoice.invoice_number)
        return invoice.id

    @_logged("AddLineItem")
    async def add_line_item(self, invoice_id: str, command: AddLineItemCommand) -> str:
        invoice = await self.invoices.load(invoice_id)
        updated, item = invoice.add_line_item(
            description=command.description,
            quantity=command.quantity,
            unit_price=Money.from_amount(command.unit_price, invoice.currency),
            now=self.clock.now(),
        )
        await self.invoices.save(updated)
        logger.info("Line item %s added to invoice %s", item.id, invoice_id)
        return item.id

    @_logged("UpdateLineItem")
    async def update_line_item(
        self, invoice_id: str, line_item_id: str, command: UpdateLineItemCommand
    ) -> str:
        invoice = await self.invoices.load(invoice_id)
        updated, item = invoice.update_line_item(
            line_item_id=line_item_id,
            description=command.description,
            quantity=command.quantity,
            unit_price=Money.from_amount(command.unit_price, invoice.currency),
            now=self.clock.now(),
        )
        await self.invoices.save(updated)
        logger.info("Line item %s updated on invoice %s", item.id, invoice_id)
        return item.id

    @_logged("RemoveLineItem")
    async def remove_line_item(
        self,
        invoice_id: str,
        line_item_id: str,
        command: Optional[RemoveLineItemCommand] = None,
    ) -> None:
        invoice = await self.invoices.load(invoice_id)
        await self.invoices.save(invoice.remove_line_item(line_item_id, self.clock.now()))
        logger.info("Line item %s removed from invoice %s", line_item_id, invoice_id)

    @_logged("UpdateInvoice")
    async def update_invoice(self, invoice_id: str, command: UpdateInvoiceCommand) -> None:
        invoice = await self.invoices.load(invoice_id)
        updated = invoice.update_details(
            now=self.clock.now(),
            notes=command.notes,
            terms=command.terms,
            due_date=command.due_date,
        )
        await self.invoices.save(updated)
        logger.info("Invoice %s details updated", invoice_id)

    @_logged("MarkInvoiceAsSent")
    async def mark_as_sent(
        self, invoice_id: str, command: Optional[MarkInvoiceAsSentCommand] = None
    ) -> None:
        invoice = await self.invoices.load(invoice_id)
        await self.invoices.save(invoice.mark_as_sent(self.clock.now()))
        logger.info("Invoice %s marked as sent", invoice.invoice_number)

    @_logged("RecordPayment")
    async def record_payment(self, command: RecordPaymentCommand) -> str:
        invoice = await self.invoices.load(command.invoice_id)
        updated, payment = invoice.record_payment(
            amount=Money.from_exact_amount(command.amount, invoice.currency),
            payment_method=command.payment_method,
            payment_date=command.payment_date,
            now=self.clock.now(),
            reference=command.reference,
            notes=command.notes,
        )
        await self.invoices.save(updated)
        logger.info(
            "Payment %s of %s recorded on invoice %s, balance %s",
            payment.id, payment.amount, invoice.invoice_number, updated.balance,
        )
        if updated.status != invoice.status:
            logger.info("Invoice %s is now %s", invoice.invoice_number, updated.status.value)
        return payment.id

    @_logged("DeleteInvoice")
    async def delete_invoice(
        self, invoice_id: str, command: Optional[DeleteInvoiceCommand] = None
    ) -> None:
        invoice = await self.invoices.load(invoice_id)
        await self.invoices.save(invoice.soft_delete(self.clock.now()))
        logger.info("Invoice %s deleted", invoice.invoice_number)
