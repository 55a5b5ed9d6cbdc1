from typing import List, Optional

from invoicing.core.clock import Clock, SystemClock
from invoicing.core.config import settings
from invoicing.core.errors import NotFoundError
from invoicing.models.invoice import Invoice, InvoiceStatus
from invoicing.models.payment import Payment
from invoicing.services.projections import InvoiceView, project


class InvoiceQueries:
    """Read side. Nothing here ever calls ``save``."""

    def __init__(self, invoices, clock: Optional[Clock] = None):
        self.invoices = invoices
        self.clock = clock or SystemClock()

    async def get_invoice(self, invoice_id: str, include_deleted: bool = False) -> Invoice:
        invoice = await self.invoices.load(invoice_id)
        if invoice.is_deleted and not include_deleted:
            raise NotFoundError("INVOICE_NOT_FOUND", f"Invoice {invoice_id} not found")
        return invoice

    async def list_invoices(
        self,
        status: Optional[InvoiceStatus] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
    ) -> List[Invoice]:
        return await self.invoices.list(
            status=status,
            customer_id=customer_id,
            search=search,
            include_deleted=include_deleted,
        )

    async def view(self, invoice_id: str, locale: Optional[str] = None) -> InvoiceView:
        invoice = await self.get_invoice(invoice_id)
        return project(invoice, self.clock.now(), locale or settings.DEFAULT_LOCALE)

    async def list_payments(self, invoice_id: Optional[str] = None) -> List[Payment]:
        """Payments of one invoice, or of every live invoice, newest payment date first."""
        if invoice_id:
            invoices = [await self.get_invoice(invoice_id)]
        else:
            invoices = await self.invoices.list()
        payments = [payment for invoice in invoices for payment in invoice.payments]
        return sorted(payments, key=lambda payment: payment.payment_date, reverse=True)

    async def get_payment(self, invoice_id: str, payment_id: str) -> Payment:
        invoice = await self.get_invoice(invoice_id)
        return invoice.payment(payment_id)
