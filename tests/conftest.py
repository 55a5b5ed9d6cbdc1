from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from invoicing.core.clock import FixedClock
from invoicing.core.config import settings
from invoicing.core.errors import ConflictError, NotFoundError
from invoicing.models.customer import Customer
from invoicing.models.invoice import INVOICE_NUMBER_PREFIX, Invoice, InvoiceStatus
from invoicing.models.money import Money
from invoicing.services.invoice_commands import InvoiceCommandHandlers

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def usd(amount) -> Money:
    return Money.from_amount(amount, "USD")


class InMemoryInvoiceRepository:
    """Dict-backed stand-in for InvoiceRepository with the same version check."""

    def __init__(self):
        self.invoices: Dict[str, Invoice] = {}
        self.save_calls = 0
        self._seq = 0

    async def next_invoice_number(self) -> str:
        number = settings.INVOICE_NUMBER_START + self._seq
        self._seq += 1
        return f"{INVOICE_NUMBER_PREFIX}{number}"

    async def insert(self, invoice: Invoice) -> Invoice:
        self.invoices[invoice.id] = invoice
        return invoice

    async def load(self, invoice_id: str) -> Invoice:
        if invoice_id not in self.invoices:
            raise NotFoundError("INVOICE_NOT_FOUND", f"Invoice {invoice_id} not found")
        return self.invoices[invoice_id]

    async def save(self, invoice: Invoice) -> Invoice:
        self.save_calls += 1
        current = await self.load(invoice.id)
        if current.version != invoice.version:
            raise ConflictError("VERSION_CONFLICT", "Invoice was modified concurrently")
        stored = invoice.model_copy(update={"version": invoice.version + 1})
        self.invoices[invoice.id] = stored
        return stored

    async def list(
        self,
        status: Optional[InvoiceStatus] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
    ) -> List[Invoice]:
        result = [
            invoice for invoice in self.invoices.values()
            if (include_deleted or not invoice.is_deleted)
            and (status is None or invoice.status == status)
            and (customer_id is None or invoice.customer_id == customer_id)
            and (not search or search.lower() in invoice.invoice_number.lower())
        ]
        return sorted(result, key=lambda invoice: invoice.created_at, reverse=True)


class InMemoryCustomerRepository:
    def __init__(self):
        self.customers: Dict[str, Customer] = {}

    async def insert(self, customer: Customer) -> Customer:
        self.customers[customer.id] = customer
        return customer

    async def get(self, customer_id: str) -> Customer:
        if customer_id not in self.customers:
            raise NotFoundError("CUSTOMER_NOT_FOUND", f"Customer {customer_id} not found")
        return self.customers[customer_id]

    async def find_by_email(self, email: str) -> Optional[Customer]:
        for customer in self.customers.values():
            if customer.email == email.strip().lower():
                return customer
        return None

    async def save(self, customer: Customer) -> Customer:
        await self.get(customer.id)
        self.customers[customer.id] = customer
        return customer

    async def list(self, search: Optional[str] = None, include_deleted: bool = False) -> List[Customer]:
        result = [
            customer for customer in self.customers.values()
            if (include_deleted or not customer.is_deleted)
            and (not search or search.lower() in customer.name.lower() or search.lower() in customer.email)
        ]
        return sorted(result, key=lambda customer: customer.name)


def make_customer(name="Acme Corp", email="billing@acme-corp.com", now=NOW) -> Customer:
    return Customer.create(
        name=name,
        email=email,
        address={
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "postal_code": "62701",
            "country": "USA",
        },
        phone_number="+1 555-010-2000",
        now=now,
    )


def make_invoice(
    tax_rate="0.10",
    issue_date=NOW,
    due_date=None,
    now=NOW,
    invoice_number="INV-1000",
    customer_id="3f2b8c1e-6a1d-4c7e-9b0a-2d5e8f1a4c3b",
) -> Invoice:
    return Invoice.create(
        invoice_number=invoice_number,
        customer_id=customer_id,
        issue_date=issue_date,
        due_date=due_date or issue_date + timedelta(days=30),
        now=now,
        tax_rate=tax_rate,
    )


def make_sent_invoice(lines=(("Consulting", 2, "50.00"),), **kwargs) -> Invoice:
    invoice = make_invoice(**kwargs)
    now = kwargs.get("now", NOW)
    for description, quantity, price in lines:
        invoice, _ = invoice.add_line_item(description, quantity, usd(price), now)
    return invoice.mark_as_sent(now)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def invoice_repo():
    return InMemoryInvoiceRepository()


@pytest.fixture
def customer_repo():
    return InMemoryCustomerRepository()


@pytest_asyncio.fixture
async def customer(customer_repo):
    return await customer_repo.insert(make_customer())


@pytest.fixture
def handlers(invoice_repo, customer_repo, clock):
    return InvoiceCommandHandlers(invoice_repo, customer_repo, clock)


@pytest.fixture
def mock_db():
    """Motor database double: db["name"] returns a collection with async methods."""
    collections = {}

    def collection(name):
        if name not in collections:
            coll = MagicMock()
            coll.find_one = AsyncMock(return_value=None)
            coll.find_one_and_update = AsyncMock(return_value=None)
            coll.insert_one = AsyncMock()
            coll.count_documents = AsyncMock(return_value=0)
            collections[name] = coll
        return collections[name]

    db = MagicMock()
    db.__getitem__.side_effect = collection
    return db
