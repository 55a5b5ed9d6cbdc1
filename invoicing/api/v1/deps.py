from fastapi import Depends

from invoicing.core.clock import Clock, SystemClock
from invoicing.db.session import get_database
from invoicing.repositories.customer_repo import CustomerRepository
from invoicing.repositories.invoice_repo import InvoiceRepository
from invoicing.services.customer_service import CustomerService
from invoicing.services.dashboard_service import DashboardService
from invoicing.services.invoice_commands import InvoiceCommandHandlers
from invoicing.services.invoice_queries import InvoiceQueries


def get_clock() -> Clock:
    return SystemClock()


async def get_invoice_repository(db=Depends(get_database)) -> InvoiceRepository:
    return InvoiceRepository(db)


async def get_customer_repository(db=Depends(get_database)) -> CustomerRepository:
    return CustomerRepository(db)


def get_invoice_handlers(
    invoices=Depends(get_invoice_repository),
    customers=Depends(get_customer_repository),
    clock: Clock = Depends(get_clock),
) -> InvoiceCommandHandlers:
    return InvoiceCommandHandlers(invoices, customers, clock)


def get_invoice_queries(
    invoices=Depends(get_invoice_repository),
    clock: Clock = Depends(get_clock),
) -> InvoiceQueries:
    return InvoiceQueries(invoices, clock)


def get_customer_service(
    customers=Depends(get_customer_repository),
    clock: Clock = Depends(get_clock),
) -> CustomerService:
    return CustomerService(customers, clock)


def get_dashboard_service(
    invoices=Depends(get_invoice_repository),
    customers=Depends(get_customer_repository),
    clock: Clock = Depends(get_clock),
) -> DashboardService:
    return DashboardService(invoices, customers, clock)
