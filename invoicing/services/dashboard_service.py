from datetime import datetime
from typing import Dict, Iterable, List, Optional

from invoicing.core.clock import Clock, SystemClock, ensure_utc
from invoicing.core.config import settings
from invoicing.models.invoice import Invoice, InvoiceStatus
from invoicing.models.money import Money, sum_money
from invoicing.schemas.dashboard import DashboardStatisticsResponse, RecentActivityItem

RECENT_ACTIVITY_LIMIT = 10
UNKNOWN_CUSTOMER = "Unknown customer"


def _is_past_due(invoice: Invoice, now: datetime) -> bool:
    return invoice.status != InvoiceStatus.PAID and invoice.due_date < now


def _positive_balances(invoices: Iterable[Invoice], currency: str) -> Money:
    return sum_money(
        (invoice.balance for invoice in invoices if invoice.balance.is_positive()), currency
    )


def build_recent_activity(
    invoices: List[Invoice], customer_names: Dict[str, str], now: datetime
) -> List[RecentActivityItem]:
    """Latest invoice and payment events, newest first."""
    activities = []

    by_event_time = sorted(
        invoices, key=lambda invoice: invoice.sent_date or invoice.created_at, reverse=True
    )
    for invoice in by_event_time[:RECENT_ACTIVITY_LIMIT]:
        if invoice.status == InvoiceStatus.PAID:
            status, verb = "paid", "paid"
        elif invoice.status == InvoiceStatus.SENT and invoice.due_date < now:
            status, verb = "overdue", "sent"
        elif invoice.status == InvoiceStatus.SENT:
            status, verb = "pending", "sent"
        else:
            status, verb = "pending", "created"
        activities.append(RecentActivityItem(
            id=invoice.id,
            customer_name=customer_names.get(invoice.customer_id, UNKNOWN_CUSTOMER),
            description=f"Invoice #{invoice.invoice_number} {verb}",
            amount=invoice.total.to_decimal(),
            status=status,
            timestamp=invoice.sent_date or invoice.created_at,
            type="invoice",
        ))

    payments = [(payment, invoice) for invoice in invoices for payment in invoice.payments]
    payments.sort(key=lambda pair: pair[0].created_at, reverse=True)
    for payment, invoice in payments[:RECENT_ACTIVITY_LIMIT]:
        activities.append(RecentActivityItem(
            id=payment.id,
            customer_name=customer_names.get(invoice.customer_id, UNKNOWN_CUSTOMER),
            description=f"Payment received for Invoice #{invoice.invoice_number}",
            amount=payment.amount.to_decimal(),
            status="paid",
            timestamp=payment.created_at,
            type="payment",
        ))

    activities.sort(key=lambda activity: activity.timestamp, reverse=True)
    return activities[:RECENT_ACTIVITY_LIMIT]


def build_statistics(
    invoices: Iterable[Invoice],
    now: datetime,
    customer_names: Optional[Dict[str, str]] = None,
    currency: Optional[str] = None,
) -> DashboardStatisticsResponse:
    """
    Aggregate figures over invoice snapshots.

    Deleted invoices are ignored. Sums are taken in minor units and only
    converted to major-unit numbers on the way out.
    """
    now = ensure_utc(now)
    currency = currency or settings.DEFAULT_CURRENCY
    live = [invoice for invoice in invoices if not invoice.is_deleted]

    unpaid = [invoice for invoice in live if invoice.status != InvoiceStatus.PAID]
    sent = [invoice for invoice in live if invoice.status == InvoiceStatus.SENT]
    overdue = [invoice for invoice in live if _is_past_due(invoice, now)]
    payments = [payment for invoice in live for payment in invoice.payments]

    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    paid_this_month = sum_money(
        (p.amount for p in payments if month_start <= p.payment_date <= now), currency
    )

    return DashboardStatisticsResponse(
        total_outstanding=_positive_balances(unpaid, currency).to_decimal(),
        paid_this_month=paid_this_month.to_decimal(),
        pending_count=len(sent),
        total_paid=sum_money((p.amount for p in payments), currency).to_decimal(),
        total_pending=sum_money((i.total for i in sent), currency).to_decimal(),
        total_invoices=len(live),
        total_revenue=sum_money((i.total for i in live), currency).to_decimal(),
        overdue_count=len(overdue),
        total_overdue=_positive_balances(overdue, currency).to_decimal(),
        recent_activity=build_recent_activity(live, customer_names or {}, now),
    )


class DashboardService:
    def __init__(self, invoices, customers, clock: Optional[Clock] = None):
        self.invoices = invoices
        self.customers = customers
        self.clock = clock or SystemClock()

    async def statistics(self) -> DashboardStatisticsResponse:
        invoices = await self.invoices.list()
        customers = await self.customers.list(include_deleted=True)
        names = {customer.id: customer.name for customer in customers}
        return build_statistics(invoices, self.clock.now(), customer_names=names)
