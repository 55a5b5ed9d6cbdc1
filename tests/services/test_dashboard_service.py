from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from invoicing.services.dashboard_service import DashboardService, build_statistics

from conftest import NOW, make_customer, make_invoice, make_sent_invoice, usd

FEB_1 = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
CUSTOMER_ID = "3f2b8c1e-6a1d-4c7e-9b0a-2d5e8f1a4c3b"


def _portfolio():
    # Sent, overdue, 10.00 paid this month: balance 100.00
    overdue = make_sent_invoice(
        issue_date=FEB_1, due_date=datetime(2026, 3, 1, tzinfo=timezone.utc), invoice_number="INV-1000"
    )
    overdue, _ = overdue.record_payment(usd("10.00"), "Cash", datetime(2026, 3, 10, tzinfo=timezone.utc), NOW)

    # Paid last month
    paid = make_sent_invoice(lines=[("Design", 1, "50.00")], tax_rate="0", invoice_number="INV-1001")
    paid, _ = paid.record_payment(usd("50.00"), "Check", datetime(2026, 2, 20, tzinfo=timezone.utc), NOW)

    draft = make_invoice(tax_rate="0", invoice_number="INV-1002")
    draft, _ = draft.add_line_item("Hosting", 1, usd("20.00"), NOW)

    deleted = make_invoice(invoice_number="INV-1003").soft_delete(NOW)
    return [overdue, paid, draft, deleted]


def test_statistics():
    stats = build_statistics(_portfolio(), NOW)

    assert stats.total_outstanding == Decimal("120.00")
    assert stats.paid_this_month == Decimal("10.00")
    assert stats.pending_count == 1
    assert stats.total_paid == Decimal("60.00")
    assert stats.total_pending == Decimal("110.00")
    assert stats.total_invoices == 3
    assert stats.total_revenue == Decimal("180.00")
    assert stats.overdue_count == 1
    assert stats.total_overdue == Decimal("100.00")


def test_empty_portfolio():
    stats = build_statistics([], NOW)
    assert stats.total_invoices == 0
    assert stats.total_revenue == Decimal("0")
    assert stats.recent_activity == []


def test_recent_activity():
    stats = build_statistics(_portfolio(), NOW, customer_names={CUSTOMER_ID: "Acme Corp"})

    activity = stats.recent_activity
    assert len(activity) == 5
    assert {item.type for item in activity} == {"invoice", "payment"}
    assert all(item.customer_name == "Acme Corp" for item in activity)

    by_description = {item.description: item for item in activity}
    assert by_description["Invoice #INV-1000 sent"].status == "overdue"
    assert by_description["Invoice #INV-1001 paid"].status == "paid"
    assert by_description["Invoice #INV-1002 created"].status == "pending"


def test_recent_activity_is_capped_and_newest_first():
    invoices = [
        make_invoice(invoice_number=f"INV-{1000 + n}", now=NOW + timedelta(minutes=n))
        for n in range(12)
    ]

    activity = build_statistics(invoices, NOW + timedelta(hours=1)).recent_activity

    assert len(activity) == 10
    assert activity[0].description == "Invoice #INV-1011 created"
    assert [a.timestamp for a in activity] == sorted((a.timestamp for a in activity), reverse=True)


@pytest.mark.asyncio
async def test_service_reads_repositories(invoice_repo, customer_repo, clock):
    customer = await customer_repo.insert(make_customer())
    for invoice in _portfolio():
        await invoice_repo.insert(invoice.model_copy(update={"customer_id": customer.id}))

    stats = await DashboardService(invoice_repo, customer_repo, clock).statistics()

    assert stats.total_invoices == 3
    assert stats.recent_activity[0].customer_name == "Acme Corp"
