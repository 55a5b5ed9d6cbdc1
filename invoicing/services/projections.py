"""
Read-side projections over an Invoice snapshot.

Plain functions, no I/O and no hidden clock: every time-dependent helper
takes ``now`` explicitly so the same snapshot always projects the same way.
"""

import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from invoicing.core.clock import ensure_utc
from invoicing.models.invoice import MAX_LINE_ITEMS, Invoice, InvoiceStatus
from invoicing.models.money import Money

SECONDS_PER_DAY = 24 * 60 * 60

STATUS_BADGE_COLORS = {
    InvoiceStatus.DRAFT: "gray",
    InvoiceStatus.SENT: "blue",
    InvoiceStatus.PAID: "green",
}

# locale -> (field order, separator, zero padded)
DATE_CONVENTIONS = {
    "en_US": ("mdy", "/", False),
    "en_GB": ("dmy", "/", True),
    "en_AU": ("dmy", "/", True),
    "en_CA": ("ymd", "-", True),
    "fr_FR": ("dmy", "/", True),
    "es_ES": ("dmy", "/", False),
    "it_IT": ("dmy", "/", False),
    "de_DE": ("dmy", ".", False),
    "de_CH": ("dmy", ".", False),
    "ja_JP": ("ymd", "/", False),
    "zh_CN": ("ymd", "/", False),
}


def is_overdue(invoice: Invoice, now: datetime) -> bool:
    return (
        invoice.balance.is_positive()
        and ensure_utc(now) > invoice.due_date
        and invoice.status != InvoiceStatus.PAID
    )


def days_until_due(invoice: Invoice, now: datetime) -> int:
    """Whole days left until the due date, rounded up. Negative once past due."""
    delta = invoice.due_date - ensure_utc(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def can_add_line_items(invoice: Invoice) -> bool:
    return (
        not invoice.is_deleted
        and invoice.status == InvoiceStatus.DRAFT
        and len(invoice.line_items) < MAX_LINE_ITEMS
    )


def can_edit_line_items(invoice: Invoice) -> bool:
    return not invoice.is_deleted and invoice.status == InvoiceStatus.DRAFT


def can_mark_as_sent(invoice: Invoice) -> bool:
    return can_edit_line_items(invoice) and len(invoice.line_items) > 0


def can_record_payment(invoice: Invoice) -> bool:
    return (
        not invoice.is_deleted
        and invoice.status in (InvoiceStatus.SENT, InvoiceStatus.PAID)
        and invoice.balance.is_positive()
    )


def can_delete(invoice: Invoice) -> bool:
    return not invoice.is_deleted and invoice.status == InvoiceStatus.DRAFT


def status_badge_color(status: InvoiceStatus) -> str:
    return STATUS_BADGE_COLORS.get(InvoiceStatus(status), "gray")


def status_badge_class(status: InvoiceStatus) -> str:
    """CSS class for a status badge, e.g. ``badge badge-blue``."""
    return f"badge badge-{status_badge_color(status)}"


def format_money(amount: Money, locale: str = "en_US") -> str:
    return amount.format(locale)


def format_date(value: Optional[datetime], locale: str = "en_US") -> str:
    if value is None:
        return ""
    normalized = locale.replace("-", "_")
    order, sep, padded = DATE_CONVENTIONS.get(normalized, DATE_CONVENTIONS["en_US"])

    day = ensure_utc(value).date()
    parts = {
        "d": f"{day.day:02d}" if padded else str(day.day),
        "m": f"{day.month:02d}" if padded else str(day.month),
        "y": str(day.year),
    }
    return sep.join(parts[field] for field in order)


class InvoiceView(BaseModel):
    """Everything a presentation layer needs to render one invoice."""

    model_config = ConfigDict(frozen=True)

    id: str
    invoice_number: str
    status: InvoiceStatus
    is_overdue: bool
    days_until_due: int
    can_add_line_items: bool
    can_edit_line_items: bool
    can_mark_as_sent: bool
    can_record_payment: bool
    can_delete: bool
    status_badge_color: str
    status_badge_class: str
    formatted_subtotal: str
    formatted_tax_amount: str
    formatted_total: str
    formatted_amount_paid: str
    formatted_balance: str
    formatted_issue_date: str
    formatted_due_date: str
    formatted_sent_date: str
    formatted_paid_date: str


def project(invoice: Invoice, now: datetime, locale: str = "en_US") -> InvoiceView:
    return InvoiceView(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        status=invoice.status,
        is_overdue=is_overdue(invoice, now),
        days_until_due=days_until_due(invoice, now),
        can_add_line_items=can_add_line_items(invoice),
        can_edit_line_items=can_edit_line_items(invoice),
        can_mark_as_sent=can_mark_as_sent(invoice),
        can_record_payment=can_record_payment(invoice),
        can_delete=can_delete(invoice),
        status_badge_color=status_badge_color(invoice.status),
        status_badge_class=status_badge_class(invoice.status),
        formatted_subtotal=format_money(invoice.subtotal, locale),
        formatted_tax_amount=format_money(invoice.tax_amount, locale),
        formatted_total=format_money(invoice.total, locale),
        formatted_amount_paid=format_money(invoice.amount_paid, locale),
        formatted_balance=format_money(invoice.balance, locale),
        formatted_issue_date=format_date(invoice.issue_date, locale),
        formatted_due_date=format_date(invoice.due_date, locale),
        formatted_sent_date=format_date(invoice.sent_date, locale),
        formatted_paid_date=format_date(invoice.paid_date, locale),
    )
