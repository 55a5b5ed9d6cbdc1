from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel

from invoicing.schemas.payment import Amount


class RecentActivityItem(BaseModel):
    id: str
    customer_name: str
    description: str
    amount: Amount
    status: Literal["paid", "pending", "overdue"]
    timestamp: datetime
    type: Literal["invoice", "payment"]


class DashboardStatisticsResponse(BaseModel):
    total_outstanding: Amount
    paid_this_month: Amount
    pending_count: int
    total_paid: Amount
    total_pending: Amount
    total_invoices: int
    total_revenue: Amount
    overdue_count: int
    total_overdue: Amount
    recent_activity: List[RecentActivityItem] = []
