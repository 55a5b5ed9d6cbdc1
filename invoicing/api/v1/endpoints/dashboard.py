from fastapi import APIRouter, Depends

from invoicing.api.v1.deps import get_dashboard_service
from invoicing.schemas.dashboard import DashboardStatisticsResponse
from invoicing.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/statistics", response_model=DashboardStatisticsResponse)
async def get_statistics(service: DashboardService = Depends(get_dashboard_service)):
    """Totals, counts and recent activity across all live invoices"""
    return await service.statistics()
