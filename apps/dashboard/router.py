from fastapi import APIRouter, Depends, Query

from apps.dashboard.schemas import DashboardSummary, DateRange
from apps.dashboard.services import DashboardService, get_dashboard_service

router = APIRouter()


@router.get(
    "/summary",
    response_model=DashboardSummary,
    summary="Get dashboard summary",
    description="Revenue, estimated cost, profit, weekly profit chart and top models / issues"
)
def get_summary(
    date_range: DateRange = Query(DateRange.MONTH, alias="range", description="today, week, month or all"),
    service: DashboardService = Depends(get_dashboard_service)
):
    return service.get_summary(date_range)
