from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from crm_app.dependencies.services import get_dashboard_service
from crm_app.schemas.dashboard import DashboardResponse
from crm_app.schemas.salesperson import SalesSummaryRequest, SalesSummaryResponse
from crm_app.services import DashboardService

router = APIRouter()


def summary_window(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
) -> SalesSummaryRequest:
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")
    return SalesSummaryRequest(date_from=date_from, date_to=date_to)


@router.get("", response_model=DashboardResponse)
async def dashboard(
    include_salespersons: bool = Query(True),
    window: SalesSummaryRequest = Depends(summary_window),
    service: DashboardService = Depends(get_dashboard_service),
):
    return await service.overview(
        include_salespersons=include_salespersons,
        date_from=window.date_from,
        date_to=window.date_to,
    )


@router.get("/sales-summary", response_model=SalesSummaryResponse)
async def sales_summary(
    window: SalesSummaryRequest = Depends(summary_window),
    service: DashboardService = Depends(get_dashboard_service),
):
    return await service.sales_summary(date_from=window.date_from, date_to=window.date_to)
