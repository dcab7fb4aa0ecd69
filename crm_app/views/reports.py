from fastapi import APIRouter, Depends

from crm_app.dependencies.services import get_report_service
from crm_app.schemas.dashboard import CountReport, MonthlyLeadsReport
from crm_app.schemas.reference import ReferenceKind
from crm_app.schemas.salesperson import SalesSummaryRequest
from crm_app.services import ReportService
from crm_app.views.dashboard import summary_window

router = APIRouter()


@router.get("/status", response_model=CountReport)
async def leads_by_status(
    window: SalesSummaryRequest = Depends(summary_window),
    service: ReportService = Depends(get_report_service),
):
    return await service.counts_by(
        ReferenceKind.lead_status, date_from=window.date_from, date_to=window.date_to
    )


@router.get("/source", response_model=CountReport)
async def leads_by_source(
    window: SalesSummaryRequest = Depends(summary_window),
    service: ReportService = Depends(get_report_service),
):
    return await service.counts_by(
        ReferenceKind.lead_source, date_from=window.date_from, date_to=window.date_to
    )


@router.get("/product", response_model=CountReport)
async def leads_by_product(
    window: SalesSummaryRequest = Depends(summary_window),
    service: ReportService = Depends(get_report_service),
):
    return await service.counts_by(
        ReferenceKind.products, date_from=window.date_from, date_to=window.date_to
    )


@router.get("/category", response_model=CountReport)
async def leads_by_category(
    window: SalesSummaryRequest = Depends(summary_window),
    service: ReportService = Depends(get_report_service),
):
    return await service.counts_by(
        ReferenceKind.categories, date_from=window.date_from, date_to=window.date_to
    )


@router.get("/monthly-leads", response_model=MonthlyLeadsReport)
async def monthly_leads(service: ReportService = Depends(get_report_service)):
    return await service.monthly_leads()
