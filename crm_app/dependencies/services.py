from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from crm_app.clients.crm_api import CrmApiClient
from crm_app.config import Settings, get_settings
from crm_app.services import (
    CommentService,
    DashboardService,
    LeadService,
    ReferenceService,
    ReportService,
    SalespersonService,
    TagService,
)
from crm_app.services.inflight import InFlightGuard


@lru_cache(maxsize=1)
def get_crm_client_cached() -> CrmApiClient:
    settings = get_settings()
    return CrmApiClient(
        settings.api_base_url,
        timeout=settings.api_timeout,
        use_mock_data=settings.use_mock_data,
        token=settings.api_token,
    )


@lru_cache(maxsize=1)
def get_inflight_guard() -> InFlightGuard:
    return InFlightGuard()


def get_crm_client(settings: Settings = Depends(get_settings)) -> CrmApiClient:
    return get_crm_client_cached()


def get_lead_service(
    client: CrmApiClient = Depends(get_crm_client),
) -> LeadService:
    return LeadService(client)


def get_salesperson_service(
    client: CrmApiClient = Depends(get_crm_client),
) -> SalespersonService:
    return SalespersonService(client)


def get_tag_service(
    client: CrmApiClient = Depends(get_crm_client),
) -> TagService:
    return TagService(client)


def get_reference_service(
    client: CrmApiClient = Depends(get_crm_client),
) -> ReferenceService:
    return ReferenceService(client)


def get_comment_service(
    client: CrmApiClient = Depends(get_crm_client),
) -> CommentService:
    return CommentService(client)


def get_dashboard_service(
    leads: LeadService = Depends(get_lead_service),
    salespersons: SalespersonService = Depends(get_salesperson_service),
) -> DashboardService:
    return DashboardService(leads, salespersons)


def get_report_service(
    leads: LeadService = Depends(get_lead_service),
    reference: ReferenceService = Depends(get_reference_service),
) -> ReportService:
    return ReportService(leads, reference)
