from __future__ import annotations

from datetime import date
from typing import Optional

from crm_app.schemas.dashboard import CountReport, MonthlyLeadsReport
from crm_app.schemas.reference import ReferenceKind
from crm_app.services.aggregation import count_by_day, count_by_field
from crm_app.services.leads import LeadService
from crm_app.services.reference import ReferenceService


class ReportService:
    """Per-status, per-source and per-product lead counts plus the daily series."""

    def __init__(self, leads: LeadService, reference: ReferenceService) -> None:
        self._leads = leads
        self._reference = reference

    async def counts_by(
        self,
        kind: ReferenceKind,
        *,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CountReport:
        leads = await self._leads.list_all()
        names = await self._reference.names(kind)
        items = count_by_field(
            leads,
            kind.lead_field,
            names,
            date_from=date_from,
            date_to=date_to,
        )
        return CountReport(items=items, total=sum(item.count for item in items))

    async def monthly_leads(self) -> MonthlyLeadsReport:
        items = count_by_day(await self._leads.list_all())
        return MonthlyLeadsReport(
            items=items,
            max_count=max((item.count for item in items), default=0),
        )
