from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from crm_app.schemas.dashboard import DashboardResponse
from crm_app.schemas.lead import Lead
from crm_app.schemas.salesperson import SalesSummaryResponse
from crm_app.services.aggregation import lead_counters, summarize_salespersons, summary_totals
from crm_app.services.leads import LeadService
from crm_app.services.salespersons import SalespersonService

logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, leads: LeadService, salespersons: SalespersonService) -> None:
        self._leads = leads
        self._salespersons = salespersons

    async def sales_summary(
        self,
        *,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> SalesSummaryResponse:
        leads = await self._leads.list_all()
        return await self._summarize(leads, date_from, date_to, now)

    async def overview(
        self,
        *,
        include_salespersons: bool = True,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> DashboardResponse:
        leads = await self._leads.list_all()
        logger.debug("Building dashboard from %d lead(s)", len(leads))
        summary = None
        if include_salespersons:
            summary = await self._summarize(leads, date_from, date_to, now)
        return DashboardResponse(
            leads=lead_counters(leads, now),
            total_leads=len(leads),
            sales_summary=summary,
        )

    async def _summarize(
        self,
        leads: List[Lead],
        date_from: Optional[date],
        date_to: Optional[date],
        now: Optional[datetime],
    ) -> SalesSummaryResponse:
        salespersons = await self._salespersons.list()
        rows = summarize_salespersons(
            leads, salespersons, date_from=date_from, date_to=date_to, now=now
        )
        return SalesSummaryResponse(rows=rows, totals=summary_totals(rows))
