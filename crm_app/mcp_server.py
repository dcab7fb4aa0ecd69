# crm_app/mcp_server.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from mcp.server.fastmcp import Context, FastMCP
from pydantic import BaseModel, Field

from crm_app.dependencies.services import get_crm_client_cached
from crm_app.schemas.calendar import MonthView
from crm_app.schemas.dashboard import LeadCounters
from crm_app.schemas.lead import SortOrder, StatusFilter
from crm_app.schemas.salesperson import SalesSummaryResponse
from crm_app.services import DashboardService, LeadService, SalespersonService
from crm_app.services.aggregation import apply_status_filter, filter_leads
from crm_app.services.calendar import month_view

log = logging.getLogger("crm.mcp")

# Name shown to MCP clients
mcp = FastMCP("crm_leads")


# --------------------------
# Tool I/O models
# --------------------------
class SalesSummaryInput(BaseModel):
    date_from: Optional[date] = Field(None, description="First day of the window (inclusive)")
    date_to: Optional[date] = Field(None, description="Last day of the window (inclusive)")


class LeadsFilterInput(BaseModel):
    product: Optional[str] = Field(None, description="Product name, or 'All'")
    status: Optional[str] = Field(None, description="Lead status, or 'All'")
    search: Optional[str] = Field(None, description="Case-insensitive text to look for")
    sort_order: SortOrder = SortOrder.ascending
    filter: Optional[StatusFilter] = Field(None, description="Quick filter such as 'today' or 'Pending'")


class LeadRow(BaseModel):
    id: str
    name: str
    company: Optional[str] = None
    status: Optional[str] = None
    product: Optional[str] = None


class LeadsFilterOutput(BaseModel):
    total: int
    leads: List[LeadRow]


class CalendarMonthInput(BaseModel):
    year: int = Field(..., ge=2, le=9998)
    month: int = Field(..., ge=1, le=12)


def _dashboard_service() -> DashboardService:
    client = get_crm_client_cached()
    return DashboardService(LeadService(client), SalespersonService(client))


# --------------------------
# Tools
# --------------------------
@mcp.tool(name="dashboard_counters", description="Lead totals by status plus leads created today")
async def dashboard_counters(ctx: Context) -> LeadCounters:
    overview = await _dashboard_service().overview(include_salespersons=False)
    log.debug("dashboard_counters output=%s", overview.leads.model_dump())
    return overview.leads


@mcp.tool(name="sales_summary", description="Per-salesperson lead summary with totals")
async def sales_summary(input: SalesSummaryInput, ctx: Context) -> SalesSummaryResponse:
    log.debug("sales_summary input=%s", input.model_dump())
    return await _dashboard_service().sales_summary(
        date_from=input.date_from, date_to=input.date_to
    )


@mcp.tool(name="leads_filter", description="Filter, search and sort the lead table")
async def leads_filter(input: LeadsFilterInput, ctx: Context) -> LeadsFilterOutput:
    log.debug("leads_filter input=%s", input.model_dump())
    leads = await LeadService(get_crm_client_cached()).list_all()
    selected = filter_leads(
        apply_status_filter(leads, input.filter),
        product=input.product,
        status=input.status,
        search=input.search,
        sort_order=input.sort_order,
    )
    rows = [
        LeadRow(
            id=lead.id,
            name=lead.display_name,
            company=lead.company,
            status=lead.lead_status,
            product=lead.product,
        )
        for lead in selected
    ]
    return LeadsFilterOutput(total=len(rows), leads=rows)


@mcp.tool(name="calendar_month", description="Leads bucketed onto a 42-day month grid")
async def calendar_month(input: CalendarMonthInput, ctx: Context) -> MonthView:
    log.debug("calendar_month input=%s", input.model_dump())
    leads = await LeadService(get_crm_client_cached()).list_all()
    return month_view(input.year, input.month, leads)


@mcp.tool(name="ping", description="Health check")
async def ping(message: str) -> str:
    log.debug("ping %s", message)
    return f"pong: {message}"
