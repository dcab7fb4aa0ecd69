from typing import List, Optional

from pydantic import BaseModel, Field

from crm_app.schemas.salesperson import SalesSummaryResponse


class LeadCounters(BaseModel):
    pending: int = 0
    closed: int = 0
    open: int = 0
    today: int = 0


class DashboardResponse(BaseModel):
    leads: LeadCounters
    total_leads: int
    sales_summary: Optional[SalesSummaryResponse] = None


class NameCount(BaseModel):
    name: str
    count: int


class DateCount(BaseModel):
    date: str
    count: int


class CountReport(BaseModel):
    items: List[NameCount] = Field(default_factory=list)
    total: int = 0


class MonthlyLeadsReport(BaseModel):
    items: List[DateCount] = Field(default_factory=list)
    max_count: int = 0
