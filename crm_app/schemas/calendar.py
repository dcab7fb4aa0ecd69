from datetime import date
from typing import List

from pydantic import BaseModel, Field

from crm_app.schemas.lead import Lead


class CalendarDay(BaseModel):
    date: date
    day: int
    is_current_month: bool
    is_today: bool
    leads: List[Lead] = Field(default_factory=list)


class MonthView(BaseModel):
    year: int
    month: int
    label: str
    days: List[CalendarDay]
    total_leads: int


class SlotCell(BaseModel):
    time: str
    leads: List[Lead] = Field(default_factory=list)


class WeekDay(BaseModel):
    date: date
    label: str
    is_today: bool
    slots: List[SlotCell]


class WeekView(BaseModel):
    start: date
    end: date
    days: List[WeekDay]
    total_leads: int
