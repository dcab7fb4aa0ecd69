from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from crm_app.dependencies.services import get_lead_service
from crm_app.schemas.calendar import MonthView, WeekView
from crm_app.services import LeadService
from crm_app.services.calendar import month_view, navigate_month, navigate_week, week_view

router = APIRouter()

# The grid reaches into the neighbouring months, so the first and last
# representable years cannot be shown.
MIN_YEAR = 2
MAX_YEAR = 9998
MAX_MONTH_STEP = 1200
MAX_WEEK_STEP = 520


def _out_of_range(exc: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail=f"Calendar date out of range: {exc}")


@router.get("/month", response_model=MonthView)
async def calendar_month(
    year: Optional[int] = Query(None, ge=MIN_YEAR, le=MAX_YEAR),
    month: Optional[int] = Query(None, ge=1, le=12),
    step: int = Query(
        0,
        ge=-MAX_MONTH_STEP,
        le=MAX_MONTH_STEP,
        description="Months to move from the requested month",
    ),
    service: LeadService = Depends(get_lead_service),
):
    today = date.today()
    leads = await service.list_all()
    try:
        anchor = date(year or today.year, month or today.month, 1)
        if step:
            anchor = navigate_month(anchor, step)
        if not MIN_YEAR <= anchor.year <= MAX_YEAR:
            raise ValueError(f"year {anchor.year} is outside {MIN_YEAR}..{MAX_YEAR}")
        return month_view(anchor.year, anchor.month, leads, today=today)
    except (OverflowError, ValueError) as exc:
        raise _out_of_range(exc) from exc


@router.get("/week", response_model=WeekView)
async def calendar_week(
    anchor: Optional[date] = Query(None),
    step: int = Query(
        0,
        ge=-MAX_WEEK_STEP,
        le=MAX_WEEK_STEP,
        description="Weeks to move from the anchor day",
    ),
    service: LeadService = Depends(get_lead_service),
):
    today = date.today()
    leads = await service.list_all()
    try:
        day = anchor or today
        if step:
            day = navigate_week(day, step)
        return week_view(day, leads, today=today)
    except (OverflowError, ValueError) as exc:
        raise _out_of_range(exc) from exc
