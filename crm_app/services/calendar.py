"""Calendar bucketing of leads by scheduled day and hour slot."""
from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from crm_app.schemas.calendar import CalendarDay, MonthView, SlotCell, WeekDay, WeekView
from crm_app.schemas.lead import Lead

GRID_CELLS = 42
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
TIME_SLOTS = [f"{12 if hour % 12 == 0 else hour % 12}{'am' if hour < 12 else 'pm'}" for hour in range(24)]


def day_key(day: date) -> str:
    return f"{day.year}-{day.month}-{day.day}"


def time_slot_label(value: str | None) -> Optional[str]:
    """Map ``H:MM`` (24-hour) to its 12-hour slot label, e.g. ``13:30`` -> ``1pm``."""

    if not value:
        return None
    hour_text = value.strip().split(":", 1)[0]
    try:
        hour = int(hour_text)
    except ValueError:
        return None
    if not 0 <= hour <= 23:
        return None
    display_hour = 12 if hour == 0 else (hour - 12 if hour > 12 else hour)
    return f"{display_hour}{'am' if hour < 12 else 'pm'}"


def slot_key(day: date, slot: str) -> str:
    return f"{day_key(day)}-{slot}"


def bucket_by_day(leads: Iterable[Lead]) -> Dict[str, List[Lead]]:
    buckets: Dict[str, List[Lead]] = defaultdict(list)
    for lead in leads:
        if lead.lead_start_date is None:
            continue
        buckets[day_key(lead.lead_start_date)].append(lead)
    return dict(buckets)


def bucket_by_slot(leads: Iterable[Lead]) -> Dict[str, List[Lead]]:
    buckets: Dict[str, List[Lead]] = defaultdict(list)
    for lead in leads:
        if lead.lead_start_date is None:
            continue
        slot = time_slot_label(lead.lead_start_time)
        if slot is None:
            continue
        buckets[slot_key(lead.lead_start_date, slot)].append(lead)
    return dict(buckets)


def _sunday_on_or_before(day: date) -> date:
    # date.weekday(): Monday == 0, Sunday == 6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_days(year: int, month: int) -> List[date]:
    start = _sunday_on_or_before(date(year, month, 1))
    return [start + timedelta(days=offset) for offset in range(GRID_CELLS)]


def week_days(anchor: date) -> List[date]:
    start = _sunday_on_or_before(anchor)
    return [start + timedelta(days=offset) for offset in range(7)]


def navigate_month(anchor: date, step: int) -> date:
    index = anchor.year * 12 + (anchor.month - 1) + step
    return date(index // 12, index % 12 + 1, 1)


def navigate_week(anchor: date, step: int) -> date:
    return anchor + timedelta(weeks=step)


def month_view(
    year: int,
    month: int,
    leads: Iterable[Lead],
    *,
    today: date | None = None,
) -> MonthView:
    today = today or date.today()
    lead_list = list(leads)
    buckets = bucket_by_day(lead_list)
    days = [
        CalendarDay(
            date=day,
            day=day.day,
            is_current_month=day.month == month,
            is_today=day == today,
            leads=buckets.get(day_key(day), []),
        )
        for day in month_days(year, month)
    ]
    return MonthView(
        year=year,
        month=month,
        label=f"{MONTH_NAMES[month - 1]}-{year}",
        days=days,
        total_leads=len(lead_list),
    )


def week_view(anchor: date, leads: Iterable[Lead], *, today: date | None = None) -> WeekView:
    today = today or date.today()
    lead_list = list(leads)
    buckets = bucket_by_slot(lead_list)
    days: List[WeekDay] = []
    for day in week_days(anchor):
        slots = [
            SlotCell(time=slot, leads=buckets.get(slot_key(day, slot), []))
            for slot in TIME_SLOTS
        ]
        days.append(
            WeekDay(
                date=day,
                label=f"{WEEKDAY_NAMES[(day.weekday() + 1) % 7]} {day.month}/{day.day}",
                is_today=day == today,
                slots=slots,
            )
        )
    return WeekView(
        start=days[0].date,
        end=days[-1].date,
        days=days,
        total_leads=len(lead_list),
    )
