import os
import sys
from datetime import date

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from crm_app.schemas.lead import Lead
from crm_app.services.calendar import (
    GRID_CELLS,
    bucket_by_day,
    bucket_by_slot,
    day_key,
    month_view,
    navigate_month,
    navigate_week,
    time_slot_label,
    week_days,
    week_view,
)


def test_time_slot_labels() -> None:
    assert time_slot_label("00:05") == "12am"
    assert time_slot_label("13:30") == "1pm"
    assert time_slot_label("23:59") == "11pm"
    assert time_slot_label("12:00") == "12pm"
    assert time_slot_label("9:15") == "9am"
    assert time_slot_label("") is None
    assert time_slot_label("noon") is None
    assert time_slot_label("25:00") is None


def test_date_only_lead_lands_in_month_bucket_but_no_slot() -> None:
    lead = Lead.model_validate({"_id": "L1", "firstName": "Ana", "leadStartDate": "2025-03-10"})

    assert day_key(date(2025, 3, 10)) == "2025-3-10"
    assert [item.id for item in bucket_by_day([lead])["2025-3-10"]] == ["L1"]
    assert bucket_by_slot([lead]) == {}


def test_leads_without_start_date_are_not_bucketed() -> None:
    lead = Lead.model_validate({"firstName": "Ana", "leadStartTime": "10:00"})

    assert bucket_by_day([lead]) == {}
    assert bucket_by_slot([lead]) == {}


def test_month_view_is_a_42_cell_grid_from_sunday() -> None:
    lead = Lead.model_validate({"_id": "L1", "leadStartDate": "2025-03-10"})

    view = month_view(2025, 3, [lead], today=date(2025, 3, 10))

    assert len(view.days) == GRID_CELLS
    assert view.label == "Mar-2025"
    assert view.days[0].date == date(2025, 2, 23)
    assert view.days[0].is_current_month is False
    assert view.days[-1].date == date(2025, 4, 5)
    march_10 = next(cell for cell in view.days if cell.date == date(2025, 3, 10))
    assert march_10.is_today is True
    assert [item.id for item in march_10.leads] == ["L1"]
    assert sum(1 for cell in view.days if cell.is_today) == 1


def test_week_view_places_leads_in_hour_slots() -> None:
    lead = Lead.model_validate(
        {"_id": "L1", "leadStartDate": "2025-03-10", "leadStartTime": "13:30"}
    )

    view = week_view(date(2025, 3, 12), [lead], today=date(2025, 3, 12))

    assert view.start == date(2025, 3, 9)
    assert view.end == date(2025, 3, 15)
    assert view.days[0].label == "Sun 3/9"
    monday = view.days[1]
    assert len(monday.slots) == 24
    assert monday.slots[13].time == "1pm"
    assert [item.id for item in monday.slots[13].leads] == ["L1"]
    assert view.days[3].is_today is True


def test_week_days_start_on_sunday() -> None:
    assert week_days(date(2025, 3, 9))[0] == date(2025, 3, 9)
    assert week_days(date(2025, 3, 15))[0] == date(2025, 3, 9)


def test_navigation_wraps_across_years() -> None:
    assert navigate_month(date(2025, 1, 15), -1) == date(2024, 12, 1)
    assert navigate_month(date(2025, 12, 1), 1) == date(2026, 1, 1)
    assert navigate_week(date(2025, 3, 9), -1) == date(2025, 3, 2)
