import os
import sys
from datetime import date, datetime, timedelta, timezone

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from crm_app.schemas.lead import Lead, SortOrder, StatusFilter
from crm_app.schemas.salesperson import Salesperson
from crm_app.services.aggregation import (
    apply_status_filter,
    count_by_day,
    count_by_field,
    distinct_values,
    filter_leads,
    lead_counters,
    matches_salesperson,
    normalize_leads,
    sort_by_first_name,
    status_filter_counts,
    summarize_salesperson,
    summarize_salespersons,
    summary_totals,
)

NOW = datetime(2025, 11, 3, 12, 0)


def _lead(**fields) -> Lead:
    return Lead.model_validate(fields)


def _names(leads):
    return [lead.first_name for lead in leads]


def _amy_and_bob():
    return [
        _lead(_id="1", firstName="Amy", leadStatus="Closed", createdAt=NOW.isoformat()),
        _lead(
            _id="2",
            firstName="Bob",
            leadStatus="Open",
            createdAt=(NOW - timedelta(days=1)).isoformat(),
        ),
    ]


def _table():
    return [
        _lead(_id="1", firstName="Meera", lastName="Patel", company="Surat Textiles",
              product="CRM Pro", leadStatus="Open", city="Surat"),
        _lead(_id="2", firstName="Arjun", lastName="Rao", company="Rao Logistics",
              product="Newsletter", leadStatus="Closed", city="Pune"),
        _lead(_id="3", firstName="dana", lastName="Whitfield", company="Northwind",
              product="CRM Pro", leadStatus="Closed", email="dana@northwind.io"),
        _lead(_id="4", firstName="Priya", lastName="Shah", company="Pune Pumps",
              product="CRM Pro", leadStatus="Pending", city="Pune"),
    ]


def test_closed_filter_scenario_returns_only_amy() -> None:
    leads = _amy_and_bob()

    filtered = filter_leads(leads, status="Closed")
    counters = lead_counters(leads, NOW)

    assert _names(filtered) == ["Amy"]
    assert counters.closed == 1
    assert counters.open == 1
    assert counters.pending == 0
    assert counters.today == 1


def test_normalize_leads_drops_malformed_payloads() -> None:
    assert normalize_leads(None) == []
    assert normalize_leads("not a list") == []
    assert normalize_leads({"message": "nope"}) == []

    leads = normalize_leads(
        {"data": [{"_id": 7, "firstName": "Ana"}, "junk", 42, {"tags": "oops", "createdAt": "garbage"}]}
    )

    assert len(leads) == 2
    assert leads[0].id == "7"
    assert leads[1].tags == []
    assert leads[1].created_at is None


def test_normalize_leads_unwraps_leads_key() -> None:
    leads = normalize_leads({"leads": [{"_id": "a", "firstName": "Ana"}]})

    assert [lead.id for lead in leads] == ["a"]


def test_numeric_contact_fields_do_not_drop_the_lead() -> None:
    leads = normalize_leads([{"_id": "1", "firstName": "Amy", "leadStatus": "Closed", "phone": 5551234}])

    assert len(leads) == 1
    assert leads[0].phone == "5551234"
    assert lead_counters(leads, NOW).closed == 1


def test_utc_z_timestamps_are_parsed_as_local_time() -> None:
    lead = _lead(_id="1", createdAt="2025-11-03T10:00:00.000Z", leadStartDate="2025-11-03T10:00:00Z")
    expected = datetime(2025, 11, 3, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    assert lead.created_at == expected
    assert lead.lead_start_date == expected.date()
    assert lead_counters([lead], expected).today == 1


def test_date_only_fields_stay_on_calendar_day() -> None:
    lead = _lead(leadStartDate="2025-03-10", reminderDate="2025-03-11")

    assert lead.lead_start_date == date(2025, 3, 10)
    assert lead.reminder_date == date(2025, 3, 11)


def test_matches_salesperson_by_id_and_legacy_name() -> None:
    sp = Salesperson(id="sp-1", username="amy")

    assert matches_salesperson(_lead(salespersonId="sp-1"), sp)
    assert matches_salesperson(_lead(createdBy="sp-1"), sp)
    assert matches_salesperson(_lead(salesperson="amy"), sp)
    assert matches_salesperson(_lead(testerSalesman="amy"), sp)
    assert not matches_salesperson(_lead(salesperson="bob", salespersonId="sp-2"), sp)


def test_summary_rows_are_bounded_and_sum_to_matched_leads() -> None:
    amy = Salesperson(id="sp-1", username="amy")
    bob = Salesperson(id="sp-2", username="bob")
    today = NOW.isoformat()
    leads = [
        _lead(salespersonId="sp-1", leadStatus="Closed", createdAt=today),
        _lead(createdBy="sp-1", leadStatus="Miss", createdAt="2025-10-01T09:00:00"),
        _lead(salesperson="bob", leadStatus="Void", createdAt=today),
        _lead(testerSalesman="bob", category="Unscheduled", leadStatus="Pending"),
        _lead(salesperson="carol", leadStatus="Closed", createdAt=today),
    ]

    rows = summarize_salespersons(leads, [amy, bob], now=NOW)
    totals = summary_totals(rows)

    for row in rows:
        assert row.today <= row.all
        assert row.closed <= row.all
        assert row.void <= row.all
    assert [row.all for row in rows] == [2, 2]
    assert totals.all == 4
    assert totals.name == "Total"
    assert (rows[0].today, rows[0].closed, rows[0].missed) == (1, 1, 1)
    assert (rows[1].void, rows[1].unscheduled) == (1, 1)


def test_summary_window_is_inclusive_and_skips_undated_leads() -> None:
    sp = Salesperson(id="sp-1", username="amy")
    leads = [
        _lead(salespersonId="sp-1", createdAt="2025-10-01T00:00:00"),
        _lead(salespersonId="sp-1", createdAt="2025-10-31T23:59:59"),
        _lead(salespersonId="sp-1", createdAt="2025-11-01T00:00:00"),
        _lead(salespersonId="sp-1"),
    ]

    windowed = summarize_salesperson(
        leads, sp, date_from=date(2025, 10, 1), date_to=date(2025, 10, 31), now=NOW
    )
    unbounded = summarize_salesperson(leads, sp, now=NOW)

    assert windowed.all == 2
    assert unbounded.all == 4


def test_filtering_is_idempotent() -> None:
    criteria = {"product": "CRM Pro", "status": "Closed", "search": "north"}

    once = filter_leads(_table(), **criteria)
    twice = filter_leads(once, **criteria)

    assert [lead.id for lead in once] == ["3"]
    assert [lead.id for lead in twice] == [lead.id for lead in once]


def test_filters_commute() -> None:
    leads = _table()

    combined = filter_leads(leads, product="CRM Pro", status="Pending", search="pune")
    by_search = filter_leads(leads, search="pune")
    stepwise = filter_leads(filter_leads(by_search, status="Pending"), product="CRM Pro")

    assert {lead.id for lead in combined} == {lead.id for lead in stepwise} == {"4"}


def test_all_and_blank_mean_no_filter() -> None:
    leads = _table()

    assert len(filter_leads(leads, product="All", status="All", search="   ")) == len(leads)
    assert len(filter_leads(leads, product="", status=None)) == len(leads)


def test_search_is_trimmed_and_case_insensitive() -> None:
    assert _names(filter_leads(_table(), search="  PATEL ")) == ["Meera"]
    assert _names(filter_leads(_table(), search="NORTHWIND.IO")) == ["dana"]


def test_descending_sort_is_exact_reverse_of_ascending() -> None:
    leads = [_lead(firstName=name) for name in ["bob", "Zoe", "alice", "Émile", "Alice"]]

    ascending = sort_by_first_name(leads, SortOrder.ascending)
    descending = sort_by_first_name(leads, "Descending")

    assert _names(ascending) == ["Alice", "alice", "bob", "Émile", "Zoe"]
    assert descending == list(reversed(ascending))


def test_status_filter_buttons_and_counts() -> None:
    leads = _amy_and_bob() + [_lead(_id="3", firstName="Cy", category="Unscheduled")]

    counts = status_filter_counts(leads, NOW)

    assert counts["today"] == 1
    assert counts["all"] == 3
    assert counts["Closed"] == 1
    assert counts["unscheduled"] == 1
    assert counts["Pending"] == 0
    assert _names(apply_status_filter(leads, StatusFilter.unscheduled)) == ["Cy"]
    assert len(apply_status_filter(leads, None)) == 3


def test_distinct_values_keep_first_seen_order() -> None:
    assert distinct_values(_table(), "product") == ["CRM Pro", "Newsletter"]


def test_count_by_field_reports_every_listed_name() -> None:
    counts = count_by_field(_table(), "lead_status", ["Open", "Closed", "Void"])

    assert [(item.name, item.count) for item in counts] == [("Open", 1), ("Closed", 2), ("Void", 0)]


def test_count_by_day_prefers_scheduled_date() -> None:
    leads = [
        _lead(leadStartDate="2025-11-05", createdAt="2025-11-01T10:00:00"),
        _lead(createdAt="2025-11-01T18:00:00"),
        _lead(createdAt="2025-11-01T19:00:00"),
        _lead(),
    ]

    series = count_by_day(leads)

    assert [(item.date, item.count) for item in series] == [("2025-11-01", 2), ("2025-11-05", 1)]
