"""Lead aggregation engine.

Pure functions that turn a raw lead collection into dashboard counters,
per-salesperson summaries, filtered/sorted table rows and report series.
Nothing here performs I/O; malformed input collapses to empty results.
"""
from __future__ import annotations

import locale
import logging
import unicodedata
from collections import Counter
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from crm_app.schemas.dashboard import DateCount, LeadCounters, NameCount
from crm_app.schemas.lead import Lead, SortOrder, StatusFilter
from crm_app.schemas.salesperson import Salesperson, SalespersonSummary

logger = logging.getLogger(__name__)

ALL = "All"
UNSCHEDULED = "Unscheduled"
SEARCH_FIELDS = (
    "first_name",
    "last_name",
    "company",
    "email",
    "phone",
    "city",
    "lead_status",
)
_COLLECTION_KEYS = ("data", "leads", "items")

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_collection(data: Any, model: Type[ModelT]) -> List[ModelT]:
    """Validate a JSON collection into models, dropping anything malformed."""

    items = _unwrap_collection(data)
    parsed: List[ModelT] = []
    for item in items:
        if isinstance(item, model):
            parsed.append(item)
            continue
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as exc:
            logger.debug("Skipping malformed %s record: %s", model.__name__, exc)
    return parsed


def normalize_leads(data: Any) -> List[Lead]:
    return parse_collection(data, Lead)


def _unwrap_collection(data: Any) -> List[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in _COLLECTION_KEYS:
            nested = data.get(key)
            if isinstance(nested, list):
                return nested
    return []


# --------------------------------------------------------------------------
# predicates
# --------------------------------------------------------------------------

def is_today(value: date | datetime | None, now: datetime | None = None) -> bool:
    if value is None:
        return False
    today = (now or datetime.now()).date()
    day = value.date() if isinstance(value, datetime) else value
    return day == today


def is_unscheduled(lead: Lead) -> bool:
    return lead.lead_status == UNSCHEDULED or lead.category == UNSCHEDULED


def matches_salesperson(lead: Lead, salesperson: Salesperson) -> bool:
    """Any of the link fields may tie a lead to a salesperson."""

    if salesperson.id and salesperson.id in (lead.salesperson_id, lead.created_by):
        return True
    # Legacy leads only carry the username; new writes always set salespersonId.
    name = salesperson.name
    return bool(name) and name in (lead.salesperson, lead.tester_salesman)


def date_window(
    date_from: date | datetime | None, date_to: date | datetime | None
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Expand a day range to local-midnight start and end-of-day stop."""

    start = datetime.combine(_as_date(date_from), time.min) if date_from else None
    end = datetime.combine(_as_date(date_to), time.max) if date_to else None
    return start, end


def in_window(lead: Lead, start: datetime | None, end: datetime | None) -> bool:
    if start is None and end is None:
        return True
    if lead.created_at is None:
        return False
    if start is not None and lead.created_at < start:
        return False
    if end is not None and lead.created_at > end:
        return False
    return True


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


# --------------------------------------------------------------------------
# counters and summaries
# --------------------------------------------------------------------------

def lead_counters(leads: Iterable[Lead], now: datetime | None = None) -> LeadCounters:
    statuses = Counter()
    today = 0
    for lead in leads:
        statuses[lead.lead_status] += 1
        if is_today(lead.created_at, now):
            today += 1
    return LeadCounters(
        pending=statuses["Pending"],
        closed=statuses["Closed"],
        open=statuses["Open"],
        today=today,
    )


def summarize_salesperson(
    leads: Iterable[Lead],
    salesperson: Salesperson,
    *,
    date_from: date | datetime | None = None,
    date_to: date | datetime | None = None,
    now: datetime | None = None,
) -> SalespersonSummary:
    start, end = date_window(date_from, date_to)
    owned = [
        lead
        for lead in leads
        if matches_salesperson(lead, salesperson) and in_window(lead, start, end)
    ]
    return SalespersonSummary(
        id=salesperson.id,
        name=salesperson.name,
        today=sum(1 for lead in owned if is_today(lead.created_at, now)),
        all=len(owned),
        missed=sum(1 for lead in owned if lead.lead_status == "Miss"),
        unscheduled=sum(1 for lead in owned if is_unscheduled(lead)),
        closed=sum(1 for lead in owned if lead.lead_status == "Closed"),
        void=sum(1 for lead in owned if lead.lead_status == "Void"),
    )


def summarize_salespersons(
    leads: Sequence[Lead],
    salespersons: Iterable[Salesperson],
    *,
    date_from: date | datetime | None = None,
    date_to: date | datetime | None = None,
    now: datetime | None = None,
) -> List[SalespersonSummary]:
    return [
        summarize_salesperson(
            leads, salesperson, date_from=date_from, date_to=date_to, now=now
        )
        for salesperson in salespersons
    ]


def summary_totals(rows: Iterable[SalespersonSummary]) -> SalespersonSummary:
    totals = SalespersonSummary(id="total", name="Total")
    for row in rows:
        totals.today += row.today
        totals.all += row.all
        totals.missed += row.missed
        totals.unscheduled += row.unscheduled
        totals.closed += row.closed
        totals.void += row.void
    return totals


# --------------------------------------------------------------------------
# lead table
# --------------------------------------------------------------------------

def _is_set(value: str | None) -> bool:
    return bool(value) and value != ALL


def matches_search(lead: Lead, term: str) -> bool:
    needle = term.strip().lower()
    if not needle:
        return True
    return any(needle in lead.text(field).lower() for field in SEARCH_FIELDS)


def sort_key(value: str) -> Tuple[str, str, str]:
    """Locale-aware key that ignores case and accents before tie-breaking on them."""

    folded = value.casefold()
    base = "".join(
        ch for ch in unicodedata.normalize("NFKD", folded) if not unicodedata.combining(ch)
    )
    return locale.strxfrm(base), locale.strxfrm(folded), value


def sort_by_first_name(leads: Iterable[Lead], order: SortOrder | str = SortOrder.ascending) -> List[Lead]:
    ordered = sorted(leads, key=lambda lead: sort_key(lead.text("first_name")))
    if SortOrder(order) is SortOrder.descending:
        ordered.reverse()
    return ordered


def filter_leads(
    leads: Iterable[Lead],
    *,
    product: str | None = None,
    status: str | None = None,
    search: str | None = None,
    sort_order: SortOrder | str = SortOrder.ascending,
) -> List[Lead]:
    predicates: List[Callable[[Lead], bool]] = []
    if _is_set(product):
        predicates.append(lambda lead: lead.product == product)
    if _is_set(status):
        predicates.append(lambda lead: lead.lead_status == status)
    if search and search.strip():
        predicates.append(lambda lead: matches_search(lead, search))
    selected = [lead for lead in leads if all(check(lead) for check in predicates)]
    return sort_by_first_name(selected, sort_order)


def status_filter_predicate(
    value: StatusFilter | str | None, now: datetime | None = None
) -> Callable[[Lead], bool]:
    if not value:
        return lambda lead: True
    selected = StatusFilter(value)
    if selected is StatusFilter.all:
        return lambda lead: True
    if selected is StatusFilter.today:
        return lambda lead: is_today(lead.created_at, now)
    if selected is StatusFilter.unscheduled:
        return is_unscheduled
    return lambda lead: lead.lead_status == selected.value


def apply_status_filter(
    leads: Iterable[Lead], value: StatusFilter | str | None, now: datetime | None = None
) -> List[Lead]:
    predicate = status_filter_predicate(value, now)
    return [lead for lead in leads if predicate(lead)]


def status_filter_counts(leads: Sequence[Lead], now: datetime | None = None) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for option in StatusFilter:
        predicate = status_filter_predicate(option, now)
        counts[option.value] = sum(1 for lead in leads if predicate(lead))
    return counts


def distinct_values(leads: Iterable[Lead], field: str) -> List[str]:
    seen: Dict[str, None] = {}
    for lead in leads:
        value = getattr(lead, field, None)
        if value:
            seen.setdefault(value, None)
    return list(seen)


# --------------------------------------------------------------------------
# reports
# --------------------------------------------------------------------------

def count_by_field(
    leads: Iterable[Lead],
    field: str,
    names: Sequence[str] | None = None,
    *,
    date_from: date | datetime | None = None,
    date_to: date | datetime | None = None,
) -> List[NameCount]:
    """Count leads per value of ``field``.

    When ``names`` is given every name is reported (zero when unused) and
    values outside the list are ignored; otherwise the values seen in the
    collection are reported in first-seen order.
    """

    start, end = date_window(date_from, date_to)
    selected = [lead for lead in leads if in_window(lead, start, end)]
    counts: Dict[str, int] = dict.fromkeys(names, 0) if names is not None else {}
    for lead in selected:
        value = getattr(lead, field, None)
        if not value:
            continue
        if names is not None and value not in counts:
            continue
        counts[value] = counts.get(value, 0) + 1
    return [NameCount(name=name, count=count) for name, count in counts.items()]


def count_by_day(leads: Iterable[Lead]) -> List[DateCount]:
    """Leads per calendar day, using the scheduled date when present."""

    counts: Counter = Counter()
    for lead in leads:
        day = lead.lead_start_date or (lead.created_at.date() if lead.created_at else None)
        if day is None:
            continue
        counts[day.isoformat()] += 1
    return [DateCount(date=key, count=counts[key]) for key in sorted(counts)]
