import asyncio
import os
import sys
from datetime import date, datetime

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from crm_app.schemas.comment import Comment, CommentCreate
from crm_app.schemas.envelope import ApiResponse
from crm_app.schemas.lead import Lead, LeadWrite, TagRef, TagSource
from crm_app.schemas.reference import ReferenceKind, ReferenceWrite
from crm_app.schemas.salesperson import SalespersonCreate
from crm_app.schemas.tag import Tag, TagWrite
from crm_app.services.comments import CommentService, latest_comment, newest_first
from crm_app.services.dashboard import DashboardService
from crm_app.services.exceptions import (
    DownstreamServiceError,
    DuplicateSubmission,
    ValidationFailure,
)
from crm_app.services.inflight import InFlightGuard
from crm_app.services.leads import LeadService
from crm_app.services.mock_store import get_mock_store, reset_mock_store
from crm_app.services.reference import ReferenceService
from crm_app.services.reports import ReportService
from crm_app.services.salespersons import SalespersonService
from crm_app.services.tags import TagService, resolve_lead_tags


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_mock_store()
    yield
    reset_mock_store()


class MockLatencyClient:
    """Client stub that records simulate_latency calls."""

    def __init__(self) -> None:
        self.use_mock_data = True
        self.latency_called = False

    async def simulate_latency(self) -> None:
        self.latency_called = True


class StubApiClient:
    """Remote-mode client stub backed by a dict of leads."""

    def __init__(self, leads, failing_ids=()) -> None:
        self.use_mock_data = False
        self.leads = {lead["_id"]: lead for lead in leads}
        self.failing_ids = set(failing_ids)
        self.calls = []

    async def get(self, path, params=None):
        self.calls.append(("GET", path, None))
        return ApiResponse.ok({"data": list(self.leads.values())})

    async def post(self, path, payload=None):
        self.calls.append(("POST", path, payload))
        if path.endswith("create-lead"):
            record = {**payload, "_id": "new-1"}
            self.leads["new-1"] = record
            return ApiResponse.ok({"success": True, "data": record})
        return ApiResponse.ok({"success": True, "modifiedCount": len(payload.get("leadIds", []))})

    async def put(self, path, payload=None):
        self.calls.append(("PUT", path, payload))
        return ApiResponse.fail("Lead not found", status=404)

    async def delete(self, path):
        self.calls.append(("DELETE", path, None))
        lead_id = path.rsplit("/", 1)[-1]
        if lead_id in self.failing_ids:
            return ApiResponse.fail("Delete rejected", status=500)
        self.leads.pop(lead_id, None)
        return ApiResponse.ok({"success": True})


def test_mock_lead_service_creates_and_lists() -> None:
    client = MockLatencyClient()
    service = LeadService(client)

    created = asyncio.run(
        service.create(LeadWrite(firstName=" Ana ", leadStatus="Open", product="CRM Pro"))
    )
    leads = asyncio.run(service.list_all())

    assert client.latency_called is True
    assert created.first_name == "Ana"
    assert created.created_at is not None
    assert created.id in {lead.id for lead in leads}
    assert len(leads) == 4


def test_lead_write_requires_first_name() -> None:
    with pytest.raises(ValueError):
        LeadWrite(firstName="   ")


def test_batch_delete_keeps_failed_leads() -> None:
    client = StubApiClient(
        [{"_id": "id1", "firstName": "Amy"}, {"_id": "id2", "firstName": "Bob"}],
        failing_ids={"id2"},
    )
    service = LeadService(client)

    result = asyncio.run(service.delete_many(["id1", "id2"]))
    remaining = asyncio.run(service.list_all())

    assert result.deleted_ids == ["id1"]
    assert result.failed_ids == ["id2"]
    assert result.failed == 1
    assert result.message.startswith("Failed to delete 1 lead(s)")
    assert [lead.id for lead in remaining] == ["id2"]


def test_batch_delete_reports_success_count() -> None:
    client = StubApiClient([{"_id": "id1"}, {"_id": "id2"}])

    result = asyncio.run(LeadService(client).delete_many(["id1", "id2", "id1"]))

    assert result.requested == 2
    assert result.message == "2 lead(s) deleted successfully"


def test_remote_list_failure_collapses_to_empty() -> None:
    class FailingClient(StubApiClient):
        async def get(self, path, params=None):
            return ApiResponse.fail("timeout")

    assert asyncio.run(LeadService(FailingClient([])).list_all()) == []


def test_remote_update_failure_raises_downstream_error() -> None:
    service = LeadService(StubApiClient([{"_id": "id1"}]))

    with pytest.raises(DownstreamServiceError) as excinfo:
        asyncio.run(service.update("id1", LeadWrite(firstName="Amy")))

    assert excinfo.value.status_code == 404
    assert "Lead not found" in str(excinfo.value)


def test_assign_sends_salesperson_id_and_username() -> None:
    client = StubApiClient([{"_id": "id1"}])
    sales = SalespersonService(MockLatencyClient())
    salesperson = asyncio.run(sales.get("SP-seed-2"))

    updated = asyncio.run(LeadService(client).assign(["id1"], salesperson))

    method, path, payload = client.calls[-1]
    assert updated == 1
    assert path == "/api/leads/assign"
    assert payload == {"leadIds": ["id1"], "salespersonId": "SP-seed-2", "salesperson": "janesmith"}


def test_mock_assign_links_leads_by_id() -> None:
    client = MockLatencyClient()
    leads = LeadService(client)
    salesperson = asyncio.run(SalespersonService(client).get("SP-seed-1"))

    asyncio.run(leads.assign(["LEAD-seed-3"], salesperson))
    lead = asyncio.run(leads.get("LEAD-seed-3"))

    assert lead.salesperson_id == "SP-seed-1"
    assert lead.salesperson == "testceo"


def test_lead_tags_can_be_added_and_removed_by_reference() -> None:
    service = LeadService(MockLatencyClient())
    ref = TagRef(source=TagSource.whatsapp, id="wa-1")

    tagged = asyncio.run(service.add_tag("LEAD-seed-1", ref))
    again = asyncio.run(service.add_tag("LEAD-seed-1", ref))
    untagged = asyncio.run(service.remove_tag("LEAD-seed-1", "Hot"))

    assert tagged.tags == ["Hot", ref]
    assert again.tags == tagged.tags
    assert untagged.tags == [ref]


def test_salesperson_duplicate_username_is_rejected() -> None:
    service = SalespersonService(MockLatencyClient())

    with pytest.raises(DownstreamServiceError) as excinfo:
        asyncio.run(service.create(SalespersonCreate(username="testceo", password="secret1")))

    assert excinfo.value.status_code == 409


def test_tag_delete_cascades_to_leads() -> None:
    client = MockLatencyClient()
    tags = TagService(client)
    hot = asyncio.run(tags.find("TAG-seed-1"))

    result = asyncio.run(tags.delete(hot))
    lead = asyncio.run(LeadService(client).get("LEAD-seed-1"))

    assert result.leads_updated == 1
    assert result.message == 'Tag "Hot" removed from 1 lead(s)'
    assert lead.tags == []


def test_tag_delete_without_leads_uses_generic_message() -> None:
    tags = TagService(MockLatencyClient())
    follow_up = asyncio.run(tags.find("TAG-seed-2"))

    result = asyncio.run(tags.delete(follow_up))

    assert result.message == "Tag deleted successfully"


def test_whatsapp_tags_are_read_only() -> None:
    tags = TagService(MockLatencyClient())
    whatsapp = asyncio.run(tags.list_whatsapp("demo"))

    assert [tag.source for tag in whatsapp] == [TagSource.whatsapp]
    with pytest.raises(ValidationFailure):
        asyncio.run(tags.update(whatsapp[0], TagWrite(name="Warm")))
    with pytest.raises(ValidationFailure):
        asyncio.run(tags.delete(whatsapp[0]))


def test_tag_name_is_required() -> None:
    with pytest.raises(ValidationFailure):
        asyncio.run(TagService(MockLatencyClient()).create(TagWrite(name="  ")))


def test_resolve_lead_tags_matches_source_and_id() -> None:
    tags = [
        Tag(id="t1", name="Hot", color="#EF4444", source=TagSource.crm),
        Tag(id="wa-1", name="Hot", color="#22C55E", source=TagSource.whatsapp),
    ]
    lead = Lead.model_validate(
        {"tags": ["Hot", {"source": "whatsapp", "id": "wa-1"}, {"source": "crm", "id": "gone"}, "Legacy"]}
    )

    resolved = resolve_lead_tags(lead, tags)

    assert [(tag.source, tag.name, tag.color) for tag in resolved] == [
        (TagSource.crm, "Hot", "#EF4444"),
        (TagSource.whatsapp, "Hot", "#22C55E"),
        (TagSource.crm, "gone", "#3B82F6"),
        (TagSource.crm, "Legacy", "#3B82F6"),
    ]


def test_reference_items_round_trip_through_mock_store() -> None:
    service = ReferenceService(MockLatencyClient())

    created = asyncio.run(service.create(ReferenceKind.products, ReferenceWrite(name=" Helpdesk ")))
    asyncio.run(service.update(ReferenceKind.products, created.id, ReferenceWrite(name="Helpdesk Plus")))
    names = asyncio.run(service.names(ReferenceKind.products))

    assert names == ["CRM Pro", "Newsletter", "Helpdesk Plus"]
    with pytest.raises(ValidationFailure):
        asyncio.run(service.create(ReferenceKind.categories, ReferenceWrite(name="")))


def test_comments_are_listed_newest_first() -> None:
    service = CommentService(MockLatencyClient())

    asyncio.run(service.add("LEAD-seed-1", CommentCreate(text="Called, no answer", added_by="testceo")))
    comments = asyncio.run(service.list("LEAD-seed-1"))

    assert [comment.text for comment in comments] == ["Called, no answer"]
    assert comments[0].added_by == "testceo"
    with pytest.raises(ValidationFailure):
        asyncio.run(service.add("LEAD-seed-1", CommentCreate(text="   ")))


def test_latest_comment_is_derived_from_the_list() -> None:
    comments = [
        Comment(id="c1", text="first", created_at=datetime(2025, 11, 1, 9, 0)),
        Comment(id="c2", text="second", created_at=datetime(2025, 11, 2, 9, 0)),
        Comment(id="c3", text="undated"),
    ]

    assert [comment.id for comment in newest_first(comments)] == ["c2", "c1", "c3"]
    assert latest_comment(comments) == "second"
    assert latest_comment([]) is None


def test_dashboard_overview_counts_seed_leads() -> None:
    client = MockLatencyClient()
    service = DashboardService(LeadService(client), SalespersonService(client))

    overview = asyncio.run(service.overview(now=datetime(2025, 11, 3, 18, 0)))

    assert overview.total_leads == 3
    assert (overview.leads.open, overview.leads.closed, overview.leads.pending) == (1, 1, 1)
    assert overview.leads.today == 1
    rows = {row.name: row for row in overview.sales_summary.rows}
    assert rows["testceo"].all == 1
    assert rows["janesmith"].all == 2
    assert rows["janesmith"].unscheduled == 1
    assert overview.sales_summary.totals.all == 3


def test_report_counts_cover_every_reference_name() -> None:
    client = MockLatencyClient()
    reports = ReportService(LeadService(client), ReferenceService(client))

    by_status = asyncio.run(reports.counts_by(ReferenceKind.lead_status))
    october = asyncio.run(
        reports.counts_by(
            ReferenceKind.lead_status, date_from=date(2025, 10, 1), date_to=date(2025, 10, 31)
        )
    )
    monthly = asyncio.run(reports.monthly_leads())

    counts = {item.name: item.count for item in by_status.items}
    assert counts["Open"] == 1 and counts["Void"] == 0
    assert by_status.total == 3
    assert october.total == 2
    assert monthly.max_count == 1
    assert [item.date for item in monthly.items] == ["2025-10-28", "2025-10-30", "2025-11-05"]


def test_inflight_guard_rejects_duplicate_submission() -> None:
    guard = InFlightGuard()

    async def scenario():
        async with guard.hold("leads.create"):
            with pytest.raises(DuplicateSubmission):
                async with guard.hold("leads.create"):
                    pass
            async with guard.hold("leads.delete"):
                pass
        async with guard.hold("leads.create"):
            pass

    asyncio.run(scenario())


def test_store_reset_restores_seed_data() -> None:
    store = get_mock_store()
    asyncio.run(store.leads.delete("LEAD-seed-1"))
    reset_mock_store()

    assert asyncio.run(get_mock_store().leads.get("LEAD-seed-1")) is not None
