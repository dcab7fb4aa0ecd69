"""In-memory stand-in for the CRM REST API used when no base URL is configured.

Records are kept in the API's own JSON shape (camelCase keys, ``_id``) so the
services parse mock data exactly as they parse gateway responses.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from crm_app.schemas.reference import ReferenceKind


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _BaseRepository:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter):05d}"


class LeadRepository(_BaseRepository):
    def __init__(self) -> None:
        super().__init__("LEAD")
        self._leads: Dict[str, Dict[str, Any]] = {}

    def seed(self, records: Iterable[Dict[str, Any]]) -> None:
        for record in records:
            lead_id = record.get("_id") or self._next_id()
            self._leads[lead_id] = {"tags": [], **record, "_id": lead_id}

    async def list(self) -> List[Dict[str, Any]]:
        return [dict(lead) for lead in self._leads.values()]

    async def get(self, lead_id: str) -> Optional[Dict[str, Any]]:
        lead = self._leads.get(lead_id)
        return dict(lead) if lead is not None else None

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        lead_id = self._next_id()
        record = {"tags": [], **payload, "_id": lead_id, "createdAt": _utc_now_iso()}
        self._leads[lead_id] = record
        return dict(record)

    async def update(self, lead_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        lead = self._leads.get(lead_id)
        if lead is None:
            return None
        lead.update({key: value for key, value in payload.items() if key not in ("_id", "createdAt")})
        lead["updatedAt"] = _utc_now_iso()
        return dict(lead)

    async def delete(self, lead_id: str) -> bool:
        return self._leads.pop(lead_id, None) is not None

    async def assign(self, lead_ids: Iterable[str], salesperson_id: str, username: str) -> int:
        updated = 0
        for lead_id in lead_ids:
            lead = self._leads.get(lead_id)
            if lead is None:
                continue
            lead["salespersonId"] = salesperson_id
            lead["salesperson"] = username
            updated += 1
        return updated

    def remove_tag(self, predicate) -> int:
        updated = 0
        for lead in self._leads.values():
            kept = [tag for tag in lead.get("tags", []) if not predicate(tag)]
            if len(kept) != len(lead.get("tags", [])):
                lead["tags"] = kept
                updated += 1
        return updated


class SalespersonRepository(_BaseRepository):
    def __init__(self) -> None:
        super().__init__("SP")
        self._salespersons: Dict[str, Dict[str, Any]] = {}
        self._passwords: Dict[str, str] = {}

    def seed(self, records: Iterable[Dict[str, Any]]) -> None:
        for record in records:
            self._salespersons[record["id"]] = dict(record)

    async def list(self) -> List[Dict[str, Any]]:
        return [dict(sp) for sp in self._salespersons.values()]

    async def get(self, salesperson_id: str) -> Optional[Dict[str, Any]]:
        record = self._salespersons.get(salesperson_id)
        return dict(record) if record is not None else None

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        username = payload["username"]
        if any(sp["username"] == username for sp in self._salespersons.values()):
            raise ValueError(f"Username {username!r} already exists")
        salesperson_id = self._next_id()
        record = {key: value for key, value in payload.items() if key != "password"}
        record["id"] = salesperson_id
        self._salespersons[salesperson_id] = record
        self._passwords[salesperson_id] = payload["password"]
        return dict(record)

    async def update(self, salesperson_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        record = self._salespersons.get(salesperson_id)
        if record is None:
            return None
        record.update(payload)
        return dict(record)

    async def set_password(self, salesperson_id: str, password: str) -> bool:
        if salesperson_id not in self._salespersons:
            return False
        self._passwords[salesperson_id] = password
        return True

    async def delete(self, salesperson_id: str) -> bool:
        self._passwords.pop(salesperson_id, None)
        return self._salespersons.pop(salesperson_id, None) is not None


class TagRepository(_BaseRepository):
    def __init__(self, leads: LeadRepository) -> None:
        super().__init__("TAG")
        self._leads = leads
        self._tags: Dict[str, Dict[str, Any]] = {}
        self._external: Dict[str, List[Dict[str, Any]]] = {}

    def seed(self, records: Iterable[Dict[str, Any]]) -> None:
        for record in records:
            tag_id = record.get("_id") or self._next_id()
            self._tags[tag_id] = {**record, "_id": tag_id, "source": "crm"}

    def seed_external(self, customer_id: str, records: Iterable[Dict[str, Any]]) -> None:
        self._external[customer_id] = [{**record, "source": "whatsapp"} for record in records]

    async def list(self) -> List[Dict[str, Any]]:
        return [dict(tag) for tag in self._tags.values()]

    async def list_external(self, customer_id: str) -> List[Dict[str, Any]]:
        return [dict(tag) for tag in self._external.get(customer_id, [])]

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self._name_taken(payload["name"]):
            raise ValueError(f"Tag {payload['name']!r} already exists")
        tag_id = self._next_id()
        record = {**payload, "_id": tag_id, "source": "crm", "createdAt": _utc_now_iso()}
        self._tags[tag_id] = record
        return dict(record)

    async def update(self, tag_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        record = self._tags.get(tag_id)
        if record is None:
            return None
        if payload.get("name") != record["name"] and self._name_taken(payload.get("name", "")):
            raise ValueError(f"Tag {payload['name']!r} already exists")
        record.update(payload)
        return dict(record)

    async def delete(self, tag_id: str) -> Optional[Tuple[str, int]]:
        record = self._tags.pop(tag_id, None)
        if record is None:
            return None
        name = record["name"]

        def _matches(tag: Any) -> bool:
            if isinstance(tag, dict):
                return tag.get("source", "crm") == "crm" and str(tag.get("id")) == tag_id
            return tag == name

        return name, self._leads.remove_tag(_matches)

    def _name_taken(self, name: str) -> bool:
        return any(tag["name"].lower() == name.lower() for tag in self._tags.values())


class ReferenceRepository(_BaseRepository):
    def __init__(self, kind: ReferenceKind) -> None:
        super().__init__(kind.singular.upper().replace("-", "_"))
        self.kind = kind
        self._items: Dict[str, Dict[str, Any]] = {}

    def seed(self, names: Iterable[str]) -> None:
        for name in names:
            item_id = self._next_id()
            self._items[item_id] = {"_id": item_id, "name": name}

    async def list(self) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._items.values()]

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        item_id = self._next_id()
        record = {"_id": item_id, "name": payload["name"]}
        self._items[item_id] = record
        return dict(record)

    async def update(self, item_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        record = self._items.get(item_id)
        if record is None:
            return None
        record["name"] = payload["name"]
        return dict(record)

    async def delete(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None


class CommentRepository(_BaseRepository):
    def __init__(self) -> None:
        super().__init__("CMT")
        self._comments: Dict[str, Dict[str, Any]] = {}

    async def list(self, lead_id: str) -> List[Dict[str, Any]]:
        return [
            dict(comment)
            for comment in self._comments.values()
            if comment["leadId"] == lead_id
        ]

    async def add(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        comment_id = self._next_id()
        record = {**payload, "_id": comment_id, "createdAt": _utc_now_iso()}
        self._comments[comment_id] = record
        return dict(record)

    async def delete(self, comment_id: str) -> bool:
        return self._comments.pop(comment_id, None) is not None


@dataclass
class MockDataStore:
    leads: LeadRepository
    salespersons: SalespersonRepository
    tags: TagRepository
    comments: CommentRepository
    reference: Dict[ReferenceKind, ReferenceRepository]


def _seed(store: MockDataStore) -> None:
    store.salespersons.seed(
        [
            {
                "id": "SP-seed-1",
                "username": "testceo",
                "firstName": "Test",
                "lastName": "CEO",
                "email": "ceo@example.com",
                "designation": "CEO",
            },
            {
                "id": "SP-seed-2",
                "username": "janesmith",
                "firstName": "Jane",
                "lastName": "Smith",
                "email": "jane@example.com",
                "designation": "Sales Executive",
            },
        ]
    )
    store.leads.seed(
        [
            {
                "_id": "LEAD-seed-1",
                "firstName": "Meera",
                "lastName": "Patel",
                "company": "Surat Textiles",
                "email": "meera@surattextiles.in",
                "phone": "9825012345",
                "city": "Surat",
                "category": "Retail",
                "product": "CRM Pro",
                "leadSource": "Website",
                "leadStatus": "Open",
                "tags": ["Hot"],
                "createdAt": "2025-11-03T17:17:00",
                "leadStartDate": "2025-11-05",
                "leadStartTime": "10:30",
                "salespersonId": "SP-seed-1",
                "salesperson": "testceo",
            },
            {
                "_id": "LEAD-seed-2",
                "firstName": "Arjun",
                "lastName": "Rao",
                "company": "Rao Logistics",
                "email": "arjun@raologistics.com",
                "city": "Pune",
                "product": "Newsletter",
                "leadSource": "Referral",
                "leadStatus": "Closed",
                "createdAt": "2025-10-28T10:29:00",
                "createdBy": "SP-seed-2",
            },
            {
                "_id": "LEAD-seed-3",
                "firstName": "Dana",
                "lastName": "Whitfield",
                "company": "Northwind",
                "city": "Austin",
                "category": "Unscheduled",
                "leadStatus": "Pending",
                "createdAt": "2025-10-30T09:00:00",
                "salesperson": "janesmith",
            },
        ]
    )
    store.tags.seed(
        [
            {"_id": "TAG-seed-1", "name": "Hot", "color": "#EF4444", "description": "Ready to buy"},
            {"_id": "TAG-seed-2", "name": "Follow Up", "color": "#F59E0B"},
        ]
    )
    store.tags.seed_external(
        "demo",
        [{"id": "wa-1", "name": "Hot", "color": "#22C55E"}],
    )
    defaults = {
        ReferenceKind.categories: ["Retail", "Wholesale", "Unscheduled"],
        ReferenceKind.products: ["CRM Pro", "Newsletter"],
        ReferenceKind.lead_source: ["Website", "Referral", "Walk-in"],
        ReferenceKind.lead_status: [
            "Open",
            "Pending",
            "Closed",
            "Miss",
            "Void",
            "Unscheduled",
            "Deals",
            "Customer",
        ],
    }
    for kind, names in defaults.items():
        store.reference[kind].seed(names)


_mock_store: Optional[MockDataStore] = None


def get_mock_store() -> MockDataStore:
    global _mock_store
    if _mock_store is None:
        leads = LeadRepository()
        _mock_store = MockDataStore(
            leads=leads,
            salespersons=SalespersonRepository(),
            tags=TagRepository(leads),
            comments=CommentRepository(),
            reference={kind: ReferenceRepository(kind) for kind in ReferenceKind},
        )
        _seed(_mock_store)
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None
