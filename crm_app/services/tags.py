from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from crm_app.clients import routes
from crm_app.clients.crm_api import CrmApiClient
from crm_app.schemas.lead import Lead, TagRef, TagSource
from crm_app.schemas.tag import DEFAULT_TAG_COLOR, ResolvedTag, Tag, TagDeleteResult, TagWrite
from crm_app.services.aggregation import parse_collection
from crm_app.services.exceptions import DownstreamServiceError, ValidationFailure
from crm_app.services.mock_store import TagRepository, get_mock_store
from crm_app.services.responses import parse_record, require_success

logger = logging.getLogger(__name__)


class TagService:
    def __init__(
        self,
        client: CrmApiClient,
        *,
        repository: TagRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().tags

    async def list(self) -> List[Tag]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return parse_collection(await self._repository.list(), Tag)

        response = await self._client.get(routes.TAGS_LIST)
        if not response.success:
            logger.warning("Failed to fetch tags: %s", response.error)
            return []
        return [tag.model_copy(update={"source": TagSource.crm}) for tag in parse_collection(response.data, Tag)]

    async def list_whatsapp(self, customer_id: str) -> List[Tag]:
        """Read-only tags held by the WhatsApp provider for one customer."""

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            records = await self._repository.list_external(customer_id)
        else:
            response = await self._client.get(
                routes.EXTERNAL_TAGS_WHATSAPP.format(customer_id=customer_id)
            )
            if not response.success:
                logger.warning("Failed to fetch WhatsApp tags for %s: %s", customer_id, response.error)
                return []
            records = response.data
        return [
            tag.model_copy(update={"source": TagSource.whatsapp})
            for tag in parse_collection(records, Tag)
        ]

    async def create(self, request: TagWrite) -> Optional[Tag]:
        payload = _validated_payload(request)
        logger.info("Creating tag %s", payload["name"])
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            try:
                record = await self._repository.create(payload)
            except ValueError as exc:
                raise DownstreamServiceError(str(exc), status_code=409, cause=exc) from exc
            return Tag.model_validate(record)

        response = require_success(
            await self._client.post(routes.TAGS_CREATE, payload), "Failed to save tag"
        )
        return parse_record(response.data, Tag)

    async def update(self, tag: Tag, request: TagWrite) -> Optional[Tag]:
        _ensure_mutable(tag)
        payload = _validated_payload(request)
        logger.info("Updating tag %s", tag.id)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            try:
                record = await self._repository.update(tag.id, payload)
            except ValueError as exc:
                raise DownstreamServiceError(str(exc), status_code=409, cause=exc) from exc
            if record is None:
                raise DownstreamServiceError(f"Tag {tag.id} not found", status_code=404)
            return Tag.model_validate(record)

        response = require_success(
            await self._client.put(routes.TAGS_UPDATE.format(tag_id=tag.id), payload),
            "Failed to save tag",
        )
        return parse_record(response.data, Tag)

    async def delete(self, tag: Tag) -> TagDeleteResult:
        """Delete a CRM tag; the API also strips it from every lead carrying it."""

        _ensure_mutable(tag)
        logger.info("Deleting tag %s", tag.id)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            outcome = await self._repository.delete(tag.id)
            if outcome is None:
                raise DownstreamServiceError(f"Tag {tag.id} not found", status_code=404)
            name, updated = outcome
            return _delete_result(name, updated)

        response = require_success(
            await self._client.delete(routes.TAGS_DELETE.format(tag_id=tag.id)),
            "Failed to delete tag",
        )
        details = response.data.get("details") if isinstance(response.data, dict) else None
        details = details if isinstance(details, dict) else {}
        updated = details.get("totalLeadsUpdated")
        return _delete_result(
            details.get("tagName") or tag.name,
            updated if isinstance(updated, int) else 0,
        )

    async def find(self, tag_id: str) -> Optional[Tag]:
        for tag in await self.list():
            if tag.id == tag_id:
                return tag
        return None


def resolve_lead_tags(
    lead: Lead, tags: Iterable[Tag], *, default_color: str = DEFAULT_TAG_COLOR
) -> List[ResolvedTag]:
    """Resolve a lead's tag references to display name and colour.

    References are matched on ``(source, id)``. Bare names on older leads are
    looked up among CRM tags only, since other sources may reuse a name.
    """

    by_key: Dict[Tuple[TagSource, str], Tag] = {}
    crm_by_name: Dict[str, Tag] = {}
    for tag in tags:
        by_key[(tag.source, tag.id)] = tag
        if tag.source == TagSource.crm:
            crm_by_name.setdefault(tag.name, tag)

    resolved: List[ResolvedTag] = []
    for entry in lead.tags:
        if isinstance(entry, TagRef):
            match = by_key.get((entry.source, entry.id))
            resolved.append(
                ResolvedTag(
                    source=entry.source,
                    id=entry.id,
                    name=match.name if match else entry.id,
                    color=match.color if match else default_color,
                )
            )
            continue
        match = crm_by_name.get(entry)
        resolved.append(
            ResolvedTag(
                source=TagSource.crm,
                id=match.id if match else None,
                name=entry,
                color=match.color if match else default_color,
            )
        )
    return resolved


def _validated_payload(request: TagWrite) -> dict:
    name = request.name.strip()
    if not name:
        raise ValidationFailure("Tag name is required")
    return {
        "name": name,
        "color": request.color,
        "description": (request.description or "").strip(),
    }


def _ensure_mutable(tag: Tag) -> None:
    if not tag.mutable:
        raise ValidationFailure(f"Tags from {tag.source.value} are read-only")


def _delete_result(name: str, updated: int) -> TagDeleteResult:
    if updated > 0:
        message = f'Tag "{name}" removed from {updated} lead(s)'
    else:
        message = "Tag deleted successfully"
    return TagDeleteResult(tag_name=name, leads_updated=updated, message=message)
