from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from crm_app.clients import routes
from crm_app.clients.crm_api import CrmApiClient
from crm_app.schemas.envelope import ApiResponse
from crm_app.schemas.lead import BatchDeleteResult, Lead, LeadWrite, TagRef
from crm_app.schemas.salesperson import Salesperson
from crm_app.services.aggregation import normalize_leads
from crm_app.services.exceptions import DownstreamServiceError
from crm_app.services.mock_store import LeadRepository, get_mock_store
from crm_app.services.responses import parse_record, require_success

logger = logging.getLogger(__name__)


class LeadService:
    def __init__(
        self,
        client: CrmApiClient,
        *,
        repository: LeadRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().leads

    async def list_all(self) -> List[Lead]:
        """Fetch every lead visible to the tenant; failures yield an empty list."""

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return normalize_leads(await self._repository.list())

        response = await self._client.get(routes.LEADS_LIST)
        if not response.success:
            logger.warning("Failed to fetch leads: %s", response.error)
            return []
        return normalize_leads(response.data)

    async def get(self, lead_id: str) -> Optional[Lead]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._repository.get(lead_id)
            return Lead.model_validate(record) if record else None

        # the API has no single-lead read, so look it up in the collection
        for lead in await self.list_all():
            if lead.id == lead_id:
                return lead
        return None

    async def create(self, request: LeadWrite) -> Optional[Lead]:
        logger.info("Creating lead for %s", request.first_name)
        payload = request.to_payload()
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return Lead.model_validate(await self._repository.create(payload))

        response = require_success(
            await self._client.post(routes.LEADS_CREATE, payload), "Failed to create lead"
        )
        return parse_record(response.data, Lead)

    async def update(
        self, lead_id: str, request: Union[LeadWrite, Dict[str, Any]]
    ) -> Optional[Lead]:
        logger.info("Updating lead %s", lead_id)
        payload = request.to_payload() if isinstance(request, LeadWrite) else dict(request)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._repository.update(lead_id, payload)
            if record is None:
                raise DownstreamServiceError(f"Lead {lead_id} not found", status_code=404)
            return Lead.model_validate(record)

        response = require_success(
            await self._client.put(routes.LEADS_UPDATE.format(lead_id=lead_id), payload),
            "Failed to update lead",
        )
        return parse_record(response.data, Lead)

    async def delete(self, lead_id: str) -> ApiResponse:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if await self._repository.delete(lead_id):
                return ApiResponse.ok({"deleted": lead_id})
            return ApiResponse.fail(f"Lead {lead_id} not found", status=404)

        return await self._client.delete(routes.LEADS_DELETE.format(lead_id=lead_id))

    async def delete_many(self, lead_ids: Sequence[str]) -> BatchDeleteResult:
        """Delete leads concurrently; failures are counted, successes stay deleted."""

        unique_ids = list(dict.fromkeys(lead_ids))
        logger.info("Deleting %d lead(s)", len(unique_ids))
        outcomes = await asyncio.gather(
            *(self.delete(lead_id) for lead_id in unique_ids), return_exceptions=True
        )
        deleted: List[str] = []
        failed: List[str] = []
        for lead_id, outcome in zip(unique_ids, outcomes):
            if isinstance(outcome, ApiResponse) and outcome.success:
                deleted.append(lead_id)
            else:
                logger.warning("Delete failed for lead %s: %s", lead_id, _describe(outcome))
                failed.append(lead_id)

        message = f"{len(deleted)} lead(s) deleted successfully"
        if failed:
            message = f"Failed to delete {len(failed)} lead(s); {message}"
        return BatchDeleteResult(
            requested=len(unique_ids),
            deleted_ids=deleted,
            failed_ids=failed,
            message=message,
        )

    async def assign(self, lead_ids: Sequence[str], salesperson: Salesperson) -> int:
        """Point leads at a salesperson by id, keeping the username for older readers."""

        logger.info("Assigning %d lead(s) to %s", len(lead_ids), salesperson.username)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return await self._repository.assign(lead_ids, salesperson.id, salesperson.username)

        payload = {
            "leadIds": list(lead_ids),
            "salespersonId": salesperson.id,
            "salesperson": salesperson.username,
        }
        response = require_success(
            await self._client.post(routes.LEADS_ASSIGN, payload), "Failed to assign leads"
        )
        data = response.data if isinstance(response.data, dict) else {}
        count = data.get("modifiedCount", data.get("updated"))
        return count if isinstance(count, int) else len(lead_ids)

    async def add_tag(self, lead_id: str, tag: Union[TagRef, str]) -> Optional[Lead]:
        lead = await self._require_lead(lead_id)
        if tag in lead.tags:
            return lead
        return await self.update(lead_id, {"tags": _dump_tags([*lead.tags, tag])})

    async def remove_tag(self, lead_id: str, tag: Union[TagRef, str]) -> Optional[Lead]:
        lead = await self._require_lead(lead_id)
        remaining = [item for item in lead.tags if item != tag]
        if len(remaining) == len(lead.tags):
            return lead
        return await self.update(lead_id, {"tags": _dump_tags(remaining)})

    async def _require_lead(self, lead_id: str) -> Lead:
        lead = await self.get(lead_id)
        if lead is None:
            raise DownstreamServiceError(f"Lead {lead_id} not found", status_code=404)
        return lead


def _dump_tags(tags: Sequence[Union[TagRef, str]]) -> List[Any]:
    return [tag if isinstance(tag, str) else tag.model_dump(mode="json") for tag in tags]


def _describe(outcome: Any) -> str:
    if isinstance(outcome, ApiResponse):
        return outcome.error or "unknown error"
    return repr(outcome)
