from __future__ import annotations

import logging
from typing import Dict, List, Optional

from crm_app.clients import routes
from crm_app.clients.crm_api import CrmApiClient
from crm_app.schemas.reference import ReferenceItem, ReferenceKind, ReferenceWrite
from crm_app.services.aggregation import parse_collection
from crm_app.services.exceptions import DownstreamServiceError, ValidationFailure
from crm_app.services.mock_store import ReferenceRepository, get_mock_store
from crm_app.services.responses import parse_record, require_success

logger = logging.getLogger(__name__)


class ReferenceService:
    """Categories, products, lead sources and lead statuses."""

    def __init__(
        self,
        client: CrmApiClient,
        *,
        repositories: Dict[ReferenceKind, ReferenceRepository] | None = None,
    ) -> None:
        self._client = client
        self._repositories = repositories
        if self._client.use_mock_data:
            self._repositories = repositories or get_mock_store().reference

    async def list(self, kind: ReferenceKind) -> List[ReferenceItem]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return parse_collection(await self._repositories[kind].list(), ReferenceItem)

        response = await self._client.get(
            routes.MANAGE_ITEMS_LIST.format(kind=kind.value, plural=kind.plural)
        )
        if not response.success:
            logger.warning("Failed to fetch %s: %s", kind.value, response.error)
            return []
        return parse_collection(response.data, ReferenceItem)

    async def names(self, kind: ReferenceKind) -> List[str]:
        return [item.name for item in await self.list(kind)]

    async def create(self, kind: ReferenceKind, request: ReferenceWrite) -> Optional[ReferenceItem]:
        payload = _payload(kind, request)
        logger.info("Creating %s %s", kind.singular, payload["name"])
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return ReferenceItem.model_validate(await self._repositories[kind].create(payload))

        response = require_success(
            await self._client.post(
                routes.MANAGE_ITEMS_CREATE.format(kind=kind.value, singular=kind.singular),
                payload,
            ),
            f"Failed to create {kind.singular}",
        )
        return parse_record(response.data, ReferenceItem)

    async def update(
        self, kind: ReferenceKind, item_id: str, request: ReferenceWrite
    ) -> Optional[ReferenceItem]:
        payload = _payload(kind, request)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._repositories[kind].update(item_id, payload)
            if record is None:
                raise DownstreamServiceError(f"{kind.singular} {item_id} not found", status_code=404)
            return ReferenceItem.model_validate(record)

        response = require_success(
            await self._client.put(
                routes.MANAGE_ITEMS_UPDATE.format(
                    kind=kind.value, singular=kind.singular, item_id=item_id
                ),
                payload,
            ),
            f"Failed to update {kind.singular}",
        )
        return parse_record(response.data, ReferenceItem)

    async def delete(self, kind: ReferenceKind, item_id: str) -> None:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not await self._repositories[kind].delete(item_id):
                raise DownstreamServiceError(f"{kind.singular} {item_id} not found", status_code=404)
            return

        require_success(
            await self._client.delete(
                routes.MANAGE_ITEMS_DELETE.format(
                    kind=kind.value, singular=kind.singular, item_id=item_id
                )
            ),
            f"Failed to delete {kind.singular}",
        )


def _payload(kind: ReferenceKind, request: ReferenceWrite) -> dict:
    name = request.name.strip()
    if not name:
        raise ValidationFailure(f"{kind.singular.replace('-', ' ').capitalize()} name is required")
    return {"name": name}
