from __future__ import annotations

import logging
from typing import List, Optional

from crm_app.clients import routes
from crm_app.clients.crm_api import CrmApiClient
from crm_app.schemas.salesperson import (
    Salesperson,
    SalespersonCreate,
    SalespersonUpdate,
)
from crm_app.services.aggregation import parse_collection
from crm_app.services.exceptions import DownstreamServiceError
from crm_app.services.mock_store import SalespersonRepository, get_mock_store
from crm_app.services.responses import parse_record, require_success

logger = logging.getLogger(__name__)


class SalespersonService:
    def __init__(
        self,
        client: CrmApiClient,
        *,
        repository: SalespersonRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().salespersons

    async def list(self) -> List[Salesperson]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return parse_collection(await self._repository.list(), Salesperson)

        response = await self._client.get(routes.SALESPERSONS_LIST)
        if not response.success:
            logger.warning("Failed to fetch salespersons: %s", response.error)
            return []
        return parse_collection(response.data, Salesperson)

    async def get(self, salesperson_id: str) -> Optional[Salesperson]:
        for salesperson in await self.list():
            if salesperson.id == salesperson_id:
                return salesperson
        return None

    async def create(self, request: SalespersonCreate) -> Optional[Salesperson]:
        logger.info("Creating salesperson %s", request.username)
        payload = request.model_dump(by_alias=True, exclude_none=True)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            try:
                record = await self._repository.create(payload)
            except ValueError as exc:
                raise DownstreamServiceError(str(exc), status_code=409, cause=exc) from exc
            return Salesperson.model_validate(record)

        response = require_success(
            await self._client.post(routes.SALESPERSONS_CREATE, payload),
            "Failed to create salesperson",
        )
        return parse_record(response.data, Salesperson)

    async def update(self, salesperson_id: str, request: SalespersonUpdate) -> Optional[Salesperson]:
        payload = request.model_dump(by_alias=True, exclude_none=True)
        return await self._update(
            salesperson_id,
            payload,
            routes.SALESPERSONS_UPDATE,
            "Failed to update salesperson",
        )

    async def update_email(self, salesperson_id: str, email: str) -> Optional[Salesperson]:
        return await self._update(
            salesperson_id,
            {"email": email},
            routes.SALESPERSONS_UPDATE_EMAIL,
            "Failed to update salesperson email",
        )

    async def update_password(self, salesperson_id: str, password: str) -> None:
        logger.info("Resetting password for salesperson %s", salesperson_id)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not await self._repository.set_password(salesperson_id, password):
                raise DownstreamServiceError(f"Salesperson {salesperson_id} not found", status_code=404)
            return

        require_success(
            await self._client.put(
                routes.SALESPERSONS_UPDATE_PASSWORD.format(salesperson_id=salesperson_id),
                {"password": password},
            ),
            "Failed to update salesperson password",
        )

    async def delete(self, salesperson_id: str) -> None:
        """Remove a salesperson; their leads keep pointing at the old id."""

        logger.info("Deleting salesperson %s", salesperson_id)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not await self._repository.delete(salesperson_id):
                raise DownstreamServiceError(f"Salesperson {salesperson_id} not found", status_code=404)
            return

        require_success(
            await self._client.delete(routes.SALESPERSONS_DELETE.format(salesperson_id=salesperson_id)),
            "Failed to delete salesperson",
        )

    async def _update(
        self, salesperson_id: str, payload: dict, route: str, message: str
    ) -> Optional[Salesperson]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = await self._repository.update(salesperson_id, payload)
            if record is None:
                raise DownstreamServiceError(f"Salesperson {salesperson_id} not found", status_code=404)
            return Salesperson.model_validate(record)

        response = require_success(
            await self._client.put(route.format(salesperson_id=salesperson_id), payload),
            message,
        )
        return parse_record(response.data, Salesperson)
