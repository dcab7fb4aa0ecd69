from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from crm_app.schemas.envelope import ApiResponse

logger = logging.getLogger(__name__)


class CrmApiClient:
    """Async HTTP client for the tenant-scoped CRM REST API.

    Every call resolves to an :class:`ApiResponse`; transport failures and
    error statuses are logged and folded into ``success=False`` envelopes so
    callers never see raw network exceptions.
    """

    def __init__(
        self,
        base_url: str | None,
        *,
        timeout: float = 10.0,
        use_mock_data: bool = True,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/") if base_url else None
        self._timeout = timeout
        self.use_mock_data = use_mock_data or not self._base_url
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        if not self.use_mock_data and self._base_url:
            self._client = self._build_client()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data or not self._base_url:
            raise RuntimeError("HTTP client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        *,
        payload: Dict[str, Any] | None = None,
        params: Dict[str, Any] | None = None,
    ) -> ApiResponse:
        if self.use_mock_data:
            raise RuntimeError("Real HTTP call requested while mock mode is enabled")
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, json=payload, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            message = _error_message(exc.response) or str(exc)
            if status == 401:
                logger.warning("CRM session expired or token rejected (%s %s)", method, path)
            else:
                logger.warning(
                    "CRM API returned %s for %s %s: %s", status, method, path, message
                )
            return ApiResponse.fail(message, status=status)
        except httpx.RequestError as exc:
            logger.warning("Unable to reach CRM API for %s %s: %s", method, path, exc)
            return ApiResponse.fail(str(exc) or exc.__class__.__name__)

        if not response.content:
            return ApiResponse.ok(None, status=response.status_code)
        try:
            body = response.json()
        except ValueError as exc:
            logger.warning("CRM API sent a non-JSON body for %s %s", method, path)
            return ApiResponse.fail(f"Invalid JSON response: {exc}", status=response.status_code)
        if isinstance(body, dict) and body.get("success") is False:
            return ApiResponse.fail(
                str(body.get("message") or body.get("error") or "Request failed"),
                status=response.status_code,
            )
        return ApiResponse.ok(body, status=response.status_code)

    async def get(self, path: str, params: Dict[str, Any] | None = None) -> ApiResponse:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: Dict[str, Any] | None = None) -> ApiResponse:
        return await self.request("POST", path, payload=payload)

    async def put(self, path: str, payload: Dict[str, Any] | None = None) -> ApiResponse:
        return await self.request("PUT", path, payload=payload)

    async def delete(self, path: str) -> ApiResponse:
        return await self.request("DELETE", path)

    async def simulate_latency(self) -> None:
        """Allow services to await for latency even when mocking responses."""

        await asyncio.sleep(0)


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        value = body.get("message") or body.get("error")
        return str(value) if value else None
    return None
