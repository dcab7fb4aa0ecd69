from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Set

from crm_app.services.exceptions import DuplicateSubmission


class InFlightGuard:
    """Reject a write while an identical one is still awaiting the CRM API.

    Requests share one event loop, so a plain set is enough to track keys.
    """

    def __init__(self) -> None:
        self._active: Set[str] = set()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        if key in self._active:
            raise DuplicateSubmission(f"{key} is already in progress")
        self._active.add(key)
        try:
            yield
        finally:
            self._active.discard(key)
