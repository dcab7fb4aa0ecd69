from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from crm_app.schemas.envelope import ApiResponse
from crm_app.services.exceptions import DownstreamServiceError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_RECORD_KEYS = ("data", "lead", "tag", "salesperson", "comment", "item", "result")


def require_success(response: ApiResponse, message: str) -> ApiResponse:
    """Turn a failed write envelope into a :class:`DownstreamServiceError`."""

    if not response.success:
        detail = f"{message}: {response.error}" if response.error else message
        raise DownstreamServiceError(detail, status_code=response.status)
    return response


def extract_record(data: Any, keys: Iterable[str] = _RECORD_KEYS) -> Optional[Dict[str, Any]]:
    """Find the entity dict in a write response, which may wrap it under a key."""

    if not isinstance(data, dict):
        return None
    for key in keys:
        nested = data.get(key)
        if isinstance(nested, dict):
            return nested
    if "_id" in data or "id" in data:
        return data
    return None


def parse_record(data: Any, model: Type[ModelT]) -> Optional[ModelT]:
    record = extract_record(data)
    if record is None:
        return None
    try:
        return model.model_validate(record)
    except ValidationError as exc:
        logger.debug("Response did not contain a valid %s: %s", model.__name__, exc)
        return None
