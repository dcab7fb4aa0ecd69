from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from crm_app.clients import routes
from crm_app.clients.crm_api import CrmApiClient
from crm_app.schemas.comment import Comment, CommentCreate
from crm_app.services.aggregation import parse_collection
from crm_app.services.exceptions import DownstreamServiceError, ValidationFailure
from crm_app.services.mock_store import CommentRepository, get_mock_store
from crm_app.services.responses import parse_record, require_success

logger = logging.getLogger(__name__)


class CommentService:
    """Lead comments. The comment list is authoritative; previews derive from it."""

    def __init__(
        self,
        client: CrmApiClient,
        *,
        repository: CommentRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().comments

    async def list(self, lead_id: str) -> List[Comment]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            comments = parse_collection(await self._repository.list(lead_id), Comment)
        else:
            response = await self._client.get(routes.COMMENTS_LIST.format(lead_id=lead_id))
            if not response.success:
                logger.warning("Failed to fetch comments for lead %s: %s", lead_id, response.error)
                return []
            comments = parse_collection(response.data, Comment)
        return newest_first(comments)

    async def add(self, lead_id: str, request: CommentCreate) -> Optional[Comment]:
        text = request.text.strip()
        if not text:
            raise ValidationFailure("Please enter a comment")
        payload = {"leadId": lead_id, "text": text}
        if request.added_by:
            payload["addedBy"] = request.added_by
        if request.role:
            payload["role"] = request.role

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return Comment.model_validate(await self._repository.add(payload))

        response = require_success(
            await self._client.post(routes.COMMENTS_ADD, payload), "Failed to add comment"
        )
        return parse_record(response.data, Comment)

    async def delete(self, comment_id: str) -> None:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not await self._repository.delete(comment_id):
                raise DownstreamServiceError(f"Comment {comment_id} not found", status_code=404)
            return

        require_success(
            await self._client.delete(routes.COMMENTS_DELETE.format(comment_id=comment_id)),
            "Failed to delete comment",
        )


def newest_first(comments: Iterable[Comment]) -> List[Comment]:
    return sorted(comments, key=lambda comment: comment.created_at or datetime.min, reverse=True)


def latest_comment(comments: Iterable[Comment]) -> Optional[str]:
    ordered = newest_first(comments)
    return ordered[0].text if ordered else None
