from fastapi import APIRouter, Depends

from crm_app.dependencies.services import get_comment_service
from crm_app.services import CommentService
from crm_app.services.exceptions import ServiceError
from crm_app.views.errors import to_http_exception

router = APIRouter()


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: str,
    service: CommentService = Depends(get_comment_service),
):
    try:
        await service.delete(comment_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
