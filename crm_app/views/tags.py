from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from crm_app.dependencies.services import get_inflight_guard, get_tag_service
from crm_app.schemas.lead import TagSource
from crm_app.schemas.tag import Tag, TagDeleteResult, TagWrite
from crm_app.services import TagService
from crm_app.services.exceptions import ServiceError, ValidationFailure
from crm_app.services.inflight import InFlightGuard
from crm_app.views.errors import to_http_exception

router = APIRouter()


async def _lookup(service: TagService, tag_id: str, source: TagSource) -> Tag:
    if source != TagSource.crm:
        raise to_http_exception(ValidationFailure(f"Tags from {source.value} are read-only"))
    tag = await service.find(tag_id)
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.get("", response_model=List[Tag])
async def list_tags(
    customer_id: Optional[str] = Query(None, description="Include WhatsApp tags for this customer"),
    service: TagService = Depends(get_tag_service),
):
    tags = await service.list()
    if customer_id:
        tags.extend(await service.list_whatsapp(customer_id))
    return tags


@router.post("", response_model=Optional[Tag], status_code=201)
async def create_tag(
    req: TagWrite,
    service: TagService = Depends(get_tag_service),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    try:
        async with guard.hold("tags.create"):
            return await service.create(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{tag_id}", response_model=Optional[Tag])
async def update_tag(
    tag_id: str,
    req: TagWrite,
    source: TagSource = Query(TagSource.crm),
    service: TagService = Depends(get_tag_service),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    tag = await _lookup(service, tag_id, source)
    try:
        async with guard.hold(f"tags.update.{tag_id}"):
            return await service.update(tag, req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{tag_id}", response_model=TagDeleteResult)
async def delete_tag(
    tag_id: str,
    source: TagSource = Query(TagSource.crm),
    service: TagService = Depends(get_tag_service),
):
    tag = await _lookup(service, tag_id, source)
    try:
        return await service.delete(tag)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
