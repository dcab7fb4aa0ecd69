from typing import List

from fastapi import APIRouter, Depends

from crm_app.dependencies.services import get_reference_service
from crm_app.schemas.reference import ReferenceItem, ReferenceKind, ReferenceWrite
from crm_app.services import ReferenceService
from crm_app.services.exceptions import ServiceError
from crm_app.views.errors import to_http_exception

router = APIRouter()


@router.get("/{kind}", response_model=List[ReferenceItem])
async def list_items(
    kind: ReferenceKind,
    service: ReferenceService = Depends(get_reference_service),
):
    return await service.list(kind)


@router.post("/{kind}", response_model=List[ReferenceItem], status_code=201)
async def create_item(
    kind: ReferenceKind,
    req: ReferenceWrite,
    service: ReferenceService = Depends(get_reference_service),
):
    try:
        await service.create(kind, req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return await service.list(kind)


@router.put("/{kind}/{item_id}", response_model=List[ReferenceItem])
async def update_item(
    kind: ReferenceKind,
    item_id: str,
    req: ReferenceWrite,
    service: ReferenceService = Depends(get_reference_service),
):
    try:
        await service.update(kind, item_id, req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return await service.list(kind)


@router.delete("/{kind}/{item_id}", response_model=List[ReferenceItem])
async def delete_item(
    kind: ReferenceKind,
    item_id: str,
    service: ReferenceService = Depends(get_reference_service),
):
    try:
        await service.delete(kind, item_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return await service.list(kind)
