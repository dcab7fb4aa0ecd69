from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from crm_app.config import Settings, get_settings
from crm_app.dependencies.services import (
    get_comment_service,
    get_inflight_guard,
    get_lead_service,
    get_salesperson_service,
    get_tag_service,
)
from crm_app.schemas.comment import Comment, CommentCreate, LeadDetail
from crm_app.schemas.lead import (
    AssignRequest,
    BatchDeleteRequest,
    BatchDeleteResponse,
    Lead,
    LeadListRequest,
    LeadListResponse,
    LeadTagRequest,
    LeadWrite,
    LeadWriteResponse,
    SortOrder,
    StatusFilter,
)
from crm_app.services import CommentService, LeadService, SalespersonService, TagService
from crm_app.services.aggregation import (
    apply_status_filter,
    distinct_values,
    filter_leads,
    status_filter_counts,
)
from crm_app.services.comments import latest_comment
from crm_app.services.exceptions import ServiceError
from crm_app.services.export import comments_to_csv, leads_to_csv
from crm_app.services.inflight import InFlightGuard
from crm_app.services.tags import resolve_lead_tags
from crm_app.views.errors import to_http_exception

router = APIRouter()


def list_criteria(
    product: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort_order: SortOrder = Query(SortOrder.ascending),
    filter: Optional[StatusFilter] = Query(None),
) -> LeadListRequest:
    return LeadListRequest(
        product=product,
        status=status,
        search=search,
        sort_order=sort_order,
        filter=filter,
    )


def _select(leads: List[Lead], criteria: LeadListRequest) -> List[Lead]:
    return filter_leads(
        apply_status_filter(leads, criteria.filter),
        product=criteria.product,
        status=criteria.status,
        search=criteria.search,
        sort_order=criteria.sort_order,
    )


@router.get("", response_model=LeadListResponse)
async def list_leads(
    criteria: LeadListRequest = Depends(list_criteria),
    service: LeadService = Depends(get_lead_service),
):
    leads = await service.list_all()
    items = _select(leads, criteria)
    return LeadListResponse(
        total=len(items),
        items=items,
        products=distinct_values(leads, "product"),
        statuses=distinct_values(leads, "lead_status"),
        filter_counts=status_filter_counts(leads),
    )


@router.get("/export.csv")
async def export_leads(
    criteria: LeadListRequest = Depends(list_criteria),
    service: LeadService = Depends(get_lead_service),
    tags: TagService = Depends(get_tag_service),
):
    items = _select(await service.list_all(), criteria)
    if not items:
        raise HTTPException(status_code=404, detail="No leads to export!")
    return Response(
        content=leads_to_csv(items, await tags.list()),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="leads_export.csv"'},
    )


@router.post("", response_model=LeadWriteResponse, status_code=201)
async def create_lead(
    req: LeadWrite,
    service: LeadService = Depends(get_lead_service),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    try:
        async with guard.hold("leads.create"):
            lead = await service.create(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return LeadWriteResponse(lead=lead, leads=await service.list_all())


@router.post("/delete", response_model=BatchDeleteResponse)
async def delete_leads(
    req: BatchDeleteRequest,
    service: LeadService = Depends(get_lead_service),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    try:
        async with guard.hold("leads.delete"):
            result = await service.delete_many(req.ids)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return BatchDeleteResponse(result=result, leads=await service.list_all())


@router.post("/assign")
async def assign_leads(
    req: AssignRequest,
    service: LeadService = Depends(get_lead_service),
    salespersons: SalespersonService = Depends(get_salesperson_service),
):
    salesperson = await salespersons.get(req.salesperson_id)
    if salesperson is None:
        raise HTTPException(status_code=404, detail="Salesperson not found")
    try:
        updated = await service.assign(req.lead_ids, salesperson)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return {"updated": updated, "salesperson": salesperson.username}


@router.get("/{lead_id}", response_model=LeadDetail)
async def get_lead(
    lead_id: str,
    service: LeadService = Depends(get_lead_service),
    comments: CommentService = Depends(get_comment_service),
    tags: TagService = Depends(get_tag_service),
    settings: Settings = Depends(get_settings),
):
    lead = await service.get(lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    lead_comments = await comments.list(lead_id)
    return LeadDetail(
        lead=lead,
        comments=lead_comments,
        latest_comment=latest_comment(lead_comments),
        tags=resolve_lead_tags(lead, await tags.list(), default_color=settings.default_tag_color),
    )


@router.put("/{lead_id}", response_model=LeadWriteResponse)
async def update_lead(
    lead_id: str,
    req: LeadWrite,
    service: LeadService = Depends(get_lead_service),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    try:
        async with guard.hold(f"leads.update.{lead_id}"):
            lead = await service.update(lead_id, req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return LeadWriteResponse(lead=lead, leads=await service.list_all())


@router.delete("/{lead_id}", response_model=BatchDeleteResponse)
async def delete_lead(
    lead_id: str,
    service: LeadService = Depends(get_lead_service),
):
    result = await service.delete_many([lead_id])
    if result.failed_ids:
        raise HTTPException(status_code=502, detail=result.message)
    return BatchDeleteResponse(result=result, leads=await service.list_all())


@router.post("/{lead_id}/tags", response_model=Optional[Lead])
async def add_lead_tag(
    lead_id: str,
    req: LeadTagRequest,
    service: LeadService = Depends(get_lead_service),
):
    try:
        return await service.add_tag(lead_id, req.tag)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{lead_id}/tags/remove", response_model=Optional[Lead])
async def remove_lead_tag(
    lead_id: str,
    req: LeadTagRequest,
    service: LeadService = Depends(get_lead_service),
):
    try:
        return await service.remove_tag(lead_id, req.tag)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{lead_id}/comments", response_model=List[Comment])
async def list_comments(
    lead_id: str,
    service: CommentService = Depends(get_comment_service),
):
    return await service.list(lead_id)


@router.post("/{lead_id}/comments", response_model=List[Comment], status_code=201)
async def add_comment(
    lead_id: str,
    req: CommentCreate,
    service: CommentService = Depends(get_comment_service),
):
    try:
        await service.add(lead_id, req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return await service.list(lead_id)


@router.get("/{lead_id}/comments/export.csv")
async def export_comments(
    lead_id: str,
    service: CommentService = Depends(get_comment_service),
):
    return Response(
        content=comments_to_csv(await service.list(lead_id)),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="comments_{lead_id}.csv"'},
    )
