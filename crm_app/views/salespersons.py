from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from crm_app.dependencies.services import get_inflight_guard, get_salesperson_service
from crm_app.schemas.salesperson import (
    EmailUpdate,
    PasswordUpdate,
    Salesperson,
    SalespersonCreate,
    SalespersonUpdate,
)
from crm_app.services import SalespersonService
from crm_app.services.exceptions import ServiceError
from crm_app.services.inflight import InFlightGuard
from crm_app.views.errors import to_http_exception

router = APIRouter()


@router.get("", response_model=List[Salesperson])
async def list_salespersons(service: SalespersonService = Depends(get_salesperson_service)):
    return await service.list()


@router.get("/{salesperson_id}", response_model=Salesperson)
async def get_salesperson(
    salesperson_id: str,
    service: SalespersonService = Depends(get_salesperson_service),
):
    salesperson = await service.get(salesperson_id)
    if salesperson is None:
        raise HTTPException(status_code=404, detail="Salesperson not found")
    return salesperson


@router.post("", response_model=Optional[Salesperson], status_code=201)
async def create_salesperson(
    req: SalespersonCreate,
    service: SalespersonService = Depends(get_salesperson_service),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    try:
        async with guard.hold(f"salespersons.create.{req.username}"):
            return await service.create(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{salesperson_id}", response_model=Optional[Salesperson])
async def update_salesperson(
    salesperson_id: str,
    req: SalespersonUpdate,
    service: SalespersonService = Depends(get_salesperson_service),
):
    try:
        return await service.update(salesperson_id, req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{salesperson_id}/email", response_model=Optional[Salesperson])
async def update_salesperson_email(
    salesperson_id: str,
    req: EmailUpdate,
    service: SalespersonService = Depends(get_salesperson_service),
):
    try:
        return await service.update_email(salesperson_id, req.email)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{salesperson_id}/password", status_code=204)
async def update_salesperson_password(
    salesperson_id: str,
    req: PasswordUpdate,
    service: SalespersonService = Depends(get_salesperson_service),
):
    try:
        await service.update_password(salesperson_id, req.password)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{salesperson_id}", status_code=204)
async def delete_salesperson(
    salesperson_id: str,
    service: SalespersonService = Depends(get_salesperson_service),
):
    try:
        await service.delete(salesperson_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
