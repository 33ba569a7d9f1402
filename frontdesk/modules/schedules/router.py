import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.db import get_session
from frontdesk.core.security import get_principal, require_scopes, Principal
from frontdesk.modules.schedules.schemas import (
    ScheduleCreate, ScheduleUpdate, ScheduleToggle, ScheduleOut, ScheduleGroupOut,
)
from frontdesk.modules.schedules.service import ScheduleService, to_out

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> ScheduleService:
    return ScheduleService(session)

@router.post("", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_scopes("schedules:write"))])
async def create_schedule(
    payload: ScheduleCreate,
    principal: Principal = Depends(get_principal),
    service: ScheduleService = Depends(svc),
):
    return to_out(await service.create(principal.org_id, payload))

@router.get("", response_model=list[ScheduleGroupOut], dependencies=[Depends(require_scopes("schedules:read"))])
async def list_schedules(
    principal: Principal = Depends(get_principal),
    service: ScheduleService = Depends(svc),
):
    return await service.list_grouped(principal.org_id)

@router.get("/{schedule_id}", response_model=ScheduleOut, dependencies=[Depends(require_scopes("schedules:read"))])
async def get_schedule(
    schedule_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: ScheduleService = Depends(svc),
):
    obj = await service.get(principal.org_id, schedule_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")
    return to_out(obj)

@router.patch("/{schedule_id}", response_model=ScheduleOut, dependencies=[Depends(require_scopes("schedules:write"))])
async def update_schedule(
    schedule_id: uuid.UUID,
    payload: ScheduleUpdate,
    principal: Principal = Depends(get_principal),
    service: ScheduleService = Depends(svc),
):
    obj = await service.update(principal.org_id, schedule_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return to_out(obj)

@router.post("/{schedule_id}/availability", response_model=ScheduleOut,
             dependencies=[Depends(require_scopes("schedules:write"))])
async def set_schedule_availability(
    schedule_id: uuid.UUID,
    payload: ScheduleToggle,
    principal: Principal = Depends(get_principal),
    service: ScheduleService = Depends(svc),
):
    obj = await service.set_available(principal.org_id, schedule_id, payload.available)
    if not obj:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return to_out(obj)

@router.post("/{schedule_id}/toggle", response_model=ScheduleOut, dependencies=[Depends(require_scopes("schedules:write"))])
async def toggle_schedule(
    schedule_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: ScheduleService = Depends(svc),
):
    obj = await service.toggle(principal.org_id, schedule_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return to_out(obj)

@router.delete("/{schedule_id}", status_code=204, dependencies=[Depends(require_scopes("schedules:write"))])
async def delete_schedule(
    schedule_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: ScheduleService = Depends(svc),
):
    ok = await service.delete(principal.org_id, schedule_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return
