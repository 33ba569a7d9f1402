import uuid
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.db import get_session
from frontdesk.core.security import get_principal, require_scopes, Principal
from frontdesk.modules.appointments.schemas import (
    AppointmentCreate, AppointmentStatusChange, AppointmentCancel, AppointmentOut,
)
from frontdesk.modules.appointments.service import AppointmentService, to_out

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AppointmentService:
    return AppointmentService(session)

@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_scopes("appointments:write"))])
async def create_appointment(
    payload: AppointmentCreate,
    principal: Principal = Depends(get_principal),
    service: AppointmentService = Depends(svc),
):
    obj = await service.create(principal.org_id, payload, created_by=str(principal.user_id))
    return to_out(obj)

@router.get("", response_model=list[AppointmentOut], dependencies=[Depends(require_scopes("appointments:read"))])
async def list_appointments(
    staff_id: uuid.UUID,
    start: date = Query(...),
    end: date = Query(...),
    principal: Principal = Depends(get_principal),
    service: AppointmentService = Depends(svc),
):
    return [to_out(a) for a in await service.list_for_staff(principal.org_id, staff_id, start, end)]

@router.get("/{appt_id}", response_model=AppointmentOut, dependencies=[Depends(require_scopes("appointments:read"))])
async def get_appointment(
    appt_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: AppointmentService = Depends(svc),
):
    obj = await service.get(principal.org_id, appt_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return to_out(obj)

@router.post("/{appt_id}/status", response_model=AppointmentOut, dependencies=[Depends(require_scopes("appointments:write"))])
async def change_status(
    appt_id: uuid.UUID,
    payload: AppointmentStatusChange,
    principal: Principal = Depends(get_principal),
    service: AppointmentService = Depends(svc),
):
    return to_out(await service.change_status(principal.org_id, appt_id, payload.status))

@router.post("/{appt_id}/cancel", response_model=AppointmentOut, dependencies=[Depends(require_scopes("appointments:write"))])
async def cancel_appointment(
    appt_id: uuid.UUID,
    payload: AppointmentCancel,
    principal: Principal = Depends(get_principal),
    service: AppointmentService = Depends(svc),
):
    return to_out(await service.cancel(principal.org_id, appt_id, payload.reason))

@router.delete("/{appt_id}", status_code=204, dependencies=[Depends(require_scopes("appointments:write"))])
async def delete_appointment(
    appt_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: AppointmentService = Depends(svc),
):
    ok = await service.delete(principal.org_id, appt_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return
