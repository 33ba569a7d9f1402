import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.db import get_session
from frontdesk.core.security import get_principal, require_scopes, Principal
from frontdesk.modules.assignments.schemas import (
    AssignmentCreate, AssignMany, AssignManyResult, AssignmentOut, StaffAssignmentsOut,
)
from frontdesk.modules.assignments.service import AssignmentLedger

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AssignmentLedger:
    return AssignmentLedger(session)

@router.post("", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_scopes("schedules:write"))])
async def assign(
    payload: AssignmentCreate,
    principal: Principal = Depends(get_principal),
    ledger: AssignmentLedger = Depends(svc),
):
    obj = await ledger.assign(principal.org_id, payload.schedule_id, payload.staff_id)
    return AssignmentOut(id=obj.id, schedule_id=obj.schedule_id, staff_id=obj.staff_id, schedule_info=obj.schedule_info)

@router.post("/bulk", response_model=AssignManyResult, dependencies=[Depends(require_scopes("schedules:write"))])
async def assign_many(
    payload: AssignMany,
    principal: Principal = Depends(get_principal),
    ledger: AssignmentLedger = Depends(svc),
):
    return await ledger.assign_many(principal.org_id, payload.pairs)

@router.get("", response_model=list[StaffAssignmentsOut], dependencies=[Depends(require_scopes("schedules:read"))])
async def assigned_overview(
    principal: Principal = Depends(get_principal),
    ledger: AssignmentLedger = Depends(svc),
):
    return await ledger.list_all(principal.org_id)

@router.get("/staff/{staff_id}", response_model=list[AssignmentOut], dependencies=[Depends(require_scopes("schedules:read"))])
async def list_for_staff(
    staff_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    ledger: AssignmentLedger = Depends(svc),
):
    return await ledger.list_by_staff(principal.org_id, staff_id)

@router.post("/{assignment_id}/refresh", response_model=AssignmentOut, dependencies=[Depends(require_scopes("schedules:write"))])
async def refresh_assignment(
    assignment_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    ledger: AssignmentLedger = Depends(svc),
):
    out = await ledger.refresh(principal.org_id, assignment_id)
    if not out:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return out

@router.delete("/{assignment_id}", status_code=204, dependencies=[Depends(require_scopes("schedules:write"))])
async def unassign(
    assignment_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    ledger: AssignmentLedger = Depends(svc),
):
    ok = await ledger.unassign(principal.org_id, assignment_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return
