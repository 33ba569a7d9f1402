import uuid
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.db import get_session
from frontdesk.core.security import get_principal, require_scopes, Principal
from frontdesk.modules.availability.schemas import SlotsOut, CalendarDay, TimeCheckOut
from frontdesk.modules.availability.service import AvailabilityCalculator

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AvailabilityCalculator:
    return AvailabilityCalculator(session)

@router.get("/{staff_id}/slots", response_model=SlotsOut, dependencies=[Depends(require_scopes("appointments:read"))])
async def get_slots(
    staff_id: uuid.UUID,
    day: date = Query(..., alias="date"),
    service_id: uuid.UUID | None = None,
    principal: Principal = Depends(get_principal),
    calc: AvailabilityCalculator = Depends(svc),
):
    slots = await calc.slots(principal.org_id, staff_id, day, service_id)
    return SlotsOut(staff_id=staff_id, date=day, slots=slots)

@router.get("/{staff_id}/calendar", response_model=list[CalendarDay], dependencies=[Depends(require_scopes("appointments:read"))])
async def get_month_calendar(
    staff_id: uuid.UUID,
    year: int,
    month: int,
    service_id: uuid.UUID | None = None,
    principal: Principal = Depends(get_principal),
    calc: AvailabilityCalculator = Depends(svc),
):
    return await calc.month_calendar(principal.org_id, staff_id, year, month, service_id)

@router.get("/{staff_id}/check", response_model=TimeCheckOut, dependencies=[Depends(require_scopes("appointments:read"))])
async def check_time(
    staff_id: uuid.UUID,
    day: date = Query(..., alias="date"),
    at: str = Query(..., alias="time"),
    service_id: uuid.UUID | None = None,
    principal: Principal = Depends(get_principal),
    calc: AvailabilityCalculator = Depends(svc),
):
    return await calc.check_time(principal.org_id, staff_id, day, at, service_id)
