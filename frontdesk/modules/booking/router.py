from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.db import get_session
from frontdesk.modules.booking.schemas import (
    BookingStateOut, ConfirmIn, DateChoice, IdentityIn, LmpIn, ObstetricPreview,
    PhoneIn, ServiceChoice, StaffChoice, TimeChoice,
)
from frontdesk.modules.booking.service import BookingService, to_out
from frontdesk.modules.booking.store import BookingSessionStore, get_store

# public, unauthenticated
router = APIRouter()

def svc(
    session: AsyncSession = Depends(get_session),
    store: BookingSessionStore = Depends(get_store),
) -> BookingService:
    return BookingService(session, store)

@router.post("/sessions", response_model=BookingStateOut, status_code=status.HTTP_201_CREATED)
async def start_session(service: BookingService = Depends(svc)):
    return to_out(await service.start())

@router.get("/sessions/{session_id}", response_model=BookingStateOut)
async def get_session_state(session_id: str, service: BookingService = Depends(svc)):
    return to_out(await service.load(session_id))

@router.post("/sessions/{session_id}/identity", response_model=BookingStateOut)
async def submit_identity(session_id: str, payload: IdentityIn, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.submit_identity(payload.document))
    return to_out(state)

@router.post("/sessions/{session_id}/phone", response_model=BookingStateOut)
async def save_phone(session_id: str, payload: PhoneIn, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.save_phone(payload.phone))
    return to_out(state)

@router.post("/sessions/{session_id}/proceed", response_model=BookingStateOut)
async def proceed(session_id: str, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.proceed())
    return to_out(state)

@router.post("/sessions/{session_id}/staff", response_model=BookingStateOut)
async def select_staff(session_id: str, payload: StaffChoice, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.select_staff(str(payload.staff_id)))
    return to_out(state)

@router.post("/sessions/{session_id}/service", response_model=BookingStateOut)
async def select_service(session_id: str, payload: ServiceChoice, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.select_service(str(payload.service_id)))
    return to_out(state)

@router.get("/sessions/{session_id}/obstetric/preview", response_model=ObstetricPreview)
async def preview_obstetric(session_id: str, lmp: str = Query(...), service: BookingService = Depends(svc)):
    data = service.wizard(await service.load(session_id)).preview_lmp(lmp)
    if data is None:
        return ObstetricPreview(complete=False)
    return ObstetricPreview(
        complete=True, weeks=data.weeks, days=data.days,
        gestational_age=data.gestational_age, estimated_delivery_date=data.estimated_delivery_date,
    )

@router.post("/sessions/{session_id}/obstetric", response_model=BookingStateOut)
async def submit_obstetric(session_id: str, payload: LmpIn, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.submit_lmp(payload.lmp))
    return to_out(state)

@router.get("/sessions/{session_id}/calendar")
async def month_calendar(session_id: str, year: int, month: int, service: BookingService = Depends(svc)):
    _, days = await service.run(session_id, lambda w: w.month_calendar(year, month))
    return days

@router.post("/sessions/{session_id}/date", response_model=BookingStateOut)
async def select_date(session_id: str, payload: DateChoice, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.select_date(payload.date))
    return to_out(state)

@router.post("/sessions/{session_id}/time", response_model=BookingStateOut)
async def select_time(session_id: str, payload: TimeChoice, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.select_time(payload.time))
    return to_out(state)

@router.post("/sessions/{session_id}/confirm", response_model=BookingStateOut)
async def confirm(session_id: str, payload: ConfirmIn, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, lambda w: w.commit(payload.notes))
    return to_out(state)

async def _back(w):
    return w.back()

async def _abandon(w):
    return w.abandon()

@router.post("/sessions/{session_id}/back", response_model=BookingStateOut)
async def go_back(session_id: str, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, _back)
    return to_out(state)

@router.post("/sessions/{session_id}/abandon", response_model=BookingStateOut)
async def abandon(session_id: str, service: BookingService = Depends(svc)):
    state, _ = await service.run(session_id, _abandon)
    return to_out(state)
