import asyncio
import uuid
import logging
from datetime import date, datetime
from typing import Awaitable, Callable, TypeVar
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.clock import Clock, clinic_now
from frontdesk.core.config import settings
from frontdesk.core.errors import NotFoundError
from frontdesk.modules.appointments.schemas import AppointmentCreate
from frontdesk.modules.appointments.service import AppointmentService
from frontdesk.modules.availability.service import AvailabilityCalculator
from frontdesk.modules.booking.identity import format_document
from frontdesk.modules.booking.schemas import BookingStateOut
from frontdesk.modules.booking.store import BookingSessionStore
from frontdesk.modules.booking.wizard import BookingWizard, WizardState
from frontdesk.modules.directory.repository import DirectoryRepository
from frontdesk.platform.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)

T = TypeVar("T")

class DatabaseBackend:
    """BookingBackend over the clinic's own tables, scoped to one org."""

    def __init__(self, session: AsyncSession, org_id: uuid.UUID, *, clock: Clock = clinic_now, notifier: NotifierPort | None = None):
        self.session = session
        self.org_id = org_id
        self.directory = DirectoryRepository(session)
        self.calculator = AvailabilityCalculator(session, clock=clock)
        self.appointments = AppointmentService(session, clock=clock, notifier=notifier)

    async def find_patient(self, document: str) -> dict | None:
        p = await self.directory.find_patient_by_document(self.org_id, document)
        if p is None:
            return None
        return {"id": str(p.id), "name": p.name, "phone": p.phone}

    async def save_phone(self, patient_id: str, phone: str) -> None:
        p = await self.directory.update_patient_phone(self.org_id, uuid.UUID(patient_id), phone)
        if p is None:
            raise NotFoundError("patient", patient_id)
        await self.session.commit()

    async def list_staff(self) -> list[dict]:
        return [{"id": str(s.id), "name": s.display_name} for s in await self.directory.list_active_staff(self.org_id)]

    async def list_services(self, staff_id: str) -> list[dict]:
        services = await self.directory.list_services_for_staff(self.org_id, uuid.UUID(staff_id))
        return [
            {"id": str(s.id), "name": s.name, "duration_minutes": s.duration_minutes, "price": float(s.price or 0)}
            for s in services
        ]

    async def slots(self, staff_id: str, day: date, service_id: str | None) -> list[str]:
        return await self.calculator.slots(
            self.org_id, uuid.UUID(staff_id), day, uuid.UUID(service_id) if service_id else None
        )

    async def month_calendar(self, staff_id: str, year: int, month: int, service_id: str | None) -> list[dict]:
        days = await self.calculator.month_calendar(
            self.org_id, uuid.UUID(staff_id), year, month, uuid.UUID(service_id) if service_id else None
        )
        return [d.model_dump(mode="json") for d in days]

    async def create_appointment(self, state: WizardState, notes: str | None) -> str:
        scheduled_at = datetime.combine(
            date.fromisoformat(state.selected_date),
            datetime.strptime(state.selected_time, "%H:%M").time(),
        )
        payload = AppointmentCreate(
            staff_id=uuid.UUID(state.staff_id),
            service_id=uuid.UUID(state.service_id) if state.service_id else None,
            patient_id=uuid.UUID(state.patient_id) if state.patient_id else None,
            patient_name=state.patient_name,
            patient_phone=state.patient_phone,
            patient_document=state.document,
            scheduled_at=scheduled_at,
            notes=notes,
            lmp_date=date.fromisoformat(state.lmp_date) if state.lmp_date else None,
        )
        appt = await self.appointments.create(self.org_id, payload, created_by="public")
        return str(appt.id)

def to_out(state: WizardState) -> BookingStateOut:
    data = state.to_dict()
    data["document"] = format_document(state.document) if state.document else None
    return BookingStateOut(**{k: v for k, v in data.items() if k in BookingStateOut.model_fields})

class BookingService:
    """Loads a parked wizard session, runs one action on it and parks it again."""

    def __init__(
        self,
        session: AsyncSession,
        store: BookingSessionStore,
        *,
        org_id: uuid.UUID | None = None,
        clock: Clock = clinic_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        notifier: NotifierPort | None = None,
    ):
        self.store = store
        self.clock = clock
        self.sleep = sleep
        self.backend = DatabaseBackend(
            session, org_id or uuid.UUID(settings.DEFAULT_ORG_ID), clock=clock, notifier=notifier
        )

    async def start(self) -> WizardState:
        state = WizardState(session_id=uuid.uuid4().hex)
        await self.store.save(state)
        logger.info(f"Booking session {state.session_id} started")
        return state

    async def load(self, session_id: str) -> WizardState:
        state = await self.store.load(session_id)
        if state is None:
            raise NotFoundError("booking session", session_id)
        return state

    def wizard(self, state: WizardState) -> BookingWizard:
        return BookingWizard(state, self.backend, clock=self.clock, sleep=self.sleep)

    async def run(self, session_id: str, action: Callable[[BookingWizard], Awaitable[T]]) -> tuple[WizardState, T]:
        state = await self.load(session_id)
        try:
            result = await action(self.wizard(state))
        finally:
            # attempt counters and conflict messages must survive a failed action
            await self.store.save(state)
        return state, result
