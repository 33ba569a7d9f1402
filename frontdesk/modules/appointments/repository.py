import uuid
from datetime import datetime
from typing import Sequence
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from frontdesk.core.errors import SlotUnavailableError
from frontdesk.core.retry import upstream_read
from frontdesk.modules.appointments.models import Appointment
from frontdesk.modules.appointments.status import ACTIVE_STATUSES, LEGACY_STATUSES, AppointmentStatus

# legacy rows count as active too until they are migrated
_ACTIVE_VALUES = tuple(ACTIVE_STATUSES) + tuple(
    k for k, v in LEGACY_STATUSES.items() if v in (AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS)
)

SLOT_INDEX = "uq_appointment_active_slot"

def is_slot_violation(e: IntegrityError) -> bool:
    """True when the violated constraint is the active-slot index, not a foreign key or NOT NULL."""
    msg = str(e.orig)
    # postgres names the index, sqlite lists its columns
    return SLOT_INDEX in msg or "appointment.staff_id, appointment.scheduled_at" in msg

class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> Appointment:
        """Insert-if-free: the partial unique index on (staff, time, active) is the final arbiter."""
        obj = Appointment(org_id=org_id, **data)
        self.session.add(obj)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if not is_slot_violation(e):
                raise
            raise SlotUnavailableError(data["staff_id"], data["scheduled_at"]) from e
        return obj

    async def get(self, org_id: uuid.UUID, appt_id: uuid.UUID) -> Appointment | None:
        async with upstream_read("appointments"):
            q = select(Appointment).where(
                and_(Appointment.id == appt_id,
                     Appointment.org_id == org_id,
                     Appointment.deleted_at.is_(None))
            )
            res = await self.session.execute(q)
            return res.scalar_one_or_none()

    async def active_at(self, org_id: uuid.UUID, staff_id: uuid.UUID, scheduled_at: datetime) -> Appointment | None:
        async with upstream_read("appointments"):
            q = select(Appointment).where(
                Appointment.org_id == org_id,
                Appointment.staff_id == staff_id,
                Appointment.scheduled_at == scheduled_at,
                Appointment.status.in_(_ACTIVE_VALUES),
                Appointment.deleted_at.is_(None),
            )
            res = await self.session.execute(q)
            return res.scalars().first()

    async def booked_times(self, org_id: uuid.UUID, staff_id: uuid.UUID, start: datetime, end: datetime) -> set[datetime]:
        """Start times of active appointments in [start, end)."""
        async with upstream_read("appointments"):
            q = select(Appointment.scheduled_at).where(
                Appointment.org_id == org_id,
                Appointment.staff_id == staff_id,
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
                Appointment.status.in_(_ACTIVE_VALUES),
                Appointment.deleted_at.is_(None),
            )
            res = await self.session.execute(q)
            return set(res.scalars().all())

    async def list_for_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID, start: datetime, end: datetime) -> Sequence[Appointment]:
        async with upstream_read("appointments"):
            q = select(Appointment).where(
                Appointment.org_id == org_id,
                Appointment.staff_id == staff_id,
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
                Appointment.deleted_at.is_(None),
            ).order_by(Appointment.scheduled_at.asc())
            res = await self.session.execute(q)
            return res.scalars().all()

    async def delete(self, obj: Appointment) -> None:
        await self.session.delete(obj)
        await self.session.flush()
