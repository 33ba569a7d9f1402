import uuid
import logging
from datetime import date, datetime, timedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.clock import Clock, clinic_now, to_clinic_time
from frontdesk.core.errors import (
    InvalidTransitionError, NotFoundError, SlotUnavailableError, ValidationFailed,
)
from frontdesk.modules.appointments import obstetric
from frontdesk.modules.appointments.conflict import ConflictGuard
from frontdesk.modules.appointments.models import Appointment
from frontdesk.modules.appointments.repository import AppointmentRepository
from frontdesk.modules.appointments.schemas import AppointmentCreate, AppointmentOut
from frontdesk.modules.appointments.status import (
    AppointmentStatus, VALID_NEXT, label, normalize_status,
)
from frontdesk.modules.directory.repository import DirectoryRepository
from frontdesk.modules.notifications.schemas import NotificationRequest
from frontdesk.modules.notifications.service import dispatch_notification
from frontdesk.platform.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)

def to_out(a: Appointment) -> AppointmentOut:
    status = normalize_status(a.status)
    return AppointmentOut(
        id=a.id,
        staff_id=a.staff_id,
        service_id=a.service_id,
        service_name=a.service_name,
        patient_id=a.patient_id,
        patient_name=a.patient_name,
        patient_phone=a.patient_phone,
        patient_document=a.patient_document,
        scheduled_at=a.scheduled_at,
        end_at=a.end_at,
        status=status.value,
        status_label=label(status),
        notes=a.notes,
        created_by=a.created_by,
        lmp_date=a.lmp_date,
        gestational_age=a.gestational_age,
        estimated_delivery_date=a.estimated_delivery_date,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )

class AppointmentService:
    def __init__(self, session: AsyncSession, *, clock: Clock = clinic_now, notifier: NotifierPort | None = None):
        self.session = session
        self.clock = clock
        self.notifier = notifier
        self.appts = AppointmentRepository(session)
        self.directory = DirectoryRepository(session)
        self.guard = ConflictGuard(session)

    def _notify(self, appt: Appointment, reminder_type: str) -> None:
        dispatch_notification(
            NotificationRequest(
                appointment_id=appt.id,
                patient_phone=appt.patient_phone,
                status=label(appt.status),
                reminder_type=reminder_type,
            ),
            notifier=self.notifier,
        )

    async def create(self, org_id: uuid.UUID, payload: AppointmentCreate, *, created_by: str = "public") -> Appointment:
        # validation first, nothing is written until every field checks out
        if not (payload.patient_name or "").strip():
            raise ValidationFailed("patient_name", "is required")
        scheduled_at = to_clinic_time(payload.scheduled_at).replace(second=0, microsecond=0)
        now = self.clock()
        if scheduled_at <= now:
            raise ValidationFailed("scheduled_at", "must be in the future")

        obstetric_data = None
        if payload.lmp_date is not None:
            obstetric_data = obstetric.evaluate(payload.lmp_date, now.date())

        if not await self.directory.get_staff(org_id, payload.staff_id):
            raise NotFoundError("staff", payload.staff_id)

        if payload.patient_id is not None and not await self.directory.get_patient(org_id, payload.patient_id):
            raise NotFoundError("patient", payload.patient_id)

        service = None
        if payload.service_id is not None:
            offered = await self.directory.list_services_for_staff(org_id, payload.staff_id)
            service = next((s for s in offered if s.id == payload.service_id), None)
            if service is None:
                raise ValidationFailed("service_id", "not offered by this staff member")

        template = await self.guard.check(org_id, payload.staff_id, scheduled_at)
        duration = service.duration_minutes if service else template.duration_minutes

        try:
            obj = await self.appts.create(
                org_id,
                staff_id=payload.staff_id,
                service_id=payload.service_id,
                patient_id=payload.patient_id,
                service_name=service.name if service else None,
                duration_minutes=duration,
                patient_name=payload.patient_name.strip(),
                patient_phone=payload.patient_phone,
                patient_document=payload.patient_document,
                scheduled_at=scheduled_at,
                end_at=scheduled_at + timedelta(minutes=duration),
                status=AppointmentStatus.SCHEDULED.value,
                notes=payload.notes,
                created_by=created_by,
                lmp_date=obstetric_data.lmp_date if obstetric_data else None,
                gestational_age=obstetric_data.gestational_age if obstetric_data else None,
                estimated_delivery_date=obstetric_data.estimated_delivery_date if obstetric_data else None,
            )
            await self.session.commit()
        except SlotUnavailableError:
            await self.session.rollback()
            logger.warning(f"Lost booking race: staff={payload.staff_id} at={scheduled_at}")
            raise
        except IntegrityError:
            await self.session.rollback()
            raise
        logger.info(f"Appointment {obj.id} booked for staff {obj.staff_id} at {scheduled_at:%Y-%m-%d %H:%M}")
        self._notify(obj, "confirmation")
        return obj

    async def get(self, org_id: uuid.UUID, appt_id: uuid.UUID) -> Appointment | None:
        return await self.appts.get(org_id, appt_id)

    async def list_for_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID, start: date, end: date) -> list[Appointment]:
        """Appointments with start date in [start, end], inclusive."""
        if end < start:
            raise ValidationFailed("end", "must not be before start")
        lo = datetime.combine(start, datetime.min.time())
        hi = datetime.combine(end + timedelta(days=1), datetime.min.time())
        return list(await self.appts.list_for_staff(org_id, staff_id, lo, hi))

    async def _transition(self, org_id: uuid.UUID, appt_id: uuid.UUID, requested: AppointmentStatus) -> Appointment:
        obj = await self.appts.get(org_id, appt_id)
        if not obj:
            raise NotFoundError("appointment", appt_id)
        current = normalize_status(obj.status)
        if requested not in VALID_NEXT[current]:
            raise InvalidTransitionError(current.value, requested.value)
        obj.status = requested.value
        return obj

    async def change_status(self, org_id: uuid.UUID, appt_id: uuid.UUID, status: str) -> Appointment:
        requested = normalize_status(status)
        if requested == AppointmentStatus.CANCELLED:
            return await self.cancel(org_id, appt_id)
        obj = await self._transition(org_id, appt_id, requested)
        await self.session.commit()
        logger.info(f"Appointment {appt_id} -> {requested.value}")
        self._notify(obj, "status_change")
        return obj

    async def cancel(self, org_id: uuid.UUID, appt_id: uuid.UUID, reason: str | None = None) -> Appointment:
        obj = await self._transition(org_id, appt_id, AppointmentStatus.CANCELLED)
        if reason and reason.strip():
            line = f"Cancellation reason: {reason.strip()}"
            obj.notes = f"{obj.notes}\n{line}" if obj.notes else line
        await self.session.commit()
        logger.info(f"Appointment {appt_id} cancelled")
        self._notify(obj, "cancellation")
        return obj

    async def delete(self, org_id: uuid.UUID, appt_id: uuid.UUID) -> bool:
        obj = await self.appts.get(org_id, appt_id)
        if not obj:
            return False
        await self.appts.delete(obj)
        await self.session.commit()
        logger.info(f"Appointment {appt_id} deleted")
        self._notify(obj, "deletion")
        return True
