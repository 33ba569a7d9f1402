"""
Bookable start times for one staff member.

A slot is the start time of an available template assigned to the staff
member, on a date whose weekday the template covers, that is strictly in
the future and not held by an active appointment.
"""
import calendar
import uuid
import logging
from datetime import date, datetime, time, timedelta
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.clock import Clock, clinic_now
from frontdesk.core.errors import ValidationFailed
from frontdesk.modules.appointments.repository import AppointmentRepository
from frontdesk.modules.assignments.service import AssignmentLedger
from frontdesk.modules.directory.repository import DirectoryRepository
from frontdesk.modules.schedules import daygroups
from frontdesk.modules.schedules.models import ScheduleTemplate
from frontdesk.modules.schedules.service import format_time, parse_time
from frontdesk.modules.availability.schemas import CalendarDay, TimeCheckOut

logger = logging.getLogger(__name__)

ALTERNATIVE_WINDOW_MINUTES = 120
MAX_ALTERNATIVES = 5

def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)

def candidate_times(templates, day: date) -> set[datetime]:
    weekday = daygroups.weekday_of(day)
    return {
        datetime.combine(day, t.start_time)
        for t in templates
        if t.available and weekday in t.weekdays
    }

def free_times(templates, day: date, now: datetime, booked: set[datetime]) -> list[datetime]:
    return sorted(c for c in candidate_times(templates, day) if c > now and c not in booked)

class AvailabilityCalculator:
    def __init__(self, session: AsyncSession, *, clock: Clock = clinic_now):
        self.clock = clock
        self.ledger = AssignmentLedger(session)
        self.appts = AppointmentRepository(session)
        self.directory = DirectoryRepository(session)

    async def _templates(self, org_id: uuid.UUID, staff_id: uuid.UUID, service_id: uuid.UUID | None) -> list[ScheduleTemplate]:
        if service_id is not None:
            offered = await self.directory.list_services_for_staff(org_id, staff_id)
            if not any(s.id == service_id for s in offered):
                raise ValidationFailed("service_id", "not offered by this staff member")
        return [t for t in await self.ledger.templates_for_staff(org_id, staff_id) if t.available]

    async def slots(self, org_id: uuid.UUID, staff_id: uuid.UUID, day: date, service_id: uuid.UUID | None = None) -> list[str]:
        templates = await self._templates(org_id, staff_id, service_id)
        if not candidate_times(templates, day):
            return []
        start, end = _day_bounds(day)
        booked = await self.appts.booked_times(org_id, staff_id, start, end)
        free = free_times(templates, day, self.clock(), booked)
        logger.debug(f"Availability staff={staff_id} day={day}: {len(free)} free slot(s)")
        return [format_time(c.time()) for c in free]

    async def month_calendar(
        self, org_id: uuid.UUID, staff_id: uuid.UUID, year: int, month: int, service_id: uuid.UUID | None = None
    ) -> list[CalendarDay]:
        if not 1 <= month <= 12:
            raise ValidationFailed("month", "must be between 1 and 12")
        if not 1 <= year <= 9999:
            raise ValidationFailed("year", "must be between 1 and 9999")
        now = self.clock()
        days = [date(year, month, d) for d in range(1, calendar.monthrange(year, month)[1] + 1)]
        if days[-1] < now.date():
            return [CalendarDay(date=d, available=False) for d in days]

        templates = await self._templates(org_id, staff_id, service_id)
        booked = set()
        if templates:
            booked = await self.appts.booked_times(
                org_id, staff_id, _day_bounds(days[0])[0], _day_bounds(days[-1])[1]
            )
        out = []
        for d in days:
            # past dates are never bookable
            available = d >= now.date() and bool(free_times(templates, d, now, booked))
            out.append(CalendarDay(date=d, available=available))
        return out

    async def check_time(
        self, org_id: uuid.UUID, staff_id: uuid.UUID, day: date, at: str, service_id: uuid.UUID | None = None
    ) -> TimeCheckOut:
        requested = format_time(parse_time(at, field="time"))
        free = await self.slots(org_id, staff_id, day, service_id)
        if requested in free:
            return TimeCheckOut(requested_time=requested, available=True)

        def minutes(hhmm: str) -> int:
            h, m = hhmm.split(":")
            return int(h) * 60 + int(m)

        near = [s for s in free if abs(minutes(s) - minutes(requested)) <= ALTERNATIVE_WINDOW_MINUTES]
        return TimeCheckOut(requested_time=requested, available=False, alternatives=near[:MAX_ALTERNATIVES])
