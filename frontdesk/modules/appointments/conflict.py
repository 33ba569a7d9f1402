import uuid
import logging
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.errors import SlotUnavailableError
from frontdesk.modules.appointments.repository import AppointmentRepository
from frontdesk.modules.assignments.service import AssignmentLedger
from frontdesk.modules.schedules import daygroups
from frontdesk.modules.schedules.models import ScheduleTemplate

logger = logging.getLogger(__name__)

class ConflictGuard:
    """
    Pre-commit check for a single candidate slot. It narrows the race
    between computing availability and inserting, but the unique index on
    the appointment table remains the authority.
    """

    def __init__(self, session: AsyncSession):
        self.appts = AppointmentRepository(session)
        self.ledger = AssignmentLedger(session)

    async def covering_template(self, org_id: uuid.UUID, staff_id: uuid.UUID, scheduled_at: datetime) -> ScheduleTemplate | None:
        weekday = daygroups.weekday_of(scheduled_at.date())
        for t in await self.ledger.templates_for_staff(org_id, staff_id):
            if t.available and weekday in t.weekdays and t.start_time == scheduled_at.time():
                return t
        return None

    async def check(self, org_id: uuid.UUID, staff_id: uuid.UUID, scheduled_at: datetime) -> ScheduleTemplate:
        template = await self.covering_template(org_id, staff_id, scheduled_at)
        if template is None:
            logger.warning(f"Rejected booking outside assigned schedules: staff={staff_id} at={scheduled_at}")
            raise SlotUnavailableError(staff_id, scheduled_at)
        if await self.appts.active_at(org_id, staff_id, scheduled_at):
            logger.warning(f"Slot already taken: staff={staff_id} at={scheduled_at}")
            raise SlotUnavailableError(staff_id, scheduled_at)
        return template
