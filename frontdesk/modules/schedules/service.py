import re
import uuid
import logging
from datetime import time
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.errors import ValidationFailed
from frontdesk.modules.schedules import daygroups
from frontdesk.modules.schedules.models import ScheduleTemplate
from frontdesk.modules.schedules.repository import ScheduleRepository
from frontdesk.modules.schedules.schemas import (
    ScheduleCreate, ScheduleUpdate, ScheduleOut, ScheduleGroupOut,
)

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

def parse_time(value: str, field: str = "start_time") -> time:
    m = _TIME_RE.match((value or "").strip())
    if not m:
        raise ValidationFailed(field, f"expected HH:MM, got {value!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ValidationFailed(field, f"not a valid time of day: {value!r}")
    return time(hour, minute)

def format_time(t: time) -> str:
    return t.strftime("%H:%M")

def _check_duration(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationFailed("duration_minutes", "must be a positive number of minutes")
    return value

def describe(template: ScheduleTemplate) -> str:
    """Human description of a template, e.g. 'Mon to Wed – 09:00 (30 minutes)'."""
    return f"{daygroups.encode(template.weekdays)} – {format_time(template.start_time)} ({template.duration_minutes} minutes)"

def to_out(template: ScheduleTemplate) -> ScheduleOut:
    return ScheduleOut(
        id=template.id,
        weekdays=list(template.weekdays),
        days_label=daygroups.encode(template.weekdays),
        start_time=format_time(template.start_time),
        end_time=format_time(template.end_time),
        duration_minutes=template.duration_minutes,
        available=template.available,
    )

def group_by_start_time(templates) -> list[ScheduleGroupOut]:
    """
    Merge templates that share a start time into one display row. The
    underlying records stay separate and are listed inside each group.
    """
    groups: dict[time, list[ScheduleTemplate]] = {}
    for t in sorted(templates, key=lambda t: t.start_time):
        groups.setdefault(t.start_time, []).append(t)

    out = []
    for start, members in groups.items():
        days = sorted({d for m in members for d in m.weekdays})
        durations = {m.duration_minutes for m in members}
        out.append(ScheduleGroupOut(
            start_time=format_time(start),
            days_label=daygroups.encode(days),
            duration_minutes=durations.pop() if len(durations) == 1 else None,
            available=all(m.available for m in members),
            schedules=[to_out(m) for m in members],
        ))
    return out

class ScheduleService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ScheduleRepository(session)

    async def create(self, org_id: uuid.UUID, payload: ScheduleCreate) -> ScheduleTemplate:
        # validate everything before touching the session
        weekdays = list(daygroups.canonical(payload.weekdays))
        start = parse_time(payload.start_time)
        duration = _check_duration(payload.duration_minutes)
        obj = await self.repo.create(
            org_id, weekdays=weekdays, start_time=start,
            duration_minutes=duration, available=payload.available,
        )
        await self.session.commit()
        logger.info(f"Schedule {obj.id} created: {describe(obj)}")
        return obj

    async def get(self, org_id: uuid.UUID, schedule_id: uuid.UUID) -> ScheduleTemplate | None:
        return await self.repo.get(org_id, schedule_id)

    async def update(self, org_id: uuid.UUID, schedule_id: uuid.UUID, payload: ScheduleUpdate) -> ScheduleTemplate | None:
        data = payload.model_dump(exclude_unset=True)
        changes = {}
        if "weekdays" in data:
            if data["weekdays"] is None:
                raise ValidationFailed("weekdays", "at least one weekday is required")
            changes["weekdays"] = list(daygroups.canonical(data["weekdays"]))
        if "start_time" in data:
            changes["start_time"] = parse_time(data["start_time"])
        if "duration_minutes" in data:
            changes["duration_minutes"] = _check_duration(data["duration_minutes"])
        if data.get("available") is not None:
            changes["available"] = data["available"]

        obj = await self.repo.get(org_id, schedule_id)
        if not obj:
            return None
        await self.repo.update(obj, **changes)
        await self.session.commit()
        return obj

    async def set_available(self, org_id: uuid.UUID, schedule_id: uuid.UUID, available: bool) -> ScheduleTemplate | None:
        obj = await self.repo.get(org_id, schedule_id)
        if not obj:
            return None
        await self.repo.update(obj, available=available)
        await self.session.commit()
        return obj

    async def toggle(self, org_id: uuid.UUID, schedule_id: uuid.UUID) -> ScheduleTemplate | None:
        obj = await self.repo.get(org_id, schedule_id)
        if not obj:
            return None
        await self.repo.update(obj, available=not obj.available)
        await self.session.commit()
        return obj

    async def delete(self, org_id: uuid.UUID, schedule_id: uuid.UUID) -> bool:
        from frontdesk.modules.assignments.service import AssignmentLedger

        obj = await self.repo.get(org_id, schedule_id)
        if not obj:
            return False
        removed = await AssignmentLedger(self.session).release_schedule(org_id, schedule_id, commit=False)
        await self.repo.delete(obj)
        await self.session.commit()
        logger.info(f"Schedule {schedule_id} deleted along with {removed} assignment(s)")
        return True

    async def list_grouped(self, org_id: uuid.UUID) -> list[ScheduleGroupOut]:
        return group_by_start_time(await self.repo.list(org_id))
