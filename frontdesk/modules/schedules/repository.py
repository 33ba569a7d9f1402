import uuid
from datetime import time
from typing import Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.retry import upstream_read
from frontdesk.modules.schedules.models import ScheduleTemplate

SHAPE_FIELDS = ("weekdays", "start_time", "duration_minutes")

class ScheduleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> ScheduleTemplate:
        obj = ScheduleTemplate(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, schedule_id: uuid.UUID) -> ScheduleTemplate | None:
        async with upstream_read("schedules"):
            res = await self.session.execute(select(ScheduleTemplate).where(
                ScheduleTemplate.id == schedule_id,
                ScheduleTemplate.org_id == org_id,
            ))
            return res.scalar_one_or_none()

    async def list(self, org_id: uuid.UUID) -> Sequence[ScheduleTemplate]:
        async with upstream_read("schedules"):
            q = select(ScheduleTemplate).where(
                ScheduleTemplate.org_id == org_id,
            ).order_by(ScheduleTemplate.start_time.asc(), ScheduleTemplate.created_at.asc())
            res = await self.session.execute(q)
            return res.scalars().all()

    async def update(self, obj: ScheduleTemplate, **data) -> ScheduleTemplate:
        # only a change to when the slot happens makes assignments stale
        reshaped = any(k in SHAPE_FIELDS and getattr(obj, k) != v for k, v in data.items())
        for k, v in data.items():
            setattr(obj, k, v)
        if reshaped:
            obj.version = (obj.version or 0) + 1
        await self.session.flush()
        return obj

    async def delete(self, obj: ScheduleTemplate) -> None:
        await self.session.delete(obj)
        await self.session.flush()
