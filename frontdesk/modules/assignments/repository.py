import uuid
from typing import Sequence
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.retry import upstream_read
from frontdesk.modules.assignments.models import ScheduleAssignment
from frontdesk.modules.directory.models import Staff
from frontdesk.modules.schedules.models import ScheduleTemplate

class AssignmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> ScheduleAssignment:
        obj = ScheduleAssignment(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, assignment_id: uuid.UUID) -> ScheduleAssignment | None:
        async with upstream_read("assignments"):
            res = await self.session.execute(select(ScheduleAssignment).where(
                ScheduleAssignment.id == assignment_id,
                ScheduleAssignment.org_id == org_id,
            ))
            return res.scalar_one_or_none()

    async def find_pair(self, org_id: uuid.UUID, schedule_id: uuid.UUID, staff_id: uuid.UUID) -> ScheduleAssignment | None:
        async with upstream_read("assignments"):
            res = await self.session.execute(select(ScheduleAssignment).where(
                ScheduleAssignment.org_id == org_id,
                ScheduleAssignment.schedule_id == schedule_id,
                ScheduleAssignment.staff_id == staff_id,
            ))
            return res.scalar_one_or_none()

    async def list_by_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID) -> Sequence[tuple[ScheduleAssignment, ScheduleTemplate | None]]:
        async with upstream_read("assignments"):
            q = (
                select(ScheduleAssignment, ScheduleTemplate)
                .outerjoin(ScheduleTemplate, ScheduleTemplate.id == ScheduleAssignment.schedule_id)
                .where(ScheduleAssignment.org_id == org_id, ScheduleAssignment.staff_id == staff_id)
                .order_by(ScheduleAssignment.created_at.asc())
            )
            res = await self.session.execute(q)
            return res.tuples().all()

    async def list_all(self, org_id: uuid.UUID) -> Sequence[tuple[ScheduleAssignment, Staff, ScheduleTemplate | None]]:
        async with upstream_read("assignments"):
            q = (
                select(ScheduleAssignment, Staff, ScheduleTemplate)
                .join(Staff, Staff.id == ScheduleAssignment.staff_id)
                .outerjoin(ScheduleTemplate, ScheduleTemplate.id == ScheduleAssignment.schedule_id)
                .where(ScheduleAssignment.org_id == org_id)
                .order_by(Staff.display_name.asc(), ScheduleAssignment.created_at.asc())
            )
            res = await self.session.execute(q)
            return res.tuples().all()

    async def templates_for_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID) -> Sequence[ScheduleTemplate]:
        async with upstream_read("schedules"):
            q = (
                select(ScheduleTemplate)
                .join(ScheduleAssignment, ScheduleAssignment.schedule_id == ScheduleTemplate.id)
                .where(
                    ScheduleAssignment.org_id == org_id,
                    ScheduleAssignment.staff_id == staff_id,
                )
                .order_by(ScheduleTemplate.start_time.asc())
            )
            res = await self.session.execute(q)
            return res.scalars().all()

    async def delete(self, obj: ScheduleAssignment) -> None:
        await self.session.delete(obj)
        await self.session.flush()

    async def delete_by_schedule(self, org_id: uuid.UUID, schedule_id: uuid.UUID) -> int:
        res = await self.session.execute(delete(ScheduleAssignment).where(
            ScheduleAssignment.org_id == org_id,
            ScheduleAssignment.schedule_id == schedule_id,
        ))
        return res.rowcount or 0
