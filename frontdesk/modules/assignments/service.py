import uuid
import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.errors import DuplicateAssignmentError, FrontdeskError, NotFoundError
from frontdesk.modules.assignments.models import ScheduleAssignment
from frontdesk.modules.assignments.repository import AssignmentRepository
from frontdesk.modules.assignments.schemas import (
    AssignmentCreate, AssignManyResult, AssignmentOut, StaffAssignmentsOut,
)
from frontdesk.modules.directory.repository import DirectoryRepository
from frontdesk.modules.schedules.models import ScheduleTemplate
from frontdesk.modules.schedules.repository import ScheduleRepository
from frontdesk.modules.schedules.service import describe

logger = logging.getLogger(__name__)

def to_out(assignment: ScheduleAssignment, template: ScheduleTemplate | None) -> AssignmentOut:
    stale = template is None or template.version != assignment.schedule_version
    return AssignmentOut(
        id=assignment.id,
        schedule_id=assignment.schedule_id,
        staff_id=assignment.staff_id,
        schedule_info=assignment.schedule_info,
        stale=stale,
    )

class AssignmentLedger:
    """
    Binds schedule templates to staff members. Each (template, staff) pair
    exists at most once; the display string is a snapshot of the template
    at assignment time and is only re-derived through refresh().
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AssignmentRepository(session)
        self.schedules = ScheduleRepository(session)
        self.directory = DirectoryRepository(session)

    async def assign(self, org_id: uuid.UUID, schedule_id: uuid.UUID, staff_id: uuid.UUID) -> ScheduleAssignment:
        template = await self.schedules.get(org_id, schedule_id)
        if not template:
            raise NotFoundError("schedule", schedule_id)
        if not await self.directory.get_staff(org_id, staff_id):
            raise NotFoundError("staff", staff_id)
        if await self.repo.find_pair(org_id, schedule_id, staff_id):
            raise DuplicateAssignmentError(schedule_id, staff_id)

        try:
            obj = await self.repo.create(
                org_id,
                schedule_id=schedule_id,
                staff_id=staff_id,
                schedule_info=describe(template),
                schedule_version=template.version,
            )
            await self.session.commit()
        except IntegrityError as e:
            # lost the race against a concurrent assign of the same pair
            await self.session.rollback()
            raise DuplicateAssignmentError(schedule_id, staff_id) from e
        logger.info(f"Assigned schedule {schedule_id} to staff {staff_id}")
        return obj

    async def assign_many(self, org_id: uuid.UUID, pairs: list[AssignmentCreate]) -> AssignManyResult:
        result = AssignManyResult()
        for pair in pairs:
            try:
                obj = await self.assign(org_id, pair.schedule_id, pair.staff_id)
            except DuplicateAssignmentError:
                result.duplicates += 1
            except (FrontdeskError, SQLAlchemyError) as e:
                await self.session.rollback()
                logger.warning(f"Bulk assign failed for schedule={pair.schedule_id} staff={pair.staff_id}: {e}")
                result.failed += 1
            else:
                result.succeeded += 1
                result.created_ids.append(obj.id)
        logger.info(
            f"Bulk assign: {result.succeeded} created, {result.duplicates} duplicate, {result.failed} failed"
        )
        return result

    async def unassign(self, org_id: uuid.UUID, assignment_id: uuid.UUID) -> bool:
        obj = await self.repo.get(org_id, assignment_id)
        if not obj:
            return False
        await self.repo.delete(obj)
        await self.session.commit()
        return True

    async def release_schedule(self, org_id: uuid.UUID, schedule_id: uuid.UUID, commit: bool = True) -> int:
        removed = await self.repo.delete_by_schedule(org_id, schedule_id)
        if commit:
            await self.session.commit()
        return removed

    async def refresh(self, org_id: uuid.UUID, assignment_id: uuid.UUID) -> AssignmentOut | None:
        obj = await self.repo.get(org_id, assignment_id)
        if not obj:
            return None
        template = await self.schedules.get(org_id, obj.schedule_id)
        if not template:
            raise NotFoundError("schedule", obj.schedule_id)
        obj.schedule_info = describe(template)
        obj.schedule_version = template.version
        await self.session.commit()
        return to_out(obj, template)

    async def list_by_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID) -> list[AssignmentOut]:
        rows = await self.repo.list_by_staff(org_id, staff_id)
        return [to_out(a, t) for a, t in rows]

    async def list_all(self, org_id: uuid.UUID) -> list[StaffAssignmentsOut]:
        grouped: dict[uuid.UUID, StaffAssignmentsOut] = {}
        for assignment, staff, template in await self.repo.list_all(org_id):
            entry = grouped.get(staff.id)
            if entry is None:
                entry = grouped[staff.id] = StaffAssignmentsOut(
                    staff_id=staff.id, staff_name=staff.display_name, assignments=[]
                )
            entry.assignments.append(to_out(assignment, template))
        return list(grouped.values())

    async def templates_for_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID):
        return await self.repo.templates_for_staff(org_id, staff_id)
