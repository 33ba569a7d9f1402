import uuid
from pydantic import BaseModel

class AssignmentCreate(BaseModel):
    schedule_id: uuid.UUID
    staff_id: uuid.UUID

class AssignMany(BaseModel):
    pairs: list[AssignmentCreate]

class AssignManyResult(BaseModel):
    succeeded: int = 0
    duplicates: int = 0
    failed: int = 0
    created_ids: list[uuid.UUID] = []

class AssignmentOut(BaseModel):
    id: uuid.UUID
    schedule_id: uuid.UUID
    staff_id: uuid.UUID
    schedule_info: str
    stale: bool = False

class StaffAssignmentsOut(BaseModel):
    staff_id: uuid.UUID
    staff_name: str
    assignments: list[AssignmentOut]
