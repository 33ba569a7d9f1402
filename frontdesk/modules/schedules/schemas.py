import uuid
from pydantic import BaseModel

class ScheduleCreate(BaseModel):
    weekdays: list[int | str]
    start_time: str  # HH:MM
    duration_minutes: int
    available: bool = True

class ScheduleUpdate(BaseModel):
    weekdays: list[int | str] | None = None
    start_time: str | None = None
    duration_minutes: int | None = None
    available: bool | None = None

class ScheduleToggle(BaseModel):
    available: bool

class ScheduleOut(BaseModel):
    id: uuid.UUID
    weekdays: list[int]
    days_label: str
    start_time: str
    end_time: str
    duration_minutes: int
    available: bool

class ScheduleGroupOut(BaseModel):
    start_time: str
    days_label: str
    duration_minutes: int | None = None  # None when members differ
    available: bool
    schedules: list[ScheduleOut]
