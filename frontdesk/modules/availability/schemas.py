import uuid
from datetime import date
from pydantic import BaseModel

class SlotsOut(BaseModel):
    staff_id: uuid.UUID
    date: date
    slots: list[str]

class CalendarDay(BaseModel):
    date: date
    available: bool

class TimeCheckOut(BaseModel):
    requested_time: str
    available: bool
    alternatives: list[str] = []
