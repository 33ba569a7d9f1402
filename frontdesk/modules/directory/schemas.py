import uuid
from datetime import date
from pydantic import BaseModel, Field

class StaffCreate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=160)
    calendar_id: str | None = None

class StaffOut(BaseModel):
    id: uuid.UUID
    display_name: str
    active: bool

    class Config:
        from_attributes = True

class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=160)
    price: float = 0
    duration_minutes: int = Field(30, gt=0)

class ServiceOut(BaseModel):
    id: uuid.UUID
    name: str
    price: float
    duration_minutes: int

    class Config:
        from_attributes = True

class PatientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    document_number: str
    phone: str | None = None
    birth_date: date | None = None

class PatientOut(BaseModel):
    id: uuid.UUID
    name: str
    document_number: str
    phone: str | None = None

    class Config:
        from_attributes = True
