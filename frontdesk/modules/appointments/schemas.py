from pydantic import BaseModel
import uuid
from datetime import date, datetime

class AppointmentCreate(BaseModel):
    staff_id: uuid.UUID
    service_id: uuid.UUID | None = None
    patient_id: uuid.UUID | None = None
    patient_name: str
    patient_phone: str | None = None
    patient_document: str | None = None
    scheduled_at: datetime
    notes: str | None = None
    lmp_date: date | None = None

class AppointmentStatusChange(BaseModel):
    status: str

class AppointmentCancel(BaseModel):
    reason: str | None = None

class AppointmentOut(BaseModel):
    id: uuid.UUID
    staff_id: uuid.UUID
    service_id: uuid.UUID | None = None
    service_name: str | None = None
    patient_id: uuid.UUID | None = None
    patient_name: str
    patient_phone: str | None = None
    patient_document: str | None = None
    scheduled_at: datetime
    end_at: datetime
    status: str
    status_label: str
    notes: str | None = None
    created_by: str
    lmp_date: date | None = None
    gestational_age: str | None = None
    estimated_delivery_date: date | None = None
    created_at: datetime
    updated_at: datetime
