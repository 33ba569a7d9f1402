import uuid
from datetime import date
from pydantic import BaseModel

class IdentityIn(BaseModel):
    document: str

class PhoneIn(BaseModel):
    phone: str

class StaffChoice(BaseModel):
    staff_id: uuid.UUID

class ServiceChoice(BaseModel):
    service_id: uuid.UUID

class LmpIn(BaseModel):
    lmp: str  # DD/MM/YYYY

class DateChoice(BaseModel):
    date: date

class TimeChoice(BaseModel):
    time: str

class ConfirmIn(BaseModel):
    notes: str | None = None

class ObstetricPreview(BaseModel):
    complete: bool
    weeks: int | None = None
    days: int | None = None
    gestational_age: str | None = None
    estimated_delivery_date: date | None = None

class BookingStateOut(BaseModel):
    session_id: str
    step: str
    attempts: int
    patient_name: str | None = None
    patient_phone: str | None = None
    document: str | None = None  # display mask
    staff_options: list[dict] = []
    staff_id: str | None = None
    staff_name: str | None = None
    service_options: list[dict] = []
    service_id: str | None = None
    service_name: str | None = None
    obstetric: bool = False
    lmp_date: str | None = None
    gestational_age: str | None = None
    estimated_delivery_date: str | None = None
    selected_date: str | None = None
    slots: list[str] = []
    selected_time: str | None = None
    appointment_id: str | None = None
    message: str | None = None
    redirect_url: str | None = None
