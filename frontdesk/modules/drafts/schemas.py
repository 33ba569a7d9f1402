import uuid
from datetime import datetime
from pydantic import BaseModel

class DraftSave(BaseModel):
    patient_id: uuid.UUID
    title: str | None = None
    form_data: dict = {}
    dynamic_fields: dict[str, str] | None = None

class DraftSummary(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    patient_name: str | None = None
    title: str
    updated_at: datetime

class DraftOut(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    author_id: uuid.UUID
    title: str
    form_data: dict
    dynamic_fields: dict
    created_at: datetime
    updated_at: datetime
