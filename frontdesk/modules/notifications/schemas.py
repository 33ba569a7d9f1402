import uuid
from typing import Literal
from pydantic import BaseModel

ReminderType = Literal["confirmation", "status_change", "cancellation", "deletion"]

class NotificationRequest(BaseModel):
    appointment_id: uuid.UUID
    patient_phone: str | None = None
    status: str  # human-readable label
    reminder_type: ReminderType
