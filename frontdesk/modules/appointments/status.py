from enum import Enum

from frontdesk.core.errors import ValidationFailed

class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

# historical values still found in stored rows and older clients
LEGACY_STATUSES = {
    "confirmed": AppointmentStatus.SCHEDULED,
    "aguardando_atendimento": AppointmentStatus.SCHEDULED,
    "atendimento_iniciado": AppointmentStatus.IN_PROGRESS,
    "in-progress": AppointmentStatus.IN_PROGRESS,
    "finalizado": AppointmentStatus.COMPLETED,
    "atendimento_finalizado": AppointmentStatus.COMPLETED,
    "archived": AppointmentStatus.COMPLETED,
    "canceled": AppointmentStatus.CANCELLED,
    "agendamento_cancelado": AppointmentStatus.CANCELLED,
    "no_show": AppointmentStatus.CANCELLED,
}

ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED.value, AppointmentStatus.IN_PROGRESS.value)

VALID_NEXT = {
    AppointmentStatus.SCHEDULED: {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED},
    AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}

LABELS = {
    AppointmentStatus.SCHEDULED: "Scheduled",
    AppointmentStatus.IN_PROGRESS: "In progress",
    AppointmentStatus.COMPLETED: "Completed",
    AppointmentStatus.CANCELLED: "Cancelled",
}

def normalize_status(value) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    key = str(value or "").strip().lower()
    try:
        return AppointmentStatus(key)
    except ValueError:
        pass
    if key in LEGACY_STATUSES:
        return LEGACY_STATUSES[key]
    raise ValidationFailed("status", f"unknown appointment status {value!r}")

def can_transition(current, requested) -> bool:
    return normalize_status(requested) in VALID_NEXT[normalize_status(current)]

def label(value) -> str:
    return LABELS[normalize_status(value)]
