from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from .config import settings

Clock = Callable[[], datetime]

def clinic_now() -> datetime:
    # slots and appointments are stored as naive clinic wall-clock times
    return datetime.now(ZoneInfo(settings.CLINIC_TIMEZONE)).replace(tzinfo=None)

def to_clinic_time(value: datetime) -> datetime:
    """Naive clinic wall-clock equivalent of value; naive input is taken as already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.CLINIC_TIMEZONE)).replace(tzinfo=None)
