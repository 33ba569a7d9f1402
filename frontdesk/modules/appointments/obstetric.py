"""
Obstetric helpers: gestational age and estimated delivery date from the
last menstrual period (LMP). Dates are typed as DD/MM/YYYY.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from frontdesk.core.config import settings
from frontdesk.core.errors import ValidationFailed

PREGNANCY_DAYS = 280
MAX_WEEKS = 42

_DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")

@dataclass(frozen=True)
class ObstetricData:
    lmp_date: date
    weeks: int
    days: int
    estimated_delivery_date: date

    @property
    def gestational_age(self) -> str:
        w = f"{self.weeks} week" + ("" if self.weeks == 1 else "s")
        d = f"{self.days} day" + ("" if self.days == 1 else "s")
        return f"{w} {d}"

def is_obstetric(service_name: str | None) -> bool:
    return settings.OBSTETRIC_KEYWORD.upper() in (service_name or "").upper()

def parse_lmp(value: str) -> date:
    text = (value or "").strip()
    if not _DATE_RE.match(text):
        raise ValidationFailed("lmp_date", "expected a full date as DD/MM/YYYY")
    try:
        return datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError:
        raise ValidationFailed("lmp_date", f"not a calendar date: {text}")

def estimated_delivery(lmp: date) -> date:
    return lmp + timedelta(days=PREGNANCY_DAYS)

def evaluate(lmp: date, today: date) -> ObstetricData:
    elapsed = (today - lmp).days
    if elapsed < 0:
        raise ValidationFailed("lmp_date", "cannot be in the future")
    weeks, days = divmod(elapsed, 7)
    if weeks > MAX_WEEKS:
        raise ValidationFailed("lmp_date", f"gestational age above {MAX_WEEKS} weeks")
    return ObstetricData(lmp, weeks, days, estimated_delivery(lmp))
