"""
Public booking flow as an explicit state machine.

    identity_input -> welcome_confirm -> staff_selection -> service_selection
        -> [obstetric_data] -> datetime_selection -> confirmation
        -> committed | abandoned

All mutable flow data lives in WizardState, which round-trips through a
plain dict so a session can be parked in Redis between HTTP calls. The
wizard itself holds no I/O; everything it needs from the outside goes
through a BookingBackend.
"""
import asyncio
import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Awaitable, Callable, Protocol, TypeVar

from frontdesk.core.clock import Clock, clinic_now
from frontdesk.core.config import settings
from frontdesk.core.errors import (
    LockoutTriggered, NotFoundError, SlotUnavailableError, TransientError,
    ValidationFailed, WizardStepError,
)
from frontdesk.core.retry import retry_transient
from frontdesk.modules.appointments import obstetric
from frontdesk.modules.appointments.obstetric import ObstetricData
from frontdesk.modules.booking.identity import digits_only, greeting, mask_document, validate_document

logger = logging.getLogger(__name__)

T = TypeVar("T")

class Step(str, Enum):
    IDENTITY_INPUT = "identity_input"
    WELCOME_CONFIRM = "welcome_confirm"
    STAFF_SELECTION = "staff_selection"
    SERVICE_SELECTION = "service_selection"
    OBSTETRIC_DATA = "obstetric_data"
    DATETIME_SELECTION = "datetime_selection"
    CONFIRMATION = "confirmation"
    COMMITTED = "committed"
    ABANDONED = "abandoned"

TERMINAL = {Step.COMMITTED, Step.ABANDONED}

@dataclass
class WizardState:
    session_id: str
    step: Step = Step.IDENTITY_INPUT
    attempts: int = 0

    patient_id: str | None = None
    patient_name: str | None = None
    patient_phone: str | None = None
    document: str | None = None

    staff_options: list[dict] = field(default_factory=list)
    staff_id: str | None = None
    staff_name: str | None = None

    service_options: list[dict] = field(default_factory=list)
    service_id: str | None = None
    service_name: str | None = None
    service_duration: int | None = None
    obstetric: bool = False

    lmp_date: str | None = None
    gestational_age: str | None = None
    estimated_delivery_date: str | None = None

    selected_date: str | None = None
    slots: list[str] = field(default_factory=list)
    selected_time: str | None = None

    appointment_id: str | None = None
    message: str | None = None
    redirect_url: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["step"] = self.step.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WizardState":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        kwargs["step"] = Step(kwargs.get("step", Step.IDENTITY_INPUT.value))
        return cls(**kwargs)

class BookingBackend(Protocol):
    async def find_patient(self, document: str) -> dict | None: ...
    async def save_phone(self, patient_id: str, phone: str) -> None: ...
    async def list_staff(self) -> list[dict]: ...
    async def list_services(self, staff_id: str) -> list[dict]: ...
    async def slots(self, staff_id: str, day: date, service_id: str | None) -> list[str]: ...
    async def month_calendar(self, staff_id: str, year: int, month: int, service_id: str | None) -> list[dict]: ...
    async def create_appointment(self, state: WizardState, notes: str | None) -> str: ...

# going back from a step lands here; obstetric_data is skipped when it was skipped going forward
_PREVIOUS = {
    Step.WELCOME_CONFIRM: Step.IDENTITY_INPUT,
    Step.STAFF_SELECTION: Step.WELCOME_CONFIRM,
    Step.SERVICE_SELECTION: Step.STAFF_SELECTION,
    Step.OBSTETRIC_DATA: Step.SERVICE_SELECTION,
    Step.CONFIRMATION: Step.DATETIME_SELECTION,
}

class BookingWizard:
    def __init__(
        self,
        state: WizardState,
        backend: BookingBackend,
        *,
        clock: Clock = clinic_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_attempts: int | None = None,
        registration_url: str | None = None,
    ):
        self.state = state
        self.backend = backend
        self.clock = clock
        self.sleep = sleep
        self.max_attempts = settings.IDENTITY_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.registration_url = registration_url or settings.REGISTRATION_URL

    def _require(self, step: Step) -> None:
        if self.state.step != step:
            raise WizardStepError(step.value, self.state.step.value)

    async def _fetch(self, fn: Callable[[], Awaitable[T]]) -> T:
        return await retry_transient(fn, sleep=self.sleep)

    def _fail_attempt(self, reason: str) -> None:
        self.state.attempts += 1
        self.state.message = reason
        if self.state.attempts >= self.max_attempts:
            self.state.step = Step.ABANDONED
            self.state.redirect_url = self.registration_url
            self.state.message = "Too many attempts; please register before booking."
            logger.warning(f"Booking session {self.state.session_id} locked out after {self.state.attempts} attempts")
            raise LockoutTriggered(self.registration_url, self.state.attempts)

    # identity_input

    async def submit_identity(self, raw: str) -> WizardState:
        self._require(Step.IDENTITY_INPUT)
        try:
            document = validate_document(raw)
        except ValidationFailed as e:
            self._fail_attempt(e.message)
            raise

        patient = await self._fetch(lambda: self.backend.find_patient(document))
        if patient is None:
            logger.info(f"No patient for document {mask_document(document)}")
            self._fail_attempt("Patient not found; registration is required first.")
            raise NotFoundError("patient")

        s = self.state
        s.attempts = 0
        s.document = document
        s.patient_id = str(patient["id"])
        s.patient_name = patient["name"]
        s.patient_phone = patient.get("phone")
        first_name = (patient["name"] or "").split(" ")[0]
        s.message = f"{greeting(self.clock().hour)}, {first_name}!"
        s.step = Step.WELCOME_CONFIRM
        return s

    # welcome_confirm

    async def save_phone(self, phone: str) -> WizardState:
        """Persist an edited phone. Proceeding never saves it implicitly."""
        self._require(Step.WELCOME_CONFIRM)
        digits = digits_only(phone)
        if not 10 <= len(digits) <= 13:
            raise ValidationFailed("phone", "enter the phone number with area code")
        await self.backend.save_phone(self.state.patient_id, digits)
        self.state.patient_phone = digits
        self.state.message = "Phone number updated."
        return self.state

    async def proceed(self) -> WizardState:
        self._require(Step.WELCOME_CONFIRM)
        self.state.staff_options = await self._fetch(self.backend.list_staff)
        self.state.message = None
        self.state.step = Step.STAFF_SELECTION
        return self.state

    # staff_selection

    async def select_staff(self, staff_id: str) -> WizardState:
        self._require(Step.STAFF_SELECTION)
        staff_id = str(staff_id)
        chosen = next((o for o in self.state.staff_options if str(o["id"]) == staff_id), None)
        if chosen is None:
            raise ValidationFailed("staff_id", "not one of the listed professionals")

        services = await self._fetch(lambda: self.backend.list_services(staff_id))
        s = self.state
        s.staff_id, s.staff_name = staff_id, chosen["name"]
        s.service_options = services
        self._clear_from_service()
        s.step = Step.SERVICE_SELECTION
        return s

    # service_selection

    async def select_service(self, service_id: str) -> WizardState:
        self._require(Step.SERVICE_SELECTION)
        service_id = str(service_id)
        chosen = next((o for o in self.state.service_options if str(o["id"]) == service_id), None)
        if chosen is None:
            raise ValidationFailed("service_id", "not offered by the selected professional")

        s = self.state
        self._clear_from_service()
        s.service_id = service_id
        s.service_name = chosen["name"]
        s.service_duration = chosen.get("duration_minutes")
        s.obstetric = obstetric.is_obstetric(chosen["name"])
        s.step = Step.OBSTETRIC_DATA if s.obstetric else Step.DATETIME_SELECTION
        return s

    # obstetric_data

    def preview_lmp(self, text: str) -> ObstetricData | None:
        """Live derivation while typing; None until the input is a complete, valid date."""
        try:
            return obstetric.evaluate(obstetric.parse_lmp(text), self.clock().date())
        except ValidationFailed:
            return None

    async def submit_lmp(self, text: str) -> WizardState:
        self._require(Step.OBSTETRIC_DATA)
        data = obstetric.evaluate(obstetric.parse_lmp(text), self.clock().date())
        s = self.state
        s.lmp_date = data.lmp_date.isoformat()
        s.gestational_age = data.gestational_age
        s.estimated_delivery_date = data.estimated_delivery_date.isoformat()
        s.step = Step.DATETIME_SELECTION
        return s

    # datetime_selection

    async def month_calendar(self, year: int, month: int) -> list[dict]:
        self._require(Step.DATETIME_SELECTION)
        s = self.state
        return await self._fetch(lambda: self.backend.month_calendar(s.staff_id, year, month, s.service_id))

    async def select_date(self, day: date) -> WizardState:
        self._require(Step.DATETIME_SELECTION)
        if day < self.clock().date():
            raise ValidationFailed("date", "cannot book a past date")
        s = self.state
        slots = await self._fetch(lambda: self.backend.slots(s.staff_id, day, s.service_id))
        # a new list supersedes whatever was picked against the old one
        s.selected_date = day.isoformat()
        s.slots = list(slots)
        s.selected_time = None
        s.message = None if slots else "No free times on this date."
        return s

    async def select_time(self, hhmm: str) -> WizardState:
        self._require(Step.DATETIME_SELECTION)
        s = self.state
        if not s.selected_date:
            raise ValidationFailed("date", "pick a date first")
        if hhmm not in s.slots:
            raise ValidationFailed("time", "that time is not in the current list of free times")
        s.selected_time = hhmm
        s.message = None
        s.step = Step.CONFIRMATION
        return s

    # confirmation

    async def commit(self, notes: str | None = None) -> WizardState:
        self._require(Step.CONFIRMATION)
        s = self.state
        try:
            appointment_id = await self.backend.create_appointment(s, notes)
        except SlotUnavailableError:
            s.step = Step.DATETIME_SELECTION
            s.selected_time = None
            s.message = "That time was just taken. Please choose another."
            try:
                s.slots = list(await self.backend.slots(s.staff_id, date.fromisoformat(s.selected_date), s.service_id))
            except TransientError:
                s.slots = []
            raise
        s.appointment_id = str(appointment_id)
        s.message = "Appointment booked."
        s.step = Step.COMMITTED
        logger.info(f"Booking session {s.session_id} committed appointment {s.appointment_id}")
        return s

    # navigation

    def back(self) -> WizardState:
        s = self.state
        if s.step == Step.IDENTITY_INPUT or s.step in TERMINAL:
            raise WizardStepError("a step after identity_input", s.step.value)
        if s.step == Step.DATETIME_SELECTION:
            target = Step.OBSTETRIC_DATA if s.obstetric else Step.SERVICE_SELECTION
        else:
            target = _PREVIOUS[s.step]
        if target == Step.IDENTITY_INPUT:
            s.patient_id = s.patient_name = s.patient_phone = s.document = None
        if target == Step.DATETIME_SELECTION:
            s.selected_time = None
        s.message = None
        s.step = target
        return s

    def abandon(self) -> WizardState:
        if self.state.step in TERMINAL:
            raise WizardStepError("an open session", self.state.step.value)
        self.state.step = Step.ABANDONED
        return self.state

    def _clear_from_service(self) -> None:
        s = self.state
        s.service_id = s.service_name = s.service_duration = None
        s.obstetric = False
        s.lmp_date = s.gestational_age = s.estimated_delivery_date = None
        s.selected_date = s.selected_time = None
        s.slots = []
