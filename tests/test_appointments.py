"""
Booking commit, status lifecycle and notifications.

Covers:
1. A slot inside an assigned template books and notifies
2. Times outside any template or already taken are rejected
3. Concurrent commits for one slot: exactly one wins
4. Legacy status values, valid and invalid transitions
5. Cancel reason, hard delete
"""
import asyncio
import uuid
from datetime import date, datetime

import pytest
from sqlalchemy.exc import IntegrityError

from frontdesk.core.errors import (
    InvalidTransitionError, NotFoundError, SlotUnavailableError, ValidationFailed,
)
from frontdesk.modules.appointments.repository import AppointmentRepository
from frontdesk.modules.appointments.schemas import AppointmentCreate
from frontdesk.modules.appointments.service import AppointmentService, to_out
from frontdesk.modules.appointments.status import (
    AppointmentStatus, can_transition, normalize_status,
)
from frontdesk.modules.availability.service import AvailabilityCalculator
from frontdesk.modules.notifications.service import drain

from conftest import MONDAY, ORG, add_template, at, fixed_clock

NOW = datetime(2029, 12, 31, 8, 0)


def service_for(session, notifier, now=NOW):
    return AppointmentService(session, clock=fixed_clock(now), notifier=notifier)


def booking(staff_id, when, **extra):
    return AppointmentCreate(staff_id=staff_id, patient_name="Maria Silva", patient_phone="11987654321",
                             scheduled_at=when, **extra)


class TestCreate:
    async def test_books_slot_and_sends_confirmation(self, session, staff, consult_service, notifier):
        await add_template(session, staff.id, [1], "09:00", duration=20)
        obj = await service_for(session, notifier).create(
            ORG, booking(staff.id, at(MONDAY, "09:00"), service_id=consult_service.id)
        )
        assert obj.status == "scheduled"
        assert obj.service_name == "Consulta Geral"
        # service duration wins over the template's
        assert obj.end_at == at(MONDAY, "09:30")

        await drain()
        assert [n["reminder_type"] for n in notifier.sent] == ["confirmation"]
        assert notifier.sent[0]["status"] == "Scheduled"
        assert notifier.sent[0]["appointment_id"] == str(obj.id)

    async def test_slot_disappears_from_availability(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        await add_template(session, staff.id, [1], "10:00")
        await service_for(session, notifier).create(ORG, booking(staff.id, at(MONDAY, "09:00")))
        calc = AvailabilityCalculator(session, clock=fixed_clock(NOW))
        assert await calc.slots(ORG, staff.id, MONDAY) == ["10:00"]

    async def test_time_outside_templates_rejected(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        svc = service_for(session, notifier)
        with pytest.raises(SlotUnavailableError):
            await svc.create(ORG, booking(staff.id, at(MONDAY, "09:15")))
        with pytest.raises(SlotUnavailableError):
            await svc.create(ORG, booking(staff.id, at(date(2030, 1, 8), "09:00")))  # Tuesday

    async def test_taken_slot_rejected(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        svc = service_for(session, notifier)
        await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00")))
        with pytest.raises(SlotUnavailableError):
            await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00")))

    async def test_cancelled_slot_can_be_rebooked(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        svc = service_for(session, notifier)
        first = await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00")))
        await svc.cancel(ORG, first.id)
        second = await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00")))
        assert second.id != first.id

    @pytest.mark.parametrize("change,field", [
        (dict(patient_name="   "), "patient_name"),
        (dict(scheduled_at=datetime(2029, 12, 30, 9, 0)), "scheduled_at"),
        (dict(lmp_date=date(2030, 2, 1)), "lmp_date"),
    ])
    async def test_invalid_input(self, session, staff, notifier, change, field):
        await add_template(session, staff.id, [1], "09:00")
        data = booking(staff.id, at(MONDAY, "09:00")).model_dump()
        data.update(change)
        with pytest.raises(ValidationFailed) as exc:
            await service_for(session, notifier).create(ORG, AppointmentCreate(**data))
        assert exc.value.field == field

    async def test_service_not_offered(self, session, staff, other_staff, consult_service, notifier):
        await add_template(session, other_staff.id, [1], "09:00")
        with pytest.raises(ValidationFailed):
            await service_for(session, notifier).create(
                ORG, booking(other_staff.id, at(MONDAY, "09:00"), service_id=consult_service.id)
            )

    async def test_unknown_staff(self, session, notifier):
        with pytest.raises(NotFoundError):
            await service_for(session, notifier).create(ORG, booking(uuid.uuid4(), at(MONDAY, "09:00")))

    async def test_unknown_patient_is_not_reported_as_taken_slot(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        with pytest.raises(NotFoundError) as exc:
            await service_for(session, notifier).create(
                ORG, booking(staff.id, at(MONDAY, "09:00"), patient_id=uuid.uuid4())
            )
        assert exc.value.resource == "patient"

    async def test_known_patient_is_linked(self, session, staff, patient, notifier):
        await add_template(session, staff.id, [1], "09:00")
        obj = await service_for(session, notifier).create(
            ORG, booking(staff.id, at(MONDAY, "09:00"), patient_id=patient.id)
        )
        assert obj.patient_id == patient.id

    async def test_only_the_slot_index_maps_to_slot_unavailable(self, session, staff):
        repo = AppointmentRepository(session)
        staff_id = staff.id
        with pytest.raises(IntegrityError) as exc:
            await repo.create(ORG, staff_id=staff_id, patient_name=None,
                              scheduled_at=at(MONDAY, "09:00"), end_at=at(MONDAY, "09:30"))
        assert not isinstance(exc.value, SlotUnavailableError)
        await session.rollback()

        await repo.create(ORG, staff_id=staff_id, patient_name="Ana",
                          scheduled_at=at(MONDAY, "09:00"), end_at=at(MONDAY, "09:30"))
        with pytest.raises(SlotUnavailableError):
            await repo.create(ORG, staff_id=staff_id, patient_name="Bia",
                              scheduled_at=at(MONDAY, "09:00"), end_at=at(MONDAY, "09:30"))

    async def test_obstetric_fields_stored(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        obj = await service_for(session, notifier, now=datetime(2030, 1, 1, 8, 0)).create(
            ORG, booking(staff.id, at(MONDAY, "09:00"), lmp_date=date(2029, 11, 1))
        )
        assert obj.gestational_age == "8 weeks 5 days"
        assert obj.estimated_delivery_date == date(2030, 8, 8)


class TestConcurrentCommit:
    async def test_exactly_one_of_two_racing_bookings_wins(self, session, session_factory, staff, notifier):
        """
        Given: one free slot
        When: two sessions commit a booking for it at the same time
        Then: one succeeds, the other gets SlotUnavailableError
        """
        await add_template(session, staff.id, [1], "09:00")

        async def attempt(name):
            async with session_factory() as s:
                return await service_for(s, notifier).create(
                    ORG, AppointmentCreate(staff_id=staff.id, patient_name=name, scheduled_at=at(MONDAY, "09:00"))
                )

        results = await asyncio.gather(attempt("Ana"), attempt("Bia"), return_exceptions=True)
        won = [r for r in results if not isinstance(r, Exception)]
        lost = [r for r in results if isinstance(r, Exception)]
        assert len(won) == 1
        assert len(lost) == 1 and isinstance(lost[0], SlotUnavailableError)

        svc = service_for(session, notifier)
        assert len(await svc.list_for_staff(ORG, staff.id, MONDAY, MONDAY)) == 1


class TestStatus:
    @pytest.mark.parametrize("raw,expected", [
        ("confirmed", AppointmentStatus.SCHEDULED),
        ("aguardando_atendimento", AppointmentStatus.SCHEDULED),
        ("Atendimento_Iniciado", AppointmentStatus.IN_PROGRESS),
        ("finalizado", AppointmentStatus.COMPLETED),
        ("canceled", AppointmentStatus.CANCELLED),
        ("in_progress", AppointmentStatus.IN_PROGRESS),
    ])
    def test_legacy_values_normalized(self, raw, expected):
        assert normalize_status(raw) == expected

    def test_unknown_value_rejected(self):
        with pytest.raises(ValidationFailed):
            normalize_status("teleported")

    def test_transition_table(self):
        assert can_transition("scheduled", "in_progress")
        assert can_transition("confirmed", "cancelled")
        assert not can_transition("completed", "scheduled")
        assert not can_transition("scheduled", "completed")
        assert not can_transition("scheduled", "scheduled")

    async def test_lifecycle_through_service(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        svc = service_for(session, notifier)
        obj = await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00")))

        await svc.change_status(ORG, obj.id, "atendimento_iniciado")
        done = await svc.change_status(ORG, obj.id, "completed")
        assert to_out(done).status_label == "Completed"

        with pytest.raises(InvalidTransitionError):
            await svc.change_status(ORG, obj.id, "scheduled")

        await drain()
        assert [n["reminder_type"] for n in notifier.sent] == ["confirmation", "status_change", "status_change"]

    async def test_legacy_row_is_read_normalized(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        svc = service_for(session, notifier)
        obj = await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00")))
        obj.status = "aguardando_atendimento"
        await session.commit()
        assert to_out(await svc.get(ORG, obj.id)).status == "scheduled"

    async def test_cancel_records_reason(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        svc = service_for(session, notifier)
        obj = await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00"), notes="first visit"))
        cancelled = await svc.cancel(ORG, obj.id, reason="patient travelling")
        assert cancelled.status == "cancelled"
        assert cancelled.notes == "first visit\nCancellation reason: patient travelling"

        with pytest.raises(InvalidTransitionError):
            await svc.cancel(ORG, obj.id)

    async def test_status_change_to_cancelled_uses_cancel(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        svc = service_for(session, notifier)
        obj = await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00")))
        await svc.change_status(ORG, obj.id, "agendamento_cancelado")
        await drain()
        assert notifier.sent[-1]["reminder_type"] == "cancellation"

    async def test_missing_appointment(self, session, notifier):
        with pytest.raises(NotFoundError):
            await service_for(session, notifier).change_status(ORG, uuid.uuid4(), "in_progress")


class TestDelete:
    async def test_hard_delete_frees_the_slot(self, session, staff, notifier):
        await add_template(session, staff.id, [1], "09:00")
        svc = service_for(session, notifier)
        obj = await svc.create(ORG, booking(staff.id, at(MONDAY, "09:00")))

        assert await svc.delete(ORG, obj.id) is True
        assert await svc.get(ORG, obj.id) is None
        assert await svc.delete(ORG, obj.id) is False

        calc = AvailabilityCalculator(session, clock=fixed_clock(NOW))
        assert await calc.slots(ORG, staff.id, MONDAY) == ["09:00"]
        await drain()
        assert notifier.sent[-1]["reminder_type"] == "deletion"


class TestListing:
    async def test_range_is_inclusive_and_ordered(self, session, staff, notifier):
        await add_template(session, staff.id, [1, 2], "09:00")
        await add_template(session, staff.id, [1], "08:00")
        svc = service_for(session, notifier)
        tuesday = date(2030, 1, 8)
        for when in [at(tuesday, "09:00"), at(MONDAY, "09:00"), at(MONDAY, "08:00")]:
            await svc.create(ORG, booking(staff.id, when))

        listed = await svc.list_for_staff(ORG, staff.id, MONDAY, tuesday)
        assert [a.scheduled_at for a in listed] == [at(MONDAY, "08:00"), at(MONDAY, "09:00"), at(tuesday, "09:00")]
        assert len(await svc.list_for_staff(ORG, staff.id, MONDAY, MONDAY)) == 2

        with pytest.raises(ValidationFailed):
            await svc.list_for_staff(ORG, staff.id, tuesday, MONDAY)
