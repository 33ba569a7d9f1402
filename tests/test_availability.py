"""
Availability calculation.

Covers:
1. Booked active appointments remove exactly their slot
2. Expired slots on the current day are dropped, the same time next week is not
3. Unavailable templates and other weekdays contribute nothing
4. Cancelled appointments free their slot again
5. Month calendar and single-time checks
6. Upstream failures surface as TransientError
"""
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from frontdesk.core.errors import TransientError, ValidationFailed
from frontdesk.modules.appointments.repository import AppointmentRepository
from frontdesk.modules.availability.service import AvailabilityCalculator

from conftest import MONDAY, NEXT_MONDAY, ORG, add_template, at, fixed_clock

LAST_WEEK = datetime(2029, 12, 31, 8, 0)


async def book(session, staff_id, when, status="scheduled"):
    obj = await AppointmentRepository(session).create(
        ORG, staff_id=staff_id, patient_name="Maria", scheduled_at=when, end_at=when, status=status,
    )
    await session.commit()
    return obj


class TestSlots:
    async def test_booked_slot_excluded_others_kept(self, session, staff):
        """
        TEST CASE 1
        Given: Monday templates at 09:00 and 10:00 (30 minutes), an appointment Monday 09:00
        When: availability for that Monday
        Then: 09:00 is gone, 10:00 remains
        """
        await add_template(session, staff.id, [1], "09:00")
        await add_template(session, staff.id, [1, 2], "10:00")
        await book(session, staff.id, at(MONDAY, "09:00"))

        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        assert await calc.slots(ORG, staff.id, MONDAY) == ["10:00"]

    async def test_expired_slot_today_but_not_next_week(self, session, staff):
        """
        TEST CASE 2
        Given: now is Monday 10:00 and a Monday 09:00 template
        Then: today's 09:00 is excluded; next Monday's 09:00 is offered
        """
        await add_template(session, staff.id, [1], "09:00")
        await add_template(session, staff.id, [1], "11:00")
        calc = AvailabilityCalculator(session, clock=fixed_clock(at(MONDAY, "10:00")))

        assert await calc.slots(ORG, staff.id, MONDAY) == ["11:00"]
        assert await calc.slots(ORG, staff.id, NEXT_MONDAY) == ["09:00", "11:00"]

    async def test_slot_starting_exactly_now_is_expired(self, session, staff):
        await add_template(session, staff.id, [1], "09:00")
        calc = AvailabilityCalculator(session, clock=fixed_clock(at(MONDAY, "09:00")))
        assert await calc.slots(ORG, staff.id, MONDAY) == []

    async def test_no_templates_for_weekday_is_empty_not_error(self, session, staff):
        await add_template(session, staff.id, [2], "09:00")
        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        assert await calc.slots(ORG, staff.id, MONDAY) == []

    async def test_disabled_and_unassigned_templates_ignored(self, session, staff, other_staff):
        await add_template(session, staff.id, [1], "08:00", available=False)
        await add_template(session, other_staff.id, [1], "09:00")
        await add_template(session, staff.id, [1], "15:00")
        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        assert await calc.slots(ORG, staff.id, MONDAY) == ["15:00"]

    async def test_overlapping_templates_yield_one_slot(self, session, staff):
        await add_template(session, staff.id, [1, 2, 3], "09:00")
        await add_template(session, staff.id, [1], "09:00", duration=60)
        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        assert await calc.slots(ORG, staff.id, MONDAY) == ["09:00"]

    async def test_cancelled_frees_slot_but_legacy_confirmed_blocks(self, session, staff):
        await add_template(session, staff.id, [1], "09:00")
        await add_template(session, staff.id, [1], "09:30")
        await book(session, staff.id, at(MONDAY, "09:00"), status="cancelled")
        await book(session, staff.id, at(MONDAY, "09:30"), status="confirmed")  # legacy alias of scheduled
        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        assert await calc.slots(ORG, staff.id, MONDAY) == ["09:00"]

    async def test_service_must_be_offered_by_staff(self, session, staff, other_staff, consult_service):
        await add_template(session, other_staff.id, [1], "09:00")
        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        with pytest.raises(ValidationFailed) as exc:
            await calc.slots(ORG, other_staff.id, MONDAY, consult_service.id)
        assert exc.value.field == "service_id"

    async def test_unreachable_store_raises_transient(self, session, staff, monkeypatch):
        await add_template(session, staff.id, [1], "09:00")

        async def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        monkeypatch.setattr(session, "execute", broken)
        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        with pytest.raises(TransientError):
            await calc.slots(ORG, staff.id, MONDAY)


class TestMonthCalendar:
    async def test_past_days_unavailable_and_booked_days_closed(self, session, staff):
        await add_template(session, staff.id, [1], "09:00")
        await book(session, staff.id, at(NEXT_MONDAY, "09:00"))
        calc = AvailabilityCalculator(session, clock=fixed_clock(datetime(2030, 1, 8, 12, 0)))

        days = {d.date.day: d.available for d in await calc.month_calendar(ORG, staff.id, 2030, 1)}
        assert len(days) == 31
        assert days[7] is False     # Monday before today
        assert days[14] is False    # Monday, only slot booked
        assert days[21] is True
        assert days[28] is True
        assert days[22] is False    # Tuesday, no template

    async def test_month_entirely_in_the_past(self, session, staff):
        await add_template(session, staff.id, [1], "09:00")
        calc = AvailabilityCalculator(session, clock=fixed_clock(datetime(2030, 3, 1, 9, 0)))
        days = await calc.month_calendar(ORG, staff.id, 2030, 1)
        assert not any(d.available for d in days)

    async def test_invalid_month(self, session, staff):
        with pytest.raises(ValidationFailed):
            await AvailabilityCalculator(session).month_calendar(ORG, staff.id, 2030, 13)

    @pytest.mark.parametrize("year", [0, -1, 10000])
    async def test_out_of_range_year(self, session, staff, year):
        with pytest.raises(ValidationFailed) as exc:
            await AvailabilityCalculator(session).month_calendar(ORG, staff.id, year, 1)
        assert exc.value.field == "year"


class TestCheckTime:
    async def test_free_time(self, session, staff):
        await add_template(session, staff.id, [1], "09:00")
        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        result = await calc.check_time(ORG, staff.id, MONDAY, "9:00")
        assert result.available is True
        assert result.requested_time == "09:00"
        assert result.alternatives == []

    async def test_taken_time_suggests_nearby_alternatives(self, session, staff):
        for hhmm in ["07:00", "08:00", "08:30", "09:30", "10:00", "11:00", "11:30", "15:00"]:
            await add_template(session, staff.id, [1], hhmm)
        await add_template(session, staff.id, [1], "09:00")
        await book(session, staff.id, at(MONDAY, "09:00"))

        calc = AvailabilityCalculator(session, clock=fixed_clock(LAST_WEEK))
        result = await calc.check_time(ORG, staff.id, MONDAY, "09:00")
        assert result.available is False
        assert result.alternatives == ["07:00", "08:00", "08:30", "09:30", "10:00"]
