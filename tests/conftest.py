"""
Shared fixtures.

Every test gets its own SQLite file through aiosqlite, so separate
sessions really are separate connections (needed for the booking race
tests). Time-dependent code takes an injected clock.
"""
import uuid
from datetime import datetime, time

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from frontdesk.core.config import settings
from frontdesk.core.db import init_models
from frontdesk.modules.assignments.service import AssignmentLedger
from frontdesk.modules.directory.repository import DirectoryRepository
from frontdesk.modules.schedules.schemas import ScheduleCreate
from frontdesk.modules.schedules.service import ScheduleService

ORG = uuid.UUID(settings.DEFAULT_ORG_ID)

# 2030-01-07 is a Monday
MONDAY = datetime(2030, 1, 7).date()
NEXT_MONDAY = datetime(2030, 1, 14).date()


def fixed_clock(value: datetime):
    return lambda: value


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def notify(self, payload: dict) -> None:
        if self.fail:
            raise RuntimeError("notification endpoint down")
        self.sent.append(payload)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisManager."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key, seconds, value):
        self.data[key] = value
        self.ttls[key] = seconds

    async def get(self, key):
        return self.data.get(key)

    async def delete(self, key):
        self.data.pop(key, None)

    async def close(self):
        pass


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'frontdesk-test.db'}")
    await init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def staff(session):
    repo = DirectoryRepository(session)
    obj = await repo.add_staff(ORG, display_name="Dr. Ana Souza")
    await session.commit()
    return obj


@pytest.fixture
async def other_staff(session):
    repo = DirectoryRepository(session)
    obj = await repo.add_staff(ORG, display_name="Dr. Bruno Lima")
    await session.commit()
    return obj


@pytest.fixture
async def patient(session):
    repo = DirectoryRepository(session)
    obj = await repo.add_patient(ORG, name="Maria Silva Santos", phone="11987654321", document_number="52998224725")
    await session.commit()
    return obj


@pytest.fixture
async def consult_service(session, staff):
    repo = DirectoryRepository(session)
    svc = await repo.add_service(ORG, name="Consulta Geral", price=150, duration_minutes=30)
    await repo.offer_service(ORG, staff.id, svc.id)
    await session.commit()
    return svc


async def add_template(session, staff_id, weekdays, start: str, duration: int = 30, available: bool = True):
    """Create a template and assign it to staff_id."""
    template = await ScheduleService(session).create(
        ORG, ScheduleCreate(weekdays=weekdays, start_time=start, duration_minutes=duration, available=available)
    )
    await AssignmentLedger(session).assign(ORG, template.id, staff_id)
    return template


def at(day, hhmm: str) -> datetime:
    h, m = hhmm.split(":")
    return datetime.combine(day, time(int(h), int(m)))
