from frontdesk.core.redis import RedisManager
from frontdesk.modules.booking.store import BookingSessionStore
from frontdesk.modules.booking.wizard import Step, WizardState

from conftest import FakeRedis


def make_store():
    manager = RedisManager()
    manager.redis = FakeRedis()
    return BookingSessionStore(manager), manager.redis


async def test_save_and_load():
    store, redis = make_store()
    state = WizardState(session_id="abc", step=Step.STAFF_SELECTION, staff_options=[{"id": "s-1", "name": "Dr. Ana"}])
    await store.save(state)

    assert "booking:abc" in redis.data
    assert redis.ttls["booking:abc"] == 30 * 60
    assert await store.load("abc") == state


async def test_missing_or_deleted_session():
    store, _ = make_store()
    assert await store.load("nope") is None
    await store.save(WizardState(session_id="abc"))
    await store.delete("abc")
    assert await store.load("abc") is None
