import pytest
from sqlalchemy.exc import OperationalError

from frontdesk.core.errors import NotFoundError, TransientError
from frontdesk.core.retry import retry_transient, upstream_read


class Flaky:
    def __init__(self, failures, error=TransientError("down")):
        self.failures = failures
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


async def no_sleep(seconds):
    no_sleep.delays.append(seconds)


@pytest.fixture(autouse=True)
def reset_delays():
    no_sleep.delays = []


async def test_succeeds_after_transient_failures():
    fn = Flaky(2)
    assert await retry_transient(fn, retries=2, delay=1.0, sleep=no_sleep) == "ok"
    assert fn.calls == 3
    assert no_sleep.delays == [1.0, 2.0]


async def test_gives_up_after_retries():
    fn = Flaky(5)
    with pytest.raises(TransientError):
        await retry_transient(fn, retries=2, delay=0.1, sleep=no_sleep)
    assert fn.calls == 3


async def test_other_errors_are_not_retried():
    fn = Flaky(1, error=NotFoundError("staff"))
    with pytest.raises(NotFoundError):
        await retry_transient(fn, retries=3, sleep=no_sleep)
    assert fn.calls == 1


async def test_upstream_read_maps_connectivity_errors():
    with pytest.raises(TransientError):
        async with upstream_read("staff"):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))
