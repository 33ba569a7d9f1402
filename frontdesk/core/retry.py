import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError

from .config import settings
from .errors import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

@asynccontextmanager
async def upstream_read(what: str):
    """Turn connectivity failures raised inside the block into TransientError."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.warning(f"Upstream unavailable while reading {what}: {e}")
        raise TransientError(f"{what} temporarily unavailable") from e

async def retry_transient(
    fn: Callable[[], Awaitable[T]],
    *,
    retries: int | None = None,
    delay: float | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Call fn, retrying TransientError up to `retries` additional times with a
    linear backoff of delay, 2*delay, ... Other errors propagate at once.
    """
    retries = settings.FETCH_RETRY_ATTEMPTS if retries is None else retries
    delay = settings.FETCH_RETRY_DELAY_SECONDS if delay is None else delay
    attempt = 0
    while True:
        try:
            return await fn()
        except TransientError as e:
            attempt += 1
            if attempt > retries:
                logger.error(f"All {retries + 1} attempts failed: {e}")
                raise
            logger.warning(f"Retry {attempt}/{retries} after transient error: {e}")
            await sleep(delay * attempt)
