import asyncio
import logging
from typing import Awaitable, Callable, Generic, TypeVar

from frontdesk.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

class DraftConcurrencyGuard(Generic[T]):
    """
    Keeps a draft list consistent under overlapping loads.

    Every load takes a ticket from a monotonically increasing counter; only
    the response holding the newest ticket may replace `visible`, whatever
    the completion order. A failed load is silent when a good list is
    already cached. Without a cache the error is reported through
    `on_error` after a grace window, and only if no later load succeeded
    in the meantime.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        *,
        on_error: Callable[[Exception], None] | None = None,
        grace_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._fetch = fetch
        self.on_error = on_error
        self.grace_seconds = settings.DRAFT_ERROR_GRACE_SECONDS if grace_seconds is None else grace_seconds
        self.sleep = sleep
        self.request_id = 0
        self.last_success_id = 0
        self.visible: T | None = None
        self.cache: T | None = None
        self._error_tasks: set[asyncio.Task] = set()

    async def load(self) -> T | None:
        self.request_id += 1
        ticket = self.request_id
        try:
            result = await self._fetch()
        except Exception as e:
            self._failed(ticket, e)
            return self.visible

        if ticket != self.request_id:
            logger.debug(f"Discarding draft list #{ticket}; #{self.request_id} is newer")
            return self.visible
        self.visible = result
        self.cache = result
        self.last_success_id = ticket
        return result

    async def save(self, save_fn: Callable[[], Awaitable]):
        """Run a save, then refresh the list through the same ticketing."""
        saved = await save_fn()
        await self.load()
        return saved

    def _failed(self, ticket: int, error: Exception) -> None:
        if ticket != self.request_id:
            logger.debug(f"Ignoring failure of superseded draft list #{ticket}: {error}")
            return
        if self.cache is not None:
            logger.info(f"Draft list refresh failed, keeping cached list: {error}")
            return
        task = asyncio.create_task(self._report_later(ticket, error))
        self._error_tasks.add(task)
        task.add_done_callback(self._error_tasks.discard)

    async def _report_later(self, ticket: int, error: Exception) -> None:
        await self.sleep(self.grace_seconds)
        if self.last_success_id > ticket:
            logger.debug(f"Suppressed error for draft list #{ticket}; #{self.last_success_id} succeeded since")
            return
        logger.warning(f"Loading drafts failed: {error}")
        if self.on_error:
            self.on_error(error)

    async def settle(self) -> None:
        """Wait for any pending delayed error reports."""
        while self._error_tasks:
            await asyncio.gather(*list(self._error_tasks))
