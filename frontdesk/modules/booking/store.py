import logging
from frontdesk.core.redis import RedisManager, redis_manager
from frontdesk.modules.booking.wizard import WizardState

logger = logging.getLogger(__name__)

KEY_PREFIX = "booking:"

class BookingSessionStore:
    """Wizard sessions parked in Redis; each save pushes the TTL forward."""

    def __init__(self, manager: RedisManager = redis_manager):
        self.manager = manager

    @staticmethod
    def key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    async def load(self, session_id: str) -> WizardState | None:
        data = await self.manager.get_session(self.key(session_id))
        if data is None:
            return None
        return WizardState.from_dict(data)

    async def save(self, state: WizardState) -> None:
        await self.manager.set_session(self.key(state.session_id), state.to_dict())

    async def delete(self, session_id: str) -> None:
        await self.manager.delete_session(self.key(session_id))
        logger.debug(f"Booking session {session_id} removed")

def get_store() -> BookingSessionStore:
    return BookingSessionStore()
