import json
from datetime import timedelta
from redis import asyncio as aioredis
from frontdesk.core.config import settings

SESSION_EXPIRY = timedelta(minutes=settings.BOOKING_SESSION_TTL_MINUTES)


class RedisManager:
    def __init__(self):
        self.redis = None

    async def connect(self):
        """Connect to Redis (called on FastAPI startup)."""
        self.redis = await aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True
        )

    async def close(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.close()

    async def set_session(self, key: str, data: dict):
        """Store or update a session blob; every write pushes the expiry forward."""
        json_data = json.dumps(data)
        await self.redis.setex(key, int(SESSION_EXPIRY.total_seconds()), json_data)

    async def get_session(self, key: str) -> dict | None:
        """Retrieve a session if it has not expired."""
        data = await self.redis.get(key)
        if data:
            return json.loads(data)
        return None

    async def delete_session(self, key: str):
        await self.redis.delete(key)

redis_manager = RedisManager()
