import redis.asyncio as redis
from typing import Optional
import logging

logger = logging.getLogger(__name__)

class RedisClient:
    """Wrapper for the async Redis connection shared by the issue cache and checkpoint store."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0"):
        self.redis_url = redis_url
        self.client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        self.client = redis.from_url(self.redis_url, decode_responses=True) # type: ignore[no-untyped-call]
        logger.info(f"Connected to Redis at {self.redis_url}")

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    async def get_client(self) -> redis.Redis:
        """Return the live connection, connecting lazily on first use."""
        if not self.client:
            await self.connect()
        assert self.client is not None
        return self.client
