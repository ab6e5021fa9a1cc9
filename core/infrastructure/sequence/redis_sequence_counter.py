"""
Redis-backed per-day order counter.

INCR is atomic on the server, so concurrent API workers never observe the
same value. Unlike the SQL counter it is not part of the order
transaction: a rolled-back order leaves a gap in the day's sequence, never
a duplicate.
"""
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from core.domain.exceptions import SequenceUnavailableError
from core.domain.repositories import SequenceCounter
from core.infrastructure.logging import get_logger


logger = get_logger(__name__)


class RedisSequenceCounter(SequenceCounter):
    """
    Key format: {namespace}:{YYYYMMDD}
    Keys expire a few days after their day is over.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        namespace: str = "orders:sequence",
        ttl_days: int = 3,
        client: Optional[aioredis.Redis] = None,
    ):
        """
        Initialize Redis counter.

        Args:
            redis_url: Redis connection URL
            namespace: Key prefix
            ttl_days: Expiry applied to each day's key
            client: Pre-built client (tests)
        """
        self.redis_url = redis_url
        self.namespace = namespace
        self.ttl_seconds = ttl_days * 24 * 60 * 60
        self._redis_client: Optional[aioredis.Redis] = client

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._redis_client is None:
            try:
                self._redis_client = aioredis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
                # Test connection
                await self._redis_client.ping()
                logger.info(f"✅ Connected to Redis: {self.redis_url}")
            except RedisError as e:
                logger.error(f"Failed to connect to Redis: {e}")
                self._redis_client = None
                raise

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None
            logger.info("✅ Disconnected from Redis")

    def key_for(self, date_key: str) -> str:
        return f"{self.namespace}:{date_key}"

    async def increment(self, date_key: str) -> int:
        key = self.key_for(date_key)
        try:
            await self.connect()
            async with self._redis_client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, self.ttl_seconds)
                value, _ = await pipe.execute()
        except RedisError as e:
            logger.error(f"❌ Redis INCR failed for {key}: {e}", exc_info=True)
            raise SequenceUnavailableError(date_key) from e

        return int(value)
