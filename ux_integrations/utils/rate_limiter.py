"""Per-provider call budgets kept in Redis."""

import redis.asyncio as redis
import time
import uuid


class RateLimiter:
    """Sliding-window limiter over a Redis sorted set.

    One set per key, scored by call time; members older than the window are
    trimmed before counting. Shared by every worker talking to the same Redis,
    so a provider's budget holds across processes.
    """

    def __init__(self, redis_url: str, prefix: str = "rate_limit"):
        self.redis_client = redis.from_url(redis_url, decode_responses=True)
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def check_rate_limit(self, key: str, limit: int, window: int) -> bool:
        """Record one call for `key`; False (nothing recorded) when the window is full."""
        full_key = self._key(key)
        now = time.time()

        async with self.redis_client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(full_key, 0, now - window)
            pipe.zcard(full_key)
            _, in_window = await pipe.execute()

        if in_window >= limit:
            return False

        async with self.redis_client.pipeline(transaction=True) as pipe:
            pipe.zadd(full_key, {f"{now}:{uuid.uuid4().hex}": now})
            pipe.expire(full_key, window)
            await pipe.execute()
        return True

    async def close(self) -> None:
        await self.redis_client.aclose()
