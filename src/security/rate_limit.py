import logging
import threading
import time
from typing import Callable, Dict, List

from redis.asyncio import Redis
from redis.exceptions import RedisError

WINDOW_SECONDS = 60.0


class RateLimiter:
    """Fixed-window request counter keyed by client identifier.

    Implementations must let exactly ``limit`` calls through per window and
    refuse the rest until the window restarts.
    """

    async def check(self, identifier: str, limit: int) -> bool:
        raise NotImplementedError

    async def reset(self, identifier: str) -> None:
        raise NotImplementedError

    async def sweep(self) -> int:
        """Drop lapsed entries; returns how many were removed"""
        return 0


class InMemoryRateLimiter(RateLimiter):
    """Process-local limiter. Each entry is ``[count, window_start]``."""

    def __init__(
        self,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds: float = window_seconds
        self.clock: Callable[[], float] = clock
        self.request_counts: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    async def check(self, identifier: str, limit: int) -> bool:
        """Count a request for the identifier

        Args:
            identifier (str): Client identifier (user:ip)
            limit (int): Allowed requests per window

        Returns:
            bool: True if the request is within the limit
        """
        now = self.clock()
        with self._lock:
            entry = self.request_counts.get(identifier)
            if entry is None or now - entry[1] > self.window_seconds:
                self.request_counts[identifier] = [1, now]
                return True

            if entry[0] >= limit:
                return False

            entry[0] += 1
            return True

    async def reset(self, identifier: str) -> None:
        with self._lock:
            self.request_counts.pop(identifier, None)

    async def sweep(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [
                identifier
                for identifier, (_, window_start) in self.request_counts.items()
                if now - window_start > self.window_seconds
            ]
            for identifier in expired:
                del self.request_counts[identifier]
        return len(expired)


class RedisRateLimiter(RateLimiter):
    """Limiter shared through Redis, for deployments running several processes.

    The window starts with the first request (INCR + EXPIRE NX, Redis 7 or
    later). Redis failures let the request through; an exceeded count is
    always refused.
    """

    KEY_PREFIX = "rate_limit"

    def __init__(self, redis: Redis, window_seconds: int = int(WINDOW_SECONDS)):
        self.redis: Redis = redis
        self.window_seconds: int = window_seconds

    def _key(self, identifier: str) -> str:
        return f"{self.KEY_PREFIX}:{identifier}"

    async def check(self, identifier: str, limit: int) -> bool:
        key = self._key(identifier)
        try:
            # INCR and EXPIRE in one MULTI/EXEC so a counter never outlives its window
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, self.window_seconds, nx=True)
                count, _ = await pipe.execute()
        except RedisError as e:
            logging.error(f"Rate limit check failed, allowing request: {e}")
            return True
        return count <= limit

    async def reset(self, identifier: str) -> None:
        try:
            await self.redis.delete(self._key(identifier))
        except RedisError as e:
            logging.error(f"Rate limit reset failed: {e}")
