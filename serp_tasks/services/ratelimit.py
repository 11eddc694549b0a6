import logging
import time

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..errors import RateLimited

logger = logging.getLogger(__name__)


class FixedWindowLimiter:
    """Per-client request counter over fixed time windows, kept in Redis."""

    def __init__(self, client: redis.Redis, window_seconds: int = 10, max_requests: int = 5):
        self.r = client
        self.window = window_seconds
        self.max_requests = max_requests

    async def hit(self, scope: str, client_id: str) -> None:
        window_start = int(time.time()) // self.window
        key = f"ratelimit:{scope}:{client_id}:{window_start}"
        try:
            pipe = self.r.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window + 1)
            count, _ = await pipe.execute()
        except RedisError as exc:
            # Fail open; the store call that follows reports the outage.
            logger.warning("Rate limiter unavailable: %s", exc)
            return
        if count > self.max_requests:
            raise RateLimited(
                f"Too many requests. Please wait {self.window} seconds.",
                retry_after=self.window,
            )
