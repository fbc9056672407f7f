"""
Redis Issue Throttle
====================
Redis-backed fixed-window send counter using a Lua script for atomicity.
"""

import time
from typing import Callable, Optional
import structlog
from redis.exceptions import RedisError

from .models import ThrottleInfo

logger = structlog.get_logger(__name__)

# Lua script for an atomic fixed-window counter
ISSUE_WINDOW_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local now = tonumber(ARGV[3])

local window_start = math.floor(now / window) * window
local reset_at = window_start + window
local count = 0

local saved_window = tonumber(redis.call('HGET', key, 'window'))
if saved_window and saved_window >= window_start then
    count = tonumber(redis.call('HGET', key, 'count'))
end

if count >= limit then
    return {0, 0, limit, reset_at, reset_at - now}
end

count = count + 1
redis.call('HSET', key, 'window', window_start, 'count', count)
redis.call('EXPIRE', key, window * 2)

return {1, limit - count, limit, reset_at, 0}
"""


class RedisIssueThrottle:
    """
    Redis-backed issue throttle shared by all workers.

    Fails open: if Redis is unreachable the send is allowed and the
    error is logged.
    """

    def __init__(
        self,
        redis_client,
        limit: int = 5,
        window: int = 900,
        key_prefix: str = "tfa",
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            redis_client: Async Redis client
            limit: Challenges allowed per window
            window: Window size in seconds
            key_prefix: Namespace for keys
            clock: Source of Unix time
        """
        self.redis = redis_client
        self.limit = limit
        self.window = window
        self.key_prefix = key_prefix
        self.clock = clock
        self._script_sha: Optional[str] = None

    def get_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:issued:{user_id}"

    async def _ensure_script(self) -> str:
        """Load Lua script into Redis if needed."""
        if self._script_sha is None:
            self._script_sha = await self.redis.script_load(ISSUE_WINDOW_SCRIPT)
        return self._script_sha

    async def hit(self, user_id: str) -> ThrottleInfo:
        """Count one send for the user if the window allows it."""
        now = int(self.clock())

        try:
            script_sha = await self._ensure_script()
            result = await self.redis.evalsha(
                script_sha,
                1,
                self.get_key(user_id),
                self.limit,
                self.window,
                now,
            )

            allowed, remaining, limit, reset_at, retry_after = result

            return ThrottleInfo(
                allowed=bool(allowed),
                remaining=int(remaining),
                limit=int(limit),
                reset_at=int(reset_at),
                retry_after=int(retry_after) if retry_after else None,
            )
        except RedisError as e:
            logger.error("Issue throttle check failed", user_id=user_id, error=str(e))
            self._script_sha = None
            return ThrottleInfo(
                allowed=True,
                remaining=self.limit,
                limit=self.limit,
                reset_at=now + self.window,
            )

    async def reset(self, user_id: str) -> None:
        """Forget a user's sends; a Redis failure leaves the counter to expire."""
        try:
            await self.redis.delete(self.get_key(user_id))
        except RedisError as e:
            logger.error("Issue throttle reset failed", user_id=user_id, error=str(e))
