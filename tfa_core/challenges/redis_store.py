"""
Redis Challenge Store
=====================
Redis-backed challenge store using Lua scripts for atomic operations.
"""

import math
import uuid
from datetime import timedelta
from typing import AsyncContextManager, Dict, Optional
import structlog
from redis.exceptions import NoScriptError

from tfa_core.exceptions import ConflictError, ChallengeNotFoundError, ExhaustedError
from .base import ChallengeStore, Clock
from .models import Challenge, Channel

logger = structlog.get_logger(__name__)

# Refuses to overwrite an unexpired challenge unless ARGV[1] is 1.
# ARGV: replace, now, expire_at, then field/value pairs.
CREATE_SCRIPT = """
local key = KEYS[1]
local replace = tonumber(ARGV[1])
local now = tonumber(ARGV[2])
local expire_at = tonumber(ARGV[3])

if replace == 0 then
    local expires_at = redis.call('HGET', key, 'expires_at')
    if expires_at and tonumber(expires_at) >= now then
        return 0
    end
end

redis.call('DEL', key)
redis.call('HSET', key, unpack(ARGV, 4))
redis.call('EXPIREAT', key, expire_at)
return 1
"""

# Returns the remaining attempts after decrementing, 0 if none were left,
# or -1 if there is no challenge.
RECORD_ATTEMPT_SCRIPT = """
local key = KEYS[1]

if redis.call('EXISTS', key) == 0 then
    return -1
end

local remaining = tonumber(redis.call('HGET', key, 'attempts_remaining'))
if remaining <= 0 then
    return 0
end

return redis.call('HINCRBY', key, 'attempts_remaining', -1)
"""

# Deletes only when ARGV[1] is empty or matches the stored challenge id.
DELETE_SCRIPT = """
local key = KEYS[1]
local challenge_id = ARGV[1]

if challenge_id ~= '' and redis.call('HGET', key, 'id') ~= challenge_id then
    return 0
end

return redis.call('DEL', key)
"""

_SCRIPTS = {
    "create": CREATE_SCRIPT,
    "record_attempt": RECORD_ATTEMPT_SCRIPT,
    "delete": DELETE_SCRIPT,
}


class RedisChallengeStore(ChallengeStore):
    """
    Redis-backed challenge store.

    One hash per user at ``{prefix}:challenge:{user_id}``. Keys outlive
    ``expires_at`` by ``grace_seconds`` so a late verify still reports the
    challenge as expired rather than missing; after that Redis drops them.
    """

    name = "redis"

    def __init__(
        self,
        redis_client,
        key_prefix: str = "tfa",
        lock_timeout: float = 10.0,
        grace_seconds: int = 60,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            redis_client: Async Redis client (redis.asyncio.Redis)
            key_prefix: Namespace for all keys
            lock_timeout: Seconds a per-user lock may be held or waited for
            grace_seconds: Extra key lifetime past expiry
            clock: Source of the current UTC time
        """
        super().__init__(clock)
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.lock_timeout = lock_timeout
        self.grace_seconds = grace_seconds
        self._script_shas: Dict[str, str] = {}

    def challenge_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:challenge:{user_id}"

    def lock_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:lock:{user_id}"

    async def _ensure_script(self, name: str) -> str:
        """Load a Lua script into Redis if needed."""
        if name not in self._script_shas:
            self._script_shas[name] = await self.redis.script_load(_SCRIPTS[name])
        return self._script_shas[name]

    async def _run_script(self, name: str, key: str, *args):
        script_sha = await self._ensure_script(name)
        try:
            return await self.redis.evalsha(script_sha, 1, key, *args)
        except NoScriptError:
            # Script cache was flushed (restart, failover)
            logger.warning("Reloading challenge script", script=name)
            self._script_shas.pop(name, None)
            script_sha = await self._ensure_script(name)
            return await self.redis.evalsha(script_sha, 1, key, *args)

    async def create(
        self,
        user_id: str,
        code_hash: str,
        salt: str,
        ttl: int,
        channel: Channel,
        max_attempts: int,
        replace: bool = False,
    ) -> Challenge:
        now = self.clock()
        challenge = Challenge(
            id=uuid.uuid4().hex,
            user_id=user_id,
            code_hash=code_hash,
            salt=salt,
            channel=Channel(channel),
            attempts_remaining=max_attempts,
            max_attempts=max_attempts,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl),
        )

        fields = []
        for name, value in challenge.to_mapping().items():
            fields.extend((name, value))

        created = await self._run_script(
            "create",
            self.challenge_key(user_id),
            1 if replace else 0,
            repr(now.timestamp()),
            math.ceil(challenge.expires_at.timestamp()) + self.grace_seconds,
            *fields,
        )
        if not int(created):
            raise ConflictError("Challenge already pending", user_id=user_id)
        return challenge

    async def get(self, user_id: str) -> Optional[Challenge]:
        data = await self.redis.hgetall(self.challenge_key(user_id))
        if not data:
            return None
        return Challenge.from_mapping(data)

    async def record_attempt(self, user_id: str) -> Challenge:
        remaining = int(await self._run_script("record_attempt", self.challenge_key(user_id)))

        if remaining < 0:
            raise ChallengeNotFoundError("No active challenge", user_id=user_id)
        if remaining == 0:
            raise ExhaustedError("No attempts remaining", user_id=user_id)

        challenge = await self.get(user_id)
        if challenge is None:
            raise ChallengeNotFoundError("Challenge expired during attempt", user_id=user_id)
        return challenge

    async def delete(self, user_id: str, challenge_id: Optional[str] = None) -> bool:
        deleted = await self._run_script(
            "delete",
            self.challenge_key(user_id),
            challenge_id or "",
        )
        return bool(int(deleted))

    def lock(self, user_id: str) -> AsyncContextManager:
        return self.redis.lock(
            self.lock_key(user_id),
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_timeout,
        )
