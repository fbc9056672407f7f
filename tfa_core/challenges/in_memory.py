"""
In-Memory Challenge Store
=========================
Process-local challenge store for development, tests and single-worker hosts.
"""

import uuid
from datetime import timedelta
from typing import AsyncContextManager, Dict, Optional
import structlog

from tfa_core.exceptions import ConflictError, ChallengeNotFoundError, ExhaustedError
from .base import ChallengeStore, Clock
from .locks import KeyedLock
from .models import Challenge, Channel

logger = structlog.get_logger(__name__)


class InMemoryChallengeStore(ChallengeStore):
    """
    Dict-backed challenge store.

    Not shared between processes. Use RedisChallengeStore when more than
    one worker serves verification requests.
    """

    name = "memory"

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self._challenges: Dict[str, Challenge] = {}
        self._locks = KeyedLock()

    def __len__(self) -> int:
        return len(self._challenges)

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
        existing = self._challenges.get(user_id)

        if existing is not None and not existing.is_expired(now):
            if not replace:
                raise ConflictError("Challenge already pending", user_id=user_id)
            logger.info(
                "Replacing pending challenge",
                user_id=user_id,
                challenge_id=existing.id,
            )

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
        self._challenges[user_id] = challenge
        return challenge

    async def get(self, user_id: str) -> Optional[Challenge]:
        return self._challenges.get(user_id)

    async def record_attempt(self, user_id: str) -> Challenge:
        challenge = self._challenges.get(user_id)
        if challenge is None:
            raise ChallengeNotFoundError("No active challenge", user_id=user_id)
        if challenge.attempts_remaining <= 0:
            raise ExhaustedError("No attempts remaining", user_id=user_id)

        challenge = challenge.with_attempts(challenge.attempts_remaining - 1)
        self._challenges[user_id] = challenge

        if challenge.attempts_remaining == 0:
            raise ExhaustedError("No attempts remaining", user_id=user_id, details=challenge.id)
        return challenge

    async def delete(self, user_id: str, challenge_id: Optional[str] = None) -> bool:
        challenge = self._challenges.get(user_id)
        if challenge is None:
            return False
        if challenge_id is not None and challenge.id != challenge_id:
            return False
        del self._challenges[user_id]
        return True

    def lock(self, user_id: str) -> AsyncContextManager:
        return self._locks(user_id)

    async def purge_expired(self) -> int:
        now = self.clock()
        expired = [
            user_id for user_id, challenge in self._challenges.items()
            if challenge.is_expired(now)
        ]
        for user_id in expired:
            del self._challenges[user_id]
        return len(expired)
