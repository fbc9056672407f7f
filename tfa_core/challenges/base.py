"""
Challenge Store Interface
=========================
Abstract persistence for pending challenges, keyed by user id.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import AsyncContextManager, Callable, Optional

from .models import Challenge, Channel

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChallengeStore(ABC):
    """
    Owns challenge lifetime: creation, attempt accounting and removal.

    At most one active challenge exists per user id. Callers that need
    several operations to be atomic (check expiry, then decrement) wrap
    them in ``lock(user_id)``.
    """

    name: str = "base"

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utc_now

    @abstractmethod
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
        """
        Store a new challenge.

        Args:
            user_id: Owner of the challenge
            code_hash: Salted hash of the code
            salt: Salt used for the hash
            ttl: Lifetime in seconds
            channel: Delivery channel
            max_attempts: Verification attempts allowed
            replace: Invalidate an active challenge instead of failing

        Returns:
            The stored challenge

        Raises:
            ConflictError: If an unexpired challenge exists and replace is False
        """
        pass

    @abstractmethod
    async def get(self, user_id: str) -> Optional[Challenge]:
        """Return the stored challenge, or None. Expiry is not checked here."""
        pass

    @abstractmethod
    async def record_attempt(self, user_id: str) -> Challenge:
        """
        Consume one verification attempt.

        Returns:
            The challenge with attempts_remaining decremented

        Raises:
            ChallengeNotFoundError: If there is no challenge
            ExhaustedError: If no attempts remain after this one
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, challenge_id: Optional[str] = None) -> bool:
        """
        Remove the user's challenge.

        Args:
            user_id: Owner of the challenge
            challenge_id: Only delete if the stored challenge has this id

        Returns:
            True if a challenge was removed
        """
        pass

    @abstractmethod
    def lock(self, user_id: str) -> AsyncContextManager:
        """Mutual exclusion for one user's challenge."""
        pass

    async def purge_expired(self) -> int:
        """Remove expired challenges. Backends with native expiry return 0."""
        return 0
