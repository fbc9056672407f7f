"""
Challenge Models
================
Data models for pending one-time-code challenges.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, replace
from typing import Mapping, Union
from enum import Enum


class Channel(str, Enum):
    """Code delivery channels."""
    EMAIL = "email"
    SMS = "sms"


@dataclass(frozen=True)
class Challenge:
    """A pending verification for one user. Never holds the plain code."""
    id: str
    user_id: str
    code_hash: str
    salt: str
    channel: Channel
    attempts_remaining: int
    max_attempts: int
    created_at: datetime
    expires_at: datetime

    def __post_init__(self):
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be after created_at")
        if self.attempts_remaining < 0:
            raise ValueError("attempts_remaining must not be negative")

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def with_attempts(self, attempts_remaining: int) -> "Challenge":
        return replace(self, attempts_remaining=attempts_remaining)

    def to_mapping(self) -> dict:
        """Flatten to string fields for key-value backends."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "code_hash": self.code_hash,
            "salt": self.salt,
            "channel": self.channel.value,
            "attempts_remaining": str(self.attempts_remaining),
            "max_attempts": str(self.max_attempts),
            "created_at": repr(self.created_at.timestamp()),
            "expires_at": repr(self.expires_at.timestamp()),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[Union[str, bytes], Union[str, bytes]]) -> "Challenge":
        """Inverse of ``to_mapping``; accepts bytes keys/values from Redis."""
        fields = {
            (k.decode() if isinstance(k, bytes) else k): (v.decode() if isinstance(v, bytes) else v)
            for k, v in data.items()
        }
        return cls(
            id=fields["id"],
            user_id=fields["user_id"],
            code_hash=fields["code_hash"],
            salt=fields["salt"],
            channel=Channel(fields["channel"]),
            attempts_remaining=int(fields["attempts_remaining"]),
            max_attempts=int(fields["max_attempts"]),
            created_at=datetime.fromtimestamp(float(fields["created_at"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(float(fields["expires_at"]), tz=timezone.utc),
        )
