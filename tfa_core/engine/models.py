"""
Engine Models
=============
Outcome values returned by the verification engine.
"""

from datetime import datetime
from typing import Optional
from dataclasses import dataclass
from enum import Enum

from tfa_core.challenges.models import Channel

# Shown to the user when delivery keeps failing
DELIVERY_FAILED_MESSAGE = "could not send code"


class StartOutcome(str, Enum):
    """Result of starting a challenge."""
    SENT = "sent"
    CONFLICT = "conflict"
    DELIVERY_FAILED = "delivery_failed"
    RATE_LIMITED = "rate_limited"


class VerificationOutcome(str, Enum):
    """Result of a verification attempt."""
    VERIFIED = "verified"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class StartResult:
    """Outcome of ``start_challenge``."""
    outcome: StartOutcome
    user_id: str
    channel: Channel
    expires_at: Optional[datetime] = None
    retry_after: Optional[int] = None  # Seconds, when rate limited
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == StartOutcome.SENT


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of ``verify``."""
    outcome: VerificationOutcome
    user_id: str
    attempts_remaining: Optional[int] = None  # Set for INVALID_CODE

    @property
    def success(self) -> bool:
        return self.outcome == VerificationOutcome.VERIFIED
