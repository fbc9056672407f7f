"""
Issue Throttling
================
Caps how many challenges a user can start per window.
"""

from typing import Protocol

from .models import ThrottleInfo
from .in_memory import InMemoryIssueThrottle
from .redis_throttle import RedisIssueThrottle, ISSUE_WINDOW_SCRIPT


class IssueThrottle(Protocol):
    async def hit(self, user_id: str) -> ThrottleInfo:
        ...

    async def reset(self, user_id: str) -> None:
        ...


__all__ = [
    # Models
    "ThrottleInfo",
    # Throttles
    "IssueThrottle",
    "InMemoryIssueThrottle",
    "RedisIssueThrottle",
    # Scripts
    "ISSUE_WINDOW_SCRIPT",
]
