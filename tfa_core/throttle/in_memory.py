"""
In-Memory Issue Throttle
========================
Fixed-window counter limiting how many challenges a user may start.
"""

import time
from typing import Callable, Dict

from .models import ThrottleInfo


class InMemoryIssueThrottle:
    """
    Process-local fixed-window send counter.

    For development and single-worker hosts.
    Use RedisIssueThrottle when workers share users.
    """

    def __init__(
        self,
        limit: int = 5,
        window: int = 900,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            limit: Challenges allowed per window
            window: Window size in seconds
            clock: Source of Unix time
        """
        self.limit = limit
        self.window = window
        self.clock = clock
        self._windows: Dict[str, Dict[str, int]] = {}
        self._current_window = 0

    def __len__(self) -> int:
        return len(self._windows)

    def _prune(self, window_start: int) -> None:
        """Drop counters from earlier windows once a new window begins."""
        if window_start <= self._current_window:
            return
        self._current_window = window_start
        stale = [k for k, v in self._windows.items() if v["window"] < window_start]
        for key in stale:
            del self._windows[key]

    async def hit(self, user_id: str) -> ThrottleInfo:
        """
        Count one send for the user if the window allows it.

        Args:
            user_id: User starting a challenge

        Returns:
            ThrottleInfo with decision and quota
        """
        now = self.clock()
        window_start = int(now // self.window) * self.window
        reset_at = int(window_start + self.window)
        self._prune(window_start)

        counter = self._windows.get(user_id)
        if counter is None or counter["window"] < window_start:
            counter = self._windows[user_id] = {"window": window_start, "count": 0}

        if counter["count"] >= self.limit:
            return ThrottleInfo(
                allowed=False,
                remaining=0,
                limit=self.limit,
                reset_at=reset_at,
                retry_after=max(1, reset_at - int(now)),
            )

        counter["count"] += 1
        return ThrottleInfo(
            allowed=True,
            remaining=self.limit - counter["count"],
            limit=self.limit,
            reset_at=reset_at,
        )

    async def reset(self, user_id: str) -> None:
        """Forget a user's sends, e.g. after a successful verification."""
        self._windows.pop(user_id, None)
