"""
Challenge Sweeper
=================
Optional background task that purges expired challenges.

Expiry is enforced at verify time; the sweeper only keeps storage small.
"""

import asyncio
from typing import Optional
import structlog

from .base import ChallengeStore

logger = structlog.get_logger(__name__)


class ChallengeSweeper:
    """Periodically calls ``store.purge_expired()``."""

    def __init__(self, store: ChallengeStore, interval: float = 60.0):
        self.store = store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="tfa-challenge-sweeper")
        logger.info("Challenge sweeper started", store=self.store.name, interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Challenge sweeper stopped", store=self.store.name)

    async def sweep(self) -> int:
        removed = await self.store.purge_expired()
        if removed:
            logger.debug("Expired challenges purged", count=removed)
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception as e:
                # Keep sweeping; the next pass retries
                logger.error("Challenge sweep failed", error=str(e))
