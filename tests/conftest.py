"""
Shared fixtures for tfa-core tests.
"""

import asyncio
from datetime import datetime, timezone, timedelta
from typing import List, Tuple

import pytest

from tfa_core.challenges import Channel, InMemoryChallengeStore
from tfa_core.config import TwoFactorConfig
from tfa_core.delivery import DeliveryDispatcher
from tfa_core.exceptions import DeliveryError


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingDispatcher(DeliveryDispatcher):
    """Keeps sent codes; fails the first ``failures`` sends."""

    name = "recording"

    def __init__(self, failures: int = 0, delay: float = 0.0):
        super().__init__()
        self.failures = failures
        self.delay = delay
        self.sent: List[Tuple[str, Channel, str]] = []
        self.calls = 0

    async def send(self, user_id: str, channel: Channel, code: str) -> None:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.calls <= self.failures:
            raise DeliveryError("gateway down", user_id=user_id, channel=channel.value)
        self.sent.append((user_id, channel, code))

    def last_code(self) -> str:
        return self.sent[-1][2]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryChallengeStore(clock=clock)


@pytest.fixture
def config():
    return TwoFactorConfig(
        ttl_seconds=300,
        max_attempts=3,
        delivery_backoff=0,
        delivery_timeout=1.0,
    )


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()
