"""
Tests for issue throttling.
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from tfa_core.throttle import InMemoryIssueThrottle, RedisIssueThrottle


class TestInMemoryIssueThrottle:
    """Tests for the in-memory fixed window."""

    @pytest.mark.asyncio
    async def test_blocks_after_limit(self):
        """Sends past the limit should be refused with retry_after."""
        now = [1000.0]
        throttle = InMemoryIssueThrottle(limit=3, window=60, clock=lambda: now[0])

        for expected_remaining in (2, 1, 0):
            info = await throttle.hit("user-1")
            assert info.allowed is True
            assert info.remaining == expected_remaining

        info = await throttle.hit("user-1")
        assert info.allowed is False
        assert info.retry_after == 20  # window ends at 1020

    @pytest.mark.asyncio
    async def test_new_window_resets(self):
        """A new window should allow sends again."""
        now = [1000.0]
        throttle = InMemoryIssueThrottle(limit=1, window=60, clock=lambda: now[0])

        await throttle.hit("user-1")
        assert (await throttle.hit("user-1")).allowed is False

        now[0] = 1081.0
        assert (await throttle.hit("user-1")).allowed is True

    @pytest.mark.asyncio
    async def test_separate_users(self):
        """Different users should have separate counters."""
        throttle = InMemoryIssueThrottle(limit=1, window=60)

        assert (await throttle.hit("a")).allowed is True
        assert (await throttle.hit("b")).allowed is True

    @pytest.mark.asyncio
    async def test_reset(self):
        """reset() should clear the user's counter."""
        throttle = InMemoryIssueThrottle(limit=1, window=60)
        await throttle.hit("user-1")

        await throttle.reset("user-1")

        assert (await throttle.hit("user-1")).allowed is True

    @pytest.mark.asyncio
    async def test_stale_windows_dropped(self):
        """Counters from past windows should not accumulate."""
        now = [1000.0]
        throttle = InMemoryIssueThrottle(limit=5, window=60, clock=lambda: now[0])

        for user in ("a", "b", "c"):
            await throttle.hit(user)
        assert len(throttle) == 3

        now[0] = 1100.0
        await throttle.hit("d")

        assert len(throttle) == 1


class TestRedisIssueThrottle:
    """Tests for the Redis fixed window."""

    @pytest.fixture
    def redis_client(self):
        client = AsyncMock()
        client.script_load.return_value = "sha-t"
        return client

    @pytest.mark.asyncio
    async def test_allowed(self, redis_client):
        """Script results should map onto ThrottleInfo."""
        redis_client.evalsha.return_value = [1, 4, 5, 1800, 0]
        throttle = RedisIssueThrottle(redis_client, limit=5, window=900, clock=lambda: 1000)

        info = await throttle.hit("user-1")

        assert info.allowed is True
        assert info.remaining == 4
        assert info.retry_after is None
        redis_client.evalsha.assert_awaited_with("sha-t", 1, "tfa:issued:user-1", 5, 900, 1000)

    @pytest.mark.asyncio
    async def test_blocked(self, redis_client):
        """A refused send should carry retry_after."""
        redis_client.evalsha.return_value = [0, 0, 5, 1800, 800]
        throttle = RedisIssueThrottle(redis_client, clock=lambda: 1000)

        info = await throttle.hit("user-1")

        assert info.allowed is False
        assert info.retry_after == 800

    @pytest.mark.asyncio
    async def test_fails_open(self, redis_client):
        """Redis errors should allow the send."""
        redis_client.evalsha.side_effect = RedisConnectionError("down")
        throttle = RedisIssueThrottle(redis_client, limit=5)

        info = await throttle.hit("user-1")

        assert info.allowed is True

    @pytest.mark.asyncio
    async def test_reset(self, redis_client):
        """reset() should delete the counter key."""
        throttle = RedisIssueThrottle(redis_client, key_prefix="x")

        await throttle.reset("user-1")

        redis_client.delete.assert_awaited_once_with("x:issued:user-1")

    @pytest.mark.asyncio
    async def test_reset_fails_open(self, redis_client):
        """Redis errors on reset should be logged, not raised."""
        redis_client.delete.side_effect = RedisConnectionError("down")
        throttle = RedisIssueThrottle(redis_client)

        await throttle.reset("user-1")

        redis_client.delete.assert_awaited_once_with("tfa:issued:user-1")
