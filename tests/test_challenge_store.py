"""
Tests for the in-memory challenge store, keyed locks and sweeper.
"""

import asyncio

import pytest

from tfa_core.challenges import Channel, ChallengeSweeper, KeyedLock
from tfa_core.exceptions import ConflictError, ChallengeNotFoundError, ExhaustedError


async def _create(store, user_id="user-1", ttl=300, max_attempts=3, replace=False):
    return await store.create(
        user_id,
        code_hash="h" * 64,
        salt="s" * 32,
        ttl=ttl,
        channel=Channel.EMAIL,
        max_attempts=max_attempts,
        replace=replace,
    )


class TestInMemoryChallengeStore:
    """Tests for InMemoryChallengeStore."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, store, clock):
        """Should store a challenge with expiry after creation."""
        challenge = await _create(store)

        assert challenge.attempts_remaining == 3
        assert challenge.created_at == clock.now
        assert challenge.expires_at > challenge.created_at
        assert await store.get("user-1") == challenge

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        """Missing challenges read as None."""
        assert await store.get("nobody") is None

    @pytest.mark.asyncio
    async def test_conflict_when_pending(self, store):
        """A second create without replace should conflict."""
        await _create(store)

        with pytest.raises(ConflictError):
            await _create(store)

    @pytest.mark.asyncio
    async def test_replace_invalidates_prior(self, store):
        """Replacing should swap in a new challenge id."""
        first = await _create(store)
        second = await _create(store, replace=True)

        assert second.id != first.id
        assert (await store.get("user-1")).id == second.id

    @pytest.mark.asyncio
    async def test_expired_challenge_is_overwritten(self, store, clock):
        """An expired leftover should not block a new challenge."""
        await _create(store, ttl=60)
        clock.advance(61)

        challenge = await _create(store)

        assert challenge.created_at == clock.now

    @pytest.mark.asyncio
    async def test_record_attempt_decrements(self, store):
        """Each attempt should consume one try."""
        await _create(store)

        challenge = await store.record_attempt("user-1")
        assert challenge.attempts_remaining == 2

        challenge = await store.record_attempt("user-1")
        assert challenge.attempts_remaining == 1

    @pytest.mark.asyncio
    async def test_record_attempt_exhausts(self, store):
        """Reaching zero should raise ExhaustedError, and keep raising."""
        await _create(store, max_attempts=1)

        with pytest.raises(ExhaustedError):
            await store.record_attempt("user-1")
        with pytest.raises(ExhaustedError):
            await store.record_attempt("user-1")

        assert (await store.get("user-1")).attempts_remaining == 0

    @pytest.mark.asyncio
    async def test_record_attempt_missing(self, store):
        """No challenge means ChallengeNotFoundError."""
        with pytest.raises(ChallengeNotFoundError):
            await store.record_attempt("nobody")

    @pytest.mark.asyncio
    async def test_delete(self, store):
        """Delete should report whether something was removed."""
        await _create(store)

        assert await store.delete("user-1") is True
        assert await store.delete("user-1") is False
        assert await store.get("user-1") is None

    @pytest.mark.asyncio
    async def test_delete_compares_id(self, store):
        """Delete with a stale id should leave the newer challenge alone."""
        first = await _create(store)
        second = await _create(store, replace=True)

        assert await store.delete("user-1", challenge_id=first.id) is False
        assert await store.delete("user-1", challenge_id=second.id) is True

    @pytest.mark.asyncio
    async def test_purge_expired(self, store, clock):
        """Only expired challenges should be purged."""
        await _create(store, user_id="old", ttl=60)
        await _create(store, user_id="fresh", ttl=600)
        clock.advance(120)

        assert await store.purge_expired() == 1
        assert await store.get("old") is None
        assert await store.get("fresh") is not None

    @pytest.mark.asyncio
    async def test_users_are_independent(self, store):
        """Challenges for different users should not interact."""
        await _create(store, user_id="a")
        await _create(store, user_id="b")
        await store.record_attempt("a")

        assert (await store.get("b")).attempts_remaining == 3
        assert len(store) == 2


class TestChallengeModel:
    """Tests for the Challenge invariants."""

    @pytest.mark.asyncio
    async def test_mapping_round_trip(self, store):
        """Flattened fields should rebuild the same challenge, bytes included."""
        from tfa_core.challenges import Challenge

        challenge = await _create(store)
        raw = {k.encode(): v.encode() for k, v in challenge.to_mapping().items()}

        assert Challenge.from_mapping(raw) == challenge

    def test_rejects_expiry_before_creation(self, clock):
        """expires_at must be after created_at."""
        from tfa_core.challenges import Challenge

        with pytest.raises(ValueError):
            Challenge(
                id="x",
                user_id="u",
                code_hash="h",
                salt="s",
                channel=Channel.SMS,
                attempts_remaining=3,
                max_attempts=3,
                created_at=clock.now,
                expires_at=clock.now,
            )


class TestKeyedLock:
    """Tests for per-key locking."""

    @pytest.mark.asyncio
    async def test_serializes_same_key(self):
        """Holders of the same key should not overlap."""
        locks = KeyedLock()
        active = 0
        peak = 0

        async def worker():
            nonlocal active, peak
            async with locks("user-1"):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(worker() for _ in range(5)))

        assert peak == 1

    @pytest.mark.asyncio
    async def test_different_keys_run_concurrently(self):
        """Different keys should not block each other."""
        locks = KeyedLock()
        entered = asyncio.Event()

        async def holder():
            async with locks("a"):
                await entered.wait()

        task = asyncio.create_task(holder())
        await asyncio.sleep(0)
        async with locks("b"):
            entered.set()
        await task

    @pytest.mark.asyncio
    async def test_registry_is_cleaned(self):
        """Locks should be dropped once unused."""
        locks = KeyedLock()
        async with locks("user-1"):
            assert len(locks) == 1

        assert len(locks) == 0


class TestChallengeSweeper:
    """Tests for the background sweeper."""

    @pytest.mark.asyncio
    async def test_sweep_once(self, store, clock):
        """A manual sweep should purge expired challenges."""
        await _create(store, ttl=60)
        clock.advance(61)

        assert await ChallengeSweeper(store).sweep() == 1

    @pytest.mark.asyncio
    async def test_background_loop(self, store, clock):
        """The task should purge on its interval and stop cleanly."""
        await _create(store, ttl=60)
        clock.advance(61)

        sweeper = ChallengeSweeper(store, interval=0.01)
        sweeper.start()
        assert sweeper.running

        for _ in range(50):
            if len(store) == 0:
                break
            await asyncio.sleep(0.01)

        await sweeper.stop()

        assert len(store) == 0
        assert not sweeper.running
