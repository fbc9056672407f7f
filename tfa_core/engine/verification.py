"""
Verification Engine
===================
Issues one-time codes and verifies them against stored challenges.

States per user:

1. NO CHALLENGE: nothing pending, verify reports NOT_FOUND
2. PENDING: code delivered, awaiting verification
3. VERIFIED / EXPIRED / EXHAUSTED: terminal, the challenge is removed
4. INVALID: wrong code, stays PENDING with one attempt fewer

Usage:
    engine = VerificationEngine(InMemoryChallengeStore(), dispatcher, config)
    async with engine:
        started = await engine.start_challenge("user-42")
        ...
        result = await engine.verify("user-42", submitted)
        if result.success:
            ...
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional, Union
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tfa_core.config import TwoFactorConfig
from tfa_core.exceptions import (
    ChallengeNotFoundError,
    ConflictError,
    DeliveryError,
    ExhaustedError,
)
from tfa_core.otp import CodeGenerator
from tfa_core.challenges import Challenge, ChallengeStore, ChallengeSweeper, Channel
from tfa_core.delivery import DeliveryDispatcher
from tfa_core.throttle import IssueThrottle
from .models import (
    DELIVERY_FAILED_MESSAGE,
    StartOutcome,
    StartResult,
    VerificationOutcome,
    VerificationResult,
)

logger = structlog.get_logger(__name__)


def _log_delivery_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying code delivery",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


class VerificationEngine:
    """
    Orchestrates code generation, challenge storage and delivery.

    Holds no per-user state of its own; the store owns every challenge.
    Public operations return outcome values and do not raise for
    conflicts, delivery failures or wrong codes.
    """

    def __init__(
        self,
        store: ChallengeStore,
        dispatcher: DeliveryDispatcher,
        config: Optional[TwoFactorConfig] = None,
        generator: Optional[CodeGenerator] = None,
        throttle: Optional[IssueThrottle] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = (config or TwoFactorConfig()).validate()
        self.store = store
        self.dispatcher = dispatcher
        self.dispatcher.set_expire_minutes(self.config.expire_minutes())
        self.generator = generator or CodeGenerator(
            length=self.config.code_length,
            code_type=self.config.code_type,
            pepper=self.config.code_pepper,
        )
        self.throttle = throttle
        self.clock = clock or store.clock
        self._sweeper = (
            ChallengeSweeper(store, self.config.sweep_interval)
            if self.config.sweep_interval > 0
            else None
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Initialize the dispatcher and start the sweeper if configured."""
        await self.dispatcher.initialize()
        if self._sweeper is not None:
            self._sweeper.start()

    async def close(self) -> None:
        if self._sweeper is not None:
            await self._sweeper.stop()
        await self.dispatcher.close()

    async def __aenter__(self) -> "VerificationEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    # ------------------------------------------------------------------
    # Issuing
    # ------------------------------------------------------------------

    async def start_challenge(
        self,
        user_id: str,
        channel: Optional[Union[Channel, str]] = None,
        replace: bool = False,
    ) -> StartResult:
        """
        Generate a code, store its hash and deliver it.

        Args:
            user_id: User to challenge
            channel: Email or SMS, defaults to the configured channel
            replace: Invalidate a pending challenge instead of reporting CONFLICT

        Returns:
            StartResult; SENT only once the dispatcher accepted the code
        """
        channel = Channel(channel or self.config.channel)
        log = logger.bind(user_id=user_id, channel=channel.value)

        if self.throttle is not None:
            info = await self.throttle.hit(user_id)
            if not info.allowed:
                log.warning("Challenge issue throttled", retry_after=info.retry_after)
                return StartResult(
                    outcome=StartOutcome.RATE_LIMITED,
                    user_id=user_id,
                    channel=channel,
                    retry_after=info.retry_after,
                    error="too many codes requested",
                )

        code = self.generator.generate()
        salt = self.generator.new_salt()
        code_hash = self.generator.hash(code, salt)

        try:
            async with self.store.lock(user_id):
                challenge = await self.store.create(
                    user_id,
                    code_hash,
                    salt,
                    ttl=self.config.ttl_seconds,
                    channel=channel,
                    max_attempts=self.config.max_attempts,
                    replace=replace,
                )
        except ConflictError:
            log.info("Challenge already pending")
            return StartResult(
                outcome=StartOutcome.CONFLICT,
                user_id=user_id,
                channel=channel,
                error="a code was already sent",
            )

        log = log.bind(challenge_id=challenge.id)

        # Delivery runs outside the per-user lock
        try:
            await self._deliver(user_id, channel, code)
        except DeliveryError as e:
            await self._rollback(challenge)
            log.error("Code delivery failed", error=e.message, status_code=e.status_code)
            return StartResult(
                outcome=StartOutcome.DELIVERY_FAILED,
                user_id=user_id,
                channel=channel,
                error=DELIVERY_FAILED_MESSAGE,
            )
        except Exception:
            await self._rollback(challenge)
            raise

        log.info(
            "Challenge started",
            expires_in=self.config.ttl_seconds,
            max_attempts=challenge.max_attempts,
        )
        return StartResult(
            outcome=StartOutcome.SENT,
            user_id=user_id,
            channel=channel,
            expires_at=challenge.expires_at,
        )

    async def _deliver(self, user_id: str, channel: Channel, code: str) -> None:
        """Send with a per-attempt timeout, retrying DeliveryError with backoff."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.delivery_attempts),
            wait=wait_exponential(multiplier=self.config.delivery_backoff, max=10),
            retry=retry_if_exception_type(DeliveryError),
            before_sleep=_log_delivery_retry,
            reraise=True,
        ):
            with attempt:
                try:
                    await asyncio.wait_for(
                        self.dispatcher.send(user_id, channel, code),
                        timeout=self.config.delivery_timeout,
                    )
                except asyncio.TimeoutError as e:
                    raise DeliveryError(
                        "Delivery timed out",
                        user_id=user_id,
                        channel=channel.value,
                        details=self.config.delivery_timeout,
                    ) from e

    async def _rollback(self, challenge: Challenge) -> None:
        """Remove exactly the challenge created by a failed start."""
        async with self.store.lock(challenge.user_id):
            await self.store.delete(challenge.user_id, challenge_id=challenge.id)

    # ------------------------------------------------------------------
    # Verifying
    # ------------------------------------------------------------------

    async def verify(self, user_id: str, submitted_code: str) -> VerificationResult:
        """
        Check a submitted code.

        Expiry is checked before the code, so a correct code submitted too
        late is EXPIRED. The wrong submission that uses the last attempt
        is EXHAUSTED and removes the challenge.

        Args:
            user_id: User being verified
            submitted_code: Code as typed by the user

        Returns:
            VerificationResult
        """
        log = logger.bind(user_id=user_id)

        async with self.store.lock(user_id):
            challenge = await self.store.get(user_id)
            if challenge is None:
                log.info("No challenge to verify")
                return VerificationResult(VerificationOutcome.NOT_FOUND, user_id)

            log = log.bind(challenge_id=challenge.id)

            if challenge.is_expired(self.clock()):
                await self.store.delete(user_id, challenge_id=challenge.id)
                log.warning("Challenge expired")
                return VerificationResult(VerificationOutcome.EXPIRED, user_id)

            if self.generator.matches(submitted_code, challenge.salt, challenge.code_hash):
                await self.store.delete(user_id, challenge_id=challenge.id)
                verified = True
            else:
                verified = False
                try:
                    challenge = await self.store.record_attempt(user_id)
                except ExhaustedError:
                    await self.store.delete(user_id, challenge_id=challenge.id)
                    log.warning("Challenge attempts exhausted")
                    return VerificationResult(VerificationOutcome.EXHAUSTED, user_id)
                except ChallengeNotFoundError:
                    return VerificationResult(VerificationOutcome.NOT_FOUND, user_id)

        if not verified:
            log.warning("Invalid code", remaining=challenge.attempts_remaining)
            return VerificationResult(
                VerificationOutcome.INVALID_CODE,
                user_id,
                attempts_remaining=challenge.attempts_remaining,
            )

        if self.throttle is not None:
            await self.throttle.reset(user_id)
        log.info("Challenge verified")
        return VerificationResult(VerificationOutcome.VERIFIED, user_id)

    # ------------------------------------------------------------------
    # Host helpers
    # ------------------------------------------------------------------

    async def pending(self, user_id: str) -> Optional[Challenge]:
        """The user's unexpired challenge, if any."""
        challenge = await self.store.get(user_id)
        if challenge is None or challenge.is_expired(self.clock()):
            return None
        return challenge

    async def cancel(self, user_id: str) -> bool:
        """Discard a pending challenge. Returns True if one was removed."""
        async with self.store.lock(user_id):
            removed = await self.store.delete(user_id)
        if removed:
            logger.info("Challenge cancelled", user_id=user_id)
        return removed
