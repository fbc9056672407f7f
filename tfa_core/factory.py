"""
Engine Factory
==============
Wires a VerificationEngine from config, choosing backends by what the host
provides.
"""

from typing import Optional
import structlog

from tfa_core.config import TwoFactorConfig, get_config
from tfa_core.challenges import InMemoryChallengeStore, RedisChallengeStore
from tfa_core.delivery import DeliveryDispatcher
from tfa_core.engine import VerificationEngine
from tfa_core.throttle import InMemoryIssueThrottle, RedisIssueThrottle

logger = structlog.get_logger(__name__)


def create_verification_engine(
    dispatcher: DeliveryDispatcher,
    config: Optional[TwoFactorConfig] = None,
    redis_client=None,
) -> VerificationEngine:
    """
    Build an engine.

    Args:
        dispatcher: Code delivery capability
        config: Settings, defaults to the environment-loaded config
        redis_client: Async Redis client; in-memory backends are used without one

    Returns:
        A VerificationEngine, not yet started
    """
    config = config or get_config()

    if redis_client is not None:
        store = RedisChallengeStore(
            redis_client,
            key_prefix=config.key_prefix,
            lock_timeout=config.lock_timeout,
        )
        throttle = (
            RedisIssueThrottle(
                redis_client,
                limit=config.max_sends_per_window,
                window=config.send_window_seconds,
                key_prefix=config.key_prefix,
            )
            if config.throttle_enabled
            else None
        )
    else:
        logger.warning("Using in-memory challenge store; challenges are not shared between processes")
        store = InMemoryChallengeStore()
        throttle = (
            InMemoryIssueThrottle(
                limit=config.max_sends_per_window,
                window=config.send_window_seconds,
            )
            if config.throttle_enabled
            else None
        )

    return VerificationEngine(store, dispatcher, config=config, throttle=throttle)
