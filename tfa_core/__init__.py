"""
tfa-core
========
One-time-code issuance and verification for email/SMS two-factor
authentication.
"""

__version__ = "2.0.0"

# Errors
from tfa_core.exceptions import (
    TwoFactorError,
    ConfigurationError,
    ChallengeNotFoundError,
    ConflictError,
    ExhaustedError,
    DeliveryError,
)

# Config
from tfa_core.config import TwoFactorConfig, get_config

# Codes
from tfa_core.otp import (
    CodeType,
    CodeGenerator,
    generate_code,
    hash_code,
    verify_code_hash,
)

# Challenges
from tfa_core.challenges import (
    Channel,
    Challenge,
    ChallengeStore,
    InMemoryChallengeStore,
    RedisChallengeStore,
    ChallengeSweeper,
)

# Delivery
from tfa_core.delivery import (
    DeliveryDispatcher,
    RecipientResolver,
    MessageTemplate,
    HttpGatewayDispatcher,
    ConsoleDispatcher,
    sms_gateway_address,
)

# Throttling
from tfa_core.throttle import (
    IssueThrottle,
    InMemoryIssueThrottle,
    RedisIssueThrottle,
    ThrottleInfo,
)

# Engine
from tfa_core.engine import (
    VerificationEngine,
    StartOutcome,
    StartResult,
    VerificationOutcome,
    VerificationResult,
)
from tfa_core.factory import create_verification_engine

# Logging
from tfa_core.logging_setup import setup_logging

__all__ = [
    # Errors
    "TwoFactorError",
    "ConfigurationError",
    "ChallengeNotFoundError",
    "ConflictError",
    "ExhaustedError",
    "DeliveryError",
    # Config
    "TwoFactorConfig",
    "get_config",
    # Codes
    "CodeType",
    "CodeGenerator",
    "generate_code",
    "hash_code",
    "verify_code_hash",
    # Challenges
    "Channel",
    "Challenge",
    "ChallengeStore",
    "InMemoryChallengeStore",
    "RedisChallengeStore",
    "ChallengeSweeper",
    # Delivery
    "DeliveryDispatcher",
    "RecipientResolver",
    "MessageTemplate",
    "HttpGatewayDispatcher",
    "ConsoleDispatcher",
    "sms_gateway_address",
    # Throttling
    "IssueThrottle",
    "InMemoryIssueThrottle",
    "RedisIssueThrottle",
    "ThrottleInfo",
    # Engine
    "VerificationEngine",
    "StartOutcome",
    "StartResult",
    "VerificationOutcome",
    "VerificationResult",
    "create_verification_engine",
    # Logging
    "setup_logging",
]
