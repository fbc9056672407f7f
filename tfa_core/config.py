"""
Two-Factor Configuration
========================
Host-provided settings for code issuance and verification.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from tfa_core.exceptions import ConfigurationError
from tfa_core.otp.models import CodeType
from tfa_core.challenges.models import Channel


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


@dataclass
class TwoFactorConfig:
    """Configuration for the verification engine."""
    code_length: int = 6
    code_type: CodeType = CodeType.NUMERIC
    ttl_seconds: int = 300  # 5 minutes
    max_attempts: int = 3
    channel: Channel = Channel.EMAIL
    code_pepper: str = field(default="", repr=False)

    # Delivery
    delivery_timeout: float = 10.0
    delivery_attempts: int = 2
    delivery_backoff: float = 0.5

    # Issue throttling (0 disables)
    max_sends_per_window: int = 5
    send_window_seconds: int = 900

    # Storage
    key_prefix: str = "tfa"
    lock_timeout: float = 10.0
    sweep_interval: float = 0.0  # Seconds, 0 disables the sweeper

    @classmethod
    def from_env(cls, prefix: str = "TFA_") -> "TwoFactorConfig":
        """Build a config from environment variables, e.g. ``TFA_TTL_SECONDS``."""
        defaults = cls()
        config = cls(
            code_length=_env_int(f"{prefix}CODE_LENGTH", defaults.code_length),
            code_type=CodeType(os.environ.get(f"{prefix}CODE_TYPE", defaults.code_type.value)),
            ttl_seconds=_env_int(f"{prefix}TTL_SECONDS", defaults.ttl_seconds),
            max_attempts=_env_int(f"{prefix}MAX_ATTEMPTS", defaults.max_attempts),
            channel=Channel(os.environ.get(f"{prefix}CHANNEL", defaults.channel.value)),
            code_pepper=os.environ.get(f"{prefix}CODE_PEPPER", ""),
            delivery_timeout=_env_float(f"{prefix}DELIVERY_TIMEOUT", defaults.delivery_timeout),
            delivery_attempts=_env_int(f"{prefix}DELIVERY_ATTEMPTS", defaults.delivery_attempts),
            delivery_backoff=_env_float(f"{prefix}DELIVERY_BACKOFF", defaults.delivery_backoff),
            max_sends_per_window=_env_int(f"{prefix}MAX_SENDS", defaults.max_sends_per_window),
            send_window_seconds=_env_int(f"{prefix}SEND_WINDOW", defaults.send_window_seconds),
            key_prefix=os.environ.get(f"{prefix}KEY_PREFIX", defaults.key_prefix),
            lock_timeout=_env_float(f"{prefix}LOCK_TIMEOUT", defaults.lock_timeout),
            sweep_interval=_env_float(f"{prefix}SWEEP_INTERVAL", defaults.sweep_interval),
        )
        return config.validate()

    @property
    def throttle_enabled(self) -> bool:
        return self.max_sends_per_window > 0

    def validate(self) -> "TwoFactorConfig":
        """
        Check value ranges.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: If a value is out of range
        """
        if self.code_length < 1:
            raise ConfigurationError("code_length must be at least 1", details=self.code_length)
        if self.ttl_seconds <= 0:
            raise ConfigurationError("ttl_seconds must be positive", details=self.ttl_seconds)
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1", details=self.max_attempts)
        if self.delivery_timeout <= 0:
            raise ConfigurationError("delivery_timeout must be positive", details=self.delivery_timeout)
        if self.delivery_attempts < 1:
            raise ConfigurationError("delivery_attempts must be at least 1", details=self.delivery_attempts)
        if self.max_sends_per_window < 0 or self.send_window_seconds <= 0:
            raise ConfigurationError("invalid send throttle window")
        if self.sweep_interval < 0:
            raise ConfigurationError("sweep_interval must not be negative", details=self.sweep_interval)
        return self

    def expire_minutes(self) -> int:
        """TTL rounded up to whole minutes, for message templates."""
        return max(1, -(-self.ttl_seconds // 60))


_default_config: Optional[TwoFactorConfig] = None


def get_config() -> TwoFactorConfig:
    """Get the process-wide config, loading it from the environment once."""
    global _default_config
    if _default_config is None:
        _default_config = TwoFactorConfig.from_env()
    return _default_config
