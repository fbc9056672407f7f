"""
Two-Factor Errors
=================
Exception taxonomy shared by the challenge store and delivery layers.

The engine converts these into outcome values; callers of
``VerificationEngine`` never see them.
"""

from typing import Optional, Any


class TwoFactorError(Exception):
    """Base exception for all two-factor errors."""
    def __init__(self, message: str, user_id: Optional[str] = None, details: Any = None):
        self.message = message
        self.user_id = user_id
        self.details = details
        super().__init__(f"{message} (user: {user_id})" if user_id else message)

class ConfigurationError(TwoFactorError):
    """Raised when configuration values are out of range."""
    pass

class ChallengeNotFoundError(TwoFactorError):
    """Raised when no active challenge exists for the user."""
    pass

class ConflictError(TwoFactorError):
    """Raised when a challenge is already pending and replacement was not requested."""
    pass

class ExhaustedError(TwoFactorError):
    """Raised when a challenge has no verification attempts left."""
    pass

class DeliveryError(TwoFactorError):
    """Raised when a code could not be handed to the email/SMS transport."""
    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        details: Any = None,
        channel: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.channel = channel
        self.status_code = status_code
        super().__init__(message, user_id=user_id, details=details)
