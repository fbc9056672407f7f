"""
Verification Engine
===================
Challenge issuance and verification with outcome values.
"""

from .models import (
    StartOutcome,
    StartResult,
    VerificationOutcome,
    VerificationResult,
    DELIVERY_FAILED_MESSAGE,
)
from .verification import VerificationEngine

__all__ = [
    # Models
    "StartOutcome",
    "StartResult",
    "VerificationOutcome",
    "VerificationResult",
    "DELIVERY_FAILED_MESSAGE",
    # Engine
    "VerificationEngine",
]
