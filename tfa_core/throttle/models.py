"""
Throttle Models
===============
Result of an issue-throttle check.
"""

from typing import Optional
from dataclasses import dataclass


@dataclass
class ThrottleInfo:
    """Issue throttle decision with quota information."""
    allowed: bool
    remaining: int
    limit: int
    reset_at: int  # Unix timestamp
    retry_after: Optional[int] = None  # Seconds until another send is allowed
