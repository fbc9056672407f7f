"""
Challenge Storage
=================
Pending challenges keyed by user id, with in-memory and Redis backends.
"""

from .models import Channel, Challenge
from .base import ChallengeStore, utc_now
from .locks import KeyedLock
from .in_memory import InMemoryChallengeStore
from .redis_store import (
    RedisChallengeStore,
    CREATE_SCRIPT,
    RECORD_ATTEMPT_SCRIPT,
    DELETE_SCRIPT,
)
from .sweeper import ChallengeSweeper

__all__ = [
    # Models
    "Channel",
    "Challenge",
    # Stores
    "ChallengeStore",
    "InMemoryChallengeStore",
    "RedisChallengeStore",
    "utc_now",
    # Locking
    "KeyedLock",
    # Scripts
    "CREATE_SCRIPT",
    "RECORD_ATTEMPT_SCRIPT",
    "DELETE_SCRIPT",
    # Hygiene
    "ChallengeSweeper",
]
