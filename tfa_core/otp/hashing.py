"""
Code Hashing Utilities
======================
Secure generation, hashing and verification functions for one-time codes.
"""

import secrets
import hashlib
import hmac

from .models import NUMERIC_ALPHABET


def generate_code(length: int = 6, alphabet: str = NUMERIC_ALPHABET) -> str:
    """
    Generate a secure random code.

    Every character is drawn independently and uniformly from the alphabet.

    Args:
        length: Number of characters
        alphabet: Characters to draw from

    Returns:
        Code string

    Raises:
        ValueError: If length or alphabet is unusable
    """
    if length < 1:
        raise ValueError("length must be at least 1")
    if not alphabet:
        raise ValueError("alphabet must not be empty")
    if len(set(alphabet)) != len(alphabet):
        # Repeated characters would skew the distribution
        raise ValueError("alphabet must not contain duplicate characters")

    return ''.join(secrets.choice(alphabet) for _ in range(length))


def hash_code(code: str, salt: str, pepper: str = "") -> str:
    """
    Hash a code with salt and optional pepper using SHA-256.

    Args:
        code: Plain code
        salt: Per-challenge random salt
        pepper: Server-side secret

    Returns:
        Hex digest
    """
    return hashlib.sha256(f"{pepper}:{salt}:{code}".encode()).hexdigest()


def verify_code_hash(code: str, salt: str, stored_hash: str, pepper: str = "") -> bool:
    """
    Verify a code against its hash.

    Uses constant-time comparison to prevent timing attacks.

    Args:
        code: User-provided code
        salt: Original salt
        stored_hash: Stored hash to compare
        pepper: Server-side secret used when hashing

    Returns:
        True if code matches
    """
    computed_hash = hash_code(code, salt, pepper)
    return hmac.compare_digest(computed_hash, stored_hash)


def generate_salt() -> str:
    """Generate a random salt for code hashing."""
    return secrets.token_hex(16)
