"""
One-Time Code Generation
========================
Secure code generation, salted hashing and constant-time verification.
"""

from .models import (
    CodeType,
    NUMERIC_ALPHABET,
    ALPHA_ALPHABET,
    ALPHANUMERIC_ALPHABET,
)
from .hashing import generate_code, hash_code, verify_code_hash, generate_salt
from .generator import CodeGenerator

__all__ = [
    # Models
    "CodeType",
    "NUMERIC_ALPHABET",
    "ALPHA_ALPHABET",
    "ALPHANUMERIC_ALPHABET",
    # Hashing
    "generate_code",
    "hash_code",
    "verify_code_hash",
    "generate_salt",
    # Generator
    "CodeGenerator",
]
