"""
Code Models
===========
Code types and their alphabets.
"""

from enum import Enum

NUMERIC_ALPHABET = "0123456789"
# Exclude confusing characters (0, O, 1, l, I)
ALPHA_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ"
ALPHANUMERIC_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"


class CodeType(str, Enum):
    """Characters a one-time code is drawn from."""
    NUMERIC = "numeric"
    ALPHA = "alpha"
    ALPHANUMERIC = "alphanumeric"

    @property
    def alphabet(self) -> str:
        return {
            CodeType.NUMERIC: NUMERIC_ALPHABET,
            CodeType.ALPHA: ALPHA_ALPHABET,
            CodeType.ALPHANUMERIC: ALPHANUMERIC_ALPHABET,
        }[self]
