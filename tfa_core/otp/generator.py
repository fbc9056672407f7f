"""
Code Generator
==============
High-level code generation and hash matching.
"""

import re
from typing import Optional
import structlog

from .models import CodeType
from .hashing import generate_code, generate_salt, hash_code, verify_code_hash

logger = structlog.get_logger(__name__)

_SEPARATORS = re.compile(r"[\s\-]+")

# Codes shorter than this are accepted but logged
RECOMMENDED_MIN_LENGTH = 6


class CodeGenerator:
    """
    Produces one-time codes and the salted hashes stored in place of them.

    Example:
        generator = CodeGenerator(length=8, code_type=CodeType.ALPHANUMERIC)
        code = generator.generate()
        salt = generator.new_salt()
        stored = generator.hash(code, salt)
        assert generator.matches(code, salt, stored)
    """

    def __init__(
        self,
        length: int = 6,
        code_type: CodeType = CodeType.NUMERIC,
        pepper: str = "",
        alphabet: Optional[str] = None,
    ):
        self.length = length
        self.alphabet = alphabet or code_type.alphabet
        self._pepper = pepper
        self._case_insensitive = not any(c.islower() for c in self.alphabet)

        if length < RECOMMENDED_MIN_LENGTH:
            logger.warning(
                "Short verification code configured",
                length=length,
                recommended=RECOMMENDED_MIN_LENGTH,
            )

    def generate(self, length: Optional[int] = None, alphabet: Optional[str] = None) -> str:
        """
        Generate a code.

        Args:
            length: Override the configured length
            alphabet: Override the configured alphabet

        Returns:
            Plain code, to be delivered and then discarded
        """
        return generate_code(
            length=length if length is not None else self.length,
            alphabet=alphabet or self.alphabet,
        )

    def new_salt(self) -> str:
        return generate_salt()

    def normalize(self, code: str) -> str:
        """Strip spaces and hyphens users type in; fold case for letter alphabets."""
        code = _SEPARATORS.sub("", code or "")
        return code.upper() if self._case_insensitive else code

    def hash(self, code: str, salt: str) -> str:
        return hash_code(self.normalize(code), salt, self._pepper)

    def matches(self, code: str, salt: str, stored_hash: str) -> bool:
        """Constant-time check of a submitted code against a stored hash."""
        return verify_code_hash(self.normalize(code), salt, stored_hash, self._pepper)
