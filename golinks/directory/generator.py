"""
Short-code generation for GoLinks.

Provided generators:
- RandomCodeGenerator: random Base62 code of length L (default 6 via settings.CODE_LENGTH)

Notes:
- Generators never consult the store. Uniqueness is decided by the store's
  insert, and LinkDirectory retries with a fresh candidate on collision.
- Generation is pure in-memory randomness, cheap enough to call in a loop.
- At 6 Base62 characters there are ~5.7e10 codes; repeated collisions point to
  a broken generator or a saturated keyspace, not bad luck.
"""

import random
from abc import ABC, abstractmethod
from typing import Optional

from ..config import SHORT_CODE_MAX_LENGTH, settings

BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


class BaseCodeGenerator(ABC):
    """Abstract base for short-code generators."""

    @abstractmethod
    def generate(self) -> str:  # pragma: no cover
        """Return one candidate short code."""
        raise NotImplementedError


class RandomCodeGenerator(BaseCodeGenerator):
    """Random codes drawn from the OS entropy source."""

    def __init__(self, length: Optional[int] = None, alphabet: str = BASE62_ALPHABET):
        L = settings.CODE_LENGTH if length is None else int(length)
        if not 1 <= L <= SHORT_CODE_MAX_LENGTH:
            raise ValueError(f"Code length must be between 1 and {SHORT_CODE_MAX_LENGTH}")
        if not alphabet:
            raise ValueError("Alphabet must not be empty")
        self.length = L
        self.alphabet = alphabet
        self._rng = random.SystemRandom()

    def generate(self) -> str:
        return "".join(self._rng.choice(self.alphabet) for _ in range(self.length))
