# tinyvault: Random Source
#
# Randomness is injected into the engine instead of being reached through
# global state, so tests can produce reproducible vaults.

import os
import random
from abc import ABC, abstractmethod
from typing import Optional


class RandomSource(ABC):
    """Interface for the engine's source of random bytes."""

    @abstractmethod
    def token_bytes(self, n: int) -> bytes:
        """Return n random bytes."""


class SystemRandomSource(RandomSource):
    """Cryptographically secure bytes from the operating system."""

    def token_bytes(self, n: int) -> bytes:
        return os.urandom(n)


class SeededRandomSource(RandomSource):
    """
    Deterministic bytes from a seeded PRNG.

    NOT for real vaults: only for reproducible test vectors.
    """

    def __init__(self, seed: Optional[int] = 0):
        self._rng = random.Random(seed)

    def token_bytes(self, n: int) -> bytes:
        return self._rng.randbytes(n)


_default_source: Optional[RandomSource] = None


def get_random_source() -> RandomSource:
    """Get the process-wide system random source (singleton pattern)."""
    global _default_source
    if _default_source is None:
        _default_source = SystemRandomSource()
    return _default_source
