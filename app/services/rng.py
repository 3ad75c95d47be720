"""Seeded pseudo-random numbers for reproducible content rotation.

Every draw is a pure function of the seed: the generator never touches the
``random`` module, the clock, or process state, so a page renders the same
blocks in a build server, a request handler, or a test.
"""

import hashlib

_MASK64 = (1 << 64) - 1

# xorshift64* must never be seeded with zero
_FALLBACK_STATE = 0x9E3779B97F4A7C15


def _hash64(text: str) -> int:
    """Return the first 64 bits of the SHA-256 digest of *text*."""
    return int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:16], 16)


def _splitmix64(value: int) -> int:
    """Scramble *value* with the splitmix64 finalizer."""
    z = (value + 0x9E3779B97F4A7C15) & _MASK64
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK64
    return z ^ (z >> 31)


def derive_seed(page_key: str, build_salt: str) -> int:
    """Derive the 64-bit rotation seed for a page within one build."""
    return _hash64(f"{page_key}:{build_salt}")


class SeededRandom:
    """xorshift64* generator seeded from an explicit 64-bit integer."""

    def __init__(self, seed: int) -> None:
        self.seed = seed & _MASK64
        self._state = _splitmix64(self.seed) or _FALLBACK_STATE

    def next_u64(self) -> int:
        x = self._state
        x ^= x >> 12
        x ^= (x << 25) & _MASK64
        x ^= x >> 27
        self._state = x
        return (x * 0x2545F4914F6CDD1D) & _MASK64

    def random(self) -> float:
        """Return a float in ``[0, 1)`` with 53 bits of precision."""
        return (self.next_u64() >> 11) * (1.0 / (1 << 53))

    def fork(self, key: str) -> "SeededRandom":
        """Return an independent generator for *key*.

        The child depends only on this generator's seed and *key*, never on
        how many numbers have been drawn, so per-item draws stay stable when
        other items are added or removed.
        """
        return SeededRandom(_splitmix64(self.seed ^ _hash64(key)))
