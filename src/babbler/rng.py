# babbler/rng.py
# Deterministic, request-seeded pseudo random numbers for text generation.
"""Seed derivation and the xorshift generator used by the babbler.

Everything here must stay bit-exact: pages are reproduced from the request
path alone, so a seed and a call sequence always produce the same output.
"""

from __future__ import annotations

from typing import Tuple

MASK_32 = 0xFFFFFFFF
HASH_START = 0xDEADBEEF
HASH_MODULUS = (1 << 31) - 1

# Resolution of Xorshift32.uniform()
UNIFORM_STEPS = 900


def hash_string(text: str) -> int:
    """Non-secure rolling hash used to turn a request path into a seed."""
    acc = HASH_START
    for byte in text.encode("utf-8"):
        acc = (acc + byte) & MASK_32
        acc = (acc * 13) & MASK_32
        acc = (acc << 8) & MASK_32
        acc %= HASH_MODULUS
    return acc


def xorshift32(state: int) -> Tuple[int, int]:
    """Advance ``state`` once and return ``(value, new_state)``.

    The value and the new state are the same number. ``0`` is a fixed point.
    """
    x = state & MASK_32
    x ^= (x << 13) & MASK_32
    x ^= x >> 17
    x ^= (x << 5) & MASK_32
    return x, x


def derive_seed(text: str) -> int:
    seed = hash_string(text)
    # A zero seed would never advance.
    return seed or HASH_START


class Xorshift32:
    """Request-local generator state.

    Each request (and each link or title built for it) owns its own instance;
    there is no shared module-level generator.
    """

    __slots__ = ("state",)

    def __init__(self, seed: int) -> None:
        seed &= MASK_32
        if seed == 0:
            raise ValueError("xorshift seed must be non-zero")
        self.state = seed

    def next(self) -> int:
        value, self.state = xorshift32(self.state)
        return value

    def uniform(self) -> float:
        """Return a value in ``[0, 1)``."""
        return (self.next() % UNIFORM_STEPS) / UNIFORM_STEPS

    def choice_index(self, length: int) -> int:
        return self.next() % length

    def advance(self, offset: int) -> None:
        """Add ``offset`` to the raw state with 32-bit wraparound."""
        self.state = (self.state + offset) & MASK_32

    def copy(self) -> "Xorshift32":
        return Xorshift32(self.state)

    def __repr__(self) -> str:
        return f"Xorshift32(state={self.state:#010x})"
