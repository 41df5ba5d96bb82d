"""Seeded pseudo random numbers for reproducible generation.

Every generator call receives its own :class:`SeededRNG`.  Nothing in this
module touches shared state once an instance exists, so two instances built
from the same seed always produce the same sequence.
"""
from __future__ import annotations

import random
from typing import Optional

MODULUS = 0x80000000
MULTIPLIER = 1103515245
INCREMENT = 12345


class SeededRNG:
    """Linear congruential generator.

    A seed of ``None`` or ``0`` means "no seed": a fresh seed is drawn from the
    interpreter's global :mod:`random` source instead.  Any other integer is
    reduced modulo :data:`MODULUS`, even when that leaves ``0``.  The
    effective value is kept in :attr:`seed` so callers can reproduce the
    sequence later.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.modulus = MODULUS
        self.multiplier = MULTIPLIER
        self.increment = INCREMENT
        if not seed:
            seed = random.randrange(1, self.modulus - 1)
        else:
            seed = int(seed) % self.modulus
        self.seed = seed
        self.state = seed

    def next_int(self) -> int:
        self.state = (self.multiplier * self.state + self.increment) % self.modulus
        return self.state

    def next_float(self) -> float:
        """Return a float in ``[0, 1]`` derived from the next state.

        The upper end is inclusive: a state of ``MODULUS - 1`` yields exactly
        ``1.0``, so callers turning this into an index must clamp it.
        """
        return self.next_int() / (self.modulus - 1)

    def next_range(self, lo: float, hi: float) -> float:
        return lo + self.next_float() * (hi - lo)


__all__ = ["SeededRNG", "MODULUS", "MULTIPLIER", "INCREMENT"]
