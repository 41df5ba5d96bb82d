"""Seeded 2D simplex noise."""
from __future__ import annotations

import math
from typing import List, Optional, Tuple

from .rng import SeededRNG

GRAD3: Tuple[Tuple[int, int, int], ...] = (
    (1, 1, 0),
    (-1, 1, 0),
    (1, -1, 0),
    (-1, -1, 0),
    (1, 0, 1),
    (-1, 0, 1),
    (1, 0, -1),
    (-1, 0, -1),
    (0, 1, 1),
    (0, -1, 1),
    (0, 1, -1),
    (0, -1, -1),
)

F2 = 0.5 * (math.sqrt(3.0) - 1.0)
G2 = (3.0 - math.sqrt(3.0)) / 6.0


class SimpleNoise:
    """Coherent 2D noise field driven by a :class:`SeededRNG` permutation.

    ``noise2d`` returns values roughly in ``[-1, 1]``.  :meth:`seed` rebuilds
    the permutation table of this instance in place.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.perm: List[int] = [0] * 512
        self.rng: SeededRNG
        self.seed(seed)

    def seed(self, value: Optional[int]) -> None:
        self.rng = SeededRNG(value)
        p = list(range(256))
        for i in range(255, 0, -1):
            # next_float can return exactly 1.0
            r = min(i, math.floor(self.rng.next_float() * (i + 1)))
            p[i], p[r] = p[r], p[i]
        for i in range(512):
            self.perm[i] = p[i & 255]

    def noise2d(self, xin: float, yin: float) -> float:
        perm = self.perm
        s = (xin + yin) * F2
        i = math.floor(xin + s)
        j = math.floor(yin + s)
        t = (i + j) * G2
        x0 = xin - (i - t)
        y0 = yin - (j - t)
        if x0 > y0:
            i1, j1 = 1, 0
        else:
            i1, j1 = 0, 1
        x1 = x0 - i1 + G2
        y1 = y0 - j1 + G2
        x2 = x0 - 1.0 + 2.0 * G2
        y2 = y0 - 1.0 + 2.0 * G2
        ii = i & 255
        jj = j & 255
        gi0 = perm[ii + perm[jj]] % 12
        gi1 = perm[ii + i1 + perm[jj + j1]] % 12
        gi2 = perm[ii + 1 + perm[jj + 1]] % 12

        n0 = n1 = n2 = 0.0
        t0 = 0.5 - x0 * x0 - y0 * y0
        if t0 >= 0:
            t0 *= t0
            g = GRAD3[gi0]
            n0 = t0 * t0 * (g[0] * x0 + g[1] * y0)
        t1 = 0.5 - x1 * x1 - y1 * y1
        if t1 >= 0:
            t1 *= t1
            g = GRAD3[gi1]
            n1 = t1 * t1 * (g[0] * x1 + g[1] * y1)
        t2 = 0.5 - x2 * x2 - y2 * y2
        if t2 >= 0:
            t2 *= t2
            g = GRAD3[gi2]
            n2 = t2 * t2 * (g[0] * x2 + g[1] * y2)
        return 70.0 * (n0 + n1 + n2)


__all__ = ["SimpleNoise", "GRAD3"]
