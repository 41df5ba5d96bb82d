"""Noise warped grid."""
from __future__ import annotations

import math
from typing import List

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params


class Grid(Algorithm):
    key = "grid"
    label = "Grid"
    defaults: Params = {
        "rows": 20,
        "cols": 20,
        "distortion": 10.0,
        "noise_scale": 0.05,
        "type": "warp",
        "chaos": 0.0,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        m = bounds.margin
        rows = int(math.floor(p["rows"]))
        cols = int(math.floor(p["cols"]))
        if rows <= 0 or cols <= 0:
            return []
        col_w = bounds.drawable_width / cols
        row_h = bounds.drawable_height / rows

        def vertex(c: int, r: int) -> XY:
            x = m + c * col_w
            y = m + r * row_h
            n = noise.noise2d(x * p["noise_scale"], y * p["noise_scale"])
            if p["type"] == "warp":
                x += math.cos(n * math.pi) * p["distortion"]
                y += math.sin(n * math.pi) * p["distortion"]
            else:
                y += n * p["distortion"]
            x += (rng.next_float() - 0.5) * p["chaos"]
            y += (rng.next_float() - 0.5) * p["chaos"]
            return x, y

        paths: List[Path] = []
        for r in range(rows + 1):
            paths.append(Polyline(points=[vertex(c, r) for c in range(cols + 1)]))
        for c in range(cols + 1):
            paths.append(Polyline(points=[vertex(c, r) for r in range(rows + 1)]))
        return paths

    def formula(self, params=None) -> str:
        return "pos += noise(x,y) * distortion"


__all__ = ["Grid"]
