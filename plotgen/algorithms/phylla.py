"""Phyllotaxis dot pattern."""
from __future__ import annotations

import math
from typing import List

from ..config import Bounds
from ..geometry import Circle, Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params, clamp


class Phylla(Algorithm):
    key = "phylla"
    label = "Phyllotaxis"
    defaults: Params = {
        "count": 500,
        "spacing": 5.0,
        "angle_str": 137.5,
        "divergence": 1.0,
        "noise_inf": 0.0,
        "dot_size": 1.0,
        "shape_type": "circle",
        "sides": 6,
        "side_jitter": 0,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        m = bounds.margin
        width, height = bounds.width, bounds.height
        cx, cy = width / 2, height / 2
        angle_step = math.radians(p["angle_str"])
        dot = max(0.1, p["dot_size"])
        base_sides = int(clamp(round(p["sides"]), 3, 100))
        side_jitter = int(clamp(round(p["side_jitter"]), 0, 50))
        angle_offset = rng.next_float() * math.pi * 2

        paths: List[Path] = []
        for i in range(max(0, int(p["count"]))):
            r = p["spacing"] * math.sqrt(i) * p["divergence"]
            a = i * angle_step + angle_offset
            x = cx + r * math.cos(a)
            y = cy + r * math.sin(a)
            n = noise.noise2d(x * 0.05, y * 0.05)
            x += n * p["noise_inf"]
            y += n * p["noise_inf"]
            if not (m < x < width - m and m < y < height - m):
                continue
            if p["shape_type"] == "circle":
                paths.append(Circle.of_radius(x, y, dot))
                continue
            jitter = round((rng.next_float() * 2 - 1) * side_jitter) if side_jitter else 0
            sides = int(clamp(base_sides + jitter, 3, 100))
            pts: List[XY] = []
            for k in range(sides + 1):
                ca = (k / sides) * math.pi * 2
                pts.append((x + math.cos(ca) * dot, y + math.sin(ca) * dot))
            paths.append(Polyline(points=pts, meta={"kind": "polygon", "cx": x, "cy": y, "r": dot, "sides": sides}))
        return paths

    def formula(self, params=None) -> str:
        return "θ = i * 137.5°, r = c√i\npos = [cos(θ)*r, sin(θ)*r]"


__all__ = ["Phylla"]
