"""Concentric rings displaced by a circular noise walk."""
from __future__ import annotations

import math
from typing import List

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params
from .shaping import shape_noise


class Rings(Algorithm):
    key = "rings"
    label = "Rings"
    defaults: Params = {
        "rings": 30,
        "gap": 1.0,
        "amplitude": 8.0,
        "noise_scale": 0.01,
        "noise_offset_x": 0.0,
        "noise_offset_y": 0.0,
        "noise_layer": 0.05,
        "noise_radius": 100.0,
        "noise_type": "simplex",
        "offset_x": 0.0,
        "offset_y": 0.0,
        "truncate": True,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        inset = bounds.margin if p["truncate"] else 0.0
        cx = bounds.width / 2 + p["offset_x"]
        cy = bounds.height / 2 + p["offset_y"]
        max_r = max(1.0, min(bounds.width, bounds.height) / 2 - inset)
        rings = max(1, int(math.floor(p["rings"])))
        base_gap = max_r / (rings - 1) if rings > 1 else max_r
        gap = base_gap * p["gap"]
        start_r = max(0.0, max_r - gap * (rings - 1))
        amp = p["amplitude"]
        scale = p["noise_scale"]
        radius = p["noise_radius"]
        seed = p.get("seed") or 0

        paths: List[Path] = []
        for i in range(rings):
            layer_offset = i * p["noise_layer"]
            r_base = max(0.1, start_r + i * gap)
            steps = max(64, int(math.floor(r_base * 2)))
            pts: List[XY] = []
            for k in range(steps + 1):
                t = (k / steps) * math.pi * 2
                nx = p["noise_offset_x"] + math.cos(t) * radius
                ny = p["noise_offset_y"] + math.sin(t) * radius
                n = shape_noise(noise, p["noise_type"], nx * scale + layer_offset, ny * scale + layer_offset, seed)
                r = max(0.1, r_base + n * amp)
                pts.append((cx + math.cos(t) * r, cy + math.sin(t) * r))
            paths.append(Polyline(points=pts))
        return paths

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        return (
            f"n_x = cosθ * {p['noise_radius']}, n_y = sinθ * {p['noise_radius']}\n"
            f"noise = noise((n_x+{p['noise_offset_x']})*{p['noise_scale']}, "
            f"(n_y+{p['noise_offset_y']})*{p['noise_scale']} + i*{p['noise_layer']})\n"
            f"r = r0 + {p['amplitude']} * noise"
        )


__all__ = ["Rings"]
