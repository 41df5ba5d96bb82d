"""Noise modulated Archimedean spiral."""
from __future__ import annotations

import math
from typing import List, Optional, Tuple

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params
from .noisestack import NoiseLayer, NoiseStack


class Spiral(Algorithm):
    """Archimedean spiral whose radius is displaced by noise.

    Without ``noises`` the radius follows a simplex loop sampled on the unit
    circle, scaled by ``noise_amp``.  A non empty ``noises`` list replaces it
    with a blended stack sampled at each point's position.  ``axis_snap``
    steps in quarter turns so every loop lands on the x and y axes.
    """

    key = "spiral"
    label = "Spiral"
    defaults: Params = {
        "loops": 10,
        "res": 100,
        "noise_amp": 10.0,
        "noise_freq": 0.1,
        "start_r": 5.0,
        "angle_offset": 0.0,
        "axis_snap": False,
        "pulse_freq": 0.0,
        "pulse_amp": 0.0,
        "noises": [],
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        cx = bounds.width / 2
        cy = bounds.height / 2
        max_r = min(bounds.drawable_width, bounds.drawable_height) / 2
        start_r = p["start_r"]
        if p["loops"] <= 0 or p["res"] <= 0 or start_r >= max_r:
            return []
        per_turn = max(1, int(math.floor(p["res"])))
        d_theta = (math.pi / 2 if p["axis_snap"] else math.pi * 2) / per_turn
        total = max(1, int(math.floor(math.pi * 2 * p["loops"] / d_theta)))
        dr = (max_r - start_r) / total

        stack: Optional[NoiseStack] = None
        if isinstance(p["noises"], list) and p["noises"]:
            base = NoiseLayer(type="turbulence", amplitude=p["noise_amp"], zoom=p["noise_freq"])
            stack = NoiseStack.from_params(
                noise,
                p["noises"],
                base,
                hash_seed=p.get("seed") or 0,
                extent=(bounds.drawable_width, bounds.drawable_height),
            )

        pts: List[XY] = []
        r = start_r
        theta = math.radians(p["angle_offset"])
        for i in range(total + 1):
            pulse = 1 + math.sin(theta * p["pulse_freq"]) * p["pulse_amp"]
            r_mod = r * pulse + self.displacement(p, noise, stack, theta, r, (i / total, r / max_r), (cx, cy))
            pts.append((cx + math.cos(theta) * r_mod, cy + math.sin(theta) * r_mod))
            theta += d_theta
            r += dr
        return [Polyline(points=pts)]

    @staticmethod
    def displacement(
        p: Params,
        noise: SimpleNoise,
        stack: Optional[NoiseStack],
        theta: float,
        r: float,
        uv: Tuple[float, float],
        center: XY,
    ) -> float:
        if stack is None:
            n = noise.noise2d(math.cos(theta) * p["noise_freq"], math.sin(theta) * p["noise_freq"])
            return n * p["noise_amp"]
        x = center[0] + math.cos(theta) * r
        y = center[1] + math.sin(theta) * r
        return stack.sample(x, y, uv)

    def formula(self, params=None) -> str:
        return "r = r * pulse(θ) + Σ noise(x, y) * amp\nx = cos(θ)*r, y = sin(θ)*r"


__all__ = ["Spiral"]
