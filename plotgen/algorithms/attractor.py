"""Strange attractor traces (Lorenz, Aizawa)."""
from __future__ import annotations

import math
from typing import List

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params


class Attractor(Algorithm):
    key = "attractor"
    label = "Attractor"
    defaults: Params = {
        "type": "lorenz",
        "iter": 1000,
        "scale": 3.0,
        "sigma": 10.0,
        "rho": 28.0,
        "beta": 2.66,
        "dt": 0.01,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        dt = p["dt"]
        ax = rng.next_range(-0.5, 0.5)
        ay = rng.next_range(-0.5, 0.5)
        az = rng.next_range(-0.5, 0.5)
        cx = bounds.width / 2
        cy = bounds.height / 2
        lorenz = p["type"] == "lorenz"

        pts: List[XY] = []
        for _ in range(max(0, int(p["iter"]))):
            if lorenz:
                dx = p["sigma"] * (ay - ax)
                dy = ax * (p["rho"] - az) - ay
                dz = ax * ay - p["beta"] * az
            else:
                dx = (az - 0.7) * ax - 3.5 * ay
                dy = 3.5 * ax + (az - 0.7) * ay
                dz = (
                    0.6
                    + 0.95 * az
                    - (az * az * az) / 3
                    - (ax * ax + ay * ay) * (1 + 0.25 * az)
                    + 0.1 * az * (ax * ax * ax)
                )
            ax += dx * dt
            ay += dy * dt
            az += dz * dt
            # diverging parameter sets stop the trace instead of emitting inf
            if not (math.isfinite(ax) and math.isfinite(ay) and math.isfinite(az)):
                break
            pts.append((cx + ax * p["scale"], cy + ay * p["scale"]))
        if len(pts) < 2:
            return []
        return [Polyline(points=pts)]

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        if p["type"] != "lorenz":
            return "dx = (z - 0.7)x - 3.5y\ndy = 3.5x + (z - 0.7)y\ndz = 0.6 + 0.95z - z³/3 - (x² + y²)(1 + 0.25z) + 0.1zx³"
        return f"dx = {p['sigma']}(y - x)\ndy = x({p['rho']} - z) - y\ndz = xy - {p['beta']}z"


__all__ = ["Attractor"]
