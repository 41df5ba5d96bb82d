"""Damped Lissajous curve."""
from __future__ import annotations

import math
from typing import List, Optional, Tuple

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params

T_MAX = 200.0


def _intersect(a: XY, b: XY, c: XY, d: XY) -> Optional[Tuple[float, float, float]]:
    """Proper intersection of segments ``ab`` and ``cd`` as ``(x, y, t)``."""
    den = (b[0] - a[0]) * (d[1] - c[1]) - (b[1] - a[1]) * (d[0] - c[0])
    if abs(den) < 1e-6:
        return None
    t = ((c[0] - a[0]) * (d[1] - c[1]) - (c[1] - a[1]) * (d[0] - c[0])) / den
    u = ((c[0] - a[0]) * (b[1] - a[1]) - (c[1] - a[1]) * (b[0] - a[0])) / den
    if t <= 1e-4 or t >= 1 - 1e-4 or u <= 1e-4 or u >= 1 - 1e-4:
        return None
    return a[0] + t * (b[0] - a[0]), a[1] + t * (b[1] - a[1]), t


class Lissajous(Algorithm):
    key = "lissajous"
    label = "Lissajous"
    defaults: Params = {
        "freq_x": 3.0,
        "freq_y": 2.0,
        "damping": 0.001,
        "phase": 1.5,
        "resolution": 100,
        "scale": 1.0,
        "close_lines": False,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        cx = bounds.width / 2
        cy = bounds.height / 2
        scale = min(bounds.width, bounds.height) * 0.4 * p["scale"]
        steps = max(10, int(math.floor(p["resolution"])))
        t_step = T_MAX / steps
        close_lines = bool(p["close_lines"])

        pts: List[XY] = []
        closed = False
        for k in range(steps):
            t = k * t_step
            amp = math.exp(-p["damping"] * t)
            if amp < 0.01:
                break
            lx = math.sin(p["freq_x"] * t + p["phase"])
            ly = math.sin(p["freq_y"] * t)
            nxt = (cx + lx * scale * amp, cy + ly * scale * amp)
            if close_lines and len(pts) > 2:
                prev = pts[-1]
                hit = None
                for i in range(len(pts) - 2):
                    inter = _intersect(prev, nxt, pts[i], pts[i + 1])
                    if inter and (hit is None or inter[2] < hit[2]):
                        hit = inter
                if hit is not None:
                    pts.append((hit[0], hit[1]))
                    closed = True
                    break
            pts.append(nxt)
        if close_lines and len(pts) > 2 and not closed:
            pts.append(pts[0])
        return [Polyline(points=pts)]

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        return (
            f"x = sin({p['freq_x']}t + {p['phase']})\n"
            f"y = sin({p['freq_y']}t)\n"
            f"amp = e^(-{p['damping']}t)"
        )


__all__ = ["Lissajous"]
