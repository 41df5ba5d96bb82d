"""Relaxed circle packing rendered as circles or regular polygons."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

from ..config import Bounds
from ..geometry import Circle, Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params, clamp

RELAX_STEPS = 30


@dataclass
class _Disc:
    x: float
    y: float
    r: float


class ShapePack(Algorithm):
    key = "shapepack"
    label = "Shape Pack"
    defaults: Params = {
        "count": 500,
        "min_r": 2.0,
        "max_r": 20.0,
        "padding": 1.0,
        "attempts": 200,
        "shape": "circle",
        "segments": 6,
        "rotation_step": 0.0,
        "perspective_type": "none",
        "perspective": 0.0,
        "perspective_x": 0.0,
        "perspective_y": 0.0,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        m = bounds.margin
        width, height = bounds.width, bounds.height
        min_r = max(0.1, p["min_r"])
        max_r = max(min_r, p["max_r"])
        padding = p["padding"]
        max_tries = max(50, int(math.floor(p["attempts"])))

        discs: List[_Disc] = []
        tries = 0
        while len(discs) < p["count"] and tries < max_tries:
            r = rng.next_range(min_r, max_r)
            c = _Disc(
                x=m + r + rng.next_float() * (bounds.drawable_width - r * 2),
                y=m + r + rng.next_float() * (bounds.drawable_height - r * 2),
                r=r,
            )
            for _ in range(RELAX_STEPS):
                moved = False
                for other in discs:
                    dx = c.x - other.x
                    dy = c.y - other.y
                    dist = math.sqrt(dx * dx + dy * dy) or 0.0001
                    target = c.r + other.r + padding
                    if dist < target:
                        overlap = target - dist
                        c.x += dx / dist * overlap * 0.6
                        c.y += dy / dist * overlap * 0.6
                        c.r = max(min_r, c.r - overlap * 0.15)
                        moved = True
                c.x = clamp(c.x, m + c.r, width - m - c.r)
                c.y = clamp(c.y, m + c.r, height - m - c.r)
                if not moved:
                    break
            if all(math.hypot(c.x - o.x, c.y - o.y) >= c.r + o.r + padding - 0.01 for o in discs):
                discs.append(c)
            tries += 1

        if p["shape"] == "circle":
            return [Circle.of_radius(c.x, c.y, c.r) for c in discs]
        return [self._polygon(c, i, p, bounds) for i, c in enumerate(discs)]

    def _polygon(self, c: _Disc, index: int, p: Params, bounds: Bounds) -> Polyline:
        sides = max(3, int(math.floor(p["segments"])))
        rot = math.radians(p["rotation_step"]) * index
        ox = bounds.width / 2 + p["perspective_x"]
        oy = bounds.height / 2 + p["perspective_y"]
        max_dist = math.hypot(bounds.width / 2, bounds.height / 2) or 1.0
        kind = p["perspective_type"]
        amount = p["perspective"]

        pts: List[XY] = []
        for k in range(sides + 1):
            ang = (k / sides) * math.pi * 2 + rot
            x = c.x + math.cos(ang) * c.r
            y = c.y + math.sin(ang) * c.r
            if amount and kind != "none":
                dx, dy = x - ox, y - oy
                if kind == "radial":
                    s = 1 + math.hypot(dx, dy) / max_dist * amount
                elif kind == "horizontal":
                    s = 1 + dx / (bounds.width / 2) * amount
                else:
                    s = 1 + dy / (bounds.height / 2) * amount
                x, y = ox + dx * s, oy + dy * s
            pts.append((x, y))
        meta = {"kind": "polygon", "cx": c.x, "cy": c.y, "r": c.r, "sides": sides, "rotation": rot}
        return Polyline(points=pts, meta=meta)

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        return (
            f"if dist(p, others) > r + {p['padding']}: add(shape(p, r))\n"
            f"r = rand({p['min_r']}, {p['max_r']})\n"
            f"shape = {p['shape']}, sides = {p['segments']}"
        )


__all__ = ["ShapePack"]
