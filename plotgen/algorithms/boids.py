"""Flocking trails.

Each step updates the flock in place, so later agents see the already moved
positions of earlier ones.  Cost is quadratic in ``count``.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Tuple

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params


@dataclass
class Boid:
    x: float
    y: float
    vx: float
    vy: float
    trail: List[XY] = field(default_factory=list)


def _set_mag(vx: float, vy: float, mag: float) -> Tuple[float, float]:
    n = math.sqrt(vx * vx + vy * vy) or 1.0
    return vx / n * mag, vy / n * mag


def _limit(vx: float, vy: float, cap: float) -> Tuple[float, float]:
    n = math.sqrt(vx * vx + vy * vy)
    if n > cap:
        return vx / n * cap, vy / n * cap
    return vx, vy


class Boids(Algorithm):
    key = "boids"
    label = "Boids"
    defaults: Params = {
        "count": 100,
        "steps": 100,
        "speed": 2.0,
        "sep_dist": 10.0,
        "align_dist": 20.0,
        "coh_dist": 20.0,
        "force": 0.05,
        "sep_weight": 1.0,
        "align_weight": 1.0,
        "coh_weight": 1.0,
        "mode": "birds",
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        m = bounds.margin
        width, height = bounds.width, bounds.height
        speed = p["speed"]
        fish = p["mode"] == "fish"
        w_sep = p["sep_weight"] * (1.4 if fish else 1.0)
        w_align = p["align_weight"] * (1.3 if fish else 1.0)
        w_coh = p["coh_weight"] * (0.8 if fish else 1.0)
        vertical_damping = 0.9 if fish else 1.0
        max_force = max(0.001, p["force"])

        flock: List[Boid] = []
        for _ in range(max(0, int(p["count"]))):
            x = m + rng.next_float() * bounds.drawable_width
            y = m + rng.next_float() * bounds.drawable_height
            vx = (rng.next_float() - 0.5) * speed
            vy = (rng.next_float() - 0.5) * speed
            flock.append(Boid(x, y, vx, vy))

        def steer(dx: float, dy: float, b: Boid, weight: float) -> Tuple[float, float]:
            desired = _set_mag(dx, dy, speed)
            sx, sy = _limit(desired[0] - b.vx, desired[1] - b.vy, max_force)
            return sx * weight, sy * weight

        for _ in range(max(0, int(p["steps"]))):
            for b in flock:
                b.trail.append((b.x, b.y))
                sx = sy = ax = ay = cx = cy = 0.0
                n_sep = n_align = n_coh = 0
                for other in flock:
                    if other is b:
                        continue
                    dx = b.x - other.x
                    dy = b.y - other.y
                    dist = math.sqrt(dx * dx + dy * dy)
                    if dist < p["sep_dist"]:
                        safe = dist or 0.0001
                        sx += dx / safe
                        sy += dy / safe
                        n_sep += 1
                    if dist < p["align_dist"]:
                        ax += other.vx
                        ay += other.vy
                        n_align += 1
                    if dist < p["coh_dist"]:
                        cx += other.x
                        cy += other.y
                        n_coh += 1

                fx = fy = 0.0
                if n_sep:
                    ox, oy = steer(sx / n_sep, sy / n_sep, b, w_sep)
                    fx += ox
                    fy += oy
                if n_align:
                    ox, oy = steer(ax / n_align, ay / n_align, b, w_align)
                    fx += ox
                    fy += oy
                if n_coh:
                    ox, oy = steer(cx / n_coh - b.x, cy / n_coh - b.y, b, w_coh)
                    fx += ox
                    fy += oy

                b.vx += fx
                b.vy = (b.vy + fy) * vertical_damping
                sp = math.sqrt(b.vx * b.vx + b.vy * b.vy)
                if sp > speed:
                    b.vx = b.vx / sp * speed
                    b.vy = b.vy / sp * speed
                b.x += b.vx
                b.y += b.vy
                if b.x < m or b.x > width - m:
                    b.vx *= -1
                if b.y < m or b.y > height - m:
                    b.vy *= -1

        return [Polyline(points=b.trail) for b in flock if len(b.trail) >= 2]

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        return (
            f"v += separate * {p['sep_dist']} + align * {p['align_dist']} + cohere * {p['coh_dist']}\n"
            f"pos += v * {p['speed']}"
        )


__all__ = ["Boids", "Boid"]
