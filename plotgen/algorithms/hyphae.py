"""Branching random walk, loosely modelled on fungal growth."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params


@dataclass
class Branch:
    x: float
    y: float
    angle: float
    trail: List[XY] = field(default_factory=list)


class Hyphae(Algorithm):
    key = "hyphae"
    label = "Hyphae"
    defaults: Params = {
        "sources": 2,
        "steps": 50,
        "branch_prob": 0.05,
        "angle_var": 0.5,
        "seg_len": 3.0,
        "max_branches": 1000,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        m = bounds.margin
        width, height = bounds.width, bounds.height
        cap = max(10, int(math.floor(p["max_branches"])))

        live: List[Branch] = []
        for _ in range(max(0, int(p["sources"]))):
            live.append(
                Branch(
                    x=m + rng.next_float() * bounds.drawable_width,
                    y=m + rng.next_float() * bounds.drawable_height,
                    angle=rng.next_float() * math.pi * 2,
                )
            )

        done: List[Branch] = []
        for _ in range(max(0, int(p["steps"]))):
            if len(live) >= cap:
                break
            # walk backwards so spawned branches wait for the next step
            for i in range(len(live) - 1, -1, -1):
                b = live[i]
                b.trail.append((b.x, b.y))
                b.x += math.cos(b.angle) * p["seg_len"]
                b.y += math.sin(b.angle) * p["seg_len"]
                b.angle += (rng.next_float() - 0.5) * p["angle_var"]
                if rng.next_float() < p["branch_prob"] and len(live) < cap:
                    live.append(Branch(x=b.x, y=b.y, angle=b.angle + math.pi / 2))
                if b.x < m or b.x > width - m or b.y < m or b.y > height - m:
                    done.append(live.pop(i))
        done.extend(live)
        # single-point trails come from branches that left the page immediately
        return [Polyline(points=b.trail) for b in done if len(b.trail) >= 2]

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        return f"pos += [cos(α), sin(α)] * {p['seg_len']}\nif rand() < {p['branch_prob']}: branch(α + π/2)"


__all__ = ["Hyphae", "Branch"]
