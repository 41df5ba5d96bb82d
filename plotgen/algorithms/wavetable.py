"""Stacked horizontal lines displaced by noise (the "Joy Division" look)."""
from __future__ import annotations

import math
from typing import List, Optional

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params, clamp
from .noisestack import NoiseLayer, NoiseStack


class Wavetable(Algorithm):
    key = "wavetable"
    label = "Wavetable"
    defaults: Params = {
        "lines": 40,
        "amplitude": 30.0,
        "zoom": 0.02,
        "tilt": 0.0,
        "gap": 1.0,
        "freq": 1.0,
        "edge_fade": 0.2,
        "noise_angle": 0.0,
        "noise_type": "simplex",
        "noises": [],
        "line_offset": 180.0,
        "continuity": "none",
        "dampen_extremes": False,
        "no_overlap": False,
        "flat_caps": False,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        m = bounds.margin
        dw, dh = bounds.drawable_width, bounds.drawable_height
        lines = int(math.floor(p["lines"]))
        pts_count = int(math.floor(dw / 2))
        if lines <= 0 or pts_count <= 0:
            return []
        spacing = dh / lines
        x_step = dw / pts_count
        edge_fade = clamp(p["edge_fade"], 0.0, 1.0)
        no_overlap = bool(p["no_overlap"])
        offset_angle = math.radians(p["line_offset"])
        dir_x, dir_y = math.sin(offset_angle), -math.cos(offset_angle)
        base = NoiseLayer(
            type=p["noise_type"] or "simplex",
            amplitude=p["amplitude"],
            zoom=p["zoom"],
            freq=p["freq"],
            angle=p["noise_angle"],
        )
        stack = NoiseStack.from_params(
            noise,
            p["noises"],
            base,
            hash_seed=p.get("seed") or 0,
            extent=(dw, dh),
            shift_scale=(dw * 0.5, dh * 0.5),
        )

        rows: List[List[XY]] = []
        prev_y: Optional[List[float]] = None
        for i in range(lines):
            base_y = m + i * spacing * p["gap"]
            x_offset = p["tilt"] * i
            pts: List[XY] = []
            for j in range(pts_count + 1):
                base_x = m + j * x_step + x_offset
                off = stack.sample(base_x, base_y)
                taper = 1.0
                dist_c = abs(j / pts_count - 0.5) * 2
                if edge_fade > 0:
                    edge_start = 1 - edge_fade
                    if dist_c > edge_start:
                        taper = 1.0 - (dist_c - edge_start) / edge_fade
                amp = off * taper
                x = base_x + amp * dir_x
                y = base_y + amp * dir_y
                if p["dampen_extremes"]:
                    min_y, max_y = m, bounds.height - m
                    if y < min_y or y > max_y:
                        limit = max(0.0, base_y - min_y if y < min_y else max_y - base_y)
                        denom = max(0.001, abs(amp * dir_y))
                        y = base_y + amp * dir_y * min(1.0, limit / denom)
                if no_overlap and prev_y is not None:
                    min_gap = max(0.1, spacing * p["gap"] * 0.1)
                    y = max(y, prev_y[j] + min_gap)
                pts.append((x, y))
            rows.append(pts)
            if no_overlap:
                prev_y = [pt[1] for pt in pts]

        paths = self.join_rows(rows, p["continuity"])
        if p["flat_caps"]:
            xs = [m + j * x_step for j in range(pts_count + 1)]
            paths.append(Polyline(points=[(x, m) for x in xs]))
            paths.append(Polyline(points=[(x, bounds.height - m) for x in xs]))
        return paths

    @staticmethod
    def join_rows(rows: List[List[XY]], continuity: str) -> List[Path]:
        """``single`` snakes every row into one path; ``double`` links row ends."""
        if continuity == "single":
            snake: List[XY] = []
            for idx, row in enumerate(rows):
                segment = row if idx % 2 == 0 else row[::-1]
                if snake and snake[-1] == segment[0]:
                    segment = segment[1:]
                snake.extend(segment)
            return [Polyline(points=snake)]
        paths: List[Path] = [Polyline(points=row) for row in rows]
        if continuity == "double":
            for a, b in zip(rows, rows[1:]):
                paths.append(Polyline(points=[a[0], b[0]]))
                paths.append(Polyline(points=[a[-1], b[-1]]))
        return paths

    def formula(self, params=None) -> str:
        return "y = yBase + Σ noiseᵢ(rotate(x*zoomᵢ*freqᵢ, y*zoomᵢ)) * ampᵢ"


__all__ = ["Wavetable"]
