"""Topographic contours via marching squares over a shaped noise field."""
from __future__ import annotations

import math
from typing import Dict, List, Sequence, Tuple

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params, clamp
from .shaping import shape_noise

MAPPING_MODES = ("linear", "smooth", "bezier", "gradient")

# Corner bitmask -> pairs of cell edges (0 top, 1 right, 2 bottom, 3 left).
CASES: Dict[int, List[Tuple[int, int]]] = {
    1: [(3, 0)],
    2: [(0, 1)],
    3: [(3, 1)],
    4: [(1, 2)],
    5: [(3, 2), (0, 1)],
    6: [(0, 2)],
    7: [(3, 2)],
    8: [(2, 3)],
    9: [(0, 2)],
    10: [(0, 3), (1, 2)],
    11: [(1, 2)],
    12: [(1, 3)],
    13: [(0, 1)],
    14: [(3, 0)],
}

Segment = Tuple[XY, XY]


def _interp(a: XY, b: XY, va: float, vb: float, threshold: float) -> XY:
    denom = (vb - va) or 1e-6
    ratio = (threshold - va) / denom
    return a[0] + (b[0] - a[0]) * ratio, a[1] + (b[1] - a[1]) * ratio


def chaikin(pts: Sequence[XY], iterations: int = 1) -> List[XY]:
    """Corner cutting; each pass replaces every segment by its quarter points."""
    out = list(pts)
    for _ in range(iterations):
        nxt: List[XY] = []
        for (x0, y0), (x1, y1) in zip(out, out[1:]):
            nxt.append((x0 * 0.75 + x1 * 0.25, y0 * 0.75 + y1 * 0.25))
            nxt.append((x0 * 0.25 + x1 * 0.75, y0 * 0.25 + y1 * 0.75))
        out = nxt
    return out


def link_segments(segments: Sequence[Segment]) -> List[List[XY]]:
    """Chain loose segments into polylines by matching rounded endpoints."""

    def key(pt: XY) -> str:
        return f"{pt[0]:.3f},{pt[1]:.3f}"

    index: Dict[str, List[Tuple[int, int]]] = {}
    for idx, (a, b) in enumerate(segments):
        index.setdefault(key(a), []).append((idx, 0))
        index.setdefault(key(b), []).append((idx, 1))

    used = set()

    def take(pt: XY):
        for idx, end in index.get(key(pt), ()):
            if idx not in used:
                used.add(idx)
                seg = segments[idx]
                return seg[1] if end == 0 else seg[0]
        return None

    chains: List[List[XY]] = []
    for idx, (a, b) in enumerate(segments):
        if idx in used:
            continue
        used.add(idx)
        chain = [a, b]
        extended = True
        while extended:
            extended = False
            nxt = take(chain[-1])
            if nxt is not None:
                chain.append(nxt)
                extended = True
            prev = take(chain[0])
            if prev is not None:
                chain.insert(0, prev)
                extended = True
        chains.append(chain)
    return chains


class Topo(Algorithm):
    key = "topo"
    label = "Topo"
    defaults: Params = {
        "resolution": 120,
        "levels": 10,
        "noise_scale": 0.01,
        "noise_offset_x": 0.0,
        "noise_offset_y": 0.0,
        "octaves": 1,
        "lacunarity": 2.0,
        "gain": 0.5,
        "sensitivity": 1.0,
        "threshold_offset": 0.0,
        "noise_type": "simplex",
        "mapping_mode": "linear",
        "truncate": True,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        inset = bounds.margin if p["truncate"] else 0.0
        left = top = inset
        w = bounds.width - inset * 2
        h = bounds.height - inset * 2
        res = max(20, int(math.floor(p["resolution"])))
        cols = rows = res
        cell_w = w / cols
        cell_h = h / rows
        scale = p["noise_scale"]
        octaves = max(1, int(math.floor(p["octaves"])))
        sensitivity = max(0.01, p["sensitivity"])
        levels = max(1, int(math.floor(p["levels"])))
        mode = p["mapping_mode"]
        seed = p.get("seed") or 0

        field: List[List[float]] = []
        lo, hi = math.inf, -math.inf
        for gy in range(rows + 1):
            row: List[float] = []
            for gx in range(cols + 1):
                nx = (left + gx * cell_w + p["noise_offset_x"]) * scale
                ny = (top + gy * cell_h + p["noise_offset_y"]) * scale
                v = shape_noise(noise, p["noise_type"], nx, ny, seed, octaves, p["gain"], p["lacunarity"])
                v = math.copysign(abs(v) ** (1 / sensitivity), v) if v else 0.0
                row.append(v)
                lo = min(lo, v)
                hi = max(hi, v)
            field.append(row)

        span = (hi - lo) or 1.0
        thresholds = [lo + (i / (levels + 1)) * span + p["threshold_offset"] for i in range(1, levels + 1)]

        def sample(x: float, y: float) -> float:
            gx = clamp((x - left) / cell_w, 0, cols)
            gy = clamp((y - top) / cell_h, 0, rows)
            x0, y0 = int(math.floor(gx)), int(math.floor(gy))
            x1, y1 = min(cols, x0 + 1), min(rows, y0 + 1)
            tx, ty = gx - x0, gy - y0
            vx0 = field[y0][x0] + (field[y0][x1] - field[y0][x0]) * tx
            vx1 = field[y1][x0] + (field[y1][x1] - field[y1][x0]) * tx
            return vx0 + (vx1 - vx0) * ty

        def refine(pt: XY, threshold: float) -> XY:
            step = min(cell_w, cell_h) * 0.5
            x, y = pt
            fx = (sample(x + step, y) - sample(x - step, y)) / (2 * step)
            fy = (sample(x, y + step) - sample(x, y - step)) / (2 * step)
            denom = fx * fx + fy * fy + 1e-6
            diff = sample(x, y) - threshold
            return x - diff * fx / denom, y - diff * fy / denom

        paths: List[Path] = []
        for threshold in thresholds:
            segments: List[Segment] = []
            for gy in range(rows):
                for gx in range(cols):
                    v0 = field[gy][gx]
                    v1 = field[gy][gx + 1]
                    v2 = field[gy + 1][gx + 1]
                    v3 = field[gy + 1][gx]
                    idx = (
                        (1 if v0 > threshold else 0)
                        | (2 if v1 > threshold else 0)
                        | (4 if v2 > threshold else 0)
                        | (8 if v3 > threshold else 0)
                    )
                    if idx == 0 or idx == 15:
                        continue
                    edges = CASES[idx]
                    if idx in (5, 10):
                        above = (v0 + v1 + v2 + v3) / 4 > threshold
                        if idx == 5:
                            edges = [(3, 0), (1, 2)] if above else [(3, 2), (0, 1)]
                        else:
                            edges = [(0, 1), (2, 3)] if above else [(0, 3), (1, 2)]
                    p0 = (left + gx * cell_w, top + gy * cell_h)
                    p1 = (left + (gx + 1) * cell_w, top + gy * cell_h)
                    p2 = (left + (gx + 1) * cell_w, top + (gy + 1) * cell_h)
                    p3 = (left + gx * cell_w, top + (gy + 1) * cell_h)
                    corners = ((p0, p1, v0, v1), (p1, p2, v1, v2), (p2, p3, v2, v3), (p3, p0, v3, v0))
                    for e0, e1 in edges:
                        a = _interp(*corners[e0], threshold)
                        b = _interp(*corners[e1], threshold)
                        if mode == "gradient":
                            a = refine(a, threshold)
                            b = refine(b, threshold)
                        segments.append((a, b))
            for chain in link_segments(segments):
                if len(chain) < 2:
                    continue
                if mode == "smooth":
                    chain = chaikin(chain, 1)
                elif mode == "bezier":
                    chain = chaikin(chain, 2)
                paths.append(Polyline(points=chain))
        return paths

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        return (
            f"field = noise(x*{p['noise_scale']}, y*{p['noise_scale']})\n"
            f"contours = marchingSquares(field, {p['levels']})"
        )


__all__ = ["Topo", "CASES", "MAPPING_MODES", "link_segments", "chaikin"]
