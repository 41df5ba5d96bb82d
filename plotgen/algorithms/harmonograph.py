"""Harmonograph: a sum of damped pendulums drawn on a rotating paper."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..config import Bounds
from ..geometry import Circle, Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params, clamp

RENDER_MODES = ("line", "points", "segments", "dashed")
THICKEN_SPACING = 0.35


@dataclass
class Pendulum:
    amp_x: float = 0.0
    amp_y: float = 0.0
    phase_x: float = 0.0  # radians
    phase_y: float = 0.0
    freq: float = 1.0
    micro: float = 0.0
    damp: float = 0.0
    enabled: bool = True

    @classmethod
    def from_params(cls, data: Dict[str, Any]) -> "Pendulum":
        return cls(
            amp_x=float(data.get("amp_x", 0.0)),
            amp_y=float(data.get("amp_y", 0.0)),
            phase_x=math.radians(float(data.get("phase_x", 0.0))),
            phase_y=math.radians(float(data.get("phase_y", 0.0))),
            freq=float(data.get("freq", 1.0)),
            micro=float(data.get("micro", 0.0)),
            damp=max(0.0, float(data.get("damp", 0.0))),
            enabled=data.get("enabled", True) is not False,
        )


# ---------------------------------------------------------------------------
# Arc-length helpers
# ---------------------------------------------------------------------------


@dataclass
class _Segment:
    a: XY
    b: XY
    length: float
    start: float


def _segment_data(pts: Sequence[XY]):
    segs: List[_Segment] = []
    total = 0.0
    for a, b in zip(pts, pts[1:]):
        seg_len = math.hypot(b[0] - a[0], b[1] - a[1])
        if not seg_len:
            continue
        segs.append(_Segment(a, b, seg_len, total))
        total += seg_len
    return segs, total


def _lerp(seg: _Segment, t: float) -> XY:
    return seg.a[0] + (seg.b[0] - seg.a[0]) * t, seg.a[1] + (seg.b[1] - seg.a[1]) * t


def _slice(segs: List[_Segment], start: float, end: float) -> Optional[List[XY]]:
    """Sub-polyline between two arc-length positions."""
    if end <= start:
        return None
    out: List[XY] = []

    def push(pt: XY) -> None:
        if not out or out[-1] != pt:
            out.append(pt)

    for seg in segs:
        seg_end = seg.start + seg.length
        if seg_end < start:
            continue
        if seg.start > end:
            break
        if seg.start <= start <= seg_end:
            push(_lerp(seg, (start - seg.start) / seg.length))
        elif seg.start >= start:
            push(seg.a)
        if seg_end <= end:
            push(seg.b)
        if seg.start <= end <= seg_end:
            push(_lerp(seg, (end - seg.start) / seg.length))
            break
    return out if len(out) > 1 else None


class Harmonograph(Algorithm):
    key = "harmonograph"
    label = "Harmonograph"
    defaults: Params = {
        "samples": 4000,
        "duration": 30.0,
        "scale": 1.0,
        "paper_rotation": 0.0,
        "loop_drift": 0.0,
        "settle_threshold": 0.0,
        "settle_window": 24,
        "pendulums": [
            {"amp_x": 60.0, "amp_y": 60.0, "phase_x": 0.0, "phase_y": 90.0, "freq": 2.0, "micro": 0.0, "damp": 0.02},
            {"amp_x": 40.0, "amp_y": 40.0, "phase_x": 90.0, "phase_y": 0.0, "freq": 3.0, "micro": 0.01, "damp": 0.015},
            {"amp_x": 15.0, "amp_y": 15.0, "phase_x": 45.0, "phase_y": 45.0, "freq": 1.0, "micro": 0.0, "damp": 0.01},
        ],
        "render_mode": "line",
        "point_stride": 4,
        "point_size": 0.4,
        "segment_stride": 6,
        "segment_length": 6.0,
        "dash_length": 4.0,
        "dash_gap": 2.0,
        "gap_size": 0.0,
        "gap_offset": 0.0,
        "gap_randomness": 0.0,
        "width_multiplier": 1,
        "thickening_mode": "parallel",
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        cx = bounds.width / 2
        cy = bounds.height / 2
        samples = max(200, int(math.floor(p["samples"])))
        duration = max(1.0, p["duration"])
        scale = p["scale"]
        rot_speed = p["paper_rotation"] * math.pi * 2
        loop_drift = p["loop_drift"]
        settle_threshold = max(0.0, p["settle_threshold"])
        settle_window = max(1, int(math.floor(p["settle_window"])))

        pendulums = [Pendulum.from_params(d) for d in p["pendulums"] or []]
        pendulums = [pend for pend in pendulums if pend.enabled]
        if not pendulums:
            return []

        dt = duration / samples
        trace: List[XY] = []
        settled = 0
        for i in range(samples + 1):
            t = i * dt
            x = y = 0.0
            for pend in pendulums:
                freq = (pend.freq + pend.micro + loop_drift * t) * math.pi * 2
                decay = math.exp(-pend.damp * t)
                x += pend.amp_x * math.sin(freq * t + pend.phase_x) * decay
                y += pend.amp_y * math.sin(freq * t + pend.phase_y) * decay
            x *= scale
            y *= scale
            if rot_speed:
                ang = rot_speed * t
                x, y = x * math.cos(ang) - y * math.sin(ang), x * math.sin(ang) + y * math.cos(ang)
            trace.append((cx + x, cy + y))
            if settle_threshold > 0:
                settled = settled + 1 if math.hypot(x, y) <= settle_threshold else 0
                if settled >= settle_window:
                    break

        base = self._thicken([trace], p, rng)
        mode = p["render_mode"] if p["render_mode"] in RENDER_MODES else "line"
        if mode == "points":
            return self._points(base, p, rng)
        if mode == "segments":
            return self._segments(base, p, rng)
        if mode == "dashed":
            dashes = self._dashes(base, p, rng)
            if dashes:
                return dashes
        return [Polyline(points=pts) for pts in base]

    # -- render modes -----------------------------------------------------

    def _thicken(self, traces: List[List[XY]], p: Params, rng: SeededRNG) -> List[List[XY]]:
        copies = max(1, int(round(p["width_multiplier"])))
        if copies <= 1:
            return traces
        sinusoidal = p["thickening_mode"] == "sinusoidal"
        half = (copies - 1) / 2
        offsets = [(i - half) * THICKEN_SPACING for i in range(copies)]
        out: List[List[XY]] = []
        for pts in traces:
            if len(pts) < 2:
                continue
            normals: List[XY] = []
            for i, pt in enumerate(pts):
                prev = pts[i - 1] if i > 0 else pt
                nxt = pts[i + 1] if i + 1 < len(pts) else pt
                dx, dy = nxt[0] - prev[0], nxt[1] - prev[1]
                mag = math.hypot(dx, dy) or 1.0
                normals.append((-dy / mag, dx / mag))
            phase = rng.next_float() * math.pi * 2
            wave_freq = 2 + copies * 0.4
            wave_amp = THICKEN_SPACING * 0.6
            for idx, offset in enumerate(offsets):
                shifted: List[XY] = []
                for i, pt in enumerate(pts):
                    off = offset
                    if sinusoidal:
                        t = i / (len(pts) - 1)
                        off += math.sin(t * math.pi * 2 * wave_freq + phase + idx) * wave_amp
                    nx, ny = normals[i]
                    shifted.append((pt[0] + nx * off, pt[1] + ny * off))
                out.append(shifted)
        return out or traces

    def _walk(self, pts: List[XY], stride: int, p: Params, rng: SeededRNG):
        """Yield ``(point, tangent)`` pairs spaced along the trace."""
        segs, total = _segment_data(pts)
        avg_step = total / max(1, len(pts) - 1)
        spacing = max(avg_step, avg_step * stride + max(0.0, p["gap_size"]))
        randomness = clamp(p["gap_randomness"], 0.0, 1.0)
        cursor = max(0.0, p["gap_offset"])
        idx = 0
        while cursor <= total and idx < len(segs):
            while idx < len(segs) and cursor > segs[idx].start + segs[idx].length:
                idx += 1
            if idx >= len(segs):
                break
            seg = segs[idx]
            pt = _lerp(seg, (cursor - seg.start) / seg.length)
            yield pt, (seg.b[0] - seg.a[0], seg.b[1] - seg.a[1])
            jitter = (rng.next_float() * 2 - 1) * randomness if randomness else 0.0
            cursor += max(0.1, spacing * (1 + jitter))

    def _points(self, base: List[List[XY]], p: Params, rng: SeededRNG) -> List[Path]:
        stride = max(1, int(math.floor(p["point_stride"])))
        r = max(0.1, p["point_size"])
        out: List[Path] = []
        for pts in base:
            for (x, y), _ in self._walk(pts, stride, p, rng):
                out.append(Circle.of_radius(x, y, r))
        return out

    def _segments(self, base: List[List[XY]], p: Params, rng: SeededRNG) -> List[Path]:
        stride = max(1, int(math.floor(p["segment_stride"])))
        half = max(0.5, p["segment_length"]) / 2
        out: List[Path] = []
        for pts in base:
            for (x, y), (tx, ty) in self._walk(pts, stride, p, rng):
                mag = math.hypot(tx, ty) or 1.0
                ux, uy = tx / mag, ty / mag
                out.append(Polyline(points=[(x - ux * half, y - uy * half), (x + ux * half, y + uy * half)]))
        return out

    def _dashes(self, base: List[List[XY]], p: Params, rng: SeededRNG) -> List[Path]:
        dash = max(0.5, p["dash_length"])
        gap = max(0.0, p["dash_gap"]) + max(0.0, p["gap_size"])
        randomness = clamp(p["gap_randomness"], 0.0, 1.0)
        out: List[Path] = []
        for pts in base:
            segs, total = _segment_data(pts)
            cursor = max(0.0, p["gap_offset"])
            guard = 0
            while cursor < total and guard < 100000:
                dash_end = cursor + dash
                piece = _slice(segs, cursor, min(dash_end, total))
                if piece:
                    out.append(Polyline(points=piece))
                jitter = (rng.next_float() * 2 - 1) * randomness if randomness else 0.0
                cursor = dash_end + max(0.1, gap * (1 + jitter))
                guard += 1
        return out

    def formula(self, params=None) -> str:
        return "x = Σ Aᵢ sin((fᵢ+μᵢ)t + φxᵢ) e^(-dᵢ t)\ny = Σ Bᵢ sin((fᵢ+μᵢ)t + φyᵢ) e^(-dᵢ t)"


__all__ = ["Harmonograph", "Pendulum", "RENDER_MODES"]
