"""Radial petal structures arranged on a phyllotactic spiral.

Each petal is a closed outline whose half width follows a profile curve
along its length.  Optional shading strokes sit inside or along the edge
of each petal, and a set of center elements (disk, dome, starburst, dots
or filaments) can be bent by a chain of polar modifiers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from ..config import Bounds
from ..geometry import Circle, Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params, clamp

TAU = math.pi * 2
GOLDEN_ANGLE = 137.507764

PETAL_PROFILES = ("oval", "teardrop", "lanceolate", "heart", "spoon")
CENTER_TYPES = ("disk", "dome", "starburst", "dot", "filament")


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def profile_base(t: float, profile: str) -> float:
    s = math.sin(math.pi * t)
    if profile == "teardrop":
        return s * (1 - 0.35 * t)
    if profile == "lanceolate":
        return max(0.0, s) ** 1.4
    if profile == "heart":
        return s * (1 + 0.25 * math.sin(TAU * t))
    if profile == "spoon":
        return s * (0.7 + 0.3 * (1 - t)) + 0.08 * s
    return s


@dataclass
class PetalShape:
    """Width profile of one petal, measured along its axis."""

    length: float
    width_ratio: float
    profile: str = "teardrop"
    center_profile: str = "teardrop"
    morph_weight: float = 0.0
    sharpness: float = 0.5
    base_flare: float = 0.0
    base_pinch: float = 0.0
    wave_amp: float = 0.0
    wave_freq: float = 2.0
    wave_phase: float = 0.0

    def width_at(self, t: float) -> float:
        w = lerp(profile_base(t, self.profile), profile_base(t, self.center_profile), self.morph_weight)
        w = max(0.0, w) ** lerp(0.8, 2.4, clamp(self.sharpness, 0, 1))
        w *= 1 + (self.base_flare - self.base_pinch) * (1 - t) ** 2
        if self.wave_amp > 0:
            w *= 1 + self.wave_amp * math.sin(TAU * t * self.wave_freq + self.wave_phase)
        return max(0.0, w)

    def half_width(self, t: float) -> float:
        return self.width_at(t) * self.width_ratio * self.length / 2


def place(points: Sequence[XY], base: XY, angle: float) -> List[XY]:
    """Rotate local petal coordinates by ``angle`` and move them to ``base``."""
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    bx, by = base
    return [(bx + x * cos_a - y * sin_a, by + x * sin_a + y * cos_a) for x, y in points]


def petal_outline(shape: PetalShape, steps: int, base: XY, angle: float, curl: float = 0.0) -> List[XY]:
    left: List[XY] = []
    right: List[XY] = []
    for i in range(steps + 1):
        t = i / steps
        half = shape.half_width(t)
        bend = curl * shape.length * 0.15 * t * t
        left.append((t * shape.length, half + bend))
        right.append((t * shape.length, -half + bend))
    outline = left + right[::-1]
    outline.append(outline[0])
    return place(outline, base, angle)


def shading_lines(
    shape: PetalShape,
    steps: int,
    base: XY,
    angle: float,
    p: Params,
    rng: SeededRNG,
    noise: SimpleNoise,
) -> List[List[XY]]:
    """Inner hatching and outer rim strokes for one petal."""
    lines: List[List[XY]] = []
    inner_band = clamp(1 - clamp(p["shading_transition"], 0, 1), 0.2, 1)
    hatch_noise = p["hatch_noise"]
    jitter = noise.noise2d(base[0] * 0.002, base[1] * 0.002) * hatch_noise * 30 if hatch_noise else 0.0
    hatch = math.radians((p["hatch_angle"] or 0) + jitter)
    cos_h, sin_h = math.cos(hatch), math.sin(hatch)

    def rotate(x: float, y: float) -> XY:
        return (x * cos_h - y * sin_h, x * sin_h + y * cos_h)

    def line(offset: float, gradient: bool = False, spiral: bool = False) -> List[XY]:
        pts: List[XY] = []
        for i in range(steps + 1):
            t = i / steps
            g = lerp(1, 0.4, t) if gradient else 1.0
            off = offset + t * 0.3 if spiral else offset
            pts.append(rotate(t * shape.length, off * shape.half_width(t) * g))
        return place(pts, base, angle)

    if p["inner_shading"]:
        inner_type = p["inner_shading_type"]
        count = int(clamp(round(clamp(p["inner_density"], 0, 1) * 14), 1, 24))
        for i in range(count):
            offset = lerp(-inner_band / 2, inner_band / 2, (i + 1) / (count + 1))
            if inner_type == "stipple":
                dots = max(6, round(steps / 2))
                for s in range(dots):
                    t = (s + 1) / (dots + 1)
                    wobble = (rng.next_float() - 0.5) * 0.2
                    pt = place([rotate(t * shape.length, (offset + wobble) * shape.half_width(t))], base, angle)[0]
                    lines.append([pt, (pt[0] + 0.15, pt[1] + 0.15)])
            else:
                lines.append(line(offset, gradient=inner_type == "gradient", spiral=inner_type == "spiral"))

    if p["outer_shading"]:
        outer_type = p["outer_shading_type"]
        if outer_type in ("outline", "rim"):
            lines.append(petal_outline(shape, steps, base, angle))
        elif outer_type == "edge":
            count = int(clamp(round(clamp(p["outer_density"], 0, 1) * 6), 1, 10))
            for i in range(count):
                offset = lerp(inner_band / 2, 1, (i + 1) / (count + 1))
                lines.append(line(offset))
                lines.append(line(-offset))
    return lines


# ----------------------------------------------------------------------
# Center
# ----------------------------------------------------------------------


def circle_points(circle: Circle, segments: int = 80) -> List[XY]:
    return [
        (circle.cx + math.cos(i / segments * TAU) * circle.r, circle.cy + math.sin(i / segments * TAU) * circle.r)
        for i in range(segments + 1)
    ]


def apply_modifiers(
    paths: List[Path],
    modifiers: Any,
    center: XY,
    max_radius: float,
    noise: SimpleNoise,
) -> List[Path]:
    """Bend center paths with polar modifiers.

    Circles are expanded to polylines once any modifier is active.
    """
    if not isinstance(modifiers, list):
        return paths
    active: List[Dict[str, Any]] = [m for m in modifiers if isinstance(m, dict) and m.get("enabled", True) is not False]
    if not active:
        return paths
    cx, cy = center
    reach = max(1.0, max_radius)
    out: List[Path] = []
    for path in paths:
        pts = circle_points(path) if isinstance(path, Circle) else list(path.points)
        closed = len(pts) > 2 and math.hypot(pts[0][0] - pts[-1][0], pts[0][1] - pts[-1][1]) < 1e-6
        moved: List[XY] = []
        for px, py in pts:
            x, y = px - cx, py - cy
            for mod in active:
                r = math.hypot(x, y)
                a = math.atan2(y, x)
                kind = mod.get("type")
                if kind == "ripple":
                    r += math.sin(a * mod.get("frequency", 4)) * mod.get("amount", 0)
                elif kind == "twist":
                    a += math.radians(mod.get("amount", 0)) * (r / reach)
                elif kind == "radialNoise":
                    scale = mod.get("scale", 0.2)
                    r += noise.noise2d(x * scale, y * scale) * mod.get("amount", 0)
                elif kind == "falloff":
                    r *= 1 - clamp(mod.get("amount", 0), 0, 1) * (r / reach)
                elif kind == "clip":
                    r = min(r, mod.get("radius", max_radius))
                elif kind == "offset":
                    x += mod.get("offset_x", 0)
                    y += mod.get("offset_y", 0)
                    r = math.hypot(x, y)
                    a = math.atan2(y, x)
                x = math.cos(a) * r
                y = math.sin(a) * r
            moved.append((cx + x, cy + y))
        if closed and moved:
            moved[-1] = moved[0]
        out.append(Polyline(points=moved))
    return out


def center_elements(p: Params, rng: SeededRNG, noise: SimpleNoise, center: XY, max_radius: float) -> List[Path]:
    cx, cy = center
    radius = max(0.5, p["center_radius"])
    density = max(1, round(p["center_density"]))
    falloff = clamp(p["center_falloff"], 0, 1)
    kind = p["center_type"]
    paths: List[Path] = []

    if kind == "disk":
        paths.append(Circle.of_radius(cx, cy, radius))
    elif kind == "dome":
        rings = int(clamp(round(density / 2), 2, 30))
        for i in range(rings):
            paths.append(Circle.of_radius(cx, cy, max(0.2, radius * (1 - i / rings))))
    elif kind == "starburst":
        for i in range(density):
            ang = i / density * TAU
            length = radius * (0.6 + 0.4 * rng.next_float())
            paths.append(Polyline(points=[(cx, cy), (cx + math.cos(ang) * length, cy + math.sin(ang) * length)]))
    elif kind == "dot":
        for _ in range(density):
            ang = rng.next_float() * TAU
            r = math.sqrt(rng.next_float()) * radius
            dot_r = 0.4 + rng.next_float() * 0.6
            paths.append(Circle.of_radius(cx + math.cos(ang) * r, cy + math.sin(ang) * r, dot_r))
    elif kind == "filament":
        for i in range(density):
            ang = rng.next_float() * TAU
            length = radius * (0.6 + 0.6 * rng.next_float())
            pts: List[XY] = []
            for s in range(9):
                t = s / 8
                bend = ang + noise.noise2d(t * 2, i * 0.2) * falloff
                pts.append((cx + math.cos(bend) * length * t, cy + math.sin(bend) * length * t))
            paths.append(Polyline(points=pts))

    if p["center_ring"]:
        ring_r = max(0.5, p["center_ring_radius"] or radius * 1.6)
        ring_count = max(6, round(p["center_ring_density"] or density))
        for i in range(ring_count):
            ang = i / ring_count * TAU
            dot_r = 0.35 + rng.next_float() * 0.4
            paths.append(Circle.of_radius(cx + math.cos(ang) * ring_r, cy + math.sin(ang) * ring_r, dot_r))

    if p["center_connectors"]:
        count = max(4, round(p["connector_count"] or density))
        length = max(1.0, p["connector_length"] or radius)
        jitter = clamp(p["connector_jitter"], 0, 1)
        start = radius * 0.6
        for i in range(count):
            ang = i / count * TAU + (rng.next_float() - 0.5) * jitter
            paths.append(
                Polyline(
                    points=[
                        (cx + math.cos(ang) * start, cy + math.sin(ang) * start),
                        (cx + math.cos(ang) * (start + length), cy + math.sin(ang) * (start + length)),
                    ]
                )
            )

    return apply_modifiers(paths, p["center_modifiers"], center, max_radius, noise)


# ----------------------------------------------------------------------
# Generators
# ----------------------------------------------------------------------


class Petalis(Algorithm):
    key = "petalis"
    label = "Petalis"
    defaults: Params = {
        "count": 120,
        "ring_mode": "single",
        "inner_count": 60,
        "outer_count": 90,
        "ring_split": 0.5,
        "ring_offset": 0.0,
        "count_jitter": 0.0,
        "petal_steps": 28,
        "rotation_jitter": 0.0,
        "size_jitter": 0.0,
        "spiral_mode": "golden",
        "custom_angle": GOLDEN_ANGLE,
        "spiral_tightness": 1.0,
        "radial_growth": 1.0,
        "drift_strength": 0.0,
        "drift_noise": 0.2,
        "angular_drift": 0.0,
        "petal_profile": "teardrop",
        "center_profile": "",
        "petal_scale": 30.0,
        "petal_width_ratio": 0.45,
        "tip_sharpness": 0.5,
        "tip_curl": 0.0,
        "base_flare": 0.0,
        "base_pinch": 0.0,
        "edge_wave_amp": 0.0,
        "edge_wave_freq": 2.0,
        "center_size_morph": 0.0,
        "center_size_curve": 1.0,
        "center_shape_morph": 0.0,
        "center_curl_boost": 0.0,
        "center_wave_boost": 0.0,
        "radius_scale": 0.0,
        "radius_scale_curve": 1.0,
        "bud_mode": False,
        "bud_radius": 0.15,
        "bud_tightness": 0.5,
        "inner_shading": False,
        "inner_shading_type": "radial",
        "inner_density": 0.4,
        "outer_shading": False,
        "outer_shading_type": "rim",
        "outer_density": 0.4,
        "shading_transition": 0.3,
        "hatch_angle": 0.0,
        "hatch_noise": 0.0,
        "center_type": "disk",
        "center_radius": 6.0,
        "center_density": 12,
        "center_falloff": 0.6,
        "center_ring": False,
        "center_ring_radius": 0.0,
        "center_ring_density": 0,
        "center_connectors": False,
        "connector_count": 0,
        "connector_length": 0.0,
        "connector_jitter": 0.0,
        "center_modifiers": [],
    }

    def rings(self, p: Params, rng: SeededRNG, max_radius: float) -> List[Dict[str, float]]:
        """Count and radial band of each ring of petals."""
        jitter = clamp(p["count_jitter"], 0, 0.5)

        def jittered(count: float) -> int:
            return max(1, round(count * (1 + rng.next_range(-jitter, jitter))))

        if p["ring_mode"] == "dual":
            split = clamp(p["ring_split"], 0.1, 0.9)
            return [
                {"count": jittered(p["inner_count"]), "min_r": 0.0, "max_r": max_radius * split, "offset": 0.0},
                {
                    "count": jittered(p["outer_count"]),
                    "min_r": max_radius * split,
                    "max_r": max_radius,
                    "offset": math.radians(p["ring_offset"]),
                },
            ]
        return [{"count": jittered(p["count"]), "min_r": 0.0, "max_r": max_radius, "offset": 0.0}]

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        center = (bounds.width / 2, bounds.height / 2)
        max_radius = min(bounds.width, bounds.height) / 2 - bounds.margin
        steps = int(clamp(round(p["petal_steps"]), 12, 80))
        shade_steps = max(6, round(steps / 2))
        rotation_jitter = math.radians(p["rotation_jitter"])
        size_jitter = clamp(p["size_jitter"], 0, 0.6)
        base_angle = math.radians(p["custom_angle"] if p["spiral_mode"] == "custom" else GOLDEN_ANGLE)
        tightness = max(0.5, p["spiral_tightness"])
        growth = max(0.1, p["radial_growth"])
        drift_strength = clamp(p["drift_strength"], 0, 1)
        drift_noise = max(0.01, p["drift_noise"])
        angular_drift = math.radians(p["angular_drift"])
        profile = p["petal_profile"] or "teardrop"
        center_profile = p["center_profile"] or profile

        paths: List[Path] = []
        for ring_index, ring in enumerate(self.rings(p, rng, max_radius)):
            count = ring["count"]
            for i in range(count):
                t = 0.5 if count <= 1 else i / (count - 1)
                radial = lerp(ring["min_r"], ring["max_r"], t ** tightness) * growth
                drift = angular_drift * drift_strength * noise.noise2d(i * drift_noise, ring_index * 2.1)
                angle = base_angle * i + ring["offset"] + drift
                angle += (rng.next_float() - 0.5) * rotation_jitter
                center_factor = clamp(1 - radial / max_radius, 0, 1) if max_radius > 0 else 0.0
                morph_curve = center_factor ** p["center_size_curve"]
                size_morph = 1 + p["center_size_morph"] * morph_curve
                radius_scale = 1 + p["radius_scale"] * t ** p["radius_scale_curve"]
                size = 1 + (rng.next_float() * 2 - 1) * size_jitter
                length = max(4.0, p["petal_scale"] * size_morph * radius_scale * size)

                width_ratio = p["petal_width_ratio"]
                if p["bud_mode"]:
                    bud_radius = clamp(p["bud_radius"], 0.05, 0.5)
                    bud = clamp((center_factor - (1 - bud_radius)) / bud_radius, 0, 1)
                    width_ratio *= 1 - bud * clamp(p["bud_tightness"], 0, 1) * 0.6

                base = (center[0] + math.cos(angle) * radial, center[1] + math.sin(angle) * radial)
                wave_boost = p["center_wave_boost"] * center_factor
                shape = PetalShape(
                    length=length,
                    width_ratio=width_ratio,
                    profile=profile,
                    center_profile=center_profile,
                    morph_weight=clamp(p["center_shape_morph"] * morph_curve, 0, 1),
                    sharpness=p["tip_sharpness"],
                    base_flare=p["base_flare"],
                    base_pinch=p["base_pinch"],
                    wave_amp=max(0.0, p["edge_wave_amp"] * (1 + wave_boost)),
                    wave_freq=p["edge_wave_freq"],
                    wave_phase=rng.next_float() * TAU,
                )
                curl = p["tip_curl"] * (1 + p["center_curl_boost"] * center_factor)
                paths.append(Polyline(points=petal_outline(shape, steps, base, angle, curl)))
                for line in shading_lines(shape, shade_steps, base, angle, p, rng, noise):
                    if len(line) > 1:
                        paths.append(Polyline(points=line))

        paths.extend(center_elements(p, rng, noise, center, max_radius))
        return paths

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        angle = p["custom_angle"] if p["spiral_mode"] == "custom" else GOLDEN_ANGLE
        return f"θ = i * {angle}°\nr = f(i) * {p['spiral_tightness']}\npetal = profile({p['petal_profile']})"


class PetalisDesigner(Petalis):
    """Petalis locked to two rings of petals."""

    key = "petalisdesigner"
    label = "Petalis Designer"

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        return super().build(dict(p, ring_mode="dual"), rng, noise, bounds)

    def formula(self, params=None) -> str:
        return super().formula(dict(params or {}, ring_mode="dual"))


__all__ = [
    "Petalis",
    "PetalisDesigner",
    "PetalShape",
    "PETAL_PROFILES",
    "CENTER_TYPES",
    "profile_base",
]
