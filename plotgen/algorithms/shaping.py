"""Noise shaping shared by the field based generators.

``shape_noise`` maps a raw simplex sample into one of several stylised
fields.  All shapes return values roughly in ``[-1, 1]``.
"""
from __future__ import annotations

import math

from ..noise import SimpleNoise

NOISE_TYPES = (
    "simplex",
    "ridged",
    "billow",
    "turbulence",
    "stripes",
    "marble",
    "steps",
    "triangle",
    "warp",
    "cellular",
    "fbm",
    "swirl",
    "radial",
    "checker",
    "zigzag",
    "ripple",
    "spiral",
    "grain",
    "crosshatch",
    "pulse",
)


def hash2d(x: float, y: float, seed: float = 0.0) -> float:
    """Cheap deterministic hash in ``[0, 1)``."""
    n = math.sin(x * 127.1 + y * 311.7 + seed * 0.1) * 43758.5453
    return n - math.floor(n)


def cellular(x: float, y: float, seed: float = 0.0) -> float:
    xi = math.floor(x)
    yi = math.floor(y)
    min_dist = math.inf
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            cx = xi + dx + hash2d(xi + dx, yi + dy, seed)
            cy = yi + dy + hash2d(xi + dx + 7.21, yi + dy + 3.17, seed)
            min_dist = min(min_dist, math.hypot(x - cx, y - cy))
    v = max(0.0, min(1.0, 1 - min_dist))
    return v * 2 - 1


def fbm(noise: SimpleNoise, x: float, y: float, octaves: int = 4, gain: float = 0.5, lacunarity: float = 2.0) -> float:
    total = 0.0
    amp = 1.0
    freq = 1.0
    norm = 0.0
    for _ in range(octaves):
        total += noise.noise2d(x * freq, y * freq) * amp
        norm += amp
        amp *= gain
        freq *= lacunarity
    return total / norm if norm else total


def shape_noise(
    noise: SimpleNoise,
    kind: str,
    x: float,
    y: float,
    seed: float = 0.0,
    octaves: int = 4,
    gain: float = 0.5,
    lacunarity: float = 2.0,
) -> float:
    n = noise.noise2d(x, y)
    if kind == "ridged":
        return (1 - abs(n)) * 2 - 1
    if kind == "billow":
        return abs(n) * 2 - 1
    if kind == "turbulence":
        n2 = noise.noise2d(x * 2, y * 2)
        n3 = noise.noise2d(x * 4, y * 4)
        t = (abs(n) + abs(n2) * 0.5 + abs(n3) * 0.25) / 1.75
        return t * 2 - 1
    if kind == "stripes":
        return math.sin(x * 2 + n * 1.5)
    if kind == "marble":
        return math.sin((x + y) * 1.5 + n * 2)
    if kind == "steps":
        # round half up
        t = math.floor(((n + 1) / 2) * 5 + 0.5) / 5
        return t * 2 - 1
    if kind == "triangle":
        t = (n + 1) / 2
        tri = 1 - abs(math.fmod(t, 1.0) * 2 - 1)
        return tri * 2 - 1
    if kind == "warp":
        return noise.noise2d(x + n * 1.5, y + n * 1.5)
    if kind == "cellular":
        return cellular(x, y, seed)
    if kind == "fbm":
        return fbm(noise, x, y, octaves, gain, lacunarity)
    if kind == "swirl":
        return math.sin(x * 2 + n * 2) * math.cos(y * 2 + n)
    if kind == "radial":
        return math.sin(math.hypot(x, y) * 3 + n * 2)
    if kind == "checker":
        return 1.0 if (math.floor(x * 4) + math.floor(y * 4)) % 2 == 0 else -1.0
    if kind == "zigzag":
        t = abs(math.fmod(x * 2, 2.0) - 1)
        return (1 - t) * 2 - 1
    if kind == "ripple":
        return math.sin((x + y) * 3 + n * 2)
    if kind == "spiral":
        return math.sin(math.atan2(y, x) * 4 + math.hypot(x, y) * 2 + n)
    if kind == "grain":
        return hash2d(x * 10, y * 10, seed) * 2 - 1
    if kind == "crosshatch":
        return (math.sin(x * 3) + math.sin(y * 3)) * 0.5
    if kind == "pulse":
        t = abs(math.sin(x * 2 + n) * math.cos(y * 2 + n))
        return t * 2 - 1
    return n


__all__ = ["NOISE_TYPES", "hash2d", "cellular", "fbm", "shape_noise"]
