"""Layered noise definitions shared by the spiral and wavetable generators.

A stack is a list of noise layers, each with its own pattern, zoom, rotation,
shift and tiling.  Layer values are scaled by their amplitude and folded
together with a blend mode; the first enabled layer seeds the result.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Sequence, Tuple

from ..noise import SimpleNoise
from .base import clamp
from .shaping import fbm, hash2d, shape_noise

STACK_NOISE_TYPES = (
    "value",
    "perlin",
    "facet",
    "sawtooth",
    "polygon",
    "voronoi",
    "crackle",
    "domain",
    "weave",
    "moire",
    "dunes",
)
BLEND_MODES = ("add", "subtract", "multiply", "max", "min", "hatch-dark", "hatch-light")
TILE_MODES = ("off", "grid", "brick", "hex", "diamond", "triangle", "offset", "radial", "spiral", "checker", "wave")


@dataclass
class NoiseLayer:
    type: str = "simplex"
    blend: str = "add"
    amplitude: float = 0.0
    zoom: float = 0.02
    freq: float = 1.0
    angle: float = 0.0
    shift_x: float = 0.0
    shift_y: float = 0.0
    tile_mode: str = "off"
    tile_padding: float = 0.0
    pattern_scale: float = 1.0
    warp_strength: float = 1.0
    cellular_scale: float = 1.0
    cellular_jitter: float = 1.0
    steps_count: int = 5
    seed: float = 0.0
    apply_mode: str = "topdown"
    polygon_sides: int = 6
    polygon_radius: float = 2.0
    polygon_rotation: float = 0.0
    polygon_outline: float = 0.0
    polygon_edge_radius: float = 0.0
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: Optional["NoiseLayer"] = None) -> "NoiseLayer":
        """Build a layer from ``data``, filling gaps from ``base``.

        Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {f.name: getattr(base, f.name) for f in fields(cls)} if base is not None else {}
        values.update({k: v for k, v in data.items() if k in known and v is not None})
        return cls(**values)


# ----------------------------------------------------------------------
# Patterns
# ----------------------------------------------------------------------


def smoothstep(t: float) -> float:
    return t * t * (3 - 2 * t)


def value_noise(x: float, y: float, hash_seed: float, offset: float = 0.0, smooth: bool = True) -> float:
    xi, yi = math.floor(x), math.floor(y)
    xf, yf = x - xi, y - yi
    u = smoothstep(xf) if smooth else xf
    v = smoothstep(yf) if smooth else yf
    sx, sy = offset * 0.17, offset * 0.11
    n00 = hash2d(xi + sx, yi + sy, hash_seed)
    n10 = hash2d(xi + 1 + sx, yi + sy, hash_seed)
    n01 = hash2d(xi + sx, yi + 1 + sy, hash_seed)
    n11 = hash2d(xi + 1 + sx, yi + 1 + sy, hash_seed)
    top = n00 + (n10 - n00) * u
    bottom = n01 + (n11 - n01) * u
    return (top + (bottom - top) * v) * 2 - 1


def cell_distances(x: float, y: float, hash_seed: float, jitter: float = 1.0) -> Tuple[float, float]:
    """Distances to the nearest and second nearest jittered cell points."""
    xi, yi = math.floor(x), math.floor(y)
    f1 = f2 = math.inf
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            cx = xi + dx + hash2d(xi + dx, yi + dy, hash_seed) * jitter
            cy = yi + dy + hash2d(xi + dx + 7.21, yi + dy + 3.17, hash_seed) * jitter
            dist = math.hypot(x - cx, y - cy)
            if dist < f1:
                f1, f2 = dist, f1
            elif dist < f2:
                f2 = dist
    return f1, f2


def polygon_field(px: float, py: float, layer: NoiseLayer) -> float:
    sides = max(3, round(layer.polygon_sides))
    radius = max(0.1, layer.polygon_radius)
    outline = max(0.0, layer.polygon_outline)
    edge = max(0.0, layer.polygon_edge_radius)
    sector = math.pi * 2 / sides
    rel = (math.atan2(py, px) - math.radians(layer.polygon_rotation)) % sector
    reach = radius * math.cos(math.pi / sides) / math.cos(rel - math.pi / sides)
    sd = math.hypot(px, py) - reach
    if outline > 0:
        sd = abs(sd) - outline / 2
    if edge <= 0:
        return 1.0 if sd <= 0 else -1.0
    return 1 - clamp((sd + edge) / (edge * 2), 0, 1) * 2


def pattern_value(noise: SimpleNoise, layer: NoiseLayer, x: float, y: float, hash_seed: float = 0.0) -> float:
    """Sample one layer's pattern at already transformed coordinates."""
    kind = layer.type or "simplex"
    n = noise.noise2d(x, y)
    scale = max(0.1, layer.pattern_scale)
    warp = max(0.0, layer.warp_strength)
    cell_scale = max(0.1, layer.cellular_scale)
    jitter = clamp(layer.cellular_jitter, 0, 1)
    steps = max(2, round(layer.steps_count))
    px, py = x * scale, y * scale

    if kind == "value":
        return value_noise(x, y, hash_seed, layer.seed, smooth=False)
    if kind == "perlin":
        return value_noise(x, y, hash_seed, layer.seed)
    if kind == "steps":
        t = ((n + 1) / 2 + (layer.seed * 0.13) % 1) % 1
        return math.floor(t * (steps - 1) + 0.5) / (steps - 1) * 2 - 1
    if kind == "facet":
        return math.floor((n + 1) / 2 * steps) / steps * 2 - 1
    if kind == "sawtooth":
        return ((px + py * 0.25) % 1) * 2 - 1
    if kind == "polygon":
        return polygon_field(px, py, layer)
    if kind == "warp":
        return noise.noise2d(x + n * 1.5 * warp, y + n * 1.5 * warp)
    if kind in ("cellular", "voronoi", "crackle"):
        f1, f2 = cell_distances(x * cell_scale, y * cell_scale, hash_seed, jitter)
        if kind == "cellular":
            return clamp(1 - f1, 0, 1) * 2 - 1
        if kind == "voronoi":
            return clamp(f1, 0, 1) * 2 - 1
        return (1 - clamp((f2 - f1) * 3, 0, 1)) * 2 - 1
    if kind == "fbm":
        return fbm(noise, x, y)
    if kind == "domain":
        wx = noise.noise2d(x * 1.7, y * 1.7) * warp
        wy = noise.noise2d(x * 1.7 + 5.2, y * 1.7 + 1.3) * warp
        return noise.noise2d(x + wx, y + wy)
    if kind == "weave":
        return math.sin(px * 2 + n) * math.sin(py * 2 + n)
    if kind == "moire":
        return (math.sin(px * 2) + math.sin(py * 2.2)) * 0.5
    if kind == "dunes":
        return math.sin(px * 2 + n * 1.5)
    if kind == "grain":
        return hash2d(x * 10, y * 10, hash_seed) * 2 - 1
    if kind in ("simplex", "ridged", "billow", "turbulence", "triangle"):
        return shape_noise(noise, kind, x, y, hash_seed)
    return shape_noise(noise, kind, px, py, hash_seed)


# ----------------------------------------------------------------------
# Tiling
# ----------------------------------------------------------------------


def _frac(v: float) -> float:
    return v - math.floor(v)


def _pad(t: float, pad: float) -> float:
    if pad <= 0:
        return t
    span = 1 - pad * 2
    if span <= 0:
        return 0.5
    return clamp((t - pad) / span, 0, 1)


def apply_tile(nx: float, ny: float, mode: str, padding: float = 0.0) -> Tuple[float, float]:
    """Fold coordinates into a repeating cell."""
    pad = clamp(padding, 0, 0.45)
    if mode == "brick":
        return _pad(_frac(nx + (math.floor(ny) % 2) * 0.5), pad), _pad(_frac(ny), pad)
    if mode == "hex":
        hy = ny / 0.866
        return _pad(_frac(nx + (math.floor(hy) % 2) * 0.5), pad), _pad(_frac(hy), pad)
    if mode == "diamond":
        return _pad(_frac(nx + ny), pad), _pad(_frac(ny - nx), pad)
    if mode == "triangle":
        fx, fy = _frac(nx), _frac(ny)
        if fx + fy > 1:
            fx, fy = 1 - fx, 1 - fy
        return _pad(fx, pad), _pad(fy, pad)
    if mode == "offset":
        return _pad(_frac(nx), pad), _pad(_frac(ny + (math.floor(nx) % 2) * 0.5), pad)
    if mode in ("radial", "spiral"):
        r = math.hypot(nx, ny)
        a = math.atan2(ny, nx)
        rr = _pad(_frac(r + a * 0.5 if mode == "spiral" else r), pad)
        aa = _pad(_frac(a / (math.pi * 2) + 0.5), pad) * math.pi * 2
        return rr * math.cos(aa), rr * math.sin(aa)
    if mode == "wave":
        fx = _frac(nx + math.sin(ny * math.pi) * 0.3)
        fy = _frac(ny + math.sin(nx * math.pi) * 0.3)
        return _pad(fx, pad), _pad(fy, pad)
    return _pad(_frac(nx), pad), _pad(_frac(ny), pad)


# ----------------------------------------------------------------------
# Stack
# ----------------------------------------------------------------------


def blend(mode: str, combined: float, value: float, max_amp: float) -> float:
    if mode == "subtract":
        return combined - value
    if mode == "multiply":
        return combined * value
    if mode == "max":
        return max(combined, value)
    if mode == "min":
        return min(combined, value)
    if mode in ("hatch-dark", "hatch-light"):
        tone = clamp((combined / max_amp + 1) / 2, 0, 1)
        dark = mode == "hatch-dark"
        weight = 1 - tone if dark else tone
        if value >= 0:
            bias = 0.6 if dark else 1.2
        else:
            bias = 1.2 if dark else 0.6
        return combined + value * weight * bias
    return combined + value


class NoiseStack:
    """Sample and blend a list of :class:`NoiseLayer` definitions.

    ``extent`` is the drawable width and height used by the ``linear`` apply
    mode and by ``shift_scale``, which multiplies each layer's shift before it
    is added to world coordinates.
    """

    def __init__(
        self,
        noise: SimpleNoise,
        layers: Sequence[NoiseLayer],
        hash_seed: float = 0.0,
        extent: Tuple[float, float] = (1.0, 1.0),
        shift_scale: Tuple[float, float] = (1.0, 1.0),
    ) -> None:
        self.noise = noise
        self.layers = [layer for layer in layers if layer.enabled is not False]
        self.hash_seed = hash_seed
        self.extent = extent
        self.shift_scale = shift_scale
        self.max_amp = sum(abs(layer.amplitude or 0) for layer in self.layers) or 1.0

    @classmethod
    def from_params(
        cls,
        noise: SimpleNoise,
        definitions: Any,
        base: NoiseLayer,
        **kwargs: Any,
    ) -> "NoiseStack":
        """Use ``definitions`` when it is a non empty list, else ``base`` alone."""
        if isinstance(definitions, list) and definitions:
            layers = [NoiseLayer.from_dict(d if isinstance(d, Mapping) else {}, base) for d in definitions]
        else:
            layers = [base]
        return cls(noise, layers, **kwargs)

    def coords(self, layer: NoiseLayer, x: float, y: float, uv: Optional[Tuple[float, float]] = None) -> Tuple[float, float]:
        zoom = max(0.0001, layer.zoom)
        freq = max(0.1, layer.freq)
        if layer.apply_mode == "linear" and uv is not None:
            nx = (uv[0] - 0.5 + layer.shift_x) * self.extent[0] * zoom * freq
            ny = (uv[1] - 0.5 + layer.shift_y) * self.extent[1] * zoom
        else:
            nx = (x + layer.shift_x * self.shift_scale[0]) * zoom * freq
            ny = (y + layer.shift_y * self.shift_scale[1]) * zoom
        angle = math.radians(layer.angle)
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        rx, ry = nx * cos_a - ny * sin_a, nx * sin_a + ny * cos_a
        if layer.tile_mode and layer.tile_mode != "off":
            return apply_tile(rx, ry, layer.tile_mode, layer.tile_padding)
        return rx, ry

    def sample(self, x: float, y: float, uv: Optional[Tuple[float, float]] = None) -> float:
        """Blended displacement at world point ``(x, y)``; 0 for an empty stack."""
        combined = 0.0
        for i, layer in enumerate(self.layers):
            tx, ty = self.coords(layer, x, y, uv)
            value = pattern_value(self.noise, layer, tx, ty, self.hash_seed) * layer.amplitude
            combined = value if i == 0 else blend(layer.blend, combined, value, self.max_amp)
        return combined


__all__ = [
    "NoiseLayer",
    "NoiseStack",
    "STACK_NOISE_TYPES",
    "BLEND_MODES",
    "TILE_MODES",
    "apply_tile",
    "blend",
    "cell_distances",
    "pattern_value",
    "value_noise",
]
