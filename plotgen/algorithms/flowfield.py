"""Particles traced along a noise angle field."""
from __future__ import annotations

import math
from typing import List

from ..config import Bounds
from ..geometry import Path, Polyline, XY
from ..noise import SimpleNoise
from ..rng import SeededRNG
from .base import Algorithm, Params, clamp


def _shape(kind: str, val: float, x: float, y: float) -> float:
    if kind == "ridged":
        return (1 - abs(val)) * 2 - 1
    if kind in ("billow", "turbulence"):
        return abs(val) * 2 - 1
    if kind == "swirl":
        return math.sin(x * 2 + val * 2) * math.cos(y * 2 + val)
    if kind == "radial":
        return math.sin(math.hypot(x, y) * 3 + val * 2)
    if kind == "checker":
        return 1.0 if (math.floor(x * 4) + math.floor(y * 4)) % 2 == 0 else -1.0
    return val


class FlowField(Algorithm):
    key = "flowfield"
    label = "Flow Field"
    defaults: Params = {
        "noise_scale": 0.01,
        "density": 1000,
        "step_len": 5.0,
        "max_steps": 50,
        "force": 1.0,
        "chaos": 0.0,
        "octaves": 1,
        "lacunarity": 2.0,
        "gain": 0.5,
        "noise_type": "simplex",
        "angle_offset": 0.0,
        "min_steps": 2,
        "min_length": 0.0,
    }

    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        m = bounds.margin
        dw, dh = bounds.drawable_width, bounds.drawable_height
        width, height = bounds.width, bounds.height

        count = max(1, int(math.floor(p["density"])))
        noise_scale = p["noise_scale"]
        octaves = max(1, int(math.floor(p["octaves"])))
        lacunarity = max(1.1, p["lacunarity"])
        gain = clamp(p["gain"], 0.1, 1.0)
        noise_type = p["noise_type"] or "simplex"
        angle_offset = math.radians(p["angle_offset"])
        chaos = p["chaos"]
        force = p["force"]
        step_len = p["step_len"]
        max_steps = max(1, int(math.floor(p["max_steps"])))
        min_steps = max(2, int(math.floor(p["min_steps"])))
        min_length = max(0.0, p["min_length"])

        def sample(x: float, y: float) -> float:
            total = norm = 0.0
            amp = freq = 1.0
            for _ in range(octaves):
                nx = x * noise_scale * freq
                ny = y * noise_scale * freq
                total += _shape(noise_type, noise.noise2d(nx, ny), nx, ny) * amp
                norm += amp
                amp *= gain
                freq *= lacunarity
            return total / norm if norm else total

        def curl(x: float, y: float) -> float:
            eps = 0.0005
            dx = dy = norm = 0.0
            amp = freq = 1.0
            for _ in range(octaves):
                s = noise_scale * freq
                dx += (noise.noise2d((x + eps) * s, y * s) - noise.noise2d((x - eps) * s, y * s)) * amp
                dy += (noise.noise2d(x * s, (y + eps) * s) - noise.noise2d(x * s, (y - eps) * s)) * amp
                norm += amp
                amp *= gain
                freq *= lacunarity
            if norm:
                dx /= norm
                dy /= norm
            return math.atan2(dy, -dx)

        paths: List[Path] = []
        for _ in range(count):
            x = m + rng.next_float() * dw
            y = m + rng.next_float() * dh
            pts: List[XY] = [(x, y)]
            length = 0.0
            for _ in range(max_steps):
                if noise_type == "curl":
                    angle = curl(x, y) * force + angle_offset
                else:
                    angle = sample(x, y) * math.pi * 2 * force + angle_offset
                angle += (rng.next_float() - 0.5) * chaos
                dx = math.cos(angle) * step_len
                dy = math.sin(angle) * step_len
                x += dx
                y += dy
                if x < m or x > width - m or y < m or y > height - m:
                    break
                length += math.hypot(dx, dy)
                pts.append((x, y))
            if len(pts) >= min_steps and length >= min_length:
                paths.append(Polyline(points=pts))
        return paths

    def formula(self, params=None) -> str:
        p = self.resolve(params)
        return (
            f"θ = noise(x * {p['noise_scale']}, y * {p['noise_scale']}) * 2π * {p['force']}\n"
            f"pos += [cos(θ), sin(θ)] * {p['step_len']}"
        )


__all__ = ["FlowField"]
