"""Placement of generated paths on the paper."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Tuple

from .config import Bounds
from .geometry import Circle, Path, Polyline, simplify_path, smooth_path


@dataclass
class LayerTransform:
    """Scale, rotation and offset applied around an origin.

    Points are moved relative to the origin, scaled per axis, rotated and
    translated back by ``origin + (pos_x, pos_y)``.
    """

    scale_x: float = 1.0
    scale_y: float = 1.0
    rotation_deg: float = 0.0
    pos_x: float = 0.0
    pos_y: float = 0.0
    origin_x: float = 0.0
    origin_y: float = 0.0

    @classmethod
    def from_params(cls, params: Mapping[str, Any], bounds: Bounds) -> "LayerTransform":
        return cls(
            scale_x=float(params.get("scale_x", 1.0)),
            scale_y=float(params.get("scale_y", 1.0)),
            rotation_deg=float(params.get("rotation", 0.0) or 0.0),
            pos_x=float(params.get("pos_x", 0.0)),
            pos_y=float(params.get("pos_y", 0.0)),
            origin_x=bounds.width / 2,
            origin_y=bounds.height / 2,
        )

    @property
    def theta(self) -> float:
        return math.radians(self.rotation_deg)

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        x -= self.origin_x
        y -= self.origin_y
        cos_t = math.cos(self.theta)
        sin_t = math.sin(self.theta)
        sx = x * self.scale_x
        sy = y * self.scale_y
        rx = sx * cos_t - sy * sin_t
        ry = sx * sin_t + sy * cos_t
        return rx + self.origin_x + self.pos_x, ry + self.origin_y + self.pos_y

    def transform_path(self, path: Path) -> Path:
        if isinstance(path, Circle):
            cx, cy = self.apply(path.cx, path.cy)
            return Circle(
                cx=cx,
                cy=cy,
                rx=abs(path.rx * self.scale_x),
                ry=abs(path.ry * self.scale_y),
                rotation=path.rotation + self.theta,
                meta=path.meta,
            )
        if isinstance(path, Polyline):
            return Polyline(points=[self.apply(x, y) for x, y in path.points], meta=path.meta)
        return path


def transform_paths(raw: Iterable[Path], params: Mapping[str, Any], bounds: Bounds) -> List[Path]:
    """Transform, smooth and optionally simplify a generator's raw output.

    The order is fixed; smoothing always sees transformed coordinates.
    """
    transform = LayerTransform.from_params(params, bounds)
    smoothing = min(1.0, max(0.0, float(params.get("smoothing") or 0.0)))
    tolerance = float(params.get("simplify") or 0.0)
    out: List[Path] = []
    for path in raw:
        if not isinstance(path, (Polyline, Circle)):
            continue
        moved = smooth_path(transform.transform_path(path), smoothing)
        out.append(simplify_path(moved, tolerance))
    return out


__all__ = ["LayerTransform", "transform_paths"]
