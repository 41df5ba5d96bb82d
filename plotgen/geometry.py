"""Path primitives and geometry helpers shared by the pipeline.

A path is either a :class:`Polyline` (ordered points) or an analytic
:class:`Circle`.  Both carry an optional ``meta`` bag that travels with the
path through cloning, smoothing, simplification and transforms.  Consumers
dispatch with ``isinstance`` on the two classes; anything else handed to the
helpers in this module is treated as an empty contribution.

All coordinates are paper-space millimetres.
"""
from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

XY = Tuple[float, float]
Meta = Optional[Dict[str, Any]]


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


@dataclass
class Polyline:
    """Ordered set of points."""

    points: List[XY] = field(default_factory=list)
    meta: Meta = None

    def __len__(self) -> int:
        return len(self.points)

    def endpoints(self) -> Tuple[XY, XY]:
        if not self.points:
            return (0.0, 0.0), (0.0, 0.0)
        return self.points[0], self.points[-1]

    def clone(self) -> "Polyline":
        return Polyline(points=list(self.points), meta=copy.deepcopy(self.meta))

    def reversed(self) -> "Polyline":
        return Polyline(points=self.points[::-1], meta=self.meta)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": "polyline",
            "points": [[float(x), float(y)] for x, y in self.points],
        }
        if self.meta is not None:
            data["meta"] = copy.deepcopy(self.meta)
        return data


@dataclass
class Circle:
    """Analytic circle or ellipse.

    ``rx``/``ry`` are the radii along the local axes and ``rotation`` is the
    rotation of those axes in radians.  Generators usually emit ``rx == ry``;
    asymmetric layer scaling turns a circle into an ellipse.
    """

    cx: float
    cy: float
    rx: float
    ry: float
    rotation: float = 0.0
    meta: Meta = None

    @classmethod
    def of_radius(cls, cx: float, cy: float, r: float, meta: Meta = None) -> "Circle":
        return cls(cx=cx, cy=cy, rx=r, ry=r, meta=meta)

    @property
    def r(self) -> float:
        return max(self.rx, self.ry)

    @property
    def center(self) -> XY:
        return (self.cx, self.cy)

    @property
    def is_round(self) -> bool:
        return abs(self.rx - self.ry) < 1e-6

    def endpoints(self) -> Tuple[XY, XY]:
        return self.center, self.center

    def clone(self) -> "Circle":
        return Circle(
            cx=self.cx,
            cy=self.cy,
            rx=self.rx,
            ry=self.ry,
            rotation=self.rotation,
            meta=copy.deepcopy(self.meta),
        )

    def to_polyline(self, seg_len_mm: float = 0.3) -> Polyline:
        """Polygonise the outline into a closed polyline."""
        arc_len = 2.0 * math.pi * max(self.rx, self.ry, 0.0)
        n = max(3, int(math.ceil(arc_len / max(1e-9, seg_len_mm))))
        cos_r = math.cos(self.rotation)
        sin_r = math.sin(self.rotation)
        pts: List[XY] = []
        for k in range(n + 1):
            a = 2.0 * math.pi * k / n
            lx = self.rx * math.cos(a)
            ly = self.ry * math.sin(a)
            pts.append((self.cx + lx * cos_r - ly * sin_r, self.cy + lx * sin_r + ly * cos_r))
        return Polyline(points=pts, meta=copy.deepcopy(self.meta))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": "circle",
            "cx": float(self.cx),
            "cy": float(self.cy),
            "rx": float(self.rx),
            "ry": float(self.ry),
            "rotation": float(self.rotation),
        }
        if self.meta is not None:
            data["meta"] = copy.deepcopy(self.meta)
        return data


Path = Union[Polyline, Circle]


def path_from_dict(data: Dict[str, Any]) -> Path:
    kind = data.get("type", "polyline")
    meta = copy.deepcopy(data.get("meta"))
    if kind == "circle":
        r = data.get("r")
        rx = float(data.get("rx", r if r is not None else 0.0))
        ry = float(data.get("ry", r if r is not None else rx))
        return Circle(
            cx=float(data.get("cx", 0.0)),
            cy=float(data.get("cy", 0.0)),
            rx=rx,
            ry=ry,
            rotation=float(data.get("rotation", 0.0)),
            meta=meta,
        )
    if kind != "polyline":
        raise ValueError(f"Unsupported path type: {kind}")
    pts = [(float(x), float(y)) for x, y in data.get("points", [])]
    return Polyline(points=pts, meta=meta)


# ---------------------------------------------------------------------------
# Smoothing and simplification
# ---------------------------------------------------------------------------


def smooth_path(path: Path, amount: float) -> Path:
    """Pull every interior point towards the midpoint of its neighbours.

    The first and last point stay fixed.  ``amount`` of 0 leaves the path
    untouched, 1 replaces each interior point with the neighbour midpoint.
    """
    if not isinstance(path, Polyline) or not amount or amount <= 0 or len(path.points) < 3:
        return path
    pts = path.points
    out: List[XY] = [pts[0]]
    for i in range(1, len(pts) - 1):
        px, py = pts[i - 1]
        cx, cy = pts[i]
        nx, ny = pts[i + 1]
        avg_x = (px + nx) / 2
        avg_y = (py + ny) / 2
        out.append((cx * (1 - amount) + avg_x * amount, cy * (1 - amount) + avg_y * amount))
    out.append(pts[-1])
    return Polyline(points=out, meta=path.meta)


def _dist_to_segment_sq(p: XY, a: XY, b: XY) -> float:
    ax, ay = a
    bx, by = b
    px, py = p
    dx, dy = bx - ax, by - ay
    if dx == 0 and dy == 0:
        return (px - ax) ** 2 + (py - ay) ** 2
    t = ((px - ax) * dx + (py - ay) * dy) / (dx * dx + dy * dy)
    if t <= 0:
        return (px - ax) ** 2 + (py - ay) ** 2
    if t >= 1:
        return (px - bx) ** 2 + (py - by) ** 2
    cx, cy = ax + t * dx, ay + t * dy
    return (px - cx) ** 2 + (py - cy) ** 2


def simplify_path(path: Path, tolerance: float) -> Path:
    """Douglas-Peucker simplification driven by an explicit stack."""
    if not isinstance(path, Polyline) or not tolerance or tolerance <= 0 or len(path.points) < 3:
        return path
    pts = path.points
    keep = [False] * len(pts)
    keep[0] = keep[-1] = True
    stack = [(0, len(pts) - 1)]
    tol_sq = tolerance * tolerance
    while stack:
        i0, i1 = stack.pop()
        max_d = 0.0
        idx = -1
        for i in range(i0 + 1, i1):
            d = _dist_to_segment_sq(pts[i], pts[i0], pts[i1])
            if d > max_d:
                max_d, idx = d, i
        if max_d > tol_sq and idx != -1:
            keep[idx] = True
            stack.append((i0, idx))
            stack.append((idx, i1))
    out = [p for p, k in zip(pts, keep) if k]
    if len(out) < 2:
        return path
    return Polyline(points=out, meta=path.meta)


def _triangle_area(a: XY, b: XY, c: XY) -> float:
    return abs((a[0] * (b[1] - c[1]) + b[0] * (c[1] - a[1]) + c[0] * (a[1] - b[1])) / 2)


def simplify_path_visvalingam(path: Path, tolerance: float) -> Path:
    """Visvalingam-Whyatt simplification.

    Repeatedly drops the interior point with the smallest effective triangle
    area while that area is below ``tolerance ** 2``.
    """
    if not isinstance(path, Polyline) or not tolerance or tolerance <= 0 or len(path.points) < 3:
        return path
    pts = path.points
    n = len(pts)
    threshold = tolerance * tolerance
    keep = [True] * n
    area = [math.inf] * n
    for i in range(1, n - 1):
        area[i] = _triangle_area(pts[i - 1], pts[i], pts[i + 1])

    def find_next(idx: int, step: int) -> int:
        i = idx + step
        while 0 < i < n - 1 and not keep[i]:
            i += step
        return i

    while True:
        min_area = math.inf
        min_index = -1
        for i in range(1, n - 1):
            if keep[i] and area[i] < min_area:
                min_area = area[i]
                min_index = i
        if min_index == -1 or min_area >= threshold:
            break
        keep[min_index] = False
        prev = find_next(min_index, -1)
        nxt = find_next(min_index, 1)
        if prev > 0 and nxt < n:
            area[prev] = _triangle_area(pts[find_next(prev, -1)], pts[prev], pts[nxt])
        if nxt < n - 1 and prev >= 0:
            area[nxt] = _triangle_area(pts[prev], pts[nxt], pts[find_next(nxt, 1)])

    out = [p for p, k in zip(pts, keep) if k]
    if len(out) < 2:
        return path
    return Polyline(points=out, meta=path.meta)


# ---------------------------------------------------------------------------
# Copies and counts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PointCount:
    line_count: int = 0
    point_count: int = 0


def clone_paths(paths: Optional[Iterable[Path]]) -> List[Path]:
    out: List[Path] = []
    for path in paths or []:
        if isinstance(path, (Polyline, Circle)):
            out.append(path.clone())
    return out


def count_path_points(paths: Optional[Iterable[Path]]) -> PointCount:
    """Aggregate line and point counts.  Circles count as a line with no points."""
    lines = 0
    points = 0
    for path in paths or []:
        if isinstance(path, Polyline):
            lines += 1
            points += len(path.points)
        elif isinstance(path, Circle):
            lines += 1
    return PointCount(line_count=lines, point_count=points)


# ---------------------------------------------------------------------------
# Measurement
# ---------------------------------------------------------------------------


def ellipse_perimeter(rx: float, ry: float) -> float:
    rx, ry = abs(rx), abs(ry)
    if rx == ry:
        return 2 * math.pi * rx
    # Ramanujan's first approximation
    return math.pi * (3 * (rx + ry) - math.sqrt((3 * rx + ry) * (rx + 3 * ry)))


def path_length(path: Any) -> float:
    if isinstance(path, Circle):
        return max(0.0, ellipse_perimeter(path.rx, path.ry))
    if not isinstance(path, Polyline):
        return 0.0
    total = 0.0
    pts = path.points
    for a, b in zip(pts, pts[1:]):
        total += math.hypot(b[0] - a[0], b[1] - a[1])
    return total


def path_endpoints(path: Any) -> Tuple[XY, XY]:
    if isinstance(path, (Polyline, Circle)):
        return path.endpoints()
    return (0.0, 0.0), (0.0, 0.0)


def path_centroid(path: Any) -> XY:
    if isinstance(path, Circle):
        return path.center
    if not isinstance(path, Polyline) or not path.points:
        return (0.0, 0.0)
    sx = sum(p[0] for p in path.points)
    sy = sum(p[1] for p in path.points)
    n = len(path.points)
    return (sx / n, sy / n)


def is_closed_path(path: Any) -> bool:
    if isinstance(path, Circle):
        return True
    if not isinstance(path, Polyline) or len(path.points) < 3:
        return False
    (sx, sy), (ex, ey) = path.points[0], path.points[-1]
    return (sx - ex) ** 2 + (sy - ey) ** 2 < 1e-6


def close_path_if_needed(path: Path, closed: bool = True) -> Path:
    if not closed or not isinstance(path, Polyline) or len(path.points) < 2:
        return path
    (sx, sy), (ex, ey) = path.points[0], path.points[-1]
    if (sx - ex) ** 2 + (sy - ey) ** 2 > 1e-6:
        return Polyline(points=path.points + [(sx, sy)], meta=path.meta)
    return path


def reverse_path(path: Path) -> Path:
    if isinstance(path, Polyline):
        return path.reversed()
    return path


def offset_path(path: Path, dx: float, dy: float) -> Path:
    if isinstance(path, Circle):
        moved = path.clone()
        moved.cx += dx
        moved.cy += dy
        moved.meta = path.meta
        return moved
    if isinstance(path, Polyline):
        return Polyline(points=[(x + dx, y + dy) for x, y in path.points], meta=path.meta)
    return path


def bounding_box(paths: Iterable[Path]) -> Optional[Tuple[XY, XY]]:
    xs: List[float] = []
    ys: List[float] = []
    for path in paths:
        if isinstance(path, Polyline):
            for x, y in path.points:
                xs.append(x)
                ys.append(y)
        elif isinstance(path, Circle):
            r = path.r
            xs.extend((path.cx - r, path.cx + r))
            ys.extend((path.cy - r, path.cy + r))
    if not xs or not ys:
        return None
    return (min(xs), min(ys)), (max(xs), max(ys))


def total_length(paths: Iterable[Path]) -> float:
    return sum(path_length(p) for p in paths)


def travel_distance(paths: Sequence[Path], start_xy: XY = (0.0, 0.0)) -> float:
    """Pen-up distance needed to visit ``paths`` in order."""
    cur = start_xy
    total = 0.0
    for path in paths:
        if not isinstance(path, (Polyline, Circle)):
            continue
        s, e = path.endpoints()
        total += math.hypot(s[0] - cur[0], s[1] - cur[1])
        cur = e
    return total


__all__ = [
    "XY",
    "Meta",
    "Polyline",
    "Circle",
    "Path",
    "PointCount",
    "path_from_dict",
    "smooth_path",
    "simplify_path",
    "simplify_path_visvalingam",
    "clone_paths",
    "count_path_points",
    "ellipse_perimeter",
    "path_length",
    "path_endpoints",
    "path_centroid",
    "is_closed_path",
    "close_path_if_needed",
    "reverse_path",
    "offset_path",
    "bounding_box",
    "total_length",
    "travel_distance",
]
