"""Plot optimization pipeline and per-pen deduplication.

The pipeline never touches ``layer.paths``.  Every run works on clones and
stores its result in ``layer.optimized_paths``; a bypassed run resets that
cache to ``None``.  Each step reports a one-line summary that is logged and
returned to the caller.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .geometry import (
    XY,
    Circle,
    Path,
    Polyline,
    clone_paths,
    count_path_points,
    path_endpoints,
    path_length,
    simplify_path,
    simplify_path_visvalingam,
    travel_distance,
)
from .layer import Layer

logger = logging.getLogger(__name__)

TINY_LENGTH = 1e-6
SORT_METHODS = ("nearest", "none")
SORT_DIRECTIONS = ("none", "horizontal", "vertical")
SORT_GROUPINGS = ("layer", "pen", "combined")
SIMPLIFY_MODES = ("polyline", "visvalingam")

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class StepConfig:
    """One stage of the pipeline; kind specific options live in ``options``."""

    id: str
    enabled: bool = True
    bypass: bool = False
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def active(self) -> bool:
        return self.enabled and not self.bypass

    def get(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StepConfig":
        if not isinstance(data, Mapping) or not data.get("id"):
            raise ValueError("Optimization step requires an 'id'")
        options: Dict[str, Any] = {}
        for key, value in data.items():
            name = _snake(str(key))
            if name in ("id", "enabled", "bypass"):
                continue
            options[name] = value
        return cls(
            id=str(data["id"]),
            enabled=data.get("enabled", True) is not False,
            bypass=bool(data.get("bypass", False)),
            options=options,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "enabled": self.enabled, "bypass": self.bypass}
        data.update(self.options)
        return data


@dataclass
class PipelineConfig:
    bypass_all: bool = False
    steps: List[StepConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PipelineConfig":
        if data is None:
            return cls.default()
        if not isinstance(data, Mapping):
            raise ValueError("Optimization config must be a mapping")
        if "config" in data and isinstance(data["config"], Mapping):
            data = data["config"]
        bypass_all = data.get("bypass_all", data.get("bypassAll", False))
        steps = data.get("steps") or []
        if not isinstance(steps, list):
            raise ValueError("Optimization 'steps' must be a list")
        return cls(bypass_all=bool(bypass_all), steps=[StepConfig.from_dict(s) for s in steps])

    @classmethod
    def default(cls) -> "PipelineConfig":
        return cls(
            steps=[
                StepConfig("linesimplify", options={"tolerance": 0.1, "mode": "polyline"}),
                StepConfig("linesort", options={"method": "nearest", "direction": "none", "grouping": "layer"}),
                StepConfig("filter", options={"min_length": 0.0, "max_length": 0.0, "remove_tiny": True}),
                StepConfig("linemerge", enabled=False, options={"tolerance": 0.05}),
            ]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"bypass_all": self.bypass_all, "steps": [s.to_dict() for s in self.steps]}


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

Work = List[List[Path]]
StepFn = Callable[[Sequence[Layer], Work, StepConfig], str]


def simplify_paths(paths: Iterable[Path], tolerance: float, mode: str = "polyline") -> List[Path]:
    fn = simplify_path_visvalingam if mode == "visvalingam" else simplify_path
    return [fn(p, tolerance) if isinstance(p, Polyline) else p for p in paths]


def _runs(path: Path, direction: str) -> bool:
    (sx, sy), (ex, ey) = path_endpoints(path)
    if direction == "horizontal":
        return ex >= sx
    if direction == "vertical":
        return ey >= sy
    return True


def _nearest(candidates: Sequence[Tuple[int, Path]], cur: XY, allow_reverse: bool) -> Tuple[int, bool]:
    best_i, best_cost, best_rev = -1, math.inf, False
    for i, path in candidates:
        s, e = path_endpoints(path)
        d_fwd = math.hypot(cur[0] - s[0], cur[1] - s[1])
        cost, rev = d_fwd, False
        if allow_reverse and isinstance(path, Polyline):
            d_rev = math.hypot(cur[0] - e[0], cur[1] - e[1])
            if d_rev < d_fwd:
                cost, rev = d_rev, True
        if cost < best_cost:
            best_i, best_cost, best_rev = i, cost, rev
    return best_i, best_rev


def sort_paths(paths: Sequence[Path], start_xy: XY = (0.0, 0.0), direction: str = "none") -> Tuple[List[Path], XY]:
    """Greedy nearest-neighbour ordering.

    Returns the ordered paths and the final pen position.  With a
    ``direction`` other than ``"none"`` candidates already running that way
    are taken first, unreversed; the rest fall back to plain nearest choice.
    """
    remaining = list(paths)
    ordered: List[Path] = []
    cur = start_xy
    while remaining:
        indexed = list(enumerate(remaining))
        idx, rev = -1, False
        if direction in ("horizontal", "vertical"):
            preferred = [(i, p) for i, p in indexed if _runs(p, direction)]
            if preferred:
                idx, rev = _nearest(preferred, cur, allow_reverse=False)
        if idx < 0:
            idx, rev = _nearest(indexed, cur, allow_reverse=True)
        path = remaining.pop(idx)
        if rev:
            path = path.reversed()
        ordered.append(path)
        cur = path_endpoints(path)[1]
    return ordered, cur


def filter_paths(
    paths: Iterable[Path], min_length: float = 0.0, max_length: float = 0.0, remove_tiny: bool = True
) -> List[Path]:
    out: List[Path] = []
    for path in paths:
        if isinstance(path, Circle):
            length = 2 * math.pi * max(0.0, path.r)
        elif isinstance(path, Polyline):
            length = path_length(path)
        else:
            continue
        if remove_tiny and length < TINY_LENGTH:
            continue
        if length < min_length:
            continue
        if max_length > 0 and length > max_length:
            continue
        out.append(path)
    return out


def merge_paths(paths: Sequence[Path], tolerance: float = 0.05) -> List[Path]:
    """Join polylines whose tail lies within ``tolerance`` of another's head."""
    chains: List[Optional[Polyline]] = [p if isinstance(p, Polyline) and p.points else None for p in paths]
    used = [c is None for c in chains]
    out: List[Path] = []
    for i, path in enumerate(paths):
        chain = chains[i]
        if chain is None:
            if isinstance(path, Circle):
                out.append(path)
            continue
        if used[i]:
            continue
        used[i] = True
        pts = list(chain.points)
        changed = True
        while changed:
            changed = False
            tail = pts[-1]
            for j, other in enumerate(chains):
                if used[j] or other is None:
                    continue
                head = other.points[0]
                if math.hypot(tail[0] - head[0], tail[1] - head[1]) <= tolerance:
                    pts.extend(other.points[1:])
                    used[j] = True
                    changed = True
                    break
        out.append(Polyline(points=pts, meta=chain.meta))
    return out


def _step_simplify(layers: Sequence[Layer], work: Work, step: StepConfig) -> str:
    tolerance = float(step.get("tolerance", 0.1))
    mode = step.get("mode", "polyline")
    before = sum(count_path_points(paths).point_count for paths in work)
    for i, paths in enumerate(work):
        work[i] = simplify_paths(paths, tolerance, mode)
    after = sum(count_path_points(paths).point_count for paths in work)
    return f"Simplify ({mode}): points {before} -> {after}, tolerance={tolerance}."


def _step_sort(layers: Sequence[Layer], work: Work, step: StepConfig) -> str:
    method = step.get("method", "nearest")
    if method == "none":
        return "Sort: skipped (method=none)."
    direction = step.get("direction", "none")
    grouping = step.get("grouping", "layer")
    before = after = 0.0
    shared: XY = (0.0, 0.0)
    per_pen: Dict[Any, XY] = {}
    for i, paths in enumerate(work):
        if grouping == "combined":
            start = shared
        elif grouping == "pen":
            start = per_pen.get(layers[i].pen_id, (0.0, 0.0))
        else:
            start = (0.0, 0.0)
        before += travel_distance(paths, start)
        ordered, end = sort_paths(paths, start, direction)
        after += travel_distance(ordered, start)
        work[i] = ordered
        shared = end
        per_pen[layers[i].pen_id] = end
    return f"Sort ({grouping}, {direction}): pen-up travel {before:.1f} -> {after:.1f} mm."


def _step_filter(layers: Sequence[Layer], work: Work, step: StepConfig) -> str:
    min_length = float(step.get("min_length", 0.0))
    max_length = float(step.get("max_length", 0.0))
    remove_tiny = bool(step.get("remove_tiny", True))
    before = sum(len(paths) for paths in work)
    for i, paths in enumerate(work):
        work[i] = filter_paths(paths, min_length, max_length, remove_tiny)
    after = sum(len(paths) for paths in work)
    return f"Filter: paths {before} -> {after} (min={min_length}, max={max_length}, tiny={remove_tiny})."


def _step_merge(layers: Sequence[Layer], work: Work, step: StepConfig) -> str:
    tolerance = float(step.get("tolerance", 0.05))
    before = sum(len(paths) for paths in work)
    for i, paths in enumerate(work):
        work[i] = merge_paths(paths, tolerance)
    after = sum(len(paths) for paths in work)
    return f"Merge: paths {before} -> {after} (saved {before - after} pen lifts), tolerance={tolerance} mm."


STEPS: Dict[str, StepFn] = {
    "linesimplify": _step_simplify,
    "linesort": _step_sort,
    "filter": _step_filter,
    "linemerge": _step_merge,
}


def optimize_layers(layers: Sequence[Layer], config: PipelineConfig) -> List[str]:
    """Run ``config`` over ``layers`` and store the results on each layer."""
    if config.bypass_all:
        for layer in layers:
            layer.optimized_paths = None
        logger.info("Optimization bypassed for %d layer(s)", len(layers))
        return []

    work: Work = [clone_paths(layer.paths if isinstance(layer.paths, list) else []) for layer in layers]
    summaries: List[str] = []
    for step in config.steps:
        if not step.active:
            continue
        fn = STEPS.get(step.id)
        if fn is None:
            logger.warning("Skipping unknown optimization step %r", step.id)
            continue
        summary = fn(layers, work, step)
        logger.info(summary)
        summaries.append(summary)
    for layer, paths in zip(layers, work):
        layer.optimized_paths = paths
    return summaries


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------


def quantize(v: float, tolerance: float) -> float:
    if tolerance <= 0:
        return v
    return math.floor(v / tolerance + 0.5) * tolerance


def canonical_key(path: Path, tolerance: float) -> Optional[str]:
    """Stable identity of a path's geometry after quantization."""

    def q(v: float) -> str:
        return repr(quantize(v, tolerance) + 0.0)

    if isinstance(path, Circle):
        if path.is_round:
            return f"circle:{q(path.cx)},{q(path.cy)},{q(path.r)}"
        return f"ellipse:{q(path.cx)},{q(path.cy)},{q(path.rx)},{q(path.ry)},{q(path.rotation)}"
    if isinstance(path, Polyline):
        return ";".join(f"{q(x)},{q(y)}" for x, y in path.points)
    return None


class PenDeduper:
    """Drops repeated geometry, tracking one seen-set per pen."""

    def __init__(self, tolerance: float = 0.01) -> None:
        self.tolerance = tolerance
        self.skipped = 0
        self._seen: Dict[Any, Set[str]] = {}

    def accept(self, pen_id: Any, path: Path) -> bool:
        key = canonical_key(path, self.tolerance)
        if key is None:
            return False
        seen = self._seen.setdefault(pen_id, set())
        if key in seen:
            self.skipped += 1
            return False
        seen.add(key)
        return True

    def filter(self, pen_id: Any, paths: Iterable[Path]) -> List[Path]:
        return [p for p in paths if self.accept(pen_id, p)]


def dedupe_by_pen(groups: Iterable[Tuple[Any, Iterable[Path]]], tolerance: float = 0.01) -> List[Tuple[Any, List[Path]]]:
    deduper = PenDeduper(tolerance)
    out = [(pen_id, deduper.filter(pen_id, paths)) for pen_id, paths in groups]
    if deduper.skipped:
        logger.debug("Dedupe skipped %d duplicate path(s)", deduper.skipped)
    return out


__all__ = [
    "StepConfig",
    "PipelineConfig",
    "STEPS",
    "SORT_METHODS",
    "SORT_DIRECTIONS",
    "SORT_GROUPINGS",
    "SIMPLIFY_MODES",
    "TINY_LENGTH",
    "simplify_paths",
    "sort_paths",
    "filter_paths",
    "merge_paths",
    "optimize_layers",
    "quantize",
    "canonical_key",
    "PenDeduper",
    "dedupe_by_pen",
]
