"""Layer model."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .geometry import Path, clone_paths

DEFAULT_COLOR = "#e4e4e7"
DEFAULT_LINE_CAP = "round"
SEED_RANGE = 99999

# Fields persisted in a snapshot.  ``paths`` and ``optimized_paths`` are
# derived and always rebuilt from these.
SNAPSHOT_FIELDS = (
    "id",
    "type",
    "name",
    "params",
    "param_states",
    "color",
    "stroke_width",
    "line_cap",
    "visible",
    "pen_id",
    "parent_id",
)


@dataclass
class Layer:
    """A named algorithm instance together with its generated output."""

    id: str
    type: str
    name: str
    params: Dict[str, Any] = field(default_factory=dict)
    param_states: Dict[str, Any] = field(default_factory=dict)
    color: str = DEFAULT_COLOR
    stroke_width: float = 0.3
    line_cap: str = DEFAULT_LINE_CAP
    visible: bool = True
    pen_id: int = 0
    parent_id: Optional[str] = None
    paths: List[Path] = field(default_factory=list)
    optimized_paths: Optional[List[Path]] = None

    @property
    def seed(self) -> int:
        return int(self.params.get("seed") or 0)

    @property
    def output_paths(self) -> List[Path]:
        """Optimized paths when an optimization pass produced them."""
        if self.optimized_paths is not None:
            return self.optimized_paths
        return self.paths

    def clone(self) -> "Layer":
        return Layer(
            id=self.id,
            type=self.type,
            name=self.name,
            params=copy.deepcopy(self.params),
            param_states=copy.deepcopy(self.param_states),
            color=self.color,
            stroke_width=self.stroke_width,
            line_cap=self.line_cap,
            visible=self.visible,
            pen_id=self.pen_id,
            parent_id=self.parent_id,
            paths=clone_paths(self.paths),
            optimized_paths=None if self.optimized_paths is None else clone_paths(self.optimized_paths),
        )

    def to_snapshot(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in SNAPSHOT_FIELDS}
        return copy.deepcopy(data)

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "Layer":
        layer = cls(id=str(data["id"]), type=str(data.get("type") or ""), name=str(data.get("name") or ""))
        layer.params = copy.deepcopy(dict(data.get("params") or {}))
        layer.param_states = copy.deepcopy(dict(data.get("param_states") or {}))
        layer.color = data.get("color") or layer.color
        stroke_width = data.get("stroke_width")
        if isinstance(stroke_width, (int, float)) and not isinstance(stroke_width, bool):
            layer.stroke_width = float(stroke_width)
        layer.line_cap = data.get("line_cap") or layer.line_cap
        layer.visible = data.get("visible", True) is not False
        pen_id = data.get("pen_id")
        if isinstance(pen_id, int) and not isinstance(pen_id, bool):
            layer.pen_id = pen_id
        layer.parent_id = data.get("parent_id")
        return layer

    def summary(self) -> Dict[str, Any]:
        data = self.to_snapshot()
        data["path_count"] = len(self.paths)
        data["optimized_path_count"] = None if self.optimized_paths is None else len(self.optimized_paths)
        return data


__all__ = ["Layer", "SNAPSHOT_FIELDS", "DEFAULT_COLOR", "DEFAULT_LINE_CAP", "SEED_RANGE"]
