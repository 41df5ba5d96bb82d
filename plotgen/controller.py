"""High level orchestration for the plotgen server."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .config import Settings
from .engine import LayerNotFound, VectorEngine
from .geometry import bounding_box, count_path_points, total_length
from .history import History
from .rendering import preview_strokes, render_svg

logger = logging.getLogger(__name__)


@dataclass
class PlotgenController:
    """Serialize access to one engine and its undo history.

    The engine itself is single-threaded; every public method here takes the
    controller lock.  Mutating methods record a history entry first, but only
    when the change will actually be applied.
    """

    settings: Settings = field(default_factory=Settings)

    def __post_init__(self) -> None:
        self.engine = VectorEngine(settings=self.settings)
        self.history = History(self.engine, limit=self.settings.history_limit)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    def algorithms(self) -> List[Dict[str, Any]]:
        return [
            {"key": algo.key, "label": algo.label, "defaults": algo.resolve()}
            for algo in self.engine.registry.values()
        ]

    def layer_summary(self, layer_id: str) -> Dict[str, Any]:
        with self._lock:
            layer = self.engine.get_layer(layer_id)
            data = layer.summary()
            paths = layer.output_paths
            counts = count_path_points(paths)
            bbox = bounding_box(paths)
            data["formula"] = self.engine.get_formula(layer_id)
            data["line_count"] = counts.line_count
            data["point_count"] = counts.point_count
            data["total_length_mm"] = total_length(paths)
            data["bounding_box"] = [list(bbox[0]), list(bbox[1])] if bbox else None
            return data

    def list_layers(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "active_layer_id": self.engine.active_layer_id,
                "layers": [layer.summary() for layer in self.engine.layers],
            }

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = self.engine.get_stats()
            stats["can_undo"] = self.history.can_undo
            stats["can_redo"] = self.history.can_redo
            return stats

    def svg(self, precision: Optional[int] = None, dedupe: bool = True) -> str:
        with self._lock:
            return render_svg(self.engine, precision=precision, dedupe=dedupe)

    def strokes(self) -> Dict[str, Any]:
        with self._lock:
            return preview_strokes(self.engine)

    def export_state(self) -> Dict[str, Any]:
        with self._lock:
            return self.engine.snapshot()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add_layer(self, algo_type: str, params: Optional[Dict[str, Any]] = None) -> str:
        with self._lock:
            self.history.record()
            return self.engine.add_layer(algo_type, params).id

    def update_layer(self, layer_id: str, changes: Dict[str, Any]) -> None:
        with self._lock:
            self.engine.get_layer(layer_id)
            self.history.record()
            self.engine.update_layer(layer_id, changes)

    def remove_layer(self, layer_id: str) -> bool:
        with self._lock:
            self.engine.get_layer(layer_id)
            if len(self.engine.layers) <= 1:
                return False
            self.history.record()
            return self.engine.remove_layer(layer_id)

    def duplicate_layer(self, layer_id: str) -> str:
        with self._lock:
            self.engine.get_layer(layer_id)
            self.history.record()
            dup = self.engine.duplicate_layer(layer_id)
            if dup is None:
                raise LayerNotFound(layer_id)
            return dup.id

    def move_layer(self, layer_id: str, direction: int) -> bool:
        with self._lock:
            self.engine.get_layer(layer_id)
            target = self.engine.index_of(layer_id) + direction
            if not 0 <= target < len(self.engine.layers):
                return False
            self.history.record()
            return self.engine.move_layer(layer_id, direction)

    def optimize(self, layer_ids: Optional[Sequence[str]], config: Any) -> List[str]:
        with self._lock:
            return self.engine.optimize(layer_ids, config)

    def import_state(self, snapshot: Dict[str, Any]) -> None:
        with self._lock:
            before = self.engine.snapshot()
            self.engine.restore(snapshot)
            self.history.push(before)
            self._sync_settings()
            logger.info("State imported: %d layer(s)", len(self.engine.layers))

    def undo(self) -> bool:
        with self._lock:
            done = self.history.undo()
            self._sync_settings()
            return done

    def redo(self) -> bool:
        with self._lock:
            done = self.history.redo()
            self._sync_settings()
            return done

    def _sync_settings(self) -> None:
        # restore swaps in a new Settings object
        self.settings = self.engine.settings
        self.history.limit = max(1, int(self.settings.history_limit))


__all__ = ["PlotgenController"]
