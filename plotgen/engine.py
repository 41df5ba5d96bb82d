"""Layer management and deterministic generation.

:class:`VectorEngine` owns the layer stack.  Settings and the algorithm table
are injected; nothing here reads module level mutable state.  Generated
``paths`` are always derived from a layer's params and can be rebuilt at any
time, which is what makes snapshots small and exact.
"""
from __future__ import annotations

import copy
import logging
import math
import random
import string
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .algorithms import ALGORITHMS, DEFAULT_ALGORITHM, Algorithm, get_algorithm
from .config import PAPER_PROFILES, Bounds, Settings
from .geometry import Circle, Polyline, count_path_points, path_length
from .layer import SEED_RANGE, Layer
from .noise import SimpleNoise
from .optimization import PipelineConfig, optimize_layers
from .rng import SeededRNG
from .transform import transform_paths

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 9


class SnapshotError(ValueError):
    """Raised for structurally invalid state payloads."""


class LayerNotFound(KeyError):
    """Raised when an operation needs a layer id that does not exist."""


class VectorEngine:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[Mapping[str, Algorithm]] = None,
        rand: Optional[random.Random] = None,
        initial_layer: bool = True,
    ) -> None:
        self.settings = settings or Settings()
        self.registry: Mapping[str, Algorithm] = registry if registry is not None else ALGORITHMS
        self.rand = rand or random.Random()
        self.layers: List[Layer] = []
        self.active_layer_id: Optional[str] = None
        self.layer_counter = 0
        if initial_layer:
            self.add_layer(DEFAULT_ALGORITHM)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        existing = {layer.id for layer in self.layers}
        while True:
            candidate = "".join(self.rand.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            if candidate not in existing:
                return candidate

    def find_layer(self, layer_id: Optional[str]) -> Optional[Layer]:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def get_layer(self, layer_id: str) -> Layer:
        layer = self.find_layer(layer_id)
        if layer is None:
            raise LayerNotFound(layer_id)
        return layer

    def index_of(self, layer_id: str) -> int:
        for i, layer in enumerate(self.layers):
            if layer.id == layer_id:
                return i
        return -1

    @property
    def active_layer(self) -> Optional[Layer]:
        return self.find_layer(self.active_layer_id)

    @property
    def bounds(self) -> Bounds:
        return self.settings.bounds

    def set_profile(self, key: str) -> None:
        self.settings.profile = key if key in PAPER_PROFILES else "a3"
        logger.debug("Paper profile set to %s", self.settings.profile)

    # ------------------------------------------------------------------
    # Layer stack
    # ------------------------------------------------------------------

    def add_layer(self, algo_type: str = DEFAULT_ALGORITHM, params: Optional[Mapping[str, Any]] = None) -> Layer:
        algo = get_algorithm(algo_type, self.registry)
        self.layer_counter += 1
        layer = Layer(
            id=self._new_id(),
            type=algo.key,
            name=f"{algo.label or algo.key.title()} {self.layer_counter:02d}",
        )
        layer.params = algo.resolve(params)
        if not layer.params.get("seed"):
            layer.params["seed"] = self.rand.randrange(1, SEED_RANGE)
        layer.stroke_width = self.settings.stroke_width
        self.layers.append(layer)
        self.active_layer_id = layer.id
        logger.debug("Added layer %s (%s)", layer.id, layer.type)
        self.generate(layer.id)
        return layer

    def remove_layer(self, layer_id: str) -> bool:
        """Remove a layer; the last remaining layer is never removed."""
        if len(self.layers) <= 1 or self.find_layer(layer_id) is None:
            return False
        self.layers = [layer for layer in self.layers if layer.id != layer_id]
        if self.active_layer_id == layer_id:
            self.active_layer_id = self.layers[-1].id
        logger.debug("Removed layer %s", layer_id)
        return True

    def move_layer(self, layer_id: str, direction: int) -> bool:
        idx = self.index_of(layer_id)
        if idx == -1:
            return False
        new_idx = idx + direction
        if not 0 <= new_idx < len(self.layers):
            return False
        self.layers[idx], self.layers[new_idx] = self.layers[new_idx], self.layers[idx]
        return True

    def update_layer(self, layer_id: str, changes: Mapping[str, Any]) -> Layer:
        """Apply attribute and param changes, then regenerate."""
        layer = self.get_layer(layer_id)
        if "type" in changes and changes["type"] != layer.type:
            algo = get_algorithm(changes["type"], self.registry)
            seed = layer.params.get("seed")
            transform = {k: layer.params[k] for k in ("pos_x", "pos_y", "scale_x", "scale_y", "rotation") if k in layer.params}
            layer.type = algo.key
            layer.params = algo.resolve(transform)
            layer.params["seed"] = seed
        params = changes.get("params")
        if params:
            layer.params.update(copy.deepcopy(dict(params)))
        for attr in ("name", "color", "stroke_width", "line_cap", "visible", "pen_id", "parent_id", "param_states"):
            if attr in changes:
                setattr(layer, attr, copy.deepcopy(changes[attr]))
        self.generate(layer.id)
        return layer

    def duplicate_layer(self, layer_id: str) -> Optional[Layer]:
        source = self.find_layer(layer_id)
        if source is None:
            return None
        self.layer_counter += 1
        base = f"{source.name} Copy"
        names = {layer.name for layer in self.layers}
        name = base
        n = 2
        while name in names:
            name = f"{base} {n}"
            n += 1
        dup = source.clone()
        dup.id = self._new_id()
        dup.name = name
        dup.optimized_paths = None
        self.layers.insert(self.index_of(layer_id) + 1, dup)
        self.active_layer_id = dup.id
        self.generate(dup.id)
        logger.debug("Duplicated layer %s as %s", layer_id, dup.id)
        return dup

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(self, layer_id: str) -> None:
        """Rebuild a layer's paths from its params.  Unknown ids are ignored."""
        layer = self.find_layer(layer_id)
        if layer is None:
            return
        algo = get_algorithm(layer.type, self.registry)
        seed = layer.params.get("seed")
        rng = SeededRNG(seed)
        noise = SimpleNoise(seed)
        bounds = self.bounds
        params = algo.resolve(layer.params)
        raw = algo.generate(params, rng, noise, bounds) or []
        layer.paths = transform_paths(raw, params, bounds)
        layer.optimized_paths = None
        logger.debug("Generated layer %s: %d path(s)", layer.id, len(layer.paths))

    def generate_all(self) -> None:
        for layer in self.layers:
            self.generate(layer.id)

    def get_formula(self, layer_id: str) -> str:
        layer = self.find_layer(layer_id)
        if layer is None:
            return "Select a layer..."
        return get_algorithm(layer.type, self.registry).formula(layer.params)

    def get_stats(self) -> Dict[str, Any]:
        """Draw distance over visible layers and the estimated plot time."""
        dist = 0.0
        lines = points = 0
        for layer in self.layers:
            if not layer.visible:
                continue
            paths = layer.output_paths
            counts = count_path_points(paths)
            lines += counts.line_count
            points += counts.point_count
            for path in paths:
                if isinstance(path, (Polyline, Circle)):
                    dist += path_length(path)
        speed = self.settings.speed_down or 1.0
        time_sec = dist / speed
        minutes = int(math.floor(time_sec / 60))
        seconds = int(math.floor(time_sec % 60))
        return {
            "distance_mm": dist,
            "distance": f"{round(dist / 1000)}m",
            "time_sec": time_sec,
            "time": f"{minutes}:{seconds:02d}",
            "lines": lines,
            "points": points,
        }

    # ------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------

    def optimize(self, layer_ids: Optional[Sequence[str]] = None, config: Any = None) -> List[str]:
        """Run the optimization pipeline.

        ``layer_ids`` of ``None`` targets every layer.  ``config`` may be a
        :class:`PipelineConfig` or its mapping form, optionally wrapped in
        ``{"config": ...}``.
        """
        if not isinstance(config, PipelineConfig):
            config = PipelineConfig.from_dict(config)
        if layer_ids is None:
            targets = list(self.layers)
        else:
            targets = [self.get_layer(layer_id) for layer_id in layer_ids]
        return optimize_layers(targets, config)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def export_state(self) -> Dict[str, Any]:
        return {
            "active_layer_id": self.active_layer_id,
            "layer_counter": self.layer_counter,
            "layers": [layer.to_snapshot() for layer in self.layers],
        }

    def import_state(self, state: Any) -> None:
        """Replace every layer from ``state`` and regenerate them.

        If regeneration fails the previous layers are put back and
        :class:`SnapshotError` is raised.
        """
        if not isinstance(state, Mapping):
            raise SnapshotError("State must be a mapping")
        entries = state.get("layers", [])
        if not isinstance(entries, list):
            raise SnapshotError("State 'layers' must be a list")
        layers: List[Layer] = []
        for entry in entries:
            if not isinstance(entry, Mapping) or not entry.get("id"):
                raise SnapshotError("Every layer needs an 'id'")
            layers.append(Layer.from_snapshot(dict(entry)))
        previous = (self.layers, self.active_layer_id, self.layer_counter)
        self.layers = layers
        active = state.get("active_layer_id")
        if self.find_layer(active) is None:
            active = layers[0].id if layers else None
        self.active_layer_id = active
        counter = state.get("layer_counter")
        if isinstance(counter, int):
            self.layer_counter = max(self.layer_counter, counter)
        try:
            self.generate_all()
        except (ArithmeticError, LookupError, TypeError, ValueError) as exc:
            self.layers, self.active_layer_id, self.layer_counter = previous
            raise SnapshotError(f"Failed to regenerate layers: {exc}") from exc
        logger.debug("Imported %d layer(s)", len(layers))

    def snapshot(self) -> Dict[str, Any]:
        return {"engine": self.export_state(), "settings": self.settings.to_dict()}

    def restore(self, snapshot: Any) -> None:
        if not isinstance(snapshot, Mapping) or "engine" not in snapshot:
            raise SnapshotError("Snapshot must contain 'engine'")
        previous = self.settings
        settings = snapshot.get("settings")
        if settings is not None:
            if not isinstance(settings, Mapping):
                raise SnapshotError("Snapshot 'settings' must be a mapping")
            try:
                self.settings = Settings.from_dict(dict(settings))
            except (TypeError, ValueError) as exc:
                raise SnapshotError(f"Invalid settings: {exc}") from exc
        try:
            self.import_state(snapshot["engine"])
        except SnapshotError:
            self.settings = previous
            raise


__all__ = ["VectorEngine", "SnapshotError", "LayerNotFound"]
