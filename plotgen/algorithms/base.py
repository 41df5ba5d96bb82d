"""Contract shared by every registered generator."""
from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ..config import Bounds
from ..geometry import Path
from ..noise import SimpleNoise
from ..rng import SeededRNG

Params = Dict[str, Any]

# Keys every layer carries regardless of its algorithm.  They drive the
# transform pipeline, not the generators.
TRANSFORM_DEFAULTS: Params = {
    "pos_x": 0.0,
    "pos_y": 0.0,
    "scale_x": 1.0,
    "scale_y": 1.0,
    "rotation": 0.0,
    "smoothing": 0.0,
    "simplify": 0.0,
}


class Algorithm(ABC):
    """A procedural generator.

    Subclasses declare ``key``, ``label`` and ``defaults`` and implement
    :meth:`build`.  :meth:`generate` fills missing parameters from
    ``defaults`` before delegating, so a generator never sees a partial
    parameter map.  ``build`` must only read ``p`` and ``bounds`` and only draw
    randomness from ``rng`` and ``noise``.
    """

    key: str = ""
    label: str = ""
    defaults: Params = {}

    def resolve(self, params: Optional[Mapping[str, Any]] = None) -> Params:
        resolved = copy.deepcopy(TRANSFORM_DEFAULTS)
        resolved.update(copy.deepcopy(self.defaults))
        if params:
            resolved.update(copy.deepcopy(dict(params)))
        return resolved

    def generate(
        self,
        params: Optional[Mapping[str, Any]],
        rng: SeededRNG,
        noise: SimpleNoise,
        bounds: Bounds,
    ) -> List[Path]:
        return self.build(self.resolve(params), rng, noise, bounds)

    @abstractmethod
    def build(self, p: Params, rng: SeededRNG, noise: SimpleNoise, bounds: Bounds) -> List[Path]:
        raise NotImplementedError

    def formula(self, params: Optional[Mapping[str, Any]] = None) -> str:
        return "Procedural Vector Generation"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.key!r}>"


def clamp(v: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, v))


__all__ = ["Algorithm", "Params", "TRANSFORM_DEFAULTS", "clamp"]
