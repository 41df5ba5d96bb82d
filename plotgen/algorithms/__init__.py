"""Registry of procedural generators.

The table is closed: every generator is listed explicitly in
:data:`ALGORITHMS`.  Unknown keys resolve to :data:`DEFAULT_ALGORITHM`.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .attractor import Attractor
from .base import TRANSFORM_DEFAULTS, Algorithm, Params
from .boids import Boids
from .flowfield import FlowField
from .grid import Grid
from .harmonograph import Harmonograph
from .hyphae import Hyphae
from .lissajous import Lissajous
from .petalis import Petalis, PetalisDesigner
from .phylla import Phylla
from .rings import Rings
from .shapepack import ShapePack
from .shaping import NOISE_TYPES, shape_noise
from .spiral import Spiral
from .topo import Topo
from .wavetable import Wavetable

ALGORITHMS: Dict[str, Algorithm] = {
    algo.key: algo
    for algo in (
        FlowField(),
        Lissajous(),
        Harmonograph(),
        Wavetable(),
        Rings(),
        Topo(),
        Spiral(),
        Grid(),
        Phylla(),
        Boids(),
        Attractor(),
        Hyphae(),
        ShapePack(),
        Petalis(),
        PetalisDesigner(),
    )
}
DEFAULT_ALGORITHM = "flowfield"


def get_algorithm(key: Optional[str], registry: Optional[Mapping[str, Algorithm]] = None) -> Algorithm:
    table = ALGORITHMS if registry is None else registry
    if key in table:
        return table[key]
    return table.get(DEFAULT_ALGORITHM, ALGORITHMS[DEFAULT_ALGORITHM])


def default_params(key: Optional[str], registry: Optional[Mapping[str, Algorithm]] = None) -> Params:
    return get_algorithm(key, registry).resolve()


def resolve_params(
    key: Optional[str],
    params: Optional[Mapping[str, Any]] = None,
    registry: Optional[Mapping[str, Algorithm]] = None,
) -> Params:
    """Fill missing keys from the algorithm and transform defaults.

    ``params`` itself is never mutated.
    """
    return get_algorithm(key, registry).resolve(params)


def algorithm_keys() -> List[str]:
    return list(ALGORITHMS)


__all__ = [
    "ALGORITHMS",
    "DEFAULT_ALGORITHM",
    "Algorithm",
    "NOISE_TYPES",
    "Params",
    "TRANSFORM_DEFAULTS",
    "algorithm_keys",
    "default_params",
    "get_algorithm",
    "resolve_params",
    "shape_noise",
]
