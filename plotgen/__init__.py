"""Top-level package for plotgen.

plotgen turns seeded procedural algorithms into pen-plotter ready vector
paths: layers are generated deterministically, placed on the paper,
optimized for pen travel and exported to SVG.
"""

from .config import Bounds, Settings
from .engine import LayerNotFound, SnapshotError, VectorEngine
from .geometry import Circle, Polyline, XY
from .history import History
from .layer import Layer
from .noise import SimpleNoise
from .rendering import render_svg
from .rng import SeededRNG

__all__ = [
    "Bounds",
    "Circle",
    "History",
    "Layer",
    "LayerNotFound",
    "Polyline",
    "SeededRNG",
    "Settings",
    "SimpleNoise",
    "SnapshotError",
    "VectorEngine",
    "XY",
    "render_svg",
]
