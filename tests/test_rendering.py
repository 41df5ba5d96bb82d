"""Tests for SVG export and preview strokes.

Verifies:
- a fixed layer renders to byte-identical SVG across runs
- coordinates honour the requested precision
- pen groups dedupe within a pen but not across pens
- hidden layers are left out

Run: pytest tests/test_rendering.py -v
"""
import math
import random

import pytest

from plotgen.algorithms import ALGORITHMS
from plotgen.config import Bounds
from plotgen.engine import VectorEngine
from plotgen.geometry import Circle, Polyline
from plotgen.noise import SimpleNoise
from plotgen.rendering import fmt, paths_to_svg, preview_strokes, render_svg, shape_to_svg
from plotgen.rng import SeededRNG
from plotgen.transform import transform_paths


def lissajous_svg():
    bounds = Bounds(width=320, height=220, margin=20)
    algo = ALGORITHMS["lissajous"]
    params = algo.resolve({"seed": 1212, "resolution": 420})
    raw = algo.generate(params, SeededRNG(1212), SimpleNoise(1212), bounds)
    return paths_to_svg(bounds.width, bounds.height, transform_paths(raw, params, bounds), precision=3)


class TestShapes:
    """Single shape serialisation."""

    def test_fmt(self):
        """Fixed decimal places."""
        assert fmt(1.23456, 2) == "1.23"
        assert fmt(2, 0) == "2"

    def test_polyline(self):
        """Polylines become M/L paths."""
        svg = shape_to_svg(Polyline(points=[(1, 2), (3.14159, 4)]), precision=2)
        assert svg == '<path d="M1.00 2.00 L3.14 4.00" />'

    def test_circle(self):
        """Round circles use <circle>."""
        assert shape_to_svg(Circle.of_radius(1, 2, 3)) == '<circle cx="1.000" cy="2.000" r="3.000" />'

    def test_ellipse(self):
        """Ellipses carry their rotation in degrees."""
        svg = shape_to_svg(Circle(cx=0, cy=0, rx=2, ry=1, rotation=math.pi / 2), precision=1)
        assert svg == '<ellipse cx="0.0" cy="0.0" rx="2.0" ry="1.0" transform="rotate(90.0 0.0 0.0)" />'

    def test_empty(self):
        """Empty polylines produce nothing."""
        assert shape_to_svg(Polyline()) == ""


class TestDocument:
    """Whole document output."""

    def test_byte_identical(self):
        """A fixed seed renders the same bytes every time."""
        first = lissajous_svg()
        assert first == lissajous_svg()
        assert first.startswith('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 320 220">\n<path d="M')
        assert first.endswith("</svg>\n")

    def test_precision(self):
        """Every coordinate has exactly three decimals."""
        body = lissajous_svg().splitlines()[1]
        numbers = body[len('<path d="') : -len('" />')].replace("M", "").replace("L", "").split()
        assert len(numbers) == 420 * 2
        assert all(len(n.split(".")[1]) == 3 for n in numbers)


class TestPenGroups:
    """render_svg over an engine."""

    @pytest.fixture
    def engine(self):
        engine = VectorEngine(rand=random.Random(2), initial_layer=False)
        engine.add_layer("lissajous", {"seed": 9})
        engine.add_layer("lissajous", {"seed": 9})
        return engine

    def test_header(self, engine):
        """The document is sized in millimetres."""
        svg = render_svg(engine)
        assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" width="297mm" height="420mm" viewBox="0 0 297 420">')

    def test_same_pen_deduped(self, engine):
        """Identical layers on one pen draw once."""
        assert render_svg(engine).count("<path") == 1
        assert render_svg(engine, dedupe=False).count("<path") == 2

    def test_other_pen_kept(self, engine):
        """Identical layers on different pens both draw."""
        engine.update_layer(engine.layers[1].id, {"pen_id": 1})
        svg = render_svg(engine)
        assert svg.count("<path") == 2
        assert 'id="pen-0"' in svg
        assert 'id="pen-1"' in svg
        assert 'stroke="#e41a1c"' in svg

    def test_hidden_skipped(self, engine):
        """Invisible layers are not exported."""
        for layer in engine.layers:
            engine.update_layer(layer.id, {"visible": False})
        assert "<path" not in render_svg(engine)

    def test_precision_override(self, engine):
        """The precision argument overrides the settings."""
        svg = render_svg(engine, precision=1)
        path = next(line for line in svg.splitlines() if line.startswith("<path"))
        first = path.split()[1]
        assert len(first.split(".")[1]) == 1

    def test_optimized_output_used(self, engine):
        """Exports follow optimized paths when present."""
        engine.optimize(None, {"steps": [{"id": "filter", "minLength": 1e9}]})
        assert "<path" not in render_svg(engine)

    def test_preview_strokes(self, engine):
        """Strokes carry points and the pen colour."""
        engine.add_layer("phylla", {"seed": 4, "count": 10})
        strokes = preview_strokes(engine)["strokes"]
        assert strokes
        assert all(len(s["pts"]) >= 2 and s["color"] == "#111111" for s in strokes)
        assert preview_strokes(engine, pens=3)["strokes"] == []
