"""Tests for layer placement.

Verifies:
- identity params leave points where they are
- scale and rotation act around the paper centre
- circles become ellipses with absolute radii and accumulated rotation
- smoothing is clamped and applied after the transform

Run: pytest tests/test_transform.py -v
"""
import math

import pytest

from plotgen.algorithms import TRANSFORM_DEFAULTS
from plotgen.config import Bounds
from plotgen.geometry import Circle, Polyline
from plotgen.transform import LayerTransform, transform_paths

BOUNDS = Bounds(width=200.0, height=100.0, margin=10.0)


def params(**overrides):
    p = dict(TRANSFORM_DEFAULTS)
    p.update(overrides)
    return p


class TestLayerTransform:
    """Point mapping."""

    def test_identity(self):
        """Default params are the identity."""
        path = Polyline(points=[(10.0, 20.0), (150.0, 80.0)], meta={"k": 1})
        out = transform_paths([path], params(), BOUNDS)
        for got, want in zip(out[0].points, path.points):
            assert got == pytest.approx(want)
        assert out[0].meta == {"k": 1}

    def test_translation(self):
        """pos_x/pos_y offset every point."""
        out = transform_paths([Polyline(points=[(10.0, 20.0)])], params(pos_x=5, pos_y=-3), BOUNDS)
        assert out[0].points[0] == pytest.approx((15.0, 17.0))

    def test_scale_about_centre(self):
        """Scaling pivots on the paper centre."""
        out = transform_paths([Polyline(points=[(110.0, 50.0), (100.0, 60.0)])], params(scale_x=2, scale_y=3), BOUNDS)
        assert out[0].points[0] == pytest.approx((120.0, 50.0))
        assert out[0].points[1] == pytest.approx((100.0, 80.0))

    def test_rotation_about_centre(self):
        """A quarter turn maps +x onto +y around the centre."""
        t = LayerTransform.from_params(params(rotation=90), BOUNDS)
        assert t.apply(110.0, 50.0) == pytest.approx((100.0, 60.0))

    def test_circle_becomes_ellipse(self):
        """Asymmetric scaling yields an ellipse with positive radii."""
        out = transform_paths(
            [Circle.of_radius(100.0, 50.0, 4.0, meta={"id": 7})],
            params(scale_x=-2, scale_y=0.5, rotation=30),
            BOUNDS,
        )
        c = out[0]
        assert isinstance(c, Circle)
        assert c.rx == pytest.approx(8.0)
        assert c.ry == pytest.approx(2.0)
        assert c.rotation == pytest.approx(math.radians(30))
        assert c.center == pytest.approx((100.0, 50.0))
        assert c.meta == {"id": 7}


class TestPostProcessing:
    """Smoothing and simplification after placement."""

    def test_smoothing_clamped(self):
        """Smoothing above 1 behaves like 1."""
        path = Polyline(points=[(0.0, 0.0), (1.0, 1.0), (2.0, 0.0)])
        high = transform_paths([path], params(smoothing=5), BOUNDS)
        one = transform_paths([path], params(smoothing=1), BOUNDS)
        assert high[0].points == one[0].points
        assert high[0].points[1] == pytest.approx((1.0, 0.0))

    def test_smoothing_sees_transformed_points(self):
        """Smoothing runs after scaling."""
        path = Polyline(points=[(100.0, 50.0), (101.0, 51.0), (102.0, 50.0)])
        out = transform_paths([path], params(scale_y=10, smoothing=1), BOUNDS)
        assert out[0].points[1] == pytest.approx((101.0, 50.0))

    def test_simplify(self):
        """A positive simplify tolerance drops collinear points."""
        path = Polyline(points=[(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)])
        out = transform_paths([path], params(simplify=0.1), BOUNDS)
        assert len(out[0].points) == 2

    def test_foreign_paths_dropped(self):
        """Anything that is not a path is skipped."""
        assert transform_paths([None, "x"], params(), BOUNDS) == []
