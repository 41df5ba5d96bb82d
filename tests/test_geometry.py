"""Tests for path primitives and geometry helpers.

Verifies:
- smoothing keeps endpoints and is a no-op at amount 0
- both simplifiers keep at least two points and ignore tolerance <= 0
- meta travels through every helper
- counts, lengths and travel distance

Run: pytest tests/test_geometry.py -v
"""
import math
import random

import pytest

from plotgen.geometry import (
    Circle,
    Polyline,
    bounding_box,
    clone_paths,
    close_path_if_needed,
    count_path_points,
    is_closed_path,
    offset_path,
    path_from_dict,
    path_length,
    simplify_path,
    simplify_path_visvalingam,
    smooth_path,
    travel_distance,
)


class TestPrimitives:
    """Polyline and Circle basics."""

    def test_circle_of_radius(self):
        """of_radius builds a round circle."""
        c = Circle.of_radius(1.0, 2.0, 3.0)
        assert c.is_round
        assert c.r == 3.0
        assert c.endpoints() == ((1.0, 2.0), (1.0, 2.0))

    def test_clone_copies_meta(self):
        """Clones do not share meta dictionaries."""
        p = Polyline(points=[(0, 0), (1, 1)], meta={"kind": "x"})
        q = p.clone()
        q.meta["kind"] = "y"
        assert p.meta["kind"] == "x"

    def test_reversed(self):
        """reversed flips point order and keeps meta."""
        p = Polyline(points=[(0, 0), (1, 0), (2, 0)], meta={"a": 1})
        r = p.reversed()
        assert r.points == [(2, 0), (1, 0), (0, 0)]
        assert r.meta == {"a": 1}

    def test_dict_round_trip(self):
        """to_dict output is accepted by path_from_dict."""
        paths = [
            Polyline(points=[(0.5, 1.5), (2.0, 3.0)], meta={"kind": "polygon"}),
            Circle(cx=1.0, cy=2.0, rx=3.0, ry=1.0, rotation=0.5),
        ]
        assert [path_from_dict(p.to_dict()) for p in paths] == paths

    def test_unknown_type_rejected(self):
        """Only polyline and circle dicts are understood."""
        with pytest.raises(ValueError):
            path_from_dict({"type": "bezier"})

    def test_circle_to_polyline_closed(self):
        """Polygonised circles are closed and keep the radius."""
        poly = Circle.of_radius(0.0, 0.0, 5.0).to_polyline(seg_len_mm=1.0)
        assert is_closed_path(poly)
        assert all(math.hypot(x, y) == pytest.approx(5.0) for x, y in poly.points)


class TestSmoothing:
    """Neighbour-midpoint smoothing."""

    def test_amount_zero_is_noop(self):
        """Zero amount returns the input path."""
        p = Polyline(points=[(0, 0), (1, 1), (2, 0)])
        assert smooth_path(p, 0) is p

    def test_full_amount_uses_midpoint(self):
        """Amount 1 replaces interior points by the neighbour midpoint."""
        p = Polyline(points=[(0, 0), (1, 1), (2, 0)])
        assert smooth_path(p, 1.0).points == [(0, 0), (1.0, 0.0), (2, 0)]

    def test_half_amount(self):
        """Amount 0.5 moves half way."""
        p = Polyline(points=[(0, 0), (1, 1), (2, 0)], meta={"m": 1})
        out = smooth_path(p, 0.5)
        assert out.points[1] == pytest.approx((1.0, 0.5))
        assert out.meta == {"m": 1}

    def test_circles_untouched(self):
        """Circles pass through."""
        c = Circle.of_radius(0, 0, 1)
        assert smooth_path(c, 1.0) is c


class TestSimplification:
    """Douglas-Peucker and Visvalingam-Whyatt."""

    def test_collinear_collapses(self):
        """Collinear interior points are dropped."""
        p = Polyline(points=[(0, 0), (1, 0), (2, 0), (3, 0)])
        assert simplify_path(p, 0.1).points == [(0, 0), (3, 0)]

    def test_spike_kept(self):
        """Points farther than the tolerance survive."""
        p = Polyline(points=[(0, 0), (1, 5), (2, 0)])
        assert simplify_path(p, 1.0).points == p.points

    def test_visvalingam_drops_small_triangle(self):
        """Interior points with tiny area are removed."""
        p = Polyline(points=[(0, 0), (1, 0.01), (2, 0)])
        assert simplify_path_visvalingam(p, 1.0).points == [(0, 0), (2, 0)]

    def test_visvalingam_keeps_large_triangle(self):
        """Large areas are kept."""
        p = Polyline(points=[(0, 0), (5, 5), (10, 0)])
        assert simplify_path_visvalingam(p, 1.0).points == p.points

    @pytest.mark.parametrize("fn", [simplify_path, simplify_path_visvalingam])
    def test_non_positive_tolerance_is_noop(self, fn):
        """Tolerance <= 0 returns the same object."""
        p = Polyline(points=[(0, 0), (1, 0), (2, 0)])
        assert fn(p, 0) is p
        assert fn(p, -1.0) is p

    @pytest.mark.parametrize("fn", [simplify_path, simplify_path_visvalingam])
    def test_floor_of_two_points(self, fn):
        """Random walks never simplify below two points."""
        rnd = random.Random(3)
        for _ in range(50):
            n = rnd.randint(3, 30)
            pts = [(rnd.uniform(0, 10), rnd.uniform(0, 10)) for _ in range(n)]
            out = fn(Polyline(points=pts, meta={"i": n}), rnd.uniform(0.1, 50))
            assert len(out.points) >= 2
            assert out.points[0] == pts[0]
            assert out.points[-1] == pts[-1]
            assert out.meta == {"i": n}


class TestMeasurement:
    """Counts, lengths and bounding boxes."""

    def test_count_path_points(self):
        """Circles count as lines without points."""
        paths = [Polyline(points=[(0, 0), (1, 0), (2, 0)]), Circle.of_radius(0, 0, 1), Polyline()]
        counts = count_path_points(paths)
        assert counts.line_count == 3
        assert counts.point_count == 3

    def test_count_empty(self):
        """None counts as nothing."""
        assert count_path_points(None).line_count == 0

    def test_polyline_length(self):
        """3-4-5 triangle leg."""
        assert path_length(Polyline(points=[(0, 0), (3, 4)])) == pytest.approx(5.0)

    def test_circle_length(self):
        """Round circles use 2*pi*r."""
        assert path_length(Circle.of_radius(0, 0, 2)) == pytest.approx(4 * math.pi)

    def test_ellipse_length(self):
        """Ellipses use Ramanujan's approximation."""
        expected = math.pi * (3 * 4 - math.sqrt(10 * 6))
        assert path_length(Circle(cx=0, cy=0, rx=3, ry=1)) == pytest.approx(expected)

    def test_unknown_length_zero(self):
        """Foreign objects contribute nothing."""
        assert path_length("nope") == 0.0

    def test_bounding_box(self):
        """Circles contribute their radius."""
        box = bounding_box([Polyline(points=[(0, 0), (4, 2)]), Circle.of_radius(10, 10, 1)])
        assert box == ((0, 0), (11, 11))
        assert bounding_box([]) is None

    def test_travel_distance(self):
        """Pen-up distance sums the gaps between paths."""
        paths = [Polyline(points=[(3, 4), (10, 4)]), Polyline(points=[(10, 8), (0, 0)])]
        assert travel_distance(paths, (0, 0)) == pytest.approx(5.0 + 4.0)

    def test_close_and_offset(self):
        """Closing appends the start point; offset moves everything."""
        p = Polyline(points=[(0, 0), (1, 0), (1, 1)])
        closed = close_path_if_needed(p)
        assert closed.points[-1] == (0, 0)
        assert close_path_if_needed(closed) is closed
        moved = offset_path(Circle.of_radius(0, 0, 1), 2, 3)
        assert moved.center == (2, 3)

    def test_clone_paths_skips_foreign(self):
        """Only known path classes are cloned."""
        out = clone_paths([Polyline(points=[(0, 0), (1, 1)]), None, Circle.of_radius(0, 0, 1)])
        assert len(out) == 2
