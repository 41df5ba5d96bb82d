"""Tests for the optimization pipeline and per-pen deduplication.

Verifies:
- configuration parsing accepts camelCase and snake_case keys
- bypass clears the optimized cache and leaves raw paths alone
- sorting keeps every path and honours grouping and direction
- filtering keeps the majority of a large realistic layer
- merging joins touching polylines
- deduplication is scoped per pen

Run: pytest tests/test_optimization.py -v
"""
import math
import random
import time
from collections import Counter

import pytest

from plotgen.geometry import Circle, Polyline
from plotgen.layer import Layer
from plotgen.optimization import (
    PipelineConfig,
    StepConfig,
    canonical_key,
    dedupe_by_pen,
    filter_paths,
    merge_paths,
    optimize_layers,
    quantize,
    simplify_paths,
    sort_paths,
)


def line(*pts, meta=None):
    return Polyline(points=[tuple(map(float, p)) for p in pts], meta=meta)


def make_layer(paths, pen_id=0, layer_id="a"):
    return Layer(id=layer_id, type="flowfield", name=layer_id, pen_id=pen_id, paths=paths)


def undirected(path):
    return tuple(sorted(path.points))


class TestConfig:
    """PipelineConfig parsing."""

    def test_none_is_default(self):
        """A missing config is the default pipeline."""
        config = PipelineConfig.from_dict(None)
        assert [s.id for s in config.steps] == ["linesimplify", "linesort", "filter", "linemerge"]
        assert not config.steps[3].active

    def test_camel_case(self):
        """Camel-case keys become snake-case options."""
        config = PipelineConfig.from_dict(
            {"config": {"bypassAll": False, "steps": [{"id": "filter", "minLength": 2, "removeTiny": False}]}}
        )
        step = config.steps[0]
        assert step.get("min_length") == 2
        assert step.get("remove_tiny") is False

    def test_bypass_flag(self):
        """Both spellings of the bypass flag are accepted."""
        assert PipelineConfig.from_dict({"bypassAll": True}).bypass_all
        assert PipelineConfig.from_dict({"bypass_all": True}).bypass_all

    @pytest.mark.parametrize("bad", ["x", {"steps": "nope"}, {"steps": [{"enabled": True}]}])
    def test_invalid(self, bad):
        """Malformed configs raise ValueError."""
        with pytest.raises(ValueError):
            PipelineConfig.from_dict(bad)

    def test_round_trip(self):
        """to_dict output parses back to the same config."""
        config = PipelineConfig.default()
        assert PipelineConfig.from_dict(config.to_dict()) == config


class TestPipeline:
    """optimize_layers."""

    def test_writes_optimized_paths_only(self):
        """Raw paths are never modified."""
        raw = [line((0, 0), (1, 0), (2, 0), (3, 0))]
        layer = make_layer(raw)
        summaries = optimize_layers([layer], PipelineConfig.default())
        assert layer.paths[0].points == [(0, 0), (1, 0), (2, 0), (3, 0)]
        assert layer.optimized_paths[0].points == [(0, 0), (3, 0)]
        assert len(summaries) == 3
        assert all(isinstance(s, str) and s for s in summaries)

    def test_bypass_clears_cache(self):
        """bypass_all resets optimized_paths to None."""
        layer = make_layer([line((0, 0), (5, 0))])
        optimize_layers([layer], PipelineConfig.default())
        assert layer.optimized_paths is not None
        assert optimize_layers([layer], PipelineConfig(bypass_all=True)) == []
        assert layer.optimized_paths is None
        assert layer.output_paths is layer.paths

    def test_empty_result_is_not_none(self):
        """Filtering everything yields an empty list, not a cleared cache."""
        layer = make_layer([line((0, 0), (1, 0))])
        config = PipelineConfig(steps=[StepConfig("filter", options={"min_length": 100})])
        optimize_layers([layer], config)
        assert layer.optimized_paths == []
        assert layer.output_paths == []

    def test_inactive_and_unknown_steps_skipped(self):
        """Disabled, bypassed and unknown steps do nothing."""
        layer = make_layer([line((0, 0), (1, 0), (2, 0))])
        config = PipelineConfig(
            steps=[
                StepConfig("linesimplify", enabled=False, options={"tolerance": 1}),
                StepConfig("linesimplify", bypass=True, options={"tolerance": 1}),
                StepConfig("teleport"),
            ]
        )
        assert optimize_layers([layer], config) == []
        assert layer.optimized_paths[0].points == layer.paths[0].points

    def test_simplify_modes(self):
        """Both simplification modes are available; circles pass through."""
        paths = [line((0, 0), (1, 0.01), (2, 0)), Circle.of_radius(0, 0, 1)]
        for mode in ("polyline", "visvalingam"):
            out = simplify_paths(paths, 0.5, mode)
            assert out[0].points == [(0, 0), (2, 0)]
            assert out[1] is paths[1]

    def test_large_layer_filter(self):
        """2500 paths of 14 points keep the majority and finish promptly."""
        rnd = random.Random(7)
        paths = []
        for i in range(2500):
            if i % 50 == 0:
                paths.append(line(*[(5.0, 5.0)] * 14))
                continue
            x, y = rnd.uniform(0, 300), rnd.uniform(0, 400)
            pts = [(x, y)]
            for _ in range(13):
                a = rnd.uniform(0, 2 * math.pi)
                step = rnd.uniform(0.5, 2.0)
                x += math.cos(a) * step
                y += math.sin(a) * step
                pts.append((x, y))
            paths.append(line(*pts))
        layer = make_layer(paths)
        config = PipelineConfig(steps=[StepConfig("filter", options={"min_length": 1.0, "remove_tiny": True})])
        start = time.perf_counter()
        optimize_layers([layer], config)
        assert time.perf_counter() - start < 10.0
        assert len(layer.optimized_paths) == 2450
        assert len(layer.optimized_paths) > len(paths) / 2


class TestSort:
    """Nearest-neighbour ordering."""

    def test_preserves_multiset(self):
        """Sorting only reorders and reverses."""
        rnd = random.Random(1)
        paths = [
            line(*[(rnd.uniform(0, 100), rnd.uniform(0, 100)) for _ in range(rnd.randint(2, 6))])
            for _ in range(60)
        ]
        paths.append(Circle.of_radius(50, 50, 3))
        ordered, _ = sort_paths(paths, (0.0, 0.0))
        key = lambda p: undirected(p) if isinstance(p, Polyline) else ("circle", p.cx, p.cy, p.rx)
        assert Counter(map(key, ordered)) == Counter(map(key, paths))

    def test_reverses_when_closer(self):
        """A path whose tail is nearer is drawn backwards."""
        ordered, end = sort_paths([line((10, 0), (0, 0))], (0.0, 0.0))
        assert ordered[0].points == [(0, 0), (10, 0)]
        assert end == (10, 0)

    def test_horizontal_direction(self):
        """Horizontal sorting draws left to right where it can."""
        paths = [line((20, 0), (11, 0)), line((0, 0), (10, 0))]
        ordered, _ = sort_paths(paths, (0.0, 0.0), "horizontal")
        assert [p.points for p in ordered] == [[(0, 0), (10, 0)], [(11, 0), (20, 0)]]

    def test_reduces_travel(self):
        """Pipeline summary reports lower travel after sorting."""
        paths = [line((x, 0), (x, 1)) for x in (90, 10, 50, 30, 70)]
        layer = make_layer(paths)
        optimize_layers([layer], PipelineConfig(steps=[StepConfig("linesort")]))
        xs = [p.points[0][0] for p in layer.optimized_paths]
        assert xs == [10, 30, 50, 70, 90]

    def test_method_none_keeps_order(self):
        """method=none leaves the order alone."""
        paths = [line((x, 0), (x, 1)) for x in (90, 10, 50)]
        layer = make_layer(paths)
        optimize_layers([layer], PipelineConfig(steps=[StepConfig("linesort", options={"method": "none"})]))
        assert [p.points[0][0] for p in layer.optimized_paths] == [90, 10, 50]

    def test_grouping(self):
        """combined continues from the previous layer, layer restarts at the origin."""
        first = make_layer([line((0, 0), (99, 0))], layer_id="a")
        near, far = line((100, 0), (101, 0)), line((5, 5), (6, 5))

        second = make_layer([near, far], layer_id="b")
        optimize_layers([first, second], PipelineConfig(steps=[StepConfig("linesort", options={"grouping": "combined"})]))
        assert second.optimized_paths[0].points[0] == (100, 0)

        second = make_layer([near, far], layer_id="b")
        optimize_layers([first, second], PipelineConfig(steps=[StepConfig("linesort", options={"grouping": "layer"})]))
        assert second.optimized_paths[0].points[0] == (5, 5)

    def test_pen_grouping(self):
        """pen grouping carries the cursor only within a pen."""
        first = make_layer([line((0, 0), (99, 0))], pen_id=0, layer_id="a")
        near, far = line((100, 0), (101, 0)), line((5, 5), (6, 5))
        other_pen = make_layer([near, far], pen_id=1, layer_id="b")
        same_pen = make_layer([near, far], pen_id=0, layer_id="c")
        config = PipelineConfig(steps=[StepConfig("linesort", options={"grouping": "pen"})])
        optimize_layers([first, other_pen, same_pen], config)
        assert other_pen.optimized_paths[0].points[0] == (5, 5)
        assert same_pen.optimized_paths[0].points[0] == (100, 0)


class TestFilterAndMerge:
    """Length filtering and endpoint merging."""

    def test_filter_bounds(self):
        """min and max length bound what survives; circles use 2*pi*r."""
        paths = [line((0, 0), (0.5, 0)), line((0, 0), (3, 0)), line((0, 0), (20, 0)), Circle.of_radius(0, 0, 1)]
        out = filter_paths(paths, min_length=1.0, max_length=10.0)
        assert out == [paths[1], paths[3]]
        assert filter_paths([Circle.of_radius(0, 0, 1)], max_length=5.0) == []

    def test_filter_tiny(self):
        """Zero-length paths go when remove_tiny is set."""
        dot = line((1, 1), (1, 1))
        assert filter_paths([dot]) == []
        assert filter_paths([dot], remove_tiny=False) == [dot]

    def test_merge(self):
        """Touching polylines become one."""
        out = merge_paths([line((0, 0), (1, 0)), line((1.01, 0), (2, 0)), line((5, 5), (6, 6))], tolerance=0.05)
        assert len(out) == 2
        assert out[0].points == [(0, 0), (1, 0), (2, 0)]


class TestDedupe:
    """Quantized keys and per-pen dedupe."""

    def test_quantize(self):
        """Values snap to the tolerance grid."""
        assert quantize(0.026, 0.01) == pytest.approx(0.03)
        assert quantize(5.0, 0) == 5.0

    def test_key_tolerance(self):
        """Sub-tolerance differences share a key."""
        a = line((1.001, 2.0), (3.0, 4.0))
        b = line((1.002, 2.0), (3.0, 4.0))
        assert canonical_key(a, 0.01) == canonical_key(b, 0.01)
        assert canonical_key(a, 0.01) != canonical_key(line((1.2, 2.0), (3.0, 4.0)), 0.01)

    def test_key_kinds(self):
        """Circles and ellipses are keyed by kind."""
        assert canonical_key(Circle.of_radius(1, 2, 3), 0.01).startswith("circle:")
        assert canonical_key(Circle(cx=1, cy=2, rx=3, ry=1), 0.01).startswith("ellipse:")
        assert canonical_key(object(), 0.01) is None

    def test_same_pen_deduped(self):
        """Duplicates on one pen collapse."""
        a = line((0, 0), (10, 10))
        out = dedupe_by_pen([(0, [a, a.clone()])])
        assert len(out[0][1]) == 1

    def test_other_pen_kept(self):
        """The same geometry on two pens is kept twice."""
        a = line((0, 0), (10, 10))
        out = dedupe_by_pen([(0, [a]), (1, [a.clone()])])
        assert [len(paths) for _, paths in out] == [1, 1]
