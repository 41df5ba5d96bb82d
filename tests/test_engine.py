"""Tests for the layer engine.

Verifies:
- layer creation, naming, removal and reordering
- duplicates are identical in geometry and named "<name> Copy"
- export -> mutate -> import restores identical paths
- invalid state is rejected without touching the current layers
- stats and optimization target the right layers

Run: pytest tests/test_engine.py -v
"""
import random

import pytest

from plotgen.config import Settings
from plotgen.engine import LayerNotFound, SnapshotError, VectorEngine


def signature(layer):
    return [p.to_dict() for p in layer.paths]


class LowRandom(random.Random):
    """Random source whose randrange always returns its lower bound."""

    def randrange(self, start, stop=None, step=1):
        return 0 if stop is None else start


@pytest.fixture
def engine():
    return VectorEngine(rand=random.Random(3), initial_layer=False)


@pytest.fixture
def two_layers(engine):
    a = engine.add_layer("lissajous", {"seed": 11, "resolution": 200})
    b = engine.add_layer("spiral", {"seed": 12, "loops": 3, "res": 40})
    return engine, a, b


class TestLayerStack:
    """Adding, removing and ordering layers."""

    def test_initial_layer(self):
        """A new engine starts with one flow field layer."""
        engine = VectorEngine(rand=random.Random(1))
        assert len(engine.layers) == 1
        layer = engine.layers[0]
        assert layer.type == "flowfield"
        assert layer.name == "Flow Field 01"
        assert engine.active_layer_id == layer.id
        assert layer.paths

    def test_add_layer(self, engine):
        """New layers are named by label and counter and become active."""
        layer = engine.add_layer("lissajous", {"seed": 5})
        assert layer.name == "Lissajous 01"
        assert engine.add_layer("grid", {"seed": 6, "rows": 3, "cols": 3}).name == "Grid 02"
        assert engine.active_layer.type == "grid"
        assert len(layer.id) == 9

    def test_missing_seed_assigned(self, engine):
        """Layers always carry a seed."""
        layer = engine.add_layer("spiral")
        assert isinstance(layer.params["seed"], int)

    def test_assigned_seed_never_zero(self):
        """The lowest seed drawn is still reproducible."""
        engine = VectorEngine(rand=LowRandom(3), initial_layer=False)
        layer = engine.add_layer("flowfield", {"density": 40, "max_steps": 20})
        assert layer.params["seed"] == 1
        first = signature(layer)
        engine.generate(layer.id)
        assert signature(layer) == first

    def test_unknown_type_falls_back(self, engine):
        """Unknown algorithm keys create a flow field layer."""
        layer = engine.add_layer("nope", {"seed": 4, "density": 20})
        assert layer.type == "flowfield"

    def test_remove_never_drops_last(self, two_layers):
        """The final layer stays."""
        engine, a, b = two_layers
        assert engine.remove_layer(b.id)
        assert engine.active_layer_id == a.id
        assert not engine.remove_layer(a.id)
        assert len(engine.layers) == 1

    def test_remove_unknown(self, two_layers):
        """Unknown ids are reported, not raised."""
        engine, _, _ = two_layers
        assert not engine.remove_layer("missing")

    def test_move(self, two_layers):
        """Layers swap with their neighbour; moves off the ends fail."""
        engine, a, b = two_layers
        assert engine.move_layer(b.id, -1)
        assert [layer.id for layer in engine.layers] == [b.id, a.id]
        assert not engine.move_layer(b.id, -1)
        assert not engine.move_layer("missing", 1)

    def test_lookup(self, engine):
        """get_layer raises, find_layer and generate tolerate unknown ids."""
        with pytest.raises(LayerNotFound):
            engine.get_layer("missing")
        with pytest.raises(KeyError):
            engine.get_layer("missing")
        assert engine.find_layer("missing") is None
        engine.generate("missing")


class TestDuplicate:
    """duplicate_layer."""

    def test_copy_name_and_position(self, two_layers):
        """Copies sit right after the source."""
        engine, a, b = two_layers
        dup = engine.duplicate_layer(a.id)
        assert dup.name == "Lissajous 01 Copy"
        assert [layer.id for layer in engine.layers] == [a.id, dup.id, b.id]
        assert engine.active_layer_id == dup.id
        again = engine.duplicate_layer(a.id)
        assert again.name == "Lissajous 01 Copy 2"

    def test_identical_geometry(self, two_layers):
        """A duplicate draws exactly what the source draws."""
        engine, a, _ = two_layers
        dup = engine.duplicate_layer(a.id)
        assert dup.id != a.id
        assert dup.params == a.params
        assert signature(dup) == signature(a)

    def test_independent_params(self, two_layers):
        """Editing the copy leaves the source alone."""
        engine, a, _ = two_layers
        dup = engine.duplicate_layer(a.id)
        engine.update_layer(dup.id, {"params": {"freq_x": 7.0}})
        assert a.params["freq_x"] == 3.0

    def test_unknown(self, engine):
        """Unknown ids give None."""
        assert engine.duplicate_layer("missing") is None


class TestUpdate:
    """update_layer."""

    def test_params_regenerate(self, two_layers):
        """Param changes rebuild the paths."""
        engine, a, _ = two_layers
        before = signature(a)
        engine.update_layer(a.id, {"params": {"freq_x": 5.0}})
        assert signature(a) != before

    def test_type_change_keeps_seed_and_transform(self, two_layers):
        """Switching algorithm keeps the seed and placement."""
        engine, a, _ = two_layers
        engine.update_layer(a.id, {"params": {"pos_x": 12.0}})
        engine.update_layer(a.id, {"type": "grid"})
        assert a.type == "grid"
        assert a.params["seed"] == 11
        assert a.params["pos_x"] == 12.0
        assert "rows" in a.params
        assert "freq_x" not in a.params

    def test_attributes(self, two_layers):
        """Presentation attributes are copied onto the layer."""
        engine, a, _ = two_layers
        engine.update_layer(a.id, {"name": "Main", "pen_id": 2, "visible": False})
        assert (a.name, a.pen_id, a.visible) == ("Main", 2, False)


class TestState:
    """export_state / import_state and snapshots."""

    def test_round_trip(self, two_layers):
        """Import restores the exported layers and their exact paths."""
        engine, a, b = two_layers
        state = engine.export_state()
        before = {layer.id: signature(layer) for layer in engine.layers}
        engine.update_layer(a.id, {"params": {"seed": 99, "scale_x": 2.0}})
        engine.remove_layer(b.id)
        engine.add_layer("grid", {"seed": 1, "rows": 2, "cols": 2})

        engine.import_state(state)
        assert [layer.id for layer in engine.layers] == [a.id, b.id]
        assert {layer.id: signature(layer) for layer in engine.layers} == before
        assert engine.active_layer_id == state["active_layer_id"]

    def test_state_is_detached(self, two_layers):
        """Mutating exported state does not reach the engine."""
        engine, a, _ = two_layers
        state = engine.export_state()
        state["layers"][0]["params"]["seed"] = 1
        assert a.params["seed"] == 11

    def test_same_params_same_paths(self):
        """Engines with different id sources agree on geometry."""
        one = VectorEngine(rand=random.Random(1), initial_layer=False)
        two = VectorEngine(rand=random.Random(2), initial_layer=False)
        a = one.add_layer("rings", {"seed": 77, "rings": 4})
        b = two.add_layer("rings", {"seed": 77, "rings": 4})
        assert signature(a) == signature(b)

    @pytest.mark.parametrize(
        "state",
        ["nope", {"layers": "nope"}, {"layers": [{"name": "no id"}]}, {"layers": [42]}],
    )
    def test_invalid_state(self, two_layers, state):
        """Malformed state raises SnapshotError and changes nothing."""
        engine, a, b = two_layers
        with pytest.raises(SnapshotError):
            engine.import_state(state)
        assert [layer.id for layer in engine.layers] == [a.id, b.id]

    def test_snapshot_restore(self, two_layers):
        """Snapshots carry settings too."""
        engine, _, _ = two_layers
        snap = engine.snapshot()
        engine.settings.margin = 5.0
        engine.restore(snap)
        assert engine.settings.margin == 20.0

    def test_failed_restore_keeps_settings(self, two_layers):
        """A rejected snapshot leaves settings as they were."""
        engine, _, _ = two_layers
        with pytest.raises(SnapshotError):
            engine.restore({"engine": {"layers": [{}]}, "settings": {"margin": 5.0}})
        assert engine.settings.margin == 20.0
        with pytest.raises(SnapshotError):
            engine.restore({"layers": []})

    def test_failed_regeneration_rolls_back(self, two_layers):
        """Layers that cannot be generated leave the engine untouched."""
        engine, a, b = two_layers
        before = {layer.id: signature(layer) for layer in engine.layers}
        bad = {"id": "x", "type": "grid", "params": {"rows": "a"}}
        with pytest.raises(SnapshotError):
            engine.restore({"engine": {"layers": [bad]}, "settings": {"margin": 5.0}})
        assert [layer.id for layer in engine.layers] == [a.id, b.id]
        assert {layer.id: signature(layer) for layer in engine.layers} == before
        assert engine.active_layer_id == b.id
        assert engine.settings.margin == 20.0


class TestStatsAndOptimize:
    """get_stats and optimize."""

    def test_stats_visible_only(self, two_layers):
        """Hidden layers do not count."""
        engine, a, b = two_layers
        stats = engine.get_stats()
        assert stats["lines"] == 2
        assert stats["distance_mm"] > 0
        assert stats["time"].count(":") == 1
        engine.update_layer(b.id, {"visible": False})
        assert engine.get_stats()["lines"] == 1

    def test_time_estimate(self):
        """Time is distance over drawing speed."""
        engine = VectorEngine(settings=Settings(speed_down=100.0), rand=random.Random(1), initial_layer=False)
        engine.add_layer("lissajous", {"seed": 3})
        stats = engine.get_stats()
        assert stats["time_sec"] == pytest.approx(stats["distance_mm"] / 100.0)

    def test_optimize_targets(self, two_layers):
        """Only the named layers are optimized."""
        engine, a, b = two_layers
        summaries = engine.optimize([a.id], None)
        assert summaries
        assert a.optimized_paths is not None
        assert b.optimized_paths is None

    def test_optimize_unknown(self, two_layers):
        """Unknown ids raise LayerNotFound."""
        engine, _, _ = two_layers
        with pytest.raises(LayerNotFound):
            engine.optimize(["missing"], None)

    def test_regenerate_resets_cache(self, two_layers):
        """Regeneration drops previous optimization output."""
        engine, a, _ = two_layers
        engine.optimize(None, {"bypassAll": False, "steps": [{"id": "linesimplify", "tolerance": 1.0}]})
        assert a.optimized_paths is not None
        engine.generate(a.id)
        assert a.optimized_paths is None

    def test_profile(self, engine):
        """Unknown profiles fall back to A3."""
        engine.set_profile("a4")
        assert engine.bounds.width == 210
        engine.set_profile("zzz")
        assert engine.settings.profile == "a3"
