"""Tests for stat totals: full recompute and incremental deltas."""

import random
from decimal import Decimal

import pytest

from talent_planner.engine.build import Build
from talent_planner.engine.build_state import BuildState, Direction
from talent_planner.engine.stat_aggregator import StatAggregator, node_contribution
from talent_planner.models.catalog import Catalog
from talent_planner.models.constants import TREE_COLORS


def _catalog() -> Catalog:
    return Catalog.from_dict({
        "data_version": 1,
        "commanders": {"CMD1": {"name": "Commander One", "red": "R", "yellow": "Y", "blue": "B"}},
        "trees": {
            "R": {
                "1": {"name": "Alpha", "stats": "Attack", "values": [0.1, 0.2]},
                "2": {"name": "Beta", "prereq": [1], "stats": ["Attack", "Health"], "values": [1.5, 3, 4.5]},
                "3": {"name": "Gamma", "prereq": [2], "values": [10]},
            },
            "Y": {
                "1": {"name": "Delta", "stats": "Defense", "values": [0.7, 1.4, 2.1]},
                "2": {"name": "Kappa", "prereq": [1], "stats": "Troop Capacity", "values": [100, 250]},
            },
            "B": {"1": {"name": "Epsilon", "stats": "March Speed", "values": [0.3, 0.6]}},
        },
    })


def _build(red=(0, 0, 0), yellow=(0, 0), blue=(0,)) -> Build:
    return Build(commander_id="CMD1", red=tuple(red), yellow=tuple(yellow), blue=tuple(blue))


class TestRecompute:
    def test_baseline_has_every_stat(self):
        agg = StatAggregator(_catalog())
        baseline = agg.baseline()
        assert set(baseline) == {"Attack", "Defense", "Health", "March Speed", "Troop Capacity"}
        assert all(value == 0 for value in baseline.values())

    def test_empty_build_is_baseline(self):
        agg = StatAggregator(_catalog())
        assert agg.recompute(Build()) == agg.baseline()

    def test_levels_are_cumulative_not_summed(self):
        totals = StatAggregator(_catalog()).recompute(_build(red=(2, 0, 0)))
        assert totals["Attack"] == Decimal("0.2")

    def test_multi_tag_node_feeds_every_tag(self):
        totals = StatAggregator(_catalog()).recompute(_build(red=(2, 3, 0)))
        assert totals["Attack"] == Decimal("0.2") + Decimal("4.5")
        assert totals["Health"] == Decimal("4.5")

    def test_untagged_node_contributes_nothing(self):
        agg = StatAggregator(_catalog())
        assert agg.recompute(_build(red=(2, 3, 1))) == agg.recompute(_build(red=(2, 3, 0)))

    def test_decimal_sums_are_exact(self):
        totals = StatAggregator(_catalog()).recompute(_build(red=(1, 0, 0), yellow=(3, 0), blue=(1,)))
        assert totals["Attack"] == Decimal("0.1")
        assert totals["Defense"] == Decimal("2.1")
        assert totals["March Speed"] == Decimal("0.3")

    def test_node_contribution(self):
        node = _catalog().tree("R").node(2)
        assert node_contribution(node, 0) == 0
        assert node_contribution(node, 2) == Decimal(3)


class TestApplyDelta:
    def test_single_step_matches_recompute(self):
        agg = StatAggregator(_catalog())
        before = _build(red=(2, 1, 0))
        before = Build(
            commander_id="CMD1", red=before.red, yellow=before.yellow, blue=before.blue,
            stats=agg.recompute(before),
        )
        after = _build(red=(2, 2, 0))
        assert agg.apply_delta(before, "red", 2, 1, 2) == agg.recompute(after)

    def test_does_not_mutate_input(self):
        agg = StatAggregator(_catalog())
        stats = agg.baseline()
        build = Build(commander_id="CMD1", red=(0, 0, 0), yellow=(0, 0), blue=(0,), stats=stats)
        agg.apply_delta(build, "blue", 1, 0, 1)
        assert build.stats["March Speed"] == 0

    def test_no_commander(self):
        with pytest.raises(ValueError, match="without a commander"):
            StatAggregator(_catalog()).apply_delta(Build(), "red", 1, 0, 1)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_random_walk_stays_equal_to_recompute(self, seed):
        rng = random.Random(seed)
        catalog = _catalog()
        state = BuildState(catalog)
        state.select_commander("CMD1")
        agg = state.aggregator
        for _ in range(200):
            color = rng.choice(TREE_COLORS)
            index = rng.randint(1, catalog.tree_for("CMD1", color).size)
            direction = rng.choice(list(Direction))
            state.mutate_node(color, index, direction)
            assert state.build.stats == agg.recompute(state.build)
