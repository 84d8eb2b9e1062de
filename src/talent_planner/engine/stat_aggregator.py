"""Stat totals derived from talent allocations.

Node values are cumulative per level, so a node at level k contributes
``values[k - 1]`` to each of its stat tags. Totals are Decimals: the
incremental path (apply_delta) and the full pass (recompute) must agree
exactly, which float accumulation would not guarantee.
"""

from __future__ import annotations

from decimal import Decimal

from talent_planner.engine.build import Build, StatTotals
from talent_planner.models.catalog import Catalog
from talent_planner.models.constants import TREE_COLORS, TreeColor, parse_color
from talent_planner.models.talent import TalentNode


def node_contribution(node: TalentNode, level: int) -> Decimal:
    """Contribution of *node* to each of its stat tags at *level*."""
    return node.contribution(level)


class StatAggregator:
    """Computes and incrementally updates stat totals for a catalog's builds."""

    __slots__ = ("_catalog",)

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog

    def baseline(self) -> StatTotals:
        """Every known stat at zero."""
        return {name: Decimal(0) for name in self._catalog.stat_names}

    def recompute(self, build: Build) -> StatTotals:
        """Full pass over every allocation, starting from the baseline."""
        totals = self.baseline()
        if build.commander_id is None:
            return totals
        for color in TREE_COLORS:
            tree = self._catalog.tree_for(build.commander_id, color)
            for node, level in zip(tree.nodes, build.allocation(color)):
                if level <= 0 or not node.stats:
                    continue
                amount = node_contribution(node, level)
                for tag in node.stats:
                    totals[tag] = totals.get(tag, Decimal(0)) + amount
        return totals

    def apply_delta(
        self,
        build: Build,
        color: TreeColor | str,
        index: int,
        old_value: int,
        new_value: int,
    ) -> StatTotals:
        """Return *build*'s totals adjusted for one node moving between levels.

        *build* supplies the totals before the change; it is not modified.
        """
        if build.commander_id is None:
            raise ValueError("Cannot update stats for a build without a commander")
        node = self._catalog.tree_for(build.commander_id, parse_color(color)).node(index)
        totals = dict(build.stats) if build.stats else self.baseline()
        if not node.stats or old_value == new_value:
            return totals
        delta = node_contribution(node, new_value) - node_contribution(node, old_value)
        for tag in node.stats:
            totals[tag] = totals.get(tag, Decimal(0)) + delta
        return totals
