"""The Build snapshot: commander, three allocations, and stat totals."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal

from talent_planner.models.constants import DATA_VERSION, TREE_COLORS, TreeColor, parse_color


StatTotals = dict[str, Decimal]


@dataclass(frozen=True, slots=True)
class Build:
    """Immutable value for one talent build.

    Allocations hold one level per node, in node order. Mutations never
    touch a Build in place; they produce a new one with dataclasses.replace.
    """

    commander_id: str | None = None
    red: tuple[int, ...] = ()
    yellow: tuple[int, ...] = ()
    blue: tuple[int, ...] = ()
    stats: StatTotals = field(default_factory=dict)
    data_version: int = DATA_VERSION

    @property
    def is_empty(self) -> bool:
        return self.commander_id is None

    def allocation(self, color: TreeColor | str) -> tuple[int, ...]:
        return getattr(self, parse_color(color).value)

    def allocations(self) -> dict[TreeColor, tuple[int, ...]]:
        return {color: self.allocation(color) for color in TREE_COLORS}

    def value(self, color: TreeColor | str, index: int) -> int:
        """Level of the node at 1-based *index* in *color*'s tree."""
        alloc = self.allocation(color)
        if index < 1 or index > len(alloc):
            raise ValueError(
                f"Talent index {index} out of range for {parse_color(color).value} "
                f"tree (1..{len(alloc)})"
            )
        return alloc[index - 1]

    def points_spent(self, color: TreeColor | str | None = None) -> int:
        """Points spent in one tree, or across all trees when *color* is None."""
        if color is None:
            return sum(self.red) + sum(self.yellow) + sum(self.blue)
        return sum(self.allocation(color))

    def with_allocation(
        self,
        color: TreeColor | str,
        values: tuple[int, ...],
        stats: StatTotals,
    ) -> Build:
        """Return a copy with one allocation and the stat totals replaced."""
        return replace(self, **{parse_color(color).value: tuple(values)}, stats=dict(stats))
