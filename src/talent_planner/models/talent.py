"""Talent node, tree, and commander records."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from talent_planner.models.constants import TreeColor

if TYPE_CHECKING:
    from talent_planner.graph.talent_graph import TalentGraph


@dataclass(frozen=True, slots=True)
class TalentNode:
    """A single upgradeable talent.

    ``values[k - 1]`` is the node's total contribution at level k, so the
    level cap is simply the number of values.
    """
    index: int                       # 1-based position within its tree
    name: str
    kind: str                        # "major" | "minor"
    values: tuple[Decimal, ...]
    stats: tuple[str, ...] = ()      # stat tags; empty for non-stat talents
    prerequisites: frozenset[int] = frozenset()
    dependents: frozenset[int] = frozenset()

    @property
    def level_cap(self) -> int:
        return len(self.values)

    def contribution(self, level: int) -> Decimal:
        """Total contribution at *level* (0 contributes nothing)."""
        if level <= 0:
            return Decimal(0)
        return self.values[level - 1]


@dataclass(frozen=True, slots=True)
class TalentTree:
    """Ordered talent nodes of one tree plus their dependency graph."""
    tree_id: str
    nodes: tuple[TalentNode, ...]
    graph: TalentGraph = field(compare=False, repr=False)

    @property
    def size(self) -> int:
        return len(self.nodes)

    @property
    def level_caps(self) -> tuple[int, ...]:
        return tuple(node.level_cap for node in self.nodes)

    def node(self, index: int) -> TalentNode:
        """Return the node at 1-based *index*."""
        if index < 1 or index > len(self.nodes):
            raise ValueError(
                f"Talent index {index} out of range for tree {self.tree_id!r} "
                f"(1..{len(self.nodes)})"
            )
        return self.nodes[index - 1]


@dataclass(frozen=True, slots=True)
class Commander:
    """A selectable commander and the tree id behind each color."""
    commander_id: str
    name: str
    trees: dict[TreeColor, str]

    def tree_id(self, color: TreeColor) -> str:
        return self.trees[color]
