"""UI-facing adapter over BuildState for tree, stats, and share panels.

This module intentionally contains no GUI code. It provides stable, testable
data shapes that any UI toolkit can render.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from talent_planner.engine.build_state import BuildState
from talent_planner.engine.validator import BuildIssue
from talent_planner.models.constants import TREE_COLORS, TreeColor, parse_color


APP_TITLE = "Talent Planner"


@dataclass(frozen=True, slots=True)
class NodeRow:
    """One talent node with its current level and clickability."""

    index: int
    name: str
    kind: str
    value: int
    level_cap: int
    stats: tuple[str, ...]
    can_increase: bool
    can_decrease: bool

    @property
    def label(self) -> str:
        return f"{self.value}/{self.level_cap}"


@dataclass(frozen=True, slots=True)
class UiDiagnostic:
    """UI-facing warning/error message about the current build."""

    severity: Literal["info", "warning", "error"]
    code: str
    message: str
    color: str | None = None
    index: int | None = None


class BuildUiModel:
    """Read adapter for UI panels over a BuildState."""

    __slots__ = ("_state",)

    def __init__(self, state: BuildState) -> None:
        self._state = state

    @property
    def state(self) -> BuildState:
        return self._state

    def commander_name(self) -> str | None:
        commander_id = self._state.build.commander_id
        if commander_id is None:
            return None
        return self._state.catalog.commander(commander_id).name

    def commander_choices(self) -> list[tuple[str, str]]:
        """(commander_id, name) pairs sorted by name for a picker."""
        return sorted(
            ((c.commander_id, c.name) for c in self._state.catalog.commanders.values()),
            key=lambda pair: pair[1],
        )

    def points_spent(self, color: TreeColor | str | None = None) -> int:
        return self._state.points_spent(color)

    def points_remaining(self) -> int:
        return self._state.points_remaining()

    def tree_name(self, color: TreeColor | str) -> str | None:
        commander_id = self._state.build.commander_id
        if commander_id is None:
            return None
        return self._state.catalog.tree_id(commander_id, color)

    def node_rows(self, color: TreeColor | str) -> list[NodeRow]:
        """Rows for every node in one tree, in index order."""
        build = self._state.build
        if build.commander_id is None:
            return []
        color = parse_color(color)
        tree = self._state.catalog.tree_for(build.commander_id, color)
        validator = self._state.validator
        rows: list[NodeRow] = []
        for node, value in zip(tree.nodes, build.allocation(color)):
            rows.append(NodeRow(
                index=node.index,
                name=node.name,
                kind=node.kind,
                value=value,
                level_cap=node.level_cap,
                stats=node.stats,
                can_increase=validator.can_increase(build, color, node.index).allowed,
                can_decrease=validator.can_decrease(build, color, node.index).allowed,
            ))
        return rows

    def stat_rows(self) -> list[tuple[str, Decimal]]:
        """Stat totals in catalog order, followed by any extra tags."""
        stats = self._state.build.stats
        order = list(self._state.catalog.stat_names)
        order.extend(name for name in stats if name not in order)
        return [(name, stats.get(name, Decimal(0))) for name in order]

    def title(self) -> str:
        """Page title: commander name and points per tree."""
        name = self.commander_name()
        if name is None:
            return APP_TITLE
        spent = "/".join(str(self._state.points_spent(c)) for c in TREE_COLORS)
        return f"{name} ({spent})"

    def diagnostics(self) -> list[UiDiagnostic]:
        return [_diagnostic(issue) for issue in self._state.validator.audit(self._state.build)]


def _diagnostic(issue: BuildIssue) -> UiDiagnostic:
    return UiDiagnostic(
        severity="warning" if issue.severity == "warning" else "error",
        code=issue.category,
        message=issue.message,
        color=issue.color.value if issue.color is not None else None,
        index=issue.index,
    )
