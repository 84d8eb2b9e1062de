"""Point-allocation rules for talent builds.

Two kinds of checks live here:

- Interactive gates (can_increase / can_decrease) answer whether a single
  +1/-1 click is allowed. A refusal is a Verdict, not an exception: it is
  shown to the user and the build stays as it was.
- Structural checks (check_bounds) run after a share token is decoded.
  They raise DecodeError subclasses and deliberately skip prerequisite
  chains, so a token is only rejected for shape, bounds, or budget.

audit() reports everything, prerequisite gaps included, without rejecting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from talent_planner.engine.build import Build
from talent_planner.engine.build_config import BuildConfig
from talent_planner.engine.errors import (
    BudgetExceeded,
    LengthMismatch,
    OverflowValue,
    UnknownCommander,
)
from talent_planner.models.catalog import Catalog
from talent_planner.models.constants import TREE_COLORS, TreeColor, parse_color
from talent_planner.models.talent import TalentTree


class DenialKind(str, Enum):
    PREREQUISITE_UNMET = "prerequisite_unmet"
    DEPENDENT_BLOCKS_DECREASE = "dependent_blocks_decrease"
    POINT_LIMIT_REACHED = "point_limit_reached"
    ALREADY_ZERO = "already_zero"
    AT_LEVEL_CAP = "at_level_cap"   # no-op, not reported as an error


@dataclass(frozen=True, slots=True)
class Verdict:
    """Outcome of an interactive mutation check."""

    allowed: bool
    kind: DenialKind | None = None
    message: str = ""
    names: tuple[str, ...] = ()   # unmet prerequisites or blocking dependents

    @property
    def is_noop(self) -> bool:
        return self.kind is DenialKind.AT_LEVEL_CAP

    @property
    def denied(self) -> bool:
        return not self.allowed and not self.is_noop

    @property
    def missing_prerequisites(self) -> tuple[str, ...]:
        if self.kind is DenialKind.PREREQUISITE_UNMET:
            return self.names
        return ()

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "kind": self.kind.value if self.kind is not None else None,
            "message": self.message,
            "names": list(self.names),
        }


ALLOWED = Verdict(allowed=True)


@dataclass(frozen=True, slots=True)
class BuildIssue:
    """A single rule violation found by BuildValidator.audit()."""

    severity: str       # "error" | "warning"
    category: str       # "commander" | "length" | "bounds" | "budget" | "prerequisite"
    message: str
    color: TreeColor | None = None
    index: int | None = None


class BuildValidator:
    """Applies allocation rules against a catalog without mutating anything."""

    __slots__ = ("_catalog", "_config")

    def __init__(self, catalog: Catalog, config: BuildConfig | None = None) -> None:
        self._catalog = catalog
        self._config = config or BuildConfig()

    @property
    def max_points(self) -> int:
        return self._config.max_points

    # --- Budget ------------------------------------------------------------

    def points_spent(self, build: Build, color: TreeColor | str | None = None) -> int:
        return build.points_spent(color)

    def points_remaining(self, build: Build) -> int:
        return self._config.max_points - build.points_spent()

    # --- Interactive gates -------------------------------------------------

    def _tree(self, build: Build, color: TreeColor | str) -> TalentTree:
        if build.commander_id is None:
            raise ValueError("No commander selected")
        return self._catalog.tree_for(build.commander_id, color)

    def can_increase(self, build: Build, color: TreeColor | str, index: int) -> Verdict:
        """Check whether the node at *index* may gain one level."""
        color = parse_color(color)
        tree = self._tree(build, color)
        node = tree.node(index)
        alloc = build.allocation(color)

        if self.points_remaining(build) <= 0:
            return Verdict(
                allowed=False,
                kind=DenialKind.POINT_LIMIT_REACHED,
                message=f"All {self._config.max_points} talent points are spent",
            )

        missing = tuple(
            tree.node(p).name
            for p in sorted(node.prerequisites)
            if alloc[p - 1] < tree.node(p).level_cap
        )
        if missing:
            return Verdict(
                allowed=False,
                kind=DenialKind.PREREQUISITE_UNMET,
                message=f"{node.name} requires: {', '.join(missing)}",
                names=missing,
            )

        if alloc[index - 1] >= node.level_cap:
            return Verdict(
                allowed=False,
                kind=DenialKind.AT_LEVEL_CAP,
                message=f"{node.name} is already at level {node.level_cap}",
            )
        return ALLOWED

    def can_decrease(self, build: Build, color: TreeColor | str, index: int) -> Verdict:
        """Check whether the node at *index* may lose one level."""
        color = parse_color(color)
        tree = self._tree(build, color)
        node = tree.node(index)
        alloc = build.allocation(color)

        blocking = tuple(
            tree.node(d).name for d in sorted(node.dependents) if alloc[d - 1] > 0
        )
        if blocking:
            return Verdict(
                allowed=False,
                kind=DenialKind.DEPENDENT_BLOCKS_DECREASE,
                message=f"{node.name} is required by: {', '.join(blocking)}",
                names=blocking,
            )
        if alloc[index - 1] <= 0:
            return Verdict(
                allowed=False,
                kind=DenialKind.ALREADY_ZERO,
                message=f"{node.name} has no points to remove",
            )
        return ALLOWED

    # --- Decode-time structural check ---------------------------------------

    def check_bounds(self, build: Build) -> None:
        """Raise a DecodeError if allocation shape, bounds, or budget are invalid.

        Prerequisite chains are not checked here.
        """
        if build.commander_id is None:
            return
        if not self._catalog.has_commander(build.commander_id):
            raise UnknownCommander(f"Unknown commander ID {build.commander_id!r}")

        for color in TREE_COLORS:
            tree = self._catalog.tree_for(build.commander_id, color)
            alloc = build.allocation(color)
            if len(alloc) != tree.size:
                raise LengthMismatch(
                    f"Incorrect number of talents ({color.value} tree): "
                    f"got {len(alloc)}, expected {tree.size}",
                    color=color.value,
                )
            for node, level in zip(tree.nodes, alloc):
                if level < 0 or level > node.level_cap:
                    raise OverflowValue(
                        f"Talent {node.name!r} ({color.value} tree) has level "
                        f"{level}, allowed 0..{node.level_cap}",
                        color=color.value,
                    )

        spent = build.points_spent()
        if spent > self._config.max_points:
            raise BudgetExceeded(
                f"Number of spent talent points exceeds maximum "
                f"({spent} > {self._config.max_points})"
            )

    # --- Full audit ----------------------------------------------------------

    def audit(self, build: Build) -> list[BuildIssue]:
        """Return every rule violation in *build*, including prerequisite gaps.

        Builds loaded from tokens may hold points behind unmet prerequisites;
        those come back as warnings rather than errors.
        """
        issues: list[BuildIssue] = []
        if build.commander_id is None:
            return issues
        if not self._catalog.has_commander(build.commander_id):
            issues.append(BuildIssue(
                "error", "commander", f"Unknown commander ID {build.commander_id!r}",
            ))
            return issues

        for color in TREE_COLORS:
            tree = self._catalog.tree_for(build.commander_id, color)
            alloc = build.allocation(color)
            if len(alloc) != tree.size:
                issues.append(BuildIssue(
                    "error", "length",
                    f"{color.value} tree has {len(alloc)} values, expected {tree.size}",
                    color=color,
                ))
                continue
            for node, level in zip(tree.nodes, alloc):
                if level < 0 or level > node.level_cap:
                    issues.append(BuildIssue(
                        "error", "bounds",
                        f"{node.name} level {level} outside 0..{node.level_cap}",
                        color=color, index=node.index,
                    ))
                if level <= 0:
                    continue
                missing = [
                    tree.node(p).name
                    for p in sorted(node.prerequisites)
                    if alloc[p - 1] < tree.node(p).level_cap
                ]
                if missing:
                    issues.append(BuildIssue(
                        "warning", "prerequisite",
                        f"{node.name} has points but requires: {', '.join(missing)}",
                        color=color, index=node.index,
                    ))

        spent = build.points_spent()
        if spent > self._config.max_points:
            issues.append(BuildIssue(
                "error", "budget",
                f"{spent} points spent, maximum is {self._config.max_points}",
            ))
        return issues

    def is_valid(self, build: Build) -> bool:
        """True if the build breaks no rule, prerequisite chains included."""
        return not self.audit(build)
