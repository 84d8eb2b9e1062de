"""Build lifecycle: commander selection, node mutations, reset, and token loads.

BuildState owns the current Build snapshot and is the only thing that
replaces it. Every operation runs to completion before returning, and the
snapshot is swapped in one assignment, so callers never observe a build
with new allocations but old stats. Denied mutations and failed token loads
leave no partial changes behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from talent_planner.codec.build_token import (
    build_query,
    decode_build,
    encode_build,
    token_from_query,
)
from talent_planner.engine.build import Build
from talent_planner.engine.build_config import BuildConfig
from talent_planner.engine.errors import DecodeError
from talent_planner.engine.stat_aggregator import StatAggregator
from talent_planner.engine.validator import BuildValidator, Verdict
from talent_planner.models.catalog import Catalog
from talent_planner.models.constants import TREE_COLORS, TreeColor, parse_color


logger = logging.getLogger(__name__)


class BuildPhase(str, Enum):
    EMPTY = "empty"
    COMMANDER_SELECTED = "commander_selected"
    POPULATED = "populated"


class Direction(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


@dataclass(frozen=True, slots=True)
class MutationResult:
    """Outcome of mutate_node(); *build* is the snapshot after the call."""

    applied: bool
    verdict: Verdict
    build: Build


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Outcome of a token/link load; *error* is set when the token was rejected."""

    ok: bool
    build: Build
    error: DecodeError | None = None


class BuildState:
    """Owns the current Build and exposes the operations a UI calls.

    The catalog is shared and read-only; nothing here writes to it.
    """

    __slots__ = ("_catalog", "_config", "_validator", "_aggregator", "_build")

    def __init__(self, catalog: Catalog, config: BuildConfig | None = None) -> None:
        self._catalog = catalog
        self._config = config or BuildConfig()
        if (
            self._config.default_commander_id is not None
            and not catalog.has_commander(self._config.default_commander_id)
        ):
            raise ValueError(
                f"Default commander {self._config.default_commander_id!r} "
                "is not in the catalog"
            )
        self._validator = BuildValidator(catalog, self._config)
        self._aggregator = StatAggregator(catalog)
        self._build = self._empty_build()

    # --- Factories ---------------------------------------------------------

    @classmethod
    def from_token(
        cls,
        token: str,
        catalog: Catalog,
        config: BuildConfig | None = None,
    ) -> tuple[BuildState, LoadResult]:
        """Create a state and load *token* into it, returning both."""
        state = cls(catalog, config)
        return state, state.load_from_token(token)

    # --- Read access -------------------------------------------------------

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def config(self) -> BuildConfig:
        return self._config

    @property
    def validator(self) -> BuildValidator:
        return self._validator

    @property
    def aggregator(self) -> StatAggregator:
        return self._aggregator

    @property
    def build(self) -> Build:
        """Current snapshot. Builds are immutable, so no copy is needed."""
        return self._build

    @property
    def phase(self) -> BuildPhase:
        if self._build.commander_id is None:
            return BuildPhase.EMPTY
        if self._build.points_spent() == 0:
            return BuildPhase.COMMANDER_SELECTED
        return BuildPhase.POPULATED

    def points_spent(self, color: TreeColor | str | None = None) -> int:
        return self._build.points_spent(color)

    def points_remaining(self) -> int:
        return self._validator.points_remaining(self._build)

    def token(self) -> str | None:
        """Share token for the current build, or None when no commander is set."""
        if self._build.commander_id is None:
            return None
        return encode_build(self._build, self._config.token_separator)

    def share_query(self) -> str | None:
        if self._build.commander_id is None:
            return None
        return build_query(self._build, self._config.token_separator)

    # --- Wholesale transitions ---------------------------------------------

    def _empty_build(self) -> Build:
        return Build(stats=self._aggregator.baseline(), data_version=self._catalog.data_version)

    def _zero_build(self, commander_id: str) -> Build:
        sizes = self._catalog.tree_sizes(commander_id)
        return Build(
            commander_id=commander_id,
            red=(0,) * sizes[TreeColor.RED],
            yellow=(0,) * sizes[TreeColor.YELLOW],
            blue=(0,) * sizes[TreeColor.BLUE],
            stats=self._aggregator.baseline(),
            data_version=self._catalog.data_version,
        )

    def select_commander(self, commander_id: str) -> Build:
        """Switch to *commander_id* with every talent at zero."""
        if not self._catalog.has_commander(commander_id):
            raise ValueError(f"Unknown commander {commander_id!r}")
        self._build = self._zero_build(commander_id)
        logger.debug("Selected commander %s", commander_id)
        return self._build

    def reset(self) -> Build:
        """Zero every talent for the current commander (no-op when empty)."""
        if self._build.commander_id is None:
            return self._build
        return self.select_commander(self._build.commander_id)

    def clear(self) -> Build:
        """Return to the empty state with no commander."""
        self._build = self._empty_build()
        return self._build

    # --- Node mutations ----------------------------------------------------

    def check(self, color: TreeColor | str, index: int, direction: Direction | str) -> Verdict:
        """Run the validator gate for a mutation without applying it."""
        direction = Direction(direction)
        if direction is Direction.INCREASE:
            return self._validator.can_increase(self._build, color, index)
        return self._validator.can_decrease(self._build, color, index)

    def mutate_node(
        self,
        color: TreeColor | str,
        index: int,
        direction: Direction | str,
    ) -> MutationResult:
        """Move one node up or down a level if the rules allow it.

        Raises ValueError for caller mistakes (no commander, unknown color,
        index out of range). Rule refusals come back in the result instead.
        """
        color = parse_color(color)
        direction = Direction(direction)
        verdict = self.check(color, index, direction)
        if not verdict.allowed:
            if verdict.denied:
                logger.debug(
                    "Denied %s of %s #%d: %s", direction.value, color.value, index, verdict.message
                )
            return MutationResult(applied=False, verdict=verdict, build=self._build)

        alloc = list(self._build.allocation(color))
        old_value = alloc[index - 1]
        new_value = old_value + (1 if direction is Direction.INCREASE else -1)
        alloc[index - 1] = new_value
        stats = self._aggregator.apply_delta(self._build, color, index, old_value, new_value)
        self._build = self._build.with_allocation(color, tuple(alloc), stats)
        return MutationResult(applied=True, verdict=verdict, build=self._build)

    def increase(self, color: TreeColor | str, index: int) -> MutationResult:
        return self.mutate_node(color, index, Direction.INCREASE)

    def decrease(self, color: TreeColor | str, index: int) -> MutationResult:
        return self.mutate_node(color, index, Direction.DECREASE)

    # --- Token loading -----------------------------------------------------

    def _fallback_build(self) -> Build:
        if self._config.decode_fallback == "default_commander":
            return self._zero_build(self._config.default_commander_id)
        return self._empty_build()

    def load_from_token(self, token: str) -> LoadResult:
        """Replace the build with the one encoded in *token*.

        On any decode or bounds failure the state falls back to the configured
        default and the error is returned; the previous build is discarded
        either way.
        """
        try:
            build = decode_build(
                token,
                self._catalog,
                self._aggregator,
                separator=self._config.token_separator,
            )
            self._validator.check_bounds(build)
        except DecodeError as exc:
            logger.warning("Rejected build token %r: %s", token, exc)
            self._build = self._fallback_build()
            return LoadResult(ok=False, build=self._build, error=exc)

        self._build = build
        logger.debug("Loaded build for commander %s", build.commander_id)
        return LoadResult(ok=True, build=self._build)

    def load_from_query(self, query: str | None) -> LoadResult:
        """Load from a share-link query string; a blank query means a fresh start."""
        token = token_from_query(query)
        if token is None:
            self._build = self._empty_build()
            return LoadResult(ok=True, build=self._build)
        return self.load_from_token(token)

    def allocation_summary(self) -> dict[str, int]:
        """Points spent per color, in token order."""
        return {color.value: self._build.points_spent(color) for color in TREE_COLORS}
