"""Prerequisite/dependent graph for the nodes of one talent tree.

Edges point from a prerequisite to the node that needs it. The graph is
resolved once when the catalog loads; acyclicity and index bounds are
checked there so mutations never have to walk for cycles.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping

from talent_planner.engine.errors import CatalogError


class TalentGraph:
    """DAG of node indices (1-based) within a single tree."""

    __slots__ = ("_size", "_prereqs", "_dependents")

    def __init__(
        self,
        size: int,
        prereqs: dict[int, frozenset[int]],
        dependents: dict[int, frozenset[int]],
    ) -> None:
        self._size = size
        self._prereqs = prereqs
        self._dependents = dependents

    # --- Construction --------------------------------------------------------

    @classmethod
    def build(
        cls,
        tree_id: str,
        prereqs: Mapping[int, Iterable[int]],
        dependents: Mapping[int, Iterable[int]] | None = None,
    ) -> TalentGraph:
        """Resolve and check the index sets for a tree of ``len(prereqs)`` nodes.

        *dependents* may be omitted (or omit individual nodes), in which case
        dependents are derived as the reverse of *prereqs*. Listed dependents
        must match that reverse exactly.
        """
        size = len(prereqs)
        if sorted(prereqs) != list(range(1, size + 1)):
            raise CatalogError(
                f"Tree {tree_id!r}: node indices must be contiguous from 1, "
                f"got {sorted(prereqs)}"
            )

        resolved: dict[int, frozenset[int]] = {}
        for idx in range(1, size + 1):
            req = frozenset(int(p) for p in prereqs[idx])
            for p in req:
                if p < 1 or p > size:
                    raise CatalogError(
                        f"Tree {tree_id!r}: node {idx} lists prerequisite {p} "
                        f"outside 1..{size}"
                    )
                if p == idx:
                    raise CatalogError(
                        f"Tree {tree_id!r}: node {idx} is its own prerequisite"
                    )
            resolved[idx] = req

        derived: dict[int, set[int]] = {idx: set() for idx in range(1, size + 1)}
        for idx, req in resolved.items():
            for p in req:
                derived[p].add(idx)

        reverse: dict[int, frozenset[int]] = {}
        for idx in range(1, size + 1):
            listed = None if dependents is None else dependents.get(idx)
            if listed is None:
                reverse[idx] = frozenset(derived[idx])
                continue
            listed_set = frozenset(int(d) for d in listed)
            if listed_set != derived[idx]:
                raise CatalogError(
                    f"Tree {tree_id!r}: node {idx} lists dependents "
                    f"{sorted(listed_set)} but prerequisites imply "
                    f"{sorted(derived[idx])}"
                )
            reverse[idx] = listed_set

        graph = cls(size, resolved, reverse)
        order = graph.topological_order()
        if len(order) != size:
            stuck = sorted(set(range(1, size + 1)) - set(order))
            raise CatalogError(
                f"Tree {tree_id!r}: prerequisite cycle among nodes {stuck}"
            )
        return graph

    # --- Queries -------------------------------------------------------------

    @property
    def size(self) -> int:
        return self._size

    def prerequisites_of(self, index: int) -> frozenset[int]:
        return self._prereqs.get(index, frozenset())

    def dependents_of(self, index: int) -> frozenset[int]:
        return self._dependents.get(index, frozenset())

    def prerequisite_chain(self, index: int) -> list[int]:
        """Return transitive prerequisites of *index*, deepest first."""
        visited: set[int] = set()
        order: list[int] = []

        def _dfs(idx: int) -> None:
            if idx in visited:
                return
            visited.add(idx)
            for dep in sorted(self._prereqs.get(idx, ())):
                _dfs(dep)
            order.append(idx)

        for dep in sorted(self._prereqs.get(index, ())):
            _dfs(dep)
        return order

    def topological_order(self) -> list[int]:
        """Return node indices with prerequisites before dependents (Kahn).

        Nodes caught in a cycle are left out, which is how build() spots them.
        """
        in_degree = {idx: len(self._prereqs.get(idx, ())) for idx in range(1, self._size + 1)}
        queue: deque[int] = deque(idx for idx, deg in in_degree.items() if deg == 0)
        result: list[int] = []

        while queue:
            idx = queue.popleft()
            result.append(idx)
            for dependent in sorted(self._dependents.get(idx, ())):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        return result
