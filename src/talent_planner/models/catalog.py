"""Immutable commander and talent-tree catalog.

The catalog is constructed explicitly (from a dict or a JSON file) and
passed to the build engine; there is no module-level cache. All structural
checks happen here, once, so the engine can trust every tree it reads.

JSON layout::

    {
      "data_version": 1,
      "stats": ["Attack", "Defense", "Health", "March Speed"],
      "commanders": {"RI": {"name": "Richard I", "red": "...", "yellow": "...", "blue": "..."}},
      "trees": {"Peacekeeping": {"1": {"name": "...", "kind": "major",
                                        "prereq": [], "dep": [2],
                                        "stats": "Attack", "values": [1, 2]}}}
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from talent_planner.engine.errors import CatalogError
from talent_planner.graph.talent_graph import TalentGraph
from talent_planner.models.constants import (
    DATA_VERSION,
    DEFAULT_STAT_NAMES,
    MAX_LEVEL_CAP,
    NODE_KINDS,
    TREE_COLORS,
    TreeColor,
    parse_color,
)
from talent_planner.models.talent import Commander, TalentNode, TalentTree


def _to_decimal(raw: Any, where: str) -> Decimal:
    if isinstance(raw, bool):
        raise CatalogError(f"{where}: value {raw!r} is not a number")
    try:
        value = raw if isinstance(raw, Decimal) else Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise CatalogError(f"{where}: value {raw!r} is not a number") from None
    if not value.is_finite():
        raise CatalogError(f"{where}: value {raw!r} is not finite")
    return value


def _stat_tags(raw: Any, where: str) -> tuple[str, ...]:
    """Node stats may be absent, a single name, or a list of names."""
    if raw is None or raw == "":
        return ()
    if isinstance(raw, str):
        return (raw,)
    if isinstance(raw, (list, tuple)) and all(isinstance(s, str) for s in raw):
        return tuple(raw)
    raise CatalogError(f"{where}: stats must be a name or a list of names, got {raw!r}")


def _build_tree(tree_id: str, raw_nodes: Mapping[str, Any]) -> TalentTree:
    if not raw_nodes:
        raise CatalogError(f"Tree {tree_id!r} has no nodes")
    try:
        by_index = {int(key): spec for key, spec in raw_nodes.items()}
    except ValueError:
        raise CatalogError(
            f"Tree {tree_id!r}: node keys must be integers, got {sorted(raw_nodes)}"
        ) from None
    if len(by_index) != len(raw_nodes):
        raise CatalogError(
            f"Tree {tree_id!r}: duplicate node indices in keys {sorted(raw_nodes)}"
        )

    prereqs: dict[int, list[int]] = {}
    dependents: dict[int, list[int]] = {}
    for idx, spec in by_index.items():
        prereqs[idx] = list(spec.get("prereq", []) or [])
        if "dep" in spec and spec["dep"] is not None:
            dependents[idx] = list(spec["dep"])
    graph = TalentGraph.build(tree_id, prereqs, dependents)

    nodes: list[TalentNode] = []
    for idx in range(1, len(by_index) + 1):
        spec = by_index[idx]
        where = f"Tree {tree_id!r} node {idx}"
        raw_values = spec.get("values") or []
        values = tuple(_to_decimal(v, where) for v in raw_values)
        if not 1 <= len(values) <= MAX_LEVEL_CAP:
            raise CatalogError(
                f"{where}: level cap must be 1..{MAX_LEVEL_CAP}, got {len(values)}"
            )
        kind = str(spec.get("kind", "minor"))
        if kind not in NODE_KINDS:
            raise CatalogError(f"{where}: kind must be one of {sorted(NODE_KINDS)}, got {kind!r}")
        nodes.append(TalentNode(
            index=idx,
            name=str(spec.get("name") or f"{tree_id} {idx}"),
            kind=kind,
            values=values,
            stats=_stat_tags(spec.get("stats"), where),
            prerequisites=graph.prerequisites_of(idx),
            dependents=graph.dependents_of(idx),
        ))

    return TalentTree(tree_id=tree_id, nodes=tuple(nodes), graph=graph)


@dataclass(frozen=True, slots=True)
class Catalog:
    """Read-only registry of commanders and their talent trees."""

    data_version: int
    stat_names: tuple[str, ...]
    commanders: Mapping[str, Commander]
    trees: Mapping[str, TalentTree]

    # --- Construction --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Catalog:
        """Build and validate a catalog from parsed JSON-like data."""
        try:
            data_version = int(data.get("data_version", DATA_VERSION))
        except (TypeError, ValueError):
            raise CatalogError(
                f"data_version must be an integer, got {data.get('data_version')!r}"
            ) from None
        if data_version < 0:
            raise CatalogError(f"data_version must be >= 0, got {data_version}")

        trees = {
            str(tree_id): _build_tree(str(tree_id), raw_nodes)
            for tree_id, raw_nodes in (data.get("trees") or {}).items()
        }

        commanders: dict[str, Commander] = {}
        for commander_id, spec in (data.get("commanders") or {}).items():
            commander_id = str(commander_id)
            tree_ids: dict[TreeColor, str] = {}
            for color in TREE_COLORS:
                tree_id = spec.get(color.value)
                if tree_id is None:
                    raise CatalogError(
                        f"Commander {commander_id!r} has no {color.value} tree"
                    )
                if str(tree_id) not in trees:
                    raise CatalogError(
                        f"Commander {commander_id!r} references unknown tree {tree_id!r}"
                    )
                tree_ids[color] = str(tree_id)
            commanders[commander_id] = Commander(
                commander_id=commander_id,
                name=str(spec.get("name") or commander_id),
                trees=tree_ids,
            )

        declared = data.get("stats")
        stat_names = list(DEFAULT_STAT_NAMES if declared is None else declared)
        for tree in trees.values():
            for node in tree.nodes:
                for tag in node.stats:
                    if tag not in stat_names:
                        stat_names.append(tag)

        return cls(
            data_version=data_version,
            stat_names=tuple(stat_names),
            commanders=MappingProxyType(commanders),
            trees=MappingProxyType(trees),
        )

    @classmethod
    def from_json(cls, path: Path) -> Catalog:
        """Load a catalog JSON file; numbers are parsed as exact decimals."""
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh, parse_float=Decimal)
        if not isinstance(data, dict):
            raise CatalogError(f"{path}: catalog root must be a JSON object")
        return cls.from_dict(data)

    # --- Queries -------------------------------------------------------------

    def has_commander(self, commander_id: str) -> bool:
        return commander_id in self.commanders

    def commander(self, commander_id: str) -> Commander:
        try:
            return self.commanders[commander_id]
        except KeyError:
            raise ValueError(f"Unknown commander {commander_id!r}") from None

    def commander_by_name(self, name: str) -> Commander | None:
        for commander in self.commanders.values():
            if commander.name == name:
                return commander
        return None

    def tree_id(self, commander_id: str, color: TreeColor | str) -> str:
        return self.commander(commander_id).tree_id(parse_color(color))

    def tree(self, tree_id: str) -> TalentTree:
        try:
            return self.trees[tree_id]
        except KeyError:
            raise ValueError(f"Unknown tree {tree_id!r}") from None

    def tree_for(self, commander_id: str, color: TreeColor | str) -> TalentTree:
        """Return the tree a commander uses for *color*."""
        return self.trees[self.tree_id(commander_id, color)]

    def tree_sizes(self, commander_id: str) -> dict[TreeColor, int]:
        return {color: self.tree_for(commander_id, color).size for color in TREE_COLORS}
