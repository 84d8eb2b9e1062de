"""Dump commanders and talent trees from a catalog.

Shows each tree in prerequisite order with level caps, stat tags, and the
full prerequisite chain of every node.

Usage:
    python -m scripts.dump_catalog [--catalog PATH]
"""

import argparse
from pathlib import Path

from talent_planner.bootstrap import load_catalog
from talent_planner.engine.errors import CatalogError
from talent_planner.models.catalog import Catalog
from talent_planner.models.constants import TREE_COLORS


def _tree_lines(catalog: Catalog, tree_id: str) -> list[str]:
    tree = catalog.tree(tree_id)
    lines = [f"{tree_id} ({tree.size} nodes, {sum(tree.level_caps)} points to max)"]
    for idx in tree.graph.topological_order():
        node = tree.node(idx)
        stats = ", ".join(node.stats) if node.stats else "-"
        chain = tree.graph.prerequisite_chain(idx)
        needs = " <- " + " <- ".join(str(i) for i in reversed(chain)) if chain else ""
        lines.append(
            f"  #{idx:<2} [{node.kind:<5}] {node.name:<24} cap {node.level_cap}  {stats}{needs}"
        )
    return lines


def main():
    parser = argparse.ArgumentParser(description="Dump talent catalog")
    parser.add_argument("--catalog", type=Path, help="Catalog JSON (default: $TALENT_CATALOG or bundled)")
    args = parser.parse_args()

    try:
        catalog = load_catalog(args.catalog)
    except (FileNotFoundError, CatalogError) as exc:
        print(f"Error: {exc}")
        return

    print(f"Data version {catalog.data_version}; stats: {', '.join(catalog.stat_names)}")
    print()
    print("Commanders:")
    for commander in sorted(catalog.commanders.values(), key=lambda c: c.name):
        trees = " / ".join(commander.tree_id(color) for color in TREE_COLORS)
        print(f"  {commander.commander_id:<6} {commander.name:<20} {trees}")

    for tree_id in sorted(catalog.trees):
        print()
        print("\n".join(_tree_lines(catalog, tree_id)))


if __name__ == "__main__":
    main()
