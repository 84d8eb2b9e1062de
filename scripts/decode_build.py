"""Decode a shared build token or link and print the build.

Usage examples:
    python -m scripts.decode_build "1;RI;35000;300000;300"
    python -m scripts.decode_build "https://example.com/?1;RI;35000;300000;300" --json
    python -m scripts.decode_build "1;RI;35000;300000;300" --catalog my_catalog.json

Exits with status 1 when the token is rejected.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from urllib.parse import unquote, urlparse

from talent_planner.bootstrap import load_catalog
from talent_planner.engine.build_state import BuildState, LoadResult
from talent_planner.engine.ui_model import BuildUiModel
from talent_planner.models.constants import TREE_COLORS
from talent_planner.webui.export_state import build_state_payload


def _query_from_link(raw: str) -> str:
    """Accept a bare token, a ``?token`` query, or a full share link."""
    raw = raw.strip()
    if "://" in raw:
        return "?" + unquote(urlparse(raw).query)
    return unquote(raw)


def _summary_lines(state: BuildState) -> list[str]:
    ui = BuildUiModel(state)
    lines = [ui.title()]
    if state.build.commander_id is None:
        lines.append("  (no build)")
        return lines
    lines.append(
        f"  Points: {ui.points_spent()} spent, {ui.points_remaining()} remaining"
    )
    for color in TREE_COLORS:
        lines.append(f"  {color.value.capitalize()} - {ui.tree_name(color)} ({ui.points_spent(color)} pts)")
        for row in ui.node_rows(color):
            if row.value:
                lines.append(f"    #{row.index:<2} {row.name:<24} {row.label}")
    lines.append("  Stats:")
    for name, value in ui.stat_rows():
        lines.append(f"    {name:<14} {value}")
    for diag in ui.diagnostics():
        lines.append(f"  {diag.severity.upper()}: {diag.message}")
    return lines


def _load(state: BuildState, raw: str) -> LoadResult:
    return state.load_from_query(_query_from_link(raw))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Decode a shared talent build")
    parser.add_argument("token", help="Build token, '?token' query, or full share link")
    parser.add_argument("--catalog", type=Path, help="Catalog JSON (default: $TALENT_CATALOG or bundled)")
    parser.add_argument("--json", action="store_true", help="Print the JSON payload instead of a summary")
    args = parser.parse_args(argv)

    try:
        catalog = load_catalog(args.catalog)
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        return 1

    state = BuildState(catalog)
    result = _load(state, args.token)
    if result.error is not None:
        print(f"Invalid build ({result.error.kind}): {result.error.message}")
        return 1

    if args.json:
        print(json.dumps(build_state_payload(state), indent=2))
    else:
        print("\n".join(_summary_lines(state)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
