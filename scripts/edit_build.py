"""Apply talent clicks to a build and print the resulting share token.

Moves are ``color:index+`` (add a point) or ``color:index-`` (remove one).
A count may follow the sign, e.g. ``red:1+3`` adds three points.

Usage examples:
    python -m scripts.edit_build --commander RI red:1+3 red:2+ yellow:1+
    python -m scripts.edit_build --token "1;RI;30000;000000;000" red:1-
"""

from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from talent_planner.bootstrap import load_catalog
from talent_planner.engine.build_state import BuildState, Direction
from talent_planner.models.constants import TreeColor, parse_color


_MOVE_RE = re.compile(r"^(?P<color>[a-zA-Z]+):(?P<index>\d+)(?P<sign>[+-])(?P<count>\d*)$")


@dataclass(slots=True)
class Move:
    color: TreeColor
    index: int
    direction: Direction
    count: int = 1


def _parse_move(raw: str) -> Move:
    match = _MOVE_RE.match(raw.strip())
    if match is None:
        raise ValueError(f"Bad move {raw!r}; expected e.g. red:3+ or blue:2-")
    return Move(
        color=parse_color(match["color"]),
        index=int(match["index"]),
        direction=Direction.INCREASE if match["sign"] == "+" else Direction.DECREASE,
        count=int(match["count"]) if match["count"] else 1,
    )


def _apply_moves(state: BuildState, moves: list[Move]) -> list[str]:
    """Apply *moves* in order; return messages for refused or no-op clicks."""
    notes: list[str] = []
    for move in moves:
        for _ in range(move.count):
            result = state.mutate_node(move.color, move.index, move.direction)
            if not result.applied:
                notes.append(f"{move.color.value}:{move.index} {move.direction.value}: {result.verdict.message}")
                break
    return notes


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Edit a talent build from the command line")
    start = parser.add_mutually_exclusive_group(required=True)
    start.add_argument("--commander", help="Start from an empty build for this commander ID")
    start.add_argument("--token", help="Start from an existing build token")
    parser.add_argument("moves", nargs="*", help="Moves like red:1+ or yellow:2-")
    parser.add_argument("--catalog", type=Path, help="Catalog JSON (default: $TALENT_CATALOG or bundled)")
    args = parser.parse_args(argv)

    try:
        catalog = load_catalog(args.catalog)
        moves = [_parse_move(raw) for raw in args.moves]
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    if args.commander:
        state = BuildState(catalog)
        try:
            state.select_commander(args.commander)
        except ValueError as exc:
            print(f"Error: {exc}")
            return 1
    else:
        state, result = BuildState.from_token(args.token, catalog)
        if result.error is not None:
            print(f"Invalid build ({result.error.kind}): {result.error.message}")
            return 1

    for note in _apply_moves(state, moves):
        print(f"Skipped {note}")
    print(state.token())
    return 0


if __name__ == "__main__":
    sys.exit(main())
