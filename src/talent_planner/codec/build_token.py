"""Shareable build token codec.

Token layout (fields joined by ``;``)::

    <version>;<commander id>;<red>;<yellow>;<blue>

Each color field holds one character per node, in node order. The level
digit d of a node is written as ``TOKEN_ALPHABET[d]``; decoding applies
the inverse table. Decoding checks structure and bounds only; it does not
walk prerequisite chains, so builds made under older balance data still
load.
"""

from __future__ import annotations

from talent_planner.engine.build import Build
from talent_planner.engine.errors import (
    LengthMismatch,
    MalformedToken,
    OverflowValue,
    UnknownCommander,
    VersionMismatch,
)
from talent_planner.engine.stat_aggregator import StatAggregator
from talent_planner.models.catalog import Catalog
from talent_planner.models.constants import TREE_COLORS, TreeColor


TOKEN_SEPARATOR = ";"
TOKEN_FIELD_COUNT = 5

# Digit d (0-9) is written as TOKEN_ALPHABET[d]. URL-safe, one char per digit.
TOKEN_ALPHABET = "0213456789"

_ENCODE: dict[int, str] = dict(enumerate(TOKEN_ALPHABET))
_DECODE: dict[str, int] = {ch: digit for digit, ch in _ENCODE.items()}


# ---------------------------------------------------------------------------
# Allocation fields
# ---------------------------------------------------------------------------


def encode_allocation(levels: tuple[int, ...] | list[int]) -> str:
    """Encode a sequence of single-digit levels into a color field."""
    chars: list[str] = []
    for level in levels:
        ch = _ENCODE.get(level)
        if ch is None:
            raise ValueError(f"Level {level} cannot be encoded (expected 0..9)")
        chars.append(ch)
    return "".join(chars)


def decode_allocation(field: str, color: TreeColor | None = None) -> tuple[int, ...]:
    """Decode a color field back into levels."""
    levels: list[int] = []
    for pos, ch in enumerate(field, start=1):
        digit = _DECODE.get(ch)
        if digit is None:
            where = f" in {color.value} tree" if color is not None else ""
            raise MalformedToken(
                f"Invalid character {ch!r} at position {pos}{where}",
                color=color.value if color is not None else None,
            )
        levels.append(digit)
    return tuple(levels)


# ---------------------------------------------------------------------------
# Whole builds
# ---------------------------------------------------------------------------


def encode_build(build: Build, separator: str = TOKEN_SEPARATOR) -> str:
    """Encode *build* into a share token."""
    if build.commander_id is None:
        raise ValueError("Cannot encode a build without a commander")
    if separator in build.commander_id or separator in TOKEN_ALPHABET:
        raise ValueError(
            f"Separator {separator!r} clashes with commander ID {build.commander_id!r} "
            "or the allocation alphabet"
        )
    fields = [str(build.data_version), build.commander_id]
    fields.extend(encode_allocation(build.allocation(color)) for color in TREE_COLORS)
    return separator.join(fields)


def decode_build(
    token: str,
    catalog: Catalog,
    aggregator: StatAggregator | None = None,
    separator: str = TOKEN_SEPARATOR,
) -> Build:
    """Decode a share token into a Build with freshly computed stats.

    Raises a DecodeError subclass describing the first problem found.
    """
    fields = token.split(separator)
    if len(fields) != TOKEN_FIELD_COUNT:
        raise MalformedToken(
            f"Incorrect number of build parameters "
            f"(length: {len(fields)}, expected: {TOKEN_FIELD_COUNT})"
        )
    raw_version, commander_id, *color_fields = fields

    if not (raw_version.isascii() and raw_version.isdigit()):
        raise MalformedToken(f"Version {raw_version!r:.20} is not a non-negative integer")
    try:
        version = int(raw_version)
    except ValueError:
        # Digit strings past the interpreter's int conversion limit.
        raise MalformedToken(f"Version field is too long ({len(raw_version)} digits)") from None

    if not catalog.has_commander(commander_id):
        raise UnknownCommander(f"Unknown commander ID {commander_id!r}")
    if version > catalog.data_version:
        raise VersionMismatch(
            f"Incorrect game data version ({version}, newest supported is "
            f"{catalog.data_version})"
        )

    allocations: dict[str, tuple[int, ...]] = {}
    for color, field in zip(TREE_COLORS, color_fields):
        tree = catalog.tree_for(commander_id, color)
        levels = decode_allocation(field, color)
        if len(levels) != tree.size:
            raise LengthMismatch(
                f"Incorrect number of talents ({color.value} tree): "
                f"got {len(levels)}, expected {tree.size}",
                color=color.value,
            )
        for node, level in zip(tree.nodes, levels):
            if level > node.level_cap:
                raise OverflowValue(
                    f"Too many points assigned in talent {node.name!r} "
                    f"({color.value} tree): {level} > {node.level_cap}",
                    color=color.value,
                )
        allocations[color.value] = levels

    build = Build(commander_id=commander_id, data_version=version, **allocations)
    stats = (aggregator or StatAggregator(catalog)).recompute(build)
    return Build(commander_id=commander_id, data_version=version, stats=stats, **allocations)


# ---------------------------------------------------------------------------
# Share links
# ---------------------------------------------------------------------------


def build_query(build: Build, separator: str = TOKEN_SEPARATOR) -> str:
    """Query string for a share link (``?`` + token)."""
    return "?" + encode_build(build, separator)


def token_from_query(query: str | None) -> str | None:
    """Extract the token from a link query string; None when the link has no build."""
    if query is None:
        return None
    token = query.strip()
    if token.startswith("?"):
        token = token[1:]
    return token or None
