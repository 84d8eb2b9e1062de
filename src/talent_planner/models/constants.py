"""Tree colors, stat names, and game-wide defaults.

The point cap and data version track the live game. Catalogs and
BuildConfig may override them for other game balances.
"""

from enum import Enum


class TreeColor(str, Enum):
    """Color of a commander's talent tree.

    Every commander has exactly one tree per color.
    """
    RED = "red"
    YELLOW = "yellow"
    BLUE = "blue"


# Canonical order used by the token and by every per-color listing.
TREE_COLORS: tuple[TreeColor, ...] = (TreeColor.RED, TreeColor.YELLOW, TreeColor.BLUE)

# Stats every build reports, even when no talent touches them.
DEFAULT_STAT_NAMES: tuple[str, ...] = ("Attack", "Defense", "Health", "March Speed")

NODE_KINDS = frozenset({"major", "minor"})

MAX_TALENT_POINTS = 74       # Global point cap across all three trees
DATA_VERSION = 1             # Newest token format this build understands
MAX_LEVEL_CAP = 9            # One token character holds a single digit


def parse_color(color: "TreeColor | str") -> TreeColor:
    """Coerce a color name (any case) to TreeColor."""
    if isinstance(color, TreeColor):
        return color
    try:
        return TreeColor(str(color).strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown tree color {color!r} (expected one of "
            f"{', '.join(c.value for c in TREE_COLORS)})"
        ) from None
