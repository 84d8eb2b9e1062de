"""Configuration knobs for the build engine.

Defaults match the live game. Other balances may change the point cap or
how a rejected share link is handled.
"""

from dataclasses import dataclass

from talent_planner.models.constants import MAX_TALENT_POINTS


# Letters and digits belong to allocations and commander ids; the rest are
# share-link query syntax.
RESERVED_SEPARATOR_CHARS = frozenset("?#&%/=+")


@dataclass(slots=True)
class BuildConfig:
    """Tuneable parameters that aren't stored in the catalog."""

    max_points: int = MAX_TALENT_POINTS   # Total points across all trees
    token_separator: str = ";"
    decode_fallback: str = "empty"        # "empty" | "default_commander"
    default_commander_id: str | None = None

    def __post_init__(self) -> None:
        if self.max_points < 0:
            raise ValueError(f"max_points must be >= 0, got {self.max_points}")
        sep = self.token_separator
        if len(sep) != 1:
            raise ValueError(f"token_separator must be one character, got {sep!r}")
        if sep.isalnum() or sep.isspace() or sep in RESERVED_SEPARATOR_CHARS:
            raise ValueError(
                f"token_separator {sep!r} is not allowed (letters, digits, whitespace "
                f"and {''.join(sorted(RESERVED_SEPARATOR_CHARS))} are reserved)"
            )
        if self.decode_fallback not in ("empty", "default_commander"):
            raise ValueError(
                "decode_fallback must be 'empty' or 'default_commander'"
            )
        if self.decode_fallback == "default_commander" and not self.default_commander_id:
            raise ValueError(
                "decode_fallback 'default_commander' requires default_commander_id"
            )
