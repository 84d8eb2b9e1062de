"""Exceptions raised while loading catalogs and decoding build tokens.

Decode errors are non-fatal: BuildState catches them, falls back to a
known-good state, and hands the error to the caller for display.
"""

from __future__ import annotations


class CatalogError(ValueError):
    """The catalog data violates a structural rule (bad index, cycle, ...)."""


class DecodeError(ValueError):
    """Base class for every way a shared build token can be rejected."""

    kind = "decode_error"

    def __init__(self, message: str, *, color: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.color = color

    def to_dict(self) -> dict[str, str | None]:
        return {"kind": self.kind, "message": self.message, "color": self.color}


class MalformedToken(DecodeError):
    """Wrong field count, non-integer version, or characters outside the alphabet."""

    kind = "malformed_token"


class UnknownCommander(DecodeError):
    kind = "unknown_commander"


class VersionMismatch(DecodeError):
    """Token was written by a newer data version than the catalog supports."""

    kind = "version_mismatch"


class LengthMismatch(DecodeError):
    kind = "length_mismatch"


class OverflowValue(DecodeError):
    """A decoded level is above its node's level cap."""

    kind = "overflow_value"


class BudgetExceeded(DecodeError):
    kind = "budget_exceeded"
