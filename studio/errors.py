"""
Studio — Errors

Raised inside action processing and recovered there. None of these reach
the caller of execute(); each becomes a failed ActionResult whose error
string starts with the exception's code.
"""

from __future__ import annotations


class ActionError(Exception):
    """Base for every recoverable action failure."""

    code = "ACTION_ERROR"

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class ValidationError(ActionError):
    """Action is malformed or missing required fields."""

    code = "VALIDATION_ERROR"


class OutOfRangeError(ActionError):
    """Index outside the target array, or a path that resolves to nothing usable."""

    code = "OUT_OF_RANGE"


class UnknownActionError(ActionError):
    """Action type is not recognized."""

    code = "UNKNOWN_ACTION"


class PresetNotFoundError(ActionError):
    """Theme preset id is not in the preset table."""

    code = "PRESET_NOT_FOUND"


class SessionStateError(Exception):
    """An editing-session operation was called from the wrong state."""

    pass
