"""Exception hierarchy for the combat engine and its calling layer.

Rule outcomes such as an out-of-range target or an unusable attack mode are
results, not exceptions. These classes cover malformed input and the
"not enough rolls yet" condition the pipeline reports back to its caller.
"""

from __future__ import annotations

from typing import Any


class CombatError(Exception):
    """Base exception for all combat engine errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context such as list names and indices.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class RecordLookupError(CombatError, LookupError):
    """An index does not point into its list."""

    def __init__(self, list_name: str, index: int | None) -> None:
        message = (
            f"No {list_name} selected"
            if index is None
            else f"Index {index} out of range for {list_name} list"
        )
        super().__init__(
            message,
            details={"list": list_name, "index": index},
        )
        self.list_name = list_name
        self.index = index


class InvalidDocumentError(CombatError, ValueError):
    """A persisted session document failed validation.

    Wraps the pydantic ValidationError, keeping the failing field paths.
    """

    def __init__(self, source: str, errors: list[dict[str, Any]]) -> None:
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in errors]
        super().__init__(
            f"Invalid session document from {source}",
            details={"fields": fields},
        )
        self.source = source
        self.errors = errors


class RollError(CombatError, ValueError):
    """Base for problems with caller-supplied dice rolls."""


class IncompleteRollError(RollError):
    """Fewer rolls were supplied than the stage needs."""

    def __init__(self, label: str, needed: int, supplied: int) -> None:
        super().__init__(
            f"{label} needs {needed} value(s), got {supplied}",
            details={"label": label, "needed": needed, "supplied": supplied},
        )


class InvalidRollError(RollError):
    """A roll value can't have come from the die it was rolled on."""

    def __init__(self, label: str, value: int, size: int) -> None:
        super().__init__(
            f"{label} value {value} is not a valid d{size} result",
            details={"label": label, "value": value, "size": size},
        )
