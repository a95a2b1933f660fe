"""Error kinds raised by the find/replace engine and the expression store.

Every error carries a machine-readable code plus a short human-readable
message. Callers that initiated an action (commands, the find/replace session,
the CLI) catch :class:`RegexFireError` and turn it into a status outcome; none
of these errors are meant to escape to the process level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class ErrorCode:
    """Constants for error and status codes."""

    INVALID_PATTERN = "invalid_pattern"
    EMPTY_PATTERN = "empty_pattern"
    EMPTY_GROUP = "empty_group"
    MISSING_NAME = "missing_name"


@dataclass
class RegexFireError(Exception):
    """Base exception for engine and store failures.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Short user-facing description.
        details: Additional structured information.
        suggestion: Optional hint on how to recover.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for ``regexfire --json`` output."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


@dataclass
class InvalidPatternError(RegexFireError):
    """Pattern and flags do not form a valid matcher (regex mode only)."""

    error_code: str = field(default=ErrorCode.INVALID_PATTERN)
    message: str = field(default="Invalid pattern or flags")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Check the regex syntax and flags")

    pattern: str | None = field(default=None)
    flags: str | None = field(default=None)
    reason: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.pattern is not None:
            result["pattern"] = self.pattern
        if self.flags is not None:
            result["flags"] = self.flags
        if self.reason is not None:
            result["reason"] = self.reason
        return result


@dataclass
class EmptyPatternError(RegexFireError):
    """The find pattern was empty at submission."""

    error_code: str = field(default=ErrorCode.EMPTY_PATTERN)
    message: str = field(default="Nothing to search for!")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Enter a pattern in the find field")


@dataclass
class EmptyGroupError(RegexFireError):
    """A group resolved to zero stored expressions."""

    error_code: str = field(default=ErrorCode.EMPTY_GROUP)
    message: str = field(default="Preset has no valid expressions")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Add existing expressions to the preset")

    group_name: str | None = field(default=None)

    def __post_init__(self) -> None:
        if self.group_name is not None and self.message == "Preset has no valid expressions":
            self.message = f"Preset '{self.group_name}' has no valid expressions"
        super().__post_init__()

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.group_name is not None:
            result["group"] = self.group_name
        return result


@dataclass
class MissingNameError(RegexFireError):
    """An expression or group was saved without a name."""

    error_code: str = field(default=ErrorCode.MISSING_NAME)
    message: str = field(default="Name is required")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    kind: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.kind is not None:
            result["kind"] = self.kind
        return result


__all__ = [
    "ErrorCode",
    "RegexFireError",
    "InvalidPatternError",
    "EmptyPatternError",
    "EmptyGroupError",
    "MissingNameError",
]
