"""Offset ranges and line/column positions shared by the engine and hosts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterator


def _as_offset(value: Any, label: str) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"MatchRange {label} must be an integer") from exc


@dataclass(slots=True, frozen=True)
class MatchRange:
    """Half-open ``[start, end)`` span of character offsets into a text buffer.

    Bounds are coerced to non-negative integers and swapped when reversed.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        low, high = sorted((_as_offset(self.start, "start"), _as_offset(self.end, "end")))
        object.__setattr__(self, "start", low)
        object.__setattr__(self, "end", high)

    def __iter__(self) -> Iterator[int]:
        return iter((self.start, self.end))

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        """Zero-width spans are never highlighted."""

        return self.length == 0

    def shift(self, offset: int) -> MatchRange:
        return MatchRange(self.start + offset, self.end + offset)

    def to_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> dict[str, int]:
        """Highlight payload shape: ``{"from": start, "to": end}``."""

        return {"from": self.start, "to": self.end}

    @classmethod
    def from_value(cls, value: Any) -> MatchRange:
        """Accept a ``MatchRange``, a ``from``/``to`` (or ``start``/``end``) mapping, or a pair."""

        if isinstance(value, MatchRange):
            return value
        if isinstance(value, Mapping):
            bounds = (value.get("from", value.get("start")), value.get("to", value.get("end")))
            if None in bounds:
                raise ValueError("MatchRange mappings require from/to keys")
            return cls(*bounds)
        if isinstance(value, (str, bytes)):
            raise TypeError("Unsupported MatchRange input")
        try:
            start, end = value
        except TypeError:
            raise TypeError("Unsupported MatchRange input") from None
        except ValueError:
            raise ValueError("MatchRange pairs must have exactly two entries") from None
        return cls(start, end)


@dataclass(slots=True, frozen=True)
class TextPosition:
    """Zero-based line/column location inside a buffer."""

    line: int
    column: int

    def display(self) -> str:
        """One-based ``line:column`` label shown next to matches."""

        return f"{self.line + 1}:{self.column + 1}"


__all__ = ["MatchRange", "TextPosition"]
