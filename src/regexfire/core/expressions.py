"""Saved expression and preset (group) records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..engine.compiler import DEFAULT_FLAGS


@dataclass(slots=True, frozen=True)
class Expression:
    """A named pattern with its flags and replacement template."""

    name: str
    pattern: str
    flags: str = DEFAULT_FLAGS
    replace: str = ""

    def describe(self) -> str:
        """One-line summary used by pickers: ``/flags pattern -> replace``."""

        return f"/{self.flags} {self.pattern} -> {self.replace}"

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "pattern": self.pattern,
            "flags": self.flags,
            "replace": self.replace,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Expression:
        """Rebuild a stored entry; only a missing ``flags`` key falls back to ``gm``."""

        flags = payload.get("flags")
        return cls(
            name=str(payload.get("name") or ""),
            pattern=str(payload.get("pattern") or ""),
            flags=DEFAULT_FLAGS if flags is None else str(flags),
            replace=str(payload.get("replace") or ""),
        )


@dataclass(slots=True, frozen=True)
class ExpressionGroup:
    """An ordered preset of expression names.

    ``items`` are looked up by name when the group runs; names whose
    expression no longer exists are skipped at that point.
    """

    name: str
    items: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(str(item) for item in self.items))

    def describe(self) -> str:
        return f"Items: {', '.join(self.items)}"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "items": list(self.items)}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ExpressionGroup:
        items: Iterable[Any] = payload.get("items") or ()
        return cls(name=str(payload.get("name") or ""), items=tuple(items))


__all__ = ["Expression", "ExpressionGroup"]
