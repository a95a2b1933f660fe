"""Name-keyed storage for saved expressions and presets.

Both collections share one ordered, upsert-by-name implementation
(:class:`NamedCollection`). The store never persists anything itself; callers
write the exported lists through :class:`~regexfire.services.settings.SettingsStore`
after a successful mutation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, Iterable, Iterator, Protocol, TypeVar

from ..core.expressions import Expression, ExpressionGroup
from ..engine.errors import MissingNameError

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .settings import Settings

LOGGER = logging.getLogger(__name__)


class Named(Protocol):
    @property
    def name(self) -> str: ...


T = TypeVar("T", bound=Named)


class NamedCollection(Generic[T]):
    """Ordered sequence of records kept unique by their ``name``."""

    __slots__ = ("_items", "_kind")

    def __init__(self, items: Iterable[T] = (), *, kind: str = "item") -> None:
        self._kind = kind
        self._items: list[T] = []
        for item in items:
            self.upsert(item)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return any(item.name == name for item in self._items)

    @property
    def kind(self) -> str:
        return self._kind

    def names(self) -> list[str]:
        return [item.name for item in self._items]

    def index_of(self, name: str) -> int:
        for index, item in enumerate(self._items):
            if item.name == name:
                return index
        return -1

    def get(self, name: str) -> T | None:
        index = self.index_of(name)
        return self._items[index] if index >= 0 else None

    def upsert(self, item: T) -> bool:
        """Replace the record with the same name in place, or append it.

        Returns ``True`` when an existing record was replaced.
        """

        if not item.name:
            raise MissingNameError(message="Name is required", kind=self._kind)
        index = self.index_of(item.name)
        if index >= 0:
            self._items[index] = item
            return True
        self._items.append(item)
        return False

    def delete(self, name: str) -> bool:
        """Remove the record called ``name``; returns whether anything was removed."""

        before = len(self._items)
        self._items = [item for item in self._items if item.name != name]
        return len(self._items) != before

    def find(self, query: str) -> list[T]:
        """Case-insensitive substring search over names, in stored order."""

        needle = (query or "").lower()
        return [item for item in self._items if needle in item.name.lower()]


class ExpressionStore:
    """Saved expressions and presets, both keyed by name.

    Presets reference expressions by name only. Deleting an expression leaves
    presets untouched; dangling names are dropped when a preset is resolved.
    """

    __slots__ = ("_expressions", "_groups")

    def __init__(
        self,
        expressions: Iterable[Expression] = (),
        groups: Iterable[ExpressionGroup] = (),
    ) -> None:
        self._expressions: NamedCollection[Expression] = NamedCollection(expressions, kind="expression")
        self._groups: NamedCollection[ExpressionGroup] = NamedCollection(groups, kind="group")

    @classmethod
    def from_settings(cls, settings: Settings) -> ExpressionStore:
        return cls(settings.saved_expressions, settings.saved_groups)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    @property
    def expressions(self) -> list[Expression]:
        return list(self._expressions)

    @property
    def groups(self) -> list[ExpressionGroup]:
        return list(self._groups)

    def export(self) -> tuple[list[Expression], list[ExpressionGroup]]:
        """Return copies of both collections in stored order, ready to persist."""

        return self.expressions, self.groups

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------
    def upsert_expression(self, expression: Expression) -> Expression:
        """Save ``expression`` under its (stripped) name and return the stored record."""

        name = (expression.name or "").strip()
        if not name:
            raise MissingNameError(message="Name is required", kind="expression")
        stored = Expression(name=name, pattern=expression.pattern, flags=expression.flags, replace=expression.replace)
        replaced = self._expressions.upsert(stored)
        LOGGER.debug("%s expression %r", "Updated" if replaced else "Added", name)
        return stored

    def delete_expression(self, name: str) -> bool:
        removed = self._expressions.delete(name)
        LOGGER.debug("Delete expression %r: removed=%s", name, removed)
        return removed

    def get_expression(self, name: str) -> Expression | None:
        return self._expressions.get(name)

    def find_expressions(self, query: str) -> list[Expression]:
        return self._expressions.find(query)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    def upsert_group(self, group: ExpressionGroup) -> ExpressionGroup:
        name = (group.name or "").strip()
        if not name:
            raise MissingNameError(message="Name is required", kind="group")
        stored = ExpressionGroup(name=name, items=group.items)
        replaced = self._groups.upsert(stored)
        LOGGER.debug("%s preset %r (%d item(s))", "Updated" if replaced else "Added", name, len(stored.items))
        return stored

    def delete_group(self, name: str) -> bool:
        removed = self._groups.delete(name)
        LOGGER.debug("Delete preset %r: removed=%s", name, removed)
        return removed

    def get_group(self, name: str) -> ExpressionGroup | None:
        return self._groups.get(name)

    def find_groups(self, query: str) -> list[ExpressionGroup]:
        return self._groups.find(query)

    def resolve_group(self, group: ExpressionGroup) -> list[Expression]:
        """Return the live expressions a preset refers to.

        Expressions come back in the store's order, filtered by membership in
        ``group.items``. Names with no stored expression are skipped.
        """

        wanted = set(group.items)
        resolved = [expression for expression in self._expressions if expression.name in wanted]
        missing = wanted.difference(expression.name for expression in resolved)
        if missing:
            LOGGER.debug("Preset %r skips missing expression(s): %s", group.name, sorted(missing))
        return resolved

    def resolve_names(self, names: Iterable[str]) -> list[Expression]:
        """Return stored expressions whose names are in ``names``, in store order."""

        wanted = set(names)
        return [expression for expression in self._expressions if expression.name in wanted]


__all__ = ["ExpressionStore", "NamedCollection"]
