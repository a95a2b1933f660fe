"""Command-level actions exposed to the hosting application.

Each action returns a :class:`StatusOutcome`: a short message suitable for a
notice or status bar. Engine errors are caught here, at the boundary where the
action started, and never propagate further.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence, TypeVar, Union

from .core.expressions import Expression, ExpressionGroup
from .engine.compiler import DEFAULT_FLAGS, build_flags, compile_pattern
from .engine.errors import EmptyPatternError, ErrorCode, RegexFireError
from .engine.preview import PreviewService
from .engine.transform import TransformEngine, TransformOptions, TransformOutcome
from .services.expression_store import ExpressionStore
from .services.settings import Settings, SettingsStore

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .editor.buffer import TextBufferHost
    from .find_replace import FindReplaceSession

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
Picker = Callable[[Callable[[str], list[T]]], Union[T, None]]
"""Interactive single choice: receives a ``query -> candidates`` search function."""
MultiPicker = Callable[[Sequence[Expression]], Iterable[Union[str, Expression]]]
"""Interactive multi choice over every saved expression; returns the chosen ones."""


class OutcomeStatus(str, Enum):
    APPLIED = "applied"
    NO_MATCH = "no_match"
    SAVED = "saved"
    DELETED = "deleted"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class StatusOutcome:
    """User-facing result of a command."""

    status: OutcomeStatus
    message: str
    count: int = 0
    error_code: str | None = None
    error: dict[str, Any] | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.ERROR

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status.value, "message": self.message, "count": self.count}
        if self.error is not None:
            payload["error"] = dict(self.error)
        elif self.error_code is not None:
            payload["error"] = {"error": self.error_code, "message": self.message}
        return payload

    @classmethod
    def from_error(cls, exc: RegexFireError) -> StatusOutcome:
        return cls(
            status=OutcomeStatus.ERROR,
            message=exc.message,
            error_code=exc.error_code,
            error=exc.to_dict(),
        )


@dataclass(slots=True, frozen=True)
class CommandEntry:
    """An intent the host can bind to a menu entry, hotkey or palette item."""

    id: str
    title: str
    needs_editor: bool = True


COMMANDS: tuple[CommandEntry, ...] = (
    CommandEntry("find-replace", "Regex find/replace"),
    CommandEntry("save-expression", "Save as named expression", needs_editor=False),
    CommandEntry("run-expression", "Run saved expression"),
    CommandEntry("run-batch", "Run several saved expressions"),
    CommandEntry("run-group", "Run saved preset"),
)


class RegexCommands:
    """Facade wiring settings, the expression store, the engine and previews."""

    def __init__(
        self,
        settings: Settings,
        *,
        settings_store: SettingsStore | None = None,
        engine: TransformEngine | None = None,
        preview: PreviewService | None = None,
    ) -> None:
        self._settings = settings
        self._settings_store = settings_store
        self._engine = engine or TransformEngine(ExpressionStore.from_settings(settings))
        self._preview = preview or PreviewService()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def store(self) -> ExpressionStore:
        return self._engine.store

    @property
    def engine(self) -> TransformEngine:
        return self._engine

    @property
    def preview_service(self) -> PreviewService:
        return self._preview

    def current_flags(self) -> str:
        return build_flags(case_insensitive=self._settings.case_insensitive)

    def options(self, **overrides: bool) -> TransformOptions:
        return TransformOptions.from_settings(self._settings, **overrides)

    # ------------------------------------------------------------------
    # Dialog
    # ------------------------------------------------------------------
    def open_find_replace(self, host: TextBufferHost) -> FindReplaceSession:
        from .find_replace import FindReplaceSession

        return FindReplaceSession(self, host)

    def find_replace(
        self, host: TextBufferHost, find: str, replace: str, options: TransformOptions
    ) -> StatusOutcome:
        """Replace all occurrences of an unsaved find/replace pair."""

        try:
            if not find:
                raise EmptyPatternError()
            outcome = self._engine.run_find_replace(host, find, replace, options)
        except RegexFireError as exc:
            return self._failed("find/replace", exc)
        if not outcome.count:
            return StatusOutcome(OutcomeStatus.NO_MATCH, "No match")
        return StatusOutcome(
            OutcomeStatus.APPLIED,
            f"Made {outcome.count} replacement(s) in {outcome.scope.kind}",
            count=outcome.count,
        )

    # ------------------------------------------------------------------
    # Saved expressions
    # ------------------------------------------------------------------
    def save_expression(
        self,
        name: str,
        *,
        pattern: str | None = None,
        flags: str | None = None,
        replace: str | None = None,
    ) -> StatusOutcome:
        """Save (or overwrite) a named expression.

        Missing fields default to the last find/replace text and the current
        flags, which is what "save current as named expression" needs.
        """

        expression = Expression(
            name=(name or "").strip(),
            pattern=self._settings.find_text if pattern is None else pattern,
            flags=(flags if flags is not None else self.current_flags()).strip() or DEFAULT_FLAGS,
            replace=self._settings.replace_text if replace is None else replace,
        )
        try:
            if expression.name and not expression.pattern:
                raise EmptyPatternError(message="Pattern is required")
            if expression.name:
                compile_pattern(expression.pattern, expression.flags)
            stored = self.store.upsert_expression(expression)
        except RegexFireError as exc:
            if exc.error_code == ErrorCode.INVALID_PATTERN:
                LOGGER.warning("Refusing to save expression %r: %s", expression.name, exc)
                return StatusOutcome(
                    OutcomeStatus.ERROR, "Invalid pattern or flags", error_code=exc.error_code, error=exc.to_dict()
                )
            return self._failed("save expression", exc)
        self.persist()
        return StatusOutcome(OutcomeStatus.SAVED, f"Saved expression: {stored.name}")

    def delete_expression(self, name: str) -> StatusOutcome:
        """Delete an expression; presets that mention it keep the dangling name."""

        if not self.store.delete_expression(name):
            return StatusOutcome(OutcomeStatus.NO_MATCH, f"No saved expression named '{name}'")
        self.persist()
        return StatusOutcome(OutcomeStatus.DELETED, f"Deleted expression: {name}")

    def run_expression(self, host: TextBufferHost, expression: Expression) -> StatusOutcome:
        options = self.options(use_regex=True)
        try:
            outcome = self._engine.run_expression(host, expression, options)
        except RegexFireError as exc:
            return self._failed(f"expression {expression.name!r}", exc)
        scope = outcome.scope.kind
        if not outcome.count:
            return StatusOutcome(OutcomeStatus.NO_MATCH, f"No match for '{expression.name}' in {scope}")
        return StatusOutcome(
            OutcomeStatus.APPLIED,
            f"Applied '{expression.name}': {outcome.count} replacement(s) in {scope}",
            count=outcome.count,
        )

    def run_saved_expression(self, host: TextBufferHost, picker: Picker[Expression]) -> StatusOutcome:
        """Let ``picker`` choose an expression by name, then run it."""

        expression = picker(self.store.find_expressions)
        if expression is None:
            return StatusOutcome(OutcomeStatus.CANCELLED, "Cancelled")
        return self.run_expression(host, expression)

    # ------------------------------------------------------------------
    # Batches and presets
    # ------------------------------------------------------------------
    def run_batch(self, host: TextBufferHost, expressions: Sequence[Expression]) -> StatusOutcome:
        if not expressions:
            return StatusOutcome(OutcomeStatus.CANCELLED, "No expressions selected")
        try:
            outcome = self._engine.run_batch(host, expressions, self.options(use_regex=True))
        except RegexFireError as exc:
            return self._failed("batch", exc)
        return self._batch_outcome(outcome)

    def run_selected_batch(self, host: TextBufferHost, picker: MultiPicker) -> StatusOutcome:
        """Let ``picker`` tick saved expressions; the chosen ones run in stored order."""

        available = self.store.expressions
        if not available:
            return StatusOutcome(OutcomeStatus.CANCELLED, "No saved expressions available")
        chosen = [item.name if isinstance(item, Expression) else str(item) for item in picker(available)]
        return self.run_batch(host, self.store.resolve_names(chosen))

    def save_group(self, name: str, items: Iterable[str]) -> StatusOutcome:
        names = tuple(items)
        if not names and (name or "").strip():
            return StatusOutcome(
                OutcomeStatus.ERROR, "Select at least one expression", error_code=ErrorCode.EMPTY_GROUP
            )
        try:
            stored = self.store.upsert_group(ExpressionGroup(name=name, items=names))
        except RegexFireError as exc:
            return self._failed("save preset", exc)
        self.persist()
        return StatusOutcome(OutcomeStatus.SAVED, f"Saved preset: {stored.name}")

    def delete_group(self, name: str) -> StatusOutcome:
        if not self.store.delete_group(name):
            return StatusOutcome(OutcomeStatus.NO_MATCH, f"No saved preset named '{name}'")
        self.persist()
        return StatusOutcome(OutcomeStatus.DELETED, f"Deleted preset: {name}")

    def run_group(self, host: TextBufferHost, group: ExpressionGroup) -> StatusOutcome:
        try:
            outcome = self._engine.run_group(host, group, self.options(use_regex=True))
        except RegexFireError as exc:
            return self._failed(f"preset {group.name!r}", exc)
        return self._batch_outcome(outcome)

    def run_saved_group(self, host: TextBufferHost, picker: Picker[ExpressionGroup]) -> StatusOutcome:
        group = picker(self.store.find_groups)
        if group is None:
            return StatusOutcome(OutcomeStatus.CANCELLED, "Cancelled")
        return self.run_group(host, group)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def persist(self) -> bool:
        """Copy the store into the settings and write them; failures are only logged."""

        expressions, groups = self.store.export()
        self._settings.saved_expressions = expressions
        self._settings.saved_groups = groups
        if self._settings_store is None:
            return False
        try:
            self._settings_store.save(self._settings)
        except OSError as exc:
            LOGGER.warning("Could not persist settings to %s: %s", self._settings_store.path, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @staticmethod
    def _batch_outcome(outcome: TransformOutcome) -> StatusOutcome:
        status = OutcomeStatus.APPLIED if outcome.count else OutcomeStatus.NO_MATCH
        return StatusOutcome(
            status,
            f"Batch applied {outcome.expression_count} expression(s), {outcome.count} replacement(s)",
            count=outcome.count,
        )

    @staticmethod
    def _failed(action: str, exc: RegexFireError) -> StatusOutcome:
        LOGGER.warning("%s failed: %s", action, exc)
        return StatusOutcome.from_error(exc)


__all__ = [
    "COMMANDS",
    "CommandEntry",
    "MultiPicker",
    "OutcomeStatus",
    "Picker",
    "RegexCommands",
    "StatusOutcome",
]
