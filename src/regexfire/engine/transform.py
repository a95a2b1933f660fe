"""Apply saved or ad-hoc expressions to a document or selection.

The engine has two layers:

* text operations (:meth:`TransformEngine.apply_one`, ``apply_batch``,
  ``apply_group``) that map a string to a :class:`TransformResult`;
* host operations (``run_*``) that read the scope from a
  :class:`~regexfire.editor.buffer.TextBufferHost`, apply one of the text
  operations and write the result back with a single call.

Batches compose sequentially: each expression sees the output of the one
before it, and each count is measured against that moving text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Sequence

from ..core.expressions import Expression, ExpressionGroup
from ..services.expression_store import ExpressionStore
from .compiler import Matcher, build_flags, compile_pattern
from .errors import EmptyGroupError, EmptyPatternError
from .replacement import EscapeOptions, expand_template, resolve_escapes
from .scanner import scan

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..editor.buffer import TextBufferHost
    from ..services.settings import Settings

LOGGER = logging.getLogger(__name__)

ScopeKind = Literal["document", "selection"]


@dataclass(slots=True, frozen=True)
class TransformOptions:
    """Explicit configuration for one engine call."""

    use_regex: bool = True
    selection_only: bool = False
    case_insensitive: bool = False
    expand_line_break: bool = False
    expand_tab: bool = False

    @property
    def flags(self) -> str:
        return build_flags(case_insensitive=self.case_insensitive)

    @property
    def escapes(self) -> EscapeOptions:
        return EscapeOptions(expand_line_break=self.expand_line_break, expand_tab=self.expand_tab)

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: bool) -> TransformOptions:
        values = {
            "use_regex": settings.use_regex,
            "selection_only": settings.selection_only,
            "case_insensitive": settings.case_insensitive,
            "expand_line_break": settings.expand_line_break,
            "expand_tab": settings.expand_tab,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(slots=True, frozen=True)
class ScopeText:
    """The text under operation and where it starts in the document."""

    text: str
    base_offset: int = 0
    kind: ScopeKind = "document"


@dataclass(slots=True, frozen=True)
class StepResult:
    """Match count of one expression inside a batch."""

    name: str
    count: int


@dataclass(slots=True, frozen=True)
class TransformResult:
    """Rewritten text plus the number of replacements made."""

    text: str
    count: int
    steps: tuple[StepResult, ...] = ()


@dataclass(slots=True, frozen=True)
class TransformOutcome:
    """Result of a host-level run, including which scope was rewritten."""

    result: TransformResult
    scope: ScopeText
    expression_count: int = 1

    @property
    def count(self) -> int:
        return self.result.count


@dataclass(slots=True, frozen=True)
class _PreparedStep:
    expression: Expression
    matcher: Matcher | None


def read_scope(host: TextBufferHost, *, selection_only: bool) -> ScopeText:
    """Read the selection or the whole document, depending on ``selection_only``."""

    if selection_only:
        return ScopeText(text=host.get_selection_text(), base_offset=host.selection_start(), kind="selection")
    return ScopeText(text=host.get_text(), base_offset=0, kind="document")


def write_scope(host: TextBufferHost, scope: ScopeText, text: str) -> None:
    """Write ``text`` back the same way ``scope`` was read."""

    if scope.kind == "selection":
        host.replace_selection(text)
    else:
        host.set_text(text)


class TransformEngine:
    """Runs expressions, batches and presets over a text scope."""

    def __init__(self, store: ExpressionStore | None = None) -> None:
        self._store = store if store is not None else ExpressionStore()

    @property
    def store(self) -> ExpressionStore:
        return self._store

    # ------------------------------------------------------------------
    # Text operations
    # ------------------------------------------------------------------
    def apply_one(
        self,
        text: str,
        expression: Expression,
        *,
        use_regex: bool = True,
        escapes: EscapeOptions | None = None,
    ) -> TransformResult:
        """Replace every occurrence of ``expression`` in ``text``.

        A zero count (no match) returns ``text`` unchanged. In literal mode the
        pattern and replacement are used verbatim.
        """

        step = self._prepare(expression, use_regex=use_regex)
        updated, count = self._run_step(text, step, escapes)
        return TransformResult(text=updated, count=count, steps=(StepResult(expression.name, count),))

    def apply_batch(
        self,
        text: str,
        expressions: Sequence[Expression],
        *,
        use_regex: bool = True,
        escapes: EscapeOptions | None = None,
    ) -> TransformResult:
        """Apply ``expressions`` in order, each one to the previous one's output.

        Every member is validated and compiled before the first pass, so a bad
        member aborts the batch without any partial rewrite.
        """

        prepared = [self._prepare(expression, use_regex=use_regex) for expression in expressions]
        total = 0
        steps: list[StepResult] = []
        for step in prepared:
            text, count = self._run_step(text, step, escapes)
            total += count
            steps.append(StepResult(step.expression.name, count))
        return TransformResult(text=text, count=total, steps=tuple(steps))

    def apply_group(
        self,
        text: str,
        group: ExpressionGroup,
        *,
        use_regex: bool = True,
        escapes: EscapeOptions | None = None,
    ) -> TransformResult:
        """Resolve ``group`` against the store and run it as a batch."""

        expressions = self.resolve_group(group)
        return self.apply_batch(text, expressions, use_regex=use_regex, escapes=escapes)

    def resolve_group(self, group: ExpressionGroup) -> list[Expression]:
        """Return the group's live expressions or raise :class:`EmptyGroupError`."""

        expressions = self._store.resolve_group(group)
        if not expressions:
            raise EmptyGroupError(group_name=group.name)
        return expressions

    # ------------------------------------------------------------------
    # Host operations
    # ------------------------------------------------------------------
    def run_expression(
        self, host: TextBufferHost, expression: Expression, options: TransformOptions
    ) -> TransformOutcome:
        scope = read_scope(host, selection_only=options.selection_only)
        result = self.apply_one(scope.text, expression, use_regex=options.use_regex, escapes=options.escapes)
        return self._commit(host, scope, result, expression_count=1)

    def run_find_replace(
        self, host: TextBufferHost, find: str, replace: str, options: TransformOptions
    ) -> TransformOutcome:
        """Run an unsaved find/replace pair using the flags implied by ``options``."""

        expression = Expression(name="", pattern=find, flags=options.flags, replace=replace)
        return self.run_expression(host, expression, options)

    def run_batch(
        self, host: TextBufferHost, expressions: Sequence[Expression], options: TransformOptions
    ) -> TransformOutcome:
        scope = read_scope(host, selection_only=options.selection_only)
        result = self.apply_batch(scope.text, expressions, use_regex=options.use_regex, escapes=options.escapes)
        return self._commit(host, scope, result, expression_count=len(expressions))

    def run_group(
        self, host: TextBufferHost, group: ExpressionGroup, options: TransformOptions
    ) -> TransformOutcome:
        expressions = self.resolve_group(group)
        return self.run_batch(host, expressions, options)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _commit(
        self, host: TextBufferHost, scope: ScopeText, result: TransformResult, *, expression_count: int
    ) -> TransformOutcome:
        write_scope(host, scope, result.text)
        LOGGER.debug(
            "Rewrote %s (%d chars) with %d expression(s): %d replacement(s)",
            scope.kind,
            len(scope.text),
            expression_count,
            result.count,
        )
        return TransformOutcome(result=result, scope=scope, expression_count=expression_count)

    @staticmethod
    def _prepare(expression: Expression, *, use_regex: bool) -> _PreparedStep:
        if not expression.pattern:
            raise EmptyPatternError(details={"expression": expression.name} if expression.name else {})
        matcher = compile_pattern(expression.pattern, expression.flags) if use_regex else None
        return _PreparedStep(expression=expression, matcher=matcher)

    @staticmethod
    def _run_step(text: str, step: _PreparedStep, escapes: EscapeOptions | None) -> tuple[str, int]:
        template = resolve_escapes(step.expression.replace, escapes)
        if step.matcher is None:
            pieces = text.split(step.expression.pattern)
            count = len(pieces) - 1
            return (template.join(pieces) if count else text), count

        matches = scan(text, step.matcher)
        if not matches:
            return text, 0
        chunks: list[str] = []
        cursor = 0
        for found in matches:
            chunks.append(text[cursor : found.start])
            chunks.append(expand_template(template, found.match, text))
            cursor = found.end
        chunks.append(text[cursor:])
        return "".join(chunks), len(matches)


__all__ = [
    "ScopeKind",
    "ScopeText",
    "StepResult",
    "TransformEngine",
    "TransformOptions",
    "TransformOutcome",
    "TransformResult",
    "read_scope",
    "write_scope",
]
