"""Live match preview: highlight ranges plus a capped, human-readable match list.

Preview runs on every keystroke in the find field, so it never raises: an
empty or uncompilable pattern yields an empty result whose ``status`` says why.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable

from ..core.ranges import MatchRange, TextPosition
from .compiler import compile_pattern
from .errors import InvalidPatternError
from .scanner import iter_matches
from .transform import TransformOptions, read_scope

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..editor.buffer import TextBufferHost

LOGGER = logging.getLogger(__name__)

PREVIEW_ITEM_LIMIT = 200

Locator = Callable[[int], TextPosition]


class PreviewStatus(str, Enum):
    """Why a preview has (or lacks) results."""

    OK = "ok"
    EMPTY = "empty"
    INVALID = "invalid"
    DISABLED = "disabled"


@dataclass(slots=True, frozen=True)
class PreviewItem:
    """One row of the match list."""

    index: int
    text: str
    range: MatchRange
    position: TextPosition | None = None

    def label(self) -> str:
        """``index  text  @ line:col`` with a one-based index."""

        where = f"  @ {self.position.display()}" if self.position is not None else ""
        return f"{self.index + 1}  {self.text}{where}"


@dataclass(slots=True, frozen=True)
class PreviewResult:
    """Outcome of a preview computation.

    ``ranges`` always holds every match (it drives highlighting and the match
    count); ``items`` is capped and ``omitted`` tells how many were cut.
    """

    ranges: tuple[MatchRange, ...] = ()
    items: tuple[PreviewItem, ...] = ()
    truncated: bool = False
    omitted: int = 0
    status: PreviewStatus = PreviewStatus.OK
    error: str | None = field(default=None, compare=False)

    @property
    def match_count(self) -> int:
        return len(self.ranges)

    @property
    def is_valid(self) -> bool:
        return self.status is not PreviewStatus.INVALID

    def summary(self) -> str:
        if self.status is PreviewStatus.INVALID:
            return "Invalid regex"
        return f"Matches: {self.match_count}"

    def more_label(self) -> str | None:
        return f"… {self.omitted} more" if self.truncated else None


class PreviewService:
    """Computes previews and keeps a host's highlight layer in sync.

    The service records which buffers already carry its highlight layer, so
    attaching is done at most once per buffer.
    """

    __slots__ = ("_item_limit", "_attached")

    def __init__(self, *, item_limit: int = PREVIEW_ITEM_LIMIT) -> None:
        if item_limit <= 0:
            raise ValueError("item_limit must be positive")
        self._item_limit = item_limit
        self._attached: set[str] = set()

    @property
    def item_limit(self) -> int:
        return self._item_limit

    def preview(
        self,
        text: str,
        pattern: str,
        flags: str,
        base_offset: int = 0,
        *,
        locate: Locator | None = None,
    ) -> PreviewResult:
        """Scan ``text`` for ``pattern`` without changing anything."""

        if not pattern:
            return PreviewResult(status=PreviewStatus.EMPTY)
        try:
            matcher = compile_pattern(pattern, flags)
        except InvalidPatternError as exc:
            return PreviewResult(status=PreviewStatus.INVALID, error=exc.message)

        ranges: list[MatchRange] = []
        items: list[PreviewItem] = []
        for found in iter_matches(text, matcher):
            if found.is_empty:
                continue
            span = found.to_range(base_offset)
            ranges.append(span)
            if len(items) < self._item_limit:
                position = locate(span.start) if locate is not None else None
                items.append(PreviewItem(index=len(items), text=found.text, range=span, position=position))
        omitted = len(ranges) - len(items)
        return PreviewResult(
            ranges=tuple(ranges),
            items=tuple(items),
            truncated=omitted > 0,
            omitted=omitted,
        )

    def refresh(self, host: TextBufferHost, pattern: str, options: TransformOptions) -> PreviewResult:
        """Recompute the preview for ``host`` and replace its highlights.

        Literal mode has no preview; highlights are cleared instead.
        """

        if not options.use_regex or not pattern:
            self.clear(host)
            status = PreviewStatus.DISABLED if not options.use_regex else PreviewStatus.EMPTY
            return PreviewResult(status=status)
        scope = read_scope(host, selection_only=options.selection_only)
        result = self.preview(
            scope.text,
            pattern,
            options.flags,
            scope.base_offset,
            locate=host.offset_to_position,
        )
        if result.status is PreviewStatus.INVALID:
            LOGGER.debug("Preview pattern %r is invalid: %s", pattern, result.error)
            self.clear(host)
            return result
        self.ensure_attached(host)
        host.set_highlights(result.ranges)
        return result

    def ensure_attached(self, host: TextBufferHost) -> bool:
        """Install the highlight layer on ``host`` once; returns ``True`` if it was new."""

        if self.is_attached(host):
            return False
        host.attach_highlight_layer()
        self._attached.add(host.buffer_id)
        return True

    def is_attached(self, host: TextBufferHost) -> bool:
        """Whether this service already installed its layer on ``host``."""

        return host.buffer_id in self._attached

    def clear(self, host: TextBufferHost) -> None:
        """Remove every highlight from ``host``."""

        self.ensure_attached(host)
        host.clear_highlights()

    def detach(self, host: TextBufferHost) -> None:
        if not self.is_attached(host):
            return
        host.detach_highlight_layer()
        self._attached.discard(host.buffer_id)


__all__ = [
    "PREVIEW_ITEM_LIMIT",
    "PreviewItem",
    "PreviewResult",
    "PreviewService",
    "PreviewStatus",
]
