"""Host text-buffer capability set plus a headless implementation.

The engine only talks to buffers through :class:`TextBufferHost`. The bundled
:class:`EditorBuffer` keeps everything in memory so commands and tests run
without a GUI. When it is handed a PySide6 ``QPlainTextEdit``, text and
selection are mirrored into the widget and preview highlights are rendered as
extra selections.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from typing import Any, Iterable, Protocol, runtime_checkable

from ..core.ranges import MatchRange, TextPosition
from .document_model import DocumentState, SelectionRange

LOGGER = logging.getLogger(__name__)

QTextCursor: Any = None
QTextEdit: Any = None
QColor: Any = None

try:  # pragma: no cover - PySide6 optional in CI
    from PySide6.QtGui import QColor as _QtColor, QTextCursor as _QtTextCursor
    from PySide6.QtWidgets import QTextEdit as _QtTextEdit

    QTextCursor = _QtTextCursor
    QTextEdit = _QtTextEdit
    QColor = _QtColor
except Exception:  # pragma: no cover - runtime fallback
    pass

HIGHLIGHT_RGB: tuple[int, int, int] = (255, 214, 102)


def _to_qt_position(text: str, offset: int) -> int:
    """Map a code-point offset to the UTF-16 position Qt cursors use."""

    if text.isascii():
        return offset
    return len(text[:offset].encode("utf-16-le")) // 2


def _from_qt_position(text: str, position: int) -> int:
    if text.isascii():
        return min(position, len(text))
    units = 0
    for index, char in enumerate(text):
        if units >= position:
            return index
        units += 2 if ord(char) > 0xFFFF else 1
    return len(text)


@runtime_checkable
class TextBufferHost(Protocol):
    """Operations the engine needs from the editor hosting the active buffer."""

    @property
    def buffer_id(self) -> str: ...

    def get_text(self) -> str: ...

    def set_text(self, text: str) -> None: ...

    def get_selection_text(self) -> str: ...

    def replace_selection(self, text: str) -> None: ...

    def selection_start(self) -> int: ...

    def offset_to_position(self, offset: int) -> TextPosition: ...

    def position_to_offset(self, position: TextPosition) -> int: ...

    def attach_highlight_layer(self) -> None: ...

    def detach_highlight_layer(self) -> None: ...

    def set_highlights(self, ranges: Iterable[MatchRange]) -> None: ...

    def clear_highlights(self) -> None: ...


class EditorBuffer:
    """In-memory :class:`TextBufferHost` with an optional Qt widget mirror."""

    def __init__(self, document: DocumentState | None = None, *, widget: Any | None = None) -> None:
        self._document = document or DocumentState()
        self._widget = widget
        self._line_starts: tuple[int, ...] | None = None
        self._line_starts_version = -1
        self._highlights: tuple[MatchRange, ...] = ()
        self._layer_attached = False
        self._attach_count = 0
        self._highlight_brush: Any | None = None
        if widget is not None:
            self._push_text_to_widget()

    @classmethod
    def from_text(cls, text: str, *, selection: tuple[int, int] | None = None) -> EditorBuffer:
        buffer = cls(DocumentState(text=text))
        if selection is not None:
            buffer.set_selection(*selection)
        return buffer

    # ------------------------------------------------------------------
    # Document accessors
    # ------------------------------------------------------------------
    @property
    def buffer_id(self) -> str:
        return self._document.document_id

    @property
    def document(self) -> DocumentState:
        self._pull_from_widget()
        return self._document

    def get_text(self) -> str:
        self._pull_from_widget()
        return self._document.text

    def set_text(self, text: str) -> None:
        """Replace the whole document; the selection is clamped to the new text."""

        self._pull_from_widget()
        if text == self._document.text:
            return
        self._document.update_text(text)
        selection = self._document.selection
        start, end = self._clamp_range(selection.start, selection.end)
        self._document.selection = SelectionRange(start, end)
        self._push_text_to_widget()

    def selection_range(self) -> SelectionRange:
        self._pull_from_widget()
        selection = self._document.selection
        return SelectionRange(selection.start, selection.end)

    def set_selection(self, start: int, end: int) -> None:
        begin, finish = self._clamp_range(start, end)
        self._document.selection = SelectionRange(begin, finish)
        self._push_selection_to_widget()

    def selection_start(self) -> int:
        return self.selection_range().start

    def get_selection_text(self) -> str:
        self._pull_from_widget()
        return self._document.selected_text()

    def replace_selection(self, text: str) -> None:
        """Swap the selected slice for ``text`` and select the inserted text."""

        self._pull_from_widget()
        start, end = self._document.selection.as_tuple()
        current = self._document.text
        self._document.update_text(current[:start] + text + current[end:])
        self._document.selection = SelectionRange(start, start + len(text))
        self._push_text_to_widget()

    # ------------------------------------------------------------------
    # Offsets
    # ------------------------------------------------------------------
    def offset_to_position(self, offset: int) -> TextPosition:
        starts = self._line_start_offsets()
        offset = max(0, min(int(offset), len(self._document.text)))
        line = bisect_right(starts, offset) - 1
        return TextPosition(line=line, column=offset - starts[line])

    def position_to_offset(self, position: TextPosition) -> int:
        starts = self._line_start_offsets()
        text = self._document.text
        line = max(0, min(int(position.line), len(starts) - 1))
        line_start = starts[line]
        line_end = starts[line + 1] - 1 if line + 1 < len(starts) else len(text)
        return line_start + max(0, min(int(position.column), line_end - line_start))

    def _line_start_offsets(self) -> tuple[int, ...]:
        self._pull_from_widget()
        if self._line_starts is None or self._line_starts_version != self._document.version_id:
            starts = [0]
            text = self._document.text
            index = text.find("\n")
            while index >= 0:
                starts.append(index + 1)
                index = text.find("\n", index + 1)
            self._line_starts = tuple(starts)
            self._line_starts_version = self._document.version_id
        return self._line_starts

    # ------------------------------------------------------------------
    # Highlights
    # ------------------------------------------------------------------
    @property
    def highlight_layer_attached(self) -> bool:
        return self._layer_attached

    @property
    def attach_count(self) -> int:
        """How many times a highlight layer was actually installed."""

        return self._attach_count

    @property
    def highlights(self) -> tuple[MatchRange, ...]:
        return self._highlights

    def attach_highlight_layer(self) -> None:
        if self._layer_attached:
            return
        self._layer_attached = True
        self._attach_count += 1
        LOGGER.debug("Highlight layer attached to buffer %s", self.buffer_id)

    def detach_highlight_layer(self) -> None:
        self._layer_attached = False
        self._highlights = ()
        self._render_highlights()

    def set_highlights(self, ranges: Iterable[MatchRange]) -> None:
        """Replace the highlighted spans; empty and out-of-range spans are dropped."""

        if not self._layer_attached:
            LOGGER.debug("Ignoring highlights for buffer %s without a highlight layer", self.buffer_id)
            return
        length = len(self.get_text())
        normalized: list[MatchRange] = []
        for item in ranges:
            span = MatchRange.from_value(item)
            start, end = self._clamp_range(span.start, span.end, length=length)
            if end > start:
                normalized.append(MatchRange(start, end))
        self._highlights = tuple(normalized)
        self._render_highlights()

    def clear_highlights(self) -> None:
        if not self._highlights:
            return
        self._highlights = ()
        self._render_highlights()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _clamp_range(self, start: int, end: int, *, length: int | None = None) -> tuple[int, int]:
        limit = len(self._document.text) if length is None else length
        start = max(0, min(int(start), limit))
        end = max(0, min(int(end), limit))
        if end < start:
            start, end = end, start
        return start, end

    def _pull_from_widget(self) -> None:
        widget = self._widget
        if widget is None:
            return
        text = widget.toPlainText()
        if text != self._document.text:
            self._document.update_text(text)
        cursor = widget.textCursor()
        self._document.selection = SelectionRange(
            _from_qt_position(text, cursor.selectionStart()),
            _from_qt_position(text, cursor.selectionEnd()),
        )

    def _push_text_to_widget(self) -> None:
        widget = self._widget
        if widget is None:
            return
        widget.blockSignals(True)
        try:
            widget.setPlainText(self._document.text)
        finally:
            widget.blockSignals(False)
        self._push_selection_to_widget()

    def _push_selection_to_widget(self) -> None:
        widget = self._widget
        if widget is None or QTextCursor is None:
            return
        text = self._document.text
        start, end = self._document.selection.as_tuple()
        cursor = widget.textCursor()
        cursor.setPosition(_to_qt_position(text, start))
        cursor.setPosition(_to_qt_position(text, end), QTextCursor.MoveMode.KeepAnchor)
        widget.setTextCursor(cursor)

    def _render_highlights(self) -> None:
        widget = self._widget
        if widget is None or QTextCursor is None or QTextEdit is None:
            return
        selection_cls = getattr(QTextEdit, "ExtraSelection", None)
        if selection_cls is None:
            return
        brush = self._highlight_color()
        text = self._document.text
        selections: list[Any] = []
        for span in self._highlights:
            cursor = widget.textCursor()
            cursor.setPosition(_to_qt_position(text, span.start))
            cursor.setPosition(_to_qt_position(text, span.end), QTextCursor.MoveMode.KeepAnchor)
            selection = selection_cls()
            selection.cursor = cursor
            if brush is not None:
                selection.format.setBackground(brush)
            selections.append(selection)
        widget.setExtraSelections(selections)

    def _highlight_color(self) -> Any | None:
        if QColor is None:
            return None
        if self._highlight_brush is None:
            self._highlight_brush = QColor(*HIGHLIGHT_RGB)
        return self._highlight_brush


__all__ = ["EditorBuffer", "HIGHLIGHT_RGB", "TextBufferHost"]
