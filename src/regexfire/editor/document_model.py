"""Dataclasses describing the buffer a find/replace run operates on."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field


@dataclass(slots=True)
class SelectionRange:
    """Current selection as absolute offsets (``start == end`` for a caret)."""

    start: int = 0
    end: int = 0

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def as_tuple(self) -> tuple[int, int]:
        """``(start, end)`` as a plain pair for unpacking."""

        return (self.start, self.end)


@dataclass(slots=True)
class DocumentState:
    """Text, selection and bookkeeping for one open buffer."""

    text: str = ""
    selection: SelectionRange = field(default_factory=SelectionRange)
    dirty: bool = False
    document_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    version_id: int = 1

    def update_text(self, new_text: str) -> None:
        """Replace the text, bump the version and mark the document dirty."""

        self.text = new_text
        self.dirty = True
        self.version_id += 1

    def selected_text(self) -> str:
        return self.text[self.selection.start : self.selection.end]


__all__ = ["DocumentState", "SelectionRange"]
