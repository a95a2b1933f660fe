"""State behind the interactive find/replace dialog.

The session owns the form fields (find, replace and the two toggles), keeps
the live preview current while the user types, and performs the replacement
on submit. It holds no widgets, so a Qt dialog or a test can drive it alike.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .commands import OutcomeStatus, StatusOutcome
from .engine.errors import EmptyPatternError, ErrorCode
from .engine.preview import PreviewResult, PreviewStatus
from .engine.transform import TransformOptions

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .commands import RegexCommands
    from .editor.buffer import TextBufferHost

LOGGER = logging.getLogger(__name__)


class FindReplaceSession:
    """One opening of the find/replace dialog over a host buffer."""

    def __init__(self, commands: RegexCommands, host: TextBufferHost) -> None:
        self._commands = commands
        self._host = host
        settings = commands.settings

        selection = host.get_selection_text()
        self._has_selection = bool(selection)
        self.replace_text = settings.replace_text
        self.use_regex = settings.use_regex
        self.selection_only = settings.selection_only and self._has_selection

        # A single-line selection becomes the search term and implies a
        # document-wide search.
        if settings.prefill_find and selection and "\n" not in selection:
            self.find_text = selection
            self.selection_only = False
        else:
            self.find_text = settings.find_text

        self._preview = PreviewResult(status=PreviewStatus.EMPTY)
        self._open = True
        self.refresh_preview()

    # ------------------------------------------------------------------
    # Form state
    # ------------------------------------------------------------------
    @property
    def host(self) -> TextBufferHost:
        return self._host

    @property
    def has_selection(self) -> bool:
        """Whether the "selection only" toggle is offered at all."""

        return self._has_selection

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def preview(self) -> PreviewResult:
        return self._preview

    @property
    def flags_label(self) -> str:
        return f"/{self._commands.current_flags()}" if self.use_regex else ""

    @property
    def status_text(self) -> str:
        if not self.use_regex:
            return ""
        return self._preview.summary()

    def options(self) -> TransformOptions:
        return self._commands.options(use_regex=self.use_regex, selection_only=self.selection_only)

    def set_find_text(self, text: str) -> PreviewResult:
        self.find_text = text
        return self.refresh_preview()

    def set_replace_text(self, text: str) -> None:
        self.replace_text = text

    def set_use_regex(self, enabled: bool) -> PreviewResult:
        self.use_regex = bool(enabled)
        return self.refresh_preview()

    def set_selection_only(self, enabled: bool) -> PreviewResult:
        self.selection_only = bool(enabled) and self._has_selection
        return self.refresh_preview()

    def refresh_preview(self) -> PreviewResult:
        self._preview = self._commands.preview_service.refresh(self._host, self.find_text, self.options())
        return self._preview

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def submit(self) -> StatusOutcome:
        """Replace every match, remember the form and close.

        An empty find field or an invalid pattern leaves the dialog open so the
        user can correct it.
        """

        if not self._open:
            return StatusOutcome(OutcomeStatus.CANCELLED, "Dialog is closed")
        if not self.find_text:
            error = EmptyPatternError()
            return StatusOutcome(OutcomeStatus.ERROR, error.message, error_code=error.error_code)

        outcome = self._commands.find_replace(self._host, self.find_text, self.replace_text, self.options())
        if outcome.error_code == ErrorCode.INVALID_PATTERN:
            return outcome

        settings = self._commands.settings
        settings.find_text = self.find_text
        settings.replace_text = self.replace_text
        settings.use_regex = self.use_regex
        settings.selection_only = self.selection_only
        self._commands.persist()
        self.close()
        return outcome

    def close(self) -> None:
        """Dismiss the dialog and remove the preview highlights."""

        if not self._open:
            return
        self._commands.preview_service.clear(self._host)
        self._open = False
        LOGGER.debug("Find/replace session on buffer %s closed", self._host.buffer_id)


__all__ = ["FindReplaceSession"]
