"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from regexfire.core.expressions import Expression, ExpressionGroup
from regexfire.editor.buffer import EditorBuffer
from regexfire.editor.document_model import DocumentState
from regexfire.services.settings import Settings

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

_ENV_OVERRIDES = (
    "REGEXFIRE_USE_REGEX",
    "REGEXFIRE_SELECTION_ONLY",
    "REGEXFIRE_CASE_INSENSITIVE",
    "REGEXFIRE_EXPAND_LINE_BREAK",
    "REGEXFIRE_EXPAND_TAB",
    "REGEXFIRE_PREFILL_FIND",
    "REGEXFIRE_DEBUG_LOGGING",
)


class RecordingBuffer(EditorBuffer):
    """EditorBuffer that remembers every write made through the host API."""

    def __init__(self, text: str = "", selection: tuple[int, int] | None = None) -> None:
        super().__init__(DocumentState(text=text))
        self.writes: list[tuple[str, str]] = []
        if selection is not None:
            self.set_selection(*selection)

    def set_text(self, text: str) -> None:
        self.writes.append(("document", text))
        super().set_text(text)

    def replace_selection(self, text: str) -> None:
        self.writes.append(("selection", text))
        super().replace_selection(text)


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("REGEXFIRE_SETTINGS_PATH", str(tmp_path / "home" / "settings.json"))
    monkeypatch.setenv("REGEXFIRE_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def make_buffer() -> Callable[..., RecordingBuffer]:
    def factory(text: str = "", selection: tuple[int, int] | None = None) -> RecordingBuffer:
        return RecordingBuffer(text, selection)

    return factory


@pytest.fixture
def sample_settings() -> Settings:
    return Settings(
        saved_expressions=[
            Expression(name="foo-to-bar", pattern="foo", replace="bar"),
            Expression(name="bar-to-baz", pattern="bar", replace="baz"),
            Expression(name="trim", pattern=r"[ \t]+$", replace=""),
        ],
        saved_groups=[ExpressionGroup(name="chain", items=("bar-to-baz", "foo-to-bar"))],
    )
