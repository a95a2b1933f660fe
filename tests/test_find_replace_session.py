"""Tests for the find/replace dialog state."""

from __future__ import annotations

from pathlib import Path

import pytest

from regexfire.commands import OutcomeStatus, RegexCommands
from regexfire.core.ranges import MatchRange
from regexfire.engine.errors import ErrorCode
from regexfire.engine.preview import PreviewStatus
from regexfire.find_replace import FindReplaceSession
from regexfire.services.settings import Settings, SettingsStore


@pytest.fixture
def settings_store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings.json")


def _commands(settings_store: SettingsStore, **values) -> RegexCommands:
    return RegexCommands(Settings(**values), settings_store=settings_store)


def test_session_restores_last_form(settings_store: SettingsStore, make_buffer) -> None:
    commands = _commands(settings_store, find_text="old", replace_text="new", use_regex=False)

    session = commands.open_find_replace(make_buffer("old text"))

    assert isinstance(session, FindReplaceSession)
    assert (session.find_text, session.replace_text, session.use_regex) == ("old", "new", False)
    assert session.flags_label == ""
    assert session.status_text == ""


def test_prefill_uses_single_line_selection(settings_store: SettingsStore, make_buffer) -> None:
    commands = _commands(settings_store, find_text="old", prefill_find=True, selection_only=True)
    buffer = make_buffer("pick me please", selection=(0, 4))

    session = commands.open_find_replace(buffer)

    assert session.find_text == "pick"
    assert session.selection_only is False
    assert session.has_selection


def test_multi_line_selection_is_not_prefilled(settings_store: SettingsStore, make_buffer) -> None:
    commands = _commands(settings_store, find_text="old", prefill_find=True, selection_only=True)
    buffer = make_buffer("one\ntwo", selection=(0, 7))

    session = commands.open_find_replace(buffer)

    assert session.find_text == "old"
    assert session.selection_only is True


def test_selection_only_needs_a_selection(settings_store: SettingsStore, make_buffer) -> None:
    session = _commands(settings_store, selection_only=True).open_find_replace(make_buffer("text"))

    assert not session.has_selection
    assert session.selection_only is False
    session.set_selection_only(True)
    assert session.selection_only is False


def test_typing_updates_preview_and_highlights(settings_store: SettingsStore, make_buffer) -> None:
    buffer = make_buffer("cat hat bat")
    session = _commands(settings_store, case_insensitive=True).open_find_replace(buffer)

    assert session.flags_label == "/gmi"
    assert session.preview.status is PreviewStatus.EMPTY

    result = session.set_find_text("[ch]at")
    assert result.match_count == 2
    assert session.status_text == "Matches: 2"
    assert buffer.highlights == (MatchRange(0, 3), MatchRange(4, 7))

    session.set_find_text("(")
    assert session.status_text == "Invalid regex"
    assert buffer.highlights == ()

    session.set_find_text("at")
    session.set_use_regex(False)
    assert session.preview.status is PreviewStatus.DISABLED
    assert buffer.highlights == ()
    assert buffer.attach_count == 1


def test_submit_replaces_persists_and_closes(settings_store: SettingsStore, make_buffer) -> None:
    buffer = make_buffer("a.b a.b")
    commands = _commands(settings_store, use_regex=False)
    session = commands.open_find_replace(buffer)
    session.set_find_text("a.b")
    session.set_replace_text(r"X\n")

    outcome = session.submit()

    assert outcome.status is OutcomeStatus.APPLIED
    assert outcome.message == "Made 2 replacement(s) in document"
    assert buffer.get_text() == r"X\n X\n"
    assert not session.is_open
    assert buffer.highlights == ()
    saved = settings_store.load()
    assert (saved.find_text, saved.replace_text, saved.use_regex) == ("a.b", r"X\n", False)


def test_submit_persists_raw_template_with_escapes_enabled(settings_store: SettingsStore, make_buffer) -> None:
    buffer = make_buffer("a,b")
    session = _commands(settings_store, expand_line_break=True).open_find_replace(buffer)
    session.set_find_text(",")
    session.set_replace_text(r"\n")

    session.submit()

    assert buffer.get_text() == "a\nb"
    assert settings_store.load().replace_text == r"\n"


def test_submit_with_empty_find_keeps_dialog_open(settings_store: SettingsStore, make_buffer) -> None:
    buffer = make_buffer("text")
    session = _commands(settings_store).open_find_replace(buffer)

    outcome = session.submit()

    assert outcome.message == "Nothing to search for!"
    assert session.is_open
    assert buffer.writes == []
    assert not settings_store.path.exists()


def test_submit_with_invalid_regex_keeps_dialog_open(settings_store: SettingsStore, make_buffer) -> None:
    buffer = make_buffer("text")
    session = _commands(settings_store).open_find_replace(buffer)
    session.set_find_text("[")

    outcome = session.submit()

    assert outcome.error_code == ErrorCode.INVALID_PATTERN
    assert session.is_open
    assert buffer.get_text() == "text"


def test_submit_no_match_still_closes(settings_store: SettingsStore, make_buffer) -> None:
    session = _commands(settings_store).open_find_replace(make_buffer("text"))
    session.set_find_text("zzz")

    outcome = session.submit()

    assert outcome.status is OutcomeStatus.NO_MATCH
    assert not session.is_open
    assert session.submit().status is OutcomeStatus.CANCELLED


def test_submit_in_selection_scope(settings_store: SettingsStore, make_buffer) -> None:
    buffer = make_buffer("foo foo foo", selection=(4, 7))
    session = _commands(settings_store, selection_only=True).open_find_replace(buffer)
    session.set_find_text("foo")
    session.set_replace_text("bar")

    outcome = session.submit()

    assert outcome.message == "Made 1 replacement(s) in selection"
    assert buffer.get_text() == "foo bar foo"
    assert settings_store.load().selection_only is True


def test_close_clears_highlights(settings_store: SettingsStore, make_buffer) -> None:
    buffer = make_buffer("foo")
    session = _commands(settings_store, find_text="foo").open_find_replace(buffer)
    assert buffer.highlights == (MatchRange(0, 3),)

    session.close()

    assert buffer.highlights == ()
    assert not session.is_open
