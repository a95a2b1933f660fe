"""Tests for the settings persistence layer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from regexfire.core.expressions import Expression, ExpressionGroup
from regexfire.services.settings import Settings, SettingsStore, default_settings_path


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")

    assert store.load() == Settings()
    assert not (tmp_path / "settings.json").exists()


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    original = Settings(
        find_text=r"(\w+)\s+$",
        replace_text=r"$1\n",
        use_regex=False,
        selection_only=True,
        case_insensitive=True,
        expand_line_break=True,
        prefill_find=True,
        saved_expressions=[Expression(name="trim", pattern=r"\s+$", flags="gm", replace="")],
        saved_groups=[ExpressionGroup(name="cleanup", items=("trim", "gone"))],
    )

    SettingsStore(path).save(original)
    reloaded = SettingsStore(path).load()

    assert reloaded == original


def test_saved_payload_is_versioned_json(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"

    SettingsStore(path).save(Settings(saved_expressions=[Expression(name="é", pattern="ü")]))

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["version"] == 2
    assert payload["saved_expressions"] == [{"name": "é", "pattern": "ü", "flags": "gm", "replace": ""}]
    assert "é" in path.read_text(encoding="utf-8")
    assert not path.with_suffix(".tmp").exists()


def test_invalid_entries_are_dropped_and_file_rewritten(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "version": 2,
                "find_text": "keep",
                "saved_expressions": [
                    {"name": "ok", "pattern": "a", "flags": "gm", "replace": "b"},
                    {"name": "", "pattern": "a"},
                    {"pattern": "no name"},
                    {"name": "bad flags", "pattern": "a", "flags": "G!"},
                ],
                "saved_groups": [{"name": "g", "items": ["ok", 3]}, {"name": "h", "items": ["ok"]}],
            }
        ),
        encoding="utf-8",
    )

    settings = SettingsStore(path).load()

    assert settings.find_text == "keep"
    assert [e.name for e in settings.saved_expressions] == ["ok"]
    assert [g.name for g in settings.saved_groups] == ["h"]
    rewritten = json.loads(path.read_text(encoding="utf-8"))
    assert len(rewritten["saved_expressions"]) == 1


def test_unknown_keys_and_wrong_types_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"version": 2, "theme": "dark", "use_regex": "yes", "expand_tab": True}),
        encoding="utf-8",
    )

    settings = SettingsStore(path).load()

    assert settings.use_regex is True
    assert settings.expand_tab is True
    assert not hasattr(settings, "theme")


def test_legacy_payload_without_version_is_migrated(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"find_text": "old"}), encoding="utf-8")

    assert SettingsStore(path).load().find_text == "old"
    assert json.loads(path.read_text(encoding="utf-8"))["version"] == 2


@pytest.mark.parametrize("body", ["{not json", "[1, 2]"])
def test_corrupt_file_falls_back_to_defaults(tmp_path: Path, body: str) -> None:
    path = tmp_path / "settings.json"
    path.write_text(body, encoding="utf-8")

    assert SettingsStore(path).load() == Settings()


def test_runtime_overrides_apply_to_known_fields(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")

    settings = store.load(overrides={"case_insensitive": True, "unknown": 1, "find_text": None})

    assert settings.case_insensitive is True
    assert settings.find_text == ""


def test_environment_overrides_win(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(Settings(use_regex=True, expand_tab=False))
    monkeypatch.setenv("REGEXFIRE_USE_REGEX", "0")
    monkeypatch.setenv("REGEXFIRE_EXPAND_TAB", "yes")

    settings = SettingsStore(path).load()

    assert settings.use_regex is False
    assert settings.expand_tab is True


def test_default_settings_path_honours_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "custom.json"
    monkeypatch.setenv("REGEXFIRE_SETTINGS_PATH", str(target))

    assert default_settings_path() == target
    assert SettingsStore().path == target


def test_empty_flags_survive_a_reload(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(Settings(saved_expressions=[Expression(name="first", pattern="a", flags="", replace="b")]))

    (expression,) = SettingsStore(path).load().saved_expressions

    assert expression.flags == ""
