"""User settings for the find/replace dialog and their JSON persistence."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from jsonschema import Draft7Validator

from ..core.expressions import Expression, ExpressionGroup

__all__ = [
    "Settings",
    "SettingsStore",
    "EXPRESSION_SCHEMA",
    "GROUP_SCHEMA",
    "default_settings_path",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".regexfire"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_PATH_ENV = "REGEXFIRE_SETTINGS_PATH"
_SETTINGS_VERSION = 2
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "REGEXFIRE_USE_REGEX": "use_regex",
    "REGEXFIRE_SELECTION_ONLY": "selection_only",
    "REGEXFIRE_CASE_INSENSITIVE": "case_insensitive",
    "REGEXFIRE_EXPAND_LINE_BREAK": "expand_line_break",
    "REGEXFIRE_EXPAND_TAB": "expand_tab",
    "REGEXFIRE_PREFILL_FIND": "prefill_find",
    "REGEXFIRE_DEBUG_LOGGING": "debug_logging",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}

EXPRESSION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name", "pattern"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "pattern": {"type": "string"},
        "flags": {"type": "string", "pattern": "^[a-z]*$"},
        "replace": {"type": "string"},
    },
}
GROUP_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name", "items"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "items": {"type": "array", "items": {"type": "string"}},
    },
}
_EXPRESSION_VALIDATOR = Draft7Validator(EXPRESSION_SCHEMA)
_GROUP_VALIDATOR = Draft7Validator(GROUP_SCHEMA)


@dataclass(slots=True)
class Settings:
    """User-configurable find/replace state persisted between sessions."""

    find_text: str = ""
    replace_text: str = ""
    use_regex: bool = True
    selection_only: bool = False
    case_insensitive: bool = False
    expand_line_break: bool = False
    expand_tab: bool = False
    prefill_find: bool = False
    debug_logging: bool = False
    saved_expressions: list[Expression] = field(default_factory=list)
    saved_groups: list[ExpressionGroup] = field(default_factory=list)


_DEFAULTS = Settings()
_FIELD_NAMES = frozenset(item.name for item in fields(Settings))
_SCALAR_FIELDS = tuple(sorted(_FIELD_NAMES - {"saved_expressions", "saved_groups"}))


def default_settings_path() -> Path:
    """Return the settings file honoring ``REGEXFIRE_SETTINGS_PATH``."""

    override = os.environ.get(_SETTINGS_PATH_ENV)
    return Path(override).expanduser() if override else _DEFAULT_SETTINGS_PATH


class SettingsStore:
    """Reads and writes :class:`Settings` as a versioned JSON document.

    Invalid saved entries are dropped with a warning, and the cleaned payload
    is written back so the file converges on the current format. Runtime
    overrides are applied after loading, environment overrides last.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        raw = self._read_document()
        settings, rewrite = self._decode(raw) if raw else (Settings(), False)
        if raw and raw.get("version") != _SETTINGS_VERSION:
            rewrite = True

        if rewrite:
            try:
                self.save(settings)
            except OSError as exc:  # pragma: no cover - best effort rewrite
                LOGGER.warning("Could not rewrite settings file %s: %s", self._path, exc)

        if overrides:
            settings = _with_overrides(settings, overrides, "runtime")
        env = _environment_overrides()
        return _with_overrides(settings, env, "environment") if env else settings

    def save(self, settings: Settings) -> Path:
        """Write ``settings`` through a sibling ``.tmp`` file swapped into place."""

        document = asdict(settings)
        document.update(
            version=_SETTINGS_VERSION,
            saved_expressions=[item.to_dict() for item in settings.saved_expressions],
            saved_groups=[item.to_dict() for item in settings.saved_groups],
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug(
            "Wrote %s (%d expression(s), %d preset(s))",
            self._path,
            len(settings.saved_expressions),
            len(settings.saved_groups),
        )
        return self._path

    def _read_document(self) -> Dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return {}
        if isinstance(document, dict):
            return document
        LOGGER.warning("Ignoring settings file %s: top level is not an object", self._path)
        return {}

    def _decode(self, document: Mapping[str, Any]) -> tuple[Settings, bool]:
        expressions, bad_expressions = _load_entries(
            document.get("saved_expressions"), _EXPRESSION_VALIDATOR, Expression.from_dict, "expression"
        )
        groups, bad_groups = _load_entries(
            document.get("saved_groups"), _GROUP_VALIDATOR, ExpressionGroup.from_dict, "preset"
        )
        rewrite = bool(bad_expressions or bad_groups)
        scalars: Dict[str, Any] = {}
        for name in _SCALAR_FIELDS:
            if name not in document:
                continue
            value = document[name]
            if isinstance(value, type(getattr(_DEFAULTS, name))):
                scalars[name] = value
            else:
                LOGGER.warning("Ignoring setting %s with unexpected value %r", name, value)
                rewrite = True
        return Settings(**scalars, saved_expressions=expressions, saved_groups=groups), rewrite


def _with_overrides(settings: Settings, overrides: Mapping[str, Any], source: str) -> Settings:
    known = {key: value for key, value in overrides.items() if key in _FIELD_NAMES and value is not None}
    if not known:
        return settings
    LOGGER.debug("Applying %s overrides: %s", source, sorted(known))
    return replace(settings, **known)


def _environment_overrides() -> Dict[str, bool]:
    return {
        field_name: os.environ[env_name].strip().lower() in _TRUE_VALUES
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items()
        if env_name in os.environ
    }


def _load_entries(raw: Any, validator: Draft7Validator, factory: Any, label: str) -> tuple[list[Any], int]:
    if raw is None:
        return [], 0
    if not isinstance(raw, list):
        LOGGER.warning("Saved %s list is not an array; ignoring it", label)
        return [], 1
    entries: list[Any] = []
    dropped = 0
    for position, entry in enumerate(raw):
        error = next(iter(validator.iter_errors(entry)), None)
        if error is not None:
            path = ".".join(str(part) for part in error.path)
            LOGGER.warning(
                "Dropping saved %s #%d: %s%s", label, position, f"{path}: " if path else "", error.message
            )
            dropped += 1
            continue
        entries.append(factory(entry))
    return entries, dropped
