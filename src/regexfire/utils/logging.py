"""Logging setup shared by the CLI and embedding hosts."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import TextIO

__all__ = ["setup_logging", "get_log_path", "level_for"]

_DEFAULT_LOG_DIR = Path.home() / ".regexfire" / "logs"
_LOG_FILE_NAME = "regexfire.log"
_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Third-party loggers that are chatty at DEBUG.
_QUIET_LOGGERS: tuple[str, ...] = ("PySide6", "jsonschema")
_LOG_PATH: Path | None = None


def level_for(debug: bool) -> int:
    """Map the ``debug`` toggle onto a logging level."""

    return logging.DEBUG if debug else logging.INFO


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    stream: TextIO | None = None,
    max_bytes: int = 512_000,
    backup_count: int = 2,
    force: bool = False,
) -> Path:
    """Install a rotating log file under ``log_dir`` plus an optional console handler.

    Repeated calls are no-ops unless ``force`` is set, so library code can call
    this defensively without duplicating handlers.
    """

    global _LOG_PATH
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    directory = _resolve_log_dir(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / _LOG_FILE_NAME

    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler(stream))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    quiet_level = max(level, logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    _LOG_PATH = log_path
    return log_path


def get_log_path() -> Path | None:
    """Return the active log file, if logging was configured."""

    return _LOG_PATH


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    override = os.environ.get("REGEXFIRE_LOG_DIR")
    return Path(log_dir or override or _DEFAULT_LOG_DIR).expanduser()
