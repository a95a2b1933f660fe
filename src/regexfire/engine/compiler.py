"""Validate and compile pattern + flag pairs into reusable matchers.

Flags use the single-letter vocabulary of the saved expression format
(``g``, ``m``, ``i``, ...), so stored expressions stay portable. Patterns may use
``(?<name>...)`` / ``\\k<name>`` for named groups; those are rewritten to the
``(?P<name>...)`` / ``(?P=name)`` spelling before handing them to :mod:`re`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .errors import InvalidPatternError

LOGGER = logging.getLogger(__name__)

GLOBAL_FLAG = "g"
DEFAULT_FLAGS = "gm"
SUPPORTED_FLAGS = "dgimsuy"

_RE_FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}
_NAMED_BACKREF_RE = re.compile(r"k<([A-Za-z_][A-Za-z0-9_]*)>")


@dataclass(slots=True, frozen=True)
class Matcher:
    """A compiled pattern plus the scan behaviour its flags request."""

    pattern: str
    flags: str
    regex: re.Pattern[str]
    global_scan: bool = True
    sticky: bool = False

    @property
    def group_count(self) -> int:
        return self.regex.groups

    @property
    def has_named_groups(self) -> bool:
        return bool(self.regex.groupindex)


def build_flags(*, case_insensitive: bool = False) -> str:
    """Assemble the flags used for dialog-driven searches.

    Global and multiline scanning are always requested; ``i`` is appended only
    when case-insensitive matching is configured.
    """

    return DEFAULT_FLAGS + ("i" if case_insensitive else "")


def compile_pattern(pattern: str, flags: str = DEFAULT_FLAGS) -> Matcher:
    """Compile ``pattern`` with ``flags`` or raise :class:`InvalidPatternError`."""

    flags = flags or ""
    re_flags = _parse_flags(pattern, flags)
    source = translate_pattern(pattern, multiline="m" in flags)
    try:
        regex = re.compile(source, re_flags)
    except (re.error, OverflowError, RecursionError) as exc:
        LOGGER.debug("Rejected pattern %r /%s: %s", pattern, flags, exc)
        raise InvalidPatternError(
            message=f"Invalid regex: {exc}",
            pattern=pattern,
            flags=flags,
            reason=str(exc),
        ) from exc
    return Matcher(
        pattern=pattern,
        flags=flags,
        regex=regex,
        global_scan=GLOBAL_FLAG in flags,
        sticky="y" in flags,
    )


def translate_pattern(pattern: str, *, multiline: bool = True) -> str:
    """Rewrite ``(?<name>`` and ``\\k<name>`` into Python's named-group syntax.

    Without ``multiline`` a bare ``$`` becomes ``\\Z``: it must only match at the
    very end of the text, never before a trailing newline. Escaped characters and
    bracket expressions are copied verbatim; lookbehind assertions (``(?<=``,
    ``(?<!``) are left alone.
    """

    if "(?<" not in pattern and "\\k<" not in pattern and (multiline or "$" not in pattern):
        return pattern
    out: list[str] = []
    index = 0
    in_class = False
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == "\\":
            backref = _NAMED_BACKREF_RE.match(pattern, index + 1) if not in_class else None
            if backref is not None:
                out.append(f"(?P={backref.group(1)})")
                index = backref.end()
                continue
            out.append(pattern[index : index + 2])
            index += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
            out.append(char)
            index += 1
            continue
        if char == "[":
            in_class = True
            out.append(char)
            # A leading "]" (or "^]") is literal inside a class.
            lookahead = index + 1
            if pattern.startswith("^", lookahead):
                lookahead += 1
            if pattern.startswith("]", lookahead):
                out.append(pattern[index + 1 : lookahead + 1])
                index = lookahead + 1
                continue
            index += 1
            continue
        if char == "$" and not multiline:
            out.append(r"\Z")
            index += 1
            continue
        if pattern.startswith("(?<", index) and not pattern.startswith(("(?<=", "(?<!"), index):
            out.append("(?P<")
            index += 3
            continue
        out.append(char)
        index += 1
    return "".join(out)


def _parse_flags(pattern: str, flags: str) -> re.RegexFlag:
    value = re.RegexFlag(0)
    seen: set[str] = set()
    for letter in flags:
        if letter not in SUPPORTED_FLAGS:
            raise InvalidPatternError(
                message=f"Invalid regex flags: unknown flag '{letter}'",
                pattern=pattern,
                flags=flags,
                reason=f"unknown flag {letter!r}",
            )
        if letter in seen:
            raise InvalidPatternError(
                message=f"Invalid regex flags: duplicate flag '{letter}'",
                pattern=pattern,
                flags=flags,
                reason=f"duplicate flag {letter!r}",
            )
        seen.add(letter)
        value |= _RE_FLAGS.get(letter, re.RegexFlag(0))
    return value


__all__ = [
    "DEFAULT_FLAGS",
    "GLOBAL_FLAG",
    "SUPPORTED_FLAGS",
    "Matcher",
    "build_flags",
    "compile_pattern",
    "translate_pattern",
]
