"""Left-to-right, non-overlapping match scanning over a text scope."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

from ..core.ranges import MatchRange
from .compiler import Matcher


@dataclass(slots=True, frozen=True)
class ScanMatch:
    """One occurrence found by :func:`scan`, in scope-local offsets."""

    start: int
    length: int
    text: str
    match: re.Match[str] = field(repr=False, compare=False)

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def to_range(self, base_offset: int = 0) -> MatchRange:
        """Return the absolute range of this match given the scope's base offset."""

        return MatchRange(self.start + base_offset, self.end + base_offset)


def iter_matches(text: str, matcher: Matcher) -> Iterator[ScanMatch]:
    """Yield matches of ``matcher`` in ``text`` using global-scan semantics.

    A zero-length match is yielded once and the cursor is then pushed one
    character forward, so the loop runs at most ``len(text) + 1`` times.
    Searching from a cursor (instead of slicing) keeps ``^``, ``\\b`` and
    lookbehinds anchored to the real text.
    """

    regex = matcher.regex
    find = regex.match if matcher.sticky else regex.search
    cursor = 0
    limit = len(text)
    while cursor <= limit:
        found = find(text, cursor)
        if found is None:
            return
        start, end = found.span()
        yield ScanMatch(start=start, length=end - start, text=found.group(0), match=found)
        if not matcher.global_scan:
            return
        cursor = end + 1 if end == start else end


def scan(text: str, matcher: Matcher) -> list[ScanMatch]:
    """Return every match of ``matcher`` in ``text``; see :func:`iter_matches`."""

    return list(iter_matches(text, matcher))


__all__ = ["ScanMatch", "iter_matches", "scan"]
