"""Replacement template handling.

Two separate steps are applied to a replacement string:

1. :func:`resolve_escapes` turns the literal two-character sequences ``\\n``
   and ``\\t`` into real line breaks and tabs when configured. It runs once per
   operation, before any matching.
2. :func:`expand_template` substitutes ``$``-style group references for every
   individual match while the text is rewritten.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class EscapeOptions:
    """Which escape sequences in a replacement template become real characters."""

    expand_line_break: bool = False
    expand_tab: bool = False


def resolve_escapes(template: str, options: EscapeOptions | None = None) -> str:
    """Expand ``\\n`` then ``\\t`` in ``template`` according to ``options``.

    Group references such as ``$1`` or ``$&`` are left untouched; they are
    expanded per match by :func:`expand_template`.
    """

    if options is None:
        return template
    if options.expand_line_break:
        template = template.replace("\\n", "\n")
    if options.expand_tab:
        template = template.replace("\\t", "\t")
    return template


def expand_template(template: str, match: re.Match[str], subject: str) -> str:
    """Build the replacement for ``match`` found in ``subject``.

    Supported tokens:

    * ``$$`` inserts a literal ``$``
    * ``$&`` inserts the whole match; ``$`` followed by a backtick or an
      apostrophe inserts the text before or after it
    * ``$1``..``$99`` insert a capture group; a two-digit reference is used
      when that group exists, otherwise the single digit is used and the
      second digit stays literal. Unknown group numbers and ``$0`` are copied
      as-is, and groups that did not participate insert nothing.
    * ``$<name>`` inserts a named group. It is copied literally when the
      pattern has no named groups or the closing ``>`` is missing.

    Any other ``$`` is copied literally.
    """

    if "$" not in template:
        return template

    group_count = match.re.groups
    named = match.re.groupindex
    out: list[str] = []
    index = 0
    length = len(template)
    while index < length:
        char = template[index]
        if char != "$" or index + 1 >= length:
            out.append(char)
            index += 1
            continue
        token = template[index + 1]
        if token == "$":
            out.append("$")
            index += 2
        elif token == "&":
            out.append(match.group(0))
            index += 2
        elif token == "`":
            out.append(subject[: match.start()])
            index += 2
        elif token == "'":
            out.append(subject[match.end() :])
            index += 2
        elif token.isdigit() and token.isascii():
            consumed, group = _group_reference(template, index + 1, group_count)
            if group is None:
                out.append("$")
                index += 1
            else:
                out.append(match.group(group) or "")
                index += 1 + consumed
        elif token == "<" and named:
            close = template.find(">", index + 2)
            if close < 0:
                out.append("$<")
                index += 2
                continue
            name = template[index + 2 : close]
            out.append((match.group(name) if name in named else None) or "")
            index = close + 1
        else:
            out.append("$")
            index += 1
    return "".join(out)


def _group_reference(template: str, position: int, group_count: int) -> tuple[int, int | None]:
    """Return ``(digits consumed, group number)`` for a ``$`` reference at ``position``."""

    first = template[position]
    second = template[position + 1] if position + 1 < len(template) else ""
    if second.isdigit() and second.isascii():
        number = int(first + second)
        if 1 <= number <= group_count:
            return 2, number
    number = int(first)
    if 1 <= number <= group_count:
        return 1, number
    return 0, None


__all__ = ["EscapeOptions", "expand_template", "resolve_escapes"]
