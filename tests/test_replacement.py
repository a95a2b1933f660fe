"""Tests for escape resolution and ``$`` template expansion."""

from __future__ import annotations

import re

import pytest

from regexfire.engine.replacement import EscapeOptions, expand_template, resolve_escapes


def _expand(pattern: str, subject: str, template: str) -> str:
    match = re.search(pattern, subject)
    assert match is not None
    return expand_template(template, match, subject)


def test_escapes_are_left_alone_without_options() -> None:
    assert resolve_escapes(r"a\nb\tc") == r"a\nb\tc"
    assert resolve_escapes(r"a\nb\tc", EscapeOptions()) == r"a\nb\tc"


def test_line_break_expansion_removes_every_literal_sequence() -> None:
    resolved = resolve_escapes(r"one\ntwo\nthree", EscapeOptions(expand_line_break=True))

    assert resolved == "one\ntwo\nthree"
    assert "\\n" not in resolved


def test_tab_expansion_is_independent() -> None:
    assert resolve_escapes(r"a\tb\nc", EscapeOptions(expand_tab=True)) == "a\tb\\nc"
    assert resolve_escapes(r"a\tb\nc", EscapeOptions(True, True)) == "a\tb\nc"


def test_template_without_dollar_is_returned_verbatim() -> None:
    assert _expand("b", "abc", "plain") == "plain"


@pytest.mark.parametrize(
    "template, expected",
    [
        ("$2 at $1", "host at bob"),
        ("<$&>", "<bob@host>"),
        ("[$`]", "[mail ]"),
        ("[$']", "[ now]"),
        ("$$1", "$1"),
        ("$0", "$0"),
        ("$3", "$3"),
        ("cost: $", "cost: $"),
        ("$x", "$x"),
    ],
)
def test_dollar_tokens(template: str, expected: str) -> None:
    assert _expand(r"(\w+)@(\w+)", "mail bob@host now", template) == expected


def test_two_digit_reference_falls_back_to_one_digit() -> None:
    assert _expand("(a)", "a", "$10") == "a0"
    assert _expand("(a)", "a", "$01") == "a"


def test_two_digit_reference_used_when_group_exists() -> None:
    pattern = "".join(f"({chr(ord('a') + index)})" for index in range(12))
    subject = "abcdefghijkl"

    assert _expand(pattern, subject, "$12|$1") == "l|a"


def test_named_references() -> None:
    assert _expand(r"(?P<word>\w+)", "hi", "$<word>!") == "hi!"
    assert _expand(r"(?P<word>\w+)", "hi", "[$<other>]") == "[]"
    assert _expand(r"(?P<word>\w+)", "hi", "$<word") == "$<word"


def test_named_reference_is_literal_without_named_groups() -> None:
    assert _expand("(a)", "a", "$<x>") == "$<x>"


def test_unmatched_group_inserts_nothing() -> None:
    assert _expand("(a)|(b)", "b", "[$1][$2]") == "[][b]"
