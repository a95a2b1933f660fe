"""Tests for match ranges and records."""

from __future__ import annotations

import pytest

from regexfire.core.expressions import Expression, ExpressionGroup
from regexfire.core.ranges import MatchRange, TextPosition


def test_match_range_normalises_bounds() -> None:
    assert MatchRange(5, 2).to_tuple() == (2, 5)
    assert MatchRange(-3, 4).to_tuple() == (0, 4)
    assert MatchRange("1", "3").length == 2


def test_match_range_behaves_like_a_pair() -> None:
    span = MatchRange(1, 4)
    start, end = span

    assert (start, end) == (1, 4)
    assert span.shift(10) == MatchRange(11, 14)
    assert span.to_dict() == {"from": 1, "to": 4}
    assert MatchRange(2, 2).is_empty


@pytest.mark.parametrize("value", [{"from": 1, "to": 3}, {"start": 1, "end": 3}, (1, 3), [3, 1]])
def test_from_value_accepts_common_shapes(value) -> None:
    assert MatchRange.from_value(value) == MatchRange(1, 3)


def test_from_value_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        MatchRange.from_value({"from": 1})
    with pytest.raises(ValueError):
        MatchRange.from_value((1, 2, 3))
    with pytest.raises(TypeError):
        MatchRange.from_value("1:3")
    with pytest.raises(ValueError):
        MatchRange("a", 1)


def test_text_position_display_is_one_based() -> None:
    assert TextPosition(line=0, column=0).display() == "1:1"
    assert TextPosition(line=4, column=9).display() == "5:10"


def test_expression_describe_and_roundtrip() -> None:
    expression = Expression(name="n", pattern=r"\d+", flags="gmi", replace="#")

    assert expression.describe() == r"/gmi \d+ -> #"
    assert Expression.from_dict(expression.to_dict()) == expression


def test_expression_from_dict_fills_defaults() -> None:
    assert Expression.from_dict({"name": "n", "pattern": "p"}) == Expression(name="n", pattern="p", flags="gm")


def test_expression_from_dict_keeps_empty_flags() -> None:
    expression = Expression.from_dict({"name": "first", "pattern": "a", "flags": "", "replace": "b"})

    assert expression.flags == ""
    assert Expression.from_dict(expression.to_dict()) == expression


def test_group_items_are_tuples_of_strings() -> None:
    group = ExpressionGroup(name="g", items=["a", "b"])  # type: ignore[arg-type]

    assert group.items == ("a", "b")
    assert group.describe() == "Items: a, b"
    assert ExpressionGroup.from_dict(group.to_dict()) == group
