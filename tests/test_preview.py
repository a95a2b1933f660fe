"""Tests for the live match preview."""

from __future__ import annotations

import pytest

from regexfire.core.ranges import MatchRange, TextPosition
from regexfire.engine.preview import PREVIEW_ITEM_LIMIT, PreviewService, PreviewStatus
from regexfire.engine.transform import TransformOptions


def test_preview_lists_matches_with_positions(make_buffer) -> None:
    buffer = make_buffer("alpha\nbeta alpha")
    service = PreviewService()

    result = service.preview(buffer.get_text(), "alpha", "gm", locate=buffer.offset_to_position)

    assert result.status is PreviewStatus.OK
    assert result.ranges == (MatchRange(0, 5), MatchRange(11, 16))
    assert [item.position for item in result.items] == [TextPosition(0, 0), TextPosition(1, 5)]
    assert [item.label() for item in result.items] == ["1  alpha  @ 1:1", "2  alpha  @ 2:6"]
    assert result.summary() == "Matches: 2"
    assert result.more_label() is None


def test_preview_skips_zero_length_matches() -> None:
    result = PreviewService().preview("baa", "a*", "gm")

    assert result.ranges == (MatchRange(1, 3),)
    assert result.match_count == 1


def test_preview_caps_items_but_counts_everything() -> None:
    text = "x" * (PREVIEW_ITEM_LIMIT + 5)

    result = PreviewService().preview(text, "x", "gm")

    assert result.match_count == PREVIEW_ITEM_LIMIT + 5
    assert len(result.items) == PREVIEW_ITEM_LIMIT
    assert result.truncated
    assert result.omitted == 5
    assert result.more_label() == "… 5 more"


def test_custom_item_limit() -> None:
    result = PreviewService(item_limit=2).preview("a a a", "a", "gm")

    assert [item.index for item in result.items] == [0, 1]
    assert result.omitted == 1


def test_item_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PreviewService(item_limit=0)


def test_invalid_pattern_yields_soft_failure() -> None:
    result = PreviewService().preview("text", "(", "gm")

    assert result.status is PreviewStatus.INVALID
    assert not result.is_valid
    assert result.ranges == ()
    assert result.summary() == "Invalid regex"
    assert result.error and result.error.startswith("Invalid regex:")


def test_empty_pattern_yields_empty_preview() -> None:
    result = PreviewService().preview("text", "", "gm")

    assert result.status is PreviewStatus.EMPTY
    assert result.match_count == 0


def test_base_offset_shifts_ranges() -> None:
    result = PreviewService().preview("foo", "o+", "gm", base_offset=10)

    assert result.ranges == (MatchRange(11, 13),)


def test_refresh_highlights_selection_in_absolute_offsets(make_buffer) -> None:
    buffer = make_buffer("foo foo foo", selection=(4, 11))
    service = PreviewService()

    result = service.refresh(buffer, "foo", TransformOptions(selection_only=True))

    assert result.match_count == 2
    assert buffer.highlights == (MatchRange(4, 7), MatchRange(8, 11))


def test_refresh_attaches_highlight_layer_once(make_buffer) -> None:
    buffer = make_buffer("foo")
    service = PreviewService()

    assert not service.is_attached(buffer)
    service.refresh(buffer, "f", TransformOptions())
    service.refresh(buffer, "fo", TransformOptions())
    service.refresh(buffer, "foo", TransformOptions())

    assert service.is_attached(buffer)
    assert buffer.attach_count == 1
    assert buffer.highlights == (MatchRange(0, 3),)


def test_refresh_clears_highlights_on_invalid_or_literal(make_buffer) -> None:
    buffer = make_buffer("foo")
    service = PreviewService()
    service.refresh(buffer, "foo", TransformOptions())

    invalid = service.refresh(buffer, "(", TransformOptions())
    assert invalid.status is PreviewStatus.INVALID
    assert buffer.highlights == ()

    service.refresh(buffer, "foo", TransformOptions())
    literal = service.refresh(buffer, "foo", TransformOptions(use_regex=False))
    assert literal.status is PreviewStatus.DISABLED
    assert buffer.highlights == ()


def test_preview_never_mutates_the_buffer(make_buffer) -> None:
    buffer = make_buffer("foo bar")
    service = PreviewService()

    service.refresh(buffer, "o", TransformOptions())

    assert buffer.writes == []
    assert buffer.get_text() == "foo bar"


def test_detach_removes_layer(make_buffer) -> None:
    buffer = make_buffer("foo")
    service = PreviewService()
    service.refresh(buffer, "foo", TransformOptions())

    service.detach(buffer)

    assert not service.is_attached(buffer)
    assert not buffer.highlight_layer_attached
    assert buffer.highlights == ()
