"""Unit tests for core/utils/diff.py"""

import pytest

from mdcbridge.core.utils.diff import (
    MAX_DIFF_TOKENS, DiffPart, DiffType, added_diff, compute_word_diff, find_lcs, tokenize,
)


def test_tokenize_keeps_whitespace_runs():
    """Whitespace runs are tokens of their own; nothing is lost."""
    assert tokenize("a  b\nc") == ["a", "  ", "b", "\n", "c"]
    assert tokenize("") == []


def test_find_lcs_pairs_are_increasing():
    pairs = find_lcs(["a", "b", "c", "d"], ["b", "x", "d"])
    assert pairs == [(1, 0), (3, 2)]


def test_compute_word_diff_marks_replacement_as_added():
    """Changed word shows as added; removed words are dropped."""
    parts = compute_word_diff("a b c", "a X c")
    assert parts == [
        DiffPart(DiffType.unchanged, "a "),
        DiffPart(DiffType.added, "X"),
        DiffPart(DiffType.unchanged, " c"),
    ]


@pytest.mark.parametrize("original,updated", [
    ("the quick brown fox", "the slow brown dog"),
    ("", "brand new text"),
    ("same text", "same text"),
    ("line one\nline two", "line one\nline 2\nline three"),
])
def test_compute_word_diff_concatenates_to_updated(original, updated):
    parts = compute_word_diff(original, updated)
    assert "".join(p.text for p in parts) == updated


def test_compute_word_diff_identical_is_single_unchanged_run():
    assert compute_word_diff("same text", "same text") == [DiffPart(DiffType.unchanged, "same text")]


def test_compute_word_diff_runs_alternate():
    """Adjacent parts never share a type."""
    parts = compute_word_diff("one two three four", "one 2 3 four five")
    assert all(a.type != b.type for a, b in zip(parts, parts[1:]))


def test_compute_word_diff_skips_oversized_input():
    """Inputs above the token ceiling yield no diff at all."""
    assert compute_word_diff("a b c", "a b d", max_tokens=2) == []
    big = " ".join(["w"] * MAX_DIFF_TOKENS)
    assert compute_word_diff(big, "w") == []


def test_added_diff_marks_everything():
    assert added_diff("bonjour") == [DiffPart(DiffType.added, "bonjour")]
