"""
Tests for the character diff used to display fix proposals.
"""

from agent.diff import ADDED, COMMON, REMOVED, diff_chars, reconstruct


def test_full_replacement():
    segments = diff_chars("foo", "bar")
    assert [(s.kind, s.value) for s in segments] == [(REMOVED, "foo"), (ADDED, "bar")]


def test_identical_text_is_one_common_segment():
    segments = diff_chars("same\n", "same\n")
    assert [(s.kind, s.value) for s in segments] == [(COMMON, "same\n")]


def test_partial_change_keeps_common_spans():
    original = "def add(a, b):\n    return a - b\n"
    proposed = "def add(a, b):\n    return a + b\n"
    segments = diff_chars(original, proposed)

    kinds = [s.kind for s in segments]
    assert kinds == [COMMON, REMOVED, ADDED, COMMON]
    assert segments[1].value == "-"
    assert segments[2].value == "+"


def test_segments_reconstruct_both_sides():
    cases = [
        ("", "new file\n"),
        ("old file\n", ""),
        ("the quick brown fox", "the slow brown dog"),
        ("line1\nline2\nline3\n", "line1\nline2 changed\nline4\nline3\n"),
        ("    indented\n\n\n", "\tindented\n"),
    ]
    for original, proposed in cases:
        segments = diff_chars(original, proposed)
        assert reconstruct(segments, "original") == original
        assert reconstruct(segments, "proposed") == proposed


def test_no_adjacent_segments_of_same_kind():
    segments = diff_chars("aaaa bbbb cccc", "aaxa bybb cczc")
    for left, right in zip(segments, segments[1:]):
        assert left.kind != right.kind


def test_flags_match_kind():
    removed, added = diff_chars("x", "y")
    assert removed.removed and not removed.added
    assert added.added and not added.removed
    assert added.to_dict() == {"value": "y", "kind": ADDED}
