"""Tests for block matching and classification."""

from __future__ import annotations

import pytest

from notehistory.diff.matcher import SIMILARITY_THRESHOLD, match_blocks, pair_blocks, text_similarity
from notehistory.models import Block, BlockStatus, BlockType, SegmentKind, StyledRun


def para(text: str, **style: bool) -> Block:
    return Block(type=BlockType.PARAGRAPH, content=(StyledRun(text, **style),))


def statuses(blocks) -> list[tuple[str, str]]:
    return [(b.status.value, "".join(s.run.text for s in b.segments)) for b in blocks]


class TestTextSimilarity:
    def test_identical(self):
        assert text_similarity("same", "same") == 1.0

    def test_empty_side(self):
        assert text_similarity("", "something here") == 0.0
        assert text_similarity("something here", "") == 0.0

    def test_half_overlap(self):
        assert text_similarity("Hello world", "Hello there") == 0.5

    def test_case_insensitive(self):
        assert text_similarity("Hello World", "hello world") == 1.0

    def test_short_words_ignored(self):
        assert text_similarity("a to be", "a to me") == 0.0

    def test_divides_by_larger_set(self):
        assert text_similarity("alpha beta", "alpha beta gamma delta") == pytest.approx(0.5)


class TestMatchBlocks:
    def test_appended_block(self):
        result = match_blocks([para("A")], [para("A"), para("B")])
        assert statuses(result) == [("unchanged", "A"), ("added", "B")]

    def test_identical_sequences_are_unchanged(self):
        blocks = [para("one"), para("two"), para("three")]
        result = match_blocks(blocks, list(blocks))
        assert [b.status for b in result] == [BlockStatus.UNCHANGED] * 3

    def test_threshold_is_strict(self):
        # 0.5 overlap does not pair, so the rewrite shows as add + remove.
        assert SIMILARITY_THRESHOLD == 0.5
        result = match_blocks([para("Hello world")], [para("Hello there")])
        assert statuses(result) == [("added", "Hello there"), ("removed", "Hello world")]

    def test_similar_block_is_modified(self):
        result = match_blocks(
            [para("The quick brown fox jumps")],
            [para("The quick brown cat jumps")],
        )
        assert len(result) == 1
        assert result[0].status is BlockStatus.MODIFIED
        kinds = [(s.kind, s.run.text) for s in result[0].segments]
        assert (SegmentKind.REMOVED, "fox") in kinds
        assert (SegmentKind.ADDED, "cat") in kinds

    def test_removed_block_placed_before_next_match(self):
        old = [para("intro line"), para("middle"), para("closing")]
        new = [para("middle"), para("closing")]
        assert statuses(match_blocks(old, new)) == [
            ("removed", "intro line"),
            ("unchanged", "middle"),
            ("unchanged", "closing"),
        ]

    def test_trailing_removed_block_appended(self):
        result = match_blocks([para("keep"), para("drop")], [para("keep")])
        assert statuses(result) == [("unchanged", "keep"), ("removed", "drop")]

    def test_duplicate_text_pairs_first_occurrence(self):
        result = match_blocks([para("dup"), para("dup")], [para("dup")])
        assert statuses(result) == [("unchanged", "dup"), ("removed", "dup")]

    def test_first_candidate_wins_similarity_tie(self):
        old = [para("alpha beta gamma delta")]
        new = [para("alpha beta gamma zeta"), para("alpha beta gamma theta")]
        assert pair_blocks(old, new) == {0: 0}
        result = match_blocks(old, new)
        assert [b.status for b in result] == [BlockStatus.MODIFIED, BlockStatus.ADDED]

    def test_exact_pass_runs_before_similarity_pass(self):
        old = [para("meeting notes for monday"), para("meeting notes for tuesday")]
        new = [para("meeting notes for tuesday")]
        assert pair_blocks(old, new) == {0: 1}

    def test_style_only_change(self):
        result = match_blocks([para("Hello")], [para("Hello", bold=True)])
        assert len(result) == 1
        block = result[0]
        assert block.status is BlockStatus.STYLE_ONLY
        assert [s.kind for s in block.segments] == [SegmentKind.STYLE_CHANGED]

    def test_block_type_change_is_style_only(self):
        old = [para("Title")]
        new = [Block(type=BlockType.HEADING1, content=(StyledRun("Title"),))]
        result = match_blocks(old, new)
        assert result[0].type is BlockType.HEADING1
        assert result[0].status is BlockStatus.STYLE_ONLY
        assert [(s.kind, s.run.text) for s in result[0].segments] == [
            (SegmentKind.STYLE_CHANGED, "Title")
        ]

    def test_similarity_matches_across_block_types(self):
        old = [para("meeting notes for today")]
        new = [Block(type=BlockType.HEADING2, content=(StyledRun("meeting notes for tomorrow"),))]
        result = match_blocks(old, new)
        assert len(result) == 1
        assert result[0].type is BlockType.HEADING2
        assert result[0].status is BlockStatus.MODIFIED

    def test_removed_block_keeps_old_type_and_runs(self):
        old = [Block(type=BlockType.BULLET_LIST_ITEM, content=(StyledRun("x", bold=True),))]
        result = match_blocks(old, [])
        assert result[0].type is BlockType.BULLET_LIST_ITEM
        assert result[0].segments[0].kind is SegmentKind.REMOVED
        assert result[0].segments[0].run.bold is True

    def test_empty_inputs(self):
        assert match_blocks([], []) == []

    def test_deterministic(self):
        old = [para("a b c"), para("shared words here"), para("shared words there")]
        new = [para("shared words here again"), para("a b c"), para("new words")]
        assert match_blocks(old, new) == match_blocks(old, new)
