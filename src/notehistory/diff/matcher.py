"""Align two block sequences and classify every block.

Matching runs in two passes:

1. **Exact** -- each old block, in order, claims the first unclaimed new
   block with identical plain text.
2. **Similar** -- each still-unmatched old block claims the unclaimed new
   block with the highest word-overlap score strictly above
   :data:`SIMILARITY_THRESHOLD`.  The first candidate wins ties.

The result is emitted in new-document order.  Unmatched old blocks are
interleaved as ``removed`` just before the first match whose old index
follows them, and any left over are appended at the end.

The threshold and the pass order decide whether a rewritten paragraph
reads as ``modified`` or as ``removed`` + ``added``; changing either
changes diff output.
"""

from __future__ import annotations

from collections.abc import Sequence

from notehistory.models import (
    Block,
    BlockStatus,
    DiffBlock,
    DiffSegment,
    SegmentKind,
)

from .segments import diff_segments

SIMILARITY_THRESHOLD = 0.5
"""A similarity-pass candidate must score strictly above this."""

MIN_WORD_LENGTH = 3
"""Words shorter than this are ignored by :func:`text_similarity`."""


def _significant_words(text: str) -> set[str]:
    return {word for word in text.lower().split() if len(word) >= MIN_WORD_LENGTH}


def text_similarity(a: str, b: str) -> float:
    """Word overlap of *a* and *b* in ``[0, 1]``.

    ``|A & B| / max(|A|, |B|)`` over the lower-cased words longer than
    two characters.  Identical strings score ``1.0``; an empty string, or
    one without significant words, scores ``0.0``.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    a_words = _significant_words(a)
    b_words = _significant_words(b)
    if not a_words or not b_words:
        return 0.0
    return len(a_words & b_words) / max(len(a_words), len(b_words))


def pair_blocks(old_blocks: Sequence[Block], new_blocks: Sequence[Block]) -> dict[int, int]:
    """Return the ``new_index -> old_index`` correspondence of both passes."""
    old_texts = [block.text for block in old_blocks]
    new_texts = [block.text for block in new_blocks]

    by_new: dict[int, int] = {}
    used_old: set[int] = set()

    for o, old_text in enumerate(old_texts):
        for n, new_text in enumerate(new_texts):
            if n not in by_new and old_text == new_text:
                by_new[n] = o
                used_old.add(o)
                break

    for o, old_text in enumerate(old_texts):
        if o in used_old:
            continue
        best_index = -1
        best_score = SIMILARITY_THRESHOLD
        for n, new_text in enumerate(new_texts):
            if n in by_new:
                continue
            score = text_similarity(old_text, new_text)
            if score > best_score:
                best_score = score
                best_index = n
        if best_index >= 0:
            by_new[best_index] = o
            used_old.add(o)

    return by_new


def match_blocks(old_blocks: Sequence[Block], new_blocks: Sequence[Block]) -> list[DiffBlock]:
    """Compute the document-level diff of two block sequences.

    Parameters
    ----------
    old_blocks:
        Blocks of the older snapshot.
    new_blocks:
        Blocks of the newer snapshot.

    Returns
    -------
    list[DiffBlock]
        One entry per new block (in order), plus one ``removed`` entry for
        every old block that found no partner.
    """
    by_new = pair_blocks(old_blocks, new_blocks)
    matched_old = set(by_new.values())
    emitted_old: set[int] = set()
    result: list[DiffBlock] = []

    for n, new_block in enumerate(new_blocks):
        o = by_new.get(n)
        if o is None:
            result.append(_whole_block(new_block, BlockStatus.ADDED, SegmentKind.ADDED))
            continue

        for earlier in range(o):
            if earlier not in matched_old and earlier not in emitted_old:
                result.append(
                    _whole_block(old_blocks[earlier], BlockStatus.REMOVED, SegmentKind.REMOVED)
                )
                emitted_old.add(earlier)

        emitted_old.add(o)
        result.append(_compare_pair(old_blocks[o], new_block))

    for o, old_block in enumerate(old_blocks):
        if o not in emitted_old:
            result.append(_whole_block(old_block, BlockStatus.REMOVED, SegmentKind.REMOVED))

    return result


def _whole_block(block: Block, status: BlockStatus, kind: SegmentKind) -> DiffBlock:
    return DiffBlock(
        type=block.type,
        status=status,
        segments=tuple(DiffSegment(kind=kind, run=run) for run in block.content),
    )


def _compare_pair(old_block: Block, new_block: Block) -> DiffBlock:
    same_text = old_block.text == new_block.text
    same_type = old_block.type == new_block.type

    if same_text and same_type:
        segments, style_only = diff_segments(old_block.content, new_block.content)
        changed = style_only or any(s.kind is SegmentKind.STYLE_CHANGED for s in segments)
        return DiffBlock(
            type=new_block.type,
            status=BlockStatus.STYLE_ONLY if changed else BlockStatus.UNCHANGED,
            segments=tuple(segments),
        )

    if same_text:
        # Block type changed, e.g. a paragraph promoted to a heading.
        return DiffBlock(
            type=new_block.type,
            status=BlockStatus.STYLE_ONLY,
            segments=tuple(
                DiffSegment(kind=SegmentKind.STYLE_CHANGED, run=run)
                for run in new_block.content
            ),
        )

    segments, _ = diff_segments(old_block.content, new_block.content)
    return DiffBlock(type=new_block.type, status=BlockStatus.MODIFIED, segments=tuple(segments))
