"""Segment-level diff between the styled runs of two matched blocks.

Two strategies, chosen by comparing plain text:

* **Same text** -- a character-level style diff.  Both run sequences are
  walked in lock-step; each character is ``unchanged`` or
  ``styleChanged`` depending on its ``(bold, italic, strike)`` tuple, and
  neighbouring characters with the same classification and formatting
  are merged into one segment.
* **Different text** -- a word-level content diff.  Both texts are split
  into alternating whitespace / non-whitespace tokens, aligned with an
  LCS, and every token is re-attached to the formatting of the run that
  contains it.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from notehistory.models import DiffSegment, SegmentKind, StyledRun

from .lcs_matcher import lcs_tokens

_WORD_SPLIT = re.compile(r"(\s+)")

_UNSTYLED = StyledRun("")


def tokenize_words(text: str) -> list[str]:
    """Split *text* into whitespace and non-whitespace tokens, keeping both.

    >>> tokenize_words("Hello  big world")
    ['Hello', '  ', 'big', ' ', 'world']
    """
    return [token for token in _WORD_SPLIT.split(text) if token]


def diff_segments(
    old_runs: Sequence[StyledRun],
    new_runs: Sequence[StyledRun],
) -> tuple[list[DiffSegment], bool]:
    """Diff two styled-run sequences.

    Parameters
    ----------
    old_runs:
        Content of the block in the older snapshot.
    new_runs:
        Content of the block in the newer snapshot.

    Returns
    -------
    tuple[list[DiffSegment], bool]
        The classified segments, and ``True`` iff the texts are equal and
        at least one character changed formatting.
    """
    old_text = "".join(run.text for run in old_runs)
    new_text = "".join(run.text for run in new_runs)

    if old_text == new_text:
        return _diff_styles(old_runs, new_runs)
    return _diff_words(old_runs, new_runs, old_text, new_text), False


# ---------------------------------------------------------------------------
# Same text: character-level style comparison
# ---------------------------------------------------------------------------

@dataclass
class _Pending:
    kind: SegmentKind
    new: StyledRun
    old: StyledRun
    text: str

    def freeze(self) -> DiffSegment:
        prior = self.old.with_text(self.text) if self.kind is SegmentKind.STYLE_CHANGED else None
        return DiffSegment(kind=self.kind, run=self.new.with_text(self.text), prior_run=prior)


def _per_character(runs: Sequence[StyledRun]) -> list[StyledRun]:
    return [run for run in runs for _ in run.text]


def _diff_styles(
    old_runs: Sequence[StyledRun],
    new_runs: Sequence[StyledRun],
) -> tuple[list[DiffSegment], bool]:
    old_chars = _per_character(old_runs)
    new_chars = _per_character(new_runs)
    text = "".join(run.text for run in new_runs)

    pending: list[_Pending] = []
    any_style_change = False

    for char, old_run, new_run in zip(text, old_chars, new_chars):
        changed = old_run.style != new_run.style
        any_style_change = any_style_change or changed
        kind = SegmentKind.STYLE_CHANGED if changed else SegmentKind.UNCHANGED

        last = pending[-1] if pending else None
        if (
            last is not None
            and last.kind is kind
            and last.new.style == new_run.style
            and (not changed or last.old.style == old_run.style)
        ):
            last.text += char
        else:
            pending.append(_Pending(kind=kind, new=new_run, old=old_run, text=char))

    return [item.freeze() for item in pending], any_style_change


# ---------------------------------------------------------------------------
# Different text: word-level LCS diff
# ---------------------------------------------------------------------------

def _align(old_tokens: list[str], new_tokens: list[str]) -> list[tuple[SegmentKind, str]]:
    """Classify every token against the LCS, removals before additions."""
    common = lcs_tokens(old_tokens, new_tokens)
    out: list[tuple[SegmentKind, str]] = []
    oi = ni = 0

    for token in common:
        while old_tokens[oi] != token:
            out.append((SegmentKind.REMOVED, old_tokens[oi]))
            oi += 1
        while new_tokens[ni] != token:
            out.append((SegmentKind.ADDED, new_tokens[ni]))
            ni += 1
        out.append((SegmentKind.UNCHANGED, new_tokens[ni]))
        oi += 1
        ni += 1

    out.extend((SegmentKind.REMOVED, token) for token in old_tokens[oi:])
    out.extend((SegmentKind.ADDED, token) for token in new_tokens[ni:])
    return out


def _run_at(runs: Sequence[StyledRun], offset: int) -> StyledRun:
    """Return the run covering character *offset*, or an unstyled run."""
    pos = 0
    for run in runs:
        if pos + len(run.text) > offset:
            return run
        pos += len(run.text)
    return _UNSTYLED


def _diff_words(
    old_runs: Sequence[StyledRun],
    new_runs: Sequence[StyledRun],
    old_text: str,
    new_text: str,
) -> list[DiffSegment]:
    aligned = _align(tokenize_words(old_text), tokenize_words(new_text))

    segments: list[DiffSegment] = []
    old_pos = 0
    new_pos = 0
    for kind, token in aligned:
        if kind is SegmentKind.REMOVED:
            source = _run_at(old_runs, old_pos)
            old_pos += len(token)
        else:
            source = _run_at(new_runs, new_pos)
            new_pos += len(token)
            if kind is SegmentKind.UNCHANGED:
                old_pos += len(token)
        segments.append(DiffSegment(kind=kind, run=source.with_text(token)))
    return segments
