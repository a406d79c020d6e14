"""Structural diff engine for document snapshots.

Exports
-------
DiffEngine
    Turns two snapshots into an ordered list of classified diff blocks.
extract_blocks
    Flattens a structural tree into typed blocks of styled runs.
match_blocks
    Aligns two block sequences (exact, then similarity) and classifies them.
diff_segments
    Style-level or word-level diff of two styled-run sequences.
summarize
    Per-status block counts of a diff.
"""

from .engine import DiffEngine, summarize
from .extractor import extract_blocks, extract_from_dict, plain_text
from .lcs_matcher import lcs_tokens
from .matcher import SIMILARITY_THRESHOLD, match_blocks, text_similarity
from .segments import diff_segments, tokenize_words

__all__ = [
    "SIMILARITY_THRESHOLD",
    "DiffEngine",
    "diff_segments",
    "extract_blocks",
    "extract_from_dict",
    "lcs_tokens",
    "match_blocks",
    "plain_text",
    "summarize",
    "text_similarity",
    "tokenize_words",
]
