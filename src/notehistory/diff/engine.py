"""Diff engine: two snapshots in, an ordered list of classified blocks out.

:class:`DiffEngine` composes the pipeline

1. **Replay** -- each snapshot is applied to a fresh, empty document.
2. **Extract** -- :func:`extract_blocks` flattens its structural tree.
3. **Match** -- :func:`match_blocks` aligns the two block lists and runs
   the segment differ on every matched pair.

The engine is pure: it never mutates its inputs, holds no per-call state,
and returns the same result for the same pair of snapshots.  A snapshot
that cannot be replayed counts as a document without content.
"""

from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable, Iterable
from typing import Any

from notehistory.config import NoteHistoryConfig
from notehistory.document.source import JsonDocument, LiveDocument
from notehistory.errors import NoteHistoryExtractionError
from notehistory.models import Block, BlockStatus, DiffBlock, DiffResult, DiffSummary
from notehistory.observability import get_logger, resolve_metrics

from .extractor import extract_blocks
from .matcher import match_blocks

log = get_logger("notehistory.diff")

DocumentFactory = Callable[[], LiveDocument]


def summarize(blocks: Iterable[DiffBlock]) -> DiffSummary:
    """Count the blocks of a diff per status."""
    counts = {status: 0 for status in BlockStatus}
    for block in blocks:
        counts[block.status] += 1
    return DiffSummary(
        added=counts[BlockStatus.ADDED],
        removed=counts[BlockStatus.REMOVED],
        modified=counts[BlockStatus.MODIFIED],
        style_only=counts[BlockStatus.STYLE_ONLY],
        unchanged=counts[BlockStatus.UNCHANGED],
    )


class DiffEngine:
    """Compute structural diffs between document snapshots.

    Parameters
    ----------
    config:
        Supplies the metrics backend and the ``debug_dump_diff`` flag.
    document_factory:
        Builds the empty document each snapshot is replayed into.
        Defaults to :class:`JsonDocument`.
    """

    def __init__(
        self,
        config: NoteHistoryConfig | None = None,
        document_factory: DocumentFactory | None = None,
    ) -> None:
        self._config = config or NoteHistoryConfig()
        self._metrics = resolve_metrics(self._config.metrics)
        self._document_factory: DocumentFactory = document_factory or JsonDocument

    def compute_diff(self, old_snapshot: bytes | None, new_snapshot: bytes | None) -> DiffResult:
        """Diff two full-state snapshots.

        Parameters
        ----------
        old_snapshot:
            The older state, or ``None`` for "no document".
        new_snapshot:
            The newer state, or ``None`` for "no document".

        Returns
        -------
        DiffResult
            Blocks in new-document order, with status counts.
        """
        return self.diff_blocks(self.blocks_of(old_snapshot), self.blocks_of(new_snapshot))

    def diff_documents(self, old_doc: LiveDocument | None, new_doc: LiveDocument | None) -> DiffResult:
        """Diff two live documents by their current structural trees."""
        return self.diff_blocks(self._blocks_of_document(old_doc), self._blocks_of_document(new_doc))

    def diff_blocks(self, old_blocks: list[Block], new_blocks: list[Block]) -> DiffResult:
        """Diff two already-extracted block sequences."""
        t0 = time.monotonic()
        blocks = tuple(match_blocks(old_blocks, new_blocks))
        summary = summarize(blocks)
        elapsed_ms = (time.monotonic() - t0) * 1000

        self._metrics.timing("notehistory.diff_duration_ms", elapsed_ms)
        for status, count in (
            ("added", summary.added),
            ("removed", summary.removed),
            ("modified", summary.modified),
            ("styleOnly", summary.style_only),
            ("unchanged", summary.unchanged),
        ):
            if count:
                self._metrics.increment(
                    "notehistory.diff_blocks_total", count, tags={"status": status}
                )

        result = DiffResult(blocks=blocks, summary=summary)
        if self._config.debug_dump_diff:
            _dump_diff(result)
        return result

    def blocks_of(self, snapshot: bytes | None) -> list[Block]:
        """Replay *snapshot* into a fresh document and extract its blocks."""
        if snapshot is None:
            return []
        doc = self._document_factory()
        try:
            doc.apply_update(snapshot)
        except NoteHistoryExtractionError as exc:
            self._record_extraction_failure("apply_update", exc)
            return []
        return self._blocks_of_document(doc)

    def _blocks_of_document(self, doc: LiveDocument | None) -> list[Block]:
        if doc is None:
            return []
        try:
            root = doc.structure()
        except (NoteHistoryExtractionError, AttributeError, TypeError, ValueError) as exc:
            self._record_extraction_failure("structure", exc)
            return []
        return extract_blocks(root)

    def _record_extraction_failure(self, stage: str, exc: Exception) -> None:
        self._metrics.increment(
            "notehistory.extraction_failures_total", tags={"stage": stage}
        )
        log.warning(
            "Snapshot treated as empty",
            extra={"extra_fields": {"op": "compute_diff", "stage": stage, "error": str(exc)}},
        )


def _dump_diff(result: DiffResult) -> None:
    payload: dict[str, Any] = result.to_dict()
    print(
        "[notehistory] Diff:",
        json.dumps(payload, indent=2, ensure_ascii=False),
        file=sys.stderr,
    )
