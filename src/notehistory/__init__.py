"""notehistory: version snapshots and structural diffs for collaborative notes.

Public re-exports
-----------------

* **Server side:** :class:`VersionService`, :class:`SnapshotPolicy`,
  :class:`VersionStore`, :class:`HistoryRequestHandler` and the storage backends
* **Diffing:** :class:`DiffEngine`
* **Documents:** :class:`JsonDocument`, :class:`Node`, :func:`parse_markdown`
* **Clients:** :class:`HistoryClient`, :class:`AsyncHistoryClient`
* **Configuration:** :class:`NoteHistoryConfig`
* **Errors:** Every :class:`NoteHistoryError` subclass and :class:`ErrorCode`
* **Models:** Version and diff dataclasses and enums

Usage::

    from notehistory import DiffEngine, JsonDocument, VersionService

    service = VersionService()
    doc = JsonDocument.from_markdown("# Notes\\n\\nHello world", title="Notes")
    service.attach("doc-1", doc)
    service.maybe_snapshot("doc-1")

    doc.set_markdown("# Notes\\n\\nHello there")
    versions = service.list_versions("doc-1")
    result = service.diff_versions("doc-1", versions[-1].id)
"""

from __future__ import annotations

from notehistory.async_client import AsyncHistoryClient

# ── Clients ────────────────────────────────────────────────────────────
from notehistory.client import HistoryClient

# ── Configuration ───────────────────────────────────────────────────────
from notehistory.config import DEFAULT_EDITOR_COLOR, NoteHistoryConfig

# ── Diffing ─────────────────────────────────────────────────────────────
from notehistory.diff import DiffEngine, diff_segments, extract_blocks, match_blocks

# ── Documents ───────────────────────────────────────────────────────────
from notehistory.document import JsonDocument, LiveDocument, Node, parse_markdown

# ── Errors ──────────────────────────────────────────────────────────────
from notehistory.errors import (
    ErrorCode,
    NoteHistoryError,
    NoteHistoryExtractionError,
    NoteHistoryHTTPError,
    NoteHistoryMalformedInputError,
    NoteHistoryNetworkError,
    NoteHistoryNotFoundError,
    NoteHistoryStorageError,
)

# ── Server side ─────────────────────────────────────────────────────────
from notehistory.history import (
    HistoryRequestHandler,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    SnapshotPolicy,
    VersionService,
    VersionStore,
)

# ── Models ──────────────────────────────────────────────────────────────
from notehistory.models import (
    Block,
    BlockStatus,
    BlockType,
    DiffBlock,
    DiffResult,
    DiffSegment,
    DiffSummary,
    EditorInfo,
    SegmentKind,
    SkipReason,
    SnapshotOutcome,
    StyledRun,
    Version,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "HistoryClient",
    "AsyncHistoryClient",
    # Configuration
    "NoteHistoryConfig",
    "DEFAULT_EDITOR_COLOR",
    # Diffing
    "DiffEngine",
    "diff_segments",
    "extract_blocks",
    "match_blocks",
    # Documents
    "JsonDocument",
    "LiveDocument",
    "Node",
    "parse_markdown",
    # Error base + code enum
    "NoteHistoryError",
    "ErrorCode",
    "NoteHistoryNotFoundError",
    "NoteHistoryMalformedInputError",
    "NoteHistoryStorageError",
    "NoteHistoryExtractionError",
    "NoteHistoryNetworkError",
    "NoteHistoryHTTPError",
    # Server side
    "VersionService",
    "SnapshotPolicy",
    "VersionStore",
    "HistoryRequestHandler",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Models: enums
    "BlockType",
    "BlockStatus",
    "SegmentKind",
    "SkipReason",
    # Models: documents and versions
    "StyledRun",
    "Block",
    "Version",
    "EditorInfo",
    "SnapshotOutcome",
    # Models: diff types
    "DiffSegment",
    "DiffBlock",
    "DiffSummary",
    "DiffResult",
]
