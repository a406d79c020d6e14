"""Public data models for notehistory.

Every type here is a plain dataclass or ``str`` enum.  Diff types are
produced fresh on every comparison and never mutated afterwards;
:class:`Version` records are immutable once created.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """Structural kind of a :class:`Block`."""

    PARAGRAPH = "paragraph"
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    BULLET_LIST_ITEM = "bulletListItem"
    ORDERED_LIST_ITEM = "orderedListItem"


class SegmentKind(str, Enum):
    """Classification of a single :class:`DiffSegment`."""

    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"
    STYLE_CHANGED = "styleChanged"


class BlockStatus(str, Enum):
    """Classification of a whole :class:`DiffBlock`."""

    UNCHANGED = "unchanged"
    """Same text, same type, same formatting."""

    MODIFIED = "modified"
    """The text changed; segments carry a word-level diff."""

    ADDED = "added"
    """Present only in the new document."""

    REMOVED = "removed"
    """Present only in the old document."""

    STYLE_ONLY = "styleOnly"
    """Same text, but inline formatting or the block type changed."""


class SkipReason(str, Enum):
    """Why :meth:`SnapshotPolicy.maybe_snapshot` declined to record a version."""

    THROTTLED = "throttled"
    UNCHANGED = "unchanged"
    #: Restore applied, but recording the restored state failed.
    STORAGE_FAILED = "storageFailed"


# ---------------------------------------------------------------------------
# Block content
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StyledRun:
    """A contiguous span of text sharing one formatting state."""

    text: str
    bold: bool = False
    italic: bool = False
    strike: bool = False

    @property
    def style(self) -> tuple[bool, bool, bool]:
        """The ``(bold, italic, strike)`` tuple used for style comparison."""
        return (self.bold, self.italic, self.strike)

    def with_text(self, text: str) -> StyledRun:
        """Return a run with this run's formatting and *text*."""
        return StyledRun(text=text, bold=self.bold, italic=self.italic, strike=self.strike)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "bold": self.bold,
            "italic": self.italic,
            "strike": self.strike,
        }


@dataclass(frozen=True)
class Block:
    """One structural unit of document content.

    Blocks have no identity across snapshots; the block matcher re-derives
    correspondence on every comparison.  An empty block holds a single
    run with empty text.
    """

    type: BlockType
    content: tuple[StyledRun, ...] = (StyledRun(""),)

    @property
    def text(self) -> str:
        """Plain text: the concatenation of every run's text."""
        return "".join(run.text for run in self.content)


# ---------------------------------------------------------------------------
# Diff results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiffSegment:
    """A classified piece of a block diff.

    Attributes
    ----------
    kind:
        How this piece changed.
    run:
        The text and its formatting.  For ``removed`` segments this is the
        old formatting, otherwise the new one.
    prior_run:
        Only set for ``styleChanged`` segments: the same text with its
        formatting before the change.
    """

    kind: SegmentKind
    run: StyledRun
    prior_run: StyledRun | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value, "run": self.run.to_dict()}
        if self.prior_run is not None:
            data["prior_run"] = self.prior_run.to_dict()
        return data


@dataclass(frozen=True)
class DiffBlock:
    """One block of a document-level diff.

    ``type`` is the new block type, or the old type for removed blocks.
    """

    type: BlockType
    status: BlockStatus
    segments: tuple[DiffSegment, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "status": self.status.value,
            "segments": [segment.to_dict() for segment in self.segments],
        }


@dataclass(frozen=True)
class DiffSummary:
    """Block counts per status, for summary display."""

    added: int = 0
    removed: int = 0
    modified: int = 0
    style_only: int = 0
    unchanged: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified or self.style_only)


@dataclass(frozen=True)
class DiffResult:
    """Output of :meth:`DiffEngine.compute_diff`."""

    blocks: tuple[DiffBlock, ...]
    summary: DiffSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "blocks": [block.to_dict() for block in self.blocks],
            "summary": {
                "added": self.summary.added,
                "removed": self.summary.removed,
                "modified": self.summary.modified,
                "style_only": self.summary.style_only,
                "unchanged": self.summary.unchanged,
            },
        }


# ---------------------------------------------------------------------------
# Version history
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EditorInfo:
    """Display attribution for the editor behind a version."""

    name: str
    color: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditorInfo:
        return cls(name=str(data["name"]), color=str(data["color"]))


@dataclass(frozen=True)
class Version:
    """Metadata of one retained historical state of a document.

    Attributes
    ----------
    id:
        Unique id, monotonic by creation (``v_<epoch-ms>``).
    timestamp:
        Creation time in epoch milliseconds.
    title:
        Document title at snapshot time.
    edited_by:
        Name of the last registered editor.
    editor_color:
        Display colour of that editor.
    """

    id: str
    timestamp: int
    title: str
    edited_by: str
    editor_color: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "title": self.title,
            "editedBy": self.edited_by,
            "editorColor": self.editor_color,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Version:
        return cls(
            id=str(data["id"]),
            timestamp=int(data["timestamp"]),
            title=str(data.get("title", "")),
            edited_by=str(data.get("editedBy", "")),
            editor_color=str(data.get("editorColor", "")),
        )


@dataclass
class DocumentHistoryState:
    """Per-document policy record: throttle timestamp, fingerprint, versions.

    Loaded from and saved to the key-value store as one unit inside the
    document's critical section.
    """

    document_id: str
    last_save: int | None = None
    fingerprint: str | None = None
    versions: list[Version] = field(default_factory=list)


@dataclass(frozen=True)
class SnapshotOutcome:
    """Result of one :meth:`SnapshotPolicy.maybe_snapshot` call.

    Exactly one of ``version`` and ``skipped`` is set.
    """

    version: Version | None = None
    skipped: SkipReason | None = None
    evicted: tuple[str, ...] = ()

    @property
    def recorded(self) -> bool:
        return self.version is not None
