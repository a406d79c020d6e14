"""Logical request surface of the version history core.

:class:`VersionService` ties the live documents, the snapshot policy and
the version store together and exposes the operations a transport layer
calls: attribution, listing, content retrieval, restore and comparison.
Every operation is scoped to one document; requests with missing fields
are rejected before anything is read or written.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from notehistory.config import NoteHistoryConfig
from notehistory.diff.engine import DiffEngine
from notehistory.document.source import LiveDocument
from notehistory.errors import (
    NoteHistoryMalformedInputError,
    NoteHistoryNotFoundError,
    NoteHistoryStorageError,
)
from notehistory.models import DiffResult, EditorInfo, SkipReason, SnapshotOutcome, Version
from notehistory.observability import get_logger, resolve_metrics

from .policy import Clock, SnapshotPolicy
from .storage import KeyValueStore, MemoryKeyValueStore
from .store import VersionStore

log = get_logger("notehistory.service")


def require_text(field_name: str, value: Any) -> str:
    """Return *value* if it is a non-blank string, else raise malformed input."""
    if not isinstance(value, str) or not value.strip():
        raise NoteHistoryMalformedInputError(
            message=f"'{field_name}' must be a non-empty string",
            context={"field": field_name, "value": value},
        )
    return value


class VersionService:
    """Version history for a set of live documents.

    Parameters
    ----------
    storage:
        Durable key-value backend.  Defaults to an in-memory store.
    config:
        Policy, retention and attribution settings.
    clock:
        Epoch-millisecond clock, injected for tests.
    engine:
        Diff engine used by :meth:`diff_versions`.
    """

    def __init__(
        self,
        storage: KeyValueStore | None = None,
        config: NoteHistoryConfig | None = None,
        clock: Clock | None = None,
        engine: DiffEngine | None = None,
    ) -> None:
        self._config = config or NoteHistoryConfig()
        self._metrics = resolve_metrics(self._config.metrics)
        self._store = VersionStore(
            storage if storage is not None else MemoryKeyValueStore(),
            max_versions=self._config.max_versions,
        )
        self._policy = SnapshotPolicy(self._store, self._config, clock)
        self._engine = engine or DiffEngine(self._config)

        self._guard = threading.Lock()
        self._documents: dict[str, LiveDocument] = {}
        self._unsubscribe: dict[str, Callable[[], None]] = {}
        self._active_editors: dict[str, dict[str, EditorInfo]] = {}
        self._restoring: set[str] = set()

    @property
    def config(self) -> NoteHistoryConfig:
        return self._config

    @property
    def store(self) -> VersionStore:
        return self._store

    @property
    def policy(self) -> SnapshotPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Live documents
    # ------------------------------------------------------------------

    def attach(self, document_id: str, document: LiveDocument) -> None:
        """Serve *document* under *document_id* and snapshot it on every change."""
        require_text("documentId", document_id)
        self.detach(document_id)
        unsubscribe = document.observe(lambda: self._on_change(document_id))
        with self._guard:
            self._documents[document_id] = document
            self._unsubscribe[document_id] = unsubscribe

    def detach(self, document_id: str) -> None:
        with self._guard:
            self._documents.pop(document_id, None)
            unsubscribe = self._unsubscribe.pop(document_id, None)
        if unsubscribe is not None:
            unsubscribe()

    def document(self, document_id: str) -> LiveDocument:
        """Return the live document served under *document_id*."""
        with self._guard:
            document = self._documents.get(document_id)
        if document is None:
            raise NoteHistoryNotFoundError(
                message=f"No live document {document_id!r}",
                context={"document_id": document_id},
            )
        return document

    def maybe_snapshot(self, document_id: str, now: int | None = None) -> SnapshotOutcome:
        """Run the snapshot policy against the attached document."""
        return self._policy.maybe_snapshot(document_id, self.document(document_id), now)

    def _on_change(self, document_id: str) -> None:
        with self._policy.lock_for(document_id):
            if document_id in self._restoring:
                return
            self.maybe_snapshot(document_id)

    # ------------------------------------------------------------------
    # Attribution
    # ------------------------------------------------------------------

    def register_active_editor(
        self,
        document_id: str,
        editor_id: str,
        name: str,
        color: str,
    ) -> EditorInfo:
        """Attribute subsequent snapshots of *document_id* to this editor."""
        require_text("documentId", document_id)
        require_text("connectionId", editor_id)
        editor = EditorInfo(name=require_text("name", name), color=require_text("color", color))

        with self._guard:
            self._active_editors.setdefault(document_id, {})[editor_id] = editor
        self._store.set_active_editor(document_id, editor_id, editor)
        log.debug(
            "Editor registered",
            extra={"extra_fields": {
                "op": "register_active_editor",
                "document_id": document_id,
                "editor_id": editor_id,
            }},
        )
        return editor

    def unregister_editor(self, document_id: str, editor_id: str) -> None:
        """Forget a disconnected editor; last-active attribution is kept."""
        with self._guard:
            editors = self._active_editors.get(document_id)
            if editors is not None:
                editors.pop(editor_id, None)

    def active_editors(self, document_id: str) -> dict[str, EditorInfo]:
        with self._guard:
            return dict(self._active_editors.get(document_id, {}))

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def list_versions(self, document_id: str) -> list[Version]:
        require_text("documentId", document_id)
        return self._store.list_versions(document_id)

    def get_version_content(self, document_id: str, version_id: str) -> bytes:
        require_text("documentId", document_id)
        require_text("versionId", version_id)
        return self._store.get_blob(document_id, version_id)

    def restore_version(self, document_id: str, version_id: str) -> SnapshotOutcome:
        """Overwrite the live document with *version_id* and re-run the policy.

        The stored fingerprint is cleared before the document is touched, so
        a storage failure there leaves the document as it was.  Once the
        update is applied the restore stands: if recording the restored
        state then fails, the failure is logged and the outcome is skipped
        with :attr:`SkipReason.STORAGE_FAILED`.  The cleared fingerprint
        makes the next eligible snapshot record it.

        Raises
        ------
        NoteHistoryMalformedInputError
            If an id is missing.
        NoteHistoryNotFoundError
            If the version or the live document is unknown.
        NoteHistoryStorageError
            If the snapshot cannot be read or the fingerprint cannot be
            cleared.  The live document is not modified.
        NoteHistoryExtractionError
            If the stored snapshot cannot be applied.
        """
        require_text("documentId", document_id)
        require_text("versionId", version_id)

        with self._policy.lock_for(document_id):
            state = self._store.get_blob(document_id, version_id)
            document = self.document(document_id)

            self._store.clear_fingerprint(document_id)
            self._restoring.add(document_id)
            try:
                document.apply_update(state)
            finally:
                self._restoring.discard(document_id)
            try:
                outcome = self._policy.maybe_snapshot(document_id, document)
            except NoteHistoryStorageError as exc:
                log.warning(
                    "Restored state not recorded",
                    extra={"extra_fields": {
                        "op": "restore_version",
                        "document_id": document_id,
                        "version_id": version_id,
                        "error": str(exc),
                    }},
                )
                outcome = SnapshotOutcome(skipped=SkipReason.STORAGE_FAILED)

        self._metrics.increment("notehistory.restores_total")
        log.info(
            "Version restored",
            extra={"extra_fields": {
                "op": "restore_version",
                "document_id": document_id,
                "version_id": version_id,
                "recorded": outcome.version.id if outcome.version else None,
            }},
        )
        return outcome

    def diff_versions(
        self,
        document_id: str,
        old_version_id: str,
        new_version_id: str | None = None,
    ) -> DiffResult:
        """Diff a stored version against another one, or against the live document."""
        old_state = self.get_version_content(document_id, old_version_id)
        if new_version_id is None:
            new_state = self.document(document_id).encode_state()
        else:
            new_state = self.get_version_content(document_id, new_version_id)
        return self._engine.compute_diff(old_state, new_state)
