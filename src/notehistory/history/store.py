"""Bounded, append-only version log backed by a key-value store.

Per-document keys:

* ``versions`` -- list of version dicts, newest first, at most
  ``max_versions`` long.
* ``version:<id>`` -- base64 snapshot blob of that version.
* ``lastVersionSave`` -- epoch-ms of the last recorded snapshot.
* ``lastStateHash`` -- fingerprint of the last recorded snapshot.
* ``lastActiveUser`` -- ``{"name", "color"}`` of the most recent editor.
* ``user:<editorId>`` -- ``{"name", "color"}`` per registered editor.
"""

from __future__ import annotations

import base64
import binascii

from notehistory.errors import NoteHistoryNotFoundError, NoteHistoryStorageError
from notehistory.models import DocumentHistoryState, EditorInfo, Version
from notehistory.observability import get_logger

from .storage import KeyValueStore

log = get_logger("notehistory.store")

VERSIONS_KEY = "versions"
LAST_SAVE_KEY = "lastVersionSave"
STATE_HASH_KEY = "lastStateHash"
LAST_ACTIVE_USER_KEY = "lastActiveUser"


def blob_key(version_id: str) -> str:
    return f"version:{version_id}"


def user_key(editor_id: str) -> str:
    return f"user:{editor_id}"


def encode_blob(state: bytes) -> str:
    return base64.b64encode(state).decode("ascii")


class VersionStore:
    """Version metadata and snapshot blobs for any number of documents.

    Parameters
    ----------
    storage:
        The durable key-value backend.
    max_versions:
        Retention bound per document; the oldest versions are evicted
        first, together with their blobs.
    """

    def __init__(self, storage: KeyValueStore, max_versions: int = 100) -> None:
        if max_versions < 1:
            raise ValueError(f"max_versions must be >= 1, got {max_versions}")
        self._storage = storage
        self._max_versions = max_versions

    @property
    def max_versions(self) -> int:
        return self._max_versions

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def list_versions(self, document_id: str) -> list[Version]:
        """Return the retained versions of *document_id*, newest first."""
        raw = self._storage.get(document_id, VERSIONS_KEY) or []
        try:
            return [Version.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            raise NoteHistoryStorageError(
                message=f"Version list of {document_id!r} is corrupt: {exc}",
                context={"document_id": document_id, "key": VERSIONS_KEY, "operation": "decode"},
                cause=exc,
            ) from exc

    def get_blob(self, document_id: str, version_id: str) -> bytes:
        """Return the snapshot bytes of *version_id*.

        Raises
        ------
        NoteHistoryNotFoundError
            If no blob is stored under that id.
        NoteHistoryStorageError
            If the stored blob is not valid base64.
        """
        encoded = self._storage.get(document_id, blob_key(version_id))
        if not encoded:
            raise NoteHistoryNotFoundError(
                message=f"Version {version_id!r} not found for document {document_id!r}",
                context={"document_id": document_id, "version_id": version_id},
            )
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, TypeError, ValueError) as exc:
            raise NoteHistoryStorageError(
                message=f"Blob of version {version_id!r} is corrupt: {exc}",
                context={
                    "document_id": document_id,
                    "key": blob_key(version_id),
                    "operation": "decode",
                },
                cause=exc,
            ) from exc

    def get_encoded_blob(self, document_id: str, version_id: str) -> str:
        """Return the stored base64 text of *version_id* without decoding it."""
        encoded = self._storage.get(document_id, blob_key(version_id))
        if not encoded:
            raise NoteHistoryNotFoundError(
                message=f"Version {version_id!r} not found for document {document_id!r}",
                context={"document_id": document_id, "version_id": version_id},
            )
        return str(encoded)

    def append(
        self,
        document_id: str,
        version: Version,
        blob: bytes | str,
        current: list[Version] | None = None,
        max_versions: int | None = None,
        prune: bool = True,
    ) -> tuple[list[Version], list[str]]:
        """Persist *version* and its blob, then enforce retention.

        Parameters
        ----------
        document_id:
            Owning document.
        version:
            The new version; it becomes index 0.
        blob:
            Snapshot bytes, or their base64 text, stored under
            ``version:<id>``.
        current:
            The version list already loaded by the caller, to avoid a
            second read inside the critical section.
        max_versions:
            Retention bound for this call; defaults to the store's own.
        prune:
            Delete the blobs of evicted versions now.  Callers that may
            still undo the append pass ``False`` and call
            :meth:`prune_blobs` once the append is final.

        Returns
        -------
        tuple[list[Version], list[str]]
            The retained list (newest first) and the evicted version ids.

        Notes
        -----
        Once the version list is written the version is committed.  Blobs
        of evicted versions are then deleted best-effort: a failed delete
        is logged and leaves an orphaned blob rather than failing the call.
        """
        existing = current if current is not None else self.list_versions(document_id)
        limit = self._max_versions if max_versions is None else max_versions
        if limit < 1:
            raise ValueError(f"max_versions must be >= 1, got {limit}")
        combined = [version, *existing]
        retained = combined[:limit]
        evicted = [v.id for v in combined[limit:]]

        encoded = encode_blob(blob) if isinstance(blob, bytes) else blob
        self._storage.put(document_id, blob_key(version.id), encoded)
        try:
            self._storage.put(document_id, VERSIONS_KEY, [v.to_dict() for v in retained])
        except NoteHistoryStorageError:
            # The list write failed, so nothing references the new blob.
            self._storage.delete(document_id, blob_key(version.id))
            raise

        if prune:
            self.prune_blobs(document_id, evicted)
        return retained, evicted

    def prune_blobs(self, document_id: str, version_ids: list[str]) -> None:
        """Delete the blobs of evicted versions, logging rather than raising on failure."""
        for version_id in version_ids:
            try:
                self._storage.delete(document_id, blob_key(version_id))
            except NoteHistoryStorageError as exc:
                log.warning(
                    "Evicted blob not deleted",
                    extra={"extra_fields": {
                        "op": "prune_blobs",
                        "document_id": document_id,
                        "version_id": version_id,
                        "error": str(exc),
                    }},
                )
        if version_ids:
            log.debug(
                "Evicted versions",
                extra={"extra_fields": {
                    "op": "prune_blobs", "document_id": document_id, "evicted": version_ids,
                }},
            )

    def revert_append(
        self, document_id: str, version_id: str, previous: list[Version]
    ) -> None:
        """Undo an unpruned :meth:`append`: restore *previous* and drop the new blob."""
        self._storage.put(document_id, VERSIONS_KEY, [v.to_dict() for v in previous])
        self._storage.delete(document_id, blob_key(version_id))

    # ------------------------------------------------------------------
    # Policy state
    # ------------------------------------------------------------------

    def load_state(self, document_id: str) -> DocumentHistoryState:
        """Read the throttle timestamp, fingerprint and version list as one record."""
        last_save = self._storage.get(document_id, LAST_SAVE_KEY)
        fingerprint = self._storage.get(document_id, STATE_HASH_KEY)
        return DocumentHistoryState(
            document_id=document_id,
            last_save=int(last_save) if last_save is not None else None,
            fingerprint=str(fingerprint) if fingerprint is not None else None,
            versions=self.list_versions(document_id),
        )

    def record_snapshot(self, document_id: str, timestamp: int, fingerprint: str) -> None:
        """Advance the throttle timestamp and fingerprint together.

        If the second write fails the first is rolled back, so a failure
        leaves both values as they were.
        """
        previous = self._storage.get(document_id, STATE_HASH_KEY)
        self._storage.put(document_id, STATE_HASH_KEY, fingerprint)
        try:
            self._storage.put(document_id, LAST_SAVE_KEY, timestamp)
        except NoteHistoryStorageError:
            if previous is None:
                self._storage.delete(document_id, STATE_HASH_KEY)
            else:
                self._storage.put(document_id, STATE_HASH_KEY, previous)
            raise

    def clear_fingerprint(self, document_id: str) -> None:
        self._storage.delete(document_id, STATE_HASH_KEY)

    # ------------------------------------------------------------------
    # Attribution
    # ------------------------------------------------------------------

    def set_active_editor(self, document_id: str, editor_id: str, editor: EditorInfo) -> None:
        self._storage.put(document_id, user_key(editor_id), editor.to_dict())
        self._storage.put(document_id, LAST_ACTIVE_USER_KEY, editor.to_dict())

    def last_active_editor(self, document_id: str) -> EditorInfo | None:
        raw = self._storage.get(document_id, LAST_ACTIVE_USER_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return EditorInfo.from_dict(raw)
        except KeyError:
            return None
