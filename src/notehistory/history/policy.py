"""Server-side snapshot policy.

:class:`SnapshotPolicy` decides whether the current state of a live
document becomes a new :class:`~notehistory.models.Version`.  Per
document it cycles ``Idle -> Eligible -> Saved -> Idle``:

1. **Throttle** -- attempts within ``snapshot_interval_ms`` of the last
   recorded snapshot are ignored.
2. **De-duplicate** -- the full state is encoded and fingerprinted; an
   unchanged fingerprint is ignored.
3. **Record** -- a version is built (title from metadata, attribution from
   the last registered editor), its blob and the updated version list are
   persisted, and the throttle timestamp and fingerprint are advanced.  If
   advancing them fails the append is reverted.  Blobs of versions pushed
   past ``max_versions`` are deleted last, best-effort.

All of this runs inside a per-document re-entrant lock, so racing
mutation events for one document are serialized while different
documents proceed independently.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from notehistory.config import NoteHistoryConfig
from notehistory.document.source import LiveDocument
from notehistory.errors import NoteHistoryStorageError
from notehistory.models import SkipReason, SnapshotOutcome, Version
from notehistory.observability import get_logger, resolve_metrics
from notehistory.utils.hashing import fingerprint

from .store import VersionStore, encode_blob

log = get_logger("notehistory.policy")

Clock = Callable[[], int]


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class SnapshotPolicy:
    """Throttled, de-duplicated version recording for live documents.

    Parameters
    ----------
    store:
        Where versions, blobs and policy state are persisted.
    config:
        Supplies the throttle window, retention bound, attribution
        defaults and metrics.
    clock:
        Returns "now" in epoch milliseconds.  Injected for tests.
    """

    def __init__(
        self,
        store: VersionStore,
        config: NoteHistoryConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._config = config or NoteHistoryConfig()
        self._clock: Clock = clock or epoch_ms
        self._metrics = resolve_metrics(self._config.metrics)
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def lock_for(self, document_id: str) -> threading.RLock:
        """Return the lock guarding *document_id*'s policy state."""
        with self._locks_guard:
            lock = self._locks.get(document_id)
            if lock is None:
                lock = self._locks[document_id] = threading.RLock()
            return lock

    def now(self) -> int:
        return self._clock()

    def maybe_snapshot(
        self,
        document_id: str,
        document: LiveDocument,
        now: int | None = None,
    ) -> SnapshotOutcome:
        """Record a version of *document* if the policy allows it.

        Parameters
        ----------
        document_id:
            Key of the document's history.
        document:
            The live document to snapshot.
        now:
            Decision time in epoch milliseconds; defaults to the clock.

        Returns
        -------
        SnapshotOutcome
            The recorded version, or the reason nothing was recorded.

        Raises
        ------
        NoteHistoryStorageError
            If persisting fails.  Throttle timestamp and fingerprint are
            left untouched, so the next attempt retries cleanly.
        """
        with self.lock_for(document_id):
            if now is None:
                now = self._clock()

            state = self._store.load_state(document_id)
            if (
                state.last_save is not None
                and now - state.last_save < self._config.snapshot_interval_ms
            ):
                return self._skip(document_id, SkipReason.THROTTLED)

            encoded = encode_blob(document.encode_state())
            current_fingerprint = fingerprint(encoded)
            if current_fingerprint == state.fingerprint:
                return self._skip(document_id, SkipReason.UNCHANGED)

            version = self._build_version(document_id, document, now, state.versions)
            try:
                retained, evicted = self._store.append(
                    document_id,
                    version,
                    encoded,
                    current=state.versions,
                    max_versions=self._config.max_versions,
                    prune=False,
                )
                try:
                    self._store.record_snapshot(document_id, now, current_fingerprint)
                except NoteHistoryStorageError:
                    self._store.revert_append(document_id, version.id, state.versions)
                    raise
            except NoteHistoryStorageError as exc:
                log.error(
                    "Snapshot not recorded",
                    extra={"extra_fields": {
                        "op": "maybe_snapshot",
                        "document_id": document_id,
                        "version_id": version.id,
                        "error": str(exc),
                    }},
                )
                raise

            self._store.prune_blobs(document_id, evicted)

        self._metrics.increment("notehistory.snapshots_total")
        if evicted:
            self._metrics.increment("notehistory.versions_evicted_total", len(evicted))
        self._metrics.gauge(
            "notehistory.versions_retained", len(retained), tags={"document_id": document_id}
        )
        log.info(
            "Version recorded",
            extra={"extra_fields": {
                "op": "maybe_snapshot",
                "document_id": document_id,
                "version_id": version.id,
                "edited_by": version.edited_by,
                "retained": len(retained),
                "evicted": len(evicted),
            }},
        )
        return SnapshotOutcome(version=version, evicted=tuple(evicted))

    def _skip(self, document_id: str, reason: SkipReason) -> SnapshotOutcome:
        self._metrics.increment(
            "notehistory.snapshots_skipped_total", tags={"reason": reason.value}
        )
        log.debug(
            "Snapshot skipped",
            extra={"extra_fields": {
                "op": "maybe_snapshot", "document_id": document_id, "reason": reason.value,
            }},
        )
        return SnapshotOutcome(skipped=reason)

    def _build_version(
        self,
        document_id: str,
        document: LiveDocument,
        now: int,
        existing: list[Version],
    ) -> Version:
        title = document.metadata().get("title") or self._config.default_title
        editor = self._store.last_active_editor(document_id)
        return Version(
            id=_unique_version_id(now, existing),
            timestamp=now,
            title=str(title),
            edited_by=editor.name if editor else self._config.default_editor_name,
            editor_color=editor.color if editor else self._config.default_editor_color,
        )


def _unique_version_id(now: int, existing: list[Version]) -> str:
    base = f"v_{now}"
    taken = {v.id for v in existing}
    if base not in taken:
        return base
    suffix = 1
    while f"{base}_{suffix}" in taken:
        suffix += 1
    return f"{base}_{suffix}"
