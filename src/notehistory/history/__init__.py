"""Version recording, retention and the request surface.

Exports
-------
VersionService
    Live documents, attribution, listing, restore and comparison.
SnapshotPolicy
    Throttled, de-duplicated snapshotting per document.
VersionStore
    Bounded version log plus snapshot blobs.
HistoryRequestHandler
    Method/path routing onto a :class:`VersionService`.
MemoryKeyValueStore, JsonFileKeyValueStore
    Storage backends.
"""

from .http import CORS_HEADERS, HandlerResponse, HistoryRequestHandler
from .policy import Clock, SnapshotPolicy, epoch_ms
from .service import VersionService, require_text
from .storage import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .store import VersionStore, blob_key, encode_blob, user_key

__all__ = [
    "CORS_HEADERS",
    "Clock",
    "HandlerResponse",
    "HistoryRequestHandler",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SnapshotPolicy",
    "VersionService",
    "VersionStore",
    "blob_key",
    "encode_blob",
    "epoch_ms",
    "require_text",
    "user_key",
]
