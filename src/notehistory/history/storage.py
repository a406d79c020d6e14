"""Durable key-value storage scoped per document.

The history core needs read-your-writes consistency per document key and
nothing more: no cross-document transactions, no retries (a failing
backend is surfaced as :class:`NoteHistoryStorageError`).  Values are
JSON-compatible (``str``, ``int``, ``list``, ``dict``...).

Two backends ship with the package:

* :class:`MemoryKeyValueStore` -- process-local, for tests and
  single-process servers.
* :class:`JsonFileKeyValueStore` -- one JSON file per document on disk,
  replaced atomically on every write.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

from notehistory.errors import NoteHistoryStorageError


@runtime_checkable
class KeyValueStore(Protocol):
    """Per-document key-value storage."""

    def get(self, document_id: str, key: str, default: Any = None) -> Any:
        """Return the value under *key*, or *default* when absent."""
        ...

    def put(self, document_id: str, key: str, value: Any) -> None:
        """Store *value* under *key*."""
        ...

    def delete(self, document_id: str, key: str) -> None:
        """Remove *key*; a missing key is not an error."""
        ...


class MemoryKeyValueStore:
    """Thread-safe in-memory store.

    Values are deep-copied on the way in and out so callers can never
    mutate stored state by accident.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, document_id: str, key: str, default: Any = None) -> Any:
        with self._lock:
            bucket = self._data.get(document_id, {})
            if key not in bucket:
                return default
            return copy.deepcopy(bucket[key])

    def put(self, document_id: str, key: str, value: Any) -> None:
        with self._lock:
            self._data.setdefault(document_id, {})[key] = copy.deepcopy(value)

    def delete(self, document_id: str, key: str) -> None:
        with self._lock:
            self._data.get(document_id, {}).pop(key, None)

    def keys(self, document_id: str) -> list[str]:
        with self._lock:
            return sorted(self._data.get(document_id, {}))


class JsonFileKeyValueStore:
    """Store each document's keys in ``<root>/<document_id>.json``.

    Writes go to a temporary file in the same directory followed by
    :func:`os.replace`, so a crash never leaves a half-written document
    file behind.  Any :class:`OSError` or decode failure is raised as
    :class:`NoteHistoryStorageError`.

    Parameters
    ----------
    root:
        Directory holding the per-document files.  Created on first write.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root)
        self._lock = threading.Lock()

    def get(self, document_id: str, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read(document_id, key).get(key, default)

    def put(self, document_id: str, key: str, value: Any) -> None:
        with self._lock:
            data = self._read(document_id, key)
            data[key] = value
            self._write(document_id, key, data)

    def delete(self, document_id: str, key: str) -> None:
        with self._lock:
            data = self._read(document_id, key)
            if key in data:
                del data[key]
                self._write(document_id, key, data)

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def path_for(self, document_id: str) -> Path:
        # Percent-encoding keeps distinct ids in distinct files.
        return self._root / f"{quote(document_id, safe='')}.json"

    def _read(self, document_id: str, key: str) -> dict[str, Any]:
        path = self.path_for(document_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise _storage_error("read", document_id, key, exc) from exc
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise _storage_error("decode", document_id, key, exc) from exc
        if not isinstance(data, dict):
            raise NoteHistoryStorageError(
                message=f"Storage file for document {document_id!r} is not a JSON object",
                context={"document_id": document_id, "key": key, "operation": "decode"},
            )
        return data

    def _write(self, document_id: str, key: str, data: dict[str, Any]) -> None:
        path = self.path_for(document_id)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, ensure_ascii=False, sort_keys=True)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise _storage_error("write", document_id, key, exc) from exc


def _storage_error(
    operation: str, document_id: str, key: str, exc: Exception
) -> NoteHistoryStorageError:
    return NoteHistoryStorageError(
        message=f"Storage {operation} failed for {document_id!r}/{key!r}: {exc}",
        context={"document_id": document_id, "key": key, "operation": operation},
        cause=exc,
    )
