"""Synchronous client for the version history HTTP surface.

:class:`HistoryClient` is what an editor front-end (or a script) uses to
talk to a history server: register the current editor, list versions,
fetch or restore one, and diff a stored version against the state the
caller currently holds.

Usage::

    from notehistory import HistoryClient

    with HistoryClient(base_url="https://notes.example.com") as client:
        for version in client.list_versions("doc-1"):
            print(version.id, version.edited_by)

Requests are never retried.  Status codes are mapped back onto the typed
errors the server raised: 400 to :class:`NoteHistoryMalformedInputError`,
404 to :class:`NoteHistoryNotFoundError`, 500 to
:class:`NoteHistoryStorageError`, anything else to
:class:`NoteHistoryHTTPError`.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any
from urllib.parse import quote

import httpx

from notehistory.config import NoteHistoryConfig
from notehistory.diff.engine import DiffEngine
from notehistory.errors import (
    NoteHistoryHTTPError,
    NoteHistoryMalformedInputError,
    NoteHistoryNetworkError,
    NoteHistoryNotFoundError,
    NoteHistoryStorageError,
)
from notehistory.models import DiffResult, EditorInfo, Version
from notehistory.observability import get_logger
from notehistory.utils.colors import color_for_editor

log = get_logger("notehistory.client")


# ---------------------------------------------------------------------------
# Shared helpers (used by both sync and async clients)
# ---------------------------------------------------------------------------

def _document_path(config: NoteHistoryConfig, document_id: str, *parts: str) -> str:
    segments = [quote(document_id, safe=""), *(quote(p, safe="") for p in parts)]
    return f"{config.route_prefix}/{'/'.join(segments)}"


def _editor_payload(editor_id: str, name: str, color: str | None) -> dict[str, Any]:
    return {
        "connectionId": editor_id,
        "user": {"name": name, "color": color or color_for_editor(editor_id)},
    }


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the typed error matching a non-2xx *response*."""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    detail = body.get("detail") or body.get("error") or response.text[:500]

    if status == 400:
        raise NoteHistoryMalformedInputError(
            message=f"Rejected {method} {path}: {detail}",
            context={"field": "body", "value": None, "status_code": status},
        )
    if status == 404:
        raise NoteHistoryNotFoundError(
            message=f"Not found on {method} {path}: {detail}",
            context={"status_code": status, "path": path},
        )
    if status == 500:
        raise NoteHistoryStorageError(
            message=f"Server storage failure on {method} {path}: {detail}",
            context={"status_code": status, "path": path, "operation": method},
        )
    raise NoteHistoryHTTPError(
        message=f"Unexpected status {status} on {method} {path}: {detail}",
        context={"status_code": status, "path": path, "body": body},
    )


def _parse_response(response: httpx.Response, method: str, path: str) -> Any:
    log.debug(
        "History request",
        extra={"extra_fields": {
            "op": "request", "method": method, "path": path, "status": response.status_code,
        }},
    )
    if not 200 <= response.status_code < 300:
        _raise_for_status(response, method, path)
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise NoteHistoryHTTPError(
            message=f"Response to {method} {path} is not JSON",
            context={"status_code": response.status_code, "path": path, "body": None},
            cause=exc,
        ) from exc


def _network_error(method: str, path: str, exc: Exception) -> NoteHistoryNetworkError:
    log.warning(
        "History request network error",
        extra={"extra_fields": {"op": "request", "method": method, "path": path, "error": str(exc)}},
    )
    return NoteHistoryNetworkError(
        message=f"Network error on {method} {path}: {exc}",
        context={"url": path},
        cause=exc,
    )


def _decode_state(payload: Any, path: str) -> bytes:
    state = payload.get("state") if isinstance(payload, dict) else None
    if not isinstance(state, str):
        raise NoteHistoryHTTPError(
            message=f"Response to GET {path} carries no snapshot state",
            context={"status_code": 200, "path": path, "body": payload},
        )
    try:
        return base64.b64decode(state, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise NoteHistoryHTTPError(
            message=f"Snapshot state from GET {path} is not valid base64",
            context={"status_code": 200, "path": path, "body": None},
            cause=exc,
        ) from exc


def _versions_from(payload: Any, path: str) -> list[Version]:
    if not isinstance(payload, list):
        raise NoteHistoryHTTPError(
            message=f"Response to GET {path} is not a version list",
            context={"status_code": 200, "path": path, "body": payload},
        )
    return [Version.from_dict(item) for item in payload]


def _restored_version(payload: Any) -> Version | None:
    recorded = payload.get("version") if isinstance(payload, dict) else None
    return Version.from_dict(recorded) if isinstance(recorded, dict) else None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class HistoryClient:
    """Synchronous history client.

    Parameters
    ----------
    config:
        Connection settings.  When omitted, one is built from *kwargs*.
    transport:
        Optional :mod:`httpx` transport, e.g. an in-process
        :meth:`HistoryRequestHandler.as_transport`.
    **kwargs:
        Forwarded to :class:`NoteHistoryConfig` when *config* is omitted.
    """

    def __init__(
        self,
        config: NoteHistoryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = config or NoteHistoryConfig(**kwargs)
        self._engine = DiffEngine(self._config)
        self._client = httpx.Client(
            base_url=self._config.base_url,
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(self._config.timeout_seconds),
            transport=transport,
        )

    def register_editor(
        self,
        document_id: str,
        editor_id: str,
        name: str,
        color: str | None = None,
    ) -> EditorInfo:
        """Attribute the next snapshots of *document_id* to this editor.

        Without a *color*, one is picked from the palette by editor id.
        """
        payload = _editor_payload(editor_id, name, color)
        self._request("POST", _document_path(self._config, document_id, "user"), json=payload)
        return EditorInfo.from_dict(payload["user"])

    def list_versions(self, document_id: str) -> list[Version]:
        path = _document_path(self._config, document_id, "versions")
        return _versions_from(self._request("GET", path), path)

    def get_version_content(self, document_id: str, version_id: str) -> bytes:
        path = _document_path(self._config, document_id, "version", version_id)
        return _decode_state(self._request("GET", path), path)

    def restore_version(self, document_id: str, version_id: str) -> Version | None:
        """Restore *version_id*; returns the version recorded for it, if any."""
        path = _document_path(self._config, document_id, "restore", version_id)
        return _restored_version(self._request("POST", path))

    def compare_with_current(
        self,
        document_id: str,
        version_id: str,
        current_state: bytes,
    ) -> DiffResult:
        """Diff a stored version (old side) against *current_state* (new side)."""
        old_state = self.get_version_content(document_id, version_id)
        return self._engine.compute_diff(old_state, current_state)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HistoryClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise _network_error(method, path, exc) from exc
        return _parse_response(response, method, path)
