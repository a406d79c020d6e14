"""Asynchronous client for the version history HTTP surface.

:class:`AsyncHistoryClient` mirrors :class:`~notehistory.client.HistoryClient`
but every I/O method is an ``async def`` coroutine.

Usage::

    import asyncio
    from notehistory import AsyncHistoryClient

    async def main():
        async with AsyncHistoryClient(base_url="https://notes.example.com") as client:
            versions = await client.list_versions("doc-1")

    asyncio.run(main())
"""

from __future__ import annotations

from typing import Any

import httpx

from notehistory.client import (
    _decode_state,
    _document_path,
    _editor_payload,
    _network_error,
    _parse_response,
    _restored_version,
    _versions_from,
)
from notehistory.config import NoteHistoryConfig
from notehistory.diff.engine import DiffEngine
from notehistory.models import DiffResult, EditorInfo, Version


class AsyncHistoryClient:
    """Asynchronous history client.

    Parameters
    ----------
    config:
        Connection settings.  When omitted, one is built from *kwargs*.
    transport:
        Optional async :mod:`httpx` transport.
    **kwargs:
        Forwarded to :class:`NoteHistoryConfig` when *config* is omitted.
    """

    def __init__(
        self,
        config: NoteHistoryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = config or NoteHistoryConfig(**kwargs)
        self._engine = DiffEngine(self._config)
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(self._config.timeout_seconds),
            transport=transport,
        )

    async def register_editor(
        self,
        document_id: str,
        editor_id: str,
        name: str,
        color: str | None = None,
    ) -> EditorInfo:
        payload = _editor_payload(editor_id, name, color)
        await self._request(
            "POST", _document_path(self._config, document_id, "user"), json=payload
        )
        return EditorInfo.from_dict(payload["user"])

    async def list_versions(self, document_id: str) -> list[Version]:
        path = _document_path(self._config, document_id, "versions")
        return _versions_from(await self._request("GET", path), path)

    async def get_version_content(self, document_id: str, version_id: str) -> bytes:
        path = _document_path(self._config, document_id, "version", version_id)
        return _decode_state(await self._request("GET", path), path)

    async def restore_version(self, document_id: str, version_id: str) -> Version | None:
        path = _document_path(self._config, document_id, "restore", version_id)
        return _restored_version(await self._request("POST", path))

    async def compare_with_current(
        self,
        document_id: str,
        version_id: str,
        current_state: bytes,
    ) -> DiffResult:
        """Diff a stored version (old side) against *current_state* (new side)."""
        old_state = await self.get_version_content(document_id, version_id)
        return self._engine.compute_diff(old_state, current_state)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncHistoryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise _network_error(method, path, exc) from exc
        return _parse_response(response, method, path)
