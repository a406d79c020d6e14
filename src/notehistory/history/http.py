"""Transport-agnostic HTTP routing for the version history surface.

:class:`HistoryRequestHandler` turns ``(method, path, body)`` into a
:class:`HandlerResponse` so any server (or an :class:`httpx.MockTransport`)
can expose a :class:`VersionService`.  Routes, relative to the configured
``route_prefix``:

* ``POST   /<doc>/user``          -- ``{"connectionId", "user": {"name", "color"}}``
* ``GET    /<doc>/versions``      -- version list, newest first
* ``GET    /<doc>/version/<id>``  -- ``{"id", "state"}`` (base64 snapshot)
* ``POST   /<doc>/restore/<id>``  -- restore and re-snapshot
* ``OPTIONS`` on any path         -- CORS preflight

Typed errors map onto status codes: malformed input 400, not found 404,
storage failure 500.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

import httpx

from notehistory.errors import (
    NoteHistoryExtractionError,
    NoteHistoryMalformedInputError,
    NoteHistoryNotFoundError,
    NoteHistoryStorageError,
)
from notehistory.observability import get_logger, resolve_metrics

from .service import VersionService

log = get_logger("notehistory.http")

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_ROUTE = re.compile(r"^/(?P<doc>[^/]+)/(?P<action>user|versions|version|restore)(?:/(?P<arg>[^/]+))?/?$")


@dataclass(frozen=True)
class HandlerResponse:
    """Status, JSON body and headers of a handled request."""

    status: int
    body: Any = None
    headers: dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    def content(self) -> bytes:
        if self.body is None:
            return b""
        return json.dumps(self.body).encode("utf-8")


class HistoryRequestHandler:
    """Route history requests to a :class:`VersionService`.

    Parameters
    ----------
    service:
        The service answering requests.
    route_prefix:
        Path prefix of every route; defaults to the service's config.
    """

    def __init__(self, service: VersionService, route_prefix: str | None = None) -> None:
        self._service = service
        self._prefix = (
            route_prefix if route_prefix is not None else service.config.route_prefix
        ).rstrip("/")
        self._metrics = resolve_metrics(service.config.metrics)

    def handle(self, method: str, path: str, body: Any = None) -> HandlerResponse:
        """Handle one request and return its response.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            Request path, including the route prefix.
        body:
            Raw JSON bytes/str, an already-decoded mapping, or ``None``.
        """
        method = method.upper()
        if method == "OPTIONS":
            return HandlerResponse(status=204)

        route = self._match(path)
        if route is None:
            return self._finish("unknown", HandlerResponse(404, {"error": "Not found"}))
        doc_id, action, arg = route

        try:
            response = self._dispatch(method, doc_id, action, arg, body)
        except NoteHistoryMalformedInputError as exc:
            response = HandlerResponse(400, {"error": "Invalid body", "detail": exc.message})
        except NoteHistoryNotFoundError as exc:
            response = HandlerResponse(404, {"error": "Version not found", "detail": exc.message})
        except (NoteHistoryStorageError, NoteHistoryExtractionError) as exc:
            log.error(
                "Storage failure while handling request",
                extra={"extra_fields": {
                    "op": "handle", "method": method, "path": path, "error": str(exc),
                }},
            )
            response = HandlerResponse(500, {"error": "Storage failure"})
        return self._finish(action, response)

    def as_transport(self) -> httpx.MockTransport:
        """Serve this handler in-process to an :mod:`httpx` client.

        Works for both ``httpx.Client`` and ``httpx.AsyncClient``.
        """

        def respond(request: httpx.Request) -> httpx.Response:
            result = self.handle(
                request.method,
                request.url.raw_path.decode("ascii"),
                request.content or None,
            )
            headers = dict(result.headers)
            if result.body is not None:
                headers["Content-Type"] = "application/json"
            return httpx.Response(result.status, content=result.content(), headers=headers)

        return httpx.MockTransport(respond)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _match(self, path: str) -> tuple[str, str, str | None] | None:
        path = path.split("?", 1)[0]
        if self._prefix:
            if not path.startswith(self._prefix + "/"):
                return None
            path = path[len(self._prefix):]
        m = _ROUTE.match(path)
        if m is None:
            return None
        arg = m.group("arg")
        return unquote(m.group("doc")), m.group("action"), unquote(arg) if arg else None

    def _dispatch(
        self,
        method: str,
        doc_id: str,
        action: str,
        arg: str | None,
        body: Any,
    ) -> HandlerResponse:
        if action == "user" and method == "POST" and arg is None:
            payload = _decode_body(body)
            user = payload.get("user")
            if not isinstance(user, Mapping):
                raise NoteHistoryMalformedInputError(
                    message="'user' must be an object",
                    context={"field": "user", "value": user},
                )
            self._service.register_active_editor(
                doc_id,
                payload.get("connectionId"),
                user.get("name"),
                user.get("color"),
            )
            return HandlerResponse(200, {"success": True})

        if action == "versions" and method == "GET" and arg is None:
            versions = self._service.list_versions(doc_id)
            return HandlerResponse(200, [v.to_dict() for v in versions])

        if action == "version" and method == "GET" and arg is not None:
            state = self._service.store.get_encoded_blob(doc_id, arg)
            return HandlerResponse(200, {"id": arg, "state": state})

        if action == "restore" and method == "POST" and arg is not None:
            outcome = self._service.restore_version(doc_id, arg)
            recorded = outcome.version.to_dict() if outcome.version else None
            return HandlerResponse(200, {"success": True, "version": recorded})

        return HandlerResponse(404, {"error": "Not found"})

    def _finish(self, route: str, response: HandlerResponse) -> HandlerResponse:
        self._metrics.increment(
            "notehistory.requests_total",
            tags={"route": route, "status": str(response.status)},
        )
        return response


def _decode_body(body: Any) -> Mapping[str, Any]:
    if isinstance(body, Mapping):
        return body
    if isinstance(body, (bytes, str)) and body:
        try:
            decoded = json.loads(body)
        except ValueError as exc:
            raise NoteHistoryMalformedInputError(
                message=f"Request body is not valid JSON: {exc}",
                context={"field": "body", "value": None},
                cause=exc,
            ) from exc
        if isinstance(decoded, Mapping):
            return decoded
    raise NoteHistoryMalformedInputError(
        message="Request body must be a JSON object",
        context={"field": "body", "value": None},
    )
