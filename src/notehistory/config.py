"""Configuration for notehistory.

:class:`NoteHistoryConfig` is a plain dataclass that captures every
tuneable knob of the snapshot policy, the version store, and the HTTP
history clients.  A single instance is shared by
:class:`~notehistory.history.service.VersionService`,
:class:`~notehistory.client.HistoryClient` and
:class:`~notehistory.async_client.AsyncHistoryClient`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_EDITOR_COLOR = "#888888"
"""Neutral gray used when no editor has registered for a document."""


@dataclass
class NoteHistoryConfig:
    """Complete configuration for the version history core.

    Every parameter has a default, so ``NoteHistoryConfig()`` is a valid
    production configuration for a single local server.

    Parameters
    ----------
    snapshot_interval_ms:
        Throttle window.  A snapshot attempt that arrives less than this
        many milliseconds after the last persisted snapshot is ignored.
    max_versions:
        Number of versions retained per document.  Older versions (and
        their snapshot blobs) are evicted first.
    default_title:
        Title recorded when the document metadata carries none.
    default_editor_name:
        Attribution used before any editor has registered.
    default_editor_color:
        Colour paired with :attr:`default_editor_name`.
    base_url:
        Root URL of the history HTTP surface, used by the clients.
    route_prefix:
        Path prefix under which per-document routes live, e.g.
        ``/parties/notes/<document_id>/versions``.
    timeout_seconds:
        HTTP request timeout for the clients.
    metrics:
        Optional :class:`~notehistory.observability.MetricsHook` backend.
    debug_dump_diff:
        Write every computed diff to *stderr* as JSON.
    """

    # ── Snapshot policy ────────────────────────────────────────────────
    snapshot_interval_ms: int = 5000

    max_versions: int = 100

    # ── Attribution defaults ───────────────────────────────────────────
    default_title: str = "Untitled"

    default_editor_name: str = "Unknown"

    default_editor_color: str = DEFAULT_EDITOR_COLOR

    # ── HTTP ────────────────────────────────────────────────────────────
    base_url: str = "http://localhost:1999"

    route_prefix: str = "/parties/notes"

    timeout_seconds: float = 30.0

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_diff: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS, or target localhost for testing."
            )

        if self.snapshot_interval_ms < 0:
            raise ValueError(
                f"snapshot_interval_ms must be >= 0, got {self.snapshot_interval_ms}"
            )
        if self.max_versions < 1:
            raise ValueError(f"max_versions must be >= 1, got {self.max_versions}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not self.route_prefix.startswith("/"):
            raise ValueError(f"route_prefix must start with '/', got {self.route_prefix!r}")
        self.route_prefix = self.route_prefix.rstrip("/")
