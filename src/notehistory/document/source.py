"""The live-document collaborator.

The real-time transport and its CRDT merge algorithm live outside this
package.  The history core talks to a document only through the
:class:`LiveDocument` protocol: encode the full state, apply a full state,
observe changes, and expose a read-only structural tree plus metadata.

:class:`JsonDocument` is an in-process implementation whose state is a
canonical JSON encoding of the editor tree.  It is what the diff engine
uses to replay stored snapshots, and what tests use as a live document.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from notehistory.errors import NoteHistoryExtractionError

from .tree import Node

ChangeCallback = Callable[[], None]


@runtime_checkable
class LiveDocument(Protocol):
    """What the history core needs from a collaborative document."""

    def encode_state(self) -> bytes:
        """Serialize the full document state."""
        ...

    def apply_update(self, state: bytes) -> None:
        """Replay a full state produced by :meth:`encode_state`."""
        ...

    def observe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Call *callback* after every change; return an unsubscribe function."""
        ...

    def structure(self) -> Node | None:
        """Return the structural tree, or ``None`` if the document has none."""
        ...

    def metadata(self) -> Mapping[str, Any]:
        """Return the document's metadata map (``title`` and friends)."""
        ...


def _empty_content() -> dict[str, Any]:
    return {"type": "doc", "content": []}


class JsonDocument:
    """A document whose full state is canonical JSON.

    The encoded state is ``{"content": <editor JSON>, "meta": {...}}``
    serialized with sorted keys and no whitespace, so two documents with
    equal content always encode to identical bytes.

    Applying a state overwrites the whole document.
    """

    def __init__(
        self,
        content: Mapping[str, Any] | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        self._content: dict[str, Any] = (
            json.loads(json.dumps(content)) if content is not None else _empty_content()
        )
        self._meta: dict[str, Any] = dict(meta or {})
        self._observers: list[ChangeCallback] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_state(cls, state: bytes) -> JsonDocument:
        """Build a fresh document and replay *state* into it."""
        doc = cls()
        doc.apply_update(state)
        return doc

    @classmethod
    def from_markdown(cls, markdown: str, *, title: str | None = None) -> JsonDocument:
        """Build a document whose content is parsed from Markdown."""
        from .markdown import parse_markdown

        meta = {"title": title} if title is not None else {}
        return cls(content=parse_markdown(markdown).to_dict(), meta=meta)

    # ------------------------------------------------------------------
    # LiveDocument protocol
    # ------------------------------------------------------------------

    def encode_state(self) -> bytes:
        with self._lock:
            payload = {"content": self._content, "meta": self._meta}
            return json.dumps(
                payload, sort_keys=True, ensure_ascii=False, separators=(",", ":")
            ).encode("utf-8")

    def apply_update(self, state: bytes) -> None:
        """Overwrite this document with *state*.

        Raises
        ------
        NoteHistoryExtractionError
            If *state* is not a JSON object with an object ``content``.
        """
        try:
            payload = json.loads(state.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise NoteHistoryExtractionError(
                message=f"Document state is not valid JSON: {exc}",
                context={"reason": "invalid_json"},
                cause=exc,
            ) from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("content"), dict):
            raise NoteHistoryExtractionError(
                message="Document state must be an object with an object 'content'",
                context={"reason": "bad_shape"},
            )
        meta = payload.get("meta") or {}
        if not isinstance(meta, dict):
            raise NoteHistoryExtractionError(
                message="Document 'meta' must be an object",
                context={"reason": "bad_meta"},
            )

        with self._lock:
            self._content = payload["content"]
            self._meta = meta
        self._notify()

    def observe(self, callback: ChangeCallback) -> Callable[[], None]:
        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def structure(self) -> Node | None:
        with self._lock:
            content = self._content
        return Node.from_dict(content)

    def metadata(self) -> Mapping[str, Any]:
        with self._lock:
            return dict(self._meta)

    # ------------------------------------------------------------------
    # Editing helpers
    # ------------------------------------------------------------------

    def set_title(self, title: str) -> None:
        with self._lock:
            self._meta["title"] = title
        self._notify()

    def set_content(self, content: Node | Mapping[str, Any]) -> None:
        """Replace the structural content, as an edit would."""
        data = content.to_dict() if isinstance(content, Node) else dict(content)
        with self._lock:
            self._content = json.loads(json.dumps(data))
        self._notify()

    def set_markdown(self, markdown: str) -> None:
        from .markdown import parse_markdown

        self.set_content(parse_markdown(markdown))

    def _notify(self) -> None:
        with self._lock:
            observers = list(self._observers)
        for callback in observers:
            callback()
