"""Read-only structural view of a document.

A :class:`Node` exposes only what the block extractor needs: a node kind,
its attributes, and its ordered children.  Text leaves have
``kind == "text"`` and carry their formatting as boolean attributes
(``bold``, ``italic``, ``strike``).  Nothing about the underlying CRDT's
identity or ownership graph leaks through this view.

The dict form read by :meth:`Node.from_dict` is the editor JSON shape::

    {"type": "doc", "content": [
        {"type": "heading", "attrs": {"level": 1},
         "content": [{"type": "text", "text": "Title",
                      "marks": [{"type": "bold"}]}]}
    ]}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from notehistory.errors import NoteHistoryExtractionError

TEXT_KIND = "text"

# Mark names understood on text leaves; anything else is dropped.
STYLE_MARKS: frozenset[str] = frozenset({"bold", "italic", "strike"})

# Common aliases emitted by other editors.
_MARK_ALIASES: dict[str, str] = {
    "strong": "bold",
    "em": "italic",
    "emphasis": "italic",
    "strikethrough": "strike",
}


def _frozen(attrs: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(attrs or {}))


@dataclass(frozen=True)
class Node:
    """An immutable structural node."""

    kind: str
    attrs: Mapping[str, Any] = field(default_factory=lambda: _frozen(None))
    children: tuple[Node, ...] = ()
    text: str = ""

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def element(
        cls,
        kind: str,
        *children: Node,
        **attrs: Any,
    ) -> Node:
        """Build an element node: ``Node.element("heading", child, level=1)``."""
        return cls(kind=kind, attrs=_frozen(attrs), children=tuple(children))

    @classmethod
    def text_run(
        cls,
        text: str,
        *,
        bold: bool = False,
        italic: bool = False,
        strike: bool = False,
    ) -> Node:
        """Build a text leaf with the given style flags."""
        flags = {"bold": bold, "italic": italic, "strike": strike}
        return cls(
            kind=TEXT_KIND,
            attrs=_frozen({k: v for k, v in flags.items() if v}),
            text=text,
        )

    @classmethod
    def from_dict(cls, data: Any) -> Node:
        """Decode editor JSON into a node tree.

        Raises
        ------
        NoteHistoryExtractionError
            If *data* is not a mapping with a string ``type``, or a
            ``content`` entry is not a list.
        """
        if not isinstance(data, Mapping):
            raise NoteHistoryExtractionError(
                message=f"Structural node must be an object, got {type(data).__name__}",
                context={"reason": "not_an_object"},
            )
        kind = data.get("type")
        if not isinstance(kind, str) or not kind:
            raise NoteHistoryExtractionError(
                message="Structural node is missing its 'type'",
                context={"reason": "missing_type"},
            )

        if kind == TEXT_KIND:
            flags: dict[str, bool] = {}
            for mark in data.get("marks") or []:
                name = mark.get("type") if isinstance(mark, Mapping) else mark
                name = _MARK_ALIASES.get(name, name)
                if name in STYLE_MARKS:
                    flags[name] = True
            return cls.text_run(str(data.get("text", "")), **flags)

        content = data.get("content") or []
        if not isinstance(content, list):
            raise NoteHistoryExtractionError(
                message=f"'content' of {kind!r} node must be a list",
                context={"reason": "bad_content", "kind": kind},
            )
        return cls(
            kind=kind,
            attrs=_frozen(data.get("attrs")),
            children=tuple(cls.from_dict(child) for child in content),
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Encode back to editor JSON (inverse of :meth:`from_dict`)."""
        if self.kind == TEXT_KIND:
            data: dict[str, Any] = {"type": TEXT_KIND, "text": self.text}
            marks = [{"type": name} for name in sorted(STYLE_MARKS) if self.attrs.get(name)]
            if marks:
                data["marks"] = marks
            return data

        data = {"type": self.kind}
        if self.attrs:
            data["attrs"] = dict(self.attrs)
        if self.children:
            data["content"] = [child.to_dict() for child in self.children]
        return data

    @property
    def is_text(self) -> bool:
        return self.kind == TEXT_KIND
