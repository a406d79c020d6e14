"""Build structural trees from Markdown.

This module wraps mistune v3's AST renderer and maps its token stream
onto the editor node kinds the block extractor understands:

Block tokens:
    heading -> ``heading`` (``level`` attr), paragraph / block_text ->
    ``paragraph``, list -> ``bulletList`` / ``orderedList``, list_item ->
    ``listItem``, block_quote -> ``blockquote``, block_code ->
    ``codeBlock``, thematic_break -> ``horizontalRule``

Inline tokens:
    text, strong (bold), emphasis (italic), strikethrough (strike),
    codespan, link, softbreak, linebreak, inline_html

It is used to seed documents and to write readable fixtures; it is not a
full Markdown round-trip.
"""

from __future__ import annotations

import mistune

from .tree import Node

_BLOCK_KINDS: dict[str, str] = {
    "paragraph": "paragraph",
    "block_text": "paragraph",
    "list_item": "listItem",
    "task_list_item": "listItem",
    "block_quote": "blockquote",
}

# Inline wrappers and the style flag they switch on.
_STYLE_WRAPPERS: dict[str, str] = {
    "strong": "bold",
    "emphasis": "italic",
    "strikethrough": "strike",
}

_SKIP_TYPES: frozenset[str] = frozenset({
    "blank_line",
})

_NO_STYLE: dict[str, bool] = {"bold": False, "italic": False, "strike": False}


class MarkdownTreeBuilder:
    """Parse Markdown into a ``doc`` :class:`Node`."""

    def __init__(self) -> None:
        self._parser = mistune.create_markdown(
            renderer="ast",
            plugins=["strikethrough", "task_lists"],
        )

    def parse(self, markdown: str) -> Node:
        """Parse *markdown* and return the document root node."""
        raw_tokens = self._parser(markdown)
        if isinstance(raw_tokens, str):
            return Node.element("doc")
        return Node.element("doc", *self._build_blocks(raw_tokens))

    # ------------------------------------------------------------------
    # Block level
    # ------------------------------------------------------------------

    def _build_blocks(self, tokens: list[dict]) -> list[Node]:
        nodes: list[Node] = []
        for token in tokens:
            node = self._build_block(token)
            if node is not None:
                nodes.append(node)
        return nodes

    def _build_block(self, token: dict) -> Node | None:
        raw_type = token.get("type", "")
        attrs = token.get("attrs") or {}

        if raw_type in _SKIP_TYPES:
            return None

        if raw_type == "heading":
            return Node.element(
                "heading",
                *self._build_inline(token.get("children", [])),
                level=int(attrs.get("level", 1)),
            )

        if raw_type in ("paragraph", "block_text"):
            return Node.element("paragraph", *self._build_inline(token.get("children", [])))

        if raw_type == "list":
            kind = "orderedList" if attrs.get("ordered") else "bulletList"
            return Node.element(kind, *self._build_blocks(token.get("children", [])))

        if raw_type in _BLOCK_KINDS:
            return Node.element(
                _BLOCK_KINDS[raw_type], *self._build_blocks(token.get("children", []))
            )

        if raw_type == "block_code":
            code = token.get("raw", "")
            if code.endswith("\n"):
                code = code[:-1]
            return Node.element("codeBlock", Node.text_run(code))

        if raw_type == "thematic_break":
            return Node.element("horizontalRule")

        # Unknown block: keep whatever block children it has.
        children = token.get("children")
        if isinstance(children, list):
            return Node.element(raw_type or "unknown", *self._build_blocks(children))
        return None

    # ------------------------------------------------------------------
    # Inline level
    # ------------------------------------------------------------------

    def _build_inline(self, tokens: list[dict], style: dict[str, bool] | None = None) -> list[Node]:
        style = style or _NO_STYLE
        nodes: list[Node] = []
        for token in tokens:
            nodes.extend(self._build_inline_token(token, style))
        return _merge_adjacent_runs(nodes)

    def _build_inline_token(self, token: dict, style: dict[str, bool]) -> list[Node]:
        raw_type = token.get("type", "")

        if raw_type in ("text", "codespan", "inline_html"):
            raw = token.get("raw", "")
            return [Node.text_run(raw, **style)] if raw else []

        if raw_type == "softbreak":
            return [Node.text_run(" ", **style)]

        if raw_type == "linebreak":
            return [Node.element("hardBreak")]

        if raw_type in _STYLE_WRAPPERS:
            child_style = {**style, _STYLE_WRAPPERS[raw_type]: True}
            return self._build_inline(token.get("children", []), child_style)

        if raw_type == "link":
            return self._build_inline(token.get("children", []), style)

        # Images and anything unknown carry no text content.
        return []


def _merge_adjacent_runs(nodes: list[Node]) -> list[Node]:
    """Join neighbouring text leaves that share the same formatting."""
    merged: list[Node] = []
    for node in nodes:
        prev = merged[-1] if merged else None
        if prev is not None and prev.is_text and node.is_text and dict(prev.attrs) == dict(node.attrs):
            merged[-1] = Node(kind=prev.kind, attrs=prev.attrs, text=prev.text + node.text)
        else:
            merged.append(node)
    return merged


_default_builder: MarkdownTreeBuilder | None = None


def parse_markdown(markdown: str) -> Node:
    """Parse *markdown* with a shared :class:`MarkdownTreeBuilder`."""
    global _default_builder
    if _default_builder is None:
        _default_builder = MarkdownTreeBuilder()
    return _default_builder.parse(markdown)
