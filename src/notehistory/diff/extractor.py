"""Flatten a structural tree into an ordered list of typed blocks.

Traversal is depth-first in document order.  Paragraphs and headings
become one block each.  List containers recurse with a list-kind context,
so every paragraph inside a ``listItem`` becomes one list-item block.
Any other element is transparent: its children are walked with the
current context.

Extraction is best-effort.  A missing or malformed tree yields an empty
list rather than an exception, and the caller's diff then treats the
whole document as absent content.
"""

from __future__ import annotations

from typing import Any

from notehistory.document.tree import Node
from notehistory.errors import NoteHistoryExtractionError
from notehistory.models import Block, BlockType, StyledRun
from notehistory.observability import get_logger

log = get_logger("notehistory.extractor")

_LIST_KINDS: dict[str, BlockType] = {
    "bulletList": BlockType.BULLET_LIST_ITEM,
    "orderedList": BlockType.ORDERED_LIST_ITEM,
}


def extract_blocks(root: Node | None) -> list[Block]:
    """Return the blocks of *root* in reading order.

    Parameters
    ----------
    root:
        The document node (usually kind ``doc``) whose children are the
        top-level content, or ``None``.

    Returns
    -------
    list[Block]
        The extracted blocks; empty when *root* is ``None`` or cannot be
        walked.
    """
    if root is None:
        return []

    blocks: list[Block] = []
    try:
        _walk(root, blocks, list_type=None)
    except (NoteHistoryExtractionError, AttributeError, TypeError, ValueError, KeyError) as exc:
        log.warning(
            "Structural tree could not be walked",
            extra={"extra_fields": {"op": "extract_blocks", "error": str(exc)}},
        )
        return []
    return blocks


def extract_from_dict(data: Any) -> list[Block]:
    """Decode editor JSON and extract its blocks; malformed input gives ``[]``."""
    try:
        root = Node.from_dict(data)
    except (NoteHistoryExtractionError, AttributeError, TypeError) as exc:
        log.warning(
            "Structural JSON could not be decoded",
            extra={"extra_fields": {"op": "extract_from_dict", "error": str(exc)}},
        )
        return []
    return extract_blocks(root)


def plain_text(runs: tuple[StyledRun, ...] | list[StyledRun]) -> str:
    """Concatenate the text of *runs*."""
    return "".join(run.text for run in runs)


def _walk(element: Node, blocks: list[Block], list_type: BlockType | None) -> None:
    for child in element.children:
        if child.is_text:
            continue

        kind = child.kind
        if kind == "paragraph":
            blocks.append(Block(type=BlockType.PARAGRAPH, content=_styled_runs(child)))
        elif kind == "heading":
            blocks.append(Block(type=_heading_type(child), content=_styled_runs(child)))
        elif kind in _LIST_KINDS:
            _walk(child, blocks, _LIST_KINDS[kind])
        elif kind == "listItem":
            _walk_list_item(child, blocks, list_type or BlockType.BULLET_LIST_ITEM)
        else:
            _walk(child, blocks, list_type)


def _walk_list_item(item: Node, blocks: list[Block], list_type: BlockType) -> None:
    for child in item.children:
        if child.is_text:
            continue
        if child.kind == "paragraph":
            blocks.append(Block(type=list_type, content=_styled_runs(child)))
        else:
            # Nested lists and other containers inside the item.
            _walk(Node(kind="fragment", children=(child,)), blocks, list_type)


def _heading_type(node: Node) -> BlockType:
    level = node.attrs.get("level")
    try:
        return BlockType.HEADING1 if int(level) == 1 else BlockType.HEADING2
    except (TypeError, ValueError):
        return BlockType.HEADING2


def _styled_runs(element: Node) -> tuple[StyledRun, ...]:
    runs = _collect_runs(element)
    if not runs:
        return (StyledRun(""),)
    return tuple(runs)


def _collect_runs(element: Node) -> list[StyledRun]:
    runs: list[StyledRun] = []
    for child in element.children:
        if child.is_text:
            runs.append(StyledRun(
                text=child.text,
                bold=bool(child.attrs.get("bold")),
                italic=bool(child.attrs.get("italic")),
                strike=bool(child.attrs.get("strike")),
            ))
        else:
            runs.extend(_collect_runs(child))
    return runs
