"""Document collaborator: structural tree view and live-document protocol.

Exports
-------
Node
    Read-only structural node (kind, attrs, ordered children).
LiveDocument
    Protocol the history core uses to snapshot, restore and observe a document.
JsonDocument
    In-process document with a canonical JSON state encoding.
MarkdownTreeBuilder, parse_markdown
    Build structural trees from Markdown.
"""

from .markdown import MarkdownTreeBuilder, parse_markdown
from .source import JsonDocument, LiveDocument
from .tree import Node

__all__ = [
    "JsonDocument",
    "LiveDocument",
    "MarkdownTreeBuilder",
    "Node",
    "parse_markdown",
]
