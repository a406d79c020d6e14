"""Tests for structural-tree flattening into blocks."""

from __future__ import annotations

from notehistory.diff.extractor import extract_blocks, extract_from_dict, plain_text
from notehistory.document.tree import Node
from notehistory.models import Block, BlockType, StyledRun

E = Node.element
T = Node.text_run


class TestExtractBlocks:
    def test_paragraphs_and_headings(self):
        root = E(
            "doc",
            E("heading", T("Title"), level=1),
            E("heading", T("Section"), level=2),
            E("heading", T("Deep"), level=3),
            E("paragraph", T("Plain "), T("bold", bold=True)),
        )
        assert extract_blocks(root) == [
            Block(BlockType.HEADING1, (StyledRun("Title"),)),
            Block(BlockType.HEADING2, (StyledRun("Section"),)),
            Block(BlockType.HEADING2, (StyledRun("Deep"),)),
            Block(BlockType.PARAGRAPH, (StyledRun("Plain "), StyledRun("bold", bold=True))),
        ]

    def test_list_items_take_list_kind(self):
        root = E(
            "doc",
            E("bulletList", E("listItem", E("paragraph", T("milk")))),
            E("orderedList", E("listItem", E("paragraph", T("first")))),
        )
        assert [(b.type, b.text) for b in extract_blocks(root)] == [
            (BlockType.BULLET_LIST_ITEM, "milk"),
            (BlockType.ORDERED_LIST_ITEM, "first"),
        ]

    def test_nested_list_inside_item(self):
        root = E(
            "doc",
            E(
                "bulletList",
                E(
                    "listItem",
                    E("paragraph", T("parent")),
                    E("orderedList", E("listItem", E("paragraph", T("child")))),
                ),
            ),
        )
        assert [(b.type, b.text) for b in extract_blocks(root)] == [
            (BlockType.BULLET_LIST_ITEM, "parent"),
            (BlockType.ORDERED_LIST_ITEM, "child"),
        ]

    def test_list_item_outside_list_is_bullet(self):
        root = E("doc", E("listItem", E("paragraph", T("stray"))))
        assert extract_blocks(root) == [Block(BlockType.BULLET_LIST_ITEM, (StyledRun("stray"),))]

    def test_unknown_containers_are_transparent(self):
        root = E("doc", E("blockquote", E("paragraph", T("quoted"))))
        assert extract_blocks(root) == [Block(BlockType.PARAGRAPH, (StyledRun("quoted"),))]

    def test_empty_paragraph_has_one_empty_run(self):
        blocks = extract_blocks(E("doc", E("paragraph")))
        assert blocks == [Block(BlockType.PARAGRAPH, (StyledRun(""),))]
        assert blocks[0].text == ""

    def test_inline_elements_are_flattened(self):
        root = E("doc", E("paragraph", T("a"), E("hardBreak"), E("link", T("b", italic=True))))
        assert extract_blocks(root)[0].content == (StyledRun("a"), StyledRun("b", italic=True))

    def test_missing_heading_level(self):
        assert extract_blocks(E("doc", E("heading", T("x"))))[0].type is BlockType.HEADING2

    def test_none_root(self):
        assert extract_blocks(None) == []

    def test_unwalkable_tree_gives_no_blocks(self):
        root = Node(kind="doc", children=("not a node",))  # type: ignore[arg-type]
        assert extract_blocks(root) == []


class TestExtractFromDict:
    def test_editor_json(self):
        data = {
            "type": "doc",
            "content": [
                {"type": "paragraph", "content": [
                    {"type": "text", "text": "hi ", "marks": [{"type": "italic"}]},
                    {"type": "text", "text": "there", "marks": [{"type": "strong"}]},
                ]},
            ],
        }
        assert extract_from_dict(data) == [
            Block(BlockType.PARAGRAPH, (StyledRun("hi ", italic=True), StyledRun("there", bold=True)))
        ]

    def test_malformed_content(self):
        assert extract_from_dict({"type": "doc", "content": "oops"}) == []

    def test_not_an_object(self):
        assert extract_from_dict(42) == []


def test_plain_text():
    assert plain_text([StyledRun("a"), StyledRun("b", bold=True)]) == "ab"
