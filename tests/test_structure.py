"""Tests for structure.py.

Tests:
- Text extraction and previews
- Document structure summaries
- Block lookups and complex block detection
"""

from __future__ import annotations

from kodo.config import LIMITS
from kodo.content.nodes import Node
from kodo.content.normalizer import normalize_content
from kodo.content.structure import (
    extract_preview,
    extract_text,
    find_block_index_by_block_id,
    find_preview_matches,
    get_complex_block_types,
    get_document_structure,
    has_complex_blocks,
)


def _node(data: dict) -> Node:
    return Node.from_dict(data)


class TestPreviews:
    """Test text extraction and preview labels."""

    def test_extract_text_concatenates_descendants(self) -> None:
        document = normalize_content("- one\n- **two**")

        assert extract_text(document) == "onetwo"

    def test_preview_is_truncated(self) -> None:
        node = normalize_content("x" * 500).content[0]

        assert extract_preview(node) == "x" * LIMITS.PREVIEW_LENGTH

    def test_preview_labels_for_textless_blocks(self) -> None:
        cases = {
            "[2 columns]": {"type": "columns", "content": [{"type": "column"}, {"type": "column"}]},
            "[accordion: 1 items]": {"type": "accordionGroup", "content": [{"type": "accordionItem"}]},
            "[database table]": {"type": "databaseTable", "attrs": {"databaseId": "d"}},
            "[spreadsheet]": {"type": "spreadsheet"},
            "[mindmap]": {"type": "mindmap"},
            "---": {"type": "horizontalRule"},
            "[table: 0 rows]": {"type": "table"},
            "[checklist: 0 items]": {"type": "taskList"},
            "[image]": {"type": "image", "attrs": {"src": "a.png"}},
        }

        for expected, data in cases.items():
            assert extract_preview(_node(data)) == expected


class TestDocumentStructure:
    """Test block summaries."""

    def test_summaries(self, id_factory) -> None:
        document = normalize_content(
            [
                {"type": "heading", "level": 2, "text": "Intro"},
                {"type": "list", "items": ["a"]},
                {"type": "divider"},
                {"type": "code", "text": "x"},
            ],
            id_factory=id_factory,
        )

        structure = get_document_structure(document)

        assert structure["total_blocks"] == 4
        assert structure["blocks"][0] == {
            "index": 0,
            "type": "heading",
            "preview": "Intro",
            "block_id": "block-1",
            "attrs": {"level": 2},
        }
        assert [block["type"] for block in structure["blocks"]] == [
            "heading",
            "list",
            "divider",
            "code",
        ]
        assert "attrs" not in structure["blocks"][1]

    def test_database_id_in_attrs(self) -> None:
        document = _node(
            {"type": "doc", "content": [{"type": "databaseTable", "attrs": {"databaseId": "db-7"}}]}
        )

        block = get_document_structure(document)["blocks"][0]

        assert block["type"] == "database_table"
        assert block["attrs"] == {"databaseId": "db-7"}
        assert "block_id" not in block

    def test_non_document(self) -> None:
        assert get_document_structure(None) == {"total_blocks": 0, "blocks": []}
        assert get_document_structure(_node({"type": "paragraph"})) == {
            "total_blocks": 0,
            "blocks": [],
        }


class TestLookups:
    """Test block lookups."""

    def test_find_by_block_id(self, id_factory) -> None:
        document = normalize_content("one\n\ntwo", id_factory=id_factory)

        assert find_block_index_by_block_id(document, "block-2") == 1
        assert find_block_index_by_block_id(document, "missing") is None

    def test_preview_matches_case_insensitive(self) -> None:
        document = normalize_content("# Intro\n\nAn introduction\n\n# Usage")

        assert find_preview_matches(document, "INTRO") == [0, 1]
        assert find_preview_matches(document, "usage") == [2]
        assert find_preview_matches(document, "absent") == []


class TestComplexBlocks:
    """Test detection of blocks a full overwrite would destroy."""

    def test_detects_complex_types(self) -> None:
        document = _node(
            {
                "type": "doc",
                "content": [
                    {"type": "paragraph"},
                    {"type": "accordionGroup"},
                    {"type": "databaseTable"},
                    {"type": "accordionGroup"},
                ],
            }
        )

        assert has_complex_blocks(document) is True
        assert get_complex_block_types(document) == ["accordion", "database_table"]

    def test_plain_document(self) -> None:
        document = normalize_content("# Just text")

        assert has_complex_blocks(document) is False
        assert get_complex_block_types(document) == []
        assert has_complex_blocks(None) is False
