"""Block summaries and lookups over a document's top-level blocks.

The editor resolves string targets against the same previews reported in
``get_document_structure``, so what a caller sees in a summary is what it
can target.
"""

from __future__ import annotations

from typing import Any

from ..config import LIMITS
from .nodes import COMPLEX_TYPES, Node, NodeType

# Canonical type -> name shown to callers (others pass through unchanged)
READABLE_TYPE_NAMES: dict[str, str] = {
    NodeType.BULLET_LIST.value: "list",
    NodeType.ORDERED_LIST.value: "ordered_list",
    NodeType.TASK_LIST.value: "checklist",
    NodeType.CODE_BLOCK.value: "code",
    NodeType.BLOCKQUOTE.value: "quote",
    NodeType.HORIZONTAL_RULE.value: "divider",
    NodeType.DATABASE_TABLE.value: "database_table",
    NodeType.ACCORDION_GROUP.value: "accordion",
}

# Attributes copied into a block summary
_SUMMARY_ATTRS = ("level", "databaseId")


def readable_type(node_type: str) -> str:
    return READABLE_TYPE_NAMES.get(node_type, node_type)


def extract_text(node: Node) -> str:
    """Concatenate the text of every descendant text node."""
    return node.plain_text()


def extract_preview(node: Node) -> str:
    """Short preview of a block: leading text, or a bracketed label when it has none."""
    text = extract_text(node).strip()[: LIMITS.PREVIEW_LENGTH]
    if text:
        return text

    count = len(node.content)
    if node.type == NodeType.COLUMNS:
        return f"[{count} columns]"
    if node.type == NodeType.ACCORDION_GROUP:
        return f"[accordion: {count} items]"
    if node.type == NodeType.DATABASE_TABLE:
        return "[database table]"
    if node.type == NodeType.SPREADSHEET:
        return "[spreadsheet]"
    if node.type == NodeType.MINDMAP:
        return "[mindmap]"
    if node.type == NodeType.HORIZONTAL_RULE:
        return "---"
    if node.type == NodeType.TABLE:
        return f"[table: {count} rows]"
    if node.type == NodeType.TASK_LIST:
        return f"[checklist: {count} items]"
    return f"[{node.type}]"


def summarize_block(node: Node, index: int) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "index": index,
        "type": readable_type(node.type),
        "preview": extract_preview(node),
    }
    if node.block_id:
        summary["block_id"] = node.block_id
    attrs = {name: node.attrs[name] for name in _SUMMARY_ATTRS if name in node.attrs}
    if attrs:
        summary["attrs"] = attrs
    return summary


def get_document_structure(document: Node | None) -> dict[str, Any]:
    """Summarize the top-level blocks of a document.

    Returns:
        ``{"total_blocks": N, "blocks": [...]}``; anything that is not a
        ``doc`` node has no blocks.
    """
    if document is None or document.type != NodeType.DOC:
        return {"total_blocks": 0, "blocks": []}
    blocks = [summarize_block(node, index) for index, node in enumerate(document.content)]
    return {"total_blocks": len(blocks), "blocks": blocks}


def find_block_index_by_block_id(document: Node, block_id: str) -> int | None:
    for index, node in enumerate(document.content):
        if node.block_id == block_id:
            return index
    return None


def find_preview_matches(document: Node, search: str) -> list[int]:
    """Indices of top-level blocks whose preview contains ``search`` (case-insensitive)."""
    needle = search.lower()
    return [
        index
        for index, node in enumerate(document.content)
        if needle in extract_preview(node).lower()
    ]


def has_complex_blocks(document: Node | None) -> bool:
    """Whether a whole-document overwrite would destroy columns, accordions or opaque blocks."""
    if document is None:
        return False
    return any(node.type in COMPLEX_TYPES for node in document.content)


def get_complex_block_types(document: Node | None) -> list[str]:
    """Readable names of the complex block types present, in first-seen order."""
    if document is None:
        return []
    found: list[str] = []
    for node in document.content:
        if node.type in COMPLEX_TYPES:
            name = readable_type(node.type)
            if name not in found:
                found.append(name)
    return found
