"""Normalize arbitrary content into a canonical document tree.

Callers hand the engine whatever they have: ``None``, a Markdown or plain
text string, a JSON-encoded string, a canonical ``doc`` object, a list of
canonical nodes, or a list of *simplified blocks* such as::

    [
        {"type": "heading", "level": 1, "text": "Title"},
        {"type": "paragraph", "text": "Text with **bold** and *italic*"},
        {"type": "list", "items": ["Point 1", "Point 2"]},
        {"type": "checklist", "items": [{"text": "Done", "checked": True}]},
        {"type": "table", "headers": ["Name", "Age"], "rows": [["Alice", "30"]]},
        {"type": "accordion", "items": [{"title": "Section", "content": "Text"}]},
        {"type": "columns", "columns": ["Left", [{"type": "paragraph", "text": "Right"}]]},
    ]

``normalize_content`` classifies the input, converts it, and assigns a
``blockId`` to every eligible node that lacks one.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..config import LIMITS
from .inline import parse_inline
from .markdown_parser import parse_markdown
from .nodes import (
    BLOCK_ID_ELIGIBLE_TYPES,
    BLOCK_TYPES,
    NESTING_TYPES,
    IdFactory,
    Node,
    NodeType,
    doc,
    empty_doc,
    is_node_dict,
    new_block_id,
    paragraph,
    text_node,
)

logger = logging.getLogger(__name__)

# Simplified block vocabulary
SIMPLIFIED_TYPES = frozenset({
    "heading",
    "paragraph",
    "list",
    "ordered_list",
    "checklist",
    "quote",
    "code",
    "divider",
    "table",
    "image",
    "accordion",
    "columns",
})

# Fields that only appear on simplified blocks
_SIMPLIFIED_FIELDS = frozenset({
    "text", "level", "items", "headers", "rows", "url", "alt", "caption", "columns", "language",
})

# Simplified types that become nesting containers
_SIMPLIFIED_CONTAINERS = frozenset({
    "list", "ordered_list", "checklist", "quote", "accordion", "columns",
})

ACCORDION_ICON = "description"
ACCORDION_ICON_COLOR = "#3b82f6"
ACCORDION_TITLE_COLOR = "#1f2937"
ACCORDION_DEFAULT_TITLE = "Section"


def normalize_content(content: Any, *, id_factory: IdFactory = new_block_id) -> Node:
    """Normalize any content value into a document node.

    Args:
        content: ``None``, a string (Markdown, plain text or JSON), a list of
            simplified or canonical blocks, a single block, or a ``doc``
            object.
        id_factory: Generates identifiers for blocks that have none.

    Returns:
        A ``doc`` node whose eligible nodes all carry a ``blockId``.
    """
    result = _normalize(content)
    return assign_block_ids(result, id_factory=id_factory)


def _normalize(content: Any) -> Node:
    if content is None:
        return empty_doc()
    if isinstance(content, Node):
        if content.type == NodeType.DOC:
            return Node.from_dict(content.to_dict())
        return doc(_validate_nodes([content.to_dict()]))
    if isinstance(content, str):
        return _normalize_string(content)
    if isinstance(content, list):
        return _normalize_list(content)
    if isinstance(content, dict):
        return _normalize_object(content)
    return _wrap_text(str(content))


def _normalize_string(value: str) -> Node:
    trimmed = value.strip()
    if not trimmed:
        return empty_doc()

    # Callers sometimes send JSON as a string
    if trimmed[0] in "{[":
        try:
            parsed = json.loads(trimmed)
        except ValueError:
            logger.debug("String looks like JSON but does not parse, treating as Markdown")
        else:
            if isinstance(parsed, (dict, list)):
                return _normalize(parsed)

    return parse_markdown(trimmed)


def _normalize_list(items: list[Any]) -> Node:
    if not items:
        return empty_doc()

    blocks = [item for item in items if isinstance(item, dict)]
    if any(_is_simplified(block) for block in blocks):
        logger.debug("Classified %d items as simplified blocks", len(items))
        return doc(convert_simple_blocks(items))
    if any(_is_canonical(block) for block in blocks):
        logger.debug("Classified %d items as canonical nodes", len(items))
        return doc(_validate_nodes(items))
    return doc(convert_simple_blocks(items))


def _normalize_object(obj: dict[str, Any]) -> Node:
    node_type = obj.get("type")
    if node_type == NodeType.DOC:
        if isinstance(obj.get("content"), list):
            return doc(_validate_nodes(obj["content"]))
        return empty_doc()
    if _is_canonical(obj) or node_type == NodeType.TEXT:
        return doc(_validate_nodes([obj]))
    if _is_simplified(obj):
        return doc(convert_simple_blocks([obj]))
    return _wrap_text(json.dumps(obj, ensure_ascii=False, default=str))


def _wrap_text(text: str) -> Node:
    if not text.strip():
        return empty_doc()
    return doc([paragraph([text_node(text)])])


# =============================================================================
# Classification
# =============================================================================


def _has_canonical_shape(block: dict[str, Any]) -> bool:
    has_structure = isinstance(block.get("attrs"), dict) or isinstance(block.get("content"), list)
    return has_structure and not (block.keys() & _SIMPLIFIED_FIELDS)


def _is_simplified(block: dict[str, Any]) -> bool:
    """Check whether a dict is a simplified block.

    ``heading``, ``paragraph``, ``table`` and ``image`` exist in both
    vocabularies; they count as simplified unless shaped like a canonical
    node.
    """
    block_type = block.get("type")
    if block_type not in SIMPLIFIED_TYPES:
        return False
    return not (block_type in BLOCK_TYPES and _has_canonical_shape(block))


def _is_canonical(block: dict[str, Any]) -> bool:
    block_type = block.get("type")
    if block_type not in BLOCK_TYPES:
        return False
    return block_type not in SIMPLIFIED_TYPES or _has_canonical_shape(block)


def _validate_nodes(items: list[Any]) -> list[Node]:
    """Keep well-formed nodes, wrapping stray block-level text in paragraphs."""
    result: list[Node] = []
    for item in items:
        if not is_node_dict(item):
            continue
        node = Node.from_dict(item)
        if node.is_text():
            result.append(paragraph([node]))
        else:
            result.append(node)
    return result or [paragraph()]


# =============================================================================
# Simplified block conversion
# =============================================================================


def convert_simple_blocks(blocks: list[Any]) -> list[Node]:
    """Convert a list of simplified blocks into canonical block nodes.

    Entries that are not dicts with a string ``type`` are skipped. An input
    that converts to nothing yields a single empty paragraph.
    """
    nodes = [
        node
        for node in (_convert_block(block, 0) for block in blocks if isinstance(block, dict))
        if node is not None
    ]
    return nodes or [paragraph()]


def convert_simple_block(block: dict[str, Any]) -> Node | None:
    """Convert one simplified block, or return None if it cannot be represented."""
    return _convert_block(block, 0)


def _convert_block(block: dict[str, Any], depth: int) -> Node | None:
    block_type = block.get("type")
    if not isinstance(block_type, str):
        return None
    # depth counts the nesting containers above this block
    if depth >= LIMITS.MAX_NESTING_DEPTH and (
        block_type in _SIMPLIFIED_CONTAINERS or block_type in NESTING_TYPES
    ):
        logger.debug("Dropping %s block nested beyond depth %d", block_type, depth)
        return None

    if _is_canonical(block) or block_type == NodeType.TEXT:
        node = Node.from_dict(block, _level=depth)
        return paragraph([node]) if node.is_text() else node

    text = _text_field(block.get("text"))

    if block_type == "heading":
        return Node(
            type=NodeType.HEADING,
            attrs={"level": _heading_level(block.get("level"))},
            content=parse_inline(text),
        )
    if block_type == "paragraph":
        return paragraph(parse_inline(text))
    if block_type == "list":
        return _convert_list(block.get("items"), NodeType.BULLET_LIST)
    if block_type == "ordered_list":
        return _convert_list(block.get("items"), NodeType.ORDERED_LIST)
    if block_type == "checklist":
        return _convert_checklist(block.get("items"))
    if block_type == "quote":
        return Node(type=NodeType.BLOCKQUOTE, content=[paragraph(parse_inline(text))])
    if block_type == "code":
        node = Node(type=NodeType.CODE_BLOCK)
        if block.get("language"):
            node.attrs["language"] = str(block["language"])
        if text:
            node.content = [text_node(text)]
        return node
    if block_type == "divider":
        return Node(type=NodeType.HORIZONTAL_RULE)
    if block_type == "table":
        return _convert_table(block.get("headers"), block.get("rows"))
    if block_type == "image":
        return _convert_image(block)
    if block_type == "accordion":
        return _convert_accordion(block.get("items"), depth)
    if block_type == "columns":
        return _convert_columns(block.get("columns"), depth)

    # Unknown type: keep its text, if any
    if text:
        return paragraph(parse_inline(text))
    logger.debug("Dropping unknown block type %r", block_type)
    return None


def _text_field(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _heading_level(value: Any) -> int:
    try:
        level = int(value) if value else 1
    except (TypeError, ValueError):
        return 1
    return min(max(level, 1), 6)


def _item_text(item: Any) -> str:
    if isinstance(item, dict):
        return _text_field(item.get("text"))
    return _text_field(item)


def _convert_list(items: Any, list_type: NodeType) -> Node:
    if not isinstance(items, list) or not items:
        return paragraph()
    return Node(
        type=list_type,
        content=[
            Node(type=NodeType.LIST_ITEM, content=[paragraph(parse_inline(_item_text(item)))])
            for item in items
        ],
    )


def _convert_checklist(items: Any) -> Node:
    if not isinstance(items, list) or not items:
        return paragraph()
    return Node(
        type=NodeType.TASK_LIST,
        content=[
            Node(
                type=NodeType.TASK_ITEM,
                attrs={"checked": bool(item.get("checked")) if isinstance(item, dict) else False},
                content=[paragraph(parse_inline(_item_text(item)))],
            )
            for item in items
        ],
    )


def _convert_table(headers: Any, rows: Any) -> Node:
    table_rows: list[Node] = []

    if isinstance(headers, list) and headers:
        table_rows.append(_table_row(headers, NodeType.TABLE_HEADER))

    if isinstance(rows, list):
        for row in rows:
            if isinstance(row, list) and row:
                table_rows.append(_table_row(row, NodeType.TABLE_CELL))

    if not table_rows:
        return paragraph()
    return Node(type=NodeType.TABLE, content=table_rows)


def _table_row(cells: list[Any], cell_type: NodeType) -> Node:
    return Node(
        type=NodeType.TABLE_ROW,
        content=[
            Node(
                type=cell_type,
                attrs={"colspan": 1, "rowspan": 1},
                content=[paragraph(parse_inline(_text_field(cell)))],
            )
            for cell in cells
        ],
    )


def _convert_image(block: dict[str, Any]) -> Node:
    attrs = {
        "src": _text_field(block.get("url") or block.get("text")),
        "alt": _text_field(block.get("alt")),
        "alignment": "center",
    }
    if block.get("caption"):
        attrs["caption"] = _text_field(block["caption"])
    return Node(type=NodeType.IMAGE, attrs=attrs)


# =============================================================================
# Layout blocks
# =============================================================================


def _convert_accordion(items: Any, depth: int) -> Node:
    entries = [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []
    if not entries:
        entries = [{"title": ACCORDION_DEFAULT_TITLE, "content": ""}]
    return Node(
        type=NodeType.ACCORDION_GROUP,
        content=[_accordion_item(entry, depth) for entry in entries],
    )


def build_accordion_item(item: dict[str, Any]) -> Node:
    """Build one ``accordionItem`` from ``{title, content, icon, iconColor, titleColor}``.

    ``content`` may be a string or a list of simplified blocks.
    """
    return _accordion_item(item, 0)


def _accordion_item(item: dict[str, Any], depth: int) -> Node:
    title = Node(
        type=NodeType.ACCORDION_TITLE,
        attrs={
            "icon": item.get("icon") or ACCORDION_ICON,
            "iconColor": item.get("iconColor") or ACCORDION_ICON_COLOR,
            "titleColor": item.get("titleColor") or ACCORDION_TITLE_COLOR,
            "collapsed": False,
        },
        content=parse_inline(_text_field(item.get("title")) or ACCORDION_DEFAULT_TITLE),
    )
    body = Node(
        type=NodeType.ACCORDION_CONTENT,
        content=_nested_blocks(item.get("content"), depth),
    )
    return Node(type=NodeType.ACCORDION_ITEM, content=[title, body])


def _convert_columns(columns: Any, depth: int) -> Node:
    if not isinstance(columns, list) or not columns:
        columns = ["", ""]
    return Node(
        type=NodeType.COLUMNS,
        content=[
            Node(type=NodeType.COLUMN, content=_nested_blocks(column, depth))
            for column in columns
        ],
    )


def _nested_blocks(value: Any, depth: int) -> list[Node]:
    """Convert the body of a column or accordion item: a string or a block list."""
    if isinstance(value, str):
        return [paragraph(parse_inline(value))] if value.strip() else [paragraph()]
    if isinstance(value, list):
        nodes = [
            node
            for node in (
                _convert_block(block, depth + 1) for block in value if isinstance(block, dict)
            )
            if node is not None
        ]
        if nodes:
            return nodes
    return [paragraph()]


# =============================================================================
# Block identity
# =============================================================================


def assign_block_ids(node: Node, id_factory: IdFactory = new_block_id) -> Node:
    """Give every eligible node without a ``blockId`` a new one.

    Existing identifiers are never replaced, so the call is idempotent.
    The node is updated in place and returned.
    """
    if node.type in BLOCK_ID_ELIGIBLE_TYPES and node.block_id is None:
        node.attrs["blockId"] = id_factory()
    for child in node.content:
        assign_block_ids(child, id_factory)
    return node
