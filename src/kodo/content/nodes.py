"""Data models for the canonical block tree.

This module defines the node schema shared by the parser, normalizer,
renderer and editor. A document is a ``Node`` of type ``doc`` whose
content is the top-level block sequence.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from ..config import LIMITS

logger = logging.getLogger(__name__)


class NodeType(str, Enum):
    """Canonical node types (the editor's wire names)."""

    # Root
    DOC = "doc"

    # Inline
    TEXT = "text"
    HARD_BREAK = "hardBreak"

    # Text blocks
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "codeBlock"
    HORIZONTAL_RULE = "horizontalRule"
    IMAGE = "image"

    # Lists
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    LIST_ITEM = "listItem"
    TASK_LIST = "taskList"
    TASK_ITEM = "taskItem"

    # Tables
    TABLE = "table"
    TABLE_ROW = "tableRow"
    TABLE_HEADER = "tableHeader"
    TABLE_CELL = "tableCell"

    # Layout
    COLUMNS = "columns"
    COLUMN = "column"
    ACCORDION_GROUP = "accordionGroup"
    ACCORDION_ITEM = "accordionItem"
    ACCORDION_TITLE = "accordionTitle"
    ACCORDION_CONTENT = "accordionContent"

    # Opaque blocks (payload stored externally)
    DATABASE_TABLE = "databaseTable"
    SPREADSHEET = "spreadsheet"
    MINDMAP = "mindmap"

    # Cross-references
    TASK_MENTION = "taskMention"
    TASK_SECTION = "taskSection"


class MarkType(str, Enum):
    """Inline style annotations carried by text nodes."""

    BOLD = "bold"
    ITALIC = "italic"
    STRIKE = "strike"
    CODE = "code"
    LINK = "link"


def _values(*types: NodeType) -> frozenset[str]:
    return frozenset(t.value for t in types)


# Every canonical block-level type
BLOCK_TYPES = frozenset(t.value for t in NodeType) - _values(NodeType.DOC, NodeType.TEXT)

# Block types that receive a stable blockId
BLOCK_ID_ELIGIBLE_TYPES = BLOCK_TYPES - _values(NodeType.HARD_BREAK)

# Block types whose real payload lives outside the tree
OPAQUE_TYPES = _values(NodeType.DATABASE_TABLE, NodeType.SPREADSHEET, NodeType.MINDMAP)

# Block types that reference tasks stored elsewhere
REFERENCE_TYPES = _values(NodeType.TASK_MENTION, NodeType.TASK_SECTION)

# Top-level types a whole-document overwrite would destroy
COMPLEX_TYPES = OPAQUE_TYPES | _values(NodeType.COLUMNS, NodeType.ACCORDION_GROUP)

# List containers (nested lists indent one level deeper)
LIST_TYPES = _values(NodeType.BULLET_LIST, NodeType.ORDERED_LIST, NodeType.TASK_LIST)

# Containers that count as one nesting level against LIMITS.MAX_NESTING_DEPTH
NESTING_TYPES = LIST_TYPES | _values(
    NodeType.BLOCKQUOTE, NodeType.COLUMNS, NodeType.ACCORDION_GROUP
)


def new_block_id() -> str:
    """Generate a block ID backed by a random UUID."""
    return f"block-{uuid.uuid4()}"


IdFactory = Callable[[], str]


def _type_name(value: Any) -> str:
    return value.value if isinstance(value, Enum) else value


@dataclass
class Mark:
    """A style annotation on a text node.

    Marks are metadata, not nodes: they never nest and never carry content.
    Only links carry attrs (``href`` and ``target``).
    """

    type: str
    attrs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.type = _type_name(self.type)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"type": self.type}
        if self.attrs:
            result["attrs"] = dict(self.attrs)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Mark:
        """Create from dictionary."""
        attrs = data.get("attrs")
        return cls(type=data["type"], attrs=copy.deepcopy(attrs) if isinstance(attrs, dict) else {})


@dataclass
class Node:
    """A node in the canonical block tree.

    ``content`` is always a list internally; an empty list means "no
    children". At the JSON boundary empty content is omitted except on
    the document root, which always carries it.
    """

    type: str
    content: list[Node] = field(default_factory=list)
    text: str | None = None
    marks: list[Mark] = field(default_factory=list)
    attrs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.type = _type_name(self.type)

    @property
    def block_id(self) -> str | None:
        """The stable identifier, if one has been assigned."""
        value = self.attrs.get("blockId")
        return value if isinstance(value, str) and value else None

    def is_text(self) -> bool:
        return self.type == NodeType.TEXT

    def plain_text(self) -> str:
        """Get concatenated plain text from all descendant text nodes."""
        if self.is_text():
            return self.text or ""
        return "".join(child.plain_text() for child in self.content)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"type": self.type}
        if self.attrs:
            result["attrs"] = dict(self.attrs)
        if self.is_text():
            result["text"] = self.text or ""
            if self.marks:
                result["marks"] = [mark.to_dict() for mark in self.marks]
            return result
        if self.content or self.type == NodeType.DOC:
            result["content"] = [child.to_dict() for child in self.content]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], _depth: int = 0, _level: int = 0) -> Node:
        """Create from dictionary.

        Children that are not objects with a string ``type`` are dropped and
        marks are kept only on text nodes. Attrs are deep-copied, so the
        result shares no mutable state with ``data``.

        ``_level`` counts the nesting containers above ``data``. A container
        child that would sit past ``LIMITS.MAX_NESTING_DEPTH`` is dropped,
        and nothing is kept below ``LIMITS.MAX_TREE_DEPTH`` nodes.
        """
        node_type = data["type"]
        attrs = data.get("attrs")
        node = cls(type=node_type, attrs=copy.deepcopy(attrs) if isinstance(attrs, dict) else {})

        if node.is_text():
            text = data.get("text")
            node.text = text if isinstance(text, str) else ""
            raw_marks = data.get("marks")
            if isinstance(raw_marks, list):
                node.marks = [
                    Mark.from_dict(mark)
                    for mark in raw_marks
                    if isinstance(mark, dict) and isinstance(mark.get("type"), str)
                ]
            return node

        raw_content = data.get("content")
        if not isinstance(raw_content, list):
            return node

        if _depth >= LIMITS.MAX_TREE_DEPTH:
            logger.debug("Truncating children of %s at depth %d", node_type, _depth)
            return node

        level = _level + 1 if node.type in NESTING_TYPES else _level
        for child in raw_content:
            if not is_node_dict(child):
                continue
            if child["type"] in NESTING_TYPES and level >= LIMITS.MAX_NESTING_DEPTH:
                logger.debug("Dropping %s nested beyond %d levels", child["type"], level)
                continue
            node.content.append(cls.from_dict(child, _depth + 1, level))
        return node


def is_node_dict(value: Any) -> bool:
    """Check whether a value looks like a serialized node."""
    return isinstance(value, dict) and isinstance(value.get("type"), str) and bool(value["type"])


# =============================================================================
# Constructors
# =============================================================================


def text_node(text: str, marks: list[Mark] | None = None) -> Node:
    return Node(type=NodeType.TEXT, text=text, marks=list(marks or []))


def paragraph(content: list[Node] | None = None) -> Node:
    return Node(type=NodeType.PARAGRAPH, content=list(content or []))


def empty_doc() -> Node:
    return Node(type=NodeType.DOC)


def doc(blocks: list[Node]) -> Node:
    return Node(type=NodeType.DOC, content=list(blocks))
