"""Canonical block trees for rich-text documents.

Key components:
- nodes: Node, Mark, NodeType dataclasses and the closed type vocabulary
- inline: inline Markdown -> styled text spans
- markdown_parser: Markdown -> block tree
- markdown_renderer: block tree -> Markdown / HTML
- normalizer: arbitrary input -> canonical document with block IDs
- structure: block previews, summaries and lookups
- editor: structural edit operations
"""

from .editor import EditResult, apply_edit_operations
from .inline import parse_inline_markdown, tokenize_inline
from .markdown_parser import parse_markdown
from .markdown_renderer import render_html, render_markdown, render_styled_html
from .nodes import Mark, MarkType, Node, NodeType, new_block_id
from .normalizer import (
    assign_block_ids,
    build_accordion_item,
    convert_simple_block,
    convert_simple_blocks,
    normalize_content,
)
from .structure import (
    extract_preview,
    extract_text,
    find_block_index_by_block_id,
    get_complex_block_types,
    get_document_structure,
    has_complex_blocks,
)

__all__ = [
    "EditResult",
    "apply_edit_operations",
    "parse_inline_markdown",
    "tokenize_inline",
    "parse_markdown",
    "render_html",
    "render_markdown",
    "render_styled_html",
    "Mark",
    "MarkType",
    "Node",
    "NodeType",
    "new_block_id",
    "assign_block_ids",
    "build_accordion_item",
    "convert_simple_block",
    "convert_simple_blocks",
    "normalize_content",
    "extract_preview",
    "extract_text",
    "find_block_index_by_block_id",
    "get_complex_block_types",
    "get_document_structure",
    "has_complex_blocks",
]
