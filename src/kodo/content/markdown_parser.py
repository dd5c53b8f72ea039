"""Parse Markdown into a canonical block tree.

This module converts Markdown text into a ``doc`` node. It is a line
look-ahead state machine rather than a full CommonMark grammar: for the
current line each detector is tried in order (code fence, thematic break,
heading, blockquote, table, image, list, paragraph). A detector consumes
every following line that belongs to its construct and returns the index
of the first unconsumed line.

Unrecognized syntax degrades to paragraph text; there is no parse error.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from ..config import LIMITS
from .inline import parse_inline_markdown
from .nodes import Node, NodeType, doc, paragraph

logger = logging.getLogger(__name__)

_HORIZONTAL_RULE = re.compile(r"^(\s*[-*_]\s*){3,}$")
_HEADING = re.compile(r"^(#{1,6})\s+(.+)$")
_TASK_ITEM = re.compile(r"^(\s*)[-*]\s+\[([ xX])\](?:\s+(.*))?$")
_BULLET_ITEM = re.compile(r"^(\s*)[-*]\s+(.+)$")
_ORDERED_ITEM = re.compile(r"^(\s*)\d+\.\s+(.+)$")
_TABLE_SEPARATOR = re.compile(r"^\|(\s*:?-+:?\s*\|)+$")
_CELL_SPLIT = re.compile(r"(?<!\\)\|")
_IMAGE = re.compile(r"^!\[([^\]]*)\]\(([^)\s]+)\)$")
_QUOTE_PREFIX = re.compile(r"^\s*>\s?")

_FENCE = "```"

ParseResult = tuple[Node, int] | None


def parse_markdown(markdown: str) -> Node:
    """Parse Markdown text into a document node.

    Args:
        markdown: The Markdown text to parse.

    Returns:
        A ``doc`` node. A document with no blocks gets a single empty
        paragraph.
    """
    blocks = _parse_blocks((markdown or "").split("\n"), depth=0)
    return doc(blocks or [paragraph()])


def _parse_blocks(lines: list[str], depth: int) -> list[Node]:
    """Run the detectors over ``lines`` and collect top-level blocks."""
    nodes: list[Node] = []
    i = 0

    while i < len(lines):
        if lines[i].strip() == "":
            i += 1
            continue

        for detector in _DETECTORS:
            result = detector(lines, i, depth)
            if result is not None:
                node, i = result
                nodes.append(node)
                break

    return nodes


# =============================================================================
# Code block
# =============================================================================


def _parse_code_block(lines: list[str], start: int, depth: int) -> ParseResult:
    first_line = lines[start].strip()
    if not first_line.startswith(_FENCE):
        return None

    language = first_line[len(_FENCE):].strip()
    code_lines: list[str] = []
    i = start + 1

    while i < len(lines):
        if lines[i].strip() == _FENCE:
            i += 1
            break
        code_lines.append(lines[i])
        i += 1

    code = "\n".join(code_lines)
    node = Node(type=NodeType.CODE_BLOCK)
    if language:
        node.attrs["language"] = language
    if code:
        node.content = [Node(type=NodeType.TEXT, text=code)]
    return node, i


# =============================================================================
# Single-line blocks
# =============================================================================


def _parse_horizontal_rule(lines: list[str], start: int, depth: int) -> ParseResult:
    if not _is_horizontal_rule(lines[start]):
        return None
    return Node(type=NodeType.HORIZONTAL_RULE), start + 1


def _parse_heading(lines: list[str], start: int, depth: int) -> ParseResult:
    match = _HEADING.match(lines[start])
    if not match:
        return None
    node = Node(
        type=NodeType.HEADING,
        attrs={"level": len(match.group(1))},
        content=parse_inline_markdown(match.group(2).strip()),
    )
    return node, start + 1


def _parse_image(lines: list[str], start: int, depth: int) -> ParseResult:
    match = _IMAGE.match(lines[start].strip())
    if not match:
        return None
    node = Node(
        type=NodeType.IMAGE,
        attrs={"src": match.group(2), "alt": match.group(1), "alignment": "center"},
    )
    return node, start + 1


# =============================================================================
# Blockquote
# =============================================================================


def _parse_blockquote(lines: list[str], start: int, depth: int) -> ParseResult:
    if not lines[start].strip().startswith(">"):
        return None

    quote_lines: list[str] = []
    i = start
    while i < len(lines) and lines[i].strip().startswith(">"):
        quote_lines.append(_QUOTE_PREFIX.sub("", lines[i], count=1))
        i += 1

    if depth + 1 >= LIMITS.MAX_NESTING_DEPTH:
        logger.debug("Blockquote nesting limit reached, keeping text literal")
        text = " ".join(line.strip() for line in quote_lines if line.strip())
        inner = [paragraph(parse_inline_markdown(text))]
    else:
        inner = _parse_blocks(quote_lines, depth + 1) or [paragraph()]

    return Node(type=NodeType.BLOCKQUOTE, content=inner), i


# =============================================================================
# Table
# =============================================================================


def _parse_table(lines: list[str], start: int, depth: int) -> ParseResult:
    if not _is_table_line(lines[start]):
        return None

    table_lines: list[str] = []
    i = start
    while i < len(lines) and _is_table_line(lines[i]):
        table_lines.append(lines[i].strip())
        i += 1

    if len(table_lines) < 2:
        return None

    # The first separator row is dropped wherever it is; only in second
    # position does it mark the row above as a header.
    separator = next(
        (index for index, line in enumerate(table_lines) if _TABLE_SEPARATOR.match(line)),
        None,
    )
    data_lines = [line for index, line in enumerate(table_lines) if index != separator]

    has_header = separator == 1
    rows: list[Node] = []

    for index, line in enumerate(data_lines):
        cell_type = NodeType.TABLE_HEADER if has_header and index == 0 else NodeType.TABLE_CELL
        cells = [
            Node(
                type=cell_type,
                attrs={"colspan": 1, "rowspan": 1},
                content=[paragraph(parse_inline_markdown(cell))],
            )
            for cell in _split_cells(line)
        ]
        rows.append(Node(type=NodeType.TABLE_ROW, content=cells))

    return Node(type=NodeType.TABLE, content=rows), i


def _split_cells(line: str) -> list[str]:
    """Split a ``| a | b |`` line into unescaped, trimmed cell texts."""
    inner = line[1:-1] if len(line) > 1 else ""
    return [cell.strip().replace("\\|", "|") for cell in _CELL_SPLIT.split(inner)]


# =============================================================================
# Lists
# =============================================================================


def _parse_list(lines: list[str], start: int, depth: int) -> ParseResult:
    if _is_horizontal_rule(lines[start]):
        return None
    first = _match_list_item(lines[start])
    if first is None:
        return None

    kind, indent, _, _ = first
    items: list[Node] = []
    i = start

    while i < len(lines):
        line = lines[i]
        if line.strip() == "" or _is_horizontal_rule(line):
            break

        item = _match_list_item(line)
        if item is None:
            # Indented continuation line belongs to the previous item
            if items and _indent_of(line) > indent:
                items[-1].content.append(paragraph(parse_inline_markdown(line.strip())))
                i += 1
                continue
            break

        item_kind, item_indent, text, checked = item
        if item_indent > indent and items:
            if depth + 1 >= LIMITS.MAX_NESTING_DEPTH:
                items[-1].content.append(paragraph(parse_inline_markdown(text)))
                i += 1
                continue
            nested, i = _parse_list(lines, i, depth + 1)
            items[-1].content.append(nested)
            continue

        if item_indent != indent or item_kind != kind:
            break

        items.append(_build_list_item(kind, text, checked))
        i += 1

    return Node(type=kind, content=items), i


def _match_list_item(line: str) -> tuple[NodeType, int, str, bool] | None:
    """Classify a list item line as (list kind, indent, text, checked)."""
    match = _TASK_ITEM.match(line)
    if match:
        checked = match.group(2).lower() == "x"
        return NodeType.TASK_LIST, len(match.group(1)), match.group(3) or "", checked

    match = _BULLET_ITEM.match(line)
    if match:
        return NodeType.BULLET_LIST, len(match.group(1)), match.group(2), False

    match = _ORDERED_ITEM.match(line)
    if match:
        return NodeType.ORDERED_LIST, len(match.group(1)), match.group(2), False

    return None


def _build_list_item(kind: NodeType, text: str, checked: bool) -> Node:
    body = paragraph(parse_inline_markdown(text.strip()))
    if kind == NodeType.TASK_LIST:
        return Node(type=NodeType.TASK_ITEM, attrs={"checked": checked}, content=[body])
    return Node(type=NodeType.LIST_ITEM, content=[body])


# =============================================================================
# Paragraph (fallback)
# =============================================================================


def _parse_paragraph(lines: list[str], start: int, depth: int) -> ParseResult:
    text_lines = [lines[start]]
    i = start + 1

    while i < len(lines):
        line = lines[i]
        if line.strip() == "" or _starts_block(line):
            break
        text_lines.append(line)
        i += 1

    full_text = " ".join(text_lines).strip()
    return paragraph(parse_inline_markdown(full_text)), i


def _starts_block(line: str) -> bool:
    """Check whether a line opens any construct other than a paragraph."""
    stripped = line.strip()
    return bool(
        _HEADING.match(line)
        or re.match(r"^\s*[-*]\s+", line)
        or re.match(r"^\s*\d+\.\s+", line)
        or stripped.startswith(">")
        or stripped.startswith(_FENCE)
        or _is_table_line(line)
        or _is_horizontal_rule(line)
        or _IMAGE.match(stripped)
    )


# =============================================================================
# Helpers
# =============================================================================


def _is_horizontal_rule(line: str) -> bool:
    return bool(_HORIZONTAL_RULE.match(line.strip()))


def _is_table_line(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) > 1 and stripped.startswith("|") and stripped.endswith("|")


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


_DETECTORS: list[Callable[[list[str], int, int], ParseResult]] = [
    _parse_code_block,
    _parse_horizontal_rule,
    _parse_heading,
    _parse_blockquote,
    _parse_table,
    _parse_image,
    _parse_list,
    _parse_paragraph,
]
