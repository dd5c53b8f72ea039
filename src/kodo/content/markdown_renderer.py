"""Render a canonical block tree to Markdown or HTML.

Each node type has a render handler in ``_RENDERERS``; types without one
fall back to ``_render_unknown``. Blocks that wrap externally stored data
(databases, spreadsheets, mind maps, task references) render as a single
placeholder line carrying their label and external ID: their payload is
never inlined.

Rendering never raises. Any failure while walking the tree is logged and
replaced by a fixed placeholder string.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable

import mistletoe

from ..config import LIMITS
from ..errors import NestingDepthError
from .nodes import LIST_TYPES, NESTING_TYPES, Mark, MarkType, Node, NodeType

logger = logging.getLogger(__name__)

MARKDOWN_CONVERSION_ERROR = "[Error converting document to Markdown]"
HTML_CONVERSION_ERROR = "<!-- Error converting document to HTML -->"

PRINT_STYLES = """
    body { font-family: -apple-system, "Segoe UI", Roboto, sans-serif; line-height: 1.6;
           color: #1f2937; max-width: 48rem; margin: 2rem auto; padding: 0 1rem; }
    h1.document-title { border-bottom: 1px solid #e5e7eb; padding-bottom: .5rem; }
    blockquote { border-left: 4px solid #d1d5db; margin: 1rem 0; padding: 0 1rem; color: #4b5563; }
    pre { background: #f3f4f6; padding: 1rem; border-radius: 4px; overflow-x: auto; }
    code { font-family: "SFMono-Regular", Consolas, monospace; font-size: .9em; }
    table { border-collapse: collapse; width: 100%; }
    th, td { border: 1px solid #d1d5db; padding: .4rem .6rem; text-align: left; }
    th { background: #f9fafb; }
    img { max-width: 100%; }
    @media print { body { margin: 0; max-width: none; } }
"""


@dataclass(frozen=True)
class _RenderContext:
    """Per-call rendering state, passed down explicitly."""

    list_type: str | None = None
    list_index: int = 1
    depth: int = 0
    nesting: int = 0


def render_markdown(content: Node | dict[str, Any] | None) -> str:
    """Render a document (or any node) to Markdown.

    Args:
        content: A ``Node`` or its dictionary form.

    Returns:
        Trimmed Markdown text; an empty string for empty input, or
        ``MARKDOWN_CONVERSION_ERROR`` if rendering failed.
    """
    try:
        return _to_markdown(content)
    except Exception:
        logger.warning("Failed to convert document to Markdown", exc_info=True)
        return MARKDOWN_CONVERSION_ERROR


def render_html(content: Node | dict[str, Any] | None) -> str:
    """Render a document to an HTML fragment (no styles)."""
    try:
        markdown = _to_markdown(content)
        if not markdown:
            return ""
        return mistletoe.markdown(markdown)
    except Exception:
        logger.warning("Failed to convert document to HTML", exc_info=True)
        return HTML_CONVERSION_ERROR


def render_styled_html(content: Node | dict[str, Any] | None, title: str) -> str:
    """Render a document as a full styled HTML page for printing or PDF export."""
    body = render_html(content)
    escaped_title = html.escape(title or "", quote=False)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escaped_title}</title>
  <style>{PRINT_STYLES}  </style>
</head>
<body>
  <h1 class="document-title">{escaped_title}</h1>
  <div class="document-content">
    {body}
  </div>
</body>
</html>"""


def _to_markdown(content: Node | dict[str, Any] | None) -> str:
    if isinstance(content, dict):
        if not content.get("type"):
            return ""
        content = Node.from_dict(content)
    if not isinstance(content, Node):
        return ""
    return _render_node(content, _RenderContext()).strip()


def _render_node(node: Node, ctx: _RenderContext) -> str:
    if node.type in NESTING_TYPES:
        ctx = replace(ctx, nesting=ctx.nesting + 1)
        if ctx.nesting > LIMITS.MAX_NESTING_DEPTH:
            raise NestingDepthError(limit=LIMITS.MAX_NESTING_DEPTH, node_type=node.type)
    renderer = _RENDERERS.get(node.type, _render_unknown)
    return renderer(node, ctx)


def _nested(ctx: _RenderContext) -> _RenderContext:
    """Context for a child outside any list: indentation resets."""
    return _RenderContext(nesting=ctx.nesting)


# =============================================================================
# Inline content rendering
# =============================================================================


def _render_inline(node: Node, ctx: _RenderContext) -> str:
    return "".join(_render_node(child, _nested(ctx)) for child in node.content).strip()


def _render_children(node: Node, ctx: _RenderContext) -> str:
    return "".join(_render_node(child, _nested(ctx)) for child in node.content)


def _render_text(node: Node, ctx: _RenderContext) -> str:
    return _apply_marks(node.text or "", node.marks)


def _apply_marks(text: str, marks: list[Mark]) -> str:
    result = text
    for mark in marks:
        if mark.type == MarkType.BOLD:
            result = f"**{result}**"
        elif mark.type == MarkType.ITALIC:
            result = f"*{result}*"
        elif mark.type == MarkType.STRIKE:
            result = f"~~{result}~~"
        elif mark.type == MarkType.CODE:
            result = f"`{result}`"
        elif mark.type == MarkType.LINK:
            href = mark.attrs.get("href") or ""
            result = f"[{result}]({href})"
        # textStyle, highlight, fontSize: no Markdown equivalent
    return result


# =============================================================================
# Text blocks
# =============================================================================


def _render_doc(node: Node, ctx: _RenderContext) -> str:
    return "".join(_render_node(child, _nested(ctx)) for child in node.content)


def _render_paragraph(node: Node, ctx: _RenderContext) -> str:
    return _render_inline(node, ctx) + "\n\n"


def _render_heading(node: Node, ctx: _RenderContext) -> str:
    level = min(max(_int_attr(node, "level", 1), 1), 6)
    return f"{'#' * level} {_render_inline(node, ctx)}\n\n"


def _render_hard_break(node: Node, ctx: _RenderContext) -> str:
    return "  \n"


def _render_horizontal_rule(node: Node, ctx: _RenderContext) -> str:
    return "---\n\n"


def _render_code_block(node: Node, ctx: _RenderContext) -> str:
    language = node.attrs.get("language") or ""
    return f"```{language}\n{node.plain_text()}\n```\n\n"


def _render_blockquote(node: Node, ctx: _RenderContext) -> str:
    inner = _render_children(node, ctx).strip()
    return "\n".join(f"> {line}" for line in inner.split("\n")) + "\n\n"


def _render_image(node: Node, ctx: _RenderContext) -> str:
    src = node.attrs.get("src") or ""
    alt = node.attrs.get("alt") or ""
    caption = node.attrs.get("caption") or ""
    markdown = f"![{alt}]({src})"
    if caption:
        markdown += f"\n*{caption}*"
    return markdown + "\n\n"


# =============================================================================
# Lists
# =============================================================================


def _render_list(node: Node, ctx: _RenderContext) -> str:
    items = [
        _render_node(
            item,
            replace(ctx, list_type=node.type, list_index=index + 1),
        )
        for index, item in enumerate(node.content)
    ]
    return "".join(items) + ("\n" if ctx.depth == 0 else "")


def _render_list_item(node: Node, ctx: _RenderContext) -> str:
    if ctx.list_type == NodeType.ORDERED_LIST:
        bullet = f"{ctx.list_index}. "
    else:
        bullet = "- "
    return _render_item(node, ctx, bullet)


def _render_task_item(node: Node, ctx: _RenderContext) -> str:
    checked = "x" if node.attrs.get("checked") else " "
    return _render_item(node, ctx, f"- [{checked}] ")


def _render_item(node: Node, ctx: _RenderContext, bullet: str) -> str:
    """Render one list entry: first paragraph on the bullet line, the rest indented."""
    indent = "  " * ctx.depth
    if not node.content:
        return f"{indent}{bullet}\n"

    parts: list[str] = []
    for index, child in enumerate(node.content):
        if child.type == NodeType.PARAGRAPH:
            text = _render_inline(child, ctx)
            if index == 0:
                parts.append(f"{indent}{bullet}{text}\n")
            else:
                parts.append(f"{indent}  {text}\n")
        elif child.type in LIST_TYPES:
            parts.append(
                _render_node(child, _RenderContext(depth=ctx.depth + 1, nesting=ctx.nesting))
            )
        else:
            parts.append(_render_node(child, _nested(ctx)))
    return "".join(parts)


# =============================================================================
# Table
# =============================================================================


def _render_table(node: Node, ctx: _RenderContext) -> str:
    rows = [row for row in node.content if row.type == NodeType.TABLE_ROW]
    table_data: list[list[str]] = []

    for row in rows:
        if not row.content:
            continue
        table_data.append(
            [
                _render_inline(cell, _nested(ctx)).replace("|", "\\|").replace("\n", " ")
                for cell in row.content
            ]
        )

    if not table_data:
        return ""

    col_count = max(len(row) for row in table_data)
    widths = [LIMITS.TABLE_MIN_COLUMN_WIDTH] * col_count
    for row in table_data:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))

    def format_row(cells: list[str]) -> str:
        padded = [
            (cells[index] if index < len(cells) else "").ljust(widths[index])
            for index in range(col_count)
        ]
        return f"| {' | '.join(padded)} |"

    lines = [format_row(table_data[0])]
    lines.append(f"| {' | '.join('-' * width for width in widths)} |")
    lines.extend(format_row(row) for row in table_data[1:])
    return "\n".join(lines) + "\n\n"


# =============================================================================
# Layout blocks
# =============================================================================


def _render_accordion_title(node: Node, ctx: _RenderContext) -> str:
    return f"**{_render_inline(node, ctx)}**\n\n"


def _render_columns(node: Node, ctx: _RenderContext) -> str:
    # Markdown has no side-by-side layout: columns are stacked with rules
    parts: list[str] = []
    for index, column in enumerate(node.content):
        if index > 0:
            parts.append("---\n\n")
        parts.append(_render_children(column, _nested(ctx)))
    return "".join(parts)


# =============================================================================
# Opaque blocks and references
# =============================================================================


def _render_database_table(node: Node, ctx: _RenderContext) -> str:
    name = _config_name(node, "Database")
    return f"> **[Database: {name}]** (ID: `{node.attrs.get('databaseId') or ''}`)\n\n"


def _render_spreadsheet(node: Node, ctx: _RenderContext) -> str:
    name = _config_name(node, "Spreadsheet")
    return f"> **[Spreadsheet: {name}]** (ID: `{node.attrs.get('spreadsheetId') or ''}`)\n\n"


def _render_mindmap(node: Node, ctx: _RenderContext) -> str:
    return f"> **[Mind Map]** (ID: `{node.attrs.get('mindmapId') or ''}`)\n\n"


def _render_task_mention(node: Node, ctx: _RenderContext) -> str:
    attrs = node.attrs
    label = f"#{attrs.get('taskNumber') or '?'} {attrs.get('taskTitle') or ''}".rstrip()
    status = attrs.get("taskStatus") or "pending"
    priority = attrs.get("taskPriority") or "medium"
    return (
        f"> **[Task {label}]** ({status}, {priority}) "
        f"(ID: `{attrs.get('taskId') or ''}`)\n\n"
    )


def _render_task_section(node: Node, ctx: _RenderContext) -> str:
    document_id = node.attrs.get("documentId")
    if document_id:
        return f"> **[Task section linked to this document]** (ID: `{document_id}`)\n\n"
    return "> **[Task section linked to this document]**\n\n"


def _render_unknown(node: Node, ctx: _RenderContext) -> str:
    if node.content:
        return _render_children(node, ctx)
    return f"[Unknown block: {node.type}]\n\n"


# =============================================================================
# Helpers
# =============================================================================


def _int_attr(node: Node, name: str, default: int) -> int:
    try:
        return int(node.attrs.get(name, default))
    except (TypeError, ValueError):
        return default


def _config_name(node: Node, default: str) -> str:
    config = node.attrs.get("config")
    if isinstance(config, dict) and config.get("name"):
        return str(config["name"])
    return default


_RENDERERS: dict[str, Callable[[Node, _RenderContext], str]] = {
    NodeType.DOC.value: _render_doc,
    NodeType.TEXT.value: _render_text,
    NodeType.HARD_BREAK.value: _render_hard_break,
    NodeType.PARAGRAPH.value: _render_paragraph,
    NodeType.HEADING.value: _render_heading,
    NodeType.BLOCKQUOTE.value: _render_blockquote,
    NodeType.CODE_BLOCK.value: _render_code_block,
    NodeType.HORIZONTAL_RULE.value: _render_horizontal_rule,
    NodeType.IMAGE.value: _render_image,
    NodeType.BULLET_LIST.value: _render_list,
    NodeType.ORDERED_LIST.value: _render_list,
    NodeType.TASK_LIST.value: _render_list,
    NodeType.LIST_ITEM.value: _render_list_item,
    NodeType.TASK_ITEM.value: _render_task_item,
    NodeType.TABLE.value: _render_table,
    NodeType.TABLE_ROW.value: _render_inline,
    NodeType.TABLE_HEADER.value: _render_inline,
    NodeType.TABLE_CELL.value: _render_inline,
    NodeType.COLUMNS.value: _render_columns,
    NodeType.COLUMN.value: _render_children,
    NodeType.ACCORDION_GROUP.value: _render_children,
    NodeType.ACCORDION_ITEM.value: _render_children,
    NodeType.ACCORDION_TITLE.value: _render_accordion_title,
    NodeType.ACCORDION_CONTENT.value: _render_children,
    NodeType.DATABASE_TABLE.value: _render_database_table,
    NodeType.SPREADSHEET.value: _render_spreadsheet,
    NodeType.MINDMAP.value: _render_mindmap,
    NodeType.TASK_MENTION.value: _render_task_mention,
    NodeType.TASK_SECTION.value: _render_task_section,
}
