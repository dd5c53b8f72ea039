"""Structural edits on a document's top-level blocks.

Operations are applied one after another, in the order given, against the
progressively updated document::

    result = apply_edit_operations(doc, [
        {"action": "replace", "target": "Introduction", "content": "# Intro\\n\\nNew text."},
        {"action": "append", "content": [{"type": "divider"}]},
    ])

A target is a top-level block index, the text of a block preview
(case-insensitive substring, first match wins) or, through ``block_id``,
a block identifier. An operation that cannot be applied is skipped with
one warning; the remaining operations still run.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from .nodes import IdFactory, Node, new_block_id, paragraph
from .normalizer import assign_block_ids, normalize_content
from .structure import find_block_index_by_block_id, find_preview_matches

logger = logging.getLogger(__name__)

ACTIONS = ("insert_after", "insert_before", "replace", "remove", "append")

# Actions that splice new content into the document
_CONTENT_ACTIONS = frozenset({"insert_after", "insert_before", "replace", "append"})


@dataclass
class EditResult:
    """Outcome of a batch of edit operations.

    ``operations_applied == 0`` means nothing changed; ``warnings`` lists
    skipped operations and adjustments made to applied ones.
    """

    doc: Node
    operations_applied: int = 0
    warnings: list[str] = field(default_factory=list)


class _Skip(Exception):
    """Internal signal: the current operation cannot be applied."""


def apply_edit_operations(
    document: Node | dict[str, Any],
    operations: list[dict[str, Any]],
    *,
    id_factory: IdFactory = new_block_id,
) -> EditResult:
    """Apply edit operations to a copy of a document.

    Args:
        document: The current document. It is never modified.
        operations: Dicts of ``{action, target?, end_target?, block_id?,
            end_block_id?, content?}``.
        id_factory: Generates identifiers for inserted blocks.

    Returns:
        The new document, the number of operations applied and the warnings.
    """
    if isinstance(document, Node):
        working = copy.deepcopy(document)
    else:
        working = normalize_content(document, id_factory=id_factory)

    result = EditResult(doc=working)

    for position, operation in enumerate(operations):
        action = operation.get("action") if isinstance(operation, dict) else None
        label = f"Op[{position}] {action}"
        notes: list[str] = []
        try:
            working = _apply_operation(working, operation, label, notes, id_factory)
        except _Skip as skip:
            logger.debug("Skipped edit operation: %s", skip)
            result.warnings.append(str(skip))
            continue
        result.operations_applied += 1
        result.warnings.extend(notes)

    result.doc = assign_block_ids(working, id_factory=id_factory)
    return result


def _apply_operation(
    document: Node,
    operation: Any,
    label: str,
    notes: list[str],
    id_factory: IdFactory,
) -> Node:
    if not isinstance(operation, dict):
        raise _Skip(f"{label}: operation is not an object, skipped")

    action = operation.get("action")
    if action not in ACTIONS:
        raise _Skip(f"{label}: unknown action, skipped")

    blocks: list[Node] = []
    if action in _CONTENT_ACTIONS:
        blocks = _content_blocks(operation.get("content"), id_factory)
        if not blocks:
            raise _Skip(f"{label}: no content provided, skipped")

    total = len(document.content)

    if action == "append":
        return insert_blocks_at(document, total, blocks)

    target = _resolve(document, operation, "target", "block_id", label, notes)

    if action == "insert_before":
        position = _clamp_noted(target, 0, total, label, "target", notes)
        return insert_blocks_at(document, position, blocks)

    if action == "insert_after":
        index = _clamp_noted(target, 0, max(total - 1, 0), label, "target", notes)
        return insert_blocks_at(document, min(index + 1, total), blocks)

    # replace / remove address existing blocks
    if total == 0:
        raise _Skip(f"{label}: document has no blocks, skipped")

    start = _clamp_noted(target, 0, total - 1, label, "target", notes)
    end = start
    if operation.get("end_target") is not None or operation.get("end_block_id") is not None:
        end_target = _resolve(document, operation, "end_target", "end_block_id", label, notes)
        end = _clamp_noted(end_target, 0, total - 1, label, "end_target", notes)
        if end < start:
            raise _Skip(f"{label}: end_target ({end}) < target ({start}), skipped")

    if action == "replace":
        return replace_blocks_range(document, start, end + 1, blocks)
    return remove_blocks_range(document, start, end + 1)


def _content_blocks(content: Any, id_factory: IdFactory) -> list[Node]:
    """Run operation content through the normalizer and return its blocks."""
    if content is None or content == [] or content == "":
        return []
    return normalize_content(content, id_factory=id_factory).content


def _resolve(
    document: Node,
    operation: dict[str, Any],
    target_key: str,
    block_id_key: str,
    label: str,
    notes: list[str],
) -> int:
    """Map a target (index, preview text or block id) to a block index."""
    block_id = operation.get(block_id_key)
    if block_id is not None:
        index = find_block_index_by_block_id(document, str(block_id))
        if index is None:
            raise _Skip(f'{label}: {block_id_key} "{block_id}" not found, skipped')
        return index

    target = operation.get(target_key)
    if target is None:
        raise _Skip(f"{label}: no {target_key} given, skipped")
    if isinstance(target, bool) or not isinstance(target, (int, str)):
        raise _Skip(f"{label}: {target_key} must be an index or text, skipped")
    if isinstance(target, int):
        return target

    matches = find_preview_matches(document, target)
    if not matches:
        raise _Skip(f'{label}: {target_key} "{target}" not found, skipped')
    if len(matches) > 1:
        notes.append(
            f'{label}: {target_key} "{target}" matched {len(matches)} blocks '
            f"{matches}, using first"
        )
    return matches[0]


def _clamp_noted(
    index: int,
    low: int,
    high: int,
    label: str,
    name: str,
    notes: list[str],
) -> int:
    clamped = _clamp(index, low, high)
    if clamped != index:
        notes.append(f"{label}: {name} index {index} out of range ({low}-{high}), clamped to {clamped}")
    return clamped


def _clamp(index: int, low: int, high: int) -> int:
    return max(low, min(index, high))


# =============================================================================
# Tree rewrites
# =============================================================================


def insert_blocks_at(document: Node, index: int, blocks: list[Node]) -> Node:
    """Return a copy of ``document`` with ``blocks`` inserted before ``index`` (clamped)."""
    content = list(document.content)
    position = _clamp(index, 0, len(content))
    content[position:position] = blocks
    return replace(document, content=content, attrs=dict(document.attrs))


def replace_blocks_range(document: Node, start: int, end: int, blocks: list[Node]) -> Node:
    """Return a copy of ``document`` with blocks ``[start, end)`` replaced by ``blocks``."""
    content = list(document.content)
    start = _clamp(start, 0, len(content))
    end = _clamp(end, start, len(content))
    content[start:end] = blocks
    return replace(document, content=content, attrs=dict(document.attrs))


def remove_blocks_range(document: Node, start: int, end: int) -> Node:
    """Return a copy of ``document`` without blocks ``[start, end)``.

    Removing every block leaves a single empty paragraph.
    """
    updated = replace_blocks_range(document, start, end, [])
    if not updated.content:
        updated.content = [paragraph()]
    return updated
