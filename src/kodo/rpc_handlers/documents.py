"""Documents RPC handlers - normalize, export and edit document content.

These handlers take and return plain data. Loading and saving documents
belongs to the caller: ``content`` is whatever the caller has stored or
received, and edited content is returned for the caller to persist.
"""

from __future__ import annotations

import logging
from typing import Any

from kodo.content.editor import apply_edit_operations
from kodo.content.markdown_renderer import render_html, render_markdown, render_styled_html
from kodo.content.normalizer import normalize_content
from kodo.content.schema import DocumentStructure, EditRequest, EditResponse
from kodo.content.structure import (
    get_complex_block_types,
    get_document_structure,
    has_complex_blocks,
)

from ._base import rpc_handler

logger = logging.getLogger(__name__)


# =============================================================================
# Conversion Handlers
# =============================================================================


@rpc_handler("documents/normalize")
def handle_documents_normalize(*, content: Any = None) -> dict[str, Any]:
    """Normalize any content into a canonical document.

    Args:
        content: Markdown, plain text, JSON string, simplified blocks or
            canonical nodes

    Returns:
        The canonical document under ``content``
    """
    document = normalize_content(content)
    return {"content": document.to_dict()}


@rpc_handler("documents/markdown", required=("content",))
def handle_documents_markdown(*, content: Any) -> dict[str, Any]:
    """Export a document as Markdown."""
    return {"markdown": render_markdown(normalize_content(content))}


@rpc_handler("documents/html", required=("content",))
def handle_documents_html(*, content: Any, title: str | None = None) -> dict[str, Any]:
    """Export a document as HTML.

    With a ``title`` the result is a complete styled page ready for print
    or PDF export; without one it is a bare fragment.
    """
    document = normalize_content(content)
    if title is not None:
        return {"html": render_styled_html(document, title)}
    return {"html": render_html(document)}


@rpc_handler("documents/structure", required=("content",))
def handle_documents_structure(*, content: Any) -> dict[str, Any]:
    """Summarize the top-level blocks of a document."""
    document = normalize_content(content)
    structure = DocumentStructure.model_validate(get_document_structure(document))
    return {
        **structure.model_dump(exclude_none=True),
        "has_complex_blocks": has_complex_blocks(document),
        "complex_block_types": get_complex_block_types(document),
    }


# =============================================================================
# Edit Handler
# =============================================================================


@rpc_handler("documents/edit", required=("document_id", "operations"))
def handle_documents_edit(
    *,
    document_id: str,
    operations: list[dict[str, Any]],
    content: Any = None,
) -> dict[str, Any]:
    """Apply structural edit operations to a document.

    Args:
        document_id: The caller's identifier for the document
        operations: Edit operations, applied in order
        content: The document's current content

    Returns:
        The edit response (applied count, structure before and after,
        warnings) plus the new ``content``
    """
    request = EditRequest.model_validate({"document_id": document_id, "operations": operations})

    document = normalize_content(content)
    result = apply_edit_operations(
        document,
        [
            {name: value for name, value in op if value is not None}
            for op in request.operations
        ],
    )

    if result.operations_applied == 0 and request.operations:
        logger.info(
            "No operations applied to document %s (%d warnings)",
            request.document_id,
            len(result.warnings),
        )

    response = EditResponse(
        operations_applied=result.operations_applied,
        structure_before=DocumentStructure.model_validate(get_document_structure(document)),
        structure_after=DocumentStructure.model_validate(get_document_structure(result.doc)),
        warnings=result.warnings or None,
    )
    return {**response.model_dump(exclude_none=True), "content": result.doc.to_dict()}
