"""Request and response models for structural edits."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

EditAction = Literal["insert_after", "insert_before", "replace", "remove", "append"]


class EditOperation(BaseModel):
    """One edit: what to do, where, and with which content.

    ``content`` accepts everything the normalizer does: simplified blocks,
    canonical nodes, Markdown or plain text.
    """

    action: EditAction
    target: int | str | None = None
    end_target: int | str | None = None
    block_id: str | None = None
    end_block_id: str | None = None
    content: Any = None


class EditRequest(BaseModel):
    # Identifies the stored document for the caller; the engine never reads it
    document_id: str
    operations: list[EditOperation] = Field(default_factory=list)


class BlockSummary(BaseModel):
    index: int
    type: str
    preview: str
    block_id: str | None = None
    attrs: dict[str, Any] | None = None


class DocumentStructure(BaseModel):
    total_blocks: int = 0
    blocks: list[BlockSummary] = Field(default_factory=list)


class EditResponse(BaseModel):
    """Result of an edit request.

    A zero ``operations_applied`` means the document did not change.
    """

    operations_applied: int
    structure_before: DocumentStructure
    structure_after: DocumentStructure
    warnings: list[str] | None = None
