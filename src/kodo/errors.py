"""Kodo Error Hierarchy.

Provides a structured error hierarchy for the layers around the content engine:
- KodoError: Base exception for all application errors
- ValidationError: Request validation failures
- NestingDepthError: Tree nesting beyond the configured limit

The engine itself (parser, normalizer, renderer, editor) never lets these
escape: every engine function returns a defined value for every input.
They are raised at the handler boundary, or raised and caught internally
to unwind a recursion.

Each error type includes:
- Descriptive message
- Optional field for context
- Recoverable flag for retry logic
- Structured representation for RPC responses

Usage:
    from kodo.errors import ValidationError

    if not operations:
        raise ValidationError("At least one operation is required", field="operations")
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Error Base Classes
# =============================================================================


class KodoError(Exception):
    """Base exception for all Kodo application errors.

    Attributes:
        message: Human-readable error description
        recoverable: Whether the operation can be retried
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured dictionary for RPC responses."""
        return {
            "type": type(self).__name__.lower().replace("error", ""),
            "message": self.message,
            "recoverable": self.recoverable,
            **{k: v for k, v in self.context.items() if v is not None},
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(KodoError):
    """Input validation failed.

    Raised when request parameters fail validation checks.

    Example:
        raise ValidationError("Unknown action", field="operations.0.action", value="move")
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if constraint:
            context["constraint"] = constraint
        if value is not None:
            context["value"] = _truncate(str(value), 100)
        super().__init__(message, recoverable=False, context=context)
        self.field = field
        self.constraint = constraint


# =============================================================================
# Tree Errors
# =============================================================================


class NestingDepthError(KodoError):
    """A tree is nested deeper than the configured limit."""

    def __init__(
        self,
        message: str = "Nesting depth limit exceeded",
        *,
        limit: int | None = None,
        node_type: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"limit": limit, "node_type": node_type},
        )
        self.limit = limit


# =============================================================================
# Helpers
# =============================================================================


def _truncate(value: str | None, max_len: int) -> str | None:
    """Truncate a string value for safe logging."""
    if value is None:
        return None
    if len(value) <= max_len:
        return value
    return value[:max_len] + "..."


# =============================================================================
# RPC Error Code Mapping
# =============================================================================


# Map domain errors to JSON-RPC error codes
ERROR_CODES: dict[type[KodoError], int] = {
    ValidationError: -32602,
    NestingDepthError: -32000,
}


def get_error_code(exc: KodoError) -> int:
    """Get the JSON-RPC error code for a domain error."""
    # Check exact type first
    if type(exc) in ERROR_CODES:
        return ERROR_CODES[type(exc)]
    # Check parent types
    for error_type, code in ERROR_CODES.items():
        if isinstance(exc, error_type):
            return code
    # Default internal error
    return -32603
