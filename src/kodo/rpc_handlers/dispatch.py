"""JSON-RPC 2.0 dispatch for the document handlers.

A flat ``_METHODS`` registry maps method names to handler functions, so
adding a handler is a one-line change. Transport (stdio, HTTP) is the
caller's concern: ``dispatch`` takes a decoded request object and returns
the response object.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from . import ERROR_INVALID_REQUEST, ERROR_METHOD_NOT_FOUND
from ._base import to_rpc_error
from .documents import (
    handle_documents_edit,
    handle_documents_html,
    handle_documents_markdown,
    handle_documents_normalize,
    handle_documents_structure,
)

logger = logging.getLogger(__name__)

_METHODS: dict[str, Callable[..., Any]] = {
    handler.rpc_method: handler
    for handler in (
        handle_documents_normalize,
        handle_documents_markdown,
        handle_documents_html,
        handle_documents_structure,
        handle_documents_edit,
    )
}


def _build_rpc_result(req_id: str | int | None, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": req_id, "result": result}


def _build_rpc_error(
    req_id: str | int | None,
    code: int,
    message: str,
    data: Any | None = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": req_id, "error": error}


def dispatch(body: Any) -> dict[str, Any]:
    """Route a single JSON-RPC 2.0 request object to its handler."""
    if not isinstance(body, dict):
        return _build_rpc_error(None, ERROR_INVALID_REQUEST, "Invalid Request: expected a JSON object")

    req_id: str | int | None = body.get("id")
    method: str | None = body.get("method")
    params: Any = body.get("params") or {}

    if not isinstance(method, str) or not method:
        return _build_rpc_error(req_id, ERROR_INVALID_REQUEST, "Invalid Request: method is required")

    if not isinstance(params, dict):
        return _build_rpc_error(req_id, ERROR_INVALID_REQUEST, "Invalid Request: params must be an object")

    handler = _METHODS.get(method)
    if handler is None:
        return _build_rpc_error(req_id, ERROR_METHOD_NOT_FOUND, f"Method not found: {method}")

    logger.debug("Dispatching %s (id=%r)", method, req_id)
    try:
        return _build_rpc_result(req_id, handler(**params))
    except Exception as exc:
        error = to_rpc_error(exc, method)
        return _build_rpc_error(req_id, error.code, error.message, error.data)
