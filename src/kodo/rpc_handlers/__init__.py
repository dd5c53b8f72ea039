"""RPC handler modules for the content engine.

This package contains handler functions organized by domain:
- documents: normalize, export and edit document content

``dispatch`` routes a JSON-RPC 2.0 request object to its handler.
"""

from __future__ import annotations

from typing import Any

# JSON-RPC 2.0 error codes
ERROR_PARSE = -32700
ERROR_INVALID_REQUEST = -32600
ERROR_METHOD_NOT_FOUND = -32601
ERROR_INVALID_PARAMS = -32602
ERROR_INTERNAL = -32603


class RpcError(RuntimeError):
    """JSON-RPC error that can be returned to the client."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


from .dispatch import dispatch  # noqa: E402

__all__ = ["RpcError", "dispatch"]
