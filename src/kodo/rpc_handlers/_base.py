"""Error mapping shared by the document handlers and the dispatcher.

Handlers raise whatever is natural where the problem is found: a
``pydantic.ValidationError`` from request models, a ``KodoError`` from
domain checks, ``TypeError`` for unexpected keyword arguments. The
``rpc_handler`` decorator turns all of these into ``RpcError`` with the
JSON-RPC code the client expects.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable

import pydantic

from kodo.errors import KodoError, ValidationError, get_error_code

from . import ERROR_INTERNAL, ERROR_INVALID_PARAMS, RpcError

logger = logging.getLogger(__name__)


def validation_error_from_pydantic(exc: pydantic.ValidationError) -> ValidationError:
    """Report the first failing field of a request model.

    The field is the dotted location (``operations.0.action``) and the
    value is the rejected input.
    """
    errors = exc.errors()
    if not errors:
        return ValidationError(f"Invalid parameters: {exc}")
    first = errors[0]
    return ValidationError(
        f"Invalid parameters: {first['msg']}",
        field=".".join(str(part) for part in first["loc"]),
        value=first.get("input"),
    )


def to_rpc_error(exc: Exception, method_name: str) -> RpcError:
    """Map an exception raised while serving ``method_name`` to an RpcError."""
    if isinstance(exc, RpcError):
        return exc
    if isinstance(exc, pydantic.ValidationError):
        # Subclass of ValueError: must be checked before it
        exc = validation_error_from_pydantic(exc)
    if isinstance(exc, KodoError):
        return RpcError(code=get_error_code(exc), message=exc.message, data=exc.to_dict())
    if isinstance(exc, ValueError):
        return RpcError(code=ERROR_INVALID_PARAMS, message=str(exc))
    if isinstance(exc, TypeError):
        return RpcError(code=ERROR_INVALID_PARAMS, message=f"Invalid parameter: {exc}")

    logger.error("Internal error in RPC handler %s: %s", method_name, exc, exc_info=exc)
    return RpcError(
        code=ERROR_INTERNAL,
        message=f"Internal error in {method_name}",
        data={"error_type": type(exc).__name__},
    )


def rpc_handler(method_name: str, *, required: tuple[str, ...] = ()) -> Callable:
    """Register a function as the handler for ``method_name``.

    Parameters named in ``required`` must be present and not None.
    Every exception leaves the handler as an ``RpcError`` (see
    ``to_rpc_error``). The method name is kept on the wrapper as
    ``rpc_method`` for the dispatcher's registry.

    Usage:
        @rpc_handler("documents/markdown", required=("content",))
        def handle_documents_markdown(*, content: Any) -> dict:
            return {"markdown": render_markdown(normalize_content(content))}
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(**params: Any) -> Any:
            missing = [name for name in required if params.get(name) is None]
            if missing:
                raise RpcError(
                    code=ERROR_INVALID_PARAMS,
                    message=f"Missing required parameters: {', '.join(missing)}",
                    data={"missing": missing},
                )
            try:
                return func(**params)
            except RpcError:
                raise
            except Exception as exc:
                raise to_rpc_error(exc, method_name) from exc

        wrapper.rpc_method = method_name  # type: ignore[attr-defined]
        return wrapper

    return decorator
