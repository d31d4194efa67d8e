#!/usr/bin/env python3
"""
Toolkit Validation - Input precondition checks and error wrapping for tool handlers
"""

import functools
import logging
from typing import Any, Callable, Optional, TypeVar

from mcp.shared.exceptions import McpError
from mcp.types import ErrorData, INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def invalid_params(message: str) -> McpError:
    """Build an InvalidParams protocol error"""
    return McpError(ErrorData(code=INVALID_PARAMS, message=message))


def method_not_found(message: str) -> McpError:
    """Build a MethodNotFound protocol error"""
    return McpError(ErrorData(code=METHOD_NOT_FOUND, message=message))


def internal_error(message: str) -> McpError:
    """Build an InternalError protocol error"""
    return McpError(ErrorData(code=INTERNAL_ERROR, message=message))


def require_non_empty_text(value: Optional[str], field_label: str) -> None:
    """
    Reject missing or blank text arguments.

    Args:
        value: The argument value as received
        field_label: Human readable field name used in the error message

    Raises:
        McpError: InvalidParams when the value is None or only whitespace
    """
    if value is None or value.strip() == "":
        raise invalid_params(f"{field_label} is required and cannot be empty")


def utf8_bytes(value: str, field_label: str) -> bytes:
    """UTF-8 encode an argument, rejecting lone surrogates as InvalidParams"""
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError:
        raise invalid_params(f"{field_label} contains invalid Unicode characters")


def wrap_handler_errors(fn: F) -> F:
    """
    Make sure a handler only ever raises protocol errors.

    McpError instances pass through untouched. Anything else, including
    failures inside third-party libraries, is logged and re-raised as an
    InternalError carrying the original message.
    """
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except McpError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {getattr(fn, '__name__', fn)}: {e}", exc_info=True)
            raise internal_error(f"Error processing tool: {e}") from e

    return wrapper  # type: ignore[return-value]
