"""Utility modules for idempotent request handling."""

from .headers import get_header_value, headers_from_environ, headers_from_scope

__all__ = [
    "get_header_value",
    "headers_from_environ",
    "headers_from_scope",
]
