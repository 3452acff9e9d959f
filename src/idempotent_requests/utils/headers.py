"""Header lookup and conversion utilities.

This module provides functions for:
- Case-insensitive header lookup
- Building header dictionaries from WSGI environs and ASGI scopes
"""

from collections.abc import Iterable, Mapping
from typing import Any


def get_header_value(
    headers: Mapping[str, str],
    header_name: str,
    default: str | None = None,
) -> str | None:
    """Get header value with case-insensitive lookup.

    Args:
        headers: Headers dictionary
        header_name: Name of header to find (case-insensitive)
        default: Default value if header not found

    Returns:
        Header value or default

    Example:
        >>> get_header_value({"NuxeoIdempotencyKey": "K1"}, "nuxeoidempotencykey")
        'K1'
        >>> get_header_value({}, "missing", "default")
        'default'
    """
    header_name_lower = header_name.lower()

    for key, value in headers.items():
        if key.lower() == header_name_lower:
            return value

    return default


def headers_from_environ(environ: Mapping[str, Any]) -> dict[str, str]:
    """Extract request headers from a WSGI environ.

    HTTP_* variables become dash-separated, title-cased header names;
    CONTENT_TYPE and CONTENT_LENGTH are included when present.

    Example:
        >>> headers_from_environ({"HTTP_NUXEOIDEMPOTENCYKEY": "K1", "CONTENT_TYPE": "text/plain"})
        {'Nuxeoidempotencykey': 'K1', 'Content-Type': 'text/plain'}
    """
    headers: dict[str, str] = {}

    for name, value in environ.items():
        if name.startswith("HTTP_"):
            header = name[5:].replace("_", "-").title()
        elif name in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            header = name.replace("_", "-").title()
        else:
            continue
        if value:
            headers[header] = str(value)

    return headers


def headers_from_scope(raw_headers: Iterable[tuple[bytes, bytes]]) -> dict[str, str]:
    """Decode ASGI header pairs (latin-1, lowercase names) into a dictionary.

    Repeated headers are joined with ", " as HTTP allows.

    Example:
        >>> headers_from_scope([(b"nuxeoidempotencykey", b"K1")])
        {'nuxeoidempotencykey': 'K1'}
    """
    headers: dict[str, str] = {}

    for raw_name, raw_value in raw_headers:
        name = raw_name.decode("latin-1").lower()
        value = raw_value.decode("latin-1")
        headers[name] = f"{headers[name]}, {value}" if name in headers else value

    return headers
