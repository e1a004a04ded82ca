"""Rewriting of forwarded request paths before they reach the backend."""

from __future__ import annotations

import re
from urllib.parse import unquote

_REPEATED_SEPARATORS = re.compile(r"/{2,}")
_VERSIONED_API_PREFIX = re.compile(r"^/api/v\d+(?:\.\d+)*(?:/|$)")


def collapse_separators(path: str) -> str:
    return _REPEATED_SEPARATORS.sub("/", path)


def insert_api_version(path: str, api_version: str) -> str:
    """
    Insert the API version right after the leading /api/ segment.

    A path that already names a version (ours or another) is returned unchanged,
    so applying this twice never yields /api/v1/v1/.
    """
    if not path.startswith("/api/") or _VERSIONED_API_PREFIX.match(path):
        return path
    return f"/api/{api_version}/{path[len('/api/'):]}"


def normalize_path(path: str, api_version: str | None = None) -> str:
    """
    Normalize a forwarded path.

    Percent-encoding is undone, runs of '/' collapse to one, and when
    api_version is given it is inserted after /api/.

    >>> normalize_path("/api//objects/documents%3A123", "v24.1")
    '/api/v24.1/objects/documents:123'
    """
    normalized = collapse_separators(unquote(path))
    if api_version:
        normalized = insert_api_version(normalized, api_version)
    return normalized
