from __future__ import annotations
"""Mapping of request paths onto bucket prefixes and keys."""
import re
from typing import Optional
from urllib.parse import quote, unquote_to_bytes

DEFAULT_DELIMITER = "/"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_RELATIVE_SEGMENTS = frozenset({".", ".."})


class PathError(ValueError):
    """Raised when a request path cannot be mapped into the bucket."""


class TraversalError(PathError):
    """Raised when a path contains ``.`` or ``..`` segments."""


class InvalidEncodingError(PathError):
    """Raised when a path is not valid percent-encoded UTF-8."""


def decode_path(request_path: str) -> str:
    """Percent-decode ``request_path`` strictly.

    Unlike :func:`urllib.parse.unquote`, malformed escapes and byte sequences
    that are not UTF-8 are rejected instead of being passed through.
    """

    match = _BAD_ESCAPE.search(request_path)
    if match:
        raise InvalidEncodingError(f"Malformed percent escape at offset {match.start()}")
    try:
        return unquote_to_bytes(request_path).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEncodingError("Path is not valid UTF-8 once decoded") from exc


def _segments(decoded: str, delimiter: str) -> list[str]:
    segments = [segment for segment in decoded.split(delimiter) if segment]
    for segment in segments:
        if segment in _RELATIVE_SEGMENTS:
            raise TraversalError(f"Relative segment {segment!r} is not allowed")
    return segments


def resolve(request_path: str, *, delimiter: str = DEFAULT_DELIMITER) -> str:
    """Return the prefix a directory request refers to.

    The root (``""`` or ``"/"``) resolves to the empty prefix; anything else
    resolves to its segments joined by ``delimiter`` plus a trailing one.
    """

    segments = _segments(decode_path(request_path), delimiter)
    if not segments:
        return ""
    return delimiter.join(segments) + delimiter


def resolve_key(request_path: str, *, delimiter: str = DEFAULT_DELIMITER) -> str:
    """Return the object key an object request refers to."""

    segments = _segments(decode_path(request_path), delimiter)
    if not segments:
        raise PathError("Object path is empty")
    return delimiter.join(segments)


def is_directory_path(request_path: str, *, delimiter: str = DEFAULT_DELIMITER) -> bool:
    """True for the root and for paths ending with ``delimiter``."""

    decoded = decode_path(request_path)
    return not decoded or decoded.endswith(delimiter)


def display(prefix: str) -> str:
    """URL path of a prefix; ``resolve(display(p)) == p`` for any resolved ``p``."""

    return quote(f"/{prefix}", safe="/")


def parent_prefix(prefix: str, *, delimiter: str = DEFAULT_DELIMITER) -> Optional[str]:
    """Return the prefix one level up, or ``None`` for the root."""

    if not prefix:
        return None
    if not prefix.endswith(delimiter):
        raise ValueError(f"Prefix {prefix!r} must end with {delimiter!r}")
    head, sep, _ = prefix[: -len(delimiter)].rpartition(delimiter)
    return f"{head}{sep}" if sep else ""
