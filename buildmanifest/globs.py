"""Portable glob validation for include/exclude and license-file patterns.

A portable glob uses ``/`` as the only separator and a restricted syntax
(``*``, ``?``, ``**`` as a whole component, ``[...]`` character classes) so
that it means the same thing on every platform. Patterns are only checked
here, never matched against files.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def _check_class(segment: str, start: int) -> int:
    """Return the index just after the character class opened at ``start``."""
    i = start + 1
    if i < len(segment) and segment[i] in "!^":
        i += 1
    members = i
    while i < len(segment):
        if segment[i] == "]":
            if i == members:
                raise ValueError(f"empty character class in `{segment}`")
            return i + 1
        i += 1
    raise ValueError(f"unclosed character class `[` in `{segment}`")


def check_portable_glob(pattern: str, allow_anchor: bool = True) -> str:
    """Validate one glob pattern and return it unchanged.

    Args:
        pattern: The glob as written in the manifest.
        allow_anchor: Whether a leading ``/`` (anchored at the project root)
            is accepted.

    Raises:
        ValueError: With a message describing the first problem found.
    """
    if not isinstance(pattern, str):
        raise ValueError("glob pattern must be a string")
    if not pattern.strip():
        raise ValueError("glob pattern must not be empty")
    if "\\" in pattern:
        raise ValueError(f"backslashes are not allowed in `{pattern}`, use `/` as path separator")
    if any(ord(c) < 0x20 for c in pattern):
        raise ValueError(f"control characters are not allowed in `{pattern!r}`")

    body = pattern
    if body.startswith("/"):
        if not allow_anchor:
            raise ValueError(f"`{pattern}` must be a relative path")
        body = body[1:]
    if body.endswith("/"):
        body = body[:-1]
    if not body:
        raise ValueError(f"`{pattern}` does not match anything")

    for segment in body.split("/"):
        if segment == "":
            raise ValueError(f"empty path segment in `{pattern}`")
        if segment == "..":
            raise ValueError(f"path traversal (`..`) is not allowed in `{pattern}`")
        if "**" in segment and segment != "**":
            raise ValueError(f"`**` must be a whole path component in `{pattern}`")
        i = 0
        while i < len(segment):
            c = segment[i]
            if c == "[":
                i = _check_class(segment, i)
                continue
            if c == "]":
                raise ValueError(f"unmatched `]` in `{pattern}`")
            i += 1

    logger.debug("glob ok | pattern=%s", pattern)
    return pattern


def check_relative_dir(path: str) -> str:
    """Validate a plain relative directory (no globbing) and return it."""
    if not isinstance(path, str) or not path.strip():
        raise ValueError("directory must not be empty")
    if "\\" in path:
        raise ValueError(f"backslashes are not allowed in `{path}`, use `/` as path separator")
    if path.startswith("/") or (len(path) > 1 and path[1] == ":"):
        raise ValueError(f"`{path}` must be a relative path")
    if any(part == ".." for part in path.split("/")):
        raise ValueError(f"path traversal (`..`) is not allowed in `{path}`")
    return path
