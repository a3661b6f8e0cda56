"""Exception types raised while loading a manifest."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple


class ManifestError(Exception):
    """Base class for every manifest loading failure."""


class ManifestSyntaxError(ManifestError):
    """The document is not well-formed TOML."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        where = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"Malformed manifest{where}: {message}")


class ManifestValidationError(ManifestError, ValueError):
    """The document parses but its content is invalid.

    ``errors`` holds one ``(location, message)`` pair per offending field,
    where location is the dotted TOML path (e.g. ``project.name``).
    """

    def __init__(self, errors: Sequence[Tuple[str, str]]):
        self.errors: List[Tuple[str, str]] = list(errors)
        lines = [f"{loc}: {msg}" if loc else msg for loc, msg in self.errors]
        if len(lines) == 1:
            text = lines[0]
        else:
            text = f"{len(lines)} validation errors\n  " + "\n  ".join(lines)
        super().__init__(text)

    @classmethod
    def single(cls, location: str, message: str) -> "ManifestValidationError":
        return cls([(location, message)])
