"""Manifest loading: TOML text -> validated PackageManifest.

The public functions are `load_manifest(text)` and `load_manifest_file(path)`.
Both either return a frozen `PackageManifest` or raise one of the errors in
`buildmanifest.errors`; nothing partial is ever returned.

TOML itself forbids duplicate keys, so a duplicated command name under
``[project.scripts]`` makes the parser fail. When that happens the raw text is
scanned to tell such duplicates (a validation problem the user can fix by
renaming a command) apart from genuinely malformed documents.
"""
from __future__ import annotations

import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .config import LoaderParams
from .errors import ManifestSyntaxError, ManifestValidationError
from .models import PackageManifest

logger = logging.getLogger(__name__)

PROJECT_KEYS = (
    "name",
    "version",
    "description",
    "readme",
    "requires-python",
    "dependencies",
    "license-files",
    "scripts",
    "gui-scripts",
    "entry-points",
)
NESTED_TABLES = ("tool.uv.build-backend", "build-system")

_POSITION_RE = re.compile(r"\s*\(at line (\d+), column (\d+)\)\s*$")
_HEADER_RE = re.compile(r"^\s*\[(?!\[)\s*(?P<path>[^\[\]]+?)\s*\]\s*(#.*)?$")
_ARRAY_HEADER_RE = re.compile(r"^\s*\[\[")
_KEY_PART = r"""(?:[A-Za-z0-9_-]+|"(?:[^"\\]|\\.)*"|'[^']*')"""
_KEY_RE = re.compile(rf"^\s*(?P<key>{_KEY_PART}(?:\s*\.\s*{_KEY_PART})*)\s*=")
_SPLIT_KEY_RE = re.compile(_KEY_PART)


def _split_key(dotted: str) -> Tuple[str, ...]:
    parts = []
    for part in _SPLIT_KEY_RE.findall(dotted):
        if part[:1] in "\"'":
            part = part[1:-1]
        parts.append(part)
    return tuple(parts)


def _is_unique_key_table(table: Tuple[str, ...]) -> bool:
    if table in (("project", "scripts"), ("project", "gui-scripts")):
        return True
    return len(table) == 3 and table[:2] == ("project", "entry-points")


def _opened_multiline(line: str) -> Optional[str]:
    """Return the delimiter of a multi-line string left open at the end of ``line``.

    Single-line strings and comments are skipped so that a ``'''`` quoted
    inside them does not count.
    """
    i = 0
    while i < len(line):
        if line.startswith(('"""', "'''"), i):
            delimiter = line[i:i + 3]
            end = line.find(delimiter, i + 3)
            if end == -1:
                return delimiter
            i = end + 3
        elif line[i] == '"':
            i += 1
            while i < len(line) and line[i] != '"':
                i += 2 if line[i] == "\\" else 1
            i += 1
        elif line[i] == "'":
            end = line.find("'", i + 1)
            i = len(line) if end == -1 else end + 1
        elif line[i] == "#":
            return None
        else:
            i += 1
    return None


def find_duplicate_entries(text: str) -> List[Tuple[str, str]]:
    """Return ``(location, message)`` for each repeated command name.

    Only ``[project.scripts]``, ``[project.gui-scripts]`` and the
    ``[project.entry-points.<group>]`` tables are inspected, in table-header
    form as well as through dotted keys (``scripts.name = ...`` under
    ``[project]``).
    """
    seen: Dict[Tuple[str, ...], int] = {}
    duplicates: List[Tuple[str, str]] = []
    table: Optional[Tuple[str, ...]] = ()
    multiline: Optional[str] = None

    for lineno, line in enumerate(text.splitlines(), start=1):
        if multiline is not None:
            end = line.find(multiline)
            if end != -1:
                multiline = _opened_multiline(line[end + 3:])
            continue

        if _ARRAY_HEADER_RE.match(line):
            table = None
        else:
            header = _HEADER_RE.match(line)
            if header:
                table = _split_key(header.group("path"))
                continue

        key = _KEY_RE.match(line)
        if key and table is not None:
            path = table + _split_key(key.group("key"))
            if _is_unique_key_table(path[:-1]):
                if path in seen:
                    location = ".".join(path)
                    duplicates.append(
                        (location, f"duplicate name `{path[-1]}` (lines {seen[path]} and {lineno})")
                    )
                else:
                    seen[path] = lineno

        multiline = _opened_multiline(line)

    return duplicates


def parse_document(text: str) -> Dict[str, Any]:
    """Parse TOML text into plain Python data.

    Raises:
        ManifestValidationError: On duplicate command names.
        ManifestSyntaxError: On any other TOML grammar violation.
    """
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        duplicates = find_duplicate_entries(text)
        if duplicates:
            logger.debug("Parser failure caused by duplicate entries | %s", duplicates)
            raise ManifestValidationError(duplicates) from e
        message = str(getattr(e, "msg", None) or e)
        line = getattr(e, "lineno", None)
        column = getattr(e, "colno", None)
        position = _POSITION_RE.search(message)
        if position:
            message = message[: position.start()]
            line = line or int(position.group(1))
            column = column or int(position.group(2))
        raise ManifestSyntaxError(message, line=line, column=column) from e


def _format_location(loc: Tuple[Any, ...]) -> str:
    if not loc:
        return "project"
    head, rest = str(loc[0]), loc[1:]
    location = head if head in NESTED_TABLES else f"project.{head}"
    for part in rest:
        if isinstance(part, int):
            location += f"[{part}]"
        elif part == "[key]":
            location += " (key)"
        else:
            location += f".{part}"
    return location


def _table(doc: Dict[str, Any], dotted: str, errors: List[Tuple[str, str]]) -> Optional[Dict[str, Any]]:
    """Walk ``dotted`` through ``doc``; None when any level is absent."""
    node: Any = doc
    walked = []
    for part in dotted.split("."):
        walked.append(part)
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
        if not isinstance(node, dict):
            errors.append((".".join(walked), f"`{'.'.join(walked)}` must be a table"))
            return None
    return node


def validate_document(doc: Dict[str, Any], params: Optional[LoaderParams] = None) -> PackageManifest:
    """Validate parsed manifest data and build the record.

    Args:
        doc: Output of `parse_document`.
        params: Loader parameters; defaults come from LoaderParams.

    Returns:
        PackageManifest: The validated, frozen record.

    Raises:
        ManifestValidationError: Listing every offending field.
    """
    params = params or LoaderParams()
    errors: List[Tuple[str, str]] = []

    project = _table(doc, "project", errors)
    if project is None and "project" not in doc:
        errors.append(("project", "missing required table `[project]`"))

    build_system = _table(doc, "build-system", errors)
    if build_system is None and "build-system" not in doc:
        if params.require_build_system:
            errors.append(("build-system", "missing required table `[build-system]`"))
        else:
            logger.info("No [build-system] table, using fallback backend | backend=%s", params.fallback_backend)
            build_system = {"requires": list(params.fallback_requires), "build-backend": params.fallback_backend}

    backend_options = _table(doc, "tool.uv.build-backend", errors)

    if errors:
        raise ManifestValidationError(errors)

    payload: Dict[str, Any] = {key: project[key] for key in PROJECT_KEYS if key in project}
    payload["build-system"] = build_system
    if backend_options is not None:
        payload["tool.uv.build-backend"] = backend_options

    try:
        manifest = PackageManifest.model_validate(payload)
    except ValidationError as e:
        found = []
        for err in e.errors():
            msg = err["msg"]
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, "):]
            found.append((_format_location(tuple(err["loc"])), msg))
        raise ManifestValidationError(found) from e

    backend = manifest.build_system.build_backend
    if backend and backend not in params.known_backends:
        logger.warning("Unrecognised build backend | build_backend=%s | known=%s", backend, params.known_backends)
    return manifest


def load_manifest(text: str, params: Optional[LoaderParams] = None) -> PackageManifest:
    """Parse and validate manifest text.

    Args:
        text: Full TOML document.
        params: Optional loader parameters.

    Returns:
        PackageManifest: The validated record.

    Raises:
        ManifestSyntaxError: The text is not well-formed TOML.
        ManifestValidationError: The content is invalid.
    """
    doc = parse_document(text)
    manifest = validate_document(doc, params)
    logger.info("Manifest loaded | name=%s | version=%s", manifest.name, manifest.version)
    return manifest


def resolve_manifest_path(path: str | Path, params: Optional[LoaderParams] = None) -> Path:
    """Return ``path`` itself, or the manifest file inside it when it is a directory."""
    p = Path(path)
    if p.is_dir():
        p = p / (params or LoaderParams()).manifest_filename
    return p


def load_manifest_file(path: str | Path, params: Optional[LoaderParams] = None) -> PackageManifest:
    """Read a manifest file (or a directory holding one) and load it.

    Raises:
        FileNotFoundError: The manifest file does not exist.
        ManifestSyntaxError, ManifestValidationError: As `load_manifest`.
    """
    params = params or LoaderParams()
    p = resolve_manifest_path(path, params)
    logger.debug("Reading manifest | path=%s", p)
    text = p.read_text(encoding="utf-8")
    return load_manifest(text, params)
