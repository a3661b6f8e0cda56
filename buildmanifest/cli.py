"""Command-line interface for checking package manifests.

Reads one or more manifest files (or stdin), validates each one, and writes
one NDJSON record per valid manifest to a file or stdout. Problems are
reported on stderr as ``<path>: <message>``.

Exit codes: 0 when every manifest is valid, 1 when at least one fails
validation, 2 when at least one cannot be read or parsed.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TextIO

from .api import ManifestLoader
from .config import LoaderParams, setup_logging
from .errors import ManifestSyntaxError, ManifestValidationError

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_MALFORMED = 2


def _dump_lines(records: Iterable[dict[str, Any]], fh: TextIO) -> int:
    count = 0
    for record in records:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")
        count += 1
    return count


def write_records(records: Iterable[dict[str, Any]], path: Path | None) -> int:
    """Emit one manifest record per line and return how many were written.

    With no ``path`` the records go to stdout; otherwise the file (and any
    missing parent directory) is created, replacing an earlier report.
    """
    if path is None:
        count = _dump_lines(records, sys.stdout)
        sys.stdout.flush()
        return count

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        return _dump_lines(records, fh)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="buildmanifest-cli",
        description="Validate package manifests (pyproject.toml) and print them as NDJSON.",
    )
    p.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Manifest file, or directory containing one (use - or nothing for stdin)",
    )
    p.add_argument(
        "-o",
        "--output",
        help="Output NDJSON file path (defaults to stdout)",
    )
    bool_opt = argparse.BooleanOptionalAction
    p.add_argument(
        "--require-build-system",
        dest="require_build_system",
        action=bool_opt,
        default=None,
        help="Fail when [build-system] is absent (env: BUILDMANIFEST_REQUIRE_BUILD_SYSTEM)",
    )
    p.add_argument(
        "--manifest-filename",
        dest="manifest_filename",
        default=None,
        help="File name looked up inside directory arguments (env: BUILDMANIFEST_MANIFEST_FILENAME)",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Path to log file. Logging is off unless this is given.",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const=logging.DEBUG,
        default=logging.INFO,
        dest="log_level",
        help="Enable verbose logging output (DEBUG level).",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the buildmanifest CLI.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        int: Process exit code.
    """
    args = parse_args(argv)

    logger = logging.getLogger(__name__)
    if args.log_file:
        setup_logging(logfile=args.log_file, level=args.log_level)
    logger.info("buildmanifest CLI invoked | arguments=%s", args)

    update_fields: dict[str, Any] = {}
    if args.require_build_system is not None:
        update_fields["require_build_system"] = bool(args.require_build_system)
    if args.manifest_filename:
        update_fields["manifest_filename"] = args.manifest_filename
    params = LoaderParams().model_copy(update=update_fields)
    loader = ManifestLoader(params=params)

    sources = args.paths or ["-"]
    records: list[dict[str, Any]] = []
    status = EXIT_OK
    for source in sources:
        label = "<stdin>" if source == "-" else source
        try:
            if source == "-":
                manifest = loader.load(sys.stdin.read())
            else:
                manifest = loader.load_file(source)
        except ManifestValidationError as e:
            logger.info("Invalid manifest | path=%s | errors=%s", label, e.errors)
            print(f"{label}: {e}", file=sys.stderr)
            status = max(status, EXIT_INVALID)
            continue
        except ManifestSyntaxError as e:
            logger.info("Malformed manifest | path=%s | error=%s", label, e)
            print(f"{label}: {e}", file=sys.stderr)
            status = EXIT_MALFORMED
            continue
        except (OSError, UnicodeDecodeError) as e:
            logger.info("Unreadable manifest | path=%s | error=%s", label, e)
            print(f"{label}: cannot read manifest: {e}", file=sys.stderr)
            status = EXIT_MALFORMED
            continue
        records.append(manifest.to_dict())

    outpath = Path(args.output) if args.output else None
    written = write_records(records, outpath)
    logger.info("Records written | count=%d | output_path=%s", written, outpath if outpath else "stdout")
    return status


if __name__ == "__main__":
    raise SystemExit(main())
