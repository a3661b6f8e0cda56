from __future__ import annotations
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoaderParams(BaseSettings):
    """Parameters for loading and validating a manifest.

    All fields can be overridden via environment variables using the
    `BUILDMANIFEST_` prefix (e.g. `BUILDMANIFEST_REQUIRE_BUILD_SYSTEM=false`).
    """

    model_config = SettingsConfigDict(env_prefix="BUILDMANIFEST_", case_sensitive=False)

    manifest_filename: str = "pyproject.toml"
    require_build_system: bool = True
    known_backends: List[str] = Field(default_factory=lambda: ["uv_build"])
    # Used when `require_build_system` is off and the table is absent.
    fallback_requires: List[str] = Field(default_factory=lambda: ["setuptools>=40.8.0"])
    fallback_backend: str = "setuptools.build_meta:__legacy__"


"""LOGGING CONFIGURATION
"""

import logging
import logging.handlers
from pathlib import Path
import sys

LOG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"


def setup_logging(logfile: Optional[str] = None, level: int = logging.INFO) -> None:
    """Route log records to ``logfile`` (rotating) or, without one, to stderr.

    stdout is never used: the CLI writes its NDJSON records there. Any
    handler installed by an earlier call is replaced.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for old in [h for h in root.handlers if getattr(h, "_buildmanifest", False)]:
        root.removeHandler(old)
        old.close()

    if logfile:
        path = Path(logfile)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            str(path), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler._buildmanifest = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
