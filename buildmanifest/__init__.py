from ._version import version as __version__

import logging

# Library messages are dropped unless the application configures logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

from .errors import ManifestError, ManifestSyntaxError, ManifestValidationError  # noqa: E402
from .loader import load_manifest, load_manifest_file  # noqa: E402
from .models import BuildBackendOptions, BuildSystem, PackageManifest  # noqa: E402


def setup_logging(level: int = logging.INFO, fmt: None | str = None) -> None:
	"""Configure package logging using the bundled helper."""
	from .logging_config import setup_logging as _setup

	return _setup(level=level, fmt=fmt)


def get_logger(name: str | None = None) -> logging.Logger:
	"""Return the package logger (or a named child)."""
	from .logging_config import get_logger as _get

	return _get(name)

__all__ = [
	"__version__",
	"setup_logging",
	"get_logger",
	"load_manifest",
	"load_manifest_file",
	"PackageManifest",
	"BuildBackendOptions",
	"BuildSystem",
	"ManifestError",
	"ManifestSyntaxError",
	"ManifestValidationError",
]
