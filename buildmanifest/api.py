import json
import logging
from pathlib import Path
from typing import Optional

from .config import LoaderParams
from .loader import load_manifest, load_manifest_file
from .models import PackageManifest

logger = logging.getLogger(__name__)


class ManifestLoader:
    """Load and validate package manifests.

    Parameters come from LoaderParams (and hence from `BUILDMANIFEST_*`
    environment variables) when not provided. The last loaded manifest is
    kept on ``manifest`` so it can be saved.
    """

    def __init__(self, params: LoaderParams | None = None) -> None:
        self.params = params or LoaderParams()
        self.manifest: Optional[PackageManifest] = None
        logger.info("ManifestLoader created | params=%s", self.params)

    def load(self, text: str, params: LoaderParams | None = None) -> PackageManifest:
        """Parse and validate manifest text.

        Args:
            text: Full TOML document.
            params: Optional override of instance parameters.

        Returns:
            PackageManifest: The validated record.
        """
        self.manifest = load_manifest(text, params or self.params)
        return self.manifest

    def load_file(self, path: str | Path, params: LoaderParams | None = None) -> PackageManifest:
        """Load a manifest file, or the manifest inside a directory."""
        self.manifest = load_manifest_file(path, params or self.params)
        return self.manifest

    def save(self, path: str | Path) -> None:
        """Save the latest manifest to a JSON file."""
        if self.manifest is None:
            raise ValueError("No manifest to save. Call load() or load_file() first.")
        logger.info("Saving manifest | path=%s", path)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.manifest.to_dict(), f, indent=2)
