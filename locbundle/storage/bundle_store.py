"""Persisted bundle files: one bundle.json per localization id."""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from ..errors import BundleFormatError
from ..models.bundle import Bundle

logger = logging.getLogger(__name__)

BUNDLE_FILE_NAME = "bundle.json"


def read_bundle(path: Union[str, Path]) -> Bundle:
    """
    Read and validate a bundle file.

    Args:
        path: Path to a bundle.json file

    Returns:
        The parsed Bundle

    Raises:
        BundleFormatError: if the file is not valid JSON, has an unknown
            version, or a string lacks its source language value
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise BundleFormatError(f"Invalid bundle file {path}: {e}") from e

    if not isinstance(data, dict):
        raise BundleFormatError(f"Invalid bundle file {path}: expected a JSON object")

    bundle = Bundle.from_dict(data)
    bundle.validate()
    return bundle


def write_bundle(bundle: Bundle, path: Union[str, Path]) -> None:
    """Write a bundle as pretty-printed JSON, creating parent folders."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(bundle.to_dict(), f, indent=2, ensure_ascii=False)
        f.write("\n")
    logger.debug("Wrote bundle %s (%d strings) to %s", bundle.file_id, len(bundle.strings), path)


class BundleStore:
    """Access to the bundle folders under an export folder."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def bundle_path(self, localization_id: str) -> Path:
        """Get path for the bundle file of one localization."""
        return self.base_dir / localization_id / BUNDLE_FILE_NAME

    def exists(self, localization_id: str) -> bool:
        return self.bundle_path(localization_id).exists()

    def load(self, localization_id: str) -> Optional[Bundle]:
        """Read the bundle of a localization, or None if it was never exported."""
        path = self.bundle_path(localization_id)
        if not path.exists():
            return None
        return read_bundle(path)

    def save(self, localization_id: str, bundle: Bundle) -> Path:
        path = self.bundle_path(localization_id)
        write_bundle(bundle, path)
        return path

    def list_ids(self) -> List[str]:
        """List localization ids that have a bundle file, sorted by name."""
        if not self.base_dir.is_dir():
            return []
        return sorted(
            child.name for child in self.base_dir.iterdir()
            if child.is_dir() and (child / BUNDLE_FILE_NAME).exists()
        )
