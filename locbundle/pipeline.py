"""
The localize pipeline: export, translate and import every configured localization.

Bundles live in the export folder, one sub-folder per localization id.
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from .config import ProjectConfig
from .extraction.exporter import absolute_path, export_localization_bundle
from .extraction.importer import import_localization_bundle
from .models.bundle import Bundle
from .review.reviewer import Reviewer
from .translation.orchestrator import TranslationRun, merge_bundle_folders, translate_bundle
from .translation.translator import ProgressCallback, Translator

logger = logging.getLogger(__name__)


def formatted_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.2f}ms"
    return f"{seconds:.2f}s"


def replace_bundles(export_folder: Path, new_folder: Path) -> None:
    """Replace the bundle folders in `export_folder` with those in `new_folder`."""
    export_folder.mkdir(parents=True, exist_ok=True)
    for child in sorted(new_folder.iterdir()):
        destination = export_folder / child.name
        if destination.exists():
            shutil.rmtree(destination)
        shutil.copytree(child, destination)


def export_localizations(config: ProjectConfig) -> Path:
    """
    Export every localization and merge it with the previous export.

    Bundles are exported into a temporary folder first, so a failing export
    leaves the export folder untouched.

    Returns:
        The export folder holding the merged bundles
    """
    export_folder = config.export_path
    with tempfile.TemporaryDirectory(prefix="locbundle-") as temporary:
        temporary_folder = Path(temporary)
        for localization in config.localizations:
            export_localization_bundle(
                localization,
                base_language=config.base_language,
                base_folder=config.base_folder,
                output_folder=temporary_folder / localization.id,
            )

        logger.info("Merging with previous translations...")
        for localization in config.localizations:
            logger.info("Merging %s...", localization.id)
            merge_bundle_folders(
                temporary_folder / localization.id,
                export_folder / localization.id,
            )

        logger.info("Export folder: %s, temporary folder: %s", export_folder, temporary_folder)
        replace_bundles(export_folder, temporary_folder)

    logger.info(
        "Exported %d localization bundles at %s",
        len(config.localizations), export_folder,
    )
    return export_folder


async def translate_localizations(
    config: ProjectConfig,
    translator: Translator,
    reviewer: Optional[Reviewer] = None,
    on_progress: Optional[ProgressCallback] = None,
    bundle_folder: Optional[Union[str, Path]] = None,
) -> Dict[str, Optional[TranslationRun]]:
    """Translate every bundle in the export folder (or `bundle_folder`)."""
    folder = Path(bundle_folder) if bundle_folder else config.export_path
    logger.info("Translating localization bundles at %s", folder)
    return await translate_bundle(folder, translator, config, reviewer, on_progress)


def import_localizations(
    config: ProjectConfig,
    bundle_folder: Optional[Union[str, Path]] = None,
) -> List[Bundle]:
    """Merge translated bundles back into the localization files."""
    folder = absolute_path(bundle_folder, config.base_folder) if bundle_folder else config.export_path
    logger.info("Merging localization bundles from %s...", folder)
    return [
        import_localization_bundle(
            localization,
            bundle_folder=folder / localization.id,
            base_language=config.base_language,
            base_folder=config.base_folder,
        )
        for localization in config.localizations
    ]
