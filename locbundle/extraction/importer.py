"""Write the translations of a bundle folder back into localization files."""

import logging
from pathlib import Path
from typing import Dict, Type, Union

from ..config import LocalizationConfig, LocalizationFormat
from ..errors import ConfigError
from ..merging.reconciler import now_iso
from ..models.bundle import Bundle
from ..storage.bundle_store import BUNDLE_FILE_NAME, read_bundle, write_bundle
from .base import BasicImporter, ImportConfig, ImportMerger, LanguagePath
from .exporter import absolute_path
from .json_converter import JsonMerger
from .strings_converter import AppleStringsMerger
from .text_converter import TextMerger
from .xcstrings_converter import StringCatalogMerger
from .xliff_converter import XliffMerger

logger = logging.getLogger(__name__)

MERGERS: Dict[LocalizationFormat, Type[ImportMerger]] = {
    LocalizationFormat.TEXT: TextMerger,
    LocalizationFormat.STRINGS: AppleStringsMerger,
    LocalizationFormat.XCSTRINGS: StringCatalogMerger,
    LocalizationFormat.XLIFF: XliffMerger,
    LocalizationFormat.JSON: JsonMerger,
}


def create_merger(format: LocalizationFormat) -> ImportMerger:
    try:
        return MERGERS[format]()
    except KeyError:
        raise ConfigError(f"Unsupported bundle format: {format}") from None


def import_localization_bundle(
    config: LocalizationConfig,
    bundle_folder: Union[str, Path],
    base_language: str,
    base_folder: Union[str, Path],
) -> Bundle:
    """
    Merge the bundle in `bundle_folder` into the localization files of `config`.

    The bundle file gets a `lastImportedAt` timestamp afterwards.

    Returns:
        The imported Bundle
    """
    bundle_folder = absolute_path(bundle_folder, base_folder)
    logger.info("[%s] Importing localization bundle from %s", config.id, bundle_folder)
    bundle_path = bundle_folder / BUNDLE_FILE_NAME
    bundle = read_bundle(bundle_path)

    import_config = ImportConfig(
        id=config.id,
        bundle=bundle,
        source_language=LanguagePath(
            base_language, absolute_path(config.path_for(base_language), base_folder)
        ),
        target_languages=[
            LanguagePath(language, absolute_path(config.path_for(language), base_folder))
            for language in config.languages
        ],
        base_folder=Path(base_folder),
    )
    BasicImporter(import_config, create_merger(config.format)).run()

    bundle.metadata["lastImportedAt"] = now_iso()
    write_bundle(bundle, bundle_path)
    return bundle
