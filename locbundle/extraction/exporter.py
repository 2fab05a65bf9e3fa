"""Export one configured localization into a bundle folder."""

import logging
from pathlib import Path
from typing import Dict, Type, Union

from ..config import LocalizationConfig, LocalizationFormat
from ..errors import ConfigError
from ..merging.reconciler import now_iso
from ..models.bundle import Bundle
from ..storage.bundle_store import BUNDLE_FILE_NAME, write_bundle
from .base import BasicExporter, ExportConfig, ExportParser, LanguagePath
from .json_converter import JsonParser
from .strings_converter import AppleStringsParser
from .text_converter import TextParser
from .xcstrings_converter import StringCatalogParser
from .xliff_converter import XliffParser

logger = logging.getLogger(__name__)

PARSERS: Dict[LocalizationFormat, Type[ExportParser]] = {
    LocalizationFormat.TEXT: TextParser,
    LocalizationFormat.STRINGS: AppleStringsParser,
    LocalizationFormat.XCSTRINGS: StringCatalogParser,
    LocalizationFormat.XLIFF: XliffParser,
    LocalizationFormat.JSON: JsonParser,
}


def absolute_path(path: Union[str, Path], base_folder: Union[str, Path]) -> Path:
    """Resolve a config path against the folder of the config file."""
    path = Path(path).expanduser()
    if path.is_absolute():
        return path
    return Path(base_folder) / path


def create_parser(format: LocalizationFormat) -> ExportParser:
    try:
        return PARSERS[format]()
    except KeyError:
        raise ConfigError(f"Unsupported bundle format: {format}") from None


def export_localization_bundle(
    config: LocalizationConfig,
    base_language: str,
    base_folder: Union[str, Path],
    output_folder: Union[str, Path],
) -> Bundle:
    """
    Export a localization and save it as <output_folder>/bundle.json.

    Args:
        config: Localization entry of the project config
        base_language: Source language code
        base_folder: Folder relative localization paths resolve against
        output_folder: Absolute folder the bundle file is written to

    Returns:
        The exported Bundle
    """
    parser = create_parser(config.format)
    export_config = ExportConfig(
        id=config.id,
        source_language=LanguagePath(
            base_language, absolute_path(config.path_for(base_language), base_folder)
        ),
        target_languages=[
            LanguagePath(language, absolute_path(config.path_for(language), base_folder))
            for language in config.languages
        ],
        base_folder=Path(base_folder),
    )
    bundle = BasicExporter(export_config, parser).export()

    output_folder = Path(output_folder)
    if not output_folder.is_absolute():
        raise ConfigError(f"[{config.id}] Output folder should be an absolute path: {output_folder}")

    exported_at = now_iso()
    bundle.metadata["createdAt"] = exported_at
    bundle.metadata["lastExportedAt"] = exported_at
    logger.info("[%s] Saving bundle to %s", config.id, output_folder)
    write_bundle(bundle, output_folder / BUNDLE_FILE_NAME)
    return bundle
