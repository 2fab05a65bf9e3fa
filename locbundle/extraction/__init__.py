"""Format converters and the bundle export / import entry points."""

from .base import (
    BasicExporter,
    BasicImporter,
    ExportConfig,
    ExportParser,
    ImportConfig,
    ImportMerger,
    LanguagePath,
    MergeBehavior,
    get_target_value,
)
from .exporter import create_parser, export_localization_bundle
from .importer import create_merger, import_localization_bundle

__all__ = [
    "BasicExporter",
    "BasicImporter",
    "ExportConfig",
    "ExportParser",
    "ImportConfig",
    "ImportMerger",
    "LanguagePath",
    "MergeBehavior",
    "get_target_value",
    "create_parser",
    "export_localization_bundle",
    "create_merger",
    "import_localization_bundle",
]
