"""
Converter contract shared by every localization format.

A format is supported by a pair of objects: an ExportParser that turns the
native files into a Bundle, and an ImportMerger that writes translated
values from a Bundle back into native files.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote, unquote

from ..errors import ConverterError
from ..models.bundle import Bundle, LocalizationState

logger = logging.getLogger(__name__)

# Characters left alone by JavaScript's encodeURIComponent; keys stay compatible with it
_KEY_SAFE_CHARS = "-_.!~*'()"


def encode_key(segments: List[str]) -> str:
    """Join path segments into a bundle key, URL-encoding each segment."""
    return "/".join(quote(segment, safe=_KEY_SAFE_CHARS) for segment in segments)


def decode_key(key: str) -> List[str]:
    """Split a bundle key into its decoded path segments."""
    return [unquote(segment) for segment in key.split("/")]


def new_bundle(file_id: str, language: str, metadata: Optional[Dict[str, Any]] = None) -> Bundle:
    """Create an empty bundle for a freshly scanned source file."""
    return Bundle(file_id=file_id, source_language=language, metadata=dict(metadata or {}))


def write_text_file(path: Union[str, Path], content: str) -> None:
    """Write a text file, creating parent folders."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


class ExportParser(ABC):
    """Reads native localization files into a bundle."""

    @abstractmethod
    def export_source(self, file_id: str, content: str, language: str) -> Bundle:
        """
        Scan the source language file.

        Args:
            file_id: Localization id from the project config
            content: Source file content
            language: Source language code

        Returns:
            A bundle holding only the source localizations
        """

    @abstractmethod
    def export_target(
        self,
        file_id: str,
        content: Optional[str],
        language: str,
        bundle: Bundle,
    ) -> Bundle:
        """
        Add one target language to a bundle built by `export_source`.

        `content` is None when the target file does not exist yet.
        The bundle is updated in place and returned.
        """


class ImportMerger(ABC):
    """Writes the translations of one target language back to a native file."""

    @abstractmethod
    def merge(
        self,
        bundle: Bundle,
        source_file_path: Path,
        target_language: str,
        target_file_path: Path,
    ) -> None:
        ...


class MergeBehavior(str, Enum):
    """What a merger writes for a string that has no usable translation."""

    NOOP = "noop"
    COPY_SOURCE = "copy_source"
    WRITE_EMPTY = "write_empty"


_UNTRANSLATED_STATES = (
    LocalizationState.UNDEFINED,
    LocalizationState.NEW,
    LocalizationState.REJECTED,
)


def get_target_value(
    bundle: Bundle,
    target_language: str,
    key: str,
    behavior: MergeBehavior = MergeBehavior.NOOP,
) -> Optional[str]:
    """
    Value a merger should write for one string in one target language.

    Args:
        bundle: Bundle being imported
        target_language: Language being written
        key: String key
        behavior: Fallback for strings without a usable translation

    Returns:
        The translated value, or the fallback (None for NOOP)

    Raises:
        ConverterError: if the key is unknown, or the state claims a
            translation but no value is stored
    """
    unit = bundle.strings.get(key)
    if unit is None:
        raise ConverterError(f"No unit for string ({key}) in bundle {bundle.file_id}")

    source = unit.localizations.get(bundle.source_language)
    if behavior == MergeBehavior.COPY_SOURCE:
        fallback = source.value if source else None
    elif behavior == MergeBehavior.WRITE_EMPTY:
        fallback = ""
    else:
        fallback = None

    target = unit.localizations.get(target_language)
    if target is None:
        logger.warning(
            "No target language (%s) unit for string (%s), source language (%s)",
            target_language, key, bundle.source_language,
        )
        return fallback
    if target.skip is True:
        logger.warning("The string (%s) is skipped for target language (%s)", key, target_language)
        return fallback
    if target.state in _UNTRANSLATED_STATES:
        logger.warning(
            "The string (%s) is not translated yet for target language (%s)",
            key, target_language,
        )
        return fallback
    if target.value is None:
        raise ConverterError(
            f"No string ({key}) translation found for {target_language} "
            f"in {bundle.source_language}, but state is {target.state.value}"
        )
    return target.value


@dataclass
class LanguagePath:
    """A language code and the absolute path of its file."""

    code: str
    path: Path


@dataclass
class ExportConfig:
    id: str
    source_language: LanguagePath
    target_languages: List[LanguagePath] = field(default_factory=list)
    base_folder: Optional[Path] = None


@dataclass
class ImportConfig:
    id: str
    bundle: Bundle
    source_language: LanguagePath
    target_languages: List[LanguagePath] = field(default_factory=list)
    base_folder: Optional[Path] = None


class BasicExporter:
    """Exports a localization by feeding the source and every target file to a parser."""

    def __init__(self, config: ExportConfig, parser: ExportParser):
        self.config = config
        self.parser = parser

    def export(self) -> Bundle:
        source_text = self._read_source()
        bundle = self.parser.export_source(
            file_id=self.config.id,
            content=source_text,
            language=self.config.source_language.code,
        )
        logger.info(
            "[%s] Source localization exported, strings count: %d",
            self.config.id, len(bundle.strings),
        )

        for target in self.config.target_languages:
            logger.info("[%s] Exporting target localization <%s> from %s", self.config.id, target.code, target.path)
            bundle = self.parser.export_target(
                file_id=self.config.id,
                content=self._read_target(target),
                language=target.code,
                bundle=bundle,
            )
        return bundle

    def _read_source(self) -> str:
        path = Path(self.config.source_language.path)
        if not path.is_absolute():
            raise ConverterError(f"[{self.config.id}] Source path should be an absolute path: {path}")
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConverterError(f"[{self.config.id}] Cannot read source file {path}: {e}") from e

    def _read_target(self, target: LanguagePath) -> Optional[str]:
        path = Path(target.path)
        if not path.is_absolute():
            raise ConverterError(f"[{self.config.id}] Target path should be an absolute path: {path}")
        if not path.exists():
            logger.info("[%s] No %s file at %s yet", self.config.id, target.code, path)
            return None
        return path.read_text(encoding="utf-8")


class BasicImporter:
    """Imports a bundle by merging every target language with a merger."""

    def __init__(self, config: ImportConfig, merger: ImportMerger):
        self.config = config
        self.merger = merger

    def run(self) -> None:
        source_path = Path(self.config.source_language.path)
        if not source_path.is_absolute():
            raise ConverterError(f"[{self.config.id}] Source path should be an absolute path: {source_path}")

        for target in self.config.target_languages:
            logger.info("[%s] Importing target localization <%s> to %s", self.config.id, target.code, target.path)
            self.merger.merge(
                bundle=self.config.bundle,
                source_file_path=source_path,
                target_language=target.code,
                target_file_path=Path(target.path),
            )
