"""Plain text files: the whole file is a single string unit."""

import hashlib
import os
from pathlib import Path
from typing import Optional

from ..errors import ConverterError
from ..models.bundle import Bundle, ExtractedFrom, LocalizationState, LocalizationUnit, StringUnit
from .base import ExportParser, ImportMerger, get_target_value, new_bundle, write_text_file


def key_of_text(file_id: str, text: str) -> str:
    """Key of a text file unit: file name plus a short content hash."""
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return f"{os.path.basename(file_id)}_{digest[:8]}"


def _single_key(bundle: Bundle) -> str:
    if len(bundle.strings) != 1:
        raise ConverterError(
            f"Invalid bundle for text file. Got {len(bundle.strings)} keys, expected only 1 key."
        )
    return next(iter(bundle.strings))


class TextParser(ExportParser):
    def export_source(self, file_id: str, content: str, language: str) -> Bundle:
        bundle = new_bundle(file_id, language)
        bundle.strings[key_of_text(file_id, content)] = StringUnit(
            localizations={
                language: LocalizationUnit(
                    state=LocalizationState.NEW,
                    value=content,
                    metadata={"extractedFrom": ExtractedFrom.SOURCE.value},
                )
            }
        )
        return bundle

    def export_target(
        self,
        file_id: str,
        content: Optional[str],
        language: str,
        bundle: Bundle,
    ) -> Bundle:
        key = _single_key(bundle)
        unit = bundle.strings[key]
        if content:
            unit.localizations[language] = LocalizationUnit(
                state=LocalizationState.TRANSLATED,
                value=content,
                metadata={"extractedFrom": ExtractedFrom.EXISTING.value},
            )
        else:
            unit.localizations[language] = LocalizationUnit(
                state=LocalizationState.NEW,
                value=unit.localizations[bundle.source_language].value,
                metadata={"extractedFrom": ExtractedFrom.SOURCE.value},
            )
        return bundle


class TextMerger(ImportMerger):
    """Replaces the target file with the translated text."""

    def merge(
        self,
        bundle: Bundle,
        source_file_path: Path,
        target_language: str,
        target_file_path: Path,
    ) -> None:
        key = _single_key(bundle)
        value = get_target_value(bundle, target_language, key)
        if value is None:
            return
        write_text_file(target_file_path, value)
