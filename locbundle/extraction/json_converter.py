"""
Nested JSON localization files, as used by most web frameworks.

Every string leaf is one string unit. Its key is the path of object keys
leading to it, each URL-encoded and joined with "/":

    {"home": {"title": "Home"}}  ->  "home/title"
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ConverterError
from ..models.bundle import Bundle, ExtractedFrom, LocalizationState, LocalizationUnit, StringUnit
from .base import (
    ExportParser,
    ImportMerger,
    decode_key,
    encode_key,
    get_target_value,
    new_bundle,
    write_text_file,
)


def _load_object(content: str, what: str) -> Dict[str, Any]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConverterError(f"Invalid JSON in {what}: {e}") from e
    if not isinstance(data, dict):
        raise ConverterError(f"Expected a JSON object at the top level of {what}")
    return data


class JsonParser(ExportParser):
    def export_source(self, file_id: str, content: str, language: str) -> Bundle:
        bundle = new_bundle(file_id, language)
        self._collect(_load_object(content, file_id), [], bundle, language)
        return bundle

    def _collect(self, node: Dict[str, Any], path: List[str], bundle: Bundle, language: str) -> None:
        for name, value in node.items():
            current = [*path, name]
            if isinstance(value, dict):
                self._collect(value, current, bundle, language)
            elif isinstance(value, str):
                key = encode_key(current)
                if key in bundle.strings:
                    raise ConverterError(
                        f"Duplicate key found in the json file. Key: {key}, node path: {'.'.join(current)}"
                    )
                bundle.strings[key] = StringUnit(
                    localizations={
                        language: LocalizationUnit(
                            state=LocalizationState.NEW,
                            value=value,
                            metadata={"extractedFrom": ExtractedFrom.SOURCE.value},
                        )
                    }
                )
            else:
                raise ConverterError(
                    "Unsupported type of the leaf node of the json file. "
                    f"Node path: {'.'.join(current)}, type: {type(value).__name__}"
                )

    def export_target(
        self,
        file_id: str,
        content: Optional[str],
        language: str,
        bundle: Bundle,
    ) -> Bundle:
        target = _load_object(content, f"{file_id} ({language})") if content and content.strip() else {}

        for key, unit in bundle.strings.items():
            path = decode_key(key)
            current: Any = target
            for name in path:
                if not isinstance(current, dict) or current.get(name) is None:
                    current = None
                    break
                current = current[name]

            if current is None:
                # keep every target language in sync with the source until translated
                unit.localizations[language] = LocalizationUnit(
                    state=LocalizationState.NEW,
                    value=unit.localizations[bundle.source_language].value,
                    metadata={"extractedFrom": ExtractedFrom.SOURCE.value},
                )
            elif isinstance(current, str):
                unit.localizations[language] = LocalizationUnit(
                    state=LocalizationState.TRANSLATED,
                    value=current,
                    metadata={"extractedFrom": ExtractedFrom.EXISTING.value},
                )
            else:
                raise ConverterError(
                    "Unsupported type of the leaf node of the json file. "
                    f"Node path: {'.'.join(path)}, type: {type(current).__name__}"
                )
        return bundle


class JsonMerger(ImportMerger):
    """Rebuilds the nested object from translated values only."""

    def merge(
        self,
        bundle: Bundle,
        source_file_path: Path,
        target_language: str,
        target_file_path: Path,
    ) -> None:
        output: Dict[str, Any] = {}
        for key in bundle.strings:
            value = get_target_value(bundle, target_language, key)
            if value is None:
                continue
            path = decode_key(key)
            current = output
            for name in path[:-1]:
                current = current.setdefault(name, {})
            current[path[-1]] = value

        write_text_file(target_file_path, json.dumps(output, indent=2, ensure_ascii=False) + "\n")
