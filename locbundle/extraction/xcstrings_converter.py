"""Converter for Apple's .xcstrings string catalogs (Xcode 15+)."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import ConverterError
from ..models.bundle import (
    Bundle,
    ExtractedFrom,
    LocalizationState,
    LocalizationUnit,
    StringCatalogUnitType,
    StringUnit,
)
from .base import ExportParser, ImportMerger, decode_key, encode_key, get_target_value, new_bundle, write_text_file

logger = logging.getLogger(__name__)

CATALOG_VERSION = "1.0"

# Catalog unit states and the localization state they stand for
_CATALOG_STATES = {
    "new": LocalizationState.NEW,
    "translated": LocalizationState.TRANSLATED,
    "needs_review": LocalizationState.TRANSLATED,
}


@dataclass(frozen=True)
class CatalogKey:
    """
    Bundle key of one catalog value.

    A plain stringUnit uses the catalog key as is. stringSet values and
    device variations get one bundle key each: the encoded catalog key
    followed by the set index or the device name.
    """

    key: str
    unit_type: StringCatalogUnitType = StringCatalogUnitType.STRING_UNIT
    part: Optional[str] = None

    def encode(self) -> str:
        if self.unit_type == StringCatalogUnitType.STRING_UNIT:
            return self.key
        return f"{encode_key([self.key])}/{self.part}"

    @property
    def index(self) -> int:
        return int(self.part)

    @classmethod
    def decode(cls, raw: str, unit_type: StringCatalogUnitType) -> "CatalogKey":
        if unit_type == StringCatalogUnitType.STRING_UNIT:
            return cls(raw)
        parts = raw.split("/")
        if len(parts) != 2:
            raise ConverterError(f"Invalid key format: {raw}, can't extract {unit_type.value} part")
        part = parts[1]
        if unit_type == StringCatalogUnitType.STRING_SET and not part.isdigit():
            raise ConverterError(f"Invalid key format: {raw}, can't extract stringSet index")
        return cls(decode_key(parts[0])[0], unit_type, part)


def parse_catalog(content: str) -> Dict[str, Any]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConverterError(f"Failed to parse string catalog: {e}") from e
    if not isinstance(data, dict):
        raise ConverterError("Failed to parse string catalog: expected a JSON object")
    return data


def parse_catalog_state(state: Optional[str], default: LocalizationState) -> LocalizationState:
    if state is None:
        return default
    try:
        return _CATALOG_STATES[state]
    except KeyError:
        raise ConverterError(f"Unknown state for string catalog unit: {state}") from None


class StringCatalogParser(ExportParser):
    """Parser for .xcstrings files."""

    def export_source(self, file_id: str, content: str, language: str) -> Bundle:
        bundle = new_bundle(file_id, language, {"format": "stringCatalog"})
        data = parse_catalog(content)
        strings = data.get("strings")
        if not strings:
            logger.warning("No strings in string catalog file %s", file_id)
            return bundle

        for key, entry in strings.items():
            localization = (entry.get("localizations") or {}).get(language)
            if localization is None:
                # nothing extracted for the source language: the key is the text
                self._add_source(bundle, CatalogKey(key), entry, language, key, None)
            elif "stringUnit" in localization:
                string_unit = localization["stringUnit"]
                self._add_source(
                    bundle, CatalogKey(key), entry, language,
                    string_unit.get("value", key), string_unit.get("state"),
                )
            elif "stringSet" in localization:
                string_set = localization["stringSet"]
                values = string_set.get("values") or [""]
                for index, value in enumerate(values):
                    self._add_source(
                        bundle,
                        CatalogKey(key, StringCatalogUnitType.STRING_SET, str(index)),
                        entry, language, value, string_set.get("state"),
                    )
            elif "variations" in localization:
                devices = (localization["variations"].get("device") or {})
                for device, variation in devices.items():
                    string_unit = variation.get("stringUnit") or {}
                    self._add_source(
                        bundle,
                        CatalogKey(key, StringCatalogUnitType.VARIATIONS, device),
                        entry, language,
                        string_unit.get("value", key), string_unit.get("state"),
                    )
            else:
                raise ConverterError(f"Unknown localization type: {json.dumps(localization)}")
        return bundle

    def _add_source(
        self,
        bundle: Bundle,
        catalog_key: CatalogKey,
        entry: Dict[str, Any],
        language: str,
        value: str,
        state: Optional[str],
    ) -> None:
        should_translate = entry.get("shouldTranslate")
        metadata: Dict[str, Any] = {"stringCatalogUnitType": catalog_key.unit_type.value}
        if should_translate is not None:
            metadata["shouldTranslate"] = should_translate
        if entry.get("extractionState"):
            metadata["extractionState"] = entry["extractionState"]

        localization_metadata = {"extractedFrom": ExtractedFrom.SOURCE.value}
        if state is not None:
            localization_metadata["state"] = state
        bundle.strings[catalog_key.encode()] = StringUnit(
            comment=entry.get("comment"),
            metadata=metadata,
            localizations={
                language: LocalizationUnit(
                    state=LocalizationState.NEW,
                    value=value,
                    skip=should_translate is False,
                    metadata=localization_metadata,
                )
            },
        )

    def export_target(
        self,
        file_id: str,
        content: Optional[str],
        language: str,
        bundle: Bundle,
    ) -> Bundle:
        # a missing catalog leaves every string untranslated
        catalog_strings = (parse_catalog(content).get("strings") or {}) if content else {}

        for raw_key, unit in bundle.strings.items():
            catalog_key = CatalogKey.decode(raw_key, unit.catalog_unit_type)
            entry = catalog_strings.get(catalog_key.key) or {}
            localization = (entry.get("localizations") or {}).get(language) or {}

            if catalog_key.unit_type == StringCatalogUnitType.STRING_UNIT:
                string_unit = localization.get("stringUnit")
                state, value = (string_unit.get("state"), string_unit.get("value")) if string_unit else (None, None)
            elif catalog_key.unit_type == StringCatalogUnitType.STRING_SET:
                string_set = localization.get("stringSet")
                if string_set is not None:
                    values = string_set.get("values") or []
                    value = values[catalog_key.index] if catalog_key.index < len(values) else None
                    state = string_set.get("state")
                else:
                    state, value = None, None
            else:
                devices = (localization.get("variations") or {}).get("device") or {}
                string_unit = (devices.get(catalog_key.part) or {}).get("stringUnit")
                state, value = (string_unit.get("state"), string_unit.get("value")) if string_unit else (None, None)

            unit.localizations[language] = self._target_unit(state, value)
        return bundle

    def _target_unit(self, state: Optional[str], value: Optional[str]) -> LocalizationUnit:
        has_value = value is not None
        metadata = {
            "extractedFrom": (ExtractedFrom.EXISTING if has_value else ExtractedFrom.UNDEFINED).value
        }
        if state is not None:
            metadata["state"] = state
        parsed = parse_catalog_state(state, LocalizationState.TRANSLATED)
        # a state without a value (e.g. a short stringSet) still needs translating
        return LocalizationUnit(
            state=parsed if has_value else LocalizationState.NEW,
            value=value,
            metadata=metadata,
        )


class StringCatalogMerger(ImportMerger):
    """
    Writes one target language into a string catalog.

    When the target file already exists (usually the source catalog itself)
    only the target language localizations of translated strings change;
    otherwise a new catalog holding just the target language is written.
    """

    def merge(
        self,
        bundle: Bundle,
        source_file_path: Path,
        target_language: str,
        target_file_path: Path,
    ) -> None:
        target_file_path = Path(target_file_path)
        if target_file_path.exists():
            catalog = parse_catalog(target_file_path.read_text(encoding="utf-8"))
        else:
            catalog = {"sourceLanguage": bundle.source_language, "strings": {}, "version": CATALOG_VERSION}
        strings = catalog.setdefault("strings", {})

        for raw_key, unit in bundle.strings.items():
            value = get_target_value(bundle, target_language, raw_key)
            if value is None:
                continue

            catalog_key = CatalogKey.decode(raw_key, unit.catalog_unit_type)
            entry = strings.setdefault(catalog_key.key, {})
            if unit.comment:
                entry["comment"] = unit.comment
            if unit.metadata.get("extractionState"):
                entry["extractionState"] = unit.metadata["extractionState"]
            if unit.metadata.get("shouldTranslate") is not None:
                entry["shouldTranslate"] = unit.metadata["shouldTranslate"]

            localizations = entry.setdefault("localizations", {})
            if catalog_key.unit_type == StringCatalogUnitType.STRING_UNIT:
                localizations[target_language] = {
                    "stringUnit": {"state": "translated", "value": value}
                }
            elif catalog_key.unit_type == StringCatalogUnitType.STRING_SET:
                localization = localizations.get(target_language)
                if not localization or "stringSet" not in localization:
                    localization = {"stringSet": {"state": "translated", "values": []}}
                    localizations[target_language] = localization
                values = localization["stringSet"].setdefault("values", [])
                while len(values) <= catalog_key.index:
                    values.append("")
                values[catalog_key.index] = value
            else:
                localization = localizations.get(target_language)
                if not localization or "variations" not in localization:
                    localization = {"variations": {"device": {}}}
                    localizations[target_language] = localization
                devices = localization["variations"].setdefault("device", {})
                devices[catalog_key.part] = {
                    "stringUnit": {"state": "translated", "value": value}
                }

        write_text_file(target_file_path, self.to_string(catalog) + "\n")

    def to_string(self, catalog: Dict[str, Any]) -> str:
        """Serialize a catalog the way Xcode does: keys and languages sorted."""
        strings = catalog.get("strings") or {}
        ordered = {}
        for key in sorted(strings):
            entry = dict(strings[key])
            if "localizations" in entry:
                entry["localizations"] = {
                    lang: entry["localizations"][lang] for lang in sorted(entry["localizations"])
                }
            ordered[key] = entry
        data = {
            "sourceLanguage": catalog.get("sourceLanguage"),
            "strings": ordered,
            "version": catalog.get("version", CATALOG_VERSION),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)
