"""Data models for the bundle file: one translatable file exported per localization."""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..errors import BundleFormatError

BUNDLE_VERSION = "1.0"


class LocalizationState(str, Enum):
    """Translation state of one language of one string."""

    NEW = "new"
    TRANSLATED = "translated"
    REVIEWED = "reviewed"
    REJECTED = "rejected"
    REVIEW_SKIPPED = "review_skipped"
    # The converter could not tell whether the existing value is final
    UNDEFINED = "undefined"


class ExtractedFrom(str, Enum):
    """Where the value of a localization unit came from."""

    SOURCE = "source"
    EXISTING = "existing"
    # Produced by the translation backend
    DOLPHIN = "dolphin"
    UNDEFINED = "undefined"


class StringCatalogUnitType(str, Enum):
    """Shape of a string catalog localization a string unit was extracted from."""

    STRING_UNIT = "stringUnit"
    STRING_SET = "stringSet"
    VARIATIONS = "variations"


def parse_state(value: Any) -> LocalizationState:
    """Convert a raw state string into a LocalizationState."""
    try:
        return LocalizationState(value)
    except ValueError:
        raise BundleFormatError(f"Unknown localization state: {value!r}") from None


@dataclass
class LocalizationUnit:
    """One language's rendering of a string unit."""

    state: LocalizationState = LocalizationState.NEW
    value: Optional[str] = None
    skip: Optional[bool] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def extracted_from(self) -> Optional[str]:
        return self.metadata.get("extractedFrom")

    @extracted_from.setter
    def extracted_from(self, value: Optional[str]) -> None:
        if value is None:
            self.metadata.pop("extractedFrom", None)
        else:
            self.metadata["extractedFrom"] = value.value if isinstance(value, Enum) else value

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"state": self.state.value}
        if self.skip is not None:
            data["skip"] = self.skip
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        if self.value is not None:
            data["value"] = self.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocalizationUnit":
        return cls(
            state=parse_state(data.get("state", LocalizationState.NEW.value)),
            value=data.get("value"),
            skip=data.get("skip"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class StringUnit:
    """A single translatable entry with all of its localizations."""

    comment: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    localizations: Dict[str, LocalizationUnit] = field(default_factory=dict)

    @property
    def additional_comments(self) -> List[str]:
        return list(self.metadata.get("additionalComments") or [])

    @property
    def catalog_unit_type(self) -> StringCatalogUnitType:
        raw = self.metadata.get("stringCatalogUnitType", StringCatalogUnitType.STRING_UNIT.value)
        return StringCatalogUnitType(raw)

    def all_comments(self) -> List[str]:
        """Main comment followed by any additional comments."""
        comments = []
        if self.comment:
            comments.append(self.comment)
        comments.extend(self.additional_comments)
        return comments

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.comment is not None:
            data["comment"] = self.comment
        if self.metadata:
            data["metadata"] = copy.deepcopy(self.metadata)
        data["localizations"] = {
            lang: unit.to_dict() for lang, unit in self.localizations.items()
        }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StringUnit":
        return cls(
            comment=data.get("comment"),
            metadata=copy.deepcopy(data.get("metadata") or {}),
            localizations={
                lang: LocalizationUnit.from_dict(loc)
                for lang, loc in (data.get("localizations") or {}).items()
            },
        )


@dataclass
class Bundle:
    """Intermediate representation of one localization file and its translations."""

    file_id: str
    source_language: str
    strings: Dict[str, StringUnit] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    version: str = BUNDLE_VERSION

    def source_unit(self, key: str) -> LocalizationUnit:
        """Get the source language unit of a string, failing if it is missing."""
        unit = self.strings[key].localizations.get(self.source_language)
        if unit is None or unit.value is None:
            raise BundleFormatError(
                f"String ({key}) has no source value for {self.source_language}"
            )
        return unit

    def target_units(self, key: str) -> Iterator[Tuple[str, LocalizationUnit]]:
        """Iterate over (language, unit) pairs excluding the source language."""
        for lang, unit in self.strings[key].localizations.items():
            if lang != self.source_language:
                yield lang, unit

    def languages(self) -> List[str]:
        """All languages present in any string, sorted."""
        found = set()
        for unit in self.strings.values():
            found.update(unit.localizations.keys())
        return sorted(found)

    def validate(self) -> None:
        """Check the invariants every persisted bundle must hold."""
        if self.version != BUNDLE_VERSION:
            raise BundleFormatError(f"Unsupported bundle version: {self.version}")
        for key in self.strings:
            self.source_unit(key)

    def copy(self) -> "Bundle":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "fileId": self.file_id,
            "sourceLanguage": self.source_language,
            "metadata": copy.deepcopy(self.metadata),
            "strings": {key: unit.to_dict() for key, unit in self.strings.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bundle":
        try:
            return cls(
                version=data["version"],
                file_id=data["fileId"],
                source_language=data["sourceLanguage"],
                metadata=copy.deepcopy(data.get("metadata") or {}),
                strings={
                    key: StringUnit.from_dict(unit)
                    for key, unit in (data.get("strings") or {}).items()
                },
            )
        except KeyError as e:
            raise BundleFormatError(f"Bundle is missing required field: {e.args[0]}") from None
