"""Transient view over one string unit used while batching and translating."""

from enum import Enum
from typing import Dict, List, Optional

from .bundle import ExtractedFrom, LocalizationState, LocalizationUnit, StringUnit


class ReviewOutcome(str, Enum):
    """Result of a human review of one translated string."""

    APPROVED = "approved"
    DECLINED = "declined"
    REFINE_NEEDED = "refineNeeded"
    APPROVE_ALL = "approveAll"


# States that count as "has a usable translation"
TRANSLATED_STATES = (
    LocalizationState.REVIEWED,
    LocalizationState.TRANSLATED,
    LocalizationState.REVIEW_SKIPPED,
    LocalizationState.UNDEFINED,
)


class LocalizationEntity:
    """
    Wraps a StringUnit together with its key and source language.

    Entities are never persisted; they are built from a bundle whenever the
    batcher or the orchestrator needs to reason about a single string.
    The wrapped unit is shared, so state updates are visible in the bundle
    the unit belongs to.
    """

    def __init__(self, key: str, source_language: str, unit: StringUnit):
        self.key = key
        self.source_language = source_language
        self.unit = unit

    def __repr__(self) -> str:
        return f"LocalizationEntity(key={self.key!r}, source_language={self.source_language!r})"

    @property
    def source_text(self) -> str:
        source = self.unit.localizations.get(self.source_language)
        if source is None:
            raise ValueError(f"Source language {self.source_language} not found.")
        if source.value is None:
            raise ValueError(f"Source value not found for {self.key}")
        return source.value

    @property
    def target_languages(self) -> List[str]:
        return [lang for lang in self.unit.localizations if lang != self.source_language]

    @property
    def is_skipped(self) -> bool:
        """Whether the whole string is marked as not translatable."""
        source = self.unit.localizations.get(self.source_language)
        return bool(source and source.skip)

    @property
    def untranslated_languages(self) -> List[str]:
        """Sorted target languages that still need a translation."""
        if self.is_skipped:
            return []
        return sorted(
            lang for lang in self.target_languages
            if not self.unit.localizations[lang].skip
            and not self.is_translated(self.unit.localizations[lang])
        )

    @property
    def all_comments(self) -> List[str]:
        return self.unit.all_comments()

    @property
    def is_final(self) -> bool:
        return all(
            self.is_target_final(self.unit.localizations[lang])
            for lang in self._managed_languages()
        )

    @property
    def needs_review(self) -> bool:
        return not self.is_final

    @property
    def is_all_translated(self) -> bool:
        return all(
            self.is_translated(self.unit.localizations[lang])
            for lang in self._managed_languages()
        )

    def _managed_languages(self) -> List[str]:
        # skipped targets never get translated, so they never block review
        return [lang for lang in self.target_languages if not self.unit.localizations[lang].skip]

    def target(self, language: str) -> LocalizationUnit:
        return self.unit.localizations[language]

    @staticmethod
    def is_target_final(target: LocalizationUnit) -> bool:
        return target.state == LocalizationState.REVIEWED

    @staticmethod
    def is_translated(target: LocalizationUnit) -> bool:
        # "undefined" means an unmanaged value was already on disk; treat it as translated
        return target.state in TRANSLATED_STATES

    def update_state(
        self,
        state: LocalizationState,
        review_result: Optional[ReviewOutcome] = None,
    ) -> None:
        """Set the state of every localization, recording the review result if given."""
        for localization in self.unit.localizations.values():
            localization.state = state
        if review_result is not None:
            self.unit.metadata["reviewResult"] = review_result.value

    def add_additional_comments(self, comments: List[str]) -> None:
        existing = self.unit.metadata.get("additionalComments") or []
        self.unit.metadata["additionalComments"] = [*existing, *comments]

    def set_translation(self, language: str, value: str) -> None:
        """Record a backend-produced translation for one language."""
        localization = self.unit.localizations.get(language)
        if localization is None:
            localization = LocalizationUnit()
            self.unit.localizations[language] = localization
        localization.value = value
        localization.state = LocalizationState.TRANSLATED
        localization.metadata["extractedFrom"] = ExtractedFrom.DOLPHIN.value


LocalizationEntityDictionary = Dict[str, LocalizationEntity]
