"""
Three-way reconciliation of a freshly produced bundle against its previous version.

The merge decides, for every target language of every string, whether an
existing translation can still be trusted. It is used twice in the
pipeline: right after export, so re-extracted source does not clobber
translations, and right after translation, to layer fresh results on top
of the bundle history.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ..errors import BundleFormatError, BundleMismatchError
from ..models.bundle import BUNDLE_VERSION, Bundle, LocalizationState, StringUnit

logger = logging.getLogger(__name__)


def now_iso() -> str:
    """Current UTC time as an ISO 8601 string, the format used for bundle timestamps."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def merge_bundles(new: Bundle, previous: Bundle) -> Bundle:
    """
    Merge a new bundle with the previous one for the same file.

    Neither input is modified; the merged bundle is a fresh copy of `new`
    with states, values, skip flags and metadata resolved against `previous`.

    Args:
        new: Bundle just produced by an export or a translation pass
        previous: Bundle persisted before that step

    Returns:
        The merged Bundle

    Raises:
        BundleMismatchError: if version, file id or source language differ
    """
    if new.version != BUNDLE_VERSION or previous.version != BUNDLE_VERSION:
        raise BundleMismatchError(
            f"Mismatched version: {new.version} and {previous.version}"
        )
    if new.file_id != previous.file_id:
        raise BundleMismatchError(
            f"File ID mismatch: {new.file_id} and {previous.file_id}"
        )
    if new.source_language != previous.source_language:
        raise BundleMismatchError(
            f"Source language mismatch: {new.source_language} and {previous.source_language}"
        )

    merged = new.copy()
    # Previous metadata wins on conflict
    merged.metadata = {
        **merged.metadata,
        **previous.metadata,
        "createdAt": (
            previous.metadata.get("createdAt")
            or new.metadata.get("createdAt")
            or now_iso()
        ),
    }

    for key, unit in merged.strings.items():
        previous_unit = previous.strings.get(key)
        for language, localization in unit.localizations.items():
            if language == merged.source_language:
                continue

            localization.state = resolve_state(
                merged.source_language, language, unit, previous_unit
            )

            previous_localization = (
                previous_unit.localizations.get(language) if previous_unit else None
            )
            if previous_localization is None:
                localization.skip = None
                continue

            localization.skip = previous_localization.skip
            if localization.value is None and previous_localization.value is not None:
                localization.value = previous_localization.value

            metadata = {**previous_localization.metadata, **localization.metadata}
            extracted_from = previous_localization.extracted_from or localization.extracted_from
            if extracted_from is not None:
                metadata["extractedFrom"] = extracted_from
            localization.metadata = metadata

    logger.debug(
        "Merged bundle %s: %d strings (previously %d)",
        merged.file_id, len(merged.strings), len(previous.strings),
    )
    return merged


def resolve_state(
    source_language: str,
    target_language: str,
    new_unit: StringUnit,
    previous_unit: Optional[StringUnit],
) -> LocalizationState:
    """
    Decide the post-merge state of one target language of one string.

    Args:
        source_language: Source language of both bundles
        target_language: Language being resolved
        new_unit: The string as found in the new bundle
        previous_unit: The same string in the previous bundle, if any

    Returns:
        The resolved LocalizationState
    """
    if source_language == target_language:
        raise ValueError(
            f"Source language and target language are the same: {source_language}"
        )
    new_source = new_unit.localizations.get(source_language)
    new_target = new_unit.localizations.get(target_language)
    if new_source is None or new_target is None:
        raise BundleFormatError(
            f"New source or target unit is missing: {source_language} or {target_language}"
        )

    previous_source = previous_unit.localizations.get(source_language) if previous_unit else None
    previous_target = previous_unit.localizations.get(target_language) if previous_unit else None

    if previous_source is None or previous_target is None:
        # First time this string is seen for this language
        if new_target.state == LocalizationState.UNDEFINED:
            if new_source.value == new_target.value:
                return LocalizationState.NEW
            return LocalizationState.TRANSLATED
        return new_target.state

    # Comments are compared as sets: reordering is not a change
    source_changed = (
        new_source.value != previous_source.value
        or set(new_unit.all_comments()) != set(previous_unit.all_comments())
    )
    if source_changed:
        return LocalizationState.NEW

    if new_target.value != previous_target.value:
        if new_target.value is None and previous_target.value is not None:
            return previous_target.state
        # Likely edited by hand; trust what the new bundle says
        return new_target.state or LocalizationState.UNDEFINED

    return previous_target.state
