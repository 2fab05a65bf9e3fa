"""
Drives translation rounds for bundles and folds the results back in.

One bundle is processed at a time: untranslated strings are sent to the
translator, optionally reviewed, and the outcome is merged against the
bundle as it was on disk before the run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..config import ProjectConfig, TranslationMode
from ..errors import ConfigError, TranslationBackendError
from ..merging.reconciler import merge_bundles, now_iso
from ..models.bundle import Bundle, LocalizationState
from ..models.entity import LocalizationEntity, ReviewOutcome
from ..review.reviewer import ReviewContext, Reviewer
from ..storage.bundle_store import BUNDLE_FILE_NAME, BundleStore, read_bundle, write_bundle
from .translator import ProgressCallback, Translator

logger = logging.getLogger(__name__)


@dataclass
class TranslationRun:
    """Outcome of translating one set of entities."""

    # Entities whose units should be written back, by key
    results: Dict[str, LocalizationEntity] = field(default_factory=dict)
    approved: int = 0
    declined: int = 0
    refine_needed: int = 0
    untranslated: int = 0
    additional_info: Dict[str, Any] = field(default_factory=dict)
    bundle: Optional[Bundle] = None


def collect_untranslated(bundle: Bundle) -> List[LocalizationEntity]:
    """Entities over `bundle` that have at least one untranslated language."""
    entities = []
    for key, unit in bundle.strings.items():
        entity = LocalizationEntity(key, bundle.source_language, unit)
        if entity.untranslated_languages:
            entities.append(entity)
    return entities


async def _translate_with_retry(
    translator: Translator,
    entities: Sequence[LocalizationEntity],
    config: ProjectConfig,
    on_progress: Optional[ProgressCallback],
) -> List[LocalizationEntity]:
    retries = 0
    while True:
        try:
            return await translator.translate(entities, config, on_progress)
        except TranslationBackendError as e:
            if retries >= config.translator.max_retry:
                raise
            retries += 1
            logger.warning(
                "Translation failed, retrying (%d/%d): %s",
                retries, config.translator.max_retry, e,
            )


async def translate_entities(
    entities: Sequence[LocalizationEntity],
    translator: Translator,
    config: ProjectConfig,
    reviewer: Optional[Reviewer] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> TranslationRun:
    """
    Translate entities until nothing is left pending.

    In automatic mode every entity the translator returns is accepted as is,
    including partial results. In interactive mode each fully translated
    entity that is not yet reviewed goes to the reviewer; entities sent back
    for refinement are translated again in the next round.

    Args:
        entities: Entities with at least one untranslated language
        translator: Translation backend
        config: Project configuration
        reviewer: Required in interactive mode
        on_progress: Called with the progress of the current round in [0, 1]

    Returns:
        TranslationRun with the entities to write back and review counts
    """
    interactive = config.translator.mode == TranslationMode.INTERACTIVE
    if interactive and reviewer is None:
        raise ConfigError("Interactive translation mode requires a reviewer")

    run = TranslationRun()
    pending = list(entities)
    while pending:
        logger.info("Translating %d strings with %s...", len(pending), config.translator.agent)
        translations = await _translate_with_retry(translator, pending, config, on_progress)
        pending = []

        untranslated = [e for e in translations if e.untranslated_languages]
        run.untranslated = len(untranslated)
        if untranslated:
            logger.warning(
                "%d/%d strings were not fully translated: %s",
                len(untranslated), len(translations),
                ", ".join(e.key for e in untranslated),
            )

        if not interactive:
            for entity in translations:
                run.results[entity.key] = entity
            continue

        total = len(translations)
        for index, entity in enumerate(translations):
            if not entity.needs_review:
                logger.info("Skip reviewing %s because all target languages are final.", entity.key)
                continue
            if not entity.is_all_translated:
                logger.info(
                    "Skip reviewing %s because not all target languages are translated.",
                    entity.key,
                )
                continue

            decision = reviewer.review_one(
                entity, ReviewContext(index + 1, total, config.global_context)
            )
            if decision.outcome == ReviewOutcome.APPROVED:
                entity.update_state(LocalizationState.REVIEWED, ReviewOutcome.APPROVED)
                run.results[entity.key] = entity
                run.approved += 1
            elif decision.outcome == ReviewOutcome.DECLINED:
                entity.update_state(LocalizationState.NEW, ReviewOutcome.DECLINED)
                run.results[entity.key] = entity
                run.declined += 1
            elif decision.outcome == ReviewOutcome.REFINE_NEEDED:
                entity.update_state(LocalizationState.NEW, ReviewOutcome.REFINE_NEEDED)
                if decision.suggestion:
                    entity.add_additional_comments([decision.suggestion])
                pending.append(entity)
                run.refine_needed += 1
            elif decision.outcome == ReviewOutcome.APPROVE_ALL:
                for rest in translations[index:]:
                    if rest.needs_review and rest.is_all_translated:
                        rest.update_state(LocalizationState.REVIEWED, ReviewOutcome.APPROVED)
                        run.results[rest.key] = rest
                        run.approved += 1
                break

        logger.info(
            "Review done: %d approved, %d declined, %d refine needed.",
            run.approved, run.declined, run.refine_needed,
        )

    run.additional_info = translator.additional_info()
    logger.info("Additional info: %s", run.additional_info)
    return run


async def translate_bundle_file(
    path: Union[str, Path],
    translator: Translator,
    config: ProjectConfig,
    reviewer: Optional[Reviewer] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Optional[TranslationRun]:
    """
    Translate one bundle file in place.

    Returns None when the bundle has nothing to translate. The file is only
    written after the whole round succeeded.
    """
    path = Path(path)
    previous = read_bundle(path)
    working = previous.copy()
    entities = collect_untranslated(working)
    logger.info(
        "[%s] %d strings to be translated, total: %d",
        previous.file_id, len(entities), len(previous.strings),
    )
    if not entities:
        logger.info("[%s] No strings found, skipping translation", previous.file_id)
        return None

    run = await translate_entities(entities, translator, config, reviewer, on_progress)

    updated = previous.copy()
    for key, entity in run.results.items():
        updated.strings[key] = entity.unit
    translated_at = now_iso()
    updated.metadata["lastTranslatedAt"] = translated_at

    merged = merge_bundles(updated, previous)
    # previous metadata wins in a merge, but this timestamp must move forward
    merged.metadata["lastTranslatedAt"] = translated_at
    write_bundle(merged, path)
    logger.info("[%s] Saved translated bundle to %s", merged.file_id, path)

    run.bundle = merged
    return run


async def translate_bundle(
    bundle_folder: Union[str, Path],
    translator: Translator,
    config: ProjectConfig,
    reviewer: Optional[Reviewer] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Dict[str, Optional[TranslationRun]]:
    """
    Translate every bundle file under a bundle folder, one after another.

    Expected layout: <bundle_folder>/<localization id>/bundle.json

    Returns:
        {localization id: TranslationRun or None when nothing was translated}
    """
    store = BundleStore(bundle_folder)
    runs: Dict[str, Optional[TranslationRun]] = {}
    for localization_id in store.list_ids():
        path = store.bundle_path(localization_id)
        logger.info("[%s] Translating...", path)
        runs[localization_id] = await translate_bundle_file(
            path, translator, config, reviewer, on_progress
        )

    if Path(bundle_folder).is_dir():
        for child in sorted(Path(bundle_folder).iterdir()):
            if child.is_dir() and child.name not in runs:
                logger.warning("No %s found in %s", BUNDLE_FILE_NAME, child)
    return runs


def merge_bundle_folders(new_bundle_folder: Union[str, Path], previous_bundle_folder: Union[str, Path]) -> bool:
    """
    Merge the bundle file of a fresh export with the previously exported one.

    The merged bundle replaces the file in `new_bundle_folder`.

    Returns:
        True if a previous bundle existed and was merged
    """
    new_path = Path(new_bundle_folder) / BUNDLE_FILE_NAME
    previous_path = Path(previous_bundle_folder) / BUNDLE_FILE_NAME
    if not Path(previous_bundle_folder).exists():
        logger.info("No previous bundle found at %s. No need to merge.", previous_bundle_folder)
        return False
    if not previous_path.exists():
        logger.info("No previous bundle file found at %s. Skip merging.", previous_path)
        return False

    new = read_bundle(new_path)
    previous = read_bundle(previous_path)
    merged = merge_bundles(new, previous)
    # keep the export timestamp of this export
    if "lastExportedAt" in new.metadata:
        merged.metadata["lastExportedAt"] = new.metadata["lastExportedAt"]
    write_bundle(merged, new_path)
    return True
