"""
Token-bounded batching for translation requests.

Entities are grouped so that a single request to the translation backend
stays under the configured output budget, while keeping the number of
requests low. Entities whose full set of target languages does not fit are
split across several single-entity batches.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from ..errors import TokenBudgetError
from ..models.entity import LocalizationEntity
from .tokenizer import TokenCounter, entity_expected_tokens, entity_source_tokens

logger = logging.getLogger(__name__)


@dataclass
class BatchContent:
    """One string inside a batch."""

    key: str
    source: str
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"key": self.key, "source": self.source, "notes": list(self.notes)}


@dataclass
class TranslationBatch:
    """A group of strings translated together into the same target languages."""

    source_language: str
    target_languages: List[str]
    contents: List[BatchContent]
    source_tokens: int
    expected_tokens: int

    @property
    def keys(self) -> List[str]:
        return [content.key for content in self.contents]

    def to_dict(self) -> Dict:
        return {
            "sourceLanguage": self.source_language,
            "targetLanguages": list(self.target_languages),
            "contents": [content.to_dict() for content in self.contents],
            "sourceTokens": self.source_tokens,
            "expectedTokens": self.expected_tokens,
        }


@dataclass
class BatchBudget:
    """Token budget for one request."""

    max_tokens: int
    buffer: float
    tokenizer_model: str = "gpt-4"

    @property
    def max_safe_tokens(self) -> int:
        return int(self.max_tokens * (1 - self.buffer))


def _content_of(entity: LocalizationEntity) -> BatchContent:
    return BatchContent(key=entity.key, source=entity.source_text, notes=entity.all_comments)


def create_batches(
    entities: Iterable[LocalizationEntity],
    budget: BatchBudget,
    counter: TokenCounter,
) -> List[TranslationBatch]:
    """
    Group entities into translation batches.

    Args:
        entities: Entities to translate; iteration order decides anchor order
        budget: Output token budget per request
        counter: Token counter used for every cost estimate

    Returns:
        Batches in emission order

    Raises:
        TokenBudgetError: if one string alone does not fit the budget
    """
    # dicts keep insertion order, which makes the output deterministic
    remaining: Dict[int, LocalizationEntity] = {id(e): e for e in entities}
    if not remaining:
        return []

    model = budget.tokenizer_model
    max_safe_tokens = budget.max_safe_tokens
    batches: List[TranslationBatch] = []

    while remaining:
        anchor_id = next(iter(remaining))
        entity = remaining.pop(anchor_id)
        target_languages = entity.untranslated_languages
        if not target_languages:
            logger.info("Skipping %s because all target languages are translated.", entity.key)
            continue

        expected_tokens = entity_expected_tokens(counter, model, entity)
        if expected_tokens > max_safe_tokens:
            raise TokenBudgetError(
                f"{entity.key} is too long to be translated: {entity.source_text[:20]}..."
            )

        if expected_tokens * len(target_languages) > max_safe_tokens:
            logger.info("Splitting %s because it is too long to be translated", entity.key)
            per_batch = max_safe_tokens // expected_tokens
            source_tokens = entity_source_tokens(counter, model, entity)
            for start in range(0, len(target_languages), per_batch):
                group = target_languages[start:start + per_batch]
                batches.append(TranslationBatch(
                    source_language=entity.source_language,
                    target_languages=group,
                    contents=[_content_of(entity)],
                    source_tokens=source_tokens,
                    expected_tokens=expected_tokens * len(group),
                ))
            continue

        # The anchor is counted for a single language; candidates for all of theirs
        current_expected = expected_tokens
        current_source = entity_source_tokens(counter, model, entity)
        members = [entity]
        for candidate_id, candidate in list(remaining.items()):
            candidate_languages = candidate.untranslated_languages
            if (
                candidate.source_language != entity.source_language
                or candidate_languages != target_languages
            ):
                continue
            cost = entity_expected_tokens(counter, model, candidate) * len(candidate_languages)
            if current_expected + cost > max_safe_tokens:
                break
            members.append(candidate)
            del remaining[candidate_id]
            current_expected += cost
            current_source += entity_source_tokens(counter, model, candidate)

        batches.append(TranslationBatch(
            source_language=entity.source_language,
            target_languages=target_languages,
            contents=[_content_of(member) for member in members],
            source_tokens=current_source,
            expected_tokens=current_expected,
        ))

    logger.debug("Created %d batches (max safe tokens %d)", len(batches), max_safe_tokens)
    return batches
