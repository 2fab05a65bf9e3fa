"""Translation backends: the Translator contract and the OpenAI implementation."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import ProjectConfig
from ..models.entity import LocalizationEntity
from .batcher import BatchBudget, TranslationBatch, create_batches
from .clients.openai_client import OpenAIClient, TranslationResponse
from .tokenizer import TokenCounter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class Translator(ABC):
    """
    A translation backend.

    `translate` fills in target values of the given entities (in place) and
    returns them. Backends may translate only part of what was asked; callers
    check `untranslated_languages` afterwards.
    """

    @abstractmethod
    async def translate(
        self,
        entities: Sequence[LocalizationEntity],
        config: ProjectConfig,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[LocalizationEntity]:
        ...

    def additional_info(self) -> Dict[str, Any]:
        return {}


class OpenAITranslator(Translator):
    """Translates token-bounded batches through the OpenAI chat API."""

    # Share of a batch's progress that streaming alone may claim
    MAX_STREAM_PROGRESS = 0.95

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        counter: Optional[TokenCounter] = None,
        client: Optional[OpenAIClient] = None,
    ):
        """
        Initialize the translator.

        Args:
            api_key: OpenAI API key
            model: Chat model, defaults to gpt-4o
            counter: Token counter shared with batching
            client: Preconfigured client (used by tests)
        """
        self.client = client or OpenAIClient(api_key=api_key, model=model or "gpt-4o")
        self.counter = counter or TokenCounter()

    @classmethod
    def from_config(cls, config: ProjectConfig, counter: Optional[TokenCounter] = None) -> "OpenAITranslator":
        translator_config = config.translator
        return cls(
            api_key=translator_config.resolve_api_key(),
            model=translator_config.resolve_model(),
            counter=counter or TokenCounter(translator_config.tokenizer),
        )

    def additional_info(self) -> Dict[str, Any]:
        return {"usage": dict(self.client.usage)}

    async def translate(
        self,
        entities: Sequence[LocalizationEntity],
        config: ProjectConfig,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[LocalizationEntity]:
        translator_config = config.translator
        budget = BatchBudget(
            max_tokens=translator_config.max_output_tokens,
            buffer=translator_config.buffer,
            tokenizer_model=translator_config.tokenizer_model,
        )
        batches = create_batches(entities, budget, self.counter)
        by_key = {entity.key: entity for entity in entities}

        total = sum(len(b.contents) * len(b.target_languages) for b in batches)
        translated_count = 0
        for index, batch in enumerate(batches, start=1):
            logger.info(
                "Translating batch %d/%d from %s to %s, keys: %s",
                index, len(batches), batch.source_language,
                ", ".join(batch.target_languages), ", ".join(batch.keys),
            )
            response = await self._translate_batch(
                batch, config, translated_count, total, on_progress
            )
            self._apply_response(batch, response, by_key)

            translated_count += len(batch.contents) * len(batch.target_languages)
            if on_progress and total:
                on_progress(translated_count / total)

        return list(entities)

    async def _translate_batch(
        self,
        batch: TranslationBatch,
        config: ProjectConfig,
        translated_count: int,
        total: int,
        on_progress: Optional[ProgressCallback],
    ) -> TranslationResponse:
        translator_config = config.translator
        expected = batch.expected_tokens * (1 + translator_config.buffer)
        share = len(batch.contents) * len(batch.target_languages) / total if total else 0
        received = 0

        def on_chunk(text: str) -> None:
            nonlocal received
            received += self.counter.count(translator_config.tokenizer_model, text)
            if on_progress:
                fraction = min(received / expected, self.MAX_STREAM_PROGRESS) if expected else 0
                on_progress(translated_count / total + share * fraction)

        return await self.client.translate_batch(
            source_language=batch.source_language,
            target_languages=batch.target_languages,
            contents=[content.to_dict() for content in batch.contents],
            context=config.global_context,
            max_tokens=translator_config.max_output_tokens,
            on_chunk=on_chunk,
        )

    def _apply_response(
        self,
        batch: TranslationBatch,
        response: TranslationResponse,
        by_key: Dict[str, LocalizationEntity],
    ) -> None:
        """Write translated values into the entities of a batch."""
        batch_keys = set(batch.keys)
        for key, translations in response.items():
            if key not in batch_keys or key not in by_key:
                logger.warning("Ignoring translation for unknown key: %s", key)
                continue
            if not isinstance(translations, dict):
                logger.warning("Ignoring malformed translation for %s: %r", key, translations)
                continue
            entity = by_key[key]
            for language, text in translations.items():
                if language not in batch.target_languages:
                    logger.warning("Ignoring unexpected language %s for %s", language, key)
                    continue
                if not isinstance(text, str):
                    logger.warning("Ignoring non-string translation for %s (%s)", key, language)
                    continue
                entity.set_translation(language, text)

        missing = [key for key in batch.keys if key not in response]
        if missing:
            logger.warning("Batch returned no translation for: %s", ", ".join(missing))
