"""Batching, translation backends and the translation loop."""

from .batcher import BatchBudget, BatchContent, TranslationBatch, create_batches
from .orchestrator import (
    TranslationRun,
    merge_bundle_folders,
    translate_bundle,
    translate_bundle_file,
    translate_entities,
)
from .tokenizer import TokenCounter
from .translator import OpenAITranslator, Translator

__all__ = [
    "BatchBudget",
    "BatchContent",
    "TranslationBatch",
    "create_batches",
    "TranslationRun",
    "merge_bundle_folders",
    "translate_bundle",
    "translate_bundle_file",
    "translate_entities",
    "TokenCounter",
    "OpenAITranslator",
    "Translator",
]
