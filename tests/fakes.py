"""In-memory translator and reviewer doubles."""

from typing import Dict, List, Optional

from locbundle.errors import TranslationBackendError
from locbundle.models.entity import ReviewOutcome
from locbundle.review.reviewer import ReviewDecision, Reviewer
from locbundle.translation.translator import Translator


class FakeTranslator(Translator):
    """Translates from a fixed table; unknown strings stay untranslated."""

    def __init__(self, table: Dict[str, Dict[str, str]], failures: int = 0):
        self.table = table
        self.failures = failures
        self.calls: List[List[str]] = []

    async def translate(self, entities, config, on_progress=None):
        self.calls.append([entity.key for entity in entities])
        if self.failures:
            self.failures -= 1
            raise TranslationBackendError("backend unavailable")
        for entity in entities:
            for language in entity.untranslated_languages:
                text = self.table.get(entity.key, {}).get(language)
                if text is not None:
                    entity.set_translation(language, text)
        if on_progress:
            on_progress(1.0)
        return list(entities)

    def additional_info(self):
        return {"calls": len(self.calls)}


class ScriptedReviewer(Reviewer):
    """Answers with queued outcomes, approving once the queue is empty."""

    def __init__(self, *decisions):
        self.decisions = list(decisions)
        self.reviewed: List[str] = []

    def review_one(self, entity, context):
        self.reviewed.append(entity.key)
        if not self.decisions:
            return ReviewDecision(ReviewOutcome.APPROVED)
        decision = self.decisions.pop(0)
        if isinstance(decision, ReviewDecision):
            return decision
        return ReviewDecision(decision)


def refine(suggestion: Optional[str]) -> ReviewDecision:
    return ReviewDecision(ReviewOutcome.REFINE_NEEDED, suggestion)
