"""
Token counting for translation batches.

Encodings come from tiktoken and are cached per model on a TokenCounter
instance, which is passed to whatever needs to count tokens.
"""

from typing import Any, Callable, Dict, Optional

import tiktoken

from ..errors import ConfigError
from ..models.entity import LocalizationEntity

OPENAI_TOKENIZER = "openai"


class TokenCounter:
    """
    Memoized token counter.

    Loading an encoding is expensive (tiktoken may download its BPE ranks),
    so each model is loaded once and reused for the lifetime of the counter.
    """

    def __init__(
        self,
        tokenizer: str = OPENAI_TOKENIZER,
        encoding_loader: Optional[Callable[[str], Any]] = None,
    ):
        """
        Initialize the counter.

        Args:
            tokenizer: Tokenizer family, only "openai" is supported
            encoding_loader: Callable returning an object with an `encode(text)`
                method for a model name. Defaults to tiktoken.encoding_for_model.
        """
        if tokenizer != OPENAI_TOKENIZER:
            raise ConfigError(f"Unknown translator tokenizer: {tokenizer}")
        self.tokenizer = tokenizer
        self._load = encoding_loader or tiktoken.encoding_for_model
        self._encodings: Dict[str, Any] = {}

    def encoding(self, model: str) -> Any:
        if model not in self._encodings:
            self._encodings[model] = self._load(model)
        return self._encodings[model]

    def count(self, model: str, text: str) -> int:
        return len(self.encoding(model).encode(text))

    @property
    def cached_models(self):
        return sorted(self._encodings)


def entity_expected_tokens(counter: TokenCounter, model: str, entity: LocalizationEntity) -> int:
    """Approximate output tokens for translating an entity into one language."""
    content = f'"{entity.key}" = "{entity.source_text}"\n'
    return counter.count(model, content)


def entity_source_tokens(counter: TokenCounter, model: str, entity: LocalizationEntity) -> int:
    """Input tokens an entity adds to a request, notes included."""
    content = ""
    for note in entity.all_comments:
        content += f"// {note}\n"
    content += f'"{entity.key}" = "{entity.source_text}"\n\n'
    return counter.count(model, content)
