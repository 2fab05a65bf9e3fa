"""OpenAI client for streaming batch translation."""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from ...errors import TranslationBackendError

logger = logging.getLogger(__name__)

TranslationResponse = Dict[str, Dict[str, str]]


SYSTEM_PROMPT = """As an app/website translator, your task is to translate texts to target languages, considering context and developer notes for accuracy and cultural appropriateness. It's essential to preserve original format, including line breaks, separators, escaping characters and localization symbols, otherwise, user interface may break.

The input is in JSON format, each key is a source text id, and the value is an object with source text and optional developer notes (for translation guidance). Translate only the source text with given context and developer notes, keeping the key as is.

Output should be in strict JSON format: each source key links to an object with target languages as keys and translated texts as values.

Example input:
Translate from en-US to target languages: [zh-CN, ja].
{"key1": {"source": "Hello %@\\nWelcome!", "notes": ["%@ is a placeholder for name"]}, "key2": {"source": "Goodbye"}}

Example output:
{"key1": {"zh-CN": "你好 %@\\n欢迎!", "ja": "こんにちは %@\\nようこそ!"}, "key2": {"zh-CN": "再见", "ja": "さようなら"}}"""


class OpenAIClient:
    """Streams JSON translations for one batch at a time from the chat completions API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        client: Optional[Any] = None,
    ):
        """
        Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key
            model: Chat model name
            client: Preconfigured AsyncOpenAI-compatible client (used by tests)
        """
        if not api_key and client is None:
            raise TranslationBackendError("OpenAI API key is required")
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model
        self.usage = {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    async def translate_batch(
        self,
        source_language: str,
        target_languages: List[str],
        contents: List[Dict[str, Any]],
        context: Optional[str] = None,
        max_tokens: Optional[int] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> TranslationResponse:
        """
        Translate a batch of strings in a single streamed request.

        Args:
            source_language: Language of the source texts
            target_languages: Languages to translate into
            contents: Items with "key", "source" and optional "notes"
            context: Optional global context for the translator
            max_tokens: Upper bound on output tokens
            on_chunk: Called with every streamed text fragment

        Returns:
            {key: {language: translated text}} as returned by the model
        """
        system_prompt = self._build_system_prompt(context)
        user_prompt = self._build_user_prompt(source_language, target_languages, contents)
        logger.info("Translating with user content: %s", user_prompt)

        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "response_format": {"type": "json_object"},
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if max_tokens:
            request["max_completion_tokens"] = max_tokens

        parts: List[str] = []
        try:
            stream = await self.client.chat.completions.create(**request)
            async for chunk in stream:
                if getattr(chunk, "usage", None):
                    self._add_usage(chunk.usage)
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    parts.append(delta)
                    if on_chunk:
                        on_chunk(delta)
        except openai.OpenAIError as e:
            logger.error("Error during stream processing: %s", e)
            raise TranslationBackendError(f"OpenAI request failed: {e}") from e

        text = "".join(parts)
        logger.info("Translation response: %s", text)
        return self._parse_response(text)

    def _build_system_prompt(self, context: Optional[str]) -> str:
        prompt = SYSTEM_PROMPT
        if context:
            prompt += f"\n\nContext:\n{context}\n"
        return prompt

    def _build_user_prompt(
        self,
        source_language: str,
        target_languages: List[str],
        contents: List[Dict[str, Any]],
    ) -> str:
        payload: Dict[str, Dict[str, Any]] = {}
        for content in contents:
            item: Dict[str, Any] = {"source": content["source"]}
            if content.get("notes"):
                item["notes"] = content["notes"]
            payload[content["key"]] = item
        return (
            f"Translate from {source_language} to target languages: "
            f"[{', '.join(target_languages)}].\n\n"
            f"{json.dumps(payload, ensure_ascii=False)}"
        )

    def _parse_response(self, text: str) -> TranslationResponse:
        """Parse the streamed JSON text, rejecting empty or malformed responses."""
        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            raise TranslationBackendError(f"Failed to parse translation response: {e}") from e
        if not isinstance(data, dict):
            raise TranslationBackendError("Unexpected JSON structure in translation response")
        if not data:
            raise TranslationBackendError("Failed to receive translation response object")
        return data

    def _add_usage(self, usage: Any) -> None:
        for name in self.usage:
            self.usage[name] += getattr(usage, name, 0) or 0
