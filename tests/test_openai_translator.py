"""Tests for the OpenAI translator and client, without network access."""

import asyncio
import json
from types import SimpleNamespace

import openai
import pytest

from locbundle.errors import ConfigError, TranslationBackendError
from locbundle.translation.clients.openai_client import OpenAIClient
from locbundle.translation.translator import OpenAITranslator

from helpers import make_config, make_entity


class FakeBatchClient:
    """Stands in for OpenAIClient.translate_batch."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        self.usage = {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}

    async def translate_batch(self, source_language, target_languages, contents, context=None,
                              max_tokens=None, on_chunk=None):
        self.requests.append({
            "source_language": source_language,
            "target_languages": target_languages,
            "keys": [content["key"] for content in contents],
            "context": context,
        })
        response = self.responses.pop(0)
        text = json.dumps(response, ensure_ascii=False)
        if on_chunk:
            for word in text.split(" "):
                on_chunk(word + " ")
        return response


class TestOpenAITranslator:
    def test_translates_batches(self, counter):
        client = FakeBatchClient([{
            "hello": {"ja": "こんにちは", "zh": "你好"},
            "bye": {"ja": "さようなら"},
        }])
        translator = OpenAITranslator(api_key="", client=client, counter=counter)
        entities = [make_entity("hello"), make_entity("bye")]

        result = asyncio.run(translator.translate(entities, make_config(global_context="Mobile game")))

        assert result == entities
        assert client.requests == [{
            "source_language": "en",
            "target_languages": ["ja", "zh"],
            "keys": ["hello", "bye"],
            "context": "Mobile game",
        }]
        assert entities[0].target("zh").value == "你好"
        assert entities[0].target("zh").extracted_from == "dolphin"
        assert entities[1].untranslated_languages == ["zh"]
        assert translator.additional_info() == {"usage": client.usage}

    def test_ignores_unknown_keys_and_languages(self, counter):
        client = FakeBatchClient([{
            "hello": {"ja": "こんにちは", "fr": "Bonjour", "zh": 3},
            "other": {"ja": "x"},
        }])
        translator = OpenAITranslator(api_key="", client=client, counter=counter)
        entity = make_entity("hello")

        asyncio.run(translator.translate([entity], make_config()))

        assert "fr" not in entity.unit.localizations
        assert entity.untranslated_languages == ["zh"]

    def test_progress(self, counter):
        client = FakeBatchClient([
            {"hello": {"ja": "こんにちは", "zh": "你好"}},
            {"french": {"fr": "Bonjour"}},
        ])
        translator = OpenAITranslator(api_key="", client=client, counter=counter)
        progress = []

        asyncio.run(translator.translate(
            [make_entity("hello"), make_entity("french", targets=("fr",))],
            make_config(),
            progress.append,
        ))

        assert len(client.requests) == 2
        assert all(0 <= value <= 1 for value in progress)
        assert progress == sorted(progress)
        assert progress[-1] == 1.0

    def test_from_config_requires_api_key(self):
        with pytest.raises(ConfigError, match="OPENAI_API_KEY"):
            OpenAITranslator.from_config(make_config())


def chunk(content=None, usage=None):
    choices = [SimpleNamespace(delta=SimpleNamespace(content=content))] if content is not None else []
    return SimpleNamespace(choices=choices, usage=usage)


class FakeStream:
    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self.chunks:
            yield item
        if self.error:
            raise self.error


class FakeAsyncOpenAI:
    def __init__(self, stream):
        self.requests = []

        async def create(**request):
            self.requests.append(request)
            return stream

        self.chat = SimpleNamespace(completions=SimpleNamespace(create=create))


def translate(client, **kwargs):
    return asyncio.run(client.translate_batch(
        source_language="en",
        target_languages=["ja"],
        contents=[{"key": "hello", "source": "Hello", "notes": ["greeting"]}],
        **kwargs,
    ))


class TestOpenAIClient:
    def test_streamed_response(self):
        usage = SimpleNamespace(prompt_tokens=20, completion_tokens=8, total_tokens=28)
        fake = FakeAsyncOpenAI(FakeStream([
            chunk('{"hello": '),
            chunk('{"ja": "こんにちは"}}'),
            chunk(usage=usage),
        ]))
        client = OpenAIClient(api_key="", model="gpt-4o-mini", client=fake)
        chunks = []

        response = translate(client, context="Greeting app", max_tokens=1000, on_chunk=chunks.append)

        assert response == {"hello": {"ja": "こんにちは"}}
        assert chunks == ['{"hello": ', '{"ja": "こんにちは"}}']
        assert client.usage == {"prompt_tokens": 20, "completion_tokens": 8, "total_tokens": 28}
        request = fake.requests[0]
        assert request["model"] == "gpt-4o-mini"
        assert request["stream"] is True
        assert request["max_completion_tokens"] == 1000
        assert "max_tokens" not in request
        assert request["messages"][0]["content"].endswith("Context:\nGreeting app\n")
        user = request["messages"][1]["content"]
        assert user.startswith("Translate from en to target languages: [ja].")
        assert '{"hello": {"source": "Hello", "notes": ["greeting"]}}' in user

    def test_empty_response(self):
        client = OpenAIClient(api_key="", client=FakeAsyncOpenAI(FakeStream([chunk("")])))
        with pytest.raises(TranslationBackendError, match="Failed to receive translation response"):
            translate(client)

    def test_malformed_response(self):
        client = OpenAIClient(api_key="", client=FakeAsyncOpenAI(FakeStream([chunk('{"hello": ')])))
        with pytest.raises(TranslationBackendError, match="Failed to parse"):
            translate(client)

    def test_stream_error(self):
        stream = FakeStream([chunk('{"hello"')], error=openai.OpenAIError("connection reset"))
        client = OpenAIClient(api_key="", client=FakeAsyncOpenAI(stream))
        with pytest.raises(TranslationBackendError, match="connection reset"):
            translate(client)

    def test_api_key_required(self):
        with pytest.raises(TranslationBackendError, match="API key is required"):
            OpenAIClient(api_key="")
