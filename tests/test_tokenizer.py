"""Tests for token counting."""

import pytest

from locbundle.errors import ConfigError
from locbundle.translation.tokenizer import (
    TokenCounter,
    entity_expected_tokens,
    entity_source_tokens,
)

from helpers import WhitespaceEncoding, make_entity


def test_encodings_are_loaded_once_per_model():
    loaded = []

    def loader(model):
        loaded.append(model)
        return WhitespaceEncoding()

    counter = TokenCounter(encoding_loader=loader)
    counter.count("gpt-4", "one two")
    counter.count("gpt-4", "three")
    counter.count("gpt-4o", "four")

    assert loaded == ["gpt-4", "gpt-4o"]
    assert counter.cached_models == ["gpt-4", "gpt-4o"]


def test_unknown_tokenizer():
    with pytest.raises(ConfigError, match="Unknown translator tokenizer"):
        TokenCounter(tokenizer="sentencepiece")


def test_expected_tokens_use_source_line(counter):
    entity = make_entity("simple", comment="simple entity")
    # "simple" = "Hello World"
    assert entity_expected_tokens(counter, "gpt-4", entity) == 4


def test_source_tokens_include_notes(counter):
    entity = make_entity("simple", comment="simple entity")
    # // simple entity + "simple" = "Hello World"
    assert entity_source_tokens(counter, "gpt-4", entity) == 7


def test_source_tokens_without_notes(counter):
    entity = make_entity("simple")
    assert entity_source_tokens(counter, "gpt-4", entity) == 4


def test_gpt4_counts(gpt4_counter):
    entity = make_entity("simple", comment="simple entity")
    assert entity_expected_tokens(gpt4_counter, "gpt-4", entity) == 8
    assert entity_source_tokens(gpt4_counter, "gpt-4", entity) == 12
