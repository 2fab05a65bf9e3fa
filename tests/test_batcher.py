"""Tests for token-bounded batch creation."""

import pytest

from locbundle.errors import TokenBudgetError
from locbundle.translation.batcher import BatchBudget, BatchContent, TranslationBatch, create_batches

from helpers import loc, make_entity

ALL_LANGUAGES = ("zh", "ja", "ko", "fr", "de")


def simple(key, **kwargs):
    return make_entity(key, comment="simple entity", **kwargs)


def test_no_entities(counter):
    assert create_batches([], BatchBudget(4096, 0.2), counter) == []


def test_one_entity(counter):
    batches = create_batches([simple("simple")], BatchBudget(4096, 0.2), counter)

    assert batches == [
        TranslationBatch(
            source_language="en",
            target_languages=["ja", "zh"],
            contents=[BatchContent("simple", "Hello World", ["simple entity"])],
            source_tokens=7,
            expected_tokens=4,
        )
    ]


def test_batch_to_dict(counter):
    batch = create_batches([simple("simple")], BatchBudget(4096, 0.2), counter)[0]
    assert batch.to_dict() == {
        "sourceLanguage": "en",
        "targetLanguages": ["ja", "zh"],
        "contents": [{"key": "simple", "source": "Hello World", "notes": ["simple entity"]}],
        "sourceTokens": 7,
        "expectedTokens": 4,
    }


def test_entities_packed_until_budget(counter):
    entities = [simple(f"simple{i}") for i in range(1, 6)]

    # anchor costs 4, each candidate 4 tokens for 2 languages
    batches = create_batches(entities, BatchBudget(20, 0), counter)

    assert [batch.keys for batch in batches] == [
        ["simple1", "simple2", "simple3"],
        ["simple4", "simple5"],
    ]
    assert [batch.expected_tokens for batch in batches] == [20, 12]
    assert [batch.source_tokens for batch in batches] == [21, 14]


def test_different_language_sets_are_not_mixed(counter):
    entities = [
        simple("first"),
        simple("french", targets=("fr",)),
        simple("second"),
    ]

    batches = create_batches(entities, BatchBudget(1000, 0), counter)

    assert [batch.keys for batch in batches] == [["first", "second"], ["french"]]
    assert [batch.target_languages for batch in batches] == [["ja", "zh"], ["fr"]]


def test_packing_stops_at_first_overflow(counter):
    entities = [
        simple("first"),
        make_entity("long", source="a b c d e f g h"),
        simple("last"),
    ]

    batches = create_batches(entities, BatchBudget(20, 0), counter)

    assert [batch.keys for batch in batches] == [["first"], ["long", "last"]]


def test_translated_entities_are_skipped(counter):
    done = simple("done")
    for lang in ("ja", "zh"):
        done.unit.localizations[lang] = loc("translated", "x")

    batches = create_batches([done, simple("todo")], BatchBudget(4096, 0.2), counter)

    assert [batch.keys for batch in batches] == [["todo"]]


def test_untranslated_languages_only(counter):
    entity = simple("partial")
    entity.unit.localizations["ja"] = loc("reviewed", "x")

    batches = create_batches([entity], BatchBudget(4096, 0.2), counter)

    assert batches[0].target_languages == ["zh"]


def test_long_entity_split_across_languages(counter):
    entity = make_entity("long", targets=ALL_LANGUAGES)

    batches = create_batches([entity], BatchBudget(10, 0), counter)

    assert [batch.target_languages for batch in batches] == [["de", "fr"], ["ja", "ko"], ["zh"]]
    assert [batch.expected_tokens for batch in batches] == [8, 8, 4]
    assert all(batch.keys == ["long"] for batch in batches)
    assert all(batch.source_tokens == 4 for batch in batches)


def test_entity_too_long(counter):
    with pytest.raises(TokenBudgetError, match="too long"):
        create_batches([simple("simple")], BatchBudget(3, 0), counter)


def test_max_safe_tokens():
    assert BatchBudget(4096, 0.2).max_safe_tokens == 3276


class TestGpt4Encoding:
    """Counts with the real gpt-4 encoding."""

    budget = BatchBudget(4096, 0.2, "gpt-4")

    def test_one_entity(self, gpt4_counter):
        batches = create_batches([simple("simple")], self.budget, gpt4_counter)

        assert len(batches) == 1
        assert batches[0].target_languages == ["ja", "zh"]
        assert batches[0].expected_tokens == 8
        assert batches[0].source_tokens == 12

    def test_multiple_entities(self, gpt4_counter):
        entities = [simple(f"simple{i}") for i in range(1, 5)]

        batches = create_batches(entities, self.budget, gpt4_counter)

        assert len(batches) == 1
        assert batches[0].keys == ["simple1", "simple2", "simple3", "simple4"]
        assert batches[0].expected_tokens == 63
        assert batches[0].source_tokens == 52

    def test_long_entity(self, gpt4_counter):
        source = " ".join(["Hello World"] * 1000)
        entity = simple("long", source=source, targets=ALL_LANGUAGES)

        batches = create_batches([entity], self.budget, gpt4_counter)

        assert [batch.target_languages for batch in batches] == [["de"], ["fr"], ["ja"], ["ko"], ["zh"]]
        for batch in batches:
            assert batch.contents == [BatchContent("long", source, ["simple entity"])]
            assert batch.expected_tokens == 2006
            assert batch.source_tokens == 3 + 5 + 1 + 2 * 1000 + 1

    def test_too_long_entity(self, gpt4_counter):
        source = " ".join(["Hello World"] * 3000)
        entity = simple("long", source=source, targets=ALL_LANGUAGES)

        with pytest.raises(TokenBudgetError, match="too long"):
            create_batches([entity], self.budget, gpt4_counter)
