"""Tests for bundle reconciliation."""

import pytest

from locbundle.errors import BundleMismatchError
from locbundle.merging.reconciler import merge_bundles, resolve_state
from locbundle.models.bundle import LocalizationState

from helpers import loc, make_bundle, make_unit


def greeting(target, source="Hello", comment=None, **metadata):
    return make_unit({"en": loc("new", source), "ja": target}, comment, **metadata)


def merged_target(new_unit, previous_unit, key="greeting"):
    new = make_bundle({key: new_unit})
    previous = make_bundle({key: previous_unit})
    return merge_bundles(new, previous).strings[key].localizations["ja"]


class TestPreconditions:
    def test_version_mismatch(self):
        new = make_bundle()
        new.version = "2.0"
        with pytest.raises(BundleMismatchError, match="Mismatched version"):
            merge_bundles(new, make_bundle())

    def test_file_id_mismatch(self):
        with pytest.raises(BundleMismatchError, match="File ID mismatch"):
            merge_bundles(make_bundle(file_id="a"), make_bundle(file_id="b"))

    def test_source_language_mismatch(self):
        with pytest.raises(BundleMismatchError, match="Source language mismatch"):
            merge_bundles(make_bundle(source_language="en"), make_bundle(source_language="de"))


class TestBundleMetadata:
    def test_previous_metadata_wins(self):
        new = make_bundle(createdAt="2024-02-01", lastExportedAt="new", onlyNew=1)
        previous = make_bundle(createdAt="2024-01-01", lastExportedAt="old")

        merged = merge_bundles(new, previous)

        assert merged.metadata == {
            "createdAt": "2024-01-01",
            "lastExportedAt": "old",
            "onlyNew": 1,
        }

    def test_created_at_falls_back_to_new(self):
        merged = merge_bundles(make_bundle(createdAt="2024-02-01"), make_bundle())
        assert merged.metadata["createdAt"] == "2024-02-01"

    def test_created_at_stamped_when_missing(self):
        merged = merge_bundles(make_bundle(), make_bundle())
        assert merged.metadata["createdAt"].endswith("Z")


class TestFirstSeen:
    def test_new_string_keeps_its_state(self):
        merged = merge_bundles(
            make_bundle({"greeting": greeting(loc("translated", "こんにちは"))}),
            make_bundle(),
        )
        target = merged.strings["greeting"].localizations["ja"]
        assert target.state == LocalizationState.TRANSLATED
        assert target.skip is None

    def test_undefined_copy_of_source_is_new(self):
        target = merged_target(greeting(loc("undefined", "Hello")), make_unit({"en": loc("new", "Hello")}))
        assert target.state == LocalizationState.NEW

    def test_undefined_with_other_value_is_translated(self):
        target = merged_target(greeting(loc("undefined", "こんにちは")), make_unit({"en": loc("new", "Hello")}))
        assert target.state == LocalizationState.TRANSLATED


class TestStateResolution:
    def test_unchanged_inherits_previous_state(self):
        target = merged_target(
            greeting(loc("undefined", "こんにちは")),
            greeting(loc("reviewed", "こんにちは")),
        )
        assert target.state == LocalizationState.REVIEWED
        assert target.value == "こんにちは"

    def test_source_change_resets_to_new(self):
        target = merged_target(
            greeting(loc("undefined", "こんにちは"), source="Hello!"),
            greeting(loc("reviewed", "こんにちは")),
        )
        assert target.state == LocalizationState.NEW

    def test_comment_change_resets_to_new(self):
        target = merged_target(
            greeting(loc("translated", "こんにちは"), comment="new comment"),
            greeting(loc("translated", "こんにちは"), comment="old comment"),
        )
        assert target.state == LocalizationState.NEW

    def test_added_comment_resets_to_new(self):
        target = merged_target(
            greeting(loc("reviewed", "こんにちは"), comment="a", additionalComments=["b"]),
            greeting(loc("reviewed", "こんにちは"), comment="a"),
        )
        assert target.state == LocalizationState.NEW

    def test_reordered_comments_are_unchanged(self):
        target = merged_target(
            greeting(loc("undefined", "こんにちは"), comment="b", additionalComments=["a"]),
            greeting(loc("reviewed", "こんにちは"), comment="a", additionalComments=["b"]),
        )
        assert target.state == LocalizationState.REVIEWED

    def test_target_edit_takes_new_state(self):
        target = merged_target(
            greeting(loc("new", "ハロー")),
            greeting(loc("reviewed", "こんにちは")),
        )
        assert target.state == LocalizationState.NEW
        assert target.value == "ハロー"

    def test_missing_new_value_keeps_previous(self):
        target = merged_target(
            greeting(loc("new")),
            greeting(loc("reviewed", "こんにちは")),
        )
        assert target.state == LocalizationState.REVIEWED
        assert target.value == "こんにちは"

    def test_resolve_state_rejects_source_as_target(self):
        with pytest.raises(ValueError):
            resolve_state("en", "en", greeting(loc()), None)


class TestLocalizationFields:
    def test_skip_is_sticky(self):
        target = merged_target(
            greeting(loc("new", "Hello", skip=False)),
            greeting(loc("new", "Hello", skip=True)),
        )
        assert target.skip is True

    def test_metadata_merge(self):
        target = merged_target(
            greeting(loc("new", "Hello", newMeta="new", oldMeta="old update")),
            greeting(loc("new", "Hello", oldMeta="old", oldMeta2="old2")),
        )
        assert target.metadata == {
            "newMeta": "new",
            "oldMeta": "old update",
            "oldMeta2": "old2",
        }

    def test_extracted_from_is_sticky(self):
        target = merged_target(
            greeting(loc("translated", "こんにちは", extractedFrom="existing")),
            greeting(loc("translated", "こんにちは", extractedFrom="dolphin")),
        )
        assert target.extracted_from == "dolphin"

    def test_extracted_from_filled_from_new(self):
        target = merged_target(
            greeting(loc("translated", "こんにちは", extractedFrom="existing")),
            greeting(loc("translated", "こんにちは")),
        )
        assert target.extracted_from == "existing"


def test_merge_with_itself_keeps_states():
    bundle = make_bundle({
        "a": greeting(loc("reviewed", "こんにちは"), comment="note"),
        "b": greeting(loc("new", "Hello")),
        "c": greeting(loc("translated", "やあ", skip=True)),
    })

    merged = merge_bundles(bundle, bundle.copy())

    for key, unit in bundle.strings.items():
        assert merged.strings[key].localizations["ja"].state == unit.localizations["ja"].state


def test_inputs_are_not_modified():
    new = make_bundle({"greeting": greeting(loc("new"))})
    previous = make_bundle({"greeting": greeting(loc("reviewed", "こんにちは"))})

    merge_bundles(new, previous)

    assert new.strings["greeting"].localizations["ja"].value is None
    assert new.metadata == {}


def test_source_localization_untouched():
    target_source = merge_bundles(
        make_bundle({"greeting": greeting(loc("new"))}),
        make_bundle({"greeting": make_unit({"en": loc("reviewed", "Hello")})}),
    ).strings["greeting"].localizations["en"]
    assert target_source.state == LocalizationState.NEW
