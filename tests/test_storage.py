"""Tests for bundle persistence."""

import json

import pytest

from locbundle.errors import BundleFormatError
from locbundle.models.bundle import LocalizationState
from locbundle.storage import BUNDLE_FILE_NAME, BundleStore, read_bundle, write_bundle

from helpers import loc, make_bundle, make_unit


def sample_bundle():
    return make_bundle(
        {
            "home/title": make_unit(
                {
                    "en": loc("new", "Home", extractedFrom="source"),
                    "ja": loc("reviewed", "ホーム", skip=False),
                },
                comment="Tab title",
            ),
        },
        createdAt="2024-01-01T00:00:00Z",
    )


def test_write_then_read(tmp_path):
    path = tmp_path / "nested" / BUNDLE_FILE_NAME
    write_bundle(sample_bundle(), path)

    bundle = read_bundle(path)

    assert bundle == sample_bundle()
    assert bundle.strings["home/title"].localizations["ja"].state == LocalizationState.REVIEWED


def test_written_layout(tmp_path):
    path = tmp_path / BUNDLE_FILE_NAME
    write_bundle(sample_bundle(), path)

    text = path.read_text(encoding="utf-8")
    data = json.loads(text)

    assert "ホーム" in text
    assert text.endswith("\n")
    assert data["version"] == "1.0"
    assert data["fileId"] == "test-file"
    assert data["sourceLanguage"] == "en"
    assert data["strings"]["home/title"]["localizations"]["ja"] == {
        "state": "reviewed",
        "skip": False,
        "value": "ホーム",
    }


def test_reject_unknown_version(tmp_path):
    path = tmp_path / BUNDLE_FILE_NAME
    data = sample_bundle().to_dict()
    data["version"] = "2.0"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(BundleFormatError, match="Unsupported bundle version"):
        read_bundle(path)


def test_reject_missing_source_value(tmp_path):
    path = tmp_path / BUNDLE_FILE_NAME
    bundle = make_bundle({"greeting": make_unit({"ja": loc("new", "こんにちは")})})
    path.write_text(json.dumps(bundle.to_dict()), encoding="utf-8")

    with pytest.raises(BundleFormatError, match="no source value"):
        read_bundle(path)


def test_reject_unknown_state(tmp_path):
    path = tmp_path / BUNDLE_FILE_NAME
    data = sample_bundle().to_dict()
    data["strings"]["home/title"]["localizations"]["ja"]["state"] = "done"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(BundleFormatError, match="Unknown localization state"):
        read_bundle(path)


def test_reject_invalid_json(tmp_path):
    path = tmp_path / BUNDLE_FILE_NAME
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(BundleFormatError, match="Invalid bundle file"):
        read_bundle(path)


def test_reject_missing_field(tmp_path):
    path = tmp_path / BUNDLE_FILE_NAME
    path.write_text(json.dumps({"version": "1.0", "sourceLanguage": "en"}), encoding="utf-8")

    with pytest.raises(BundleFormatError, match="fileId"):
        read_bundle(path)


class TestBundleStore:
    def test_load_missing(self, tmp_path):
        assert BundleStore(tmp_path).load("app") is None

    def test_save_and_load(self, tmp_path):
        store = BundleStore(tmp_path)
        path = store.save("app", sample_bundle())

        assert path == tmp_path / "app" / BUNDLE_FILE_NAME
        assert store.exists("app")
        assert store.load("app") == sample_bundle()

    def test_list_ids(self, tmp_path):
        store = BundleStore(tmp_path)
        store.save("web", sample_bundle())
        store.save("app", sample_bundle())
        (tmp_path / "empty").mkdir()

        assert store.list_ids() == ["app", "web"]

    def test_list_ids_without_folder(self, tmp_path):
        assert BundleStore(tmp_path / "missing").list_ids() == []
