"""Shared fixtures."""

import pytest

from locbundle.config import settings as locbundle_settings
from locbundle.translation.tokenizer import TokenCounter

from helpers import WhitespaceEncoding


@pytest.fixture
def counter():
    return TokenCounter(encoding_loader=lambda model: WhitespaceEncoding())


@pytest.fixture
def gpt4_counter():
    """TokenCounter backed by the real gpt-4 encoding."""
    counter = TokenCounter()
    try:
        counter.encoding("gpt-4")
    except Exception as e:  # encodings are downloaded on first use
        pytest.skip(f"gpt-4 encoding unavailable: {e}")
    return counter


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(locbundle_settings, "log_dir", str(tmp_path / "logs"))
    monkeypatch.setattr(locbundle_settings, "openai_api_key", "")
