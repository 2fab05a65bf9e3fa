"""Builders for bundles, entities and configs used across tests."""

import json
from typing import Dict, Optional

from locbundle.config import ProjectConfig
from locbundle.models.bundle import Bundle, LocalizationState, LocalizationUnit, StringUnit
from locbundle.models.entity import LocalizationEntity


def loc(state="new", value=None, skip=None, **metadata) -> LocalizationUnit:
    return LocalizationUnit(
        state=LocalizationState(state),
        value=value,
        skip=skip,
        metadata=dict(metadata),
    )


def make_unit(localizations: Dict[str, LocalizationUnit], comment: Optional[str] = None, **metadata) -> StringUnit:
    return StringUnit(comment=comment, metadata=dict(metadata), localizations=localizations)


def make_bundle(strings=None, file_id="test-file", source_language="en", **metadata) -> Bundle:
    return Bundle(
        file_id=file_id,
        source_language=source_language,
        strings=dict(strings or {}),
        metadata=dict(metadata),
    )


def make_entity(
    key,
    source="Hello World",
    targets=("ja", "zh"),
    comment=None,
    source_language="en",
) -> LocalizationEntity:
    localizations = {source_language: loc("translated", source)}
    for language in targets:
        localizations[language] = loc("new")
    return LocalizationEntity(key, source_language, make_unit(localizations, comment))


def make_config(mode="automatic", global_context=None, localizations=None, **translator) -> ProjectConfig:
    return ProjectConfig.model_validate({
        "baseLanguage": "en",
        "globalContext": global_context,
        "translator": {"agent": "openai", "mode": mode, **translator},
        "localizations": localizations or [],
    })


JSON_PROJECT_YAML = """\
baseLanguage: en
translator:
  agent: openai
  mode: automatic
localizations:
  - id: web
    path: locales/${LANGUAGE}.json
    format: json
    languages: [en, ja]
"""


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


class WhitespaceEncoding:
    """Counts one token per whitespace separated word."""

    def encode(self, text):
        return text.split()
