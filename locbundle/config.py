"""Configuration management for the localization pipeline."""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Literal, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ConfigError

load_dotenv()

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("locbundle.yml", "locbundle.yaml")
DEFAULT_EXPORT_FOLDER = ".locbundle"
LANGUAGE_PLACEHOLDER = "${LANGUAGE}"


@dataclass
class Settings:
    """Environment settings."""

    # API Keys
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))

    # OpenAI model used when the project config does not name one
    openai_model: str = field(
        default_factory=lambda: os.getenv("LOCBUNDLE_OPENAI_MODEL", "gpt-4o")
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOCBUNDLE_LOG_LEVEL", "INFO"))
    log_dir: Optional[str] = field(default_factory=lambda: os.getenv("LOCBUNDLE_LOG_DIR") or None)

    def validate(self, require_api_key: bool = True) -> List[str]:
        """Validate settings and return list of errors."""
        errors = []
        if require_api_key and not self.openai_api_key:
            errors.append("OPENAI_API_KEY is not set")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f"Unknown log level: {self.log_level}")
        return errors


# Global settings instance
settings = Settings()


class LocalizationFormat(str, Enum):
    TEXT = "text"
    STRINGS = "strings"
    XCSTRINGS = "xcstrings"
    XLIFF = "xliff"
    JSON = "json"


class TranslationMode(str, Enum):
    # Translations are accepted without asking
    AUTOMATIC = "automatic"
    # Every translation is confirmed by a reviewer
    INTERACTIVE = "interactive"


class TranslatorConfig(BaseModel):
    """The `translator` section of the project config."""

    model_config = ConfigDict(populate_by_name=True)

    agent: Literal["openai"] = "openai"
    mode: TranslationMode = TranslationMode.AUTOMATIC
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    model: Optional[str] = None
    max_output_tokens: int = Field(default=4096, alias="maxOutputTokens", gt=0)
    buffer: float = Field(default=0.3, ge=0, lt=1)
    max_retry: int = Field(default=1, alias="maxRetry", ge=0)
    tokenizer: Literal["openai"] = "openai"
    tokenizer_model: str = Field(default="gpt-4", alias="tokenizerModel")

    def resolve_api_key(self) -> str:
        api_key = self.api_key or settings.openai_api_key
        if not api_key:
            raise ConfigError("OPENAI_API_KEY is not set")
        return api_key

    def resolve_model(self) -> str:
        return self.model or settings.openai_model


class LocalizationConfig(BaseModel):
    """One entry of the `localizations` list."""

    id: str
    path: str
    format: LocalizationFormat
    languages: List[str]

    def path_for(self, language: str) -> str:
        return self.path.replace(LANGUAGE_PLACEHOLDER, language)


class ProjectConfig(BaseModel):
    """Validated project configuration (locbundle.yml)."""

    model_config = ConfigDict(populate_by_name=True)

    base_language: str = Field(alias="baseLanguage")
    export_folder: Optional[str] = Field(default=None, alias="exportFolder")
    global_context: Optional[str] = Field(default=None, alias="globalContext")
    translator: TranslatorConfig
    localizations: List[LocalizationConfig]
    config_path: Optional[Path] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _exclude_base_language(self) -> "ProjectConfig":
        for localization in self.localizations:
            localization.languages = [
                lang for lang in localization.languages if lang != self.base_language
            ]
        return self

    @property
    def base_folder(self) -> Path:
        """Folder relative paths in the config resolve against."""
        if self.config_path is None:
            return Path.cwd()
        return self.config_path.parent

    @property
    def export_path(self) -> Path:
        folder = Path(self.export_folder or DEFAULT_EXPORT_FOLDER)
        if not folder.is_absolute():
            folder = self.base_folder / folder
        return folder


def parse_config_text(yaml_text: str, config_path: Optional[Union[str, Path]] = None) -> ProjectConfig:
    """
    Parse and validate project config YAML.

    Args:
        yaml_text: Raw YAML content
        config_path: Where the text was read from, used to resolve relative paths

    Returns:
        ProjectConfig

    Raises:
        ConfigError: on invalid YAML, schema violations or duplicate localization ids
    """
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Invalid config file: expected a mapping at the top level")

    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file: {e}") from e

    if config_path is not None:
        config.config_path = Path(config_path).absolute()

    seen = set()
    for localization in config.localizations:
        if localization.id in seen:
            raise ConfigError(
                f"Duplicate localization id ({localization.id}) found. "
                "Please make sure each localization has a unique id."
            )
        seen.add(localization.id)
    return config


def load_project_config(path: Optional[Union[str, Path]] = None) -> ProjectConfig:
    """
    Load the project config from a file, or search a directory for one.

    Args:
        path: Config file or directory. Defaults to the current directory.

    Returns:
        ProjectConfig
    """
    config_path = Path(path) if path else Path.cwd()
    if not config_path.exists():
        raise ConfigError(f"Config path does not exist: {config_path}")

    if config_path.is_dir():
        logger.info("Searching config file (locbundle.y[a]ml) under %s", config_path)
        for name in CONFIG_FILE_NAMES:
            candidate = config_path / name
            if candidate.is_file():
                config_path = candidate
                break
        else:
            raise ConfigError(f"No locbundle.y[a]ml found in the directory: {config_path}")

    logger.info("Using config file at %s", config_path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file at {config_path}: {e}") from e
    return parse_config_text(text, config_path)
