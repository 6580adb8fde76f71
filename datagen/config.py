# File: datagen/config.py
"""
NexaFlow DataGen - Service Configuration
=========================================
Settings are read from (lowest to highest precedence):

    1. defaults declared below,
    2. an optional YAML / JSON file passed to ``load_settings(path)``,
    3. environment variables prefixed ``DATAGEN_`` (nested with ``__``),
       e.g. ``DATAGEN_OLLAMA__MODEL=llama3`` or
       ``DATAGEN_DATA_GENERATION__MAX_COUNT=500``,
    4. a ``.env`` file in the working directory.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from datagen.oracle import NullOracle, OllamaOracle, SuggestionOracle

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.config")

_SECTION_CONFIG: ConfigDict = ConfigDict(
    populate_by_name=True,
    validate_assignment=True,
    extra="forbid",
)


class OllamaSettings(BaseModel):
    """Connection to the local language model."""

    model_config = _SECTION_CONFIG

    enabled: bool = Field(default=False, description="Use Ollama as suggestion oracle.")
    base_url: str = Field(default="http://localhost:11434", min_length=1)
    model: str = Field(default="llama2", min_length=1)
    timeout: float = Field(default=30.0, gt=0, description="Request timeout (seconds).")


class DataGenerationSettings(BaseModel):
    """Limits and defaults for generation requests."""

    model_config = _SECTION_CONFIG

    default_count: int = Field(default=10, ge=1)
    max_count: int = Field(default=10000, ge=1)
    locale: str = Field(default="en_US", min_length=2)

    @model_validator(mode="after")
    def _validate_counts(self) -> "DataGenerationSettings":
        if self.default_count > self.max_count:
            raise ValueError(
                f"default_count ({self.default_count}) must be "
                f"<= max_count ({self.max_count})."
            )
        return self


class Settings(BaseSettings):
    """Top-level service settings."""

    model_config = SettingsConfigDict(
        env_prefix="DATAGEN_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    ollama: OllamaSettings = Field(default_factory=OllamaSettings)
    data_generation: DataGenerationSettings = Field(default_factory=DataGenerationSettings)
    log_level: str = Field(default="INFO")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs and must lose to the environment.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def _read_settings_file(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise FileNotFoundError(f"Settings file not found: {path}")

    text: str = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data: Any = json.loads(text)
    else:
        import yaml

        data = yaml.safe_load(text) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping.")
    return data


def load_settings(path: Optional[Path] = None) -> Settings:
    """Build settings, merging an optional YAML/JSON file under the environment."""
    file_values: Dict[str, Any] = _read_settings_file(path) if path else {}
    settings: Settings = Settings(**file_values)
    logger.debug(
        "Settings loaded (file=%s): ollama.enabled=%s, max_count=%d.",
        path,
        settings.ollama.enabled,
        settings.data_generation.max_count,
    )
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings built from defaults and the environment."""
    return load_settings()


def build_oracle(settings: Settings) -> SuggestionOracle:
    """``OllamaOracle`` when enabled in settings, ``NullOracle`` otherwise."""
    if not settings.ollama.enabled:
        return NullOracle()
    return OllamaOracle(
        base_url=settings.ollama.base_url,
        model=settings.ollama.model,
        timeout=settings.ollama.timeout,
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OllamaSettings",
    "DataGenerationSettings",
    "Settings",
    "load_settings",
    "get_settings",
    "build_oracle",
]

logger.debug("datagen.config loaded - %d public symbols.", len(__all__))
