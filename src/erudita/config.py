"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments   (used by tests to redirect the cache root)
  2. Environment variables   (ERUDITA__CACHE__DIR=/tmp/erudita)
  3. erudita.yaml            (searched in cwd, then platform config dir)
  4. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

APP_NAME = "erudita"

_DEFAULT_CACHE_DIR = platformdirs.user_cache_dir(APP_NAME)


def _find_config_file() -> str | None:
    """Return the path of the first erudita.yaml found, or None."""
    candidates = [
        Path("erudita.yaml"),
        Path(platformdirs.user_config_dir(APP_NAME)) / "erudita.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class CacheSettings(BaseModel):
    dir: str = _DEFAULT_CACHE_DIR
    # Remove previously cached documents before writing a fresh fetch
    clear_docs_on_write: bool = True


class FetcherSettings(BaseModel):
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=0.1, ge=0)
    concurrency: int = Field(default=5, ge=1)
    user_agent: str = "erudita/1.0"


class RegistrySettings(BaseModel):
    url: str = "https://registry.npmjs.org"


class ProjectSettings(BaseModel):
    link_mode: Literal["link", "copy"] = "link"


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: ERUDITA__FETCHER__CONCURRENCY=8
        env_prefix="ERUDITA__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    cache: CacheSettings = CacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
    registry: RegistrySettings = RegistrySettings()
    project: ProjectSettings = ProjectSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def cache_root(self) -> Path:
        return Path(self.cache.dir).expanduser()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
