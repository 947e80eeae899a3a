"""Shared test fixtures for the erudita test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import structlog

from erudita.cache import CacheStore
from erudita.config import Settings
from erudita.fetcher import Fetcher
from erudita.state import AppState, build_cache

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

REGISTRY_URL = "https://registry.test"

SAMPLE_INDEX = """\
# Vue

> The progressive JavaScript framework.

## Guide

- [Introduction](https://vuejs.org/guide/introduction.md): Start here
- [Quick Start](/guide/quick-start.md)

## API

[Reactivity](api/reactivity.md)
"""


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo setup_logging() calls so cached loggers never outlive pytest's captured streams."""
    yield
    structlog.reset_defaults()


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings with the cache under tmp_path and no retry backoff."""
    return Settings(
        cache={"dir": str(tmp_path / "cache")},
        fetcher={"backoff_base_seconds": 0},
        registry={"url": REGISTRY_URL},
    )


@pytest.fixture()
def cache_store(settings: Settings) -> CacheStore:
    return build_cache(settings)


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture()
async def app_state(settings: Settings, cache_store: CacheStore) -> AppState:
    """AppState wired to a real httpx client; tests mock the network with respx."""
    async with httpx.AsyncClient() as client:
        yield AppState(
            settings=settings,
            cache=cache_store,
            http_client=client,
            fetcher=Fetcher(client, settings.fetcher, sleep=no_sleep),
        )


@pytest.fixture()
def sample_index() -> str:
    return SAMPLE_INDEX
