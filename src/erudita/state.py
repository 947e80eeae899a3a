"""Application state container.

AppState is created once per process (inside the FastMCP lifespan for the
server, inside ``open_app_state`` for the CLI) and passed to every tool
handler and command. The cache root travels inside ``settings``; there is
no module-level override.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from erudita.cache import CacheStore
from erudita.fetcher import Fetcher, build_http_client

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx

    from erudita.config import Settings
    from erudita.protocols import FetcherProtocol


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    cache: CacheStore
    http_client: httpx.AsyncClient | None = None
    fetcher: FetcherProtocol | None = None


def build_cache(settings: Settings) -> CacheStore:
    return CacheStore(settings.cache_root, clear_docs_on_write=settings.cache.clear_docs_on_write)


@asynccontextmanager
async def open_app_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Build an AppState with a live HTTP client; close the client on exit."""
    http_client = build_http_client(settings.fetcher)
    try:
        yield AppState(
            settings=settings,
            cache=build_cache(settings),
            http_client=http_client,
            fetcher=Fetcher(http_client, settings.fetcher),
        )
    finally:
        await http_client.aclose()
