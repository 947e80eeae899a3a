"""HTTP retrieval of llms.txt indexes and the documents they link.

All network I/O goes through a single Fetcher instance. The Fetcher receives
an httpx.AsyncClient via constructor injection; whoever builds the client
(server lifespan, CLI entrypoint, test fixture) owns its lifecycle.

Failure semantics:
- Network errors and 5xx responses are retried with exponential backoff.
- 4xx responses are final misses for that URL.
- Malformed URLs are final misses, never retried.
- Misses are returned as ``None``; nothing here raises for an unreachable or
  missing remote resource.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import httpx
import structlog

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from erudita.config import FetcherSettings

log = structlog.get_logger()

# Tried in order against the base URL, then against its root domain.
INDEX_PATHS: tuple[str, ...] = ("/llms.txt", "/llms-full.txt")

_HEADING_RE = re.compile(r"^\s*#{1,6}\s", re.MULTILINE)


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "text/markdown, text/plain;q=0.9, */*;q=0.8",
        },
        limits=httpx.Limits(
            max_connections=max(10, settings.concurrency * 2),
            max_keepalive_connections=settings.concurrency,
        ),
    )


def root_url(url: str) -> str:
    """``https://oxc.rs/docs/guide`` → ``https://oxc.rs``."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def url_path(url: str) -> str:
    """``https://oxc.rs/docs/guide`` → ``/docs/guide``."""
    return urlsplit(url).path


def join_index_path(base_url: str, path: str) -> str:
    """Append a well-known index path, tolerating a trailing slash on the base."""
    if base_url.endswith("/"):
        base_url = base_url[:-1]
    return base_url + path


def looks_like_index(content: str) -> bool:
    """Minimal sanity check: an index must contain at least one markdown heading."""
    return _HEADING_RE.search(content) is not None


@dataclass(frozen=True)
class IndexFetchResult:
    content: str
    url: str  # Exact URL the index was retrieved from
    path_prefix: str | None = None  # Set when found via the root-domain fallback


class Fetcher:
    """Retrying HTTP fetcher for llms.txt indexes and linked documents."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: FetcherSettings,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._settings = settings
        self._sleep = sleep

    async def get_text(self, url: str) -> str | None:
        """GET ``url`` with bounded retries. Returns the body, or None on a miss."""
        attempts = self._settings.max_retries
        for attempt in range(attempts):
            try:
                response = await self._client.get(url)
            except httpx.InvalidURL as exc:
                log.info("fetch_invalid_url", url=url, error=str(exc))
                return None
            except httpx.HTTPError as exc:
                log.debug("fetch_attempt_failed", url=url, attempt=attempt + 1, error=str(exc))
            else:
                if response.is_success:
                    return response.text
                if response.is_client_error:
                    log.debug("fetch_client_error", url=url, status_code=response.status_code)
                    return None
                log.debug(
                    "fetch_attempt_failed",
                    url=url,
                    attempt=attempt + 1,
                    status_code=response.status_code,
                )
                if not response.is_server_error:
                    return None

            if attempt < attempts - 1:
                await self._sleep(self._settings.backoff_base_seconds * 2**attempt)

        log.info("fetch_retries_exhausted", url=url, attempts=attempts)
        return None

    async def fetch_document(self, url: str) -> str | None:
        """Fetch a single linked document."""
        return await self.get_text(url)

    async def fetch_index(self, base_url: str) -> IndexFetchResult | None:
        """Locate the llms.txt index for ``base_url``.

        Tries each well-known path against the base URL first. When all miss
        and the base URL carries a path, the same sequence is tried against
        the root domain and the original path is returned as ``path_prefix``
        so the caller can filter a multi-product index down to this product.
        """
        result = await self._try_index_paths(base_url)
        if result is not None:
            return result

        path = url_path(base_url)
        if path and path != "/":
            root = root_url(base_url)
            log.info("index_root_fallback", base_url=base_url, root_url=root)
            result = await self._try_index_paths(root)
            if result is not None:
                return IndexFetchResult(content=result.content, url=result.url, path_prefix=path)

        log.info("index_not_found", base_url=base_url)
        return None

    async def _try_index_paths(self, base_url: str) -> IndexFetchResult | None:
        for path in INDEX_PATHS:
            url = join_index_path(base_url, path)
            content = await self.get_text(url)
            if content is None:
                continue
            if not looks_like_index(content):
                log.info("index_rejected", url=url, reason="no_markdown_heading")
                continue
            log.info("index_found", url=url, content_length=len(content))
            return IndexFetchResult(content=content, url=url)
        return None
