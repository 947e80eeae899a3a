"""Protocol interfaces for swappable components.

The pipeline references FetcherProtocol, not the concrete Fetcher, so tests
can drive it with lightweight in-memory fetchers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from erudita.fetcher import IndexFetchResult


class FetcherProtocol(Protocol):
    """Interface for the HTTP documentation fetcher."""

    async def fetch_index(self, base_url: str) -> IndexFetchResult | None: ...

    async def fetch_document(self, url: str) -> str | None: ...
