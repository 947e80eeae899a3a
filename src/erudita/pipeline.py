"""Documentation acquisition pipeline.

index fetch → parse → (path filter) → bounded document fetch.

Returns a FetchResult in every expected case; the only exceptions that
escape are programming errors. Individual document failures are counted,
never fatal: the fetch succeeds as soon as a valid index was parsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import structlog

from erudita.errors import ErrorCode
from erudita.parser import (
    extract_doc_urls,
    filename_from_url,
    filter_entries_by_path,
    parse_index,
)
from erudita.pool import run_bounded

if TYPE_CHECKING:
    from collections.abc import Callable

    from erudita.models.docs import IndexDocument
    from erudita.protocols import FetcherProtocol

log = structlog.get_logger()

DEFAULT_CONCURRENCY = 5


@dataclass(frozen=True)
class FetchProgress:
    phase: Literal["index", "docs"]
    completed: int  # Attempts finished so far, successes and failures alike
    total: int
    errors: int
    url: str | None = None


@dataclass
class FetchResult:
    success: bool
    document: IndexDocument | None = None
    raw_index: str | None = None
    index_url: str | None = None
    documents: dict[str, str] = field(default_factory=dict)
    errors: int = 0
    error: str | None = None
    error_code: ErrorCode | None = None


async def fetch_package_docs(
    base_url: str,
    fetcher: FetcherProtocol,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_progress: Callable[[FetchProgress], None] | None = None,
) -> FetchResult:
    """Fetch the index at ``base_url`` and every document it links."""
    pipeline_log = log.bind(base_url=base_url)

    index = await fetcher.fetch_index(base_url)
    if on_progress is not None:
        on_progress(
            FetchProgress(
                phase="index",
                completed=1,
                total=1,
                errors=0 if index is not None else 1,
                url=index.url if index is not None else None,
            )
        )

    if index is None:
        return FetchResult(
            success=False,
            error=f"Could not find llms.txt at {base_url}",
            error_code=ErrorCode.INDEX_NOT_FOUND,
        )

    document = parse_index(index.content)

    if index.path_prefix:
        filtered = filter_entries_by_path(document.entries, index.path_prefix, index.url)
        pipeline_log.info(
            "index_entries_filtered",
            path_prefix=index.path_prefix,
            before=len(document.entries),
            after=len(filtered),
        )
        if not filtered:
            return FetchResult(
                success=False,
                raw_index=index.content,
                index_url=index.url,
                error=f"No documentation found for path {index.path_prefix}",
                error_code=ErrorCode.PATH_NOT_MATCHED,
            )
        document = document.model_copy(update={"entries": filtered})

    if document.is_empty:
        return FetchResult(
            success=False,
            raw_index=index.content,
            index_url=index.url,
            error="Invalid llms.txt format",
            error_code=ErrorCode.INVALID_INDEX,
        )

    doc_urls = extract_doc_urls(document, index.url)
    documents: dict[str, str] = {}
    total = len(doc_urls)
    completed = 0
    errors = 0

    async def _fetch_one(url: str | None) -> None:
        nonlocal completed, errors
        # A None url is an entry whose link could not be resolved
        content = await fetcher.fetch_document(url) if url is not None else None
        if content is None:
            errors += 1
            pipeline_log.warning("document_fetch_failed", url=url)
        else:
            # Insertion order is completion order
            documents[filename_from_url(url)] = content
        completed += 1
        if on_progress is not None:
            on_progress(
                FetchProgress(
                    phase="docs", completed=completed, total=total, errors=errors, url=url
                )
            )

    await run_bounded(concurrency, doc_urls, _fetch_one)

    pipeline_log.info(
        "package_fetch_complete",
        index_url=index.url,
        documents=len(documents),
        errors=errors,
    )
    return FetchResult(
        success=True,
        document=document,
        raw_index=index.content,
        index_url=index.url,
        documents=documents,
        errors=errors,
    )
