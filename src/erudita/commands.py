"""Package-level operations behind the CLI and the tool handlers.

Batch operations never stop at a failing package: each key yields a
PackageOutcome and the BatchReport carries the final tallies. Single-target
operations raise EruditaError with an actionable suggestion instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import structlog
from rapidfuzz import fuzz, process

from erudita.errors import ErrorCode, EruditaError
from erudita.keys import parse_package_key
from erudita.models.project import PackageRef
from erudita.parser import filename_from_url, resolve_url
from erudita.pipeline import fetch_package_docs
from erudita.project import ProjectLinks, load_project_config, write_project_config
from erudita.resolver import resolve_package_url

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    import httpx

    from erudita.cache import CacheStore
    from erudita.pipeline import FetchProgress
    from erudita.project import LinkMode
    from erudita.protocols import FetcherProtocol
    from erudita.state import AppState

log = structlog.get_logger()

OutcomeStatus = Literal["ok", "linked", "skipped", "failed"]


@dataclass
class PackageOutcome:
    key: str
    status: OutcomeStatus
    message: str = ""
    documents: int = 0
    errors: int = 0
    error_code: ErrorCode | None = None


@dataclass
class BatchReport:
    outcomes: list[PackageOutcome] = field(default_factory=list)
    removed_links: list[str] = field(default_factory=list)

    def add(self, outcome: PackageOutcome) -> PackageOutcome:
        self.outcomes.append(outcome)
        return outcome

    def _count(self, *statuses: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status in statuses)

    @property
    def succeeded(self) -> int:
        return self._count("ok", "linked")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")


@dataclass
class RemovalReport:
    removed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Fetch primitives
# ---------------------------------------------------------------------------


def _unresolved(key: str) -> PackageOutcome:
    return PackageOutcome(
        key=key,
        status="failed",
        message="could not find website URL",
        error_code=ErrorCode.PACKAGE_NOT_FOUND,
    )


def _network(state: AppState) -> tuple[httpx.AsyncClient, FetcherProtocol]:
    if state.fetcher is None or state.http_client is None:
        raise RuntimeError("AppState has no fetcher/http_client; build it with open_app_state()")
    return state.http_client, state.fetcher


async def resolve_origin(state: AppState, key: str) -> str | None:
    """Registry lookup for the bare name of ``key``."""
    client, _fetcher = _network(state)
    name, _version = parse_package_key(key)
    return await resolve_package_url(client, name, state.settings.registry)


async def fetch_and_cache(
    state: AppState,
    key: str,
    url: str,
    *,
    on_progress: Callable[[str, FetchProgress], None] | None = None,
) -> PackageOutcome:
    """Run the acquisition pipeline for ``url`` and store the result under ``key``."""
    _client, fetcher = _network(state)

    def _forward(progress: FetchProgress) -> None:
        if on_progress is not None:
            on_progress(key, progress)

    result = await fetch_package_docs(
        url,
        fetcher,
        concurrency=state.settings.fetcher.concurrency,
        on_progress=_forward,
    )
    if not result.success or result.raw_index is None:
        log.warning("package_fetch_failed", key=key, url=url, error=result.error)
        return PackageOutcome(
            key=key,
            status="failed",
            message=result.error or "fetch failed",
            error_code=result.error_code,
        )

    state.cache.cache(key, url, result.raw_index, result.documents)
    return PackageOutcome(
        key=key,
        status="ok",
        documents=len(result.documents),
        errors=result.errors,
    )


# ---------------------------------------------------------------------------
# Cache-level batches
# ---------------------------------------------------------------------------


async def fetch_packages(
    state: AppState,
    keys: Iterable[str],
    *,
    force: bool = False,
    on_progress: Callable[[str, FetchProgress], None] | None = None,
) -> BatchReport:
    """Fetch and cache each key; cached keys are skipped unless ``force``."""
    report = BatchReport()
    for key in keys:
        if not force and state.cache.is_cached(key):
            report.add(PackageOutcome(key=key, status="skipped", message="already cached"))
            continue

        url = await resolve_origin(state, key)
        if url is None:
            report.add(_unresolved(key))
            continue

        report.add(await fetch_and_cache(state, key, url, on_progress=on_progress))
    return report


async def update_packages(
    state: AppState,
    keys: Iterable[str] | None = None,
    *,
    on_progress: Callable[[str, FetchProgress], None] | None = None,
) -> BatchReport:
    """Re-fetch cached packages from their stored source URL.

    ``keys=None`` updates every cached package.
    """
    if keys is None:
        keys = [meta.name for meta in state.cache.list_packages()]

    report = BatchReport()
    for key in keys:
        meta = state.cache.get_meta(key)
        if meta is None:
            report.add(PackageOutcome(key=key, status="skipped", message="not cached"))
            continue
        report.add(await fetch_and_cache(state, key, meta.source_url, on_progress=on_progress))
    return report


def clear_packages(cache: CacheStore, keys: Iterable[str]) -> RemovalReport:
    report = RemovalReport()
    for key in keys:
        if cache.remove(key):
            report.removed.append(key)
        else:
            report.missing.append(key)
    return report


# ---------------------------------------------------------------------------
# Project-level batches
# ---------------------------------------------------------------------------


async def install_packages(
    state: AppState,
    project_dir: Path,
    keys: Iterable[str],
    *,
    force: bool = False,
    mode: LinkMode | None = None,
    on_progress: Callable[[str, FetchProgress], None] | None = None,
) -> BatchReport:
    """Fetch (when needed), record in ``erudita.json`` and link each key."""
    mode = mode or state.settings.project.link_mode
    links = ProjectLinks(project_dir, state.cache)
    config = load_project_config(project_dir)
    report = BatchReport()

    for key in keys:
        ref = config.packages.get(key)

        if not force and state.cache.is_cached(key):
            if ref is None:
                meta = state.cache.get_meta(key)
                url = meta.source_url if meta is not None else await resolve_origin(state, key)
                if url is not None:
                    config.packages[key] = PackageRef(url=url)
            links.create_link(key, mode)
            report.add(PackageOutcome(key=key, status="linked", message="already cached"))
            continue

        url = ref.url if ref is not None else await resolve_origin(state, key)
        if url is None:
            report.add(_unresolved(key))
            continue

        outcome = report.add(await fetch_and_cache(state, key, url, on_progress=on_progress))
        if outcome.status != "ok":
            continue
        config.packages[key] = PackageRef(url=url)
        links.create_link(key, mode)

    write_project_config(project_dir, config)
    return report


async def install_from_project(
    state: AppState,
    project_dir: Path,
    *,
    force: bool = False,
    mode: LinkMode | None = None,
    on_progress: Callable[[str, FetchProgress], None] | None = None,
) -> BatchReport:
    """Reconcile ``.erudita/`` with ``erudita.json``.

    Links not in the manifest are pruned; every manifest key is fetched when
    absent from the cache (or when ``force``) and then linked.
    """
    mode = mode or state.settings.project.link_mode
    links = ProjectLinks(project_dir, state.cache)
    config = load_project_config(project_dir)

    report = BatchReport(removed_links=links.prune_links(config.packages))

    for key, ref in config.packages.items():
        if not force and state.cache.is_cached(key):
            links.create_link(key, mode)
            report.add(PackageOutcome(key=key, status="linked"))
            continue

        outcome = report.add(await fetch_and_cache(state, key, ref.url, on_progress=on_progress))
        if outcome.status == "ok":
            links.create_link(key, mode)

    return report


def uninstall_packages(state: AppState, project_dir: Path, inputs: Iterable[str]) -> RemovalReport:
    """Drop packages from ``erudita.json`` and remove their links.

    An input without a version matches every version of that name.
    """
    config = load_project_config(project_dir)
    links = ProjectLinks(project_dir, state.cache)
    report = RemovalReport()
    to_remove: list[str] = []

    for raw in inputs:
        name, version = parse_package_key(raw)
        matched = [
            key
            for key in config.packages
            if parse_package_key(key)[0] == name
            and (version is None or parse_package_key(key)[1] == version)
        ]
        if not matched:
            report.missing.append(raw)
            continue
        to_remove.extend(key for key in matched if key not in to_remove)

    for key in to_remove:
        del config.packages[key]
        links.remove_link(key)
        report.removed.append(key)

    if report.removed:
        write_project_config(project_dir, config)
    return report


# ---------------------------------------------------------------------------
# Single-target reads
# ---------------------------------------------------------------------------


def closest_cached(cache: CacheStore, key: str, *, score_cutoff: int = 60) -> str | None:
    """Best fuzzy match for ``key`` among cached package keys."""
    names = [meta.name for meta in cache.list_packages()]
    if not names:
        return None
    match = process.extractOne(key, names, scorer=fuzz.ratio, score_cutoff=score_cutoff)
    return match[0] if match is not None else None


def not_cached_error(cache: CacheStore, key: str) -> EruditaError:
    suggestion = f"Run: erudita fetch {key}"
    close = closest_cached(cache, key)
    if close is not None:
        suggestion = f"Did you mean '{close}'? Otherwise run: erudita fetch {key}"
    return EruditaError(
        code=ErrorCode.PACKAGE_NOT_CACHED,
        message=f"Package '{key}' is not cached.",
        suggestion=suggestion,
        recoverable=True,
    )


def show_package(
    cache: CacheStore,
    key: str,
    *,
    entry: str | None = None,
    raw: bool = False,
) -> str:
    """Render a cached package: raw index, overview, or a single entry.

    ``entry`` selects by zero-based index or case-insensitive title substring.
    """
    meta = cache.get_meta(key)
    if meta is None:
        raise not_cached_error(cache, key)

    raw_index = cache.get_index_text(key) or ""
    if raw:
        return raw_index

    document = cache.get_index(key)
    entries = document.entries if document is not None else []

    if entry is not None:
        selected = None
        if entry.isdigit():
            position = int(entry)
            if position < len(entries):
                selected = entries[position]
        else:
            needle = entry.lower()
            selected = next((e for e in entries if needle in e.title.lower()), None)

        if selected is None:
            available = "; ".join(f"{i}: {e.title}" for i, e in enumerate(entries))
            raise EruditaError(
                code=ErrorCode.DOCUMENT_NOT_FOUND,
                message=f"Entry '{entry}' not found in {key}.",
                suggestion=(
                    f"Available entries: {available}" if available else "The index has no entries."
                ),
            )

        resolved = resolve_url(meta.source_url + "/", selected.url)
        content = (
            cache.get_document(key, filename_from_url(resolved)) if resolved is not None else None
        )
        if content is not None:
            return content

        lines = [f"# {selected.title}", "", f"URL: {selected.url}"]
        if selected.description:
            lines += ["", selected.description]
        lines += ["", "(Content not cached, update the package to fetch it)"]
        return "\n".join(lines)

    lines = [f"# {document.title if document and document.title else key}", ""]
    if document is not None and document.description:
        lines += [f"> {document.description}", ""]
    lines += [
        f"Source: {meta.source_url}",
        f"Fetched: {meta.fetched_at.isoformat()}",
        "",
        f"## Documentation Entries ({len(entries)})",
        "",
    ]
    for i, item in enumerate(entries):
        lines.append(f"  {i}: {item.title}")
        if item.description:
            lines.append(f"     {item.description}")
    return "\n".join(lines)
