"""Tool handler for update_documentation.

Fetches (or re-fetches) a package into the cache. Expected failures
(unresolvable origin, missing index) are reported as ``success: false``
rather than raised, mirroring how the batch commands treat them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from erudita.commands import fetch_and_cache, resolve_origin
from erudita.errors import ErrorCode, EruditaError
from erudita.keys import build_package_key
from erudita.models.tools import UpdateDocumentationInput, UpdateDocumentationOutput

if TYPE_CHECKING:
    from erudita.state import AppState


async def handle(package_name: str, version: str | None, state: AppState) -> dict:
    """Handle an update_documentation tool call."""
    log = structlog.get_logger().bind(tool="update_documentation", package=package_name)
    log.info("handler_called", version=version)

    try:
        validated = UpdateDocumentationInput(package_name=package_name, version=version)
    except ValueError as exc:
        raise EruditaError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty package name, e.g. 'vue' or '@vue/test-utils'.",
            recoverable=False,
        ) from exc

    key = build_package_key(validated.package_name, validated.version)

    # A cached package keeps its original origin; otherwise ask the registry.
    meta = state.cache.get_meta(key)
    url = meta.source_url if meta is not None else await resolve_origin(state, key)
    if url is None:
        output = UpdateDocumentationOutput(
            success=False,
            message=f"Could not find a documentation website for {key}",
        )
        return output.model_dump(mode="json", by_alias=True)

    outcome = await fetch_and_cache(state, key, url)
    if outcome.status != "ok":
        output = UpdateDocumentationOutput(
            success=False,
            message=f"Failed to update documentation for {key}: {outcome.message}",
        )
    else:
        message = f"Documentation updated for {key} ({outcome.documents} docs"
        if outcome.errors:
            message += f", {outcome.errors} failed"
        output = UpdateDocumentationOutput(success=True, message=message + ")")

    log.info("update_complete", key=key, success=output.success)
    return output.model_dump(mode="json", by_alias=True)
