"""Tool handler for get_documentation.

Serves cached content only and never touches the network. Without ``path``
the raw llms.txt index is returned so the caller can pick a document.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from erudita.cache import INDEX_FILE
from erudita.commands import not_cached_error
from erudita.errors import ErrorCode, EruditaError
from erudita.keys import build_package_key
from erudita.models.tools import GetDocumentationInput, GetDocumentationOutput

if TYPE_CHECKING:
    from erudita.state import AppState

_MAX_LISTED_PATHS = 20


async def handle(
    package_name: str,
    version: str | None,
    path: str | None,
    state: AppState,
) -> dict:
    """Handle a get_documentation tool call."""
    log = structlog.get_logger().bind(tool="get_documentation", package=package_name)
    log.info("handler_called", version=version, path=path)

    try:
        validated = GetDocumentationInput(package_name=package_name, version=version, path=path)
    except ValueError as exc:
        raise EruditaError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty package name and an optional document path.",
            recoverable=False,
        ) from exc

    key = build_package_key(validated.package_name, validated.version)
    if not state.cache.is_cached(key):
        raise not_cached_error(state.cache, key)

    if validated.path is None:
        content = state.cache.get_index_text(key)
    else:
        content = state.cache.get_document(key, validated.path)
        if content is None and validated.path == INDEX_FILE:
            content = state.cache.get_index_text(key)

    if content is None:
        available = state.cache.list_documents(key)
        listed = ", ".join(available[:_MAX_LISTED_PATHS])
        if len(available) > _MAX_LISTED_PATHS:
            listed += f", … ({len(available) - _MAX_LISTED_PATHS} more)"
        raise EruditaError(
            code=ErrorCode.DOCUMENT_NOT_FOUND,
            message=f"Documentation path {validated.path or INDEX_FILE} not found in {key}",
            suggestion=(
                f"Available paths: {listed}" if listed else "Call update_documentation to refetch."
            ),
            recoverable=False,
        )

    log.info("get_complete", key=key, content_length=len(content))
    return GetDocumentationOutput(content=content).model_dump(mode="json", by_alias=True)
