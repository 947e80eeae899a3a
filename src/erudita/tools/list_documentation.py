"""Tool handler for list_documentation.

Receives AppState, enumerates the cache, and returns a structured dict.
No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from erudita.keys import parse_package_key
from erudita.models.tools import DocumentationInfo, ListDocumentationOutput

if TYPE_CHECKING:
    from erudita.state import AppState


async def handle(state: AppState) -> dict:
    """Handle a list_documentation tool call."""
    log = structlog.get_logger().bind(tool="list_documentation")
    log.info("handler_called")

    docs: list[DocumentationInfo] = []
    for meta in state.cache.list_packages():
        name, version = parse_package_key(meta.name)
        docs.append(
            DocumentationInfo(
                name=name,
                version=version or "latest",
                last_updated=meta.fetched_at.isoformat(),
                paths=state.cache.list_documents(meta.name),
            )
        )

    log.info("list_complete", package_count=len(docs))
    return ListDocumentationOutput(docs=docs).model_dump(mode="json", by_alias=True)
