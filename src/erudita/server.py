"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools
- Serve over stdio
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import erudita.tools.get_documentation as t_get_docs
import erudita.tools.list_documentation as t_list_docs
import erudita.tools.update_documentation as t_update_docs
from erudita import __version__
from erudita.config import Settings
from erudita.errors import EruditaError
from erudita.logs import setup_logging
from erudita.state import open_app_state

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from erudita.state import AppState

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    setup_logging(settings)

    log.info("server_starting", version=__version__, cache_root=str(settings.cache_root))

    async with open_app_state(settings) as state:
        log.info(
            "server_started",
            version=__version__,
            cached_packages=len(state.cache.list_packages()),
        )
        try:
            yield state
        finally:
            log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("erudita", lifespan=lifespan)
# FastMCP doesn't expose a version kwarg, so set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: EruditaError) -> CallToolResult:
    """Convert an EruditaError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


def _log_tool_error(tool: str, exc: EruditaError) -> None:
    log.warning(
        "tool_error",
        tool=tool,
        code=exc.code,
        message=exc.message,
        recoverable=exc.recoverable,
    )


@mcp.tool()
async def list_documentation(ctx: Context) -> object:
    """List every package with cached documentation."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_list_docs.handle(state)
    except EruditaError as exc:
        _log_tool_error("list_documentation", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="list_documentation", exc_info=True)
        raise


@mcp.tool()
async def update_documentation(
    packageName: str,  # noqa: N803
    ctx: Context,
    version: str | None = None,
) -> object:
    """Fetch or refresh a package's llms.txt documentation into the local cache."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_update_docs.handle(packageName, version, state)
    except EruditaError as exc:
        _log_tool_error("update_documentation", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="update_documentation", exc_info=True)
        raise


@mcp.tool()
async def get_documentation(
    packageName: str,  # noqa: N803
    ctx: Context,
    version: str | None = None,
    path: str | None = None,
) -> object:
    """Read cached documentation for a package.

    Without ``path`` the package's llms.txt index is returned; pass one of
    the document filenames reported by list_documentation to read it.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_docs.handle(packageName, version, path, state)
    except EruditaError as exc:
        _log_tool_error("get_documentation", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_documentation", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
