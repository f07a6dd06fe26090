"""
Dependency lookup for Xray tools.

Tools receive the backend client created once in the server lifespan.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastmcp import Context

if TYPE_CHECKING:
    from mcp_xray.servers.context import MainAppContext
    from mcp_xray.xray.client import XrayClient

logger = logging.getLogger("mcp-xray.server.dependencies")


async def get_xray_fetcher(ctx: Context) -> XrayClient:
    """Returns the XrayClient configured for this server.

    Args:
        ctx: The FastMCP context.

    Returns:
        XrayClient instance for the configured deployment.

    Raises:
        ValueError: If the Xray client is not configured or available.
    """
    logger.debug(f"get_xray_fetcher: ENTERED. Context ID: {id(ctx)}")
    lifespan_ctx_dict = ctx.request_context.lifespan_context  # type: ignore
    app_lifespan_ctx: MainAppContext | None = (
        lifespan_ctx_dict.get("app_lifespan_context")
        if isinstance(lifespan_ctx_dict, dict)
        else None
    )
    if app_lifespan_ctx is not None and app_lifespan_ctx.xray_client is not None:
        return app_lifespan_ctx.xray_client

    logger.error("Xray client is not available in the application context.")
    raise ValueError(
        "Xray client (fetcher) not available. Ensure server is configured correctly."
    )
