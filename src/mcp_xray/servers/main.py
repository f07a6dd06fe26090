"""Main FastMCP server setup for the Xray integration."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastmcp import FastMCP
from fastmcp.tools import Tool as FastMCPTool
from mcp.types import Tool as MCPTool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from mcp_xray.utils.io import is_read_only_mode
from mcp_xray.utils.metrics import get_metrics
from mcp_xray.utils.tools import get_enabled_tools, should_include_tool
from mcp_xray.xray import XrayClient, XrayConfig, create_xray_client

from .context import MainAppContext
from .xray import xray_mcp

logger = logging.getLogger("mcp-xray.server.main")


async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def metrics_endpoint(request: Request) -> Response:
    content, content_type = get_metrics().generate_metrics()
    return Response(content, media_type=content_type)


@asynccontextmanager
async def main_lifespan(app: FastMCP[MainAppContext]) -> AsyncIterator[dict]:
    logger.info("Main Xray MCP server lifespan starting...")
    read_only = is_read_only_mode()
    enabled_tools = get_enabled_tools()

    loaded_xray_config: XrayConfig | None = None
    xray_client: XrayClient | None = None
    try:
        loaded_xray_config = XrayConfig.from_env()
        xray_client = create_xray_client(loaded_xray_config)
        logger.info(
            f"Xray {loaded_xray_config.deployment} client created for "
            f"{loaded_xray_config.url}"
        )
    except Exception as e:
        logger.error(f"Failed to load Xray configuration: {e}", exc_info=True)

    app_context = MainAppContext(
        full_xray_config=loaded_xray_config,
        xray_client=xray_client,
        read_only=read_only,
        enabled_tools=enabled_tools,
    )
    logger.info(f"Read-only mode: {'ENABLED' if read_only else 'DISABLED'}")
    logger.info(f"Enabled tools filter: {enabled_tools or 'All tools enabled'}")

    try:
        yield {"app_lifespan_context": app_context}
    except Exception as e:
        logger.error(f"Error during lifespan: {e}", exc_info=True)
        raise
    finally:
        logger.info("Main Xray MCP server lifespan shutdown complete.")


class XrayMCP(FastMCP[MainAppContext]):
    """Custom FastMCP server class for Xray with tool filtering."""

    async def _mcp_list_tools(self) -> list[MCPTool]:
        # Filter tools based on enabled_tools and read_only mode from the lifespan context.
        req_context = self._mcp_server.request_context
        if req_context is None or req_context.lifespan_context is None:
            logger.warning("Lifespan context not available during _mcp_list_tools call.")
            return []

        lifespan_ctx_dict = req_context.lifespan_context
        app_lifespan_state: MainAppContext | None = (
            lifespan_ctx_dict.get("app_lifespan_context")
            if isinstance(lifespan_ctx_dict, dict)
            else None
        )
        read_only = (
            getattr(app_lifespan_state, "read_only", False)
            if app_lifespan_state
            else False
        )
        enabled_tools_filter = (
            getattr(app_lifespan_state, "enabled_tools", None)
            if app_lifespan_state
            else None
        )
        logger.debug(
            f"_mcp_list_tools: read_only={read_only}, enabled_tools_filter={enabled_tools_filter}"
        )

        all_tools: dict[str, FastMCPTool] = await self.get_tools()
        filtered_tools: list[MCPTool] = []
        for registered_name, tool_obj in all_tools.items():
            if not should_include_tool(registered_name, enabled_tools_filter):
                logger.debug(f"Excluding tool '{registered_name}' (not enabled)")
                continue

            if read_only and "write" in tool_obj.tags:
                logger.debug(
                    f"Excluding tool '{registered_name}' due to read-only mode and 'write' tag"
                )
                continue

            filtered_tools.append(tool_obj.to_mcp_tool(name=registered_name))

        logger.debug(f"_mcp_list_tools: Total tools after filtering: {len(filtered_tools)}")
        return filtered_tools


main_mcp = XrayMCP(name="Xray MCP", lifespan=main_lifespan)
main_mcp.mount(xray_mcp)


@main_mcp.custom_route("/healthz", methods=["GET"], include_in_schema=False)
async def _health_check_route(request: Request) -> JSONResponse:
    return await health_check(request)


@main_mcp.custom_route("/metrics", methods=["GET"], include_in_schema=False)
async def _metrics_route(request: Request) -> Response:
    return await metrics_endpoint(request)
