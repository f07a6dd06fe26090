"""Tool filtering helpers."""

import logging
import os

logger = logging.getLogger(__name__)


def get_enabled_tools() -> list[str] | None:
    """Read the ENABLED_TOOLS allow-list.

    Returns:
        List of tool names, or None when every tool is enabled.
    """
    raw = os.getenv("ENABLED_TOOLS")
    if not raw or not raw.strip():
        logger.debug("ENABLED_TOOLS not set, all tools enabled")
        return None
    tools = [name.strip() for name in raw.split(",") if name.strip()]
    logger.debug(f"Enabled tools from environment: {tools}")
    return tools


def should_include_tool(tool_name: str, enabled_tools: list[str] | None) -> bool:
    if enabled_tools is None:
        return True
    return tool_name in enabled_tools
