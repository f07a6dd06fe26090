from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mcp_xray.xray.client import XrayClient
    from mcp_xray.xray.config import XrayConfig


@dataclass(frozen=True)
class MainAppContext:
    """
    Context holding the configured Xray backend for the server lifespan.
    Tools read the client from here instead of building their own.
    """

    full_xray_config: XrayConfig | None = None
    xray_client: XrayClient | None = None
    read_only: bool = False
    enabled_tools: list[str] | None = None
