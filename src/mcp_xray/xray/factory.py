"""Backend selection for the configured Xray deployment."""

import logging

from ..exceptions import MCPXrayConfigurationError
from .client import XrayClient
from .cloud import XrayCloudClient
from .config import XrayConfig
from .server import XrayServerClient

logger = logging.getLogger("mcp-xray.factory")


def create_xray_client(config: XrayConfig) -> XrayClient:
    """Create the backend client matching ``config.deployment``.

    Raises:
        MCPXrayConfigurationError: If the deployment is not cloud or server.
    """
    if config.deployment == "cloud":
        logger.info("Creating Xray Cloud client")
        return XrayCloudClient(config)
    if config.deployment == "server":
        logger.info(f"Creating Xray Server client ({config.auth_type} auth)")
        return XrayServerClient(config)

    error_msg = f"Unknown Xray deployment type: {config.deployment!r}"
    raise MCPXrayConfigurationError(error_msg)
