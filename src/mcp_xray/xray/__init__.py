"""Xray backends for the MCP Xray server."""

from .auth import CloudTokenManager, TokenState, XrayCloudAuth
from .client import XrayClient, build_execution_jql
from .cloud import XrayCloudClient
from .config import XrayConfig
from .factory import create_xray_client
from .server import XrayServerClient
from .steps import Step, run_steps

__all__ = [
    "CloudTokenManager",
    "Step",
    "TokenState",
    "XrayClient",
    "XrayCloudAuth",
    "XrayCloudClient",
    "XrayConfig",
    "XrayServerClient",
    "build_execution_jql",
    "create_xray_client",
    "run_steps",
]
