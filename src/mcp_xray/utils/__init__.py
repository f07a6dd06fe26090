"""
Utility functions for the MCP Xray integration.
This package provides various utility functions used throughout the codebase.
"""

from .errors import normalize_xray_error, validate_project_key, validate_test_key
from .io import is_read_only_mode, parse_extended_bool
from .logging import mask_sensitive, setup_logging
from .ssl import SSLIgnoreAdapter, configure_ssl_verification
from .tools import get_enabled_tools, should_include_tool

__all__ = [
    "SSLIgnoreAdapter",
    "configure_ssl_verification",
    "get_enabled_tools",
    "is_read_only_mode",
    "mask_sensitive",
    "normalize_xray_error",
    "parse_extended_bool",
    "setup_logging",
    "should_include_tool",
    "validate_project_key",
    "validate_test_key",
]
