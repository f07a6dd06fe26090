"""Logging utilities for the Xray MCP server."""

import logging
import sys
from typing import TextIO

SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "proxy-authorization"}


def setup_logging(
    level: int = logging.WARNING, stream: TextIO = sys.stderr
) -> logging.Logger:
    """
    Configure the logging for the application.

    Logs always go to stderr by default because stdout carries the stdio
    MCP transport.

    Args:
        level: The logging level to use.
        stream: Output stream for log records.

    Returns:
        The configured logger instance.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for logger_name in ["mcp-xray", "mcp_xray", "mcp.server", "mcp.server.lowlevel.server"]:
        logging.getLogger(logger_name).setLevel(level)

    # Quiet noisy third party loggers unless we are debugging
    if level > logging.DEBUG:
        for noisy in ["urllib3", "atlassian", "httpx"]:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logging.getLogger("mcp-xray")


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Mask a secret, keeping a few characters at each end.

    Args:
        value: The string to mask.
        keep_chars: Number of characters to keep visible at start and end.

    Returns:
        Masked string.
    """
    if not value:
        return "Not Provided"
    if len(value) <= keep_chars * 2:
        return "*" * len(value)
    start = value[:keep_chars]
    end = value[-keep_chars:]
    middle = "*" * (len(value) - keep_chars * 2)
    return f"{start}{middle}{end}"


def get_masked_session_headers(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of headers with credential values masked."""
    masked: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() not in SENSITIVE_HEADERS:
            masked[key] = value
            continue
        if key.lower() == "authorization" and " " in str(value):
            scheme, token = str(value).split(" ", 1)
            masked[key] = f"{scheme} {mask_sensitive(token.strip())}"
        else:
            masked[key] = mask_sensitive(str(value))
    return masked


def log_config_param(
    logger: logging.Logger,
    service: str,
    param: str,
    value: str | None,
    sensitive: bool = False,
) -> None:
    """Log a configuration parameter, masking it when sensitive."""
    display_value = mask_sensitive(value) if sensitive else (value or "Not Provided")
    logger.info(f"{service} {param}: {display_value}")
