"""Exception types shared across the Xray MCP server."""

from enum import Enum
from typing import Any


class XrayErrorCode(str, Enum):
    """Closed set of error codes surfaced to tool callers."""

    AUTH_FAILED = "AUTH_FAILED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    RATE_LIMIT = "RATE_LIMIT"
    SERVER_ERROR = "SERVER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class XrayError(Exception):
    """Normalized error raised by every Xray backend operation.

    Attributes:
        message: Human readable description.
        code: One of the XrayErrorCode values.
        status_code: HTTP status of the failed upstream call, if any.
        details: Raw upstream details (response body, failed step, ...).
    """

    def __init__(
        self,
        message: str,
        code: XrayErrorCode | str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = XrayErrorCode(code)
        self.status_code = status_code
        self.details = details

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"XrayError(code={self.code.value!r}, status_code={self.status_code!r}, "
            f"message={self.message!r})"
        )


class XrayValidationError(XrayError):
    """Raised when arguments are rejected before any request is sent."""


class MCPXrayAuthenticationError(XrayError):
    """Raised when the credential exchange with Xray fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, XrayErrorCode.AUTH_FAILED, status_code)


class MCPXrayConfigurationError(ValueError):
    """Raised when configuration cannot produce an Xray client."""
