"""Normalization of upstream failures into XrayError, and local key validation."""

import json
import re
from typing import Any

from atlassian.errors import (
    ApiError,
    ApiNotFoundError,
    ApiPermissionError,
    ApiValueError,
)
from requests import Response
from requests.exceptions import RequestException

from ..exceptions import XrayError, XrayErrorCode, XrayValidationError

ISSUE_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9]+-\d+$")
PROJECT_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9]+$")

_STATUS_MESSAGES: dict[XrayErrorCode, str] = {
    XrayErrorCode.AUTH_FAILED: "Authentication failed. Please check your credentials.",
    XrayErrorCode.NOT_FOUND: "Resource not found. Please check the issue key or test ID.",
    XrayErrorCode.INVALID_REQUEST: "Invalid request. Please check your input parameters.",
    XrayErrorCode.RATE_LIMIT: "Rate limit exceeded. Please try again later.",
    XrayErrorCode.SERVER_ERROR: "Xray server error. Please try again later.",
    XrayErrorCode.UNKNOWN_ERROR: "Xray API request failed",
}


def _code_for_status(status: int) -> XrayErrorCode:
    if status in (401, 403):
        return XrayErrorCode.AUTH_FAILED
    if status == 404:
        return XrayErrorCode.NOT_FOUND
    if status == 400:
        return XrayErrorCode.INVALID_REQUEST
    if status == 429:
        return XrayErrorCode.RATE_LIMIT
    if status >= 500:
        return XrayErrorCode.SERVER_ERROR
    return XrayErrorCode.UNKNOWN_ERROR


def _response_body(response: Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _from_response(response: Response) -> XrayError:
    status = response.status_code
    body = _response_body(response)
    code = _code_for_status(status)
    message = _STATUS_MESSAGES[code]

    if code is XrayErrorCode.INVALID_REQUEST and body:
        if isinstance(body, dict):
            if any(k in body for k in ("error", "errors", "errorMessages", "message")):
                message = f"Invalid request: {json.dumps(body)}"
        else:
            message = f"Invalid request: {body}"

    return XrayError(message, code, status, {"status": status, "body": body})


def normalize_xray_error(error: BaseException) -> XrayError:
    """Map any failure from an upstream call onto a single XrayError.

    Args:
        error: The exception raised while talking to Xray or Jira.

    Returns:
        The normalized error. XrayError instances are returned unchanged.
    """
    if isinstance(error, XrayError):
        return error

    if isinstance(error, RequestException):
        response = getattr(error, "response", None)
        if response is not None:
            return _from_response(response)
        return XrayError(
            "Network error: Unable to reach Xray API. "
            "Please check your connection and base URL.",
            XrayErrorCode.NETWORK_ERROR,
            details=str(error),
        )

    if isinstance(error, ApiError):
        reason = getattr(error, "reason", None)
        detail = str(error)
        if isinstance(error, ApiNotFoundError):
            return XrayError(
                _STATUS_MESSAGES[XrayErrorCode.NOT_FOUND],
                XrayErrorCode.NOT_FOUND,
                404,
                {"status": 404, "body": reason or detail},
            )
        if isinstance(error, ApiPermissionError):
            return XrayError(
                _STATUS_MESSAGES[XrayErrorCode.AUTH_FAILED],
                XrayErrorCode.AUTH_FAILED,
                403,
                {"status": 403, "body": reason or detail},
            )
        if isinstance(error, ApiValueError):
            return XrayError(
                f"Invalid request: {detail}",
                XrayErrorCode.INVALID_REQUEST,
                400,
                {"status": 400, "body": reason or detail},
            )

    message = str(error) or "An unknown error occurred"
    return XrayError(message, XrayErrorCode.UNKNOWN_ERROR, details=repr(error))


def validate_test_key(key: str) -> None:
    """Validate an issue key such as PROJ-123 (tests, executions, plans).

    Raises:
        XrayError: INVALID_INPUT when the key is malformed.
    """
    if not isinstance(key, str) or not ISSUE_KEY_PATTERN.fullmatch(key):
        raise XrayValidationError(
            f'Invalid test key format: "{key}". Expected format: PROJECT-123',
            XrayErrorCode.INVALID_INPUT,
        )


def validate_project_key(key: str) -> None:
    """Validate a bare project key such as PROJ.

    Raises:
        XrayError: INVALID_INPUT when the key is malformed.
    """
    if not isinstance(key, str) or not PROJECT_KEY_PATTERN.fullmatch(key):
        raise XrayValidationError(
            f'Invalid project key format: "{key}". Expected format: PROJECT',
            XrayErrorCode.INVALID_INPUT,
        )
