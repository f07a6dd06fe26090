import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from fastmcp import Context
from fastmcp.exceptions import ToolError

from ..exceptions import XrayError, XrayValidationError
from .errors import normalize_xray_error
from .io import get_env_read_only_flag
from .metrics import get_metrics

logger = logging.getLogger(__name__)


F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def check_write_access(func: F) -> F:
    """
    Decorator for FastMCP tools to check if the application is in read-only mode.
    If in read-only mode, it raises a ValueError.
    Assumes the decorated function is async and has `ctx: Context` as its first argument.
    """

    @wraps(func)
    async def wrapper(ctx: Context, *args: Any, **kwargs: Any) -> Any:
        req_context = getattr(ctx, "request_context", None)
        lifespan_ctx_dict = (
            req_context.lifespan_context if req_context else {}  # type: ignore[attr-defined]
        )
        app_lifespan_ctx = (
            lifespan_ctx_dict.get("app_lifespan_context")
            if isinstance(lifespan_ctx_dict, dict)
            else None
        )

        if app_lifespan_ctx is not None:
            read_only = bool(getattr(app_lifespan_ctx, "read_only", False))
        else:
            read_only = bool(get_env_read_only_flag())

        if read_only:
            tool_name = func.__name__
            action_description = tool_name.replace("_", " ")
            logger.warning(f"Attempted to call tool '{tool_name}' in read-only mode.")
            msg = f"Cannot {action_description} in read-only mode."
            raise ValueError(msg)

        return await func(ctx, *args, **kwargs)

    return wrapper  # type: ignore


def convert_tool_errors(func: F) -> F:
    """
    Decorator for FastMCP tools that turns every failure into a ToolError.

    FastMCP reports a ToolError to the caller as an error result
    (``isError=true``) carrying ``Error: <message>``; nothing propagates
    past the tool boundary.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        tool_name = func.__name__
        metrics = get_metrics()
        try:
            result = await func(*args, **kwargs)
        except ToolError:
            metrics.record_tool_call(tool_name, "error")
            raise
        except XrayError as e:
            metrics.record_tool_call(tool_name, "error")
            logger.error(f"Tool '{tool_name}' failed [{e.code.value}]: {e.message}")
            raise ToolError(f"Error: {e.message}") from e
        except Exception as e:  # noqa: BLE001 - every failure becomes an error result
            metrics.record_tool_call(tool_name, "error")
            logger.error(f"Unexpected error in tool '{tool_name}': {e}", exc_info=True)
            raise ToolError(f"Error: {e}") from e

        metrics.record_tool_call(tool_name, "success")
        return result

    return wrapper  # type: ignore


def handle_xray_api_errors(service_name: str = "Xray API") -> Callable:
    """
    Decorator routing every failure of a backend method through the error normalizer.

    Args:
        service_name: Name of the service for error logging (e.g., "Xray Cloud").
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            try:
                return func(self, *args, **kwargs)
            except Exception as e:
                operation_name = getattr(func, "__name__", "API operation")
                error = normalize_xray_error(e)
                if not isinstance(error, XrayValidationError):
                    get_metrics().record_upstream_error(error.code.value)
                status = f" (HTTP {error.status_code})" if error.status_code else ""
                logger.error(
                    f"{service_name} error during {operation_name}"
                    f"{status} [{error.code.value}]: {error.message}"
                )
                if error is e:
                    raise
                raise error from e

        return wrapper

    return decorator
