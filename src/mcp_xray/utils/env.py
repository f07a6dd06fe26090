"""Environment variable helpers."""

import logging
import os

from .io import FALSY_VALUES

logger = logging.getLogger("mcp-xray.utils.env")


def is_env_ssl_verify(env_var_name: str, default: str = "true") -> bool:
    """SSL verification stays on unless explicitly disabled."""
    return os.getenv(env_var_name, default).strip().lower() not in FALSY_VALUES


def get_env_int(env_var_name: str, default: int) -> int:
    """Parse an integer environment variable, falling back on bad values."""
    raw = os.getenv(env_var_name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {env_var_name}: {raw!r}")
        return default


def get_custom_headers(env_var_name: str) -> dict[str, str]:
    """Parse custom headers from an environment variable.

    Format: ``Header-Name=value,Other-Header=value2``. Malformed pairs are
    skipped.
    """
    raw = os.getenv(env_var_name, "")
    headers: dict[str, str] = {}
    if not raw.strip():
        return headers

    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if "=" not in pair:
            logger.warning(f"Skipping malformed header in {env_var_name}: {pair!r}")
            continue
        name, value = pair.split("=", 1)
        name = name.strip()
        if name:
            headers[name] = value.strip()
    return headers
