"""TLS settings for the HTTP sessions talking to Xray and Jira."""

import logging
import ssl
from typing import Any
from urllib.parse import urlparse

from requests.adapters import HTTPAdapter
from requests.sessions import Session

logger = logging.getLogger("mcp-xray")


def _unverified_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    # Older Jira Data Center appliances still need legacy renegotiation
    context.options |= getattr(ssl, "OP_LEGACY_SERVER_CONNECT", 0x4)
    return context


class SSLIgnoreAdapter(HTTPAdapter):
    """HTTP adapter whose connection pools skip certificate checks.

    Mounted only for the configured host, so other hosts reached through the
    same session keep the default verification.
    """

    def init_poolmanager(self, *args: Any, **pool_kwargs: Any) -> None:
        pool_kwargs["ssl_context"] = _unverified_context()
        super().init_poolmanager(*args, **pool_kwargs)


def configure_ssl_verification(
    service_name: str,
    url: str,
    session: Session,
    *,
    ssl_verify: bool = True,
) -> None:
    """Apply the XRAY_SSL_VERIFY setting to a session.

    With verification off the session stops sending verify=True and an
    SSLIgnoreAdapter is mounted for the service host, on https and on plain
    http so redirects between the two keep the same adapter.

    Args:
        service_name: Name of the service for logging (e.g., "Xray Server")
        url: The base URL of the service
        session: The requests session to configure
        ssl_verify: Whether certificates should be verified
    """
    session.verify = ssl_verify
    if ssl_verify:
        return

    logger.warning(
        f"{service_name} SSL verification disabled. "
        "This is insecure and should only be used in testing environments."
    )
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in ("https", "http"):
        return

    adapter = SSLIgnoreAdapter()
    for prefix_scheme in {scheme, "http"}:
        prefix = f"{prefix_scheme}://{parsed.netloc}"
        session.mount(prefix, adapter)
        logger.debug(f"Mounted SSL-ignore adapter for {prefix}")
