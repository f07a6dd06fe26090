"""Configuration module for Xray API interactions."""

import os
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

from ..utils.env import get_custom_headers, get_env_int, is_env_ssl_verify
from .constants import (
    DEFAULT_TEST_ENVIRONMENTS_FIELD,
    DEFAULT_TIMEOUT,
    XRAY_CLOUD_BASE_URL,
)

DEPLOYMENTS = ("cloud", "server")
AUTH_TYPES = ("token", "basic")


def _is_http_url(value: str | None) -> bool:
    if not value:
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class XrayConfig:
    """Xray API configuration.

    Exactly one credential variant is used, selected by ``deployment``:
    - cloud: client id/secret exchanged for a short-lived token
    - server: static personal access token or username/password against the
      Jira base URL
    """

    deployment: Literal["cloud", "server"]
    client_id: str | None = None  # Xray Cloud API key id
    client_secret: str | None = None  # Xray Cloud API key secret
    cloud_base_url: str = XRAY_CLOUD_BASE_URL
    base_url: str | None = None  # Jira base URL (Server/Data Center)
    auth_type: Literal["token", "basic"] | None = None
    token: str | None = None  # Personal access token (Server/DC)
    username: str | None = None
    password: str | None = None
    ssl_verify: bool = True
    timeout: int = DEFAULT_TIMEOUT
    http_proxy: str | None = None
    https_proxy: str | None = None
    no_proxy: str | None = None
    custom_headers: dict[str, str] | None = None
    test_environments_field: str = DEFAULT_TEST_ENVIRONMENTS_FIELD

    @property
    def is_cloud(self) -> bool:
        return self.deployment == "cloud"

    @property
    def url(self) -> str:
        """The base URL requests are sent to for this deployment."""
        if self.is_cloud:
            return self.cloud_base_url
        return self.base_url or ""

    def is_auth_configured(self) -> bool:
        """Check if the selected credential variant is complete."""
        if self.is_cloud:
            return bool(self.client_id and self.client_secret)
        if self.auth_type == "token":
            return bool(self.token)
        if self.auth_type == "basic":
            return bool(self.username and self.password)
        return False

    def validation_errors(self) -> list[str]:
        """Collect every field-level problem as ``field: message`` strings."""
        errors: list[str] = []
        if self.deployment == "cloud":
            if not self.client_id:
                errors.append(
                    "client_id: XRAY_CLOUD_CLIENT_ID is required for cloud deployment"
                )
            if not self.client_secret:
                errors.append(
                    "client_secret: XRAY_CLOUD_CLIENT_SECRET is required for cloud deployment"
                )
            if not _is_http_url(self.cloud_base_url):
                errors.append(
                    "cloud_base_url: XRAY_CLOUD_BASE_URL must be a valid URL"
                )
        elif self.deployment == "server":
            if not _is_http_url(self.base_url):
                errors.append("base_url: XRAY_JIRA_BASE_URL must be a valid URL")
            if self.auth_type == "token":
                if not self.token:
                    errors.append(
                        "token: XRAY_TOKEN is required when using token authentication"
                    )
            elif self.auth_type == "basic":
                if not self.username:
                    errors.append(
                        "username: XRAY_USERNAME is required when using basic authentication"
                    )
                if not self.password:
                    errors.append(
                        "password: XRAY_PASSWORD is required when using basic authentication"
                    )
            else:
                errors.append('auth_type: XRAY_AUTH_TYPE must be "token" or "basic"')
        else:
            errors.append('deployment: XRAY_DEPLOYMENT must be "cloud" or "server"')

        if self.timeout <= 0:
            errors.append("timeout: XRAY_TIMEOUT must be a positive number of seconds")
        return errors

    def validate(self) -> "XrayConfig":
        """Raise a single ValueError listing every invalid field.

        Returns:
            The configuration itself, so calls can be chained.

        Raises:
            ValueError: If any field is missing or invalid
        """
        errors = self.validation_errors()
        if errors:
            messages = "\n".join(f"  - {error}" for error in errors)
            error_msg = f"Configuration validation failed:\n{messages}"
            raise ValueError(error_msg)
        return self

    @classmethod
    def from_env(cls) -> "XrayConfig":
        """Create configuration from environment variables.

        Returns:
            Validated XrayConfig with values from environment variables

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        deployment = os.getenv("XRAY_DEPLOYMENT", "").strip().lower()
        if not deployment:
            error_msg = (
                "XRAY_DEPLOYMENT environment variable is required. "
                'Set it to "cloud" or "server".'
            )
            raise ValueError(error_msg)
        if deployment not in DEPLOYMENTS:
            error_msg = (
                f'Invalid XRAY_DEPLOYMENT value: "{deployment}". '
                'Must be "cloud" or "server".'
            )
            raise ValueError(error_msg)

        auth_type = None
        if deployment == "server":
            auth_type = os.getenv("XRAY_AUTH_TYPE", "").strip().lower()
            if auth_type not in AUTH_TYPES:
                error_msg = (
                    'XRAY_AUTH_TYPE must be set to "token" or "basic" '
                    "for server deployment."
                )
                raise ValueError(error_msg)

        config = cls(
            deployment=deployment,  # type: ignore[arg-type]
            client_id=os.getenv("XRAY_CLOUD_CLIENT_ID"),
            client_secret=os.getenv("XRAY_CLOUD_CLIENT_SECRET"),
            cloud_base_url=os.getenv("XRAY_CLOUD_BASE_URL") or XRAY_CLOUD_BASE_URL,
            base_url=os.getenv("XRAY_JIRA_BASE_URL"),
            auth_type=auth_type,  # type: ignore[arg-type]
            token=os.getenv("XRAY_TOKEN"),
            username=os.getenv("XRAY_USERNAME"),
            password=os.getenv("XRAY_PASSWORD"),
            ssl_verify=is_env_ssl_verify("XRAY_SSL_VERIFY"),
            timeout=get_env_int("XRAY_TIMEOUT", DEFAULT_TIMEOUT),
            http_proxy=os.getenv("XRAY_HTTP_PROXY", os.getenv("HTTP_PROXY")),
            https_proxy=os.getenv("XRAY_HTTPS_PROXY", os.getenv("HTTPS_PROXY")),
            no_proxy=os.getenv("XRAY_NO_PROXY", os.getenv("NO_PROXY")),
            custom_headers=get_custom_headers("XRAY_CUSTOM_HEADERS") or None,
            test_environments_field=os.getenv("XRAY_TEST_ENVIRONMENTS_FIELD")
            or DEFAULT_TEST_ENVIRONMENTS_FIELD,
        )
        return config.validate()
