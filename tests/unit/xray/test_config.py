"""Tests for XrayConfig."""

import pytest

from mcp_xray.xray.config import XrayConfig
from mcp_xray.xray.constants import DEFAULT_TIMEOUT, XRAY_CLOUD_BASE_URL

XRAY_ENV_VARS = [
    "XRAY_DEPLOYMENT",
    "XRAY_CLOUD_CLIENT_ID",
    "XRAY_CLOUD_CLIENT_SECRET",
    "XRAY_CLOUD_BASE_URL",
    "XRAY_JIRA_BASE_URL",
    "XRAY_AUTH_TYPE",
    "XRAY_TOKEN",
    "XRAY_USERNAME",
    "XRAY_PASSWORD",
    "XRAY_SSL_VERIFY",
    "XRAY_TIMEOUT",
    "XRAY_HTTP_PROXY",
    "XRAY_HTTPS_PROXY",
    "XRAY_NO_PROXY",
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "NO_PROXY",
    "XRAY_CUSTOM_HEADERS",
    "XRAY_TEST_ENVIRONMENTS_FIELD",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in XRAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_from_env_cloud(monkeypatch):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "cloud")
    monkeypatch.setenv("XRAY_CLOUD_CLIENT_ID", "client-id")
    monkeypatch.setenv("XRAY_CLOUD_CLIENT_SECRET", "client-secret")

    config = XrayConfig.from_env()
    assert config.is_cloud
    assert config.url == XRAY_CLOUD_BASE_URL
    assert config.client_id == "client-id"
    assert config.timeout == DEFAULT_TIMEOUT
    assert config.ssl_verify is True
    assert config.is_auth_configured()


def test_from_env_server_token(monkeypatch):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "Server")
    monkeypatch.setenv("XRAY_JIRA_BASE_URL", "https://jira.example.com")
    monkeypatch.setenv("XRAY_AUTH_TYPE", "token")
    monkeypatch.setenv("XRAY_TOKEN", "pat")
    monkeypatch.setenv("XRAY_SSL_VERIFY", "false")
    monkeypatch.setenv("XRAY_TIMEOUT", "30")
    monkeypatch.setenv("XRAY_CUSTOM_HEADERS", "X-Team=qa")

    config = XrayConfig.from_env()
    assert config.deployment == "server"
    assert config.url == "https://jira.example.com"
    assert config.auth_type == "token"
    assert config.ssl_verify is False
    assert config.timeout == 30
    assert config.custom_headers == {"X-Team": "qa"}


def test_from_env_server_basic(monkeypatch):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "server")
    monkeypatch.setenv("XRAY_JIRA_BASE_URL", "https://jira.example.com")
    monkeypatch.setenv("XRAY_AUTH_TYPE", "basic")
    monkeypatch.setenv("XRAY_USERNAME", "qa-bot")
    monkeypatch.setenv("XRAY_PASSWORD", "secret")

    config = XrayConfig.from_env()
    assert config.auth_type == "basic"
    assert config.is_auth_configured()


def test_proxy_falls_back_to_global_env(monkeypatch):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "cloud")
    monkeypatch.setenv("XRAY_CLOUD_CLIENT_ID", "id")
    monkeypatch.setenv("XRAY_CLOUD_CLIENT_SECRET", "secret")
    monkeypatch.setenv("HTTPS_PROXY", "http://proxy:3128")
    monkeypatch.setenv("XRAY_HTTP_PROXY", "http://xray-proxy:3128")

    config = XrayConfig.from_env()
    assert config.https_proxy == "http://proxy:3128"
    assert config.http_proxy == "http://xray-proxy:3128"


def test_missing_deployment():
    with pytest.raises(ValueError) as exc:
        XrayConfig.from_env()
    assert str(exc.value) == (
        'XRAY_DEPLOYMENT environment variable is required. Set it to "cloud" or "server".'
    )


def test_invalid_deployment(monkeypatch):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "onprem")
    with pytest.raises(ValueError) as exc:
        XrayConfig.from_env()
    assert str(exc.value) == (
        'Invalid XRAY_DEPLOYMENT value: "onprem". Must be "cloud" or "server".'
    )


@pytest.mark.parametrize("auth_type", [None, "oauth"])
def test_server_requires_auth_type(monkeypatch, auth_type):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "server")
    monkeypatch.setenv("XRAY_JIRA_BASE_URL", "https://jira.example.com")
    if auth_type:
        monkeypatch.setenv("XRAY_AUTH_TYPE", auth_type)
    with pytest.raises(ValueError, match='XRAY_AUTH_TYPE must be set to "token" or "basic"'):
        XrayConfig.from_env()


def test_cloud_lists_every_missing_credential(monkeypatch):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "cloud")
    with pytest.raises(ValueError) as exc:
        XrayConfig.from_env()
    message = str(exc.value)
    assert message.startswith("Configuration validation failed:")
    assert "  - client_id: XRAY_CLOUD_CLIENT_ID is required" in message
    assert "  - client_secret: XRAY_CLOUD_CLIENT_SECRET is required" in message


def test_server_basic_reports_fields(monkeypatch):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "server")
    monkeypatch.setenv("XRAY_JIRA_BASE_URL", "not a url")
    monkeypatch.setenv("XRAY_AUTH_TYPE", "basic")
    with pytest.raises(ValueError) as exc:
        XrayConfig.from_env()
    message = str(exc.value)
    assert "base_url: XRAY_JIRA_BASE_URL must be a valid URL" in message
    assert "username: XRAY_USERNAME is required" in message
    assert "password: XRAY_PASSWORD is required" in message


def test_token_auth_requires_token():
    config = XrayConfig(
        deployment="server", base_url="https://jira.example.com", auth_type="token"
    )
    assert config.validation_errors() == [
        "token: XRAY_TOKEN is required when using token authentication"
    ]
    assert not config.is_auth_configured()


def test_invalid_cloud_base_url_and_timeout():
    config = XrayConfig(
        deployment="cloud",
        client_id="id",
        client_secret="secret",
        cloud_base_url="ftp://xray",
        timeout=0,
    )
    assert config.validation_errors() == [
        "cloud_base_url: XRAY_CLOUD_BASE_URL must be a valid URL",
        "timeout: XRAY_TIMEOUT must be a positive number of seconds",
    ]


def test_validate_returns_config():
    config = XrayConfig(deployment="cloud", client_id="id", client_secret="secret")
    assert config.validate() is config
