"""Tests for the main MCP server implementation."""

from unittest.mock import patch

import httpx
import pytest

from mcp_xray.servers.main import main_lifespan, main_mcp


@pytest.mark.anyio
async def test_run_server_stdio():
    """Test that main_mcp.run_async is called with stdio transport."""
    with patch.object(main_mcp, "run_async") as mock_run_async:
        mock_run_async.return_value = None
        await main_mcp.run_async(transport="stdio")
        mock_run_async.assert_called_once_with(transport="stdio")


@pytest.mark.anyio
async def test_run_server_invalid_transport():
    """Test that run_async raises ValueError for an unknown transport."""
    with pytest.raises(ValueError) as excinfo:
        await main_mcp.run_async(transport="invalid")  # type: ignore

    assert "Unknown transport" in str(excinfo.value)


@pytest.mark.anyio
async def test_health_check_endpoint():
    """Test the health check endpoint returns 200 and correct JSON response."""
    app = main_mcp.http_app()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_sse_app_health_check_endpoint():
    """Test the /healthz endpoint on the SSE app."""
    app = main_mcp.http_app(transport="sse")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/healthz")
        assert response.status_code == 200


@pytest.mark.anyio
async def test_metrics_endpoint():
    """Test that /metrics serves Prometheus exposition output."""
    app = main_mcp.http_app()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "mcp_xray_tool_calls" in response.text


@pytest.mark.anyio
async def test_lifespan_builds_client_from_env(monkeypatch):
    monkeypatch.setenv("XRAY_DEPLOYMENT", "cloud")
    monkeypatch.setenv("XRAY_CLOUD_CLIENT_ID", "id")
    monkeypatch.setenv("XRAY_CLOUD_CLIENT_SECRET", "secret")
    monkeypatch.setenv("READ_ONLY_MODE", "true")
    monkeypatch.setenv("ENABLED_TOOLS", "get_test_info")

    async with main_lifespan(main_mcp) as state:
        app_context = state["app_lifespan_context"]

    assert app_context.xray_client is not None
    assert app_context.full_xray_config.deployment == "cloud"
    assert app_context.read_only is True
    assert app_context.enabled_tools == ["get_test_info"]


@pytest.mark.anyio
async def test_lifespan_without_configuration(monkeypatch):
    monkeypatch.delenv("XRAY_DEPLOYMENT", raising=False)
    monkeypatch.delenv("READ_ONLY_MODE", raising=False)

    async with main_lifespan(main_mcp) as state:
        app_context = state["app_lifespan_context"]

    assert app_context.xray_client is None
    assert app_context.full_xray_config is None
    assert app_context.read_only is False
