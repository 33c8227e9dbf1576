"""Tests for application assembly and lifespan."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from api.main import create_app
from core.app_store import AppStore
from core.constants import Settings
from integrations.mcp_manager import MCPServerManager


class TestCreateApp:
    def test_state_wiring(self, test_settings: Settings, store: AppStore, mock_mcp_manager: MagicMock) -> None:
        app = create_app(settings=test_settings, store=store, mcp_manager=mock_mcp_manager)

        assert app.state.settings is test_settings
        assert app.state.store is store
        assert app.state.mcp_manager is mock_mcp_manager

    def test_defaults_from_settings(self, test_settings: Settings) -> None:
        app = create_app(settings=test_settings)

        assert app.state.store.path == test_settings.store_path
        assert isinstance(app.state.mcp_manager, MCPServerManager)

    def test_routes_mounted_under_api(self, test_settings: Settings) -> None:
        paths = {route.path for route in create_app(settings=test_settings).routes}

        assert {
            "/api/health",
            "/api/chat",
            "/api/settings",
            "/api/mcp/servers",
            "/api/mcp/config-path",
            "/api/mcp/import",
            "/api/mcp/refresh",
            "/api/mcp/status",
            "/api/sessions",
            "/api/sessions/{session_id}",
        } <= paths

    def test_cors_headers(self, test_settings: Settings, store: AppStore, mock_mcp_manager: MagicMock) -> None:
        app = create_app(settings=test_settings, store=store, mcp_manager=mock_mcp_manager)

        with TestClient(app) as client:
            response = client.get("/api/health", headers={"Origin": "http://localhost:5173"})

        assert response.headers["access-control-allow-origin"] == "*"


class TestLifespan:
    def test_startup_and_shutdown(self, test_settings: Settings, store: AppStore, mock_mcp_manager: MagicMock) -> None:
        app = create_app(settings=test_settings, store=store, mcp_manager=mock_mcp_manager)

        with patch("api.main.set_tracing_disabled") as tracing, TestClient(app):
            tracing.assert_called_once_with(True)
            mock_mcp_manager.initialize.assert_awaited_once()
            mock_mcp_manager.shutdown.assert_not_awaited()

        mock_mcp_manager.shutdown.assert_awaited_once()
