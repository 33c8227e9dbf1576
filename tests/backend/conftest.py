"""Shared test fixtures for the FruitsAI test suite.

This module provides common fixtures used across all test modules,
including an isolated settings store and fake MCP transports.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from mcp.types import CallToolResult, TextContent, Tool

from core.app_store import AppStore
from core.constants import Settings
from models.mcp_models import ServerConfig

# ============================================================================
# Test Isolation: Settings Management (MUST BE FIRST)
# ============================================================================


@pytest.fixture(autouse=True, scope="function")
def reset_settings_singleton() -> Generator[None, None, None]:
    """Reset the cached settings before and after each test."""
    from core import constants

    constants._settings_manager.clear()
    yield
    constants._settings_manager.clear()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated to a temp data dir, independent of any .env file."""
    return Settings(
        app_env="test",
        data_dir=tmp_path / "data",
        mcp_connect_timeout=2.0,
        mcp_client_session_timeout=5.0,
    )


@pytest.fixture
def store(test_settings: Settings) -> AppStore:
    """Empty settings store in the temp data dir."""
    return AppStore(test_settings.store_path)


# ============================================================================
# MCP Fixtures
# ============================================================================


def _make_server_config(server_id: str, name: str | None = None, enabled: bool = True) -> ServerConfig:
    return ServerConfig(
        id=server_id,
        name=name or server_id,
        command="npx",
        args=["-y", f"@example/{server_id}"],
        enabled=enabled,
    )


def _make_tool(name: str, description: str | None = None, input_schema: dict[str, Any] | None = None) -> Tool:
    return Tool(
        name=name,
        description=description,
        inputSchema=input_schema if input_schema is not None else {"type": "object", "properties": {}},
    )


def _make_text_result(*texts: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=t) for t in texts])


@pytest.fixture
def make_server_config() -> Any:
    """Factory: (server_id, name=None, enabled=True) -> ServerConfig."""
    return _make_server_config


@pytest.fixture
def make_tool() -> Any:
    """Factory: (name, description=None, input_schema=None) -> mcp Tool."""
    return _make_tool


@pytest.fixture
def make_text_result() -> Any:
    """Factory: (*texts) -> CallToolResult with one text part per argument."""
    return _make_text_result


@pytest.fixture
def server_config() -> ServerConfig:
    return _make_server_config("svc")


@pytest.fixture
def mock_transport() -> MagicMock:
    """Transport whose connect succeeds and which exposes no tools."""
    transport = MagicMock()
    transport.connect = AsyncMock()
    transport.close = AsyncMock()
    transport.list_tools = AsyncMock(return_value=[])
    transport.call_tool = AsyncMock(return_value=_make_text_result("ok"))
    return transport


@pytest.fixture
def mock_mcp_manager() -> MagicMock:
    """Registry stand-in for route and service tests."""
    manager = MagicMock()
    manager.initialize = AsyncMock()
    manager.reconcile = AsyncMock()
    manager.shutdown = AsyncMock()
    manager.build_tool_set = AsyncMock(return_value={})
    manager.list_status = MagicMock(return_value=[])
    return manager


@pytest.fixture
def mcp_config_file(tmp_path: Path) -> Path:
    """A standard mcpServers descriptor with two servers."""
    path = tmp_path / "mcp.json"
    path.write_text(
        """
        {
          "mcpServers": {
            "filesystem": {
              "command": "npx",
              "args": ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"]
            },
            "fetch": {
              "command": "uvx",
              "args": ["mcp-server-fetch"],
              "env": {"FETCH_TIMEOUT": "30"}
            }
          }
        }
        """,
        encoding="utf-8",
    )
    return path
