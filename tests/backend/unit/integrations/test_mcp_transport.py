# ruff: noqa: SIM117
"""Tests for MCP transport abstraction layer.

Tests the stdio transport with the agents SDK client mocked out.
"""

from __future__ import annotations

import asyncio

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from integrations.mcp_transport import MCPConnectionError, MCPTransport, StdioTransport, create_transport
from models.mcp_models import ServerConfig


def _mock_server() -> MagicMock:
    server = MagicMock()
    server.connect = AsyncMock()
    server.cleanup = AsyncMock()
    server.list_tools = AsyncMock(return_value=[])
    server.call_tool = AsyncMock()
    return server


class TestMCPTransportABC:
    """Tests for abstract base class."""

    def test_mcp_transport_is_abstract(self) -> None:
        """Test that MCPTransport cannot be instantiated directly."""
        with pytest.raises(TypeError, match="abstract"):
            MCPTransport()  # type: ignore[abstract]


class TestStdioTransport:
    """Tests for StdioTransport class."""

    def test_initialization_spawns_nothing(self, server_config: ServerConfig) -> None:
        with patch("integrations.mcp_transport.MCPServerStdio") as server_cls:
            transport = StdioTransport(server_config, connect_timeout=1.0)

        assert transport.server_name == "svc"
        assert transport._server is None
        server_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_passes_command_and_merged_env(self) -> None:
        """Child env is the parent env with the configured overrides on top."""
        config = ServerConfig(id="fs", name="fs", command="npx", args=["-y", "pkg"], env={"HOME": "/override"})
        server = _mock_server()

        with (
            patch.dict("os.environ", {"HOME": "/home/me", "PATH": "/usr/bin"}, clear=True),
            patch("integrations.mcp_transport.MCPServerStdio", return_value=server) as server_cls,
        ):
            transport = StdioTransport(config, connect_timeout=1.0, session_timeout=7.0)
            await transport.connect()

        kwargs: dict[str, Any] = server_cls.call_args.kwargs
        assert kwargs["params"]["command"] == "npx"
        assert kwargs["params"]["args"] == ["-y", "pkg"]
        assert kwargs["params"]["env"] == {"HOME": "/override", "PATH": "/usr/bin"}
        assert kwargs["client_session_timeout_seconds"] == 7.0
        assert kwargs["name"] == "fs"
        server.connect.assert_awaited_once()
        assert transport._server is server

    @pytest.mark.asyncio
    async def test_connect_failure_raises_and_cleans_up(self, server_config: ServerConfig) -> None:
        server = _mock_server()
        server.connect.side_effect = FileNotFoundError("npx: not found")

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config, connect_timeout=1.0)
            with pytest.raises(MCPConnectionError, match="npx: not found") as exc_info:
                await transport.connect()

        assert exc_info.value.server_name == "svc"
        server.cleanup.assert_awaited_once()
        assert transport._server is None

    @pytest.mark.asyncio
    async def test_connect_timeout(self, server_config: ServerConfig) -> None:
        """A server that never completes the handshake fails within the timeout."""
        server = _mock_server()

        async def hang() -> None:
            await asyncio.sleep(10)

        server.connect.side_effect = hang

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config, connect_timeout=0.05)
            with pytest.raises(MCPConnectionError, match="Timed out"):
                await transport.connect()

        server.cleanup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cleanup_error_during_failed_connect_is_swallowed(self, server_config: ServerConfig) -> None:
        server = _mock_server()
        server.connect.side_effect = RuntimeError("handshake failed")
        server.cleanup.side_effect = RuntimeError("already dead")

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config)
            with pytest.raises(MCPConnectionError, match="handshake failed"):
                await transport.connect()

    @pytest.mark.asyncio
    async def test_list_and_call_delegate(self, server_config: ServerConfig, make_tool, make_text_result) -> None:
        server = _mock_server()
        server.list_tools.return_value = [make_tool("search")]
        server.call_tool.return_value = make_text_result("found")

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config)
            await transport.connect()
            tools = await transport.list_tools()
            result = await transport.call_tool("search", {"q": "x"})

        assert [t.name for t in tools] == ["search"]
        assert result.content[0].text == "found"
        server.call_tool.assert_awaited_once_with("search", {"q": "x"})

    @pytest.mark.asyncio
    async def test_operations_before_connect_fail(self, server_config: ServerConfig) -> None:
        transport = StdioTransport(server_config)
        with pytest.raises(RuntimeError, match="not connected"):
            await transport.list_tools()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, server_config: ServerConfig) -> None:
        server = _mock_server()

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config)
            await transport.connect()
            await transport.close()
            await transport.close()

        server.cleanup.assert_awaited_once()
        assert transport._server is None

    @pytest.mark.asyncio
    async def test_close_swallows_cleanup_errors(self, server_config: ServerConfig) -> None:
        server = _mock_server()
        server.cleanup.side_effect = RuntimeError("broken pipe")

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config)
            await transport.connect()
            await transport.close()

        assert transport._server is None

    @pytest.mark.asyncio
    async def test_close_without_connect(self, server_config: ServerConfig) -> None:
        # Should not raise
        await StdioTransport(server_config).close()

    @pytest.mark.asyncio
    async def test_close_from_another_task_cleans_up_in_connecting_task(
        self, server_config: ServerConfig
    ) -> None:
        """Session enter and exit happen in one owner task whoever calls close()."""
        server = _mock_server()
        seen: dict[str, asyncio.Task[Any] | None] = {}

        async def record_connect() -> None:
            seen["connect"] = asyncio.current_task()

        async def record_cleanup() -> None:
            seen["cleanup"] = asyncio.current_task()

        server.connect.side_effect = record_connect
        server.cleanup.side_effect = record_cleanup

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config)
            await transport.connect()
            await asyncio.gather(transport.close())

        assert seen["cleanup"] is seen["connect"]
        assert seen["connect"] is not asyncio.current_task()
        server.cleanup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancelled_connect_then_close_cleans_up(self, server_config: ServerConfig) -> None:
        server = _mock_server()
        started = asyncio.Event()

        async def hang() -> None:
            started.set()
            await asyncio.sleep(10)

        server.connect.side_effect = hang

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config, connect_timeout=5.0)
            connecting = asyncio.create_task(transport.connect())
            await started.wait()
            connecting.cancel()
            with pytest.raises(asyncio.CancelledError):
                await connecting
            await transport.close()

        server.cleanup.assert_awaited_once()
        assert transport._server is None

    @pytest.mark.asyncio
    async def test_connect_twice_fails(self, server_config: ServerConfig) -> None:
        server = _mock_server()

        with patch("integrations.mcp_transport.MCPServerStdio", return_value=server):
            transport = StdioTransport(server_config)
            await transport.connect()
            with pytest.raises(RuntimeError, match="already connected"):
                await transport.connect()
            await transport.close()

        server.connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reconnect_after_close(self, server_config: ServerConfig) -> None:
        first, second = _mock_server(), _mock_server()

        with patch("integrations.mcp_transport.MCPServerStdio", side_effect=[first, second]):
            transport = StdioTransport(server_config)
            await transport.connect()
            await transport.close()
            await transport.connect()

        assert transport._server is second
        first.cleanup.assert_awaited_once()
        await transport.close()
        second.cleanup.assert_awaited_once()


class TestCreateTransport:
    """Tests for create_transport factory function."""

    def test_create_transport_returns_stdio(self, server_config: ServerConfig) -> None:
        transport = create_transport(server_config, connect_timeout=3.0, session_timeout=4.0)

        assert isinstance(transport, StdioTransport)
        assert transport.connect_timeout == 3.0
        assert transport.session_timeout == 4.0
