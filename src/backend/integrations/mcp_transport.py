"""
MCP Transport Layer.

Spawns a configured tool server as a child process and talks MCP to it over
stdio, using the agents SDK's MCPServerStdio client.
"""

from __future__ import annotations

import asyncio
import os

from abc import ABC, abstractmethod
from typing import Any

from agents.mcp import MCPServerStdio
from mcp.types import CallToolResult, Tool

from core.constants import ERROR_CONNECTION_FAILED, MCP_CLIENT_SESSION_TIMEOUT, MCP_CONNECT_TIMEOUT
from models.mcp_models import ServerConfig
from utils.logger import logger


class MCPConnectionError(Exception):
    """A tool server could not be spawned or did not complete the MCP handshake."""

    def __init__(self, server_name: str, message: str):
        self.server_name = server_name
        self.message = message
        super().__init__(message)


class MCPTransport(ABC):
    """Abstract base for MCP server transports."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish the MCP session.

        Raises:
            MCPConnectionError: If the session cannot be established
        """

    @abstractmethod
    async def list_tools(self) -> list[Tool]:
        """Fetch the server's tool catalog."""

    @abstractmethod
    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        """Invoke one tool and return the raw MCP result."""

    @abstractmethod
    async def close(self) -> None:
        """Tear down the session and the process. Idempotent, never raises."""


class StdioTransport(MCPTransport):
    """Child-process transport speaking MCP over stdin/stdout.

    The SDK client enters anyio cancel scopes when it connects and must exit
    them from the same task. Each connection therefore runs in an owner task
    that connects, waits for a close signal and cleans up. ``close()`` only
    signals that task and waits for it, so any task may call it.
    """

    def __init__(
        self,
        config: ServerConfig,
        connect_timeout: float = MCP_CONNECT_TIMEOUT,
        session_timeout: float = MCP_CLIENT_SESSION_TIMEOUT,
    ):
        """Initialize the transport without spawning anything.

        Args:
            config: Server to launch
            connect_timeout: Seconds allowed for spawn + handshake
            session_timeout: Per-request timeout once connected
        """
        self.config = config
        self.connect_timeout = connect_timeout
        self.session_timeout = session_timeout
        self._server: MCPServerStdio | None = None
        self._owner: asyncio.Task[None] | None = None
        self._ready = asyncio.Event()
        self._closing = asyncio.Event()
        self._connect_error: Exception | None = None

    @property
    def server_name(self) -> str:
        return self.config.name

    def _build_server(self) -> MCPServerStdio:
        # Child inherits our environment; config values win
        env = {**os.environ, **self.config.env}
        return MCPServerStdio(
            params={
                "command": self.config.command,
                "args": list(self.config.args),
                "env": env,
            },
            client_session_timeout_seconds=self.session_timeout,
            name=self.config.name,
        )

    async def connect(self) -> None:
        """Spawn the process and complete the MCP handshake within the timeout."""
        if self._owner is not None:
            raise RuntimeError(f"MCP server {self.server_name} is already connected")

        self._ready = asyncio.Event()
        self._closing = asyncio.Event()
        self._connect_error = None
        self._owner = asyncio.create_task(self._serve(self._build_server()), name=f"mcp-{self.config.id}")

        try:
            async with asyncio.timeout(self.connect_timeout):
                await self._ready.wait()
        except TimeoutError as e:
            await self.close()
            raise MCPConnectionError(
                self.server_name,
                f"Timed out after {self.connect_timeout:g}s connecting to {self.server_name}",
            ) from e
        except asyncio.CancelledError:
            # Caller is expected to close(); stop the handshake either way
            if self._owner is not None:
                self._owner.cancel()
            raise

        if self._connect_error is not None:
            error = self._connect_error
            await self.close()
            raise MCPConnectionError(self.server_name, str(error) or ERROR_CONNECTION_FAILED) from error

        logger.info(f"{self.server_name} connected via stdio ({self.config.command})", server_id=self.config.id)

    async def _serve(self, server: MCPServerStdio) -> None:
        """Owner task: holds the session from handshake to cleanup."""
        try:
            await server.connect()
        except asyncio.CancelledError:
            await self._cleanup_quietly(server)
            raise
        except Exception as e:
            self._connect_error = e
            await self._cleanup_quietly(server)
            self._ready.set()
            return

        self._server = server
        self._ready.set()
        try:
            await self._closing.wait()
        finally:
            self._server = None
            await self._cleanup_quietly(server)

    def _require_server(self) -> MCPServerStdio:
        if self._server is None:
            raise RuntimeError(f"MCP server {self.server_name} is not connected")
        return self._server

    async def list_tools(self) -> list[Tool]:
        return list(await self._require_server().list_tools())

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        return await self._require_server().call_tool(name, arguments)

    async def close(self) -> None:
        owner, self._owner = self._owner, None
        if owner is None:
            return

        was_connected = self._server is not None
        if self._ready.is_set():
            self._closing.set()
        else:
            owner.cancel()

        _, pending = await asyncio.wait([owner], timeout=self.connect_timeout)
        if pending:
            logger.warning(f"{self.server_name} did not shut down within {self.connect_timeout:g}s, cancelling")
            owner.cancel()
            await asyncio.wait([owner])

        if not owner.cancelled() and owner.exception() is not None:
            logger.warning(f"Error disconnecting {self.server_name}: {owner.exception()}")
        if was_connected:
            logger.info(f"{self.server_name} disconnected", server_id=self.config.id)

    async def _cleanup_quietly(self, server: MCPServerStdio) -> None:
        try:
            await server.cleanup()
        except Exception as e:
            logger.warning(f"Error disconnecting {self.server_name}: {e}")


def create_transport(
    config: ServerConfig,
    connect_timeout: float = MCP_CONNECT_TIMEOUT,
    session_timeout: float = MCP_CLIENT_SESSION_TIMEOUT,
) -> MCPTransport:
    """Factory for the transport of a configured server (stdio only)."""
    return StdioTransport(config, connect_timeout=connect_timeout, session_timeout=session_timeout)
