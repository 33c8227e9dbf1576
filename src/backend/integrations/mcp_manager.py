"""
MCP Server Manager - connection registry for configured tool servers.

Owns one connection per configured server ID. Each connection moves through
connecting -> connected | error and is removed again on disconnect. Operations
on the same ID are serialized, so there is never more than one live transport
per server even when reconcile/connect/disconnect calls overlap.
"""

from __future__ import annotations

import asyncio

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from core.constants import ERROR_CONNECTION_FAILED, MCP_CLIENT_SESSION_TIMEOUT, MCP_CONNECT_TIMEOUT
from integrations.mcp_transport import MCPConnectionError, MCPTransport, create_transport
from integrations.tool_aggregator import ToolDescriptor, build_tool_set
from models.mcp_models import ConnectionStatus, ServerConfig, ServerStatus
from utils.logger import logger

TransportFactory = Callable[..., MCPTransport]


@dataclass(slots=True)
class Connection:
    """A registered tool server and the state of its session."""

    config: ServerConfig
    transport: MCPTransport
    status: ConnectionStatus = ConnectionStatus.CONNECTING
    error: str | None = None

    def snapshot(self) -> ServerStatus:
        return ServerStatus(id=self.config.id, name=self.config.name, status=self.status, error=self.error)


class MCPServerManager:
    """Registry of MCP server connections.

    Owned by the application (``app.state.mcp_manager``); there is no global
    instance.
    """

    def __init__(
        self,
        connect_timeout: float = MCP_CONNECT_TIMEOUT,
        session_timeout: float = MCP_CLIENT_SESSION_TIMEOUT,
        transport_factory: TransportFactory = create_transport,
    ) -> None:
        self._connections: dict[str, Connection] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._connect_timeout = connect_timeout
        self._session_timeout = session_timeout
        self._transport_factory = transport_factory

    def _lock_for(self, server_id: str) -> asyncio.Lock:
        lock = self._locks.get(server_id)
        if lock is None:
            lock = self._locks[server_id] = asyncio.Lock()
        return lock

    async def initialize(self, configs: Iterable[ServerConfig]) -> None:
        """Connect every enabled server concurrently.

        One server failing to start does not affect the others.
        """
        enabled = [c for c in configs if c.enabled]
        logger.info(f"Initializing MCP server manager for: {[c.name for c in enabled]}")

        await asyncio.gather(*(self.connect(c) for c in enabled))

        connected = sum(1 for c in self._connections.values() if c.status == ConnectionStatus.CONNECTED)
        logger.info(f"MCP manager initialized with {connected}/{len(enabled)} servers")

    async def reconcile(self, configs: Iterable[ServerConfig]) -> None:
        """Bring connections in line with the enabled configs.

        Connections whose ID is no longer enabled are torn down. Enabled IDs
        without a connection, or whose connection failed, are (re)connected.
        Connected and connecting servers are left alone.
        """
        target = {c.id: c for c in configs if c.enabled}

        stale = [server_id for server_id in self._connections if server_id not in target]
        if stale:
            await asyncio.gather(*(self.disconnect(server_id) for server_id in stale))

        pending = [
            config
            for server_id, config in target.items()
            if server_id not in self._connections
            or self._connections[server_id].status in (ConnectionStatus.ERROR, ConnectionStatus.DISCONNECTED)
        ]
        if pending:
            await asyncio.gather(*(self.connect(c) for c in pending))

        logger.info(f"MCP connections refreshed: {len(stale)} removed, {len(pending)} (re)connected")

    async def connect(self, config: ServerConfig) -> Connection:
        """Connect one server, replacing any existing connection for its ID.

        Never raises for connection failures; the outcome is recorded on the
        returned connection.
        """
        async with self._lock_for(config.id):
            await self._disconnect_locked(config.id)

            transport = self._transport_factory(
                config,
                connect_timeout=self._connect_timeout,
                session_timeout=self._session_timeout,
            )
            connection = Connection(config=config, transport=transport)
            self._connections[config.id] = connection

            try:
                await transport.connect()
            except MCPConnectionError as e:
                connection.status = ConnectionStatus.ERROR
                connection.error = e.message or ERROR_CONNECTION_FAILED
                logger.error(f"Failed to connect MCP server {config.name}: {connection.error}", server_id=config.id)
                return connection
            except Exception as e:
                connection.status = ConnectionStatus.ERROR
                connection.error = str(e) or ERROR_CONNECTION_FAILED
                logger.error(f"Failed to connect MCP server {config.name}: {e}", exc_info=True, server_id=config.id)
                return connection
            except asyncio.CancelledError:
                self._connections.pop(config.id, None)
                await transport.close()
                raise

            connection.status = ConnectionStatus.CONNECTED
            logger.info(f"MCP server connected: {config.name}", server_id=config.id)
            return connection

    async def disconnect(self, server_id: str) -> None:
        """Close and forget a connection. No-op if the ID is unknown."""
        async with self._lock_for(server_id):
            await self._disconnect_locked(server_id)

    async def _disconnect_locked(self, server_id: str) -> None:
        connection = self._connections.pop(server_id, None)
        if connection is None:
            return
        try:
            await connection.transport.close()
        except Exception as e:
            logger.warning(f"Error closing MCP server {connection.config.name}: {e}", server_id=server_id)

    def list_status(self) -> list[ServerStatus]:
        """Snapshot of every connection, in registration order."""
        return [c.snapshot() for c in self._connections.values()]

    def get_connections(self) -> list[Connection]:
        return list(self._connections.values())

    async def build_tool_set(self) -> dict[str, ToolDescriptor]:
        """Aggregate the tools of all connected servers."""
        return await build_tool_set(self.get_connections())

    async def shutdown(self) -> None:
        """Disconnect every server concurrently."""
        logger.info("Shutting down MCP server manager")

        server_ids = list(self._connections)
        results = await asyncio.gather(*(self.disconnect(s) for s in server_ids), return_exceptions=True)
        for server_id, result in zip(server_ids, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(f"Error shutting down {server_id}: {result}")

        logger.info("MCP server manager shutdown complete")
