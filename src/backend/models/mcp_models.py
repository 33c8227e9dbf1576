"""
Pydantic models for MCP (Model Context Protocol) server configuration.

These models describe:
- Configured tool servers (ServerConfig)
- Connection status snapshots (ServerStatus)
- The standard ``mcpServers`` JSON descriptor (MCPConfigFile)
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConnectionStatus(str, Enum):
    """Lifecycle state of one tool-server connection."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    DISCONNECTED = "disconnected"


class ServerConfig(BaseModel):
    """A configured MCP tool server, launched as a child process over stdio."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "filesystem",
                "name": "filesystem",
                "command": "npx",
                "args": ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"],
                "env": {},
                "enabled": True,
            }
        }
    )

    id: str = Field(..., min_length=1, description="Stable unique key")
    name: str = Field(..., description="Display name, used as the tool namespace")
    command: str = Field(default="", description="Executable to spawn")
    args: list[str] = Field(default_factory=list, description="Ordered command arguments")
    env: dict[str, str] = Field(default_factory=dict, description="Overrides merged over the inherited environment")
    enabled: bool = Field(default=True, description="Whether the server should be connected")


class ServerStatus(BaseModel):
    """Read-only snapshot of one connection."""

    id: str
    name: str
    status: ConnectionStatus
    error: str | None = None


class MCPServerEntry(BaseModel):
    """One entry of an ``mcpServers`` descriptor; missing fields default to empty."""

    model_config = ConfigDict(extra="ignore")

    command: str = ""
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("command", mode="before")
    @classmethod
    def _none_command(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("args", "env", mode="before")
    @classmethod
    def _none_collection(cls, v: Any, info: Any) -> Any:
        if v is None:
            return [] if info.field_name == "args" else {}
        return v


class MCPConfigFile(BaseModel):
    """Standard MCP descriptor file: ``{"mcpServers": {"<name>": {...}}}``."""

    model_config = ConfigDict(extra="ignore")

    mcpServers: dict[str, MCPServerEntry] = Field(default_factory=dict)

    @field_validator("mcpServers", mode="before")
    @classmethod
    def _none_servers(cls, v: Any) -> Any:
        return {} if v is None else v

    def to_server_configs(self) -> list[ServerConfig]:
        """One enabled ServerConfig per entry, keyed and named by the entry name."""
        return [
            ServerConfig(
                id=name,
                name=name,
                command=entry.command,
                args=list(entry.args),
                env=dict(entry.env),
                enabled=True,
            )
            for name, entry in self.mcpServers.items()
        ]


def parse_mcp_config(raw: str) -> list[ServerConfig]:
    """Parse descriptor JSON text into server configs.

    Raises:
        pydantic.ValidationError: If the text is not valid JSON or has the wrong shape.
    """
    return MCPConfigFile.model_validate_json(raw).to_server_configs()
