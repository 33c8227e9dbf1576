"""
Tool aggregation across connected MCP servers.

Collects the tool catalogs of all connected servers into one flat tool set
keyed ``<serverName>__<toolName>``. Each entry carries an executor bound to
its originating server, and can be handed to the agents SDK as a FunctionTool.
"""

from __future__ import annotations

import asyncio
import json

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agents import FunctionTool

from core.constants import TOOL_NAMESPACE_SEPARATOR
from models.mcp_models import ConnectionStatus
from utils.logger import logger

if TYPE_CHECKING:
    from mcp.types import Tool

    from integrations.mcp_manager import Connection

#: Schema used when a server publishes a tool without one
EMPTY_INPUT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}

ToolExecutor = Callable[[dict[str, Any]], Awaitable[str]]


def namespaced_tool_name(server_name: str, tool_name: str) -> str:
    return f"{server_name}{TOOL_NAMESPACE_SEPARATOR}{tool_name}"


def extract_result_text(result: Any) -> str:
    """Flatten an MCP tool result into text for the model.

    Text parts are joined with newlines when the result carries a list of
    content parts; anything else is serialized whole as JSON.
    """
    content = getattr(result, "content", None)
    if content is None and isinstance(result, dict):
        content = result.get("content")

    if isinstance(content, list):
        texts: list[str] = []
        for part in content:
            if isinstance(part, dict):
                if part.get("type") == "text":
                    texts.append(str(part.get("text", "")))
            elif getattr(part, "type", None) == "text":
                texts.append(str(getattr(part, "text", "")))
        return "\n".join(texts)

    if hasattr(result, "model_dump_json"):
        return str(result.model_dump_json(exclude_none=True))
    return json.dumps(result, default=str)


@dataclass(slots=True)
class ToolDescriptor:
    """One aggregated tool, bound to the server that provides it."""

    name: str
    description: str
    input_schema: dict[str, Any]
    server_name: str
    tool_name: str
    executor: ToolExecutor = field(repr=False)

    async def execute(self, arguments: dict[str, Any]) -> str:
        return await self.executor(arguments)

    def as_function_tool(self) -> FunctionTool:
        """Wrap for the agents SDK; arguments arrive as a JSON string."""

        async def on_invoke_tool(_ctx: Any, args_json: str) -> str:
            try:
                arguments = json.loads(args_json) if args_json else {}
            except json.JSONDecodeError as e:
                logger.error(f"Invalid arguments for tool {self.name}: {e}")
                return f"Error calling tool {self.name}: invalid JSON arguments ({e})"
            if not isinstance(arguments, dict):
                return f"Error calling tool {self.name}: arguments must be a JSON object"
            return await self.execute(arguments)

        return FunctionTool(
            name=self.name,
            description=self.description,
            params_json_schema=self.input_schema,
            on_invoke_tool=on_invoke_tool,
            strict_json_schema=False,
        )


def _make_executor(connection: Connection, tool_name: str, key: str) -> ToolExecutor:
    async def execute(arguments: dict[str, Any]) -> str:
        try:
            result = await connection.transport.call_tool(tool_name, arguments)
        except Exception as e:
            logger.error(f"Tool {key} failed: {e}", exc_info=True, server_id=connection.config.id)
            return f"Error calling tool {key}: {e}"

        text = extract_result_text(result)
        logger.log_function_call(key, arguments, text)
        return text

    return execute


def _describe(connection: Connection, tool: Tool) -> ToolDescriptor:
    key = namespaced_tool_name(connection.config.name, tool.name)
    return ToolDescriptor(
        name=key,
        description=tool.description or tool.name,
        input_schema=dict(tool.inputSchema) if tool.inputSchema else dict(EMPTY_INPUT_SCHEMA),
        server_name=connection.config.name,
        tool_name=tool.name,
        executor=_make_executor(connection, tool.name, key),
    )


async def build_tool_set(connections: Sequence[Connection]) -> dict[str, ToolDescriptor]:
    """Build a fresh tool set from every connected server.

    Catalogs are fetched concurrently and merged in connection order, so on a
    name collision the later connection wins. A server whose catalog fetch
    fails contributes no tools.

    Args:
        connections: Registry connections, in registration order

    Returns:
        New mapping of namespaced tool name to descriptor
    """
    connected = [c for c in connections if c.status == ConnectionStatus.CONNECTED]
    results = await asyncio.gather(
        *(c.transport.list_tools() for c in connected),
        return_exceptions=True,
    )

    tools: dict[str, ToolDescriptor] = {}
    for connection, result in zip(connected, results, strict=True):
        if isinstance(result, BaseException):
            logger.error(
                f"Failed to list tools for {connection.config.name}: {result}",
                server_id=connection.config.id,
            )
            continue
        for tool in result:
            try:
                descriptor = _describe(connection, tool)
            except Exception as e:
                logger.error(
                    f"Skipping malformed tool from {connection.config.name}: {e!r}",
                    server_id=connection.config.id,
                )
                continue
            if descriptor.name in tools:
                logger.warning(f"Tool {descriptor.name} registered twice; keeping the later one")
            tools[descriptor.name] = descriptor

    logger.debug(f"Aggregated {len(tools)} tools from {len(connected)} connected server(s)")
    return tools
