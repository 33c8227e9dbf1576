"""
Integrations Module - MCP servers and the Agents SDK
====================================================

Modules:
    mcp_transport: Stdio transport that spawns one MCP server process
    mcp_manager: Connection registry (one connection per configured server)
    tool_aggregator: Namespaced tool set across all connected servers
    event_handlers: Translation of Agent/Runner stream events

MCP Server Manager (mcp_manager.py):
    - Connects enabled servers concurrently; failures stay per-server
    - ``reconcile`` drops removed servers and retries failed ones
    - Per-server locking: never two live transports for one server

Tool Aggregator (tool_aggregator.py):
    - Tool keys are ``<serverName>__<toolName>``
    - Later servers win on key collisions
    - Tool failures are returned to the model as error text

Example:

    from integrations.mcp_manager import MCPServerManager

    manager = MCPServerManager()
    await manager.initialize(store.get_mcp_servers())
    tools = await manager.build_tool_set()

See Also:
    :mod:`api.services.chat_service`: Chat turns using the aggregated tools
"""
