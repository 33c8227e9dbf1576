"""
FruitsAI - Local chat backend with MCP tool servers
===================================================

FastAPI backend that streams chat completions from any OpenAI-compatible
provider and lets the model call tools exposed by MCP servers.

Key Features:
    - **Streaming Chat**: One text/plain stream per turn with inline tool markers
    - **Agent/Runner Pattern**: OpenAI Agents SDK drives the model/tool loop
    - **MCP Integration**: Any stdio MCP server, imported from an ``mcpServers`` file
    - **Local Settings Store**: Credentials, models, servers and sessions in one JSON file
    - **Structured Logging**: JSON log files with rotation and session correlation

Modules:
    api: FastAPI app, routes, services and exception handlers
    client: Chat-turn client that demultiplexes the chat stream
    core: Settings, the JSON store and the tool marker protocol
    integrations: MCP transports, connection registry, tool aggregation, SDK events
    models: Pydantic models and stream event types
    utils: Logging and HTTP/OpenAI client factories
"""
