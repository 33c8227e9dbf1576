"""
FastAPI application entry point.

The app owns one settings store and one MCP connection registry, both kept on
``app.state``. Startup syncs the server list from the stored descriptor file
and connects every enabled server; shutdown disconnects them all.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from agents import set_tracing_disabled
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware.exception_handlers import register_exception_handlers
from api.routes import router as api_router
from core.app_store import AppStore
from core.constants import Settings, get_settings
from integrations.mcp_manager import MCPServerManager
from utils.logger import configure_uvicorn_logging, logger

# Configure uvicorn logging at module level to ensure workers use it
configure_uvicorn_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: connect MCP servers on startup, disconnect on shutdown."""
    # Requests go to arbitrary OpenAI-compatible endpoints; the tracing exporter would 401
    set_tracing_disabled(True)

    store: AppStore = app.state.store
    mcp_manager: MCPServerManager = app.state.mcp_manager

    store.sync_from_config_file()
    await mcp_manager.initialize(store.get_mcp_servers())

    try:
        yield
    finally:
        logger.info("Initiating graceful shutdown sequence")
        await mcp_manager.shutdown()


def create_app(
    settings: Settings | None = None,
    store: AppStore | None = None,
    mcp_manager: MCPServerManager | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Defaults to the cached environment settings
        store: Defaults to the JSON store under ``settings.data_dir``
        mcp_manager: Defaults to a fresh registry using the settings' timeouts
    """
    settings = settings or get_settings()

    if settings.debug:
        from core.constants import _get_env_files

        logger.info(f"Env files: {[f.name for f in _get_env_files()]}")
        logger.info(f"Settings: app_env={settings.app_env}, data_dir={settings.data_dir}")

    app = FastAPI(
        title="FruitsAI API",
        description="""
## FruitsAI API

Local chat backend for OpenAI-compatible providers with MCP (Model Context
Protocol) tool servers.

### Features
- **Streaming Chat**: text/plain stream with inline tool markers
- **MCP Integration**: any stdio MCP server, imported from a standard `mcpServers` file
- **Settings & Sessions**: persisted in a local JSON store
""",
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Liveness check"},
            {"name": "Chat", "description": "Streaming chat completions"},
            {"name": "Settings", "description": "Theme, provider credentials and models"},
            {"name": "MCP", "description": "Tool server configuration and connections"},
            {"name": "Sessions", "description": "Chat session CRUD operations"},
        ],
    )

    app.state.settings = settings
    app.state.store = store or AppStore(settings.store_path)
    app.state.mcp_manager = mcp_manager or MCPServerManager(
        connect_timeout=settings.mcp_connect_timeout,
        session_timeout=settings.mcp_client_session_timeout,
    )

    # Register global exception handlers for consistent error responses
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_settings().api_host,
        port=get_settings().api_port,
        log_config=None,
    )
