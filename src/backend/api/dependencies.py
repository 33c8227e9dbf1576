from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from api.services.chat_service import ChatService
from core.app_store import AppStore
from core.constants import Settings
from integrations.mcp_manager import MCPServerManager


def get_app_settings(request: Request) -> Settings:
    """Provide the settings the application was created with.

    Usage in routes:
        @router.get("/example")
        async def example(settings: AppSettings):
            return {"debug": settings.debug}
    """
    return request.app.state.settings


def get_store(request: Request) -> AppStore:
    """Get the settings store from application state."""
    return request.app.state.store


def get_mcp_manager(request: Request) -> MCPServerManager:
    """Get MCP server manager from application state."""
    return request.app.state.mcp_manager


def get_chat_service(
    store: Annotated[AppStore, Depends(get_store)],
    mcp_manager: Annotated[MCPServerManager, Depends(get_mcp_manager)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ChatService:
    return ChatService(store=store, mcp_manager=mcp_manager, settings=settings)


# Type aliases for cleaner route signatures
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Store = Annotated[AppStore, Depends(get_store)]
MCPManager = Annotated[MCPServerManager, Depends(get_mcp_manager)]
Chat = Annotated[ChatService, Depends(get_chat_service)]
