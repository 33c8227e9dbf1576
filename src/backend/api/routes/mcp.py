"""
MCP server configuration and connection management endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import ValidationError

from api.dependencies import MCPManager, Store
from models.mcp_models import ServerConfig, ServerStatus
from models.schemas.mcp import ConfigPathPayload, ImportConfigRequest, ImportConfigResult, SuccessResponse
from utils.logger import logger

router = APIRouter()


@router.get("/servers", response_model=list[ServerConfig], summary="List configured servers")
def list_servers(store: Store) -> list[ServerConfig]:
    return store.get_mcp_servers()


@router.put("/servers", response_model=SuccessResponse, summary="Replace configured servers")
def save_servers(servers: list[ServerConfig], store: Store) -> SuccessResponse:
    """Stores the list only; call /refresh to apply it to live connections."""
    store.save_mcp_servers(servers)
    return SuccessResponse()


@router.get("/config-path", response_model=ConfigPathPayload, summary="Get descriptor file path")
def get_config_path(store: Store) -> ConfigPathPayload:
    return ConfigPathPayload(path=store.get_mcp_config_path())


@router.put("/config-path", response_model=SuccessResponse, summary="Set descriptor file path")
def set_config_path(payload: ConfigPathPayload, store: Store) -> SuccessResponse:
    store.set_mcp_config_path(payload.path)
    return SuccessResponse()


@router.post("/import", response_model=ImportConfigResult, summary="Import an mcpServers file")
def import_config(payload: ImportConfigRequest, store: Store) -> ImportConfigResult:
    """Replace the server list from a descriptor file.

    Failures are reported in the body (``success: false``) rather than as an
    HTTP error.
    """
    try:
        servers = store.import_mcp_config(payload.path)
    except (OSError, UnicodeDecodeError, ValidationError) as e:
        logger.warning(f"MCP config import failed for {payload.path}: {e}")
        return ImportConfigResult(success=False, error=str(e) or "Failed to parse config")
    return ImportConfigResult(success=True, count=len(servers))


@router.post("/refresh", response_model=SuccessResponse, summary="Reconcile connections")
async def refresh_connections(store: Store, mcp_manager: MCPManager) -> SuccessResponse:
    """Connect newly enabled or failed servers and drop removed ones."""
    await mcp_manager.reconcile(store.get_mcp_servers())
    return SuccessResponse()


@router.get("/status", response_model=list[ServerStatus], summary="Connection status")
async def connection_status(mcp_manager: MCPManager) -> list[ServerStatus]:
    return mcp_manager.list_status()
