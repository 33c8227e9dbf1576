"""
API Router - Aggregates all endpoints.

Usage in main.py:
    from api.routes import router as api_router
    app.include_router(api_router, prefix="/api")
"""

from fastapi import APIRouter

from api.routes import chat, health, mcp, sessions, settings

router = APIRouter()

router.include_router(health.router, tags=["Health"])
router.include_router(chat.router, tags=["Chat"])
router.include_router(settings.router, tags=["Settings"])
router.include_router(mcp.router, prefix="/mcp", tags=["MCP"])
router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])

__all__ = ["router"]
