"""
Health check endpoint.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter

from models.schemas.health import HealthResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Liveness probe; reports the current server time.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=datetime.now(UTC).isoformat())
