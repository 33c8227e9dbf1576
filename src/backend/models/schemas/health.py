"""
Health check API schemas.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Liveness response."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "ok",
                "timestamp": "2024-01-01T12:00:00.000000+00:00",
            }
        }
    )

    status: Literal["ok"] = Field(default="ok", description="Always 'ok' while the process serves requests")
    timestamp: str = Field(..., description="Current server time (ISO 8601)")
