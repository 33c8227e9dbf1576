"""
MCP management API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ConfigPathPayload(BaseModel):
    """Stored descriptor file path."""

    path: str = Field(default="", description="Path of the mcpServers JSON file")


class ImportConfigRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Path of the mcpServers JSON file to import")


class ImportConfigResult(BaseModel):
    """Outcome of a descriptor import; failures are reported, not raised."""

    success: bool
    count: int | None = Field(default=None, description="Number of servers imported")
    error: str | None = Field(default=None, description="Why the import failed")


class SuccessResponse(BaseModel):
    success: bool = True
