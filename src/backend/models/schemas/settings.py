"""
Settings API schemas.

Models for the persisted application settings: provider credentials,
the model list, MCP server configuration and the theme.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from core.constants import DEFAULT_BASE_URL, DEFAULT_MODELS
from models.mcp_models import ServerConfig
from models.schemas.sessions import ChatSession

Theme = Literal["light", "dark", "system"]


class ModelEntry(BaseModel):
    """A model the user can pick in the chat UI."""

    id: str = Field(..., description="Model ID sent to the provider")
    name: str = Field(..., description="Display name")
    enabled: bool = Field(default=True, description="Shown in the model picker")


def _default_models() -> list[ModelEntry]:
    return [ModelEntry(id=model_id, name=name, enabled=True) for model_id, name in DEFAULT_MODELS]


class OpenAIConfig(BaseModel):
    """OpenAI-compatible provider settings."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "apiKey": "sk-...",
                "baseURL": "https://api.openai.com/v1",
                "models": [{"id": "gpt-4o", "name": "GPT-4o", "enabled": True}],
            }
        }
    )

    apiKey: str = Field(default="", description="Provider API key")
    baseURL: str = Field(default=DEFAULT_BASE_URL, description="Provider base URL")
    models: list[ModelEntry] = Field(default_factory=_default_models, description="Configured models")

    def first_enabled_model(self) -> str | None:
        return next((m.id for m in self.models if m.enabled), None)


class MCPSettings(BaseModel):
    """Stored MCP configuration."""

    servers: list[ServerConfig] = Field(default_factory=list)
    configPath: str = Field(default="", description="Last imported descriptor file")


class StoreData(BaseModel):
    """Complete contents of the settings store file."""

    model_config = ConfigDict(extra="ignore")

    theme: Theme = "system"
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    sessions: list[ChatSession] = Field(default_factory=list)


class SettingsResponse(BaseModel):
    """GET /api/settings."""

    theme: Theme
    openai: OpenAIConfig


class SettingsUpdate(BaseModel):
    """PUT /api/settings. Omitted sections are left unchanged."""

    theme: Theme | None = None
    openai: OpenAIConfig | None = None
