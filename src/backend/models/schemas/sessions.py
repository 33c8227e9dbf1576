"""
Session-related API schemas.

Chat sessions are stored newest first in the settings store.
"""

from __future__ import annotations

import uuid

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from models.schemas.chat import ChatMessage

DEFAULT_SESSION_TITLE = "New Chat"


class ChatSession(BaseModel):
    """A stored conversation."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "title": "New Chat",
                "createdAt": "2024-01-01T12:00:00+00:00",
                "messages": [],
            }
        }
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(default=DEFAULT_SESSION_TITLE)
    createdAt: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    messages: list[ChatMessage] = Field(default_factory=list)


class UpdateSessionRequest(BaseModel):
    """Replace a session's messages and optionally rename it."""

    messages: list[ChatMessage] = Field(..., description="Full message list")
    title: str | None = Field(default=None, description="New title (empty or omitted keeps the old one)")
