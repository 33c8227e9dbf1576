"""
Chat API schemas.

Request/response models for the streaming chat endpoint and the
message shape shared with the settings store and the chat client.
"""

from __future__ import annotations

import uuid

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MessageRole = Literal["system", "user", "assistant", "data", "tool"]
ToolCallState = Literal["running", "done"]

#: Roles forwarded to the model; the rest are UI-only
MODEL_INPUT_ROLES: frozenset[str] = frozenset({"system", "user", "assistant"})


class ToolCallInfo(BaseModel):
    """Display status of one tool invocation within an assistant message."""

    toolName: str = Field(..., description="Namespaced tool name (server__tool)")
    status: ToolCallState = Field(default="running", description="running until the result arrives")


class ChatMessage(BaseModel):
    """One chat message."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f1c2b9e-6a7d-4f1e-9c55-2d7f0d8b1a42",
                "role": "user",
                "content": "What files are in /tmp?",
            }
        }
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Message ID (generated when absent)")
    role: MessageRole = Field(..., description="Message author role")
    content: str = Field(default="", description="Message text")
    toolCalls: list[ToolCallInfo] | None = Field(
        default=None,
        description="Tool calls made while producing this message (assistant only)",
    )


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "messages": [{"role": "user", "content": "Hello"}],
                "model": "gpt-4o",
            }
        }
    )

    messages: list[ChatMessage] = Field(..., description="Full chat history, oldest first")
    model: str | None = Field(default=None, description="Model ID (defaults to the first enabled model)")
