"""
Chat service: one streamed model completion per request.

Resolves credentials and model from the settings store, aggregates the tools
of all connected MCP servers, runs the agent with those tools and returns the
multiplexed byte stream.
"""

from __future__ import annotations

import time

from collections.abc import AsyncIterator
from typing import Any

import httpx

from agents import Agent, OpenAIChatCompletionsModel, RunResultStreaming, Runner

from api.middleware.exception_handlers import ConfigurationError, ValidationException
from api.services.stream_multiplexer import multiplex
from core.app_store import AppStore
from core.constants import ASSISTANT_AGENT_NAME, ERROR_MISSING_CREDENTIALS, FALLBACK_MODEL, Settings
from integrations.event_handlers import CallTracker, translate_events
from integrations.mcp_manager import MCPServerManager
from models.schemas.chat import MODEL_INPUT_ROLES, ChatMessage, ChatRequest
from models.schemas.settings import OpenAIConfig
from utils.client_factory import create_http_client, create_openai_client
from utils.logger import logger


def resolve_model(requested: str | None, openai_config: OpenAIConfig) -> str:
    """Requested model, else the first enabled configured model, else the fallback."""
    if requested:
        return requested
    return openai_config.first_enabled_model() or FALLBACK_MODEL


def to_model_input(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Convert chat history to SDK input items.

    Only system/user/assistant messages reach the model; data and tool
    messages are display-only.
    """
    return [{"role": m.role, "content": m.content} for m in messages if m.role in MODEL_INPUT_ROLES]


def _last_user_text(messages: list[ChatMessage]) -> str:
    return next((m.content for m in reversed(messages) if m.role == "user"), "")


class ChatService:
    """Runs chat turns against the configured provider."""

    def __init__(self, store: AppStore, mcp_manager: MCPServerManager, settings: Settings):
        self.store = store
        self.mcp_manager = mcp_manager
        self.settings = settings

    async def stream_chat(self, request: ChatRequest) -> AsyncIterator[bytes]:
        """Validate the request and start the completion.

        Everything that can be rejected up front (credentials, empty input) is
        raised here, before the response starts. Errors after that point end
        the stream instead.

        Raises:
            ConfigurationError: API key or base URL missing
            ValidationException: No message the model can consume
        """
        openai_config = self.store.get_openai_config()
        if not openai_config.apiKey or not openai_config.baseURL:
            raise ConfigurationError(ERROR_MISSING_CREDENTIALS)

        model_input = to_model_input(request.messages)
        if not model_input:
            raise ValidationException("No system, user or assistant messages to send")

        model_name = resolve_model(request.model, openai_config)
        tool_set = await self.mcp_manager.build_tool_set()

        http_client = create_http_client(
            enable_logging=self.settings.http_request_logging,
            read_timeout=self.settings.http_read_timeout,
        )
        openai_client = create_openai_client(
            api_key=openai_config.apiKey,
            base_url=openai_config.baseURL,
            http_client=http_client,
        )

        agent = Agent(
            name=ASSISTANT_AGENT_NAME,
            model=OpenAIChatCompletionsModel(model=model_name, openai_client=openai_client),
            tools=[tool.as_function_tool() for tool in tool_set.values()],
        )

        logger.info(f"Starting chat turn: model={model_name}, tools={len(tool_set)}, messages={len(model_input)}")
        result = Runner.run_streamed(
            agent,
            input=model_input,  # type: ignore[arg-type]  # SDK accepts dict messages
            max_turns=self.settings.max_tool_steps,
        )

        return self._stream(
            result,
            http_client,
            user_input=_last_user_text(request.messages),
            model_name=model_name,
            tool_names=sorted(tool_set),
        )

    async def _stream(
        self,
        result: RunResultStreaming,
        http_client: httpx.AsyncClient,
        user_input: str,
        model_name: str,
        tool_names: list[str],
    ) -> AsyncIterator[bytes]:
        started = time.perf_counter()
        try:
            async for chunk in multiplex(translate_events(result.stream_events(), CallTracker())):
                yield chunk
        finally:
            if not result.is_complete:
                # Client went away mid-turn
                result.cancel()
            await http_client.aclose()
            logger.log_chat_turn(
                user_input=user_input,
                model=model_name,
                tool_count=len(tool_names),
                tool_names=tool_names,
                duration_ms=(time.perf_counter() - started) * 1000,
            )
