"""
Chat-turn client with tool marker demultiplexing.

Posts the chat history to the streaming endpoint, re-parses the accumulated
body after every chunk and keeps the assistant message (text and tool-call
statuses) up to date while it streams.

Turn lifecycle:

    idle -> submitted -> streaming -> ready
                  \\            \\-> ready (stop or read error, partial reply kept)
                   \\-> error (HTTP error) | ready (stop)
"""

from __future__ import annotations

import asyncio

from collections.abc import Callable
from enum import Enum
from typing import Any

import httpx

from core.marker_protocol import parse_stream
from models.schemas.chat import ChatMessage
from utils.client_factory import create_http_client
from utils.logger import logger


class ChatStatus(str, Enum):
    """State of the current chat turn."""

    IDLE = "idle"
    SUBMITTED = "submitted"
    STREAMING = "streaming"
    READY = "ready"
    ERROR = "error"


class ChatClientError(Exception):
    """The chat endpoint rejected the request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SimpleChatClient:
    """Client for one conversation against ``POST /api/chat``."""

    def __init__(
        self,
        api_url: str,
        http_client: httpx.AsyncClient | None = None,
        initial_messages: list[ChatMessage] | None = None,
        session_id: str | None = None,
        on_finish: Callable[[ChatMessage], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_update: Callable[[ChatMessage], None] | None = None,
    ):
        """Initialize the client.

        Args:
            api_url: Full URL of the chat endpoint
            http_client: Client to use; one with streaming timeouts is created if omitted
            initial_messages: Existing conversation history
            session_id: Sent along as ``id`` with every request
            on_finish: Called with the final assistant message of each turn
            on_error: Called when a turn fails
            on_update: Called with the assistant message after every chunk
        """
        self.api_url = api_url
        self.session_id = session_id
        self.messages: list[ChatMessage] = list(initial_messages or [])
        self.status = ChatStatus.IDLE
        self.error: Exception | None = None

        self._on_finish = on_finish
        self._on_error = on_error
        self._on_update = on_update
        self._owns_client = http_client is None
        self._client = http_client or create_http_client()
        self._abort_handle: asyncio.Task[Any] | None = None
        self._stopped = False

    async def __aenter__(self) -> SimpleChatClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def stop(self) -> None:
        """Abort the in-flight turn; the status becomes ``ready`` immediately."""
        task, self._abort_handle = self._abort_handle, None
        if task is None:
            return
        self._stopped = True
        self.status = ChatStatus.READY
        task.cancel()

    async def send_message(
        self,
        content: str,
        model: str | None = None,
        body: dict[str, Any] | None = None,
    ) -> ChatMessage | None:
        """Send a user message and stream the reply.

        Args:
            content: User message text
            model: Model ID (server default if omitted)
            body: Extra fields merged into the request body

        Returns:
            The assistant message, or None if the turn failed or was stopped
            before the reply started
        """
        self.status = ChatStatus.SUBMITTED
        self.error = None
        self._stopped = False
        self.messages.append(ChatMessage(role="user", content=content))

        payload: dict[str, Any] = {
            "messages": [m.model_dump(exclude_none=True) for m in self.messages],
            "id": self.session_id,
        }
        if model:
            payload["model"] = model
        if body:
            payload.update(body)

        self._abort_handle = asyncio.current_task()
        try:
            return await self._run_turn(payload)
        except asyncio.CancelledError:
            if not self._swallow_stop():
                raise
            self.status = ChatStatus.READY
            return None
        except (ChatClientError, httpx.HTTPError) as e:
            logger.error(f"Chat error: {e}")
            self.error = e
            self.status = ChatStatus.ERROR
            if self._on_error:
                self._on_error(e)
            return None
        finally:
            self._abort_handle = None

    def _swallow_stop(self) -> bool:
        """Absorb the cancellation caused by stop(); other cancellations propagate."""
        if not self._stopped:
            return False
        self._stopped = False
        task = asyncio.current_task()
        if task is not None:
            task.uncancel()
        return True

    async def _run_turn(self, payload: dict[str, Any]) -> ChatMessage:
        async with self._client.stream("POST", self.api_url, json=payload) as response:
            if not response.is_success:
                raise ChatClientError(await _error_message(response), response.status_code)

            assistant = ChatMessage(role="assistant", content="", toolCalls=[])
            self.messages.append(assistant)
            self.status = ChatStatus.STREAMING

            raw = ""
            try:
                async for chunk in response.aiter_text():
                    raw += chunk
                    self._apply(assistant, raw)
            except asyncio.CancelledError:
                if not self._swallow_stop():
                    raise
            except httpx.HTTPError as e:
                # Keep whatever arrived before the connection broke
                logger.warning(f"Stream reading error: {e}")

        self._apply(assistant, raw)
        self.status = ChatStatus.READY
        if self._on_finish:
            self._on_finish(assistant)
        return assistant

    def _apply(self, assistant: ChatMessage, raw: str) -> None:
        parsed = parse_stream(raw)
        assistant.content = parsed.display_text.strip()
        assistant.toolCalls = parsed.tool_calls
        if self._on_update:
            self._on_update(assistant)


async def _error_message(response: httpx.Response) -> str:
    """``error`` field of a JSON error body, else a status line."""
    message = f"API error: {response.status_code} {response.reason_phrase}".rstrip()
    await response.aread()
    try:
        body = response.json()
    except ValueError:
        return message
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return message
