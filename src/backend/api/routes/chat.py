"""
Streaming chat endpoint.

The response body is text/plain: assistant text interleaved with tool marker
lines, flushed per model event.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from api.dependencies import Chat
from core.constants import CHAT_STREAM_MEDIA_TYPE
from models.error_models import ErrorResponse
from models.schemas.chat import ChatRequest

router = APIRouter()


@router.post(
    "/chat",
    response_class=StreamingResponse,
    summary="Stream a chat completion",
    responses={
        200: {"description": "Chunked text stream with inline tool markers", "content": {"text/plain": {}}},
        400: {"model": ErrorResponse, "description": "Missing credentials or invalid request"},
        500: {"model": ErrorResponse, "description": "Completion could not be started"},
    },
)
async def chat(request: ChatRequest, service: Chat) -> StreamingResponse:
    stream = await service.stream_chat(request)
    return StreamingResponse(stream, media_type=CHAT_STREAM_MEDIA_TYPE)
