"""
Stream multiplexer: model-completion events -> one text/plain byte stream.

Text deltas are written verbatim; tool lifecycle events become marker lines
(see core.marker_protocol). Events are encoded one at a time in arrival
order, never batched, so the client sees tool status as soon as it changes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from core.marker_protocol import encode_tool_end, encode_tool_start
from models.stream_models import ModelEvent, TextDelta, ToolCallResult, ToolCallStarted
from utils.logger import logger


def encode_event(event: ModelEvent) -> str | None:
    """Wire text for one event, or None for events that are not sent."""
    if isinstance(event, TextDelta):
        return event.text or None
    if isinstance(event, ToolCallStarted):
        return encode_tool_start(event.tool_name)
    if isinstance(event, ToolCallResult):
        return encode_tool_end(event.tool_name)
    return None


async def multiplex(events: AsyncIterator[ModelEvent]) -> AsyncIterator[bytes]:
    """Encode an event stream as UTF-8 chunks.

    An error while iterating the source ends the output after logging it; the
    HTTP response then terminates normally with what was already sent.
    Cancellation (client disconnect) propagates.
    """
    try:
        async for event in events:
            chunk = encode_event(event)
            if chunk:
                yield chunk.encode("utf-8")
    except Exception as e:
        logger.error(f"Chat stream terminated by error: {e}", exc_info=True)
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
