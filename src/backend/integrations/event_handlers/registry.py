"""
Unified event handler registry for Agent/Runner streaming.

Maps SDK stream event types to handlers and translates a whole SDK event
stream into the model-completion events the multiplexer encodes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from core.constants import RAW_RESPONSE_EVENT, RUN_ITEM_STREAM_EVENT
from models.stream_models import ModelEvent
from utils.logger import logger

from .base import CallTracker, EventHandler
from .raw_events import handle_raw_response
from .run_item_events import handle_run_item


def build_event_handlers() -> dict[str, EventHandler]:
    """Handlers keyed by top-level SDK event type.

    - RAW_RESPONSE_EVENT: token-level text deltas
    - RUN_ITEM_STREAM_EVENT: tool calls and tool outputs
    """
    return {
        RAW_RESPONSE_EVENT: handle_raw_response,
        RUN_ITEM_STREAM_EVENT: handle_run_item,
    }


async def translate_events(
    events: AsyncIterator[Any],
    tracker: CallTracker | None = None,
) -> AsyncIterator[ModelEvent]:
    """Yield the translated events of an SDK event stream, in order.

    Event types without a handler (agent updates and the like) are skipped.
    Calls still open when the stream ends are drained and logged.
    """
    tracker = tracker if tracker is not None else CallTracker()
    handlers = build_event_handlers()

    async for event in events:
        handler = handlers.get(getattr(event, "type", ""))
        if handler is None:
            continue
        translated = handler(event, tracker)
        if translated is not None:
            yield translated

    for call_id, tool_name in tracker.drain_all():
        logger.warning(f"Tool call {tool_name} (call_id: {call_id}) never produced an output")
