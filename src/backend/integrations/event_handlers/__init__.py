"""
Event handler package for Agent/Runner streaming.

Translates agents SDK stream events into model-completion events:
- base: CallTracker and the handler signature
- raw_events: token-level text deltas
- run_item_events: tool call / tool output items
- registry: handler table and the stream translator

Usage:
    from integrations.event_handlers import translate_events

    async for event in translate_events(result.stream_events()):
        ...
"""

from .base import CallTracker, EventHandler
from .raw_events import handle_raw_response
from .registry import build_event_handlers, translate_events
from .run_item_events import handle_run_item, handle_tool_call, handle_tool_output

__all__ = [
    "CallTracker",
    "EventHandler",
    "build_event_handlers",
    "handle_raw_response",
    "handle_run_item",
    "handle_tool_call",
    "handle_tool_output",
    "translate_events",
]
