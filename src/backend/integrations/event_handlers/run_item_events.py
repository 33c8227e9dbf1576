"""
Run item event handlers for high-level SDK abstractions.

Handles RUN_ITEM_STREAM_EVENT events from the Agent/Runner framework:
- Tool calls (function invocations)
- Tool outputs (function results)

Message and reasoning items are ignored: their text already arrived as
raw deltas.
"""

from __future__ import annotations

from typing import Any

from core.constants import TOOL_CALL_ITEM, TOOL_CALL_OUTPUT_ITEM
from models.stream_models import ModelEvent, ToolCallResult, ToolCallStarted
from utils.logger import logger

from .base import CallTracker


def _raw_get(raw: Any, key: str) -> Any:
    if isinstance(raw, dict):
        return raw.get(key)
    return getattr(raw, key, None)


def handle_tool_call(item: Any, tracker: CallTracker) -> ToolCallStarted | None:
    """Tool call item: arguments are complete and the tool is about to run."""
    raw = getattr(item, "raw_item", None)
    tool_name = _raw_get(raw, "name")
    if not tool_name:
        # Hosted tools (web search, file search) have no function name
        return None

    call_id = _raw_get(raw, "call_id") or _raw_get(raw, "id") or ""
    tracker.add_call(call_id, tool_name)

    logger.info(f"Function executing: {tool_name} (call_id: {call_id or 'none'})")
    return ToolCallStarted(tool_name=tool_name, call_id=call_id)


def handle_tool_output(item: Any, tracker: CallTracker) -> ToolCallResult | None:
    """Tool output item, matched to its call by call_id."""
    call_id = getattr(item, "call_id", "") or _raw_get(getattr(item, "raw_item", None), "call_id") or ""

    if not call_id:
        logger.warning("Tool output missing call_id - cannot match to tool call")
        return None

    tool_name = tracker.pop_call_by_id(call_id)
    if tool_name is None:
        logger.warning(f"Tool output for untracked call_id: {call_id}")
        return None

    logger.info(f"Function completed: {tool_name} (call_id: {call_id})")
    return ToolCallResult(tool_name=tool_name, call_id=call_id)


def handle_run_item(event: Any, tracker: CallTracker) -> ModelEvent | None:
    item = getattr(event, "item", None)
    item_type = getattr(item, "type", None)

    if item_type == TOOL_CALL_ITEM:
        return handle_tool_call(item, tracker)
    if item_type == TOOL_CALL_OUTPUT_ITEM:
        return handle_tool_output(item, tracker)
    return None
