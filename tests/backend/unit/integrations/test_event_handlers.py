"""Tests for SDK stream event translation."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import patch

import pytest

from integrations.event_handlers import (
    CallTracker,
    build_event_handlers,
    handle_raw_response,
    handle_run_item,
    translate_events,
)
from models.stream_models import TextDelta, ToolCallResult, ToolCallStarted


def raw_delta(text: str, data_type: str = "response.output_text.delta") -> SimpleNamespace:
    return SimpleNamespace(type="raw_response_event", data=SimpleNamespace(type=data_type, delta=text))


def tool_call(name: str | None, call_id: str = "call_1", as_dict: bool = False) -> SimpleNamespace:
    raw: Any = {"name": name, "call_id": call_id} if as_dict else SimpleNamespace(name=name, call_id=call_id)
    return SimpleNamespace(type="run_item_stream_event", item=SimpleNamespace(type="tool_call_item", raw_item=raw))


def tool_output(call_id: str = "call_1") -> SimpleNamespace:
    item = SimpleNamespace(type="tool_call_output_item", call_id=call_id, raw_item={"call_id": call_id})
    return SimpleNamespace(type="run_item_stream_event", item=item)


async def _aiter(events: list[Any]):
    for event in events:
        yield event


class TestCallTracker:
    def test_add_and_pop(self) -> None:
        tracker = CallTracker()
        tracker.add_call("c1", "fs__read")

        assert tracker.active_calls == {"c1": "fs__read"}
        assert tracker.pop_call_by_id("c1") == "fs__read"
        assert tracker.pop_call_by_id("c1") is None

    def test_duplicate_and_empty_ids_ignored(self) -> None:
        tracker = CallTracker()
        tracker.add_call("c1", "first")
        tracker.add_call("c1", "second")
        tracker.add_call("", "anonymous")

        assert tracker.drain_all() == [("c1", "first")]
        assert tracker.active_calls == {}


class TestRawEvents:
    def test_text_delta(self) -> None:
        assert handle_raw_response(raw_delta("Hel"), CallTracker()) == TextDelta(text="Hel")

    @pytest.mark.parametrize(
        "event",
        [
            raw_delta("", "response.output_text.delta"),
            raw_delta("thinking", "response.reasoning_summary_text.delta"),
            SimpleNamespace(type="raw_response_event", data=None),
        ],
    )
    def test_other_raw_events_dropped(self, event: Any) -> None:
        assert handle_raw_response(event, CallTracker()) is None


class TestRunItemEvents:
    def test_tool_call_tracked(self) -> None:
        tracker = CallTracker()

        event = handle_run_item(tool_call("fs__read", "c9"), tracker)

        assert event == ToolCallStarted(tool_name="fs__read", call_id="c9")
        assert tracker.active_calls == {"c9": "fs__read"}

    def test_dict_raw_item(self) -> None:
        event = handle_run_item(tool_call("fs__read", "c9", as_dict=True), CallTracker())
        assert event == ToolCallStarted(tool_name="fs__read", call_id="c9")

    def test_hosted_tool_without_name_ignored(self) -> None:
        tracker = CallTracker()
        assert handle_run_item(tool_call(None), tracker) is None
        assert tracker.active_calls == {}

    def test_output_matched_by_call_id(self) -> None:
        tracker = CallTracker()
        tracker.add_call("a", "svc__one")
        tracker.add_call("b", "svc__two")

        # Parallel calls can finish out of order
        assert handle_run_item(tool_output("b"), tracker) == ToolCallResult(tool_name="svc__two", call_id="b")
        assert handle_run_item(tool_output("a"), tracker) == ToolCallResult(tool_name="svc__one", call_id="a")

    def test_untracked_output_dropped(self) -> None:
        assert handle_run_item(tool_output("ghost"), CallTracker()) is None

    def test_message_items_ignored(self) -> None:
        event = SimpleNamespace(type="run_item_stream_event", item=SimpleNamespace(type="message_output_item"))
        assert handle_run_item(event, CallTracker()) is None


class TestTranslateEvents:
    def test_handler_table(self) -> None:
        assert set(build_event_handlers()) == {"raw_response_event", "run_item_stream_event"}

    @pytest.mark.asyncio
    async def test_preserves_order_and_skips_unknown(self) -> None:
        events = [
            raw_delta("Let me check. "),
            SimpleNamespace(type="agent_updated_stream_event"),
            tool_call("fs__read", "c1"),
            tool_output("c1"),
            raw_delta("Done."),
        ]

        translated = [e async for e in translate_events(_aiter(events))]

        assert translated == [
            TextDelta(text="Let me check. "),
            ToolCallStarted(tool_name="fs__read", call_id="c1"),
            ToolCallResult(tool_name="fs__read", call_id="c1"),
            TextDelta(text="Done."),
        ]

    @pytest.mark.asyncio
    async def test_shared_tracker_sees_completed_calls(self) -> None:
        tracker = CallTracker()
        tracker.add_call("earlier", "svc__slow")

        translated = [e async for e in translate_events(_aiter([tool_output("earlier")]), tracker)]

        assert translated == [ToolCallResult(tool_name="svc__slow", call_id="earlier")]
        assert tracker.active_calls == {}

    @pytest.mark.asyncio
    async def test_unfinished_calls_drained_at_stream_end(self) -> None:
        tracker = CallTracker()

        with patch("integrations.event_handlers.registry.logger") as mock_logger:
            async for _ in translate_events(_aiter([tool_call("fs__read", "open")]), tracker):
                pass

        assert tracker.active_calls == {}
        mock_logger.warning.assert_called_once()
        assert "fs__read" in mock_logger.warning.call_args.args[0]
