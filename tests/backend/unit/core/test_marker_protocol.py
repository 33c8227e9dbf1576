"""Tests for the inline tool-marker protocol."""

from __future__ import annotations

import pytest

from api.services.stream_multiplexer import encode_event
from core.marker_protocol import encode_tool_end, encode_tool_start, parse_stream
from models.stream_models import TextDelta, ToolCallResult, ToolCallStarted


def _encode(*events: TextDelta | ToolCallStarted | ToolCallResult) -> str:
    return "".join(encode_event(e) or "" for e in events)


class TestEncoding:
    def test_start_marker_is_framed_by_newlines(self) -> None:
        assert encode_tool_start("svc__search") == "\n__TOOL_START__:svc__search\n"

    def test_end_marker_is_framed_by_newlines(self) -> None:
        assert encode_tool_end("svc__search") == "\n__TOOL_END__:svc__search\n"


class TestParseStream:
    def test_plain_text_passes_through(self) -> None:
        parsed = parse_stream("Hello\nworld")
        assert parsed.display_text == "Hello\nworld"
        assert parsed.tool_calls == []

    def test_empty_buffer(self) -> None:
        parsed = parse_stream("")
        assert parsed.display_text == ""
        assert parsed.tool_calls == []

    def test_full_turn_example(self) -> None:
        raw = "Hello \n__TOOL_START__:svc__search\n\n__TOOL_END__:svc__search\ndone"
        parsed = parse_stream(raw)

        assert parsed.display_text == "Hello done"
        assert [(c.toolName, c.status) for c in parsed.tool_calls] == [("svc__search", "done")]

    def test_start_without_end_is_running(self) -> None:
        parsed = parse_stream("Looking\n__TOOL_START__:fs__read\n")
        assert parsed.display_text == "Looking"
        assert [(c.toolName, c.status) for c in parsed.tool_calls] == [("fs__read", "running")]

    def test_repeated_start_while_running_does_not_duplicate(self) -> None:
        raw = encode_tool_start("a__x") + encode_tool_start("a__x")
        parsed = parse_stream(raw)
        assert len(parsed.tool_calls) == 1
        assert parsed.tool_calls[0].status == "running"

    def test_same_tool_twice_in_sequence_yields_two_entries(self) -> None:
        raw = encode_tool_start("a__x") + encode_tool_end("a__x") + encode_tool_start("a__x") + encode_tool_end("a__x")
        parsed = parse_stream(raw)
        assert [(c.toolName, c.status) for c in parsed.tool_calls] == [("a__x", "done"), ("a__x", "done")]

    def test_end_without_start_is_ignored(self) -> None:
        parsed = parse_stream("text" + encode_tool_end("a__x"))
        assert parsed.display_text == "text"
        assert parsed.tool_calls == []

    def test_interleaved_tools_complete_independently(self) -> None:
        raw = encode_tool_start("a__x") + encode_tool_start("b__y") + encode_tool_end("b__y")
        parsed = parse_stream(raw)
        assert [(c.toolName, c.status) for c in parsed.tool_calls] == [("a__x", "running"), ("b__y", "done")]

    def test_marker_name_is_trimmed(self) -> None:
        parsed = parse_stream("__TOOL_START__: a__x \r")
        assert parsed.tool_calls[0].toolName == "a__x"

    @pytest.mark.parametrize(
        "events",
        [
            (TextDelta("Hello "), ToolCallStarted("svc__search"), ToolCallResult("svc__search"), TextDelta("done")),
            (TextDelta("line one\nline two"), ToolCallStarted("fs__ls"), ToolCallResult("fs__ls")),
            (ToolCallStarted("fs__ls"), ToolCallResult("fs__ls"), TextDelta("\n\nparagraph")),
            (TextDelta("a"), ToolCallStarted("x__1"), TextDelta("b"), ToolCallResult("x__1"), TextDelta("c")),
        ],
    )
    def test_decoding_inverts_encoding(self, events: tuple[TextDelta | ToolCallStarted | ToolCallResult, ...]) -> None:
        expected_text = "".join(e.text for e in events if isinstance(e, TextDelta))
        parsed = parse_stream(_encode(*events))
        assert parsed.display_text == expected_text

    def test_incremental_parse_matches_whole_buffer(self) -> None:
        raw = _encode(
            TextDelta("Checking "),
            ToolCallStarted("svc__search"),
            TextDelta("partial\nresults"),
            ToolCallResult("svc__search"),
            ToolCallStarted("fs__read"),
            ToolCallResult("fs__read"),
            TextDelta(" done"),
        )

        for i in range(len(raw) + 1):
            parse_stream(raw[:i])  # every prefix parses without error

        final = parse_stream(raw)
        assert parse_stream(raw) == final
        assert final.display_text == "Checking partial\nresults done"
        assert [(c.toolName, c.status) for c in final.tool_calls] == [("svc__search", "done"), ("fs__read", "done")]

    def test_parse_is_pure(self) -> None:
        raw = "x" + encode_tool_start("a__b")
        first = parse_stream(raw)
        first.tool_calls[0].status = "done"
        assert parse_stream(raw).tool_calls[0].status == "running"
