"""
Inline tool-marker protocol for the chat byte stream.

The chat endpoint sends one text/plain body. Model text is written as-is and
tool lifecycle events are written as marker lines:

    "\\n__TOOL_START__:<name>\\n"   tool started
    "\\n__TOOL_END__:<name>\\n"     tool returned

``parse_stream`` reverses this on the receiving side. It is pure and works on
the whole accumulated buffer, so callers re-parse after every chunk.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.constants import TOOL_END_PREFIX, TOOL_START_PREFIX
from models.schemas.chat import ToolCallInfo


def encode_tool_start(tool_name: str) -> str:
    return f"\n{TOOL_START_PREFIX}{tool_name}\n"


def encode_tool_end(tool_name: str) -> str:
    return f"\n{TOOL_END_PREFIX}{tool_name}\n"


@dataclass(slots=True)
class ParsedStream:
    """Display text and tool-call statuses recovered from a raw stream buffer."""

    display_text: str = ""
    tool_calls: list[ToolCallInfo] = field(default_factory=list)


def _mark_done(tool_calls: list[ToolCallInfo], tool_name: str) -> None:
    # Most recent running entry wins
    for call in reversed(tool_calls):
        if call.toolName == tool_name and call.status == "running":
            call.status = "done"
            return


def parse_stream(raw: str) -> ParsedStream:
    """Split an accumulated stream buffer into display text and tool calls.

    A START line appends ``{name, running}`` unless that name already has a
    running entry. An END line flips the most recent running entry for the
    name to ``done``; an END with no running entry is ignored. The line breaks
    framing a marker belong to the marker and are dropped with it.

    Args:
        raw: Everything received so far

    Returns:
        ParsedStream with the display text and ordered tool calls
    """
    parts: list[str] = []
    tool_calls: list[ToolCallInfo] = []
    previous_was_marker = False

    for index, line in enumerate(raw.split("\n")):
        if line.startswith(TOOL_START_PREFIX):
            tool_name = line[len(TOOL_START_PREFIX) :].strip()
            if not any(c.toolName == tool_name and c.status == "running" for c in tool_calls):
                tool_calls.append(ToolCallInfo(toolName=tool_name, status="running"))
            previous_was_marker = True
            continue

        if line.startswith(TOOL_END_PREFIX):
            _mark_done(tool_calls, line[len(TOOL_END_PREFIX) :].strip())
            previous_was_marker = True
            continue

        # The break before a marker and the break after it are both framing
        if index > 0 and not previous_was_marker:
            parts.append("\n")
        parts.append(line)
        previous_was_marker = False

    return ParsedStream(display_text="".join(parts), tool_calls=tool_calls)
