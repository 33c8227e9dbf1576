"""
Model-completion events consumed by the stream multiplexer.

The agents SDK emits many event kinds; only these three reach the wire.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TextDelta:
    """A chunk of assistant text."""

    text: str


@dataclass(frozen=True, slots=True)
class ToolCallStarted:
    """The model invoked a tool; execution is about to begin."""

    tool_name: str
    call_id: str = ""


@dataclass(frozen=True, slots=True)
class ToolCallResult:
    """A tool returned (successfully or with an error string)."""

    tool_name: str
    call_id: str = ""


ModelEvent = TextDelta | ToolCallStarted | ToolCallResult
