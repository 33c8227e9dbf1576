"""
Base types and state tracking for event handlers.

- CallTracker: matches tool outputs to the calls that produced them
- EventHandler: unified handler signature
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from models.stream_models import ModelEvent


@dataclass
class CallTracker:
    """Tracks tool call IDs for matching outputs with their calls.

    Keyed by call_id so parallel tool calls that complete out of order are
    still attributed to the right tool.
    """

    active_calls: dict[str, str] = field(default_factory=dict)  # {call_id: tool_name}

    def add_call(self, call_id: str, tool_name: str) -> None:
        """Add a new tool call to track."""
        if call_id and call_id not in self.active_calls:
            self.active_calls[call_id] = tool_name

    def pop_call_by_id(self, call_id: str) -> str | None:
        """Remove a call and return its tool name, or None if untracked."""
        return self.active_calls.pop(call_id, None)

    def drain_all(self) -> list[tuple[str, str]]:
        """Drain all remaining (call_id, tool_name) pairs."""
        result = list(self.active_calls.items())
        self.active_calls.clear()
        return result


#: (SDK stream event, tracker) -> translated event or None to drop it
EventHandler = Callable[[Any, CallTracker], ModelEvent | None]
