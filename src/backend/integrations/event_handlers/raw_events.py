"""
Raw response event handlers (token-level streaming).
"""

from __future__ import annotations

from typing import Any

from core.constants import OUTPUT_TEXT_DELTA
from models.stream_models import TextDelta

from .base import CallTracker


def handle_raw_response(event: Any, _tracker: CallTracker) -> TextDelta | None:
    """Text deltas become TextDelta; every other raw event is dropped."""
    data = getattr(event, "data", None)
    if getattr(data, "type", None) != OUTPUT_TEXT_DELTA:
        return None

    delta = getattr(data, "delta", None)
    if not delta:
        return None
    return TextDelta(text=delta)
