"""Application lifecycle transitions reported by collaborators."""

from __future__ import annotations

from enum import Enum


class LifecycleEvent(str, Enum):
    """Lifecycle transitions a host can report to the shipper."""

    CLOSE_REQUEST = "close_request"
    BACKGROUND = "background"
    PAUSE = "pause"
    FOCUS_OUT = "focus_out"
    RESUME = "resume"
    FOCUS_IN = "focus_in"

    @property
    def requires_flush(self) -> bool:
        """Whether buffered entries may be lost after this transition."""
        return self in _FLUSH_EVENTS


_FLUSH_EVENTS = frozenset({LifecycleEvent.CLOSE_REQUEST, LifecycleEvent.BACKGROUND, LifecycleEvent.PAUSE, LifecycleEvent.FOCUS_OUT})
