"""
Gesture events emitted by the recognizer pipeline.

One-time events (``pinch-start`` / ``pinch-end``) and movement events
(``swipe-*`` / ``movement-active``) share the same shape.  ``details`` is an
ordered mapping whose keys are fixed per event type:

==================  ===========================
event type          detail keys
==================  ===========================
pinch-start / end   pinchDistance
swipe-left / right  dx, dy, durationMs
movement-active     vx, vy, speed
==================  ===========================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .config import (
    EVENT_MOVEMENT_ACTIVE,
    EVENT_PINCH_END,
    EVENT_PINCH_START,
    EVENT_SWIPE_LEFT,
    EVENT_SWIPE_RIGHT,
)

DetailValue = Union[float, int, str]

DETAIL_KEYS: dict[str, tuple[str, ...]] = {
    EVENT_PINCH_START: ("pinchDistance",),
    EVENT_PINCH_END: ("pinchDistance",),
    EVENT_SWIPE_LEFT: ("dx", "dy", "durationMs"),
    EVENT_SWIPE_RIGHT: ("dx", "dy", "durationMs"),
    EVENT_MOVEMENT_ACTIVE: ("vx", "vy", "speed"),
}


@dataclass
class GestureEvent:
    """A single recognised gesture for one hand index."""

    type: str
    hand_index: int
    timestamp: float
    details: dict[str, DetailValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        allowed = DETAIL_KEYS.get(self.type)
        if allowed is None:
            return
        unknown = [k for k in self.details if k not in allowed]
        if unknown:
            raise ValueError(f"unexpected detail keys for {self.type}: {unknown}")
        # Normalise to the documented key order.
        self.details = {k: self.details[k] for k in allowed if k in self.details}

    def to_dict(self) -> dict:
        """JSON-safe representation."""
        return {
            "type": self.type,
            "handIndex": self.hand_index,
            "timestamp": self.timestamp,
            "details": dict(self.details),
        }


def format_event(event: GestureEvent) -> str:
    """Render an event as ``"<type> (hand <i>) · k=v, ..."`` for logs/overlay."""
    if event.details:
        details = ", ".join(
            f"{key}={value:.3f}" if isinstance(value, (int, float)) else f"{key}={value}"
            for key, value in event.details.items()
        )
    else:
        details = "no details"
    return f"{event.type} (hand {event.hand_index}) · {details}"
