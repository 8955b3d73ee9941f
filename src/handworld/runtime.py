"""
Per-hand recognizer memory.

``RecognitionRuntimeState`` maps a *frame-local* hand index to a
``HandRuntimeState``.  Entries are created lazily the first time an index
is seen and are never dropped per hand; the whole mapping is cleared when
the owning session is torn down.  Because hand indices are not identities,
an index that disappears and comes back picks up whatever history is left
under it, minus samples that have aged out of the time window.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Iterator

from .config import WRIST_HISTORY_MAX_SAMPLES, WRIST_HISTORY_WINDOW_MS


@dataclass(frozen=True)
class WristSample:
    """Wrist position at a point in time (ms)."""

    timestamp: float
    x: float
    y: float
    z: float


@dataclass
class HandRuntimeState:
    """Mutable recognizer memory for one hand index."""

    last_pinch: bool = False
    last_swipe_timestamp: float = -math.inf
    last_movement_emit_timestamp: float = -math.inf
    wrist_history: deque[WristSample] = field(
        default_factory=lambda: deque(maxlen=WRIST_HISTORY_MAX_SAMPLES)
    )

    # ------------------------------------------------------------------
    # Wrist history
    # ------------------------------------------------------------------

    def push_wrist(
        self, sample: WristSample, window_ms: float = WRIST_HISTORY_WINDOW_MS
    ) -> None:
        """Append *sample* and trim by the time window and the sample cap.

        The deque's ``maxlen`` enforces the cap; the time window is applied
        relative to the new sample's timestamp.
        """
        self.wrist_history.append(sample)
        now = sample.timestamp
        while self.wrist_history and now - self.wrist_history[0].timestamp > window_ms:
            self.wrist_history.popleft()

    def collapse_history(self) -> None:
        """Keep only the newest wrist sample."""
        if self.wrist_history:
            newest = self.wrist_history[-1]
            self.wrist_history.clear()
            self.wrist_history.append(newest)


class RecognitionRuntimeState:
    """Hand index -> ``HandRuntimeState``, for one detector session."""

    def __init__(self) -> None:
        self._per_hand: dict[int, HandRuntimeState] = {}

    def get_or_create(self, hand_index: int) -> HandRuntimeState:
        state = self._per_hand.get(hand_index)
        if state is None:
            state = HandRuntimeState()
            self._per_hand[hand_index] = state
        return state

    def get(self, hand_index: int) -> HandRuntimeState | None:
        return self._per_hand.get(hand_index)

    def clear(self) -> None:
        """Drop every hand's state (session teardown)."""
        self._per_hand.clear()

    def __len__(self) -> int:
        return len(self._per_hand)

    def __contains__(self, hand_index: object) -> bool:
        return hand_index in self._per_hand

    def __iter__(self) -> Iterator[int]:
        return iter(self._per_hand)
