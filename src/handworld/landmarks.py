"""
Landmark frame types.

A ``RecognitionFrame`` is what the landmark detector hands to the
recognizer pipeline once per rendered frame: a monotonic timestamp (ms) and
zero or more hands, each an ``(N, 3)`` array of normalised landmarks
(x right, y down, z relative depth).  MediaPipe gives ``N == 21``; shorter
arrays are tolerated and simply make the missing landmarks unavailable.

Hand index is the position of a hand in ``hands``.  It is **not** a stable
identity: if hand 0 leaves the frame, the hand that used to be index 1 is
reported as index 0 on the next frame.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np


@dataclass(frozen=True)
class LandmarkPoint:
    """A single normalised landmark."""

    x: float
    y: float
    z: float = 0.0

    @classmethod
    def from_array(cls, row: np.ndarray) -> LandmarkPoint:
        z = float(row[2]) if len(row) > 2 else 0.0
        return cls(float(row[0]), float(row[1]), z)


@dataclass
class RecognitionFrame:
    """One frame's worth of detector output."""

    timestamp: float
    hands: list[np.ndarray] = field(default_factory=list)

    @classmethod
    def from_landmarks(
        cls, timestamp: float, hands: Iterable[Iterable[Iterable[float]]]
    ) -> RecognitionFrame:
        """Build a frame from nested sequences (or arrays) of ``(x, y, z)``."""
        arrays = [np.asarray(list(h), dtype=np.float64).reshape(-1, 3) for h in hands]
        return cls(timestamp=float(timestamp), hands=arrays)

    def landmark(self, hand_index: int, landmark_id: int) -> Optional[LandmarkPoint]:
        """Return a landmark, or ``None`` when the hand array is too short."""
        if hand_index < 0 or hand_index >= len(self.hands):
            return None
        return landmark_at(self.hands[hand_index], landmark_id)


@dataclass(frozen=True)
class HandPointer:
    """Index-fingertip pointer for one hand (``None`` when unavailable)."""

    hand_index: int
    index_tip: Optional[LandmarkPoint]


def landmark_at(hand: np.ndarray, landmark_id: int) -> Optional[LandmarkPoint]:
    """Return landmark *landmark_id* of *hand*, or ``None`` if it is absent."""
    if hand is None or hand.ndim != 2 or landmark_id >= hand.shape[0]:
        return None
    row = hand[landmark_id]
    if not np.all(np.isfinite(row[:2])):
        return None
    return LandmarkPoint.from_array(row)
