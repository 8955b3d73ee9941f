"""Detection latency reporting (raw sample + exponential moving average)."""

from __future__ import annotations

from typing import Optional

from .config import LATENCY_EMA_DECAY


class LatencyTracker:
    """Reporting-only latency metric; nothing in the pipeline reads it back.

    The first sample seeds the average; afterwards
    ``avg = avg * decay + sample * (1 - decay)``.
    """

    def __init__(self, decay: float = LATENCY_EMA_DECAY) -> None:
        self.decay = decay
        self.last_ms: Optional[float] = None
        self.average_ms: Optional[float] = None
        self.samples = 0

    def record(self, sample_ms: float) -> float:
        self.last_ms = sample_ms
        if self.average_ms is None:
            self.average_ms = sample_ms
        else:
            self.average_ms = self.average_ms * self.decay + sample_ms * (1.0 - self.decay)
        self.samples += 1
        return self.average_ms

    def reset(self) -> None:
        self.last_ms = None
        self.average_ms = None
        self.samples = 0

    def as_dict(self) -> dict:
        return {"frame_ms": self.last_ms, "avg_frame_ms": self.average_ms}
