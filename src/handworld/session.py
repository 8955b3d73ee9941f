"""
Gesture session: one detector, one world, one frame at a time.

The session owns everything that must live exactly as long as a detector:
the per-hand recognizer memory, the world, latency metrics and the queue
of pending object requests.  Each frame callback runs

    pending requests -> detection -> recognizers -> interaction
                     -> animation -> snapshot -> schedule next

A boolean in-flight flag wraps the detector call.  If a frame callback
fires while a detection is still outstanding (an awaited detector, or a
detector that re-enters the frame loop), that frame skips detection,
recognition and interaction and just re-publishes the current world.

An awaitable detector runs through ``on_frame_async`` (``start(use_async=True)``
with an asyncio-aware scheduler).  That callback schedules its successor
before awaiting, so frames keep arriving while a detection is pending.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from .animation import apply_world_animation
from .config import RECENT_EVENT_LOG_SIZE
from .events import GestureEvent, format_event
from .interaction import apply_world_interaction
from .landmarks import HandPointer, RecognitionFrame
from .metrics import LatencyTracker
from .recognizers import RecognitionResult, process_hand_result
from .runtime import RecognitionRuntimeState
from .scheduler import FrameScheduler, now_ms
from .world import (
    ObjectRequest,
    ObjectRequestError,
    World,
    WorldObject,
    WorldSnapshot,
    build_object,
    create_world,
)

logger = logging.getLogger("handworld.session")


class LandmarkDetector(Protocol):
    """External landmark detector.

    ``detect`` may return the frame directly or an awaitable of it (for
    :meth:`GestureSession.on_frame_async`).  ``None`` means "no hands".
    """

    def detect(
        self, timestamp_ms: float
    ) -> Union[Optional[RecognitionFrame], Awaitable[Optional[RecognitionFrame]]]: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class FrameReport:
    """What happened during one frame callback."""

    timestamp: float
    snapshot: WorldSnapshot
    result: Optional[RecognitionResult]
    detected: bool

    @property
    def events(self) -> list[GestureEvent]:
        return self.result.all_events if self.result is not None else []


FrameListener = Callable[[FrameReport], None]


class GestureSession:
    """Frame-driven owner of recognizer state and the interaction world."""

    def __init__(
        self,
        detector: Optional[LandmarkDetector],
        scheduler: FrameScheduler,
        world: Optional[World] = None,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self.detector = detector
        self.scheduler = scheduler
        self.world = world if world is not None else create_world()
        self.runtime = RecognitionRuntimeState()
        self.latency = LatencyTracker()
        self._clock = clock

        self.recognition_enabled = detector is not None
        self.error: Optional[str] = None if detector is not None else "no landmark detector"

        self.running = False
        self.skipped_frames = 0
        self.frame_count = 0
        self.last_pointers: list[HandPointer] = []
        self.recent_events: deque[str] = deque(maxlen=RECENT_EVENT_LOG_SIZE)
        self.snapshot: WorldSnapshot = self.world.snapshot()

        self.before_frame: list[Callable[[float], None]] = []
        self.after_frame: list[FrameListener] = []

        self._in_flight = False
        self._last_frame_ms: Optional[float] = None
        self._pending: list[WorldObject] = []
        self._pending_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, use_async: bool = False) -> None:
        """Schedule the first frame.

        With *use_async* the scheduler is handed :meth:`on_frame_async`, whose
        coroutines an asyncio-aware scheduler runs as tasks.
        """
        if self.running:
            return
        self.running = True
        self.scheduler.schedule_next_frame(self.on_frame_async if use_async else self.on_frame)
        logger.info("Session started (recognition %s)",
                    "enabled" if self.recognition_enabled else "disabled")

    def teardown(self) -> None:
        """Stop scheduling, drop all per-hand state, release the detector."""
        if not self.running and self.detector is None:
            return
        self.running = False
        self.scheduler.cancel()
        self.runtime.clear()
        self._in_flight = False
        self.recognition_enabled = False

        detector, self.detector = self.detector, None
        if detector is not None:
            try:
                detector.close()
            except Exception:
                logger.exception("Detector close failed during teardown")
        logger.info("Session torn down after %d frames", self.frame_count)

    # ------------------------------------------------------------------
    # Object requests
    # ------------------------------------------------------------------

    def request_object(self, request: ObjectRequest) -> WorldObject:
        """Validate now, insert at the start of the next frame.

        Raises :class:`ObjectRequestError` without touching the world.
        """
        with self._pending_lock:
            obj = build_object(self.world, request)
            if any(p.id == obj.id for p in self._pending):
                raise ObjectRequestError(f"object id {obj.id!r} already exists")
            self._pending.append(obj)
        logger.info("Queued %s object %s", obj.kind, obj.id)
        return obj

    def _apply_pending_requests(self) -> None:
        with self._pending_lock:
            pending, self._pending = self._pending, []
        for obj in pending:
            if obj.id in self.world:
                logger.warning("Dropping queued object %s: id already in use", obj.id)
                continue
            self.world.add_object(obj)

    # ------------------------------------------------------------------
    # Frame callbacks
    # ------------------------------------------------------------------

    def on_frame(self, timestamp_ms: float) -> None:
        """Synchronous frame callback (the scheduler's entry point)."""
        if not self._begin_frame(timestamp_ms):
            return

        result: Optional[RecognitionResult] = None
        detected = False
        if self._can_detect():
            self._in_flight = True
            try:
                frame = self._timed_detect(timestamp_ms)
                if inspect.isawaitable(frame):
                    getattr(frame, "close", lambda: None)()
                    raise TypeError("awaitable detector used with on_frame; use on_frame_async")
            except Exception as exc:
                self._disable_recognition(exc)
            else:
                result = self._recognize(frame, timestamp_ms)
                detected = True
            finally:
                self._in_flight = False
        elif self._in_flight:
            self.skipped_frames += 1
            self._finish_frame(timestamp_ms, None, False, skipped=True)
            self._schedule_next(self.on_frame)
            return

        self._finish_frame(timestamp_ms, result, detected)
        self._schedule_next(self.on_frame)

    async def on_frame_async(self, timestamp_ms: float) -> None:
        """Frame callback for detectors whose ``detect`` is awaitable.

        The next frame is scheduled before the detector is awaited, so the
        cadence keeps running and frames that land meanwhile are skipped.
        """
        if not self._begin_frame(timestamp_ms):
            return
        self._schedule_next(self.on_frame_async)

        result: Optional[RecognitionResult] = None
        detected = False
        if self._can_detect():
            self._in_flight = True
            try:
                started = self._clock()
                frame = self.detector.detect(timestamp_ms)
                if inspect.isawaitable(frame):
                    frame = await frame
                self.latency.record(self._clock() - started)
            except Exception as exc:
                self._disable_recognition(exc)
            else:
                # Teardown while awaiting discards the late result.
                if self.running:
                    result = self._recognize(frame, timestamp_ms)
                    detected = True
            finally:
                self._in_flight = False
        elif self._in_flight:
            self.skipped_frames += 1
            self._finish_frame(timestamp_ms, None, False, skipped=True)
            return

        self._finish_frame(timestamp_ms, result, detected)

    # ------------------------------------------------------------------
    # Frame internals
    # ------------------------------------------------------------------

    def _begin_frame(self, timestamp_ms: float) -> bool:
        if not self.running:
            return False
        self.frame_count += 1
        if not self._in_flight:
            self._apply_pending_requests()
        for hook in self.before_frame:
            hook(timestamp_ms)
        return True

    def _can_detect(self) -> bool:
        return self.recognition_enabled and self.detector is not None and not self._in_flight

    def _timed_detect(self, timestamp_ms: float) -> Any:
        started = self._clock()
        frame = self.detector.detect(timestamp_ms)
        self.latency.record(self._clock() - started)
        return frame

    def _recognize(
        self, frame: Optional[RecognitionFrame], timestamp_ms: float
    ) -> RecognitionResult:
        if frame is None:
            frame = RecognitionFrame(timestamp=timestamp_ms)
        result = process_hand_result(frame, self.runtime)
        apply_world_interaction(self.world, result)
        self.last_pointers = result.hand_pointers

        for event in result.all_events:
            text = format_event(event)
            self.recent_events.append(text)
            logger.debug("Event: %s", text)
        return result

    def _disable_recognition(self, exc: BaseException) -> None:
        logger.exception("Landmark detection failed; recognition disabled")
        self.recognition_enabled = False
        self.error = str(exc) or exc.__class__.__name__
        self.last_pointers = []

    def _finish_frame(
        self,
        timestamp_ms: float,
        result: Optional[RecognitionResult],
        detected: bool,
        skipped: bool = False,
    ) -> None:
        # A skipped frame re-publishes the previous world untouched; the
        # next full frame animates across the whole gap.
        if not skipped:
            if self._last_frame_ms is not None:
                apply_world_animation(self.world, (timestamp_ms - self._last_frame_ms) / 1000.0)
            self._last_frame_ms = timestamp_ms
            self.snapshot = self.world.snapshot()

        report = FrameReport(timestamp_ms, self.snapshot, result, detected)
        for listener in self.after_frame:
            listener(report)

    def _schedule_next(self, callback: Callable[[float], Any]) -> None:
        if self.running:
            self.scheduler.schedule_next_frame(callback)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def status(self) -> dict:
        return {
            **self.latency.as_dict(),
            "recognition_enabled": self.recognition_enabled,
            "error": self.error,
            "frames": self.frame_count,
            "skipped_frames": self.skipped_frames,
        }
