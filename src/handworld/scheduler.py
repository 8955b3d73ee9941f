"""
Frame scheduling.

The session never loops on its own: after each frame it asks a scheduler
for the next callback, and teardown cancels whatever is pending.  At most
one callback is ever outstanding.

* ``ManualScheduler``  – holds the pending callback until a test fires it.
* ``LoopScheduler``    – drives callbacks from a blocking loop at a target
  frame rate (used by the webcam entry point).
* ``AsyncioScheduler`` – fires callbacks from an asyncio event loop; a
  callback that returns a coroutine (``GestureSession.on_frame_async``) is
  run as a task.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger("handworld.scheduler")

# Synchronous callbacks return None; async ones return an awaitable.
FrameCallback = Callable[[float], Any]


def now_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.perf_counter() * 1000.0


class FrameScheduler(Protocol):
    def schedule_next_frame(self, callback: FrameCallback) -> None: ...

    def cancel(self) -> None: ...


class ManualScheduler:
    """Scheduler whose frames are fired explicitly.

    Awaitables returned by a callback are wrapped in tasks on the running
    event loop and kept in ``tasks`` so a test can await them.
    """

    def __init__(self) -> None:
        self.pending: Optional[FrameCallback] = None
        self.scheduled_count = 0
        self.cancelled = False
        self.tasks: list[asyncio.Future] = []

    def schedule_next_frame(self, callback: FrameCallback) -> None:
        self.pending = callback
        self.scheduled_count += 1

    def cancel(self) -> None:
        self.pending = None
        self.cancelled = True

    @property
    def has_pending(self) -> bool:
        return self.pending is not None

    def fire(self, timestamp_ms: float) -> bool:
        """Run the pending callback, if any.  Returns whether one ran."""
        callback, self.pending = self.pending, None
        if callback is None:
            return False
        result = callback(timestamp_ms)
        if inspect.isawaitable(result):
            self.tasks.append(asyncio.ensure_future(result))
        return True


class LoopScheduler:
    """Blocking frame loop.

    ``run()`` keeps invoking the pending callback, sleeping to honour
    *target_fps*, until nothing is scheduled (session torn down) or
    ``cancel()`` is called.
    """

    def __init__(
        self,
        target_fps: float = 60.0,
        clock: Callable[[], float] = now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.frame_interval_ms = 1000.0 / target_fps if target_fps > 0 else 0.0
        self._clock = clock
        self._sleep = sleep
        self._pending: Optional[FrameCallback] = None

    def schedule_next_frame(self, callback: FrameCallback) -> None:
        self._pending = callback

    def cancel(self) -> None:
        self._pending = None

    def run(self) -> None:
        while self._pending is not None:
            started = self._clock()
            callback, self._pending = self._pending, None
            callback(started)
            remaining = self.frame_interval_ms - (self._clock() - started)
            if remaining > 0 and self._pending is not None:
                self._sleep(remaining / 1000.0)


class AsyncioScheduler:
    """Frames on an asyncio event loop at *target_fps*.

    ``schedule_next_frame`` must be called from the loop's thread (or with
    an explicit *loop*).  Scheduling again replaces the pending frame.
    """

    def __init__(
        self,
        target_fps: float = 60.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self.frame_interval_ms = 1000.0 / target_fps if target_fps > 0 else 0.0
        self._loop = loop
        self._clock = clock
        self._handle: Optional[asyncio.TimerHandle] = None
        self.tasks: set[asyncio.Future] = set()

    def schedule_next_frame(self, callback: FrameCallback) -> None:
        loop = self._loop or asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.frame_interval_ms / 1000.0, self._fire, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def has_pending(self) -> bool:
        return self._handle is not None

    def _fire(self, callback: FrameCallback) -> None:
        self._handle = None
        result = callback(self._clock())
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self.tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future) -> None:
        self.tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Frame task failed", exc_info=task.exception())
