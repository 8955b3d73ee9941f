"""
Gesture recognizers.

Each recognizer is a plain function ``(frame, runtime_state) -> events``.
Side effects are confined to the per-hand entries of the runtime state.

Detection overview
------------------
* **Pinch transition** (one-time):
  Planar distance between the thumb tip and the index tip.  Emits
  ``pinch-start`` on the open -> pinched edge and ``pinch-end`` on the
  pinched -> open edge.  No rate limiting.

* **Wrist motion** (movement):
  Keeps a time-windowed wrist history per hand and runs two independent
  checks every frame:

  - *continuous movement* from the two newest samples, throttled to one
    ``movement-active`` per debounce interval;
  - *swipe* from the oldest vs newest sample, with a per-hand cooldown.
    After a swipe the history collapses to the newest sample so the same
    motion cannot fire twice.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Sequence

from .config import (
    EVENT_MOVEMENT_ACTIVE,
    EVENT_PINCH_END,
    EVENT_PINCH_START,
    EVENT_SWIPE_LEFT,
    EVENT_SWIPE_RIGHT,
    INDEX_TIP,
    MOVEMENT_DEBOUNCE_MS,
    MOVEMENT_MIN_DT_MS,
    MOVEMENT_SPEED_THRESHOLD,
    PINCH_DISTANCE_THRESHOLD,
    SWIPE_COOLDOWN_MS,
    SWIPE_DIRECTIONALITY_RATIO,
    SWIPE_MAX_DURATION_MS,
    SWIPE_MAX_DY,
    SWIPE_MIN_DURATION_MS,
    SWIPE_MIN_DX,
    THUMB_TIP,
    WRIST,
)
from .events import GestureEvent
from .landmarks import HandPointer, RecognitionFrame, landmark_at
from .runtime import RecognitionRuntimeState, WristSample

Recognizer = Callable[[RecognitionFrame, RecognitionRuntimeState], list[GestureEvent]]


# ------------------------------------------------------------------
# One-time: pinch transition
# ------------------------------------------------------------------

def pinch_transition_recognizer(
    frame: RecognitionFrame, state: RecognitionRuntimeState
) -> list[GestureEvent]:
    """Edge-triggered thumb/index pinch detection."""
    events: list[GestureEvent] = []

    for hand_index, hand in enumerate(frame.hands):
        hand_state = state.get_or_create(hand_index)
        thumb_tip = landmark_at(hand, THUMB_TIP)
        index_tip = landmark_at(hand, INDEX_TIP)
        if thumb_tip is None or index_tip is None:
            continue

        pinch_distance = math.hypot(thumb_tip.x - index_tip.x, thumb_tip.y - index_tip.y)
        is_pinching = pinch_distance < PINCH_DISTANCE_THRESHOLD

        if is_pinching and not hand_state.last_pinch:
            events.append(GestureEvent(
                type=EVENT_PINCH_START,
                hand_index=hand_index,
                timestamp=frame.timestamp,
                details={"pinchDistance": pinch_distance},
            ))
        elif not is_pinching and hand_state.last_pinch:
            events.append(GestureEvent(
                type=EVENT_PINCH_END,
                hand_index=hand_index,
                timestamp=frame.timestamp,
                details={"pinchDistance": pinch_distance},
            ))

        hand_state.last_pinch = is_pinching

    return events


# ------------------------------------------------------------------
# Movement: wrist motion (continuous movement + swipe)
# ------------------------------------------------------------------

def wrist_movement_recognizer(
    frame: RecognitionFrame, state: RecognitionRuntimeState
) -> list[GestureEvent]:
    """Wrist velocity and horizontal swipe detection."""
    events: list[GestureEvent] = []
    now = frame.timestamp

    for hand_index, hand in enumerate(frame.hands):
        hand_state = state.get_or_create(hand_index)
        wrist = landmark_at(hand, WRIST)
        if wrist is None:
            continue

        hand_state.push_wrist(WristSample(now, wrist.x, wrist.y, wrist.z))

        history = hand_state.wrist_history
        if len(history) < 2:
            continue

        # --- Continuous movement (two newest samples) ---
        previous = history[-2]
        current = history[-1]
        dt = max(MOVEMENT_MIN_DT_MS, current.timestamp - previous.timestamp)
        vx = (current.x - previous.x) / dt
        vy = (current.y - previous.y) / dt
        speed = math.hypot(vx, vy)

        if (
            speed > MOVEMENT_SPEED_THRESHOLD
            and now - hand_state.last_movement_emit_timestamp > MOVEMENT_DEBOUNCE_MS
        ):
            hand_state.last_movement_emit_timestamp = now
            events.append(GestureEvent(
                type=EVENT_MOVEMENT_ACTIVE,
                hand_index=hand_index,
                timestamp=now,
                details={"vx": vx, "vy": vy, "speed": speed},
            ))

        # --- Swipe (oldest vs newest sample in the window) ---
        start = history[0]
        duration_ms = current.timestamp - start.timestamp
        dx = current.x - start.x
        dy = current.y - start.y
        abs_dx = abs(dx)
        abs_dy = abs(dy)

        if (
            SWIPE_MIN_DURATION_MS <= duration_ms <= SWIPE_MAX_DURATION_MS
            and abs_dx > abs_dy * SWIPE_DIRECTIONALITY_RATIO
            and abs_dx > SWIPE_MIN_DX
            and abs_dy < SWIPE_MAX_DY
            and now - hand_state.last_swipe_timestamp > SWIPE_COOLDOWN_MS
        ):
            hand_state.last_swipe_timestamp = now
            events.append(GestureEvent(
                type=EVENT_SWIPE_RIGHT if dx > 0 else EVENT_SWIPE_LEFT,
                hand_index=hand_index,
                timestamp=now,
                details={"dx": dx, "dy": dy, "durationMs": duration_ms},
            ))
            hand_state.collapse_history()

    return events


ONE_TIME_RECOGNIZERS: tuple[Recognizer, ...] = (pinch_transition_recognizer,)
MOVEMENT_RECOGNIZERS: tuple[Recognizer, ...] = (wrist_movement_recognizer,)


# ------------------------------------------------------------------
# Pipeline
# ------------------------------------------------------------------

@dataclass
class RecognitionResult:
    """Everything the interaction engine needs from one frame."""

    one_time_events: list[GestureEvent] = field(default_factory=list)
    movement_events: list[GestureEvent] = field(default_factory=list)
    hand_pointers: list[HandPointer] = field(default_factory=list)

    @property
    def all_events(self) -> list[GestureEvent]:
        return self.one_time_events + self.movement_events


def process_hand_result(
    frame: RecognitionFrame,
    state: RecognitionRuntimeState,
    one_time_recognizers: Sequence[Recognizer] = ONE_TIME_RECOGNIZERS,
    movement_recognizers: Sequence[Recognizer] = MOVEMENT_RECOGNIZERS,
) -> RecognitionResult:
    """Run every recognizer in order and collect the hand pointers.

    A frame with no hands short-circuits: no recognizer runs and no runtime
    state is touched.
    """
    if not frame.hands:
        return RecognitionResult()

    one_time_events = [e for r in one_time_recognizers for e in r(frame, state)]
    movement_events = [e for r in movement_recognizers for e in r(frame, state)]
    hand_pointers = [
        HandPointer(hand_index=i, index_tip=frame.landmark(i, INDEX_TIP))
        for i in range(len(frame.hands))
    ]
    return RecognitionResult(one_time_events, movement_events, hand_pointers)
