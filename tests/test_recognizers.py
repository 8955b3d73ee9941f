from __future__ import annotations

import numpy as np
import pytest

from conftest import make_frame, make_hand, wrist_frame
from handworld.config import WRIST_HISTORY_MAX_SAMPLES
from handworld.landmarks import RecognitionFrame
from handworld.recognizers import (
    pinch_transition_recognizer,
    process_hand_result,
    wrist_movement_recognizer,
)
from handworld.runtime import RecognitionRuntimeState


def _types(events):
    return [e.type for e in events]


def _swipes(events):
    return [e for e in events if e.type.startswith("swipe")]


def _run_wrist(state, samples):
    """Feed (t, x, y) wrist samples; return every event emitted."""
    events = []
    for t, x, y in samples:
        events.extend(wrist_movement_recognizer(wrist_frame(t, x, y), state))
    return events


def _linear(t0, duration, steps, x0, dx, y0=0.5, dy=0.0):
    return [
        (t0 + duration * i / steps, x0 + dx * i / steps, y0 + dy * i / steps)
        for i in range(steps + 1)
    ]


# ------------------------------------------------------------------
# Pinch
# ------------------------------------------------------------------

def test_pinch_fires_once_per_edge():
    state = RecognitionRuntimeState()
    sequence = [False, True, True, True, False, False, True, False]
    emitted = []
    for i, pinched in enumerate(sequence):
        frame = make_frame(i * 33.0, make_hand(pinched=pinched))
        emitted.extend(_types(pinch_transition_recognizer(frame, state)))

    assert emitted == ["pinch-start", "pinch-end", "pinch-start", "pinch-end"]


def test_pinch_never_starts_twice_without_end():
    state = RecognitionRuntimeState()
    emitted = []
    for i in range(10):
        frame = make_frame(i * 33.0, make_hand(pinched=True))
        emitted.extend(_types(pinch_transition_recognizer(frame, state)))
    assert emitted == ["pinch-start"]


def test_pinch_threshold_is_strict():
    state = RecognitionRuntimeState()
    hand = make_hand()
    hand[4] = (hand[8][0] - 0.061, hand[8][1], 0.0)
    assert pinch_transition_recognizer(make_frame(0.0, hand), state) == []
    hand[4] = (hand[8][0] - 0.059, hand[8][1], 0.0)
    events = pinch_transition_recognizer(make_frame(33.0, hand), state)
    assert _types(events) == ["pinch-start"]
    assert events[0].details["pinchDistance"] == pytest.approx(0.059)


def test_pinch_uses_planar_distance_only():
    state = RecognitionRuntimeState()
    hand = make_hand(pinched=True)
    hand[4][2] = 0.5
    assert _types(pinch_transition_recognizer(make_frame(0.0, hand), state)) == ["pinch-start"]


def test_pinch_skips_hands_missing_landmarks():
    state = RecognitionRuntimeState()
    short_hand = make_hand(pinched=True)[:5]
    assert pinch_transition_recognizer(make_frame(0.0, short_hand), state) == []
    assert state.get(0).last_pinch is False


def test_pinch_state_is_per_hand_index():
    state = RecognitionRuntimeState()
    frame = make_frame(0.0, make_hand(pinched=False), make_hand(pinched=True))
    events = pinch_transition_recognizer(frame, state)
    assert [(e.type, e.hand_index) for e in events] == [("pinch-start", 1)]


def test_pinch_latch_follows_index_not_hand():
    # Hand 0 (pinching) leaves; the open hand that was index 1 becomes
    # index 0 and inherits the latch, so it reads as a pinch-end.
    state = RecognitionRuntimeState()
    pinch_transition_recognizer(make_frame(0.0, make_hand(pinched=True), make_hand()), state)
    events = pinch_transition_recognizer(make_frame(33.0, make_hand()), state)
    assert [(e.type, e.hand_index) for e in events] == [("pinch-end", 0)]


# ------------------------------------------------------------------
# Swipe
# ------------------------------------------------------------------

def test_swipe_right_over_300ms_fires_once():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, _linear(0, 300, 10, x0=0.2, dx=0.20, dy=0.05))
    swipes = _swipes(events)
    assert _types(swipes) == ["swipe-right"]
    assert swipes[0].details["dx"] > 0.18
    assert 150 <= swipes[0].details["durationMs"] <= 300


def test_swipe_left_direction():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, _linear(0, 300, 10, x0=0.8, dx=-0.20, dy=0.05))
    assert _types(_swipes(events)) == ["swipe-left"]


def test_slow_swipe_over_900ms_does_not_fire():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, _linear(0, 900, 30, x0=0.2, dx=0.20, dy=0.05))
    assert _swipes(events) == []


def test_short_swipe_does_not_fire():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, _linear(0, 300, 10, x0=0.2, dx=0.10))
    assert _swipes(events) == []


def test_vertical_motion_does_not_swipe():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, _linear(0, 300, 10, x0=0.2, dx=0.20, dy=0.15))
    assert _swipes(events) == []


def test_too_fast_swipe_under_min_duration_does_not_fire():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, _linear(0, 100, 4, x0=0.2, dx=0.30))
    assert _swipes(events) == []


@pytest.mark.parametrize("gap_ms, expected", [(300, 1), (500, 2)])
def test_swipe_cooldown(gap_ms, expected):
    # Each trajectory moves 0.2 in five 40 ms steps and qualifies on its
    # last sample (t=200); the second starts at t=*gap_ms*.
    state = RecognitionRuntimeState()
    first = _linear(0, 200, 5, x0=0.1, dx=0.20, dy=0.05)
    second = _linear(gap_ms, 200, 5, x0=0.3, dx=0.20, dy=0.05)
    events = _run_wrist(state, first + second)
    assert len(_swipes(events)) == expected


def test_swipe_collapses_history():
    state = RecognitionRuntimeState()
    _run_wrist(state, _linear(0, 300, 10, x0=0.2, dx=0.20))
    history = state.get(0).wrist_history
    # Collapsed at the firing sample, then the remaining samples appended.
    assert history[0].timestamp > 150
    assert len(history) < 11


# ------------------------------------------------------------------
# Continuous movement
# ------------------------------------------------------------------

def test_movement_active_is_throttled():
    state = RecognitionRuntimeState()
    # 0.02 per 20 ms = 0.001 units/ms, well above threshold, for 400 ms.
    events = _run_wrist(state, [(t, 0.1 + 0.001 * t, 0.5) for t in range(0, 401, 20)])
    moves = [e for e in events if e.type == "movement-active"]
    times = [e.timestamp for e in moves]
    assert times == [20, 180, 340]
    assert all(b - a > 150 for a, b in zip(times, times[1:]))
    assert moves[0].details["speed"] == pytest.approx(0.001)
    assert list(moves[0].details) == ["vx", "vy", "speed"]


def test_slow_drift_is_not_movement():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, [(t, 0.5 + 0.0001 * t, 0.5) for t in range(0, 400, 20)])
    assert [e for e in events if e.type == "movement-active"] == []


def test_movement_time_floor_prevents_blowup():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, [(0.0, 0.5, 0.5), (0.0, 0.6, 0.5)])
    moves = [e for e in events if e.type == "movement-active"]
    assert moves[0].details["vx"] == pytest.approx(0.1)


def test_movement_and_swipe_can_fire_in_same_frame():
    state = RecognitionRuntimeState()
    events = _run_wrist(state, [(0, 0.2, 0.5), (100, 0.22, 0.5), (200, 0.45, 0.5)])
    last_frame = [e.type for e in events if e.timestamp == 200]
    assert "swipe-right" in last_frame
    assert "movement-active" in last_frame


# ------------------------------------------------------------------
# History window
# ------------------------------------------------------------------

def test_wrist_history_time_window():
    state = RecognitionRuntimeState()
    _run_wrist(state, [(t, 0.5, 0.5) for t in range(0, 2001, 100)])
    history = state.get(0).wrist_history
    assert history[0].timestamp == 1300
    assert history[-1].timestamp == 2000


def test_wrist_history_sample_cap():
    state = RecognitionRuntimeState()
    _run_wrist(state, [(t * 2.0, 0.5, 0.5) for t in range(200)])
    assert len(state.get(0).wrist_history) == WRIST_HISTORY_MAX_SAMPLES


def test_returning_hand_index_reuses_recent_history():
    state = RecognitionRuntimeState()
    _run_wrist(state, [(0, 0.2, 0.5), (100, 0.2, 0.5)])
    # Index 0 disappears for two frames, then a hand shows up at index 0
    # far to the right: stale history still in the window makes it a swipe.
    wrist_movement_recognizer(make_frame(150.0), state)
    wrist_movement_recognizer(make_frame(200.0), state)
    events = wrist_movement_recognizer(wrist_frame(300.0, 0.45, 0.5), state)
    assert "swipe-right" in _types(events)


def test_returning_hand_index_after_window_starts_fresh():
    state = RecognitionRuntimeState()
    _run_wrist(state, [(0, 0.2, 0.5), (100, 0.2, 0.5)])
    events = wrist_movement_recognizer(wrist_frame(1000.0, 0.45, 0.5), state)
    assert events == []
    assert len(state.get(0).wrist_history) == 1


# ------------------------------------------------------------------
# Pipeline
# ------------------------------------------------------------------

def test_zero_hands_short_circuits():
    state = RecognitionRuntimeState()
    result = process_hand_result(RecognitionFrame(timestamp=0.0), state)
    assert result.one_time_events == []
    assert result.movement_events == []
    assert result.hand_pointers == []
    assert len(state) == 0


def test_process_hand_result_collects_pointers_and_events():
    state = RecognitionRuntimeState()
    short_hand = make_hand()[:3]
    frame = make_frame(0.0, make_hand(index=(0.3, 0.4, -0.1), pinched=True), short_hand)
    result = process_hand_result(frame, state)

    assert _types(result.one_time_events) == ["pinch-start"]
    assert result.movement_events == []
    assert result.hand_pointers[0].index_tip.x == pytest.approx(0.3)
    assert result.hand_pointers[0].index_tip.z == pytest.approx(-0.1)
    assert result.hand_pointers[1].index_tip is None


def test_nan_landmarks_are_treated_as_missing():
    state = RecognitionRuntimeState()
    hand = make_hand(pinched=True)
    hand[8] = (np.nan, np.nan, 0.0)
    result = process_hand_result(make_frame(0.0, hand), state)
    assert result.one_time_events == []
    assert result.hand_pointers[0].index_tip is None
