"""
Visual overlay renderer.

Draws the world snapshot, hand pointers, detector status and the recent
event log onto the OpenCV frame.  Read-only with respect to the world: it
only consumes a :class:`WorldSnapshot`.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

import cv2
import numpy as np

from .color import Color
from .config import (
    CIRCLE_LIKE_KINDS,
    FALLBACK_COLOR,
    OVERLAY_ERROR_COLOR,
    OVERLAY_FONT_SCALE,
    OVERLAY_GRABBED_COLOR,
    OVERLAY_POINTER_COLOR,
    OVERLAY_SELECTED_COLOR,
    OVERLAY_TEXT_COLOR,
    OVERLAY_THICKNESS,
)
from .landmarks import HandPointer
from .world import WorldObject, WorldSnapshot


def draw_overlay(
    frame: np.ndarray,
    snapshot: WorldSnapshot,
    pointers: Sequence[HandPointer] = (),
    status_lines: Iterable[str] = (),
    event_lines: Iterable[str] = (),
    error: Optional[str] = None,
    invert_video: bool = False,
) -> np.ndarray:
    """Draw all overlay elements onto *frame* and return it.

    With *invert_video* the frame's colours are inverted first (in place).
    """
    if invert_video:
        cv2.bitwise_not(frame, dst=frame)

    h, w = frame.shape[:2]
    selected = set(snapshot.selected.values())
    grabbed = set(snapshot.grabbed.values())

    # 1. World objects in paint order.
    for obj in snapshot.objects:
        if not obj.is_visible:
            continue
        _draw_object(frame, obj, w, h, obj.id in selected, obj.id in grabbed)

    # 2. Index-fingertip pointers.
    for pointer in pointers:
        if pointer.index_tip is None:
            continue
        center = (int(pointer.index_tip.x * w), int(pointer.index_tip.y * h))
        cv2.circle(frame, center, 8, OVERLAY_POINTER_COLOR, -1, cv2.LINE_AA)
        cv2.putText(frame, str(pointer.hand_index), (center[0] + 10, center[1] - 10),
                    cv2.FONT_HERSHEY_SIMPLEX, OVERLAY_FONT_SCALE * 0.8,
                    OVERLAY_POINTER_COLOR, 1, cv2.LINE_AA)

    # 3. Status (top-left) and event log (bottom-left).
    y = 30
    for line in status_lines:
        _put_text(frame, line, (20, y), OVERLAY_TEXT_COLOR)
        y += 26
    if error:
        _put_text(frame, f"detector error: {error}", (20, y), OVERLAY_ERROR_COLOR)

    lines = list(event_lines)
    for i, line in enumerate(reversed(lines)):
        _put_text(frame, line, (20, h - 20 - i * 22), OVERLAY_TEXT_COLOR, scale=0.8)

    return frame


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------

def _bgr(hex_color: str) -> tuple[int, int, int]:
    color = Color.parse(hex_color) or Color.parse(FALLBACK_COLOR)
    return color.to_bgr()


def _put_text(frame, text, origin, color, scale: float = 1.0) -> None:
    cv2.putText(frame, text, origin, cv2.FONT_HERSHEY_SIMPLEX,
                OVERLAY_FONT_SCALE * scale, color, 1, cv2.LINE_AA)


def _draw_object(
    frame: np.ndarray, obj: WorldObject, w: int, h: int, is_selected: bool, is_grabbed: bool
) -> None:
    cx = obj.position.x * w
    cy = obj.position.y * h
    fill = _bgr(obj.display_color)
    angle = obj.rotation or 0.0

    if is_grabbed:
        outline, thickness = OVERLAY_GRABBED_COLOR, OVERLAY_THICKNESS + 2
    elif is_selected:
        outline, thickness = OVERLAY_SELECTED_COLOR, OVERLAY_THICKNESS
    else:
        outline, thickness = None, OVERLAY_THICKNESS

    if obj.kind in CIRCLE_LIKE_KINDS:
        radius = max(1, int(min(obj.size.width * w, obj.size.height * h) / 2))
        center = (int(cx), int(cy))
        cv2.circle(frame, center, radius, fill, -1, cv2.LINE_AA)
        if obj.is_3d or outline is not None:
            cv2.circle(frame, center, radius, outline or (255, 255, 255), thickness, cv2.LINE_AA)
        # Spin indicator.
        tip = (int(cx + radius * math.cos(angle)), int(cy + radius * math.sin(angle)))
        cv2.line(frame, center, tip, (0, 0, 0), 1, cv2.LINE_AA)
    else:
        rect = ((cx, cy), (obj.size.width * w, obj.size.height * h), math.degrees(angle))
        box = cv2.boxPoints(rect).astype(np.int32)
        cv2.fillConvexPoly(frame, box, fill, cv2.LINE_AA)
        if obj.is_3d or outline is not None:
            cv2.polylines(frame, [box], True, outline or (255, 255, 255), thickness, cv2.LINE_AA)
        if obj.kind == "model3d":
            _put_text(frame, "model", (int(cx) - 20, int(cy)), (0, 0, 0), scale=0.7)
