"""
World interaction engine.

Resolves one frame's recognized events and index-fingertip pointers against
the world.  The four steps always run in this order:

1. hover selection (and lost-hand cleanup),
2. one-time events (pinch grabs / releases),
3. movement events (swipe resize, bring-to-front),
4. pointer tracking of grabbed objects.

Selection has to be current before pinches are resolved against it, and a
grab made this frame is tracked in the same frame.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from .color import invert_hex
from .config import (
    CIRCLE_LIKE_KINDS,
    DEFAULT_OBJECT_Z,
    DEPTH_TOLERANCE,
    EVENT_MOVEMENT_ACTIVE,
    EVENT_PINCH_END,
    EVENT_PINCH_START,
    EVENT_SWIPE_LEFT,
    EVENT_SWIPE_RIGHT,
    MAX_OBJECT_SIZE,
    MIN_OBJECT_SIZE,
    POINTER_Z_OFFSET,
    POINTER_Z_SCALE,
    RECT_LIKE_KINDS,
    SWIPE_GROW_FACTOR,
    SWIPE_SHRINK_FACTOR,
)
from .events import GestureEvent
from .landmarks import HandPointer, LandmarkPoint
from .recognizers import RecognitionResult
from .world import World, WorldObject

logger = logging.getLogger("handworld.interaction")


def clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def pointer_depth(z: float) -> float:
    """Map a raw landmark z (negative toward the camera) to depth in [0, 1]."""
    return clamp(POINTER_Z_OFFSET - z * POINTER_Z_SCALE, 0.0, 1.0)


def pointers_by_hand(pointers: Iterable[HandPointer]) -> dict[int, LandmarkPoint]:
    """Hand index -> index tip, skipping hands without one."""
    return {p.hand_index: p.index_tip for p in pointers if p.index_tip is not None}


# ------------------------------------------------------------------
# Hit testing
# ------------------------------------------------------------------

def contains_pointer(obj: WorldObject, pointer: LandmarkPoint) -> bool:
    """Planar containment plus, for 3D kinds, the depth gate."""
    half_width = obj.size.width / 2
    half_height = obj.size.height / 2
    dx = pointer.x - obj.position.x
    dy = pointer.y - obj.position.y

    if obj.kind in RECT_LIKE_KINDS:
        inside = abs(dx) <= half_width and abs(dy) <= half_height
    elif obj.kind in CIRCLE_LIKE_KINDS:
        inside = math.hypot(dx, dy) <= min(half_width, half_height)
    else:
        inside = False

    if inside and obj.is_3d:
        object_z = obj.position.z if obj.position.z is not None else DEFAULT_OBJECT_Z
        object_depth = (
            obj.size.depth if obj.size.depth is not None
            else min(obj.size.width, obj.size.height)
        )
        tolerance = object_depth / 2 + DEPTH_TOLERANCE
        inside = abs(pointer_depth(pointer.z) - object_z) <= tolerance

    return inside


def top_interactable_at(world: World, pointer: LandmarkPoint) -> Optional[WorldObject]:
    """Highest-scoring visible, interactable object under *pointer*."""
    best: Optional[WorldObject] = None
    best_score = -math.inf

    for obj in world.objects.values():
        if not obj.interactable or not obj.is_visible:
            continue
        if not contains_pointer(obj, pointer):
            continue
        score = world.sort_score(obj)
        if score > best_score:
            best_score = score
            best = obj

    return best


# ------------------------------------------------------------------
# Steps
# ------------------------------------------------------------------

def apply_pointer_selection(world: World, pointer_map: dict[int, LandmarkPoint]) -> None:
    state = world.interaction_state

    for hand_index, pointer in pointer_map.items():
        hovered = top_interactable_at(world, pointer)
        if hovered is not None:
            state.selected_object_by_hand[hand_index] = hovered.id
        else:
            state.selected_object_by_hand.pop(hand_index, None)

    # Lost-hand cleanup: a selected hand index with no pointer this frame.
    for hand_index in list(state.selected_object_by_hand):
        if hand_index not in pointer_map:
            del state.selected_object_by_hand[hand_index]
            state.grabbed_object_by_hand.pop(hand_index, None)
            logger.debug("Hand %d lost, selection and grab released", hand_index)


def _bump_z_index(obj: WorldObject) -> None:
    obj.z_index = obj.effective_z_index + 1


def apply_one_time_events(world: World, events: Iterable[GestureEvent]) -> None:
    state = world.interaction_state

    for event in events:
        if event.type == EVENT_PINCH_START:
            selected = world.get_object(state.selected_object_by_hand.get(event.hand_index))
            if selected is None:
                continue
            selected.color = invert_hex(selected.display_color)
            _bump_z_index(selected)
            state.grabbed_object_by_hand[event.hand_index] = selected.id
            logger.debug("Hand %d grabbed %s", event.hand_index, selected.id)

        elif event.type == EVENT_PINCH_END:
            released = state.grabbed_object_by_hand.pop(event.hand_index, None)
            if released is not None:
                logger.debug("Hand %d released %s", event.hand_index, released)


def _scale_object(obj: WorldObject, factor: float) -> None:
    size = obj.size
    if obj.is_3d:
        # A 3D object created without a depth takes its width as the base.
        base_depth = size.depth if size.depth is not None else size.width
        size.depth = clamp(base_depth * factor, MIN_OBJECT_SIZE, MAX_OBJECT_SIZE)
    size.width = clamp(size.width * factor, MIN_OBJECT_SIZE, MAX_OBJECT_SIZE)
    size.height = clamp(size.height * factor, MIN_OBJECT_SIZE, MAX_OBJECT_SIZE)


def apply_movement_events(world: World, events: Iterable[GestureEvent]) -> None:
    state = world.interaction_state

    for event in events:
        selected = world.get_object(state.selected_object_by_hand.get(event.hand_index))
        if selected is None:
            continue

        if event.type == EVENT_SWIPE_RIGHT:
            _scale_object(selected, SWIPE_GROW_FACTOR)
            _bump_z_index(selected)
        elif event.type == EVENT_SWIPE_LEFT:
            _scale_object(selected, SWIPE_SHRINK_FACTOR)
            _bump_z_index(selected)
        elif event.type == EVENT_MOVEMENT_ACTIVE:
            _bump_z_index(selected)


def apply_pointer_tracking(world: World, pointer_map: dict[int, LandmarkPoint]) -> None:
    state = world.interaction_state

    for hand_index, object_id in state.grabbed_object_by_hand.items():
        pointer = pointer_map.get(hand_index)
        if pointer is None:
            continue
        obj = world.get_object(object_id)
        if obj is None or not obj.interactable:
            continue

        obj.position.x = clamp(pointer.x, 0.0, 1.0)
        obj.position.y = clamp(pointer.y, 0.0, 1.0)
        if obj.is_3d:
            obj.position.z = pointer_depth(pointer.z)


def apply_world_interaction(world: World, result: RecognitionResult) -> None:
    """Run the four interaction steps for one frame."""
    pointer_map = pointers_by_hand(result.hand_pointers)

    apply_pointer_selection(world, pointer_map)
    apply_one_time_events(world, result.one_time_events)
    apply_movement_events(world, result.movement_events)
    apply_pointer_tracking(world, pointer_map)
