"""Idle spin for objects nobody is touching."""

from __future__ import annotations

import math

from .config import DEFAULT_SPIN_SPEED_2D, DEFAULT_SPIN_SPEED_3D
from .world import World, WorldObject

TWO_PI = 2.0 * math.pi


def spin_speed(obj: WorldObject) -> float:
    """Per-object override, else the default for its dimensionality (rad/s)."""
    if obj.animation is not None and obj.animation.spin_speed is not None:
        return obj.animation.spin_speed
    return DEFAULT_SPIN_SPEED_3D if obj.is_3d else DEFAULT_SPIN_SPEED_2D


def normalize_angle(angle: float) -> float:
    """Wrap *angle* into ``[0, 2*pi)``."""
    wrapped = math.fmod(angle, TWO_PI)
    if wrapped < 0:
        wrapped += TWO_PI
    # fmod of a tiny negative can round up to exactly 2*pi.
    return 0.0 if wrapped >= TWO_PI else wrapped


def apply_world_animation(world: World, delta_seconds: float) -> None:
    """Advance ``rotation`` of every visible, idle, animated object.

    Objects selected or grabbed by any hand keep their rotation.  A
    non-positive delta (first frame, clock hiccup) is a no-op.
    """
    if delta_seconds <= 0:
        return

    state = world.interaction_state
    for obj in world.objects.values():
        if not obj.is_visible:
            continue
        if obj.animation is not None and obj.animation.enabled is False:
            continue
        if state.is_interacted(obj.id):
            continue
        obj.rotation = normalize_angle((obj.rotation or 0.0) + spin_speed(obj) * delta_seconds)
