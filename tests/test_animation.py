from __future__ import annotations

import math

import pytest

from conftest import make_object
from handworld.animation import TWO_PI, apply_world_animation, normalize_angle, spin_speed
from handworld.world import Animation


def test_default_spin_speeds():
    assert spin_speed(make_object("r")) == pytest.approx(math.pi / 3)
    assert spin_speed(make_object("b", kind="box3d")) == pytest.approx(math.pi / 2)


def test_override_spin_wraps_into_range(world):
    obj = world.add_object(make_object("a"))
    obj.animation = Animation(spin_speed=math.pi)
    obj.rotation = 1.5 * math.pi
    apply_world_animation(world, 1.0)
    assert obj.rotation == pytest.approx(0.5 * math.pi)
    assert 0.0 <= obj.rotation < TWO_PI


def test_rotation_advances_by_speed_times_dt(world):
    obj = world.add_object(make_object("a"))
    obj.animation = Animation(spin_speed=math.pi)
    apply_world_animation(world, 0.25)
    assert obj.rotation == pytest.approx(math.pi / 4)


def test_missing_rotation_starts_at_zero(world):
    obj = world.add_object(make_object("b", kind="sphere3d"))
    obj.rotation = None
    apply_world_animation(world, 0.5)
    assert obj.rotation == pytest.approx(math.pi / 4)


@pytest.mark.parametrize("delta", [0.0, -0.016])
def test_non_positive_delta_is_noop(world, delta):
    obj = world.add_object(make_object("a"))
    apply_world_animation(world, delta)
    assert obj.rotation == 0.0


def test_selected_and_grabbed_objects_do_not_rotate(world):
    selected = world.add_object(make_object("selected"))
    grabbed = world.add_object(make_object("grabbed"))
    idle = world.add_object(make_object("idle"))
    world.interaction_state.selected_object_by_hand[0] = "selected"
    world.interaction_state.grabbed_object_by_hand[1] = "grabbed"

    apply_world_animation(world, 0.1)

    assert selected.rotation == 0.0
    assert grabbed.rotation == 0.0
    assert idle.rotation > 0.0


def test_disabled_and_hidden_objects_are_skipped(world):
    disabled = world.add_object(make_object("disabled"))
    disabled.animation = Animation(enabled=False)
    hidden = world.add_object(make_object("hidden"))
    hidden.visible = False

    apply_world_animation(world, 0.1)

    assert disabled.rotation == 0.0
    assert hidden.rotation == 0.0


def test_status_dot_spins_like_any_circle(world):
    apply_world_animation(world, 0.3)
    assert world.objects["status-dot"].rotation == pytest.approx(0.1 * math.pi)


@pytest.mark.parametrize("angle, expected", [
    (0.0, 0.0),
    (TWO_PI, 0.0),
    (-0.5 * math.pi, 1.5 * math.pi),
    (5 * math.pi, math.pi),
])
def test_normalize_angle(angle, expected):
    assert normalize_angle(angle) == pytest.approx(expected)
