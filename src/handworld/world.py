"""
World model: positioned objects, paint order, and per-hand interaction state.

Coordinates are normalised to the presentation surface: ``x``/``y`` in
``[0, 1]`` with the origin top-left, and for 3D kinds an optional depth
``z`` in ``[0, 1]``.  ``object_order`` records insertion order and is the
tie-break for painting and hit-testing.

``InteractionState`` maps are keyed by the *current frame's* hand index.
Any entry may point at an id that has since been removed; readers must go
through :meth:`World.get_object` and treat ``None`` as "absent".
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Optional

from .color import normalize_hex
from .config import (
    ALL_KINDS,
    DEFAULT_INTERACTABLE_COLOR,
    DEFAULT_STATIC_COLOR,
    KINDS_3D,
    STATUS_DOT_COLOR,
    STATUS_DOT_ID,
    STATUS_DOT_POSITION,
    STATUS_DOT_SIZE,
    STATUS_DOT_Z_INDEX,
    Z_INDEX_SCORE_WEIGHT,
)

logger = logging.getLogger("handworld.world")


class ObjectRequestError(ValueError):
    """An add-object request was rejected; the world was not modified."""


def is_3d_kind(kind: str) -> bool:
    return kind in KINDS_3D


# ---------------------------------------------------------------------------
# Object data
# ---------------------------------------------------------------------------

@dataclass
class Position:
    x: float
    y: float
    z: Optional[float] = None


@dataclass
class Size:
    width: float
    height: float
    depth: Optional[float] = None


@dataclass
class Animation:
    enabled: Optional[bool] = None
    spin_speed: Optional[float] = None


@dataclass
class WorldObject:
    """A shape or asset reference in the shared normalised scene.

    ``kind`` is fixed at creation; 2D kinds never carry ``z`` / ``depth``.
    """

    id: str
    kind: str
    interactable: bool
    position: Position
    size: Size
    rotation: Optional[float] = None
    animation: Optional[Animation] = None
    model_url: Optional[str] = None
    visible: Optional[bool] = None
    z_index: Optional[int] = None
    color: Optional[str] = None

    @property
    def is_3d(self) -> bool:
        return is_3d_kind(self.kind)

    @property
    def is_visible(self) -> bool:
        return self.visible is not False

    @property
    def effective_z_index(self) -> int:
        return self.z_index or 0

    @property
    def display_color(self) -> str:
        """Explicit colour, or the default fill for this object."""
        if self.color is not None:
            return self.color
        return DEFAULT_INTERACTABLE_COLOR if self.interactable else DEFAULT_STATIC_COLOR

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe dict using the camelCase keys the overlay/UI expects."""
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "interactable": self.interactable,
            "position": {k: v for k, v in asdict(self.position).items() if v is not None},
            "size": {k: v for k, v in asdict(self.size).items() if v is not None},
        }
        if self.rotation is not None:
            data["rotation"] = self.rotation
        if self.animation is not None:
            anim = {}
            if self.animation.enabled is not None:
                anim["enabled"] = self.animation.enabled
            if self.animation.spin_speed is not None:
                anim["spinSpeed"] = self.animation.spin_speed
            data["animation"] = anim
        if self.model_url is not None:
            data["modelUrl"] = self.model_url
        if self.visible is not None:
            data["visible"] = self.visible
        if self.z_index is not None:
            data["zIndex"] = self.z_index
        if self.color is not None:
            data["color"] = self.color
        return data


_OBJECT_FIELDS = frozenset(f.name for f in fields(WorldObject))


@dataclass
class InteractionState:
    """Hand index -> object id, for hover selection and pinch grabs."""

    selected_object_by_hand: dict[int, str] = field(default_factory=dict)
    grabbed_object_by_hand: dict[int, str] = field(default_factory=dict)

    def is_interacted(self, object_id: str) -> bool:
        return (
            object_id in self.selected_object_by_hand.values()
            or object_id in self.grabbed_object_by_hand.values()
        )

    def forget_object(self, object_id: str) -> None:
        for mapping in (self.selected_object_by_hand, self.grabbed_object_by_hand):
            for hand_index in [h for h, oid in mapping.items() if oid == object_id]:
                del mapping[hand_index]

    def clear(self) -> None:
        self.selected_object_by_hand.clear()
        self.grabbed_object_by_hand.clear()


@dataclass(frozen=True)
class WorldSnapshot:
    """Read-only view of the world handed to presentation each frame."""

    objects: tuple[WorldObject, ...]
    selected: dict[int, str]
    grabbed: dict[int, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "objects": [o.to_dict() for o in self.objects],
            "selectedObjectByHand": {str(k): v for k, v in self.selected.items()},
            "grabbedObjectByHand": {str(k): v for k, v in self.grabbed.items()},
        }


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------

class World:
    """Objects keyed by id plus an explicit insertion order."""

    def __init__(self) -> None:
        self.objects: dict[str, WorldObject] = {}
        self.object_order: list[str] = []
        self.interaction_state = InteractionState()
        self._id_counter = 0

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_object(self, obj: WorldObject) -> WorldObject:
        """Insert or replace *obj*; a replaced id keeps its original order slot."""
        self.objects[obj.id] = obj
        if obj.id not in self.object_order:
            self.object_order.append(obj.id)
        logger.debug("Added object %s (%s)", obj.id, obj.kind)
        return obj

    def remove_object(self, object_id: str) -> None:
        self.objects.pop(object_id, None)
        self.object_order = [oid for oid in self.object_order if oid != object_id]
        self.interaction_state.forget_object(object_id)

    def update_object(self, object_id: str, **patch: Any) -> Optional[WorldObject]:
        """Shallow-patch an object's fields.  Unknown ids are a no-op.

        ``id`` and ``kind`` cannot be changed.
        """
        current = self.objects.get(object_id)
        if current is None:
            return None
        for key in ("id", "kind"):
            if key in patch:
                raise ValueError(f"cannot change {key!r} of an existing object")
        for key, value in patch.items():
            if key not in _OBJECT_FIELDS:
                raise AttributeError(f"WorldObject has no field {key!r}")
            setattr(current, key, value)
        return current

    def next_object_id(self, kind: str) -> str:
        while True:
            self._id_counter += 1
            candidate = f"{kind}-{self._id_counter}"
            if candidate not in self.objects:
                return candidate

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_object(self, object_id: Optional[str]) -> Optional[WorldObject]:
        if object_id is None:
            return None
        return self.objects.get(object_id)

    def order_index(self, object_id: str) -> int:
        try:
            return self.object_order.index(object_id)
        except ValueError:
            return -1

    def sort_score(self, obj: WorldObject) -> int:
        """Hit-test tie-break: higher wins."""
        return obj.effective_z_index * Z_INDEX_SCORE_WEIGHT + self.order_index(obj.id)

    def ordered_objects(self) -> list[WorldObject]:
        """Objects in paint order: ascending ``z_index``, ties by insertion."""
        objs = [self.objects[oid] for oid in self.object_order if oid in self.objects]
        return sorted(objs, key=lambda o: o.effective_z_index)

    def snapshot(self) -> WorldSnapshot:
        state = self.interaction_state
        return WorldSnapshot(
            objects=tuple(copy.deepcopy(self.ordered_objects())),
            selected=dict(state.selected_object_by_hand),
            grabbed=dict(state.grabbed_object_by_hand),
        )

    def __len__(self) -> int:
        return len(self.objects)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self.objects


def create_world() -> World:
    """New world containing only the built-in status indicator."""
    world = World()
    world.add_object(WorldObject(
        id=STATUS_DOT_ID,
        kind="circle",
        interactable=False,
        position=Position(*STATUS_DOT_POSITION),
        size=Size(*STATUS_DOT_SIZE),
        color=STATUS_DOT_COLOR,
        visible=True,
        z_index=STATUS_DOT_Z_INDEX,
    ))
    return world


# ---------------------------------------------------------------------------
# Object-creation requests
# ---------------------------------------------------------------------------

@dataclass
class ObjectRequest:
    """An "add object" request as produced by an authoring UI."""

    kind: str
    position: tuple[float, ...]
    size: tuple[float, ...]
    color: Optional[str] = None
    model_url: Optional[str] = None
    id: Optional[str] = None
    interactable: bool = True
    z_index: Optional[int] = None
    spin_speed: Optional[float] = None
    animate: Optional[bool] = None


def _finite(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ObjectRequestError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ObjectRequestError(f"{name} must be finite, got {value!r}")
    return float(value)


def _unit(value: float, name: str) -> float:
    if not 0.0 <= value <= 1.0:
        raise ObjectRequestError(f"{name} must be within [0, 1], got {value!r}")
    return value


def build_object(world: World, request: ObjectRequest) -> WorldObject:
    """Validate *request* and build the ``WorldObject`` it describes.

    Raises :class:`ObjectRequestError` with a descriptive message on any
    problem.  Apart from reserving a generated id, *world* is not modified.
    """
    kind = request.kind
    if kind not in ALL_KINDS:
        raise ObjectRequestError(f"unknown kind {kind!r}; expected one of {', '.join(ALL_KINDS)}")

    model_url = request.model_url.strip() if isinstance(request.model_url, str) else None
    if kind == "model3d" and not model_url:
        raise ObjectRequestError("model3d objects require a model URL")

    if len(request.position) < 2 or len(request.size) < 2:
        raise ObjectRequestError("position and size need at least two components")

    x = _unit(_finite(request.position[0], "position.x"), "position.x")
    y = _unit(_finite(request.position[1], "position.y"), "position.y")
    width = _finite(request.size[0], "size.width")
    height = _finite(request.size[1], "size.height")
    if width <= 0 or height <= 0:
        raise ObjectRequestError("size.width and size.height must be positive")

    z = depth = None
    if is_3d_kind(kind):
        if len(request.position) > 2 and request.position[2] is not None:
            z = _unit(_finite(request.position[2], "position.z"), "position.z")
        if len(request.size) > 2 and request.size[2] is not None:
            depth = _finite(request.size[2], "size.depth")
            if depth <= 0:
                raise ObjectRequestError("size.depth must be positive")

    color = None
    if request.color is not None:
        color = normalize_hex(request.color)
        if color is None:
            raise ObjectRequestError(f"color must be #rrggbb or #rgb, got {request.color!r}")

    if request.spin_speed is not None:
        _finite(request.spin_speed, "spin_speed")

    object_id = request.id or world.next_object_id(kind)
    if object_id in world:
        raise ObjectRequestError(f"object id {object_id!r} already exists")

    animation = None
    if request.spin_speed is not None or request.animate is not None:
        animation = Animation(enabled=request.animate, spin_speed=request.spin_speed)

    return WorldObject(
        id=object_id,
        kind=kind,
        interactable=request.interactable,
        position=Position(x, y, z),
        size=Size(width, height, depth),
        rotation=0.0,
        animation=animation,
        model_url=model_url if is_3d_kind(kind) else None,
        visible=True,
        z_index=request.z_index,
        color=color,
    )


def add_requested_object(world: World, request: ObjectRequest) -> WorldObject:
    """Validate and insert; the world is unchanged if validation fails."""
    obj = build_object(world, request)
    return world.add_object(obj)
