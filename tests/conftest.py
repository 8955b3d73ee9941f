from __future__ import annotations

import numpy as np
import pytest

from handworld.config import INDEX_TIP, NUM_LANDMARKS, THUMB_TIP, WRIST
from handworld.landmarks import RecognitionFrame
from handworld.world import Position, Size, WorldObject, create_world


def make_hand(
    index=(0.5, 0.5, 0.0),
    wrist=(0.5, 0.8, 0.0),
    pinched: bool = False,
) -> np.ndarray:
    """A (21, 3) hand; the thumb sits 0.10 left of the index tip unless pinched."""
    hand = np.tile(np.asarray(wrist, dtype=np.float64), (NUM_LANDMARKS, 1))
    hand[WRIST] = wrist
    hand[INDEX_TIP] = index
    offset = 0.01 if pinched else 0.10
    hand[THUMB_TIP] = (index[0] - offset, index[1], index[2])
    return hand


def make_frame(timestamp: float, *hands: np.ndarray) -> RecognitionFrame:
    return RecognitionFrame(timestamp=timestamp, hands=list(hands))


def wrist_frame(timestamp: float, x: float, y: float) -> RecognitionFrame:
    """One hand whose wrist is at (x, y); fingers kept apart."""
    return make_frame(timestamp, make_hand(index=(x, y - 0.2, 0.0), wrist=(x, y, 0.0)))


def make_object(
    object_id: str,
    kind: str = "rect",
    x: float = 0.5,
    y: float = 0.5,
    width: float = 0.2,
    height: float = 0.2,
    z=None,
    depth=None,
    z_index=None,
    color=None,
    interactable: bool = True,
) -> WorldObject:
    return WorldObject(
        id=object_id,
        kind=kind,
        interactable=interactable,
        position=Position(x, y, z),
        size=Size(width, height, depth),
        rotation=0.0,
        z_index=z_index,
        color=color,
    )


@pytest.fixture
def world():
    return create_world()
