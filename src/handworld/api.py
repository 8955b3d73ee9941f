"""Object-authoring HTTP surface: a FastAPI app around a running session.

The webcam entry point serves this app in a background thread when
``HANDWORLD_API=1``.  Routes never mutate the world directly: object
requests are validated and queued on the session, and land at the start of
its next frame.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from .session import GestureSession
from .world import ObjectRequest, ObjectRequestError

logger = logging.getLogger("handworld.api")

router = APIRouter()


class PositionPayload(BaseModel):
    x: float
    y: float
    z: Optional[float] = None


class SizePayload(BaseModel):
    width: float
    height: float
    depth: Optional[float] = None


class ObjectRequestPayload(BaseModel):
    """Payload sent by an authoring UI."""

    kind: Literal["circle", "rect", "box3d", "sphere3d", "model3d"]
    position: PositionPayload
    size: SizePayload
    color: Optional[str] = None
    model_url: Optional[str] = Field(default=None, alias="modelUrl")
    id: Optional[str] = None
    interactable: bool = True
    z_index: Optional[int] = Field(default=None, alias="zIndex")
    spin_speed: Optional[float] = Field(default=None, alias="spinSpeed")
    animate: Optional[bool] = None

    model_config = {"populate_by_name": True, "protected_namespaces": ()}

    def to_request(self) -> ObjectRequest:
        return ObjectRequest(
            kind=self.kind,
            position=(self.position.x, self.position.y, self.position.z),
            size=(self.size.width, self.size.height, self.size.depth),
            color=self.color,
            model_url=self.model_url,
            id=self.id,
            interactable=self.interactable,
            z_index=self.z_index,
            spin_speed=self.spin_speed,
            animate=self.animate,
        )


def _session(request: Request) -> GestureSession:
    return request.app.state.session


@router.get("/health")
async def health() -> dict:
    """Simple health-check endpoint."""
    return {"status": "ok"}


@router.get("/world")
async def get_world(request: Request) -> dict:
    """Latest published world snapshot."""
    return _session(request).snapshot.to_dict()


@router.get("/metrics")
async def get_metrics(request: Request) -> dict:
    """Detection latency (raw + EMA) and detector status."""
    return _session(request).status()


@router.post("/objects")
async def post_object(payload: ObjectRequestPayload, request: Request) -> dict:
    """Validate an add-object request and queue it for the next frame."""
    try:
        obj = _session(request).request_object(payload.to_request())
    except ObjectRequestError as exc:
        logger.warning("Rejected object request: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"status": "queued", "id": obj.id}


def create_app(session: GestureSession) -> FastAPI:
    app = FastAPI(
        title="handworld",
        description="Add objects to a gesture-driven world and inspect its state.",
        version="0.1.0",
    )
    app.state.session = session
    app.include_router(router)
    return app

