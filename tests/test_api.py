from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from handworld.api import create_app
from handworld.scheduler import ManualScheduler
from handworld.session import GestureSession


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def session(scheduler):
    session = GestureSession(None, scheduler)
    session.start()
    return session


@pytest.fixture
def client(session):
    return TestClient(create_app(session))


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_world_returns_snapshot(client):
    data = client.get("/world").json()
    assert [o["id"] for o in data["objects"]] == ["status-dot"]
    assert data["objects"][0]["interactable"] is False
    assert data["selectedObjectByHand"] == {}
    assert data["grabbedObjectByHand"] == {}


def test_post_object_is_queued_until_next_frame(client, session, scheduler):
    resp = client.post("/objects", json={
        "kind": "box3d",
        "position": {"x": 0.4, "y": 0.6, "z": 0.3},
        "size": {"width": 0.1, "height": 0.1, "depth": 0.2},
        "color": "#0F0",
        "zIndex": 2,
    })
    assert resp.status_code == 200
    assert resp.json() == {"status": "queued", "id": "box3d-1"}
    assert "box3d-1" not in session.world

    scheduler.fire(0.0)

    objects = {o["id"]: o for o in client.get("/world").json()["objects"]}
    box = objects["box3d-1"]
    assert box["position"] == {"x": 0.4, "y": 0.6, "z": 0.3}
    assert box["size"]["depth"] == 0.2
    assert box["color"] == "#00ff00"
    assert box["zIndex"] == 2


def test_model3d_without_url_is_rejected(client, session, scheduler):
    resp = client.post("/objects", json={
        "kind": "model3d",
        "position": {"x": 0.5, "y": 0.5},
        "size": {"width": 0.2, "height": 0.2},
    })
    assert resp.status_code == 400
    assert "model URL" in resp.json()["detail"]

    scheduler.fire(0.0)
    assert list(session.world.objects) == ["status-dot"]


def test_model3d_with_url_is_accepted(client):
    resp = client.post("/objects", json={
        "kind": "model3d",
        "position": {"x": 0.5, "y": 0.5},
        "size": {"width": 0.2, "height": 0.2},
        "modelUrl": "https://example.com/duck.glb",
    })
    assert resp.status_code == 200


@pytest.mark.parametrize("payload", [
    {"kind": "triangle", "position": {"x": 0.5, "y": 0.5}, "size": {"width": 0.1, "height": 0.1}},
    {"kind": "rect", "position": {"x": 0.5}, "size": {"width": 0.1, "height": 0.1}},
    {"kind": "rect", "position": {"x": 0.5, "y": 0.5}},
])
def test_malformed_payload_is_422(client, payload):
    assert client.post("/objects", json=payload).status_code == 422


def test_bad_color_is_400(client):
    resp = client.post("/objects", json={
        "kind": "circle",
        "position": {"x": 0.5, "y": 0.5},
        "size": {"width": 0.1, "height": 0.1},
        "color": "not-a-colour",
    })
    assert resp.status_code == 400


def test_metrics(client, scheduler):
    scheduler.fire(0.0)
    data = client.get("/metrics").json()
    assert data["frame_ms"] is None
    assert data["avg_frame_ms"] is None
    assert data["recognition_enabled"] is False
    assert data["error"] == "no landmark detector"
    assert data["frames"] == 1


def test_post_object_with_animation_disabled(client, session, scheduler):
    resp = client.post("/objects", json={
        "kind": "rect",
        "id": "still",
        "position": {"x": 0.3, "y": 0.3},
        "size": {"width": 0.1, "height": 0.1},
        "animate": False,
    })
    assert resp.status_code == 200

    scheduler.fire(0.0)
    scheduler.fire(500.0)

    objects = {o["id"]: o for o in client.get("/world").json()["objects"]}
    assert objects["still"]["animation"] == {"enabled": False}
    assert objects["still"]["rotation"] == 0.0
    assert objects["status-dot"]["rotation"] > 0.0


def test_out_of_range_position_is_400(client):
    resp = client.post("/objects", json={
        "kind": "rect",
        "position": {"x": 1.5, "y": 0.5},
        "size": {"width": 0.1, "height": 0.1},
    })
    assert resp.status_code == 400
    assert "position.x" in resp.json()["detail"]
