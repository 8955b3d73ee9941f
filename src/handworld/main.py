"""
Entry point – webcam frame loop.

Wires together:
  Camera  ->  HandTracker  ->  GestureSession (recognizers -> interaction
                                               -> animation)
                           ->  Overlay
                           ->  JSON stdout (one line per event)
                           ->  optional object-authoring HTTP API
"""

from __future__ import annotations

import json
import logging
import sys
import threading

import cv2

from .config import (
    API_ENABLED,
    API_HOST,
    API_PORT,
    CAMERA_HEIGHT,
    CAMERA_INDEX,
    CAMERA_SRC,
    CAMERA_WIDTH,
    DEMO_OBJECTS,
    HEADLESS,
    INVERT_VIDEO,
    TARGET_FPS,
)
from .hand_tracker import CameraHandDetector, DetectionError, HandTracker
from .overlay import draw_overlay
from .scheduler import LoopScheduler
from .session import FrameReport, GestureSession
from .world import ObjectRequest, ObjectRequestError

logger = logging.getLogger("handworld.main")

_WINDOW_NAME = "handworld"

# A few objects to play with when nothing else adds any.
_DEMO_OBJECTS = [
    ObjectRequest(kind="rect", position=(0.3, 0.4), size=(0.16, 0.12), color="#f59e0b"),
    ObjectRequest(kind="circle", position=(0.55, 0.35), size=(0.12, 0.12), color="#a855f7"),
    ObjectRequest(kind="box3d", position=(0.7, 0.6, 0.5), size=(0.14, 0.14, 0.14), color="#10b981"),
]


def _emit_json(report: FrameReport) -> None:
    """Write one JSON line per recognized event to stdout."""
    for event in report.events:
        sys.stdout.write(json.dumps(event.to_dict()) + "\n")
    if report.events:
        sys.stdout.flush()


def _format_ms(label: str, value) -> str:
    return f"{label}: {value:.2f} ms" if value is not None else f"{label}: n/a"


def _resolve_camera_source():
    # If CAMERA_SRC is a number use it as a device index; otherwise pass the
    # string through (file path, rtsp/http stream).
    if CAMERA_SRC is None:
        return CAMERA_INDEX
    try:
        return int(CAMERA_SRC)
    except ValueError:
        return CAMERA_SRC


def _start_api(session: GestureSession) -> None:
    import uvicorn

    from .api import create_app

    config = uvicorn.Config(create_app(session), host=API_HOST, port=API_PORT, log_level="warning")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="handworld-api", daemon=True)
    thread.start()
    logger.info("Object API available at http://%s:%d/", API_HOST, API_PORT)


def _seed_demo_objects(session: GestureSession) -> None:
    for request in _DEMO_OBJECTS:
        try:
            session.request_object(request)
        except ObjectRequestError as exc:
            logger.warning("Demo object rejected: %s", exc)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(name)-24s  %(levelname)-7s  %(message)s",
        datefmt="%H:%M:%S",
    )

    camera_src = _resolve_camera_source()
    cap = cv2.VideoCapture(camera_src)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)
    if not cap.isOpened():
        logger.error("Cannot open camera source %r", camera_src)
        sys.exit(1)

    # A tracker that fails to load leaves recognition disabled; the video
    # and the world keep running.
    try:
        tracker = HandTracker()
    except DetectionError:
        logger.exception("Hand tracker unavailable")
        tracker = None

    detector = CameraHandDetector(cap, tracker)
    scheduler = LoopScheduler(target_fps=TARGET_FPS)
    session = GestureSession(detector, scheduler)

    def _grab(_timestamp_ms: float) -> None:
        detector.grab()

    def _render(report: FrameReport) -> None:
        _emit_json(report)
        image = detector.last_image
        if image is None:
            return
        status = [
            f"detector: {'ready' if session.recognition_enabled else 'off'}",
            _format_ms("frame", session.latency.last_ms),
            _format_ms("avg (EMA)", session.latency.average_ms),
        ]
        frame = draw_overlay(
            image.copy(),
            report.snapshot,
            pointers=session.last_pointers,
            status_lines=status,
            event_lines=list(session.recent_events),
            error=session.error,
            invert_video=INVERT_VIDEO,
        )
        if not HEADLESS:
            cv2.imshow(_WINDOW_NAME, frame)
            if cv2.waitKey(1) & 0xFF == ord("q"):
                session.teardown()

    session.before_frame.append(_grab)
    session.after_frame.append(_render)

    if DEMO_OBJECTS:
        _seed_demo_objects(session)
    if API_ENABLED:
        _start_api(session)

    logger.info("handworld started. Press 'q' to quit.")
    session.start()
    try:
        scheduler.run()
    except KeyboardInterrupt:
        pass
    finally:
        session.teardown()
        cap.release()
        if not HEADLESS:
            cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
