"""
MediaPipe Hands wrapper (Tasks API, mediapipe >= 0.10).

Accepts a BGR frame from OpenCV, runs hand landmark detection in VIDEO mode,
and returns a :class:`RecognitionFrame` with one ``(21, 3)`` normalised
landmark array per detected hand.

``CameraHandDetector`` pairs the tracker with an OpenCV capture so the
gesture session can call a single ``detect(timestamp_ms)`` per frame.
"""

from __future__ import annotations

import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np

from .config import (
    MODEL_PATH,
    MP_MAX_NUM_HANDS,
    MP_MIN_DETECTION_CONFIDENCE,
    MP_MIN_TRACKING_CONFIDENCE,
)
from .landmarks import RecognitionFrame

logger = logging.getLogger("handworld.hand_tracker")

DEFAULT_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)

# Downloaded model cache, next to this file.
_MODEL_CACHE = Path(__file__).resolve().parent / "models" / "hand_landmarker.task"

BaseOptions = mp.tasks.BaseOptions
HandLandmarker = mp.tasks.vision.HandLandmarker
HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
RunningMode = mp.tasks.vision.RunningMode


class DetectionError(RuntimeError):
    """The landmark backend failed to initialise or to process a frame."""


def ensure_model(model_path: Optional[str] = MODEL_PATH) -> Path:
    """Return a local ``hand_landmarker.task``, downloading it if needed."""
    if model_path:
        path = Path(model_path).expanduser().resolve()
        if not path.exists():
            raise DetectionError(f"Model file not found at {path}")
        return path

    if _MODEL_CACHE.exists():
        return _MODEL_CACHE

    _MODEL_CACHE.parent.mkdir(exist_ok=True)
    tmp_path = _MODEL_CACHE.with_suffix(".task.tmp")
    logger.info("Downloading hand landmarker model to %s", _MODEL_CACHE)
    try:
        with urllib.request.urlopen(DEFAULT_MODEL_URL, timeout=60) as response:
            with open(tmp_path, "wb") as output_file:
                shutil.copyfileobj(response, output_file)
        tmp_path.replace(_MODEL_CACHE)
    except (urllib.error.URLError, TimeoutError, OSError) as exc:
        raise DetectionError(
            "Failed to download the hand landmarker model. Download it from "
            f"{DEFAULT_MODEL_URL} and set HANDWORLD_MODEL_PATH."
        ) from exc
    return _MODEL_CACHE


class HandTracker:
    """Thin wrapper around MediaPipe HandLandmarker (Tasks API)."""

    def __init__(self, model_path: Optional[str] = MODEL_PATH) -> None:
        try:
            options = HandLandmarkerOptions(
                base_options=BaseOptions(model_asset_path=str(ensure_model(model_path))),
                num_hands=MP_MAX_NUM_HANDS,
                min_hand_detection_confidence=MP_MIN_DETECTION_CONFIDENCE,
                min_tracking_confidence=MP_MIN_TRACKING_CONFIDENCE,
                running_mode=RunningMode.VIDEO,
            )
            self._landmarker = HandLandmarker.create_from_options(options)
        except DetectionError:
            raise
        except Exception as exc:
            raise DetectionError(f"Unable to load hand landmarker: {exc}") from exc
        self._last_ts_ms = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, bgr_frame: np.ndarray, timestamp_ms: float) -> RecognitionFrame:
        """Run detection on a BGR frame; hands are in detector order."""
        # Convert BGR -> RGB and wrap in a MediaPipe Image.
        rgb = bgr_frame[:, :, ::-1].copy()
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        # VIDEO mode requires strictly increasing integer timestamps.
        ts = max(int(timestamp_ms), self._last_ts_ms + 1)
        self._last_ts_ms = ts
        try:
            result = self._landmarker.detect_for_video(mp_image, ts)
        except Exception as exc:
            raise DetectionError(f"Hand landmark detection failed: {exc}") from exc

        return RecognitionFrame.from_landmarks(
            timestamp_ms,
            [[(lm.x, lm.y, lm.z) for lm in hand] for hand in (result.hand_landmarks or [])],
        )

    def close(self) -> None:
        """Release MediaPipe resources."""
        self._landmarker.close()


class CameraHandDetector:
    """Reads one camera frame per ``detect`` call and runs the tracker on it.

    The mirrored BGR frame is kept in ``last_image`` for the overlay.
    """

    def __init__(self, capture: "cv2.VideoCapture", tracker: Optional[HandTracker]) -> None:
        self.capture = capture
        self.tracker = tracker
        self.last_image: Optional[np.ndarray] = None

    def grab(self) -> Optional[np.ndarray]:
        ok, frame = self.capture.read()
        if not ok or frame is None:
            return None
        # Mirror the frame so it feels natural (like a mirror).
        self.last_image = cv2.flip(frame, 1)
        return self.last_image

    def detect(self, timestamp_ms: float) -> Optional[RecognitionFrame]:
        if self.tracker is None:
            raise DetectionError("hand tracker is not available")
        if self.last_image is None:
            return None
        return self.tracker.process(self.last_image, timestamp_ms)

    def close(self) -> None:
        if self.tracker is not None:
            self.tracker.close()
            self.tracker = None
