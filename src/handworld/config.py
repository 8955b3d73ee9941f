"""
Configuration constants for gesture recognition and the interaction world.

All tunable thresholds, debounce windows, buffer sizes, event names and
world defaults live here so they can be adjusted in one place without
touching recognizer or interaction logic.
"""

from __future__ import annotations

import math
import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Event type constants (used in event payloads and JSON output)
# ---------------------------------------------------------------------------
EVENT_PINCH_START = "pinch-start"
EVENT_PINCH_END = "pinch-end"
EVENT_SWIPE_LEFT = "swipe-left"
EVENT_SWIPE_RIGHT = "swipe-right"
EVENT_MOVEMENT_ACTIVE = "movement-active"

ONE_TIME_EVENTS = [EVENT_PINCH_START, EVENT_PINCH_END]
MOVEMENT_EVENTS = [EVENT_SWIPE_LEFT, EVENT_SWIPE_RIGHT, EVENT_MOVEMENT_ACTIVE]

# ---------------------------------------------------------------------------
# MediaPipe Hands configuration
# ---------------------------------------------------------------------------
MP_MAX_NUM_HANDS = 2
MP_MIN_DETECTION_CONFIDENCE = 0.5
MP_MIN_TRACKING_CONFIDENCE = 0.5

NUM_LANDMARKS = 21

# ---------------------------------------------------------------------------
# Pinch detection (thumb tip <-> index tip)
# ---------------------------------------------------------------------------
# Planar (x, y) distance in normalised coords below which the hand counts
# as pinching.  Transitions are edge-triggered, no hysteresis band.
PINCH_DISTANCE_THRESHOLD = 0.06

# ---------------------------------------------------------------------------
# Wrist history
# ---------------------------------------------------------------------------
# Samples older than this (ms) are dropped every frame.
WRIST_HISTORY_WINDOW_MS = 700.0

# Hard cap on retained samples, applied after the time window.
WRIST_HISTORY_MAX_SAMPLES = 60

# ---------------------------------------------------------------------------
# Continuous movement
# ---------------------------------------------------------------------------
# Planar wrist speed (normalised units per ms) above which movement counts.
MOVEMENT_SPEED_THRESHOLD = 0.00045

# Minimum gap (ms) between two movement-active emissions for one hand.
MOVEMENT_DEBOUNCE_MS = 150.0

# Floor on the time delta between samples, avoids dividing by ~0.
MOVEMENT_MIN_DT_MS = 1.0

# ---------------------------------------------------------------------------
# Swipe detection (oldest vs newest wrist sample)
# ---------------------------------------------------------------------------
SWIPE_MIN_DURATION_MS = 150.0
SWIPE_MAX_DURATION_MS = 700.0

# |dx| must exceed |dy| by this factor.
SWIPE_DIRECTIONALITY_RATIO = 1.5

SWIPE_MIN_DX = 0.18
SWIPE_MAX_DY = 0.12

# Per-hand cooldown (ms) after a swipe fires.
SWIPE_COOLDOWN_MS = 450.0

# ---------------------------------------------------------------------------
# MediaPipe landmark indices (for readability)
# ---------------------------------------------------------------------------
WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20

# ---------------------------------------------------------------------------
# World objects
# ---------------------------------------------------------------------------
KINDS_2D = ("circle", "rect")
KINDS_3D = ("box3d", "sphere3d", "model3d")
ALL_KINDS = KINDS_2D + KINDS_3D

RECT_LIKE_KINDS = ("rect", "box3d", "model3d")
CIRCLE_LIKE_KINDS = ("circle", "sphere3d")

# Depth assumed for 3D objects that were created without one.
DEFAULT_OBJECT_Z = 0.5

# Fill colours used when an object carries no explicit colour.
DEFAULT_INTERACTABLE_COLOR = "#f59e0b"
DEFAULT_STATIC_COLOR = "#60a5fa"

# Returned by colour inversion when the input is not a hex colour.
FALLBACK_COLOR = "#22d3ee"

# Built-in status indicator created with every world.
STATUS_DOT_ID = "status-dot"
STATUS_DOT_COLOR = "#22c55e"
STATUS_DOT_POSITION = (0.92, 0.08)
STATUS_DOT_SIZE = (0.03, 0.03)
STATUS_DOT_Z_INDEX = 10

# ---------------------------------------------------------------------------
# Interaction
# ---------------------------------------------------------------------------
# Extra slack (normalised depth) added to half the object depth when
# deciding whether a pointer is "at" a 3D object.
DEPTH_TOLERANCE = 0.15

# Pointer z is roughly negative toward the camera; remapped as
# clamp(POINTER_Z_OFFSET - POINTER_Z_SCALE * z, 0, 1).
POINTER_Z_OFFSET = 0.5
POINTER_Z_SCALE = 2.0

# Weight of z_index in the hit-test tie-break score.
Z_INDEX_SCORE_WEIGHT = 10_000

SWIPE_GROW_FACTOR = 1.08
SWIPE_SHRINK_FACTOR = 0.92
MIN_OBJECT_SIZE = 0.01
MAX_OBJECT_SIZE = 1.0

# ---------------------------------------------------------------------------
# Animation
# ---------------------------------------------------------------------------
DEFAULT_SPIN_SPEED_2D = math.pi / 3  # rad/s
DEFAULT_SPIN_SPEED_3D = math.pi / 2  # rad/s

# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------
# avg' = avg * LATENCY_EMA_DECAY + sample * (1 - LATENCY_EMA_DECAY)
LATENCY_EMA_DECAY = 0.9

# Number of formatted events kept for the overlay event log.
RECENT_EVENT_LOG_SIZE = 8

# ---------------------------------------------------------------------------
# Overlay / visualisation (BGR)
# ---------------------------------------------------------------------------
OVERLAY_FONT_SCALE = 0.6
OVERLAY_THICKNESS = 2
OVERLAY_TEXT_COLOR = (255, 255, 255)
OVERLAY_POINTER_COLOR = (0, 255, 0)
OVERLAY_SELECTED_COLOR = (255, 255, 0)
OVERLAY_GRABBED_COLOR = (0, 0, 255)
OVERLAY_ERROR_COLOR = (0, 0, 255)

# ---------------------------------------------------------------------------
# Webcam / runtime (environment overrides, optionally from a .env file)
# ---------------------------------------------------------------------------
load_dotenv()

CAMERA_INDEX = 0
CAMERA_WIDTH = 1280
CAMERA_HEIGHT = 720
TARGET_FPS = 60

# Camera source override (device index, file path, or stream URL).
CAMERA_SRC = os.environ.get("CAMERA_SRC")

HEADLESS = os.environ.get("HEADLESS", "0") in ("1", "true", "True")

# Invert the colours of the video frame behind the world overlay.
INVERT_VIDEO = os.environ.get("HANDWORLD_INVERT_VIDEO", "1") in ("1", "true", "True")

# Object-authoring HTTP surface.
API_ENABLED = os.environ.get("HANDWORLD_API", "0") in ("1", "true", "True")
API_HOST = os.environ.get("HANDWORLD_API_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("HANDWORLD_API_PORT", "8000"))

# Path to the MediaPipe hand_landmarker.task model file.
MODEL_PATH = os.environ.get("HANDWORLD_MODEL_PATH")

# Seed a few demo objects at startup.
DEMO_OBJECTS = os.environ.get("HANDWORLD_DEMO_OBJECTS", "1") in ("1", "true", "True")
