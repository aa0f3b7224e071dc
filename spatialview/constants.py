"""Configuration constants, paths, and environment overrides."""

import os
import math
import pathlib
import logging
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

BASE_DIR = pathlib.Path(__file__).resolve().parent.parent
OUTPUT_DIR = pathlib.Path(os.environ.get("SPATIALVIEW_OUTPUT_DIR", BASE_DIR / "output"))


def _env_float(name: str, default: float, low: Optional[float] = None,
               high: Optional[float] = None) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not a number")
        return default
    if (low is not None and value < low) or (high is not None and value > high):
        logger.warning(f"Ignoring {name}={raw!r}: outside [{low}, {high}]")
        return default
    return value


# ── World scale ──────────────────────────────────────────────────────────
# Plan coordinates are metres; multiplied by the floor's plan scale they
# become plan pixels, multiplied by GLOBAL_SCALE they become world units.
GLOBAL_SCALE = 1.0 / 30.0
DEFAULT_PLAN_SCALE = 30.0       # pixels per metre
SLAB_THICKNESS = 0.1            # world units
DEFAULT_WALL_HEIGHT = 3.0       # wall-segment mode without a floor
WALL_THICKNESS = 0.2
MIN_WALL_LENGTH = 0.001
FALLBACK_WALL_SIZE = 0.1
UV_SCALE = 100.0

# ── Camera frame ─────────────────────────────────────────────────────────
MIN_HORIZONTAL_EXTENT = 20.0
CAMERA_LOWER_RADIUS = 5.0
CAMERA_UPPER_RADIUS_FACTOR = 4.0
CAMERA_DISTANCE_FACTOR = 2.0
CAMERA_ALPHA = -math.pi / 2.5
CAMERA_BETA = math.pi / 3

# ── Metric thresholds ────────────────────────────────────────────────────
# Ascending breakpoints (green, yellow, orange, red) per metric name.
METRIC_THRESHOLDS = {
    'CO2':  (600.0, 800.0, 1000.0, 1500.0),    # ppm
    'TVOC': (150.0, 250.0, 400.0, 600.0),      # ppb
    'PM25': (10.0, 15.0, 25.0, 35.0),          # µg/m³
}
DEFAULT_THRESHOLDS = (0.25, 0.5, 0.75, 1.0)

BAND_COLORS = {
    'green':  (0.20, 0.75, 0.30),
    'yellow': (0.95, 0.85, 0.20),
    'orange': (0.95, 0.55, 0.15),
    'red':    (0.85, 0.15, 0.15),
}

# ── Confidence tiers ─────────────────────────────────────────────────────
HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.6
HIGH_CONFIDENCE_ALPHA = 0.9
MEDIUM_CONFIDENCE_ALPHA = 0.75
LOW_CONFIDENCE_ALPHA = 0.55
MEDIUM_DESATURATION = 0.3
LOW_DESATURATION = 0.8
MID_GRAY = (0.5, 0.5, 0.5)
UNCERTAIN_EMISSIVE = (0.25, 0.10, 0.35)   # violet tint

# ── Materials ────────────────────────────────────────────────────────────
NEUTRAL_COLOR = (0.6, 0.6, 0.6)
NEUTRAL_ALPHA = 0.5
ZONE_COLOR = (0.85, 0.85, 0.85)        # walls with no metric context
SLAB_COLOR = (0.95, 0.95, 0.90)
GROUND_COLOR = (0.9, 0.9, 0.9)
GROUND_ALPHA = 0.8
SELECTED_WALL_ALPHA = _env_float("SPATIALVIEW_SELECTED_WALL_ALPHA", 0.2, low=0.0, high=1.0)

# ── Playback ─────────────────────────────────────────────────────────────
PLAYBACK_INTERVAL = _env_float("SPATIALVIEW_TICK_MS", 500.0, low=1.0) / 1000.0  # seconds
