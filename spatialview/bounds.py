"""Horizontal bounds of a building and the camera frame derived from them."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from shapely.geometry import MultiPoint

from .constants import (
    CAMERA_ALPHA,
    CAMERA_BETA,
    CAMERA_DISTANCE_FACTOR,
    CAMERA_LOWER_RADIUS,
    CAMERA_UPPER_RADIUS_FACTOR,
    GLOBAL_SCALE,
    MIN_HORIZONTAL_EXTENT,
)
from .models import SpatialModel, Wall

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanBounds:
    """Axis-aligned box in plan-pixel space."""
    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> tuple[float, float]:
        return (self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0

    @classmethod
    def from_points(cls, points: Sequence[tuple[float, float]]) -> "PlanBounds":
        if not points:
            return cls()
        min_x, min_y, max_x, max_y = MultiPoint(points).bounds
        return cls(min_x=min_x, max_x=max_x, min_y=min_y, max_y=max_y)


@dataclass(frozen=True)
class CameraFrame:
    center_offset: tuple[float, float]
    max_horizontal_extent: float
    total_height: float
    target: tuple[float, float, float]
    lower_radius: float
    upper_radius: float
    distance: float
    alpha: float = CAMERA_ALPHA
    beta: float = CAMERA_BETA


def zone_bounds(model: Optional[SpatialModel]) -> PlanBounds:
    """Bounds of every zone vertex on every floor, scaled to plan pixels."""
    points: list[tuple[float, float]] = []
    if model is not None:
        for floor in model.building.floors:
            scale = floor.effective_plan_scale
            for zone in floor.zones:
                points.extend((p.x * scale, p.y * scale) for p in zone.polygon)
    return PlanBounds.from_points(points)


def wall_bounds(walls: Sequence[Wall]) -> PlanBounds:
    points: list[tuple[float, float]] = []
    for wall in walls:
        points.append((wall.start.x, wall.start.y))
        points.append((wall.end.x, wall.end.y))
    return PlanBounds.from_points(points)


def center_offset(bounds: PlanBounds,
                  global_scale: float = GLOBAL_SCALE) -> tuple[float, float]:
    """World offset that moves the centre of *bounds* to the origin."""
    cx, cy = bounds.center
    return -(cx * global_scale), -(cy * global_scale)


def max_horizontal_extent(bounds: PlanBounds,
                          global_scale: float = GLOBAL_SCALE) -> float:
    extent = max(bounds.width, bounds.height) * global_scale
    return max(extent, MIN_HORIZONTAL_EXTENT)


def camera_frame(bounds: PlanBounds, total_height: float,
                 global_scale: float = GLOBAL_SCALE) -> CameraFrame:
    """Orbit-camera parameters for a building centred at the world origin."""
    extent = max_horizontal_extent(bounds, global_scale)
    frame = CameraFrame(
        center_offset=center_offset(bounds, global_scale),
        max_horizontal_extent=extent,
        total_height=total_height,
        target=(0.0, total_height / 2.0, 0.0),
        lower_radius=CAMERA_LOWER_RADIUS,
        upper_radius=extent * CAMERA_UPPER_RADIUS_FACTOR,
        distance=max(extent, total_height) * CAMERA_DISTANCE_FACTOR,
    )
    logger.debug(f"Camera frame: extent={extent:.2f}, height={total_height:.2f}")
    return frame
