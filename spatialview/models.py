"""Spatial model data classes and immutable update helpers.

A ``SpatialModel`` is treated as a snapshot: the ``add_*`` helpers return a
new model and leave their input untouched, and any change is followed by a
full re-layout of the scene.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Union

from .constants import DEFAULT_PLAN_SCALE


@dataclass(frozen=True)
class Point2D:
    x: float
    y: float


@dataclass(frozen=True)
class Point3D:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class TimeSeriesPoint:
    value: float
    confidence: float  # 0-1


@dataclass(frozen=True)
class Wall:
    """A wall segment drawn in the plan editor, in plan-pixel space."""
    id: str
    start: Point2D
    end: Point2D

    @property
    def length(self) -> float:
        dx = self.end.x - self.start.x
        dy = self.end.y - self.start.y
        return (dx * dx + dy * dy) ** 0.5


@dataclass
class Zone:
    id: str
    name: str
    polygon: list[Point2D]
    timeseries: dict[str, list[TimeSeriesPoint]] = field(default_factory=dict)
    height_override: Optional[float] = None
    why_flagged: Optional[Union[str, dict[str, str]]] = None

    @property
    def is_renderable(self) -> bool:
        return len(self.polygon) >= 3


@dataclass
class Sensor:
    id: str
    label: str
    floor_id: str
    position: Point3D
    linked_zone_id: Optional[str] = None


@dataclass
class Floor:
    id: str
    name: str
    elevation: float
    default_height: float
    plan_scale: float = DEFAULT_PLAN_SCALE
    zones: list[Zone] = field(default_factory=list)
    sensors: list[Sensor] = field(default_factory=list)

    @property
    def effective_plan_scale(self) -> float:
        """Pixels per metre, falling back to the default for unset scales."""
        return self.plan_scale or DEFAULT_PLAN_SCALE


@dataclass
class Building:
    id: str
    name: str
    floors: list[Floor] = field(default_factory=list)

    def time_count(self, metric: Optional[str] = None) -> int:
        """Length of the longest recorded series (optionally for one metric)."""
        longest = 0
        for floor in self.floors:
            for zone in floor.zones:
                for name, series in zone.timeseries.items():
                    if metric is None or name == metric:
                        longest = max(longest, len(series))
        return longest

    def metric_names(self) -> list[str]:
        names: list[str] = []
        for floor in self.floors:
            for zone in floor.zones:
                for name in zone.timeseries:
                    if name not in names:
                        names.append(name)
        return names


@dataclass
class SpatialModel:
    building: Building

    @property
    def has_renderable_zones(self) -> bool:
        return any(z.is_renderable for f in self.building.floors for z in f.zones)


def create_default_spatial_model() -> SpatialModel:
    return SpatialModel(building=Building(id='building-1', name='Default Building'))


def find_floor_by_id(model: SpatialModel, floor_id: str) -> Optional[Floor]:
    for floor in model.building.floors:
        if floor.id == floor_id:
            return floor
    return None


def find_zone_by_id(model: SpatialModel, zone_id: str) -> Optional[tuple[Floor, Zone]]:
    for floor in model.building.floors:
        for zone in floor.zones:
            if zone.id == zone_id:
                return floor, zone
    return None


def find_sensor_by_id(model: SpatialModel, sensor_id: str) -> Optional[tuple[Floor, Sensor]]:
    for floor in model.building.floors:
        for sensor in floor.sensors:
            if sensor.id == sensor_id:
                return floor, sensor
    return None


def get_zone_metric_value(zone: Zone, metric: str,
                          time_index: int) -> Optional[TimeSeriesPoint]:
    """Reading for *metric* at *time_index*, or None when nothing is recorded."""
    series = zone.timeseries.get(metric)
    if not series or time_index < 0 or time_index >= len(series):
        return None
    return series[time_index]


def add_floor(model: SpatialModel, floor: Floor) -> SpatialModel:
    building = replace(model.building, floors=[*model.building.floors, floor])
    return replace(model, building=building)


def _map_floor(model: SpatialModel, floor_id: str, update) -> SpatialModel:
    floors = [update(f) if f.id == floor_id else f for f in model.building.floors]
    return replace(model, building=replace(model.building, floors=floors))


def add_zone_to_floor(model: SpatialModel, floor_id: str, zone: Zone) -> SpatialModel:
    return _map_floor(model, floor_id,
                      lambda f: replace(f, zones=[*f.zones, zone]))


def add_sensor_to_floor(model: SpatialModel, floor_id: str, sensor: Sensor) -> SpatialModel:
    return _map_floor(model, floor_id,
                      lambda f: replace(f, sensors=[*f.sensors, sensor]))
