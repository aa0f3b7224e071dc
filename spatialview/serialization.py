"""JSON load/save for spatial models and wall lists.

Accepts both the snake_case layout written by ``save_spatial_model`` and the
camelCase layout produced by the web editor (``polygon2D``,
``defaultHeight``, ``plan2D.scale``, readings as ``{"v": ...}``, sensors
with flat ``x/y/z``).
"""

import json
import logging
import pathlib
from dataclasses import asdict
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, model_validator

from .models import (
    Building,
    Floor,
    Point2D,
    Point3D,
    Sensor,
    SpatialModel,
    TimeSeriesPoint,
    Wall,
    Zone,
)

logger = logging.getLogger(__name__)


class PointSchema(BaseModel):
    x: float
    y: float

    def to_domain(self) -> Point2D:
        return Point2D(self.x, self.y)


class Point3DSchema(BaseModel):
    x: float
    y: float
    z: float = 0.0


class TimeSeriesPointSchema(BaseModel):
    value: float = Field(validation_alias=AliasChoices('value', 'v'))
    confidence: float = Field(ge=0.0, le=1.0)


class ZoneSchema(BaseModel):
    id: str
    name: str
    polygon: list[PointSchema] = Field(
        validation_alias=AliasChoices('polygon', 'polygon2D', 'polygon2d'))
    height_override: Optional[float] = Field(
        None, validation_alias=AliasChoices('height_override', 'heightOverride'))
    timeseries: dict[str, list[TimeSeriesPointSchema]] = Field(default_factory=dict)
    why_flagged: Optional[Union[str, dict[str, str]]] = Field(
        None, validation_alias=AliasChoices('why_flagged', 'whyFlagged'))

    def to_domain(self) -> Zone:
        return Zone(
            id=self.id,
            name=self.name,
            polygon=[p.to_domain() for p in self.polygon],
            timeseries={metric: [TimeSeriesPoint(r.value, r.confidence) for r in series]
                        for metric, series in self.timeseries.items()},
            height_override=self.height_override,
            why_flagged=self.why_flagged,
        )


class SensorSchema(BaseModel):
    id: str
    label: str
    floor_id: str = Field('', validation_alias=AliasChoices('floor_id', 'floorId'))
    position: Point3DSchema
    linked_zone_id: Optional[str] = Field(
        None, validation_alias=AliasChoices('linked_zone_id', 'linkedZoneId'))

    @model_validator(mode='before')
    @classmethod
    def _flat_position(cls, data: Any) -> Any:
        if isinstance(data, dict) and 'position' not in data and 'x' in data:
            data = dict(data)
            data['position'] = {k: data.pop(k) for k in ('x', 'y', 'z') if k in data}
        return data

    def to_domain(self) -> Sensor:
        p = self.position
        return Sensor(id=self.id, label=self.label, floor_id=self.floor_id,
                      position=Point3D(p.x, p.y, p.z),
                      linked_zone_id=self.linked_zone_id)


class FloorSchema(BaseModel):
    id: str
    name: str
    elevation: float = 0.0
    default_height: float = Field(
        validation_alias=AliasChoices('default_height', 'defaultHeight'))
    plan_scale: Optional[float] = Field(
        None, validation_alias=AliasChoices('plan_scale', 'planScale'))
    zones: list[ZoneSchema] = Field(default_factory=list)
    sensors: list[SensorSchema] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def _plan_image_scale(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get('plan2D'), dict):
            scale = data['plan2D'].get('scale')
            if scale and 'plan_scale' not in data and 'planScale' not in data:
                data = {**data, 'plan_scale': scale}
        return data

    def to_domain(self) -> Floor:
        floor = Floor(id=self.id, name=self.name, elevation=self.elevation,
                      default_height=self.default_height,
                      zones=[z.to_domain() for z in self.zones],
                      sensors=[s.to_domain() for s in self.sensors])
        if self.plan_scale:
            floor.plan_scale = self.plan_scale
        return floor


class BuildingSchema(BaseModel):
    id: str
    name: str
    floors: list[FloorSchema] = Field(default_factory=list)


class SpatialModelSchema(BaseModel):
    building: BuildingSchema

    def to_domain(self) -> SpatialModel:
        b = self.building
        return SpatialModel(building=Building(id=b.id, name=b.name,
                                              floors=[f.to_domain() for f in b.floors]))


class WallSchema(BaseModel):
    id: str
    start: PointSchema
    end: PointSchema

    def to_domain(self) -> Wall:
        return Wall(id=self.id, start=self.start.to_domain(), end=self.end.to_domain())


def parse_spatial_model(data: dict) -> SpatialModel:
    """Validate a decoded JSON document; raises ``pydantic.ValidationError``."""
    return SpatialModelSchema.model_validate(data).to_domain()


def load_spatial_model(path: Union[str, pathlib.Path]) -> SpatialModel:
    with open(path, encoding='utf-8') as f:
        model = parse_spatial_model(json.load(f))
    logger.info(f"Loaded {model.building.name!r} with "
                f"{len(model.building.floors)} floors from {path}")
    return model


def spatial_model_to_dict(model: SpatialModel) -> dict:
    return SpatialModelSchema.model_validate(asdict(model)).model_dump()


def save_spatial_model(model: SpatialModel, path: Union[str, pathlib.Path]) -> None:
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(spatial_model_to_dict(model), f, indent=2)
    logger.info(f"Saved spatial model to {path}")


def parse_walls(data: Union[list, dict]) -> list[Wall]:
    """Walls from a bare list or a ``{"walls": [...]}`` document."""
    items = data.get('walls', []) if isinstance(data, dict) else data
    return [WallSchema.model_validate(item).to_domain() for item in items]


def load_walls(path: Union[str, pathlib.Path]) -> list[Wall]:
    with open(path, encoding='utf-8') as f:
        return parse_walls(json.load(f))
