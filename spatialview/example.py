"""Example office building with 48 half-hour readings per zone."""

import numpy as np

from .models import (
    Building,
    Floor,
    Point2D,
    Point3D,
    Sensor,
    SpatialModel,
    TimeSeriesPoint,
    Zone,
)

TIME_STEPS = 48  # last 24h in 30 min steps

# metric -> (base, amplitude, wave, period, phase, confidence)
_Wave = tuple[float, float, str, float, float, float]

_FLOORS = [
    {
        'id': 'floor-1', 'name': 'Ground Floor', 'elevation': 0.0, 'height': 2.8,
        'zones': [
            ('zone-1-1', 'Reception Area', (0, 0, 10, 10), None, None, {
                'CO2': (600, 200, 'sin', 6, 0, 0.9),
                'TVOC': (120, 50, 'cos', 7, 0, 0.85),
                'PM25': (8, 6, 'sin', 5, 0, 0.8)}),
            ('zone-1-2', 'Office A', (10, 0, 20, 10), None, 'High CO2 levels detected', {
                'CO2': (900, 300, 'sin', 5, 0, 0.92),
                'TVOC': (180, 60, 'cos', 6, 0, 0.88),
                'PM25': (15, 10, 'sin', 4, 0, 0.82)}),
        ],
    },
    {
        'id': 'floor-2', 'name': 'First Floor', 'elevation': 2.9, 'height': 2.8,
        'zones': [
            ('zone-2-1', 'Meeting Room', (2, 1, 18, 9), 3.2, 'Very high CO2', {
                'CO2': (1200, 400, 'sin', 4, 0, 0.75),
                'TVOC': (250, 80, 'cos', 5, 0, 0.7),
                'PM25': (20, 12, 'sin', 3, 0, 0.65)}),
        ],
    },
    {
        'id': 'floor-3', 'name': 'Second Floor', 'elevation': 6.1, 'height': 2.8,
        'zones': [
            ('zone-3-1', 'Office Area 1', (2, 1, 10, 5), None, None, {
                'CO2': (700, 250, 'sin', 5, 0, 0.88),
                'TVOC': (140, 60, 'cos', 6, 0, 0.85),
                'PM25': (10, 8, 'sin', 4, 0, 0.8)}),
            ('zone-3-2', 'Office Area 2', (10, 1, 18, 5), None, None, {
                'CO2': (550, 180, 'sin', 6, 2, 0.9),
                'TVOC': (110, 45, 'cos', 7, 1, 0.87),
                'PM25': (7.5, 5.5, 'sin', 5, 1, 0.82)}),
            ('zone-3-3', 'Kitchen', (2, 5, 8, 9), 3.0, None, {
                'CO2': (750, 200, 'sin', 6, 0, 0.82),
                'TVOC': (300, 100, 'cos', 4, 0, 0.78),
                'PM25': (25, 15, 'sin', 3, 0, 0.75)}),
            ('zone-3-4', 'Storage', (8, 5, 12, 9), 2.4, None, {
                'CO2': (450, 100, 'sin', 8, 0, 0.85),
                'TVOC': (80, 30, 'cos', 9, 0, 0.8),
                'PM25': (5, 3, 'sin', 7, 0, 0.55)}),
        ],
    },
]


def _series(wave: _Wave, steps: int = TIME_STEPS) -> list[TimeSeriesPoint]:
    base, amplitude, kind, period, phase, confidence = wave
    t = (np.arange(steps) + phase) / period
    values = base + amplitude * (np.sin(t) if kind == 'sin' else np.cos(t))
    return [TimeSeriesPoint(value=float(v), confidence=confidence) for v in values]


def _rectangle(x0: float, y0: float, x1: float, y1: float) -> list[Point2D]:
    return [Point2D(x0, y0), Point2D(x1, y0), Point2D(x1, y1), Point2D(x0, y1)]


def create_example_spatial_model() -> SpatialModel:
    floors = []
    for entry in _FLOORS:
        zones = []
        sensors = []
        for zone_id, name, rect, override, flagged, waves in entry['zones']:
            zones.append(Zone(
                id=zone_id,
                name=name,
                polygon=_rectangle(*rect),
                timeseries={metric: _series(w) for metric, w in waves.items()},
                height_override=override,
                why_flagged=flagged,
            ))
            x0, y0, x1, y1 = rect
            sensors.append(Sensor(
                id=zone_id.replace('zone', 'sensor'),
                label=f"{name} Sensor",
                floor_id=entry['id'],
                position=Point3D((x0 + x1) / 2, (y0 + y1) / 2, 2.0),
                linked_zone_id=zone_id,
            ))
        floors.append(Floor(
            id=entry['id'],
            name=entry['name'],
            elevation=entry['elevation'],
            default_height=entry['height'],
            plan_scale=30.0,
            zones=zones,
            sensors=sensors,
        ))
    return SpatialModel(building=Building(id='building-1',
                                          name='Balanced Office Building',
                                          floors=floors))
