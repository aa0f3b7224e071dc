import pytest

from spatialview.models import (
    Building,
    Floor,
    Point2D,
    SpatialModel,
    TimeSeriesPoint,
    Zone,
)


def rectangle(w, h, x0=0.0, y0=0.0):
    return [Point2D(x0, y0), Point2D(x0 + w, y0), Point2D(x0 + w, y0 + h), Point2D(x0, y0 + h)]


@pytest.fixture
def square_zone():
    return Zone(
        id="z0",
        name="Room",
        polygon=rectangle(6, 4),
        timeseries={
            "CO2": [TimeSeriesPoint(500, 0.9), TimeSeriesPoint(1200, 0.7),
                    TimeSeriesPoint(1800, 0.3)],
        },
    )


@pytest.fixture
def two_floor_model():
    """Floor 1 has a nominal elevation of 0 and must be lifted onto floor 0."""
    floors = [
        Floor(id="f0", name="Ground", elevation=0.0, default_height=2.8, plan_scale=30.0,
              zones=[Zone(id="a", name="A", polygon=rectangle(10, 10),
                          timeseries={"CO2": [TimeSeriesPoint(500, 0.9)] * 4})]),
        Floor(id="f1", name="First", elevation=0.0, default_height=2.6, plan_scale=30.0,
              zones=[Zone(id="b", name="B", polygon=rectangle(10, 10),
                          timeseries={"CO2": [TimeSeriesPoint(1600, 0.5)] * 4})]),
    ]
    return SpatialModel(building=Building(id="b", name="Two floors", floors=floors))
