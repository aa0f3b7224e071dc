import pytest

from spatialview.constants import SLAB_THICKNESS
from spatialview.models import Floor
from spatialview.stacking import floor_top, resolve_elevations, total_height


def _floor(elevation, height, fid="f"):
    return Floor(id=fid, name=fid, elevation=elevation, default_height=height)


def test_first_floor_keeps_nominal_elevation():
    assert resolve_elevations([_floor(1.5, 3.0)]) == [1.5]


def test_low_floor_is_lifted_onto_the_one_below():
    elevations = resolve_elevations([_floor(0.0, 2.8), _floor(0.0, 2.8)])
    assert elevations[1] == pytest.approx(2.9)


def test_higher_nominal_elevation_wins():
    elevations = resolve_elevations([_floor(0.0, 2.8), _floor(5.0, 2.8)])
    assert elevations[1] == 5.0


def test_stacking_invariants_hold_for_mixed_floors():
    floors = [_floor(0.0, 3.0), _floor(1.0, 2.5), _floor(10.0, 4.0), _floor(2.0, 2.0)]
    elevations = resolve_elevations(floors)
    for i in range(1, len(floors)):
        assert elevations[i] >= elevations[i - 1] + SLAB_THICKNESS + floors[i - 1].default_height
        assert elevations[i] >= floors[i].elevation
        assert elevations[i] >= elevations[i - 1]


def test_empty_building():
    assert resolve_elevations([]) == []
    assert total_height([], []) == 3.0


def test_total_height_is_top_of_last_floor():
    floors = [_floor(0.0, 2.8), _floor(0.0, 2.6)]
    elevations = resolve_elevations(floors)
    assert total_height(floors, elevations) == floor_top(elevations[1], floors[1])
    assert total_height(floors, elevations) == pytest.approx(2.9 + 0.1 + 2.6)
