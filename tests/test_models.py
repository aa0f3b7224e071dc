import json

import pytest
from pydantic import ValidationError

from spatialview.example import TIME_STEPS, create_example_spatial_model
from spatialview.models import (
    Floor,
    Point2D,
    Point3D,
    Sensor,
    Zone,
    add_floor,
    add_sensor_to_floor,
    add_zone_to_floor,
    create_default_spatial_model,
    find_floor_by_id,
    find_sensor_by_id,
    find_zone_by_id,
    get_zone_metric_value,
)
from spatialview.serialization import (
    load_spatial_model,
    parse_spatial_model,
    parse_walls,
    save_spatial_model,
)
from spatialview.stacking import resolve_elevations


def test_add_helpers_do_not_mutate_input():
    model = create_default_spatial_model()
    floor = Floor(id='f0', name='Ground', elevation=0, default_height=3)
    with_floor = add_floor(model, floor)
    assert model.building.floors == []
    assert find_floor_by_id(with_floor, 'f0') is floor

    zone = Zone(id='z', name='Z', polygon=[Point2D(0, 0), Point2D(1, 0), Point2D(1, 1)])
    with_zone = add_zone_to_floor(with_floor, 'f0', zone)
    assert floor.zones == []
    assert find_zone_by_id(with_zone, 'z')[1] is zone
    assert find_zone_by_id(with_floor, 'z') is None

    sensor = Sensor(id='s', label='S', floor_id='f0', position=Point3D(0.5, 0.5, 2.0),
                    linked_zone_id='z')
    with_sensor = add_sensor_to_floor(with_zone, 'f0', sensor)
    found_floor, found_sensor = find_sensor_by_id(with_sensor, 's')
    assert found_floor.id == 'f0' and found_sensor is sensor
    assert find_sensor_by_id(with_zone, 's') is None


def test_get_zone_metric_value_bounds(square_zone):
    assert get_zone_metric_value(square_zone, 'CO2', 0).value == 500
    assert get_zone_metric_value(square_zone, 'CO2', 3) is None
    assert get_zone_metric_value(square_zone, 'NOPE', 0) is None


def test_zero_plan_scale_falls_back_to_default():
    assert Floor(id='f', name='f', elevation=0, default_height=3, plan_scale=0).effective_plan_scale == 30.0


def test_example_model():
    model = create_example_spatial_model()
    building = model.building
    assert [f.id for f in building.floors] == ['floor-1', 'floor-2', 'floor-3']
    assert building.time_count() == TIME_STEPS
    assert building.metric_names() == ['CO2', 'TVOC', 'PM25']
    assert resolve_elevations(building.floors) == pytest.approx([0.0, 2.9, 6.1])
    assert find_zone_by_id(model, 'zone-2-1')[1].height_override == 3.2


def test_round_trip_through_json(tmp_path):
    model = create_example_spatial_model()
    path = tmp_path / 'model.json'
    save_spatial_model(model, path)
    loaded = load_spatial_model(path)
    assert loaded == model


def test_parse_editor_layout():
    data = {
        'metrics': ['CO2'],
        'building': {
            'id': 'b1', 'name': 'Demo',
            'floors': [{
                'id': 'f0', 'name': 'RDC', 'elevation': 0, 'defaultHeight': 2.8,
                'plan2D': {'width': 600, 'height': 400, 'scale': 25},
                'zones': [{
                    'id': 'z0', 'name': 'Salle A',
                    'polygon2d': [{'x': 0, 'y': 0}, {'x': 6, 'y': 0}, {'x': 6, 'y': 4}],
                    'heightOverride': 3.1,
                    'timeseries': {'CO2': [{'v': 640, 'confidence': 0.9}]},
                    'whyFlagged': {'CO2': 'Slow decay'},
                }],
                'sensors': [{'id': 's0', 'label': 'Breezly #01', 'floorId': 'f0',
                             'x': 2.0, 'y': 2.0, 'z': 1.5, 'linkedZoneId': 'z0'}],
            }],
        },
    }
    model = parse_spatial_model(data)
    floor = model.building.floors[0]
    assert floor.plan_scale == 25
    assert floor.default_height == 2.8
    zone = floor.zones[0]
    assert zone.height_override == 3.1
    assert zone.timeseries['CO2'][0].value == 640
    assert zone.why_flagged == {'CO2': 'Slow decay'}
    assert floor.sensors[0].position == Point3D(2.0, 2.0, 1.5)
    assert floor.sensors[0].linked_zone_id == 'z0'


def test_confidence_out_of_range_is_rejected():
    data = {'building': {'id': 'b', 'name': 'b', 'floors': [{
        'id': 'f', 'name': 'f', 'default_height': 3,
        'zones': [{'id': 'z', 'name': 'z', 'polygon': [],
                   'timeseries': {'CO2': [{'value': 1, 'confidence': 1.5}]}}]}]}}
    with pytest.raises(ValidationError):
        parse_spatial_model(data)


def test_parse_walls_accepts_list_or_document():
    items = [{'id': 'w', 'start': {'x': 0, 'y': 0}, 'end': {'x': 30, 'y': 0}}]
    assert parse_walls(items) == parse_walls({'walls': items})
    assert parse_walls(items)[0].length == 30.0
    assert json.dumps(items)
