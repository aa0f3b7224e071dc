import pytest

from spatialview.constants import BAND_COLORS, METRIC_THRESHOLDS, UNCERTAIN_EMISSIVE
from spatialview.metrics import (
    NEUTRAL_MATERIAL,
    Band,
    MetricThresholds,
    RecordedValueSource,
    SimulatedValueSource,
    ThresholdTable,
    apply_confidence,
    classify,
    color_for_band,
    material_for_reading,
    zone_material,
)
from spatialview.models import TimeSeriesPoint


class TestClassify:
    def test_bands_in_order(self):
        green, yellow, orange, red = METRIC_THRESHOLDS['CO2']
        assert classify('CO2', green - 1) == Band.GREEN
        assert classify('CO2', yellow - 1) == Band.YELLOW
        assert classify('CO2', orange - 1) == Band.ORANGE
        assert classify('CO2', red + 500) == Band.RED

    def test_exact_threshold_moves_to_next_band(self):
        green, yellow, orange, _ = METRIC_THRESHOLDS['PM25']
        assert classify('PM25', green - 1e-9) == Band.GREEN
        assert classify('PM25', green) == Band.YELLOW
        assert classify('PM25', yellow) == Band.ORANGE
        assert classify('PM25', orange) == Band.RED

    @pytest.mark.parametrize('metric', ['CO2', 'TVOC', 'PM25', 'humidity'])
    def test_monotonic_in_value(self, metric):
        ranks = [classify(metric, v / 10.0).rank for v in range(0, 30000, 7)]
        assert ranks == sorted(ranks)

    def test_unknown_metric_uses_default_table(self):
        assert classify('humidity', 0.1) == Band.GREEN
        assert classify('humidity', 0.6) == Band.ORANGE
        assert classify('humidity', 5.0) == Band.RED

    def test_custom_table(self):
        table = ThresholdTable({'noise': (40, 55, 70, 85)})
        assert classify('noise', 60, table) == Band.ORANGE
        assert 'noise' in table
        assert 'CO2' not in table

    def test_thresholds_must_ascend(self):
        with pytest.raises(ValueError):
            MetricThresholds(10, 5, 20, 30)


class TestConfidence:
    def test_high_confidence_keeps_color(self):
        mat = apply_confidence(BAND_COLORS['red'], 0.95)
        assert mat.color == BAND_COLORS['red']
        assert mat.alpha == 0.9
        assert not mat.emissive

    def test_boundaries_resolve_to_higher_tier(self):
        base = color_for_band(Band.ORANGE)
        assert apply_confidence(base, 0.8).alpha == 0.9
        assert apply_confidence(base, 0.6).alpha == 0.75
        assert not apply_confidence(base, 0.6).emissive

    def test_medium_confidence_desaturates_30_percent(self):
        mat = apply_confidence((1.0, 0.0, 0.0), 0.7)
        assert mat.color == pytest.approx((0.85, 0.15, 0.15))
        assert mat.alpha == 0.75

    def test_low_confidence_is_marked_uncertain(self):
        mat = apply_confidence(color_for_band(Band.GREEN), 0.59)
        assert mat.alpha == 0.55
        assert mat.emissive
        assert mat.emissive_color == UNCERTAIN_EMISSIVE
        assert mat.color == pytest.approx(tuple(0.2 * c + 0.8 * 0.5
                                                for c in BAND_COLORS['green']))

    def test_low_trust_green_differs_from_trusted_green(self):
        trusted = apply_confidence(color_for_band(Band.GREEN), 0.9)
        doubtful = apply_confidence(color_for_band(Band.GREEN), 0.2)
        assert trusted != doubtful


class TestMaterials:
    def test_missing_reading_is_neutral(self):
        assert material_for_reading('CO2', None) == NEUTRAL_MATERIAL
        assert NEUTRAL_MATERIAL.alpha == 0.5

    def test_recorded_source(self, square_zone):
        source = RecordedValueSource()
        assert source.sample(square_zone, 'CO2', 1) == TimeSeriesPoint(1200, 0.7)
        assert source.sample(square_zone, 'CO2', 3) is None
        assert source.sample(square_zone, 'CO2', -1) is None
        assert source.sample(square_zone, 'TVOC', 0) is None

    def test_zone_material_from_recorded_series(self, square_zone):
        source = RecordedValueSource()
        first = zone_material(square_zone, 'CO2', 0, source)
        assert first.color == BAND_COLORS['green']
        assert first.alpha == 0.9
        last = zone_material(square_zone, 'CO2', 2, source)
        assert last.emissive
        assert zone_material(square_zone, 'CO2', 99, source) == NEUTRAL_MATERIAL

    def test_simulated_source_ranges(self, square_zone):
        source = SimulatedValueSource(seed=7)
        red = METRIC_THRESHOLDS['CO2'][3]
        for t in range(200):
            reading = source.sample(square_zone, 'CO2', t + 1000)
            assert 0.0 <= reading.value <= 1.5 * red
            assert 0.5 <= reading.confidence <= 1.0

    def test_simulated_source_is_reproducible(self, square_zone):
        a = SimulatedValueSource(seed=3)
        b = SimulatedValueSource(seed=3)
        assert [a.sample(square_zone, 'PM25', 0) for _ in range(5)] == \
               [b.sample(square_zone, 'PM25', 0) for _ in range(5)]


def test_register_extends_one_table_only():
    table = ThresholdTable()
    table.register('noise', MetricThresholds(40, 55, 70, 85))
    assert 'noise' in table
    assert classify('noise', 60, table) == Band.ORANGE
    assert classify('noise', 60) == Band.RED
    assert 'noise' not in ThresholdTable()
