"""Metric color engine: sensor readings to zone materials.

A reading is classified into one of four ordered bands by per-metric
thresholds, the band picks a base color, and the reading's confidence then
picks one of three trust tiers that desaturate the color, lower its alpha
and, for low trust, add an emissive tint. Missing data always resolves to a
neutral material.
"""

import enum
import logging
import random
from dataclasses import dataclass
from typing import Optional, Protocol

from .constants import (
    BAND_COLORS,
    DEFAULT_THRESHOLDS,
    HIGH_CONFIDENCE,
    HIGH_CONFIDENCE_ALPHA,
    LOW_CONFIDENCE_ALPHA,
    LOW_DESATURATION,
    MEDIUM_CONFIDENCE,
    MEDIUM_CONFIDENCE_ALPHA,
    MEDIUM_DESATURATION,
    METRIC_THRESHOLDS,
    MID_GRAY,
    NEUTRAL_ALPHA,
    NEUTRAL_COLOR,
    UNCERTAIN_EMISSIVE,
)
from .models import TimeSeriesPoint, Zone, get_zone_metric_value

logger = logging.getLogger(__name__)

Color = tuple[float, float, float]


class Band(str, enum.Enum):
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"

    @property
    def rank(self) -> int:
        return _BAND_ORDER.index(self)


_BAND_ORDER = [Band.GREEN, Band.YELLOW, Band.ORANGE, Band.RED]


@dataclass(frozen=True)
class MetricThresholds:
    green: float
    yellow: float
    orange: float
    red: float

    def __post_init__(self):
        values = (self.green, self.yellow, self.orange, self.red)
        if any(a > b for a, b in zip(values, values[1:])):
            raise ValueError(f"Thresholds must be ascending, got {values}")


@dataclass(frozen=True)
class MaterialDescriptor:
    color: Color
    alpha: float
    emissive: bool = False
    emissive_color: Color = (0.0, 0.0, 0.0)

    def with_alpha(self, alpha: float) -> "MaterialDescriptor":
        return MaterialDescriptor(self.color, alpha, self.emissive, self.emissive_color)

    @property
    def rgba(self) -> list[float]:
        return [*self.color, self.alpha]


NEUTRAL_MATERIAL = MaterialDescriptor(color=NEUTRAL_COLOR, alpha=NEUTRAL_ALPHA)


class ThresholdTable:
    """Per-metric thresholds with a default set for unknown metrics."""

    def __init__(self, table: Optional[dict[str, tuple[float, float, float, float]]] = None,
                 default: tuple[float, float, float, float] = DEFAULT_THRESHOLDS):
        source = METRIC_THRESHOLDS if table is None else table
        self._table = {name: MetricThresholds(*values) for name, values in source.items()}
        self.default = MetricThresholds(*default)

    def __contains__(self, metric: str) -> bool:
        return metric in self._table

    def get(self, metric: str) -> MetricThresholds:
        thresholds = self._table.get(metric)
        if thresholds is None:
            logger.debug(f"No thresholds for metric {metric!r}; using defaults")
            return self.default
        return thresholds

    def register(self, metric: str, thresholds: MetricThresholds) -> None:
        self._table[metric] = thresholds


DEFAULT_TABLE = ThresholdTable()


def classify(metric: str, value: float,
             table: ThresholdTable = DEFAULT_TABLE) -> Band:
    t = table.get(metric)
    if value < t.green:
        return Band.GREEN
    if value < t.yellow:
        return Band.YELLOW
    if value < t.orange:
        return Band.ORANGE
    return Band.RED


def color_for_band(band: Band) -> Color:
    return BAND_COLORS[band.value]


def _toward_gray(color: Color, amount: float) -> Color:
    return tuple(c + amount * (g - c) for c, g in zip(color, MID_GRAY))


def apply_confidence(base_color: Color, confidence: float) -> MaterialDescriptor:
    """Three discrete trust tiers; boundary values belong to the higher tier."""
    if confidence >= HIGH_CONFIDENCE:
        return MaterialDescriptor(color=tuple(base_color), alpha=HIGH_CONFIDENCE_ALPHA)
    if confidence >= MEDIUM_CONFIDENCE:
        return MaterialDescriptor(color=_toward_gray(base_color, MEDIUM_DESATURATION),
                                  alpha=MEDIUM_CONFIDENCE_ALPHA)
    return MaterialDescriptor(color=_toward_gray(base_color, LOW_DESATURATION),
                              alpha=LOW_CONFIDENCE_ALPHA,
                              emissive=True,
                              emissive_color=UNCERTAIN_EMISSIVE)


def material_for_reading(metric: str, reading: Optional[TimeSeriesPoint],
                         table: ThresholdTable = DEFAULT_TABLE) -> MaterialDescriptor:
    if reading is None:
        return NEUTRAL_MATERIAL
    band = classify(metric, reading.value, table)
    return apply_confidence(color_for_band(band), reading.confidence)


# ── Value sources ────────────────────────────────────────────────────────

class ValueSource(Protocol):
    def sample(self, zone: Zone, metric: str, time_index: int) -> Optional[TimeSeriesPoint]:
        ...


class RecordedValueSource:
    """Looks readings up in the zone's recorded time series."""

    def sample(self, zone: Zone, metric: str, time_index: int) -> Optional[TimeSeriesPoint]:
        return get_zone_metric_value(zone, metric, time_index)


class SimulatedValueSource:
    """Draws a fresh random reading on every call, ignoring the time index.

    Values are uniform in ``[0, 1.5 * red]`` for the metric's thresholds and
    confidences uniform in ``[0.5, 1.0]``.
    """

    def __init__(self, table: ThresholdTable = DEFAULT_TABLE, seed: Optional[int] = None):
        self.table = table
        self.rng = random.Random(seed)

    def sample(self, zone: Zone, metric: str, time_index: int) -> Optional[TimeSeriesPoint]:
        red = self.table.get(metric).red
        return TimeSeriesPoint(value=self.rng.uniform(0.0, 1.5 * red),
                               confidence=self.rng.uniform(0.5, 1.0))


def zone_material(zone: Zone, metric: str, time_index: int,
                  source: ValueSource,
                  table: ThresholdTable = DEFAULT_TABLE) -> MaterialDescriptor:
    """State material of *zone* for a metric/time context."""
    reading = source.sample(zone, metric, time_index)
    if reading is None:
        logger.debug(f"No {metric} reading for zone {zone.id!r} at t={time_index}")
    return material_for_reading(metric, reading, table)
