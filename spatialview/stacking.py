"""Floor stacking: effective base elevation of every floor.

Floor 0 keeps its nominal elevation. Every later floor sits at least one
slab plus the previous floor's default height above the previous floor's
effective base; a higher nominal elevation may lift it further.
"""

import logging
from collections.abc import Sequence

from .constants import DEFAULT_WALL_HEIGHT, SLAB_THICKNESS
from .models import Floor

logger = logging.getLogger(__name__)


def floor_top(effective_elevation: float, floor: Floor,
              slab_thickness: float = SLAB_THICKNESS) -> float:
    """Top of *floor*'s default-height walls when based at *effective_elevation*."""
    return effective_elevation + slab_thickness + floor.default_height


def resolve_elevations(floors: Sequence[Floor],
                       slab_thickness: float = SLAB_THICKNESS) -> list[float]:
    """Return the effective elevation of each floor, in stack order."""
    elevations: list[float] = []
    for index, floor in enumerate(floors):
        if index == 0:
            elevations.append(floor.elevation)
            continue
        candidate = floor_top(elevations[-1], floors[index - 1], slab_thickness)
        effective = max(floor.elevation, candidate)
        if effective > floor.elevation:
            logger.debug(f"Raised floor {floor.id!r} from {floor.elevation} "
                         f"to {effective} to clear the floor below")
        elevations.append(effective)
    return elevations


def total_height(floors: Sequence[Floor], elevations: Sequence[float],
                 slab_thickness: float = SLAB_THICKNESS,
                 default: float = DEFAULT_WALL_HEIGHT) -> float:
    """Top of the topmost floor, or *default* for an empty building."""
    if not floors:
        return default
    return floor_top(elevations[-1], floors[-1], slab_thickness)
