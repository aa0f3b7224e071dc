"""Plan-to-world transforms and closed prism generation for zones, slabs and walls.

Every builder returns a ``MeshBuffer`` in glTF Y-up ``[x, elevation, z]``
coordinates, where world ``x`` follows plan ``x`` and world ``z`` follows
plan ``y``.

Winding convention: with ``WindingMode.OUTWARD`` a polygon whose plan
coordinates have a positive signed (shoelace) area produces triangles whose
counter-clockwise front faces point away from the solid. A negatively
oriented polygon produces the inverse mesh; callers that cannot guarantee
orientation should pass the polygon through ``orient_polygon`` first.
``WindingMode.INWARD`` flips every triangle so the solid is seen from inside.
Caps are fan-triangulated from vertex 0, so polygons must be convex or at
least star-shaped around their first vertex.
"""

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import trimesh
from shapely.geometry import Polygon
from shapely.geometry.polygon import orient

from .constants import (
    FALLBACK_WALL_SIZE,
    GLOBAL_SCALE,
    MIN_WALL_LENGTH,
    SLAB_THICKNESS,
    UV_SCALE,
    WALL_THICKNESS,
)
from .models import Floor, Point2D, Wall

logger = logging.getLogger(__name__)


class WindingMode(str, enum.Enum):
    OUTWARD = "outward"
    INWARD = "inward"


@dataclass
class MeshBuffer:
    """Vertex, index, normal and UV arrays for one closed mesh."""
    positions: np.ndarray   # (N, 3) float
    indices: np.ndarray     # (M, 3) int
    normals: np.ndarray     # (N, 3) float
    uvs: np.ndarray         # (N, 2) float

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices)

    def bounds_y(self) -> tuple[float, float]:
        ys = self.positions[:, 1]
        return float(ys.min()), float(ys.max())

    def to_trimesh(self) -> trimesh.Trimesh:
        """Wrap the buffer in a trimesh without merging or reordering vertices."""
        return trimesh.Trimesh(vertices=self.positions,
                               faces=self.indices,
                               vertex_normals=self.normals,
                               process=False)


# ── Orientation helpers ─────────────────────────────────────────────────

def signed_area(polygon: Sequence[Point2D]) -> float:
    """Shoelace area; positive for counter-clockwise plan coordinates."""
    xs = np.array([p.x for p in polygon], dtype=np.float64)
    ys = np.array([p.y for p in polygon], dtype=np.float64)
    return 0.5 * float(np.dot(xs, np.roll(ys, -1)) - np.dot(np.roll(xs, -1), ys))


def orient_polygon(polygon: Sequence[Point2D]) -> list[Point2D]:
    """Return *polygon* with positive signed area, keeping its first vertex."""
    ring = orient(Polygon([(p.x, p.y) for p in polygon]), sign=1.0)
    return [Point2D(x, y) for x, y in ring.exterior.coords[:-1]]


# ── Transforms and normals ──────────────────────────────────────────────

def plan_to_world(polygon: Sequence[Point2D], plan_scale: float,
                  offset: tuple[float, float] = (0.0, 0.0),
                  global_scale: float = GLOBAL_SCALE) -> np.ndarray:
    """Map plan points to world ``(x, z)``: ``p * plan_scale * global_scale + offset``."""
    pts = np.array([[p.x, p.y] for p in polygon], dtype=np.float64)
    return pts * (plan_scale * global_scale) + np.asarray(offset, dtype=np.float64)


def compute_vertex_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Area-weighted vertex normals accumulated from the triangle list."""
    normals = np.zeros_like(positions, dtype=np.float64)
    if len(indices) == 0:
        return normals
    f0 = positions[indices[:, 0]]
    f1 = positions[indices[:, 1]]
    f2 = positions[indices[:, 2]]
    face_normals = np.cross(f1 - f0, f2 - f0)
    for i in range(3):
        np.add.at(normals, indices[:, i], face_normals)
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    lengths[lengths == 0] = 1.0
    return normals / lengths


# ── Prisms ───────────────────────────────────────────────────────────────

def _prism(ring_xz: np.ndarray, ring_uv: np.ndarray,
           y_bottom: float, y_top: float,
           winding: WindingMode) -> MeshBuffer:
    """Closed prism over a ring; bottom ring is ``0..n-1``, top ring ``n..2n-1``."""
    n = len(ring_xz)
    positions = np.empty((2 * n, 3), dtype=np.float64)
    positions[:n, 0] = ring_xz[:, 0]
    positions[:n, 1] = y_bottom
    positions[:n, 2] = ring_xz[:, 1]
    positions[n:, 0] = ring_xz[:, 0]
    positions[n:, 1] = y_top
    positions[n:, 2] = ring_xz[:, 1]

    faces = []
    # Bottom cap, fan from vertex 0
    for i in range(1, n - 1):
        faces.append([0, i, i + 1])
    # Top cap, same fan with reversed winding
    for i in range(1, n - 1):
        faces.append([n, n + i + 1, n + i])
    # Sides, two triangles per edge
    for i in range(n):
        j = (i + 1) % n
        b0, b1 = i, j
        t0, t1 = n + i, n + j
        faces.append([b0, t1, b1])
        faces.append([b0, t0, t1])

    indices = np.array(faces, dtype=np.int64)
    if winding == WindingMode.INWARD:
        indices = indices[:, [0, 2, 1]]

    uvs = np.vstack([ring_uv, ring_uv]).astype(np.float64)
    return MeshBuffer(positions=positions,
                      indices=indices,
                      normals=compute_vertex_normals(positions, indices),
                      uvs=uvs)


def _polygon_uvs(polygon: Sequence[Point2D]) -> np.ndarray:
    # Raw plan coordinates, independent of scale and offset
    return np.array([[p.x / UV_SCALE, p.y / UV_SCALE] for p in polygon],
                    dtype=np.float64)


def extrude_polygon(polygon: Sequence[Point2D], height: float,
                    base_elevation: float,
                    offset: tuple[float, float] = (0.0, 0.0),
                    plan_scale: float = 1.0,
                    global_scale: float = GLOBAL_SCALE, *,
                    winding: WindingMode) -> MeshBuffer:
    """Lift *polygon* into a closed vertical prism from *base_elevation* to ``+height``.

    The caller must filter out polygons with fewer than three points.
    """
    ring = plan_to_world(polygon, plan_scale, offset, global_scale)
    return _prism(ring, _polygon_uvs(polygon),
                  base_elevation, base_elevation + height, winding)


def build_slab(polygon: Sequence[Point2D], base_elevation: float,
               offset: tuple[float, float] = (0.0, 0.0),
               plan_scale: float = 1.0,
               global_scale: float = GLOBAL_SCALE, *,
               winding: WindingMode,
               thickness: float = SLAB_THICKNESS) -> MeshBuffer:
    """Thin floor plate under a zone, *thickness* tall, same structure as an extrusion."""
    return extrude_polygon(polygon, thickness, base_elevation, offset,
                           plan_scale, global_scale, winding=winding)


def build_wall(wall: Wall, height: float, base_elevation: float,
               offset: tuple[float, float] = (0.0, 0.0),
               global_scale: float = GLOBAL_SCALE, *,
               winding: WindingMode,
               thickness: float = WALL_THICKNESS) -> MeshBuffer:
    """Box of *thickness* along a plan-pixel wall segment.

    Segments shorter than ``MIN_WALL_LENGTH`` world units become a small
    cube at the segment start so the renderer never receives a flat mesh.
    """
    start = np.array([wall.start.x, wall.start.y]) * global_scale + offset
    end = np.array([wall.end.x, wall.end.y]) * global_scale + offset
    direction = end - start
    length = float(np.linalg.norm(direction))

    if length < MIN_WALL_LENGTH:
        logger.debug(f"Wall {wall.id!r} has zero length; using fallback cube")
        half = FALLBACK_WALL_SIZE / 2.0
        ring = start + np.array([[-half, -half], [half, -half],
                                 [half, half], [-half, half]])
        mid_y = base_elevation + height / 2.0
        return _prism(ring, ring / UV_SCALE, mid_y - half, mid_y + half, winding)

    unit = direction / length
    side = np.array([-unit[1], unit[0]]) * (thickness / 2.0)
    ring = np.array([start - side, end - side, end + side, start + side])
    uv = np.array([[wall.start.x, wall.start.y], [wall.end.x, wall.end.y],
                   [wall.end.x, wall.end.y], [wall.start.x, wall.start.y]]) / UV_SCALE
    return _prism(ring, uv, base_elevation, base_elevation + height, winding)


def build_ground(extent: float, center: tuple[float, float] = (0.0, 0.0),
                 elevation: float = 0.0, thickness: float = 0.01, *,
                 winding: WindingMode) -> MeshBuffer:
    """Square ground plate of side ``2 * extent`` whose top sits at *elevation*."""
    cx, cz = center
    ring = np.array([[cx - extent, cz - extent], [cx + extent, cz - extent],
                     [cx + extent, cz + extent], [cx - extent, cz + extent]])
    uv = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    return _prism(ring, uv, elevation - thickness, elevation, winding)


def walls_from_zones(floor: Floor) -> list[Wall]:
    """Convert every zone outline on *floor* into plan-pixel wall segments."""
    scale = floor.effective_plan_scale
    walls: list[Wall] = []
    for zone in floor.zones:
        n = len(zone.polygon)
        for i in range(n):
            start = zone.polygon[i]
            end = zone.polygon[(i + 1) % n]
            walls.append(Wall(id=f"wall-zone-{zone.id}-{i}",
                              start=Point2D(start.x * scale, start.y * scale),
                              end=Point2D(end.x * scale, end.y * scale)))
    return walls
