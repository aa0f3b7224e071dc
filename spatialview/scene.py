"""Scene composition: stacked floors of zone meshes with per-floor visibility.

``SceneComposer`` owns the whole render state (model, selected floor,
metric/time context, playback flag) and a tree of ``SceneNode`` objects:

    root
     ├── floor node (one per floor, stack order)
     │    ├── <zone>_walls mesh
     │    └── <zone>_slab mesh
     └── ground node (only when no slab was produced)

A layout pass disposes the previous tree before building a new one. Floor
selection and metric changes only recompute materials and ``enabled``
flags; geometry is never rebuilt for them.
"""

import asyncio
import contextlib
import enum
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Optional

from .bounds import CameraFrame, camera_frame, wall_bounds, zone_bounds
from .constants import (
    DEFAULT_WALL_HEIGHT,
    GLOBAL_SCALE,
    GROUND_ALPHA,
    GROUND_COLOR,
    PLAYBACK_INTERVAL,
    SELECTED_WALL_ALPHA,
    SLAB_COLOR,
    SLAB_THICKNESS,
    ZONE_COLOR,
)
from .geometry import (
    MeshBuffer,
    WindingMode,
    build_ground,
    build_slab,
    build_wall,
    extrude_polygon,
    orient_polygon,
    walls_from_zones,
)
from .metrics import (
    DEFAULT_TABLE,
    MaterialDescriptor,
    RecordedValueSource,
    SimulatedValueSource,
    ThresholdTable,
    ValueSource,
    zone_material,
)
from .models import SpatialModel, Wall, Zone
from .stacking import resolve_elevations, total_height

logger = logging.getLogger(__name__)

ZONE_MATERIAL = MaterialDescriptor(color=ZONE_COLOR, alpha=1.0)
SLAB_MATERIAL = MaterialDescriptor(color=SLAB_COLOR, alpha=1.0)
GROUND_MATERIAL = MaterialDescriptor(color=GROUND_COLOR, alpha=GROUND_ALPHA)


class MeshRole(str, enum.Enum):
    WALLS = "walls"     # zone extrusion or wall-segment box
    SLAB = "slab"
    GROUND = "ground"


class FloorRelation(str, enum.Enum):
    """Position of a floor relative to the selected floor."""
    BELOW = "below"
    SELECTED = "selected"
    ABOVE = "above"
    UNSELECTED = "unselected"   # nothing selected, or not a stacked floor


def floor_relation(floor_index: Optional[int], selected: Optional[int]) -> FloorRelation:
    if floor_index is None or selected is None:
        return FloorRelation.UNSELECTED
    if floor_index < selected:
        return FloorRelation.BELOW
    if floor_index == selected:
        return FloorRelation.SELECTED
    return FloorRelation.ABOVE


def display_material(state: MaterialDescriptor, role: MeshRole,
                     relation: FloorRelation,
                     selected_wall_alpha: float = SELECTED_WALL_ALPHA
                     ) -> Optional[MaterialDescriptor]:
    """Material to draw for a mesh, or None when the mesh is hidden.

    Floors below the selection are drawn opaque and floors above it are
    hidden. The selected floor keeps an opaque slab under translucent walls.
    """
    if relation == FloorRelation.ABOVE:
        return None
    if relation == FloorRelation.BELOW:
        return state.with_alpha(1.0)
    if relation == FloorRelation.SELECTED:
        if role == MeshRole.WALLS:
            return state.with_alpha(min(state.alpha, selected_wall_alpha))
        return state.with_alpha(1.0)
    return state


@dataclass
class MeshNode:
    name: str
    role: MeshRole
    buffer: Optional[MeshBuffer]
    state: MaterialDescriptor
    material: MaterialDescriptor
    zone: Optional[Zone] = None
    enabled: bool = True
    disposed: bool = False

    @property
    def zone_id(self) -> Optional[str]:
        return self.zone.id if self.zone is not None else None

    def dispose(self) -> None:
        self.buffer = None
        self.enabled = False
        self.disposed = True


class SceneNode:
    """Transform node that exclusively owns its child nodes and meshes."""

    def __init__(self, name: str, floor_index: Optional[int] = None,
                 elevation: float = 0.0):
        self.name = name
        self.floor_index = floor_index
        self.elevation = elevation
        self.children: list["SceneNode"] = []
        self.meshes: list[MeshNode] = []
        self.enabled = True
        self.disposed = False

    def add_child(self, node: "SceneNode") -> "SceneNode":
        self.children.append(node)
        return node

    def add_mesh(self, mesh: MeshNode) -> MeshNode:
        self.meshes.append(mesh)
        return mesh

    def iter_meshes(self) -> Iterator[MeshNode]:
        yield from self.meshes
        for child in self.children:
            yield from child.iter_meshes()

    def find_mesh(self, name: str) -> Optional[MeshNode]:
        for mesh in self.iter_meshes():
            if mesh.name == name:
                return mesh
        return None

    def dispose(self) -> None:
        for child in self.children:
            child.dispose()
        for mesh in self.meshes:
            mesh.dispose()
        self.children = []
        self.meshes = []
        self.enabled = False
        self.disposed = True


class PlaybackTask:
    """Periodic callback on the running event loop; at most one tick runs at a time."""

    def __init__(self, callback: Callable[[], None], interval: float = PLAYBACK_INTERVAL):
        if interval <= 0:
            raise ValueError(f"Playback interval must be positive, got {interval}")
        self.callback = callback
        self.interval = interval
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Playback task already running")
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.ticks += 1
            try:
                self.callback()
            except Exception:
                logger.exception(f"Playback tick {self.ticks} failed; stopping")
                raise

    async def cancel(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


class SceneComposer:
    def __init__(self, model: Optional[SpatialModel] = None,
                 walls: Optional[list[Wall]] = None, *,
                 winding: WindingMode = WindingMode.OUTWARD,
                 orient_zones: bool = True,
                 wall_mode: bool = False,
                 thresholds: ThresholdTable = DEFAULT_TABLE,
                 value_source: Optional[ValueSource] = None,
                 global_scale: float = GLOBAL_SCALE):
        """
        winding: triangle orientation handed to every mesh builder.
        orient_zones: normalise zone polygons to positive signed area before
            extrusion so OUTWARD really faces outward.
        wall_mode: render wall-segment boxes even when the model has zones;
            without hand-drawn walls the selected floor's zone outlines are used.
        value_source: where readings come from; recorded series by default.
        """
        self.model = model
        self.walls = list(walls or [])
        self.winding = winding
        self.orient_zones = orient_zones
        self.wall_mode = wall_mode
        self.thresholds = thresholds
        self.value_source: ValueSource = value_source or RecordedValueSource()
        self.global_scale = global_scale

        self.selected_floor: Optional[int] = None
        self.metric: Optional[str] = None
        self.time_index = 0

        self.root: Optional[SceneNode] = None
        self.elevations: list[float] = []
        self.camera: Optional[CameraFrame] = None
        self.layout_count = 0
        self._playback: Optional[PlaybackTask] = None

    # ── Layout ────────────────────────────────────────────────────────

    @property
    def uses_zones(self) -> bool:
        return self.model is not None and self.model.has_renderable_zones

    @property
    def floor_count(self) -> int:
        return len(self.model.building.floors) if self.model else 0

    @property
    def floor_nodes(self) -> list[SceneNode]:
        if self.root is None:
            return []
        return [n for n in self.root.children if n.floor_index is not None]

    def set_model(self, model: Optional[SpatialModel],
                  walls: Optional[list[Wall]] = None) -> SceneNode:
        """Replace the model (and walls) and run a full layout pass."""
        self.model = model
        if walls is not None:
            self.walls = list(walls)
        return self.layout()

    def layout(self) -> SceneNode:
        """Dispose the previous tree and build every mesh from scratch."""
        if self.root is not None:
            self.root.dispose()
            self.root = None

        if self.selected_floor is not None:
            self.selected_floor = (self._clamp_floor(self.selected_floor)
                                   if self.floor_count else None)

        root = SceneNode("root")
        floors = self.model.building.floors if self.model else []
        self.elevations = resolve_elevations(floors)
        height = total_height(floors, self.elevations)

        zones = self.uses_zones and not self.wall_mode
        walls = [] if zones else self._active_walls()
        bounds = zone_bounds(self.model) if zones else wall_bounds(walls)
        self.camera = camera_frame(bounds, height, self.global_scale)
        offset = self.camera.center_offset

        if zones:
            self._layout_zones(root, offset)
        elif walls:
            self._layout_walls(root, walls, offset)

        if not any(m.role == MeshRole.SLAB for m in root.iter_meshes()):
            ground = root.add_child(SceneNode("ground"))
            ground.add_mesh(MeshNode(
                name="ground", role=MeshRole.GROUND,
                buffer=build_ground(self.camera.max_horizontal_extent,
                                    winding=self.winding),
                state=GROUND_MATERIAL, material=GROUND_MATERIAL))

        self.root = root
        self.layout_count += 1
        self.refresh_materials()

        n_meshes = sum(1 for _ in root.iter_meshes())
        logger.info(f"Layout pass {self.layout_count}: {len(self.floor_nodes)} floors, "
                    f"{n_meshes} meshes, total height {height:.2f}")
        return root

    def _layout_zones(self, root: SceneNode, offset: tuple[float, float]) -> None:
        for index, (floor, elevation) in enumerate(zip(self.model.building.floors,
                                                       self.elevations)):
            node = root.add_child(SceneNode(f"floor_{floor.id}", floor_index=index,
                                            elevation=elevation))
            scale = floor.effective_plan_scale
            for zone in floor.zones:
                if not zone.is_renderable:
                    logger.warning(f"Skipping zone {zone.id!r} on floor {floor.id!r}: "
                                   f"{len(zone.polygon)} point(s), need at least 3")
                    continue
                polygon = orient_polygon(zone.polygon) if self.orient_zones else zone.polygon
                height = (zone.height_override if zone.height_override is not None
                          else floor.default_height)
                walls = extrude_polygon(polygon, height, elevation + SLAB_THICKNESS,
                                        offset, scale, self.global_scale,
                                        winding=self.winding)
                slab = build_slab(polygon, elevation, offset, scale, self.global_scale,
                                  winding=self.winding)
                node.add_mesh(MeshNode(name=f"zone_{floor.id}_{zone.id}_walls",
                                       role=MeshRole.WALLS, buffer=walls,
                                       state=ZONE_MATERIAL, material=ZONE_MATERIAL,
                                       zone=zone))
                node.add_mesh(MeshNode(name=f"zone_{floor.id}_{zone.id}_slab",
                                       role=MeshRole.SLAB, buffer=slab,
                                       state=SLAB_MATERIAL, material=SLAB_MATERIAL,
                                       zone=zone))
                logger.debug(f"Built {zone.name} on {floor.name} at elevation {elevation}")

    def _wall_floor_index(self) -> Optional[int]:
        if not self.floor_count:
            return None
        return self._clamp_floor(self.selected_floor or 0)

    def _active_walls(self) -> list[Wall]:
        """Hand-drawn walls, else the zone outlines of the selected floor."""
        index = self._wall_floor_index()
        if self.walls or index is None:
            return self.walls
        return walls_from_zones(self.model.building.floors[index])

    def _layout_walls(self, root: SceneNode, walls: list[Wall],
                      offset: tuple[float, float]) -> None:
        elevation, height = 0.0, DEFAULT_WALL_HEIGHT
        index = self._wall_floor_index()
        if index is not None:
            elevation = self.elevations[index]
            height = self.model.building.floors[index].default_height
        node = root.add_child(SceneNode("walls", elevation=elevation))
        for wall in walls:
            buffer = build_wall(wall, height, elevation + SLAB_THICKNESS, offset,
                                self.global_scale, winding=self.winding)
            node.add_mesh(MeshNode(name=f"wall_{wall.id}", role=MeshRole.WALLS,
                                   buffer=buffer, state=ZONE_MATERIAL,
                                   material=ZONE_MATERIAL))
        logger.info(f"Built {len(walls)} wall segments at elevation {elevation}")

    # ── Materials and visibility ──────────────────────────────────────

    def _clamp_floor(self, index: int) -> int:
        return max(0, min(index, self.floor_count - 1))

    def select_floor(self, index: Optional[int]) -> Optional[int]:
        """Select a floor by stack index (clamped), or None to show all floors."""
        if index is not None and self.floor_count:
            index = self._clamp_floor(index)
        elif not self.floor_count:
            index = None
        self.selected_floor = index
        self.apply_visibility()
        return index

    def set_metric_context(self, metric: Optional[str], time_index: int = 0) -> None:
        self.metric = metric
        self.time_index = time_index
        self.refresh_materials()

    def set_value_source(self, source: ValueSource) -> None:
        self.value_source = source
        self.refresh_materials()

    def refresh_materials(self) -> None:
        """Recompute every zone's state material, then re-apply visibility."""
        if self.root is None:
            return
        for mesh in self.root.iter_meshes():
            if mesh.role != MeshRole.WALLS or mesh.zone is None:
                continue
            if self.metric is None:
                mesh.state = ZONE_MATERIAL
            else:
                mesh.state = zone_material(mesh.zone, self.metric,
                                           self.time_index, self.value_source,
                                           self.thresholds)
        self.apply_visibility()

    def apply_visibility(self) -> None:
        if self.root is None:
            return
        for node in self.root.children:
            relation = floor_relation(node.floor_index, self.selected_floor)
            node.enabled = relation != FloorRelation.ABOVE
            for mesh in node.iter_meshes():
                material = display_material(mesh.state, mesh.role, relation)
                mesh.enabled = material is not None
                if material is not None:
                    mesh.material = material

    # ── Playback ──────────────────────────────────────────────────────

    @property
    def playing(self) -> bool:
        return self._playback is not None and self._playback.running

    def tick(self) -> None:
        """Advance one playback step and reassign materials."""
        if self.metric is None:
            return
        if not isinstance(self.value_source, SimulatedValueSource):
            count = self.model.building.time_count(self.metric) if self.model else 0
            self.time_index = (self.time_index + 1) % count if count else 0
        self.refresh_materials()

    def start_playback(self, interval: float = PLAYBACK_INTERVAL) -> PlaybackTask:
        """Start ticking on the running event loop; only one task per scene."""
        if self.playing:
            raise RuntimeError("Playback already active for this scene")
        self._playback = PlaybackTask(self.tick, interval)
        self._playback.start()
        logger.info(f"Playback started ({interval * 1000:.0f} ms interval)")
        return self._playback

    async def stop_playback(self) -> None:
        playback, self._playback = self._playback, None
        if playback is not None:
            await playback.cancel()
            logger.info(f"Playback stopped after {playback.ticks} ticks")

    def dispose(self) -> None:
        if self.root is not None:
            self.root.dispose()
            self.root = None
