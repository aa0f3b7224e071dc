"""SpatialView: stacked 3D building scenes from 2D floor plans and sensor metrics."""

from spatialview.geometry import MeshBuffer, WindingMode
from spatialview.metrics import Band, MaterialDescriptor
from spatialview.models import Building, Floor, Point2D, SpatialModel, Wall, Zone
from spatialview.scene import SceneComposer
