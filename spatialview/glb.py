"""GLB export of a composed scene.

Each enabled floor becomes a node in the trimesh scene graph and every
enabled mesh under it a child geometry with its own PBR material, so the
floor grouping and the current visibility state survive the export.
"""

import logging
import pathlib
from typing import Optional, Union

import numpy as np
import trimesh
from trimesh.visual.material import PBRMaterial

from .constants import OUTPUT_DIR
from .metrics import MaterialDescriptor
from .scene import MeshNode, SceneComposer

logger = logging.getLogger(__name__)


def get_output_path(filename: Union[str, pathlib.Path]) -> pathlib.Path:
    """Relative names land in the output directory."""
    path = pathlib.Path(filename)
    return path if path.is_absolute() else OUTPUT_DIR / path


def pbr_material(descriptor: MaterialDescriptor, name: Optional[str] = None) -> PBRMaterial:
    translucent = descriptor.alpha < 1.0
    return PBRMaterial(
        name=name,
        baseColorFactor=descriptor.rgba,
        emissiveFactor=list(descriptor.emissive_color) if descriptor.emissive else None,
        alphaMode='BLEND' if translucent else 'OPAQUE',
        roughnessFactor=0.8,
        metallicFactor=0.0,
        doubleSided=translucent,
    )


def mesh_to_trimesh(node: MeshNode) -> trimesh.Trimesh:
    mesh = node.buffer.to_trimesh()
    mesh.visual = trimesh.visual.TextureVisuals(
        uv=node.buffer.uvs,
        material=pbr_material(node.material, name=f"{node.name}_mat"))
    return mesh


def build_trimesh_scene(composer: SceneComposer) -> trimesh.Scene:
    """Convert the composer's enabled nodes into a trimesh scene."""
    if composer.root is None:
        composer.layout()

    scene = trimesh.Scene()
    for node in composer.root.children:
        if not node.enabled:
            continue
        meshes = [m for m in node.meshes if m.enabled and m.buffer is not None]
        if not meshes:
            continue
        scene.graph.update(frame_from=scene.graph.base_frame,
                           frame_to=node.name, matrix=np.eye(4))
        for mesh_node in meshes:
            scene.add_geometry(mesh_to_trimesh(mesh_node),
                               geom_name=mesh_node.name,
                               node_name=mesh_node.name,
                               parent_node_name=node.name)
    return scene


def export_glb(composer: SceneComposer, output_path: Union[str, pathlib.Path]) -> str:
    """Write the composer's current scene to a GLB file and return its path."""
    scene = build_trimesh_scene(composer)
    if not scene.geometry:
        raise ValueError("No visible geometry to export")

    output_path = get_output_path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    scene.export(str(output_path), file_type='glb')
    logger.info(f"GLB file generated successfully: {output_path} "
                f"({len(scene.geometry)} meshes)")
    return str(output_path)
