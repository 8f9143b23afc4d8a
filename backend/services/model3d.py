"""
Building materials and glTF/GLB export.

Two material tags are used across the pipeline:
  - building: opaque flat base colour (user selectable)
  - glass: translucent, metallic window panes

Meshes carry per-face colours for previews (trimesh ColorVisuals); the GLB
export swaps those for PBR materials so viewers get real transparency on the
glass. Only the building parts are exported (no boundary overlay, ground or
lights).
"""

import logging
import math
from pathlib import Path
from typing import Dict, Optional, Sequence

import trimesh

from services.solid_ops import is_valid_mesh

logger = logging.getLogger(__name__)

# ===========================================================================
# MATERIALS
# ===========================================================================

BUILDING = 'building'
GLASS = 'glass'

DEFAULT_BUILDING_COLOR = (200, 170, 140)

MATERIALS = {
    BUILDING: {
        'color': [200, 170, 140, 255],
        'metallic': 0.2,
        'roughness': 1.0,
    },
    GLASS: {
        'color': [199, 209, 217, 26],     # (0.78, 0.82, 0.85), alpha 0.1
        'emissive': [117, 122, 128],      # (0.46, 0.48, 0.50)
        'metallic': 1.0,
        'roughness': 0.1,
    },
}


def parse_color(value) -> tuple:
    """Accept ``"r,g,b"`` or a 3-sequence of 0-255 ints."""
    if isinstance(value, str):
        value = [v.strip() for v in value.split(',') if v.strip()]
    try:
        rgb = tuple(int(round(float(v))) for v in value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid color: {value!r}")
    if len(rgb) != 3 or any(c < 0 or c > 255 for c in rgb):
        raise ValueError(f"Color needs 3 components in 0-255, got {value!r}")
    return rgb


def material_rgba(material: str, color: Optional[Sequence[int]] = None) -> list:
    rgba = list(MATERIALS.get(material, MATERIALS[BUILDING])['color'])
    if material == BUILDING and color is not None:
        rgba[:3] = list(color)
    return rgba


def color_mesh(mesh, material: str, color: Optional[Sequence[int]] = None):
    """Apply a solid per-face colour for ``material`` to a mesh."""
    if not is_valid_mesh(mesh):
        return mesh
    mesh.visual = trimesh.visual.ColorVisuals(mesh=mesh,
                                              face_colors=material_rgba(material, color))
    return mesh


def pbr_material(material: str, color: Optional[Sequence[int]] = None):
    props = MATERIALS.get(material, MATERIALS[BUILDING])
    kwargs = dict(
        name=material,
        baseColorFactor=material_rgba(material, color),
        metallicFactor=props['metallic'],
        roughnessFactor=props['roughness'],
        doubleSided=True,
    )
    if material == GLASS:
        kwargs['alphaMode'] = 'BLEND'
        kwargs['emissiveFactor'] = [c / 255.0 for c in props['emissive']]
    else:
        kwargs['alphaMode'] = 'OPAQUE'
    return trimesh.visual.material.PBRMaterial(**kwargs)


# ===========================================================================
# EXPORT
# ===========================================================================

# Z-up pipeline frame -> glTF Y-up
Y_UP = trimesh.transformations.rotation_matrix(-math.pi / 2, [1, 0, 0])


def building_scene(parts: Dict[str, object], color: Optional[Sequence[int]] = None,
                   name: str = 'building'):
    """A scene holding only the building parts, ready for glTF export."""
    scene = trimesh.Scene()
    for material, mesh in parts.items():
        if not is_valid_mesh(mesh):
            continue
        node = mesh.copy()
        node.apply_transform(Y_UP)
        node.visual = trimesh.visual.TextureVisuals(material=pbr_material(material, color))
        scene.add_geometry(node, node_name=f"{name}-{material}", geom_name=f"{name}-{material}")
    return scene


def export_glb(parts: Dict[str, object], output_path: str,
               color: Optional[Sequence[int]] = None, name: str = 'building') -> str:
    """
    Write the building parts to a binary glTF file.

    Returns:
        Path to the generated file.
    """
    scene = building_scene(parts, color=color, name=name)
    if not scene.geometry:
        raise ValueError("No valid geometry to export.")

    output_path = str(output_path)
    if not output_path.endswith('.glb'):
        output_path = output_path + '.glb'
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    scene.export(output_path, file_type='glb')

    logger.info(f"3D model exported: {output_path}")
    return output_path
