"""
Solid operations used by the building pipeline.

The floor, roof and assembler modules are written against ``SolidOps``
(subtract / intersect / extrude_polygon / merge) plus a few primitive
builders. ``TrimeshSolidOps`` implements it with trimesh, using the
manifold3d boolean engine and mapbox-earcut for polygon triangulation.

Frame: plan coordinates (x, z) of the place map to mesh (x, y); the mesh
z axis is up. Export converts to glTF's Y-up frame.
"""

import logging
import math

import numpy as np
import trimesh
from shapely.geometry import MultiPolygon, Polygon, box as shapely_box

logger = logging.getLogger(__name__)


class SynthesisError(RuntimeError):
    """A boolean or construction step failed unexpectedly."""


# ===========================================================================
# GEOMETRY HELPERS
# ===========================================================================

def _safe_polygon(coords, holes=None):
    """Create a valid Shapely polygon from coords, or None if degenerate."""
    poly = Polygon(coords, holes)
    if not poly.is_valid:
        poly = poly.buffer(0)
    if isinstance(poly, MultiPolygon):
        poly = max(poly.geoms, key=lambda g: g.area)
    if poly.is_empty or poly.area < 1e-9:
        return None
    return poly


def is_valid_mesh(mesh):
    """Check if a mesh has any geometry."""
    return (mesh is not None and hasattr(mesh, 'vertices')
            and mesh.vertices.shape[0] > 0 and len(mesh.faces) > 0)


def empty_mesh():
    return trimesh.Trimesh()


# ===========================================================================
# CAPABILITY INTERFACE
# ===========================================================================

class SolidOps:
    """Boolean and construction primitives the pipeline needs."""

    def subtract(self, solid, *cutters):
        raise NotImplementedError

    def intersect(self, solid, other):
        raise NotImplementedError

    def extrude_polygon(self, polygon, height, z_base=0.0):
        raise NotImplementedError

    def merge(self, solids):
        raise NotImplementedError

    # Primitive builders shared by every implementation

    def prism(self, x0, x1, y0, y1, z0, z1):
        """Axis-aligned block spanning the given ranges."""
        return self.extrude_polygon(shapely_box(min(x0, x1), min(y0, y1),
                                                max(x0, x1), max(y0, y1)),
                                    abs(z1 - z0), z_base=min(z0, z1))

    def slab_with_hole(self, half_x, half_y, hole_x, hole_y, z_base, thickness):
        """Rectangular slab centred on the origin with an optional centred hole."""
        outer = [(-half_x, -half_y), (half_x, -half_y), (half_x, half_y), (-half_x, half_y)]
        holes = None
        if hole_x > 0 and hole_y > 0:
            holes = [[(-hole_x, -hole_y), (hole_x, -hole_y), (hole_x, hole_y), (-hole_x, hole_y)]]
        return self.extrude_polygon(Polygon(outer, holes), thickness, z_base=z_base)


class TrimeshSolidOps(SolidOps):
    """trimesh implementation (manifold3d booleans)."""

    def __init__(self, engine="manifold"):
        self.engine = engine

    def subtract(self, solid, *cutters):
        cutters = [c for c in cutters if is_valid_mesh(c)]
        if not cutters:
            return solid
        try:
            return trimesh.boolean.difference([solid, *cutters], engine=self.engine,
                                              check_volume=False)
        except Exception as e:
            raise SynthesisError(f"Boolean subtract failed: {e}") from e

    def intersect(self, solid, other):
        if not is_valid_mesh(solid) or not is_valid_mesh(other):
            return empty_mesh()
        try:
            return trimesh.boolean.intersection([solid, other], engine=self.engine,
                                                check_volume=False)
        except Exception as e:
            raise SynthesisError(f"Boolean intersect failed: {e}") from e

    def extrude_polygon(self, polygon, height, z_base=0.0):
        if not isinstance(polygon, Polygon):
            polygon = _safe_polygon(polygon)
        if polygon is None or polygon.is_empty or height <= 0:
            raise SynthesisError("Cannot extrude an empty profile")
        try:
            mesh = trimesh.creation.extrude_polygon(polygon, height)
        except Exception as e:
            raise SynthesisError(f"Polygon extrusion failed: {e}") from e
        if z_base != 0.0:
            mesh.apply_translation([0, 0, z_base])
        return mesh

    def merge(self, solids):
        valid = [m for m in solids if is_valid_mesh(m)]
        if not valid:
            return empty_mesh()
        if len(valid) == 1:
            return valid[0]
        return trimesh.util.concatenate(valid)


default_ops = TrimeshSolidOps()


# ===========================================================================
# TRANSFORMS
# ===========================================================================

def scale_plan(mesh, factor):
    """Scale a mesh in plan (x, y) about the vertical axis through the origin."""
    mesh = mesh.copy()
    mesh.apply_transform(np.diag([factor, factor, 1.0, 1.0]))
    return mesh


def cylinder_along_x(radius, length, sections, center):
    """Cylinder whose axis runs along x, centred at ``center``."""
    cyl = trimesh.creation.cylinder(radius=radius, height=length, sections=sections)
    cyl.apply_transform(trimesh.transformations.rotation_matrix(math.pi / 2, [0, 1, 0]))
    cyl.apply_translation(center)
    return cyl


def rotate_about_axis(mesh, angle, axis, point):
    """Copy of ``mesh`` rotated by ``angle`` radians about a line through ``point``."""
    mesh = mesh.copy()
    mesh.apply_transform(trimesh.transformations.rotation_matrix(angle, axis, point))
    return mesh
