"""
Building Assembler: fits the footprint and stacks floors and roofs.

The pipeline is a pure function of (boundary, style, storeys):

    boundary -> fit_rectangle -> resolve_style -> [build_floor + build_roof] x floors

Floors are built from 1 upward; on a multi-storey building the loop runs
while ``floor <= floors`` (but always at least once), otherwise exactly once.
Every built floor carries its roof slab, so the slab of floor n is the floor
of floor n + 1 and the topmost slab closes the building.

Parts are kept per material tag (``building`` for walls, roofs and stairs,
``glass`` for window panes) so the export can assign real materials.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from services.boundary import BoundaryMetadata
from services.building_constants import floor_count
from services.floor_builder import FloorResult, build_floor
from services.model3d import BUILDING, DEFAULT_BUILDING_COLOR, GLASS, color_mesh
from services.rect_fitter import FittedRectangle, fit_rectangle
from services.roof_builder import RoofResult, build_roof
from services.solid_ops import SolidOps, SynthesisError, default_ops, is_valid_mesh
from services.style import StyleFlags, resolve_style

logger = logging.getLogger(__name__)


@dataclass
class BuildingMesh:
    """Final building for one place. Replaced wholesale on regeneration."""

    place_id: str
    rect: FittedRectangle
    flags: StyleFlags
    parts: Dict[str, object]
    triangle_count: int
    floors: int
    color: tuple = DEFAULT_BUILDING_COLOR
    floor_results: List[FloorResult] = field(default_factory=list)
    roof_results: List[RoofResult] = field(default_factory=list)

    @property
    def roof_kind(self) -> str:
        return self.flags.roof.value

    @property
    def has_stairwell(self) -> bool:
        return any(r.stairwell for r in self.roof_results)

    def to_dict(self) -> dict:
        return {
            "place_id": self.place_id,
            "style": self.flags.style_id,
            "storeys": self.flags.storeys,
            "floors": self.floors,
            "triangle_count": self.triangle_count,
            "color": list(self.color),
            "roof": self.roof_kind,
            "stairwell": self.has_stairwell,
            "rectangle": self.rect.to_dict(),
            "floor_details": [f.to_dict() for f in self.floor_results],
            "roof_details": [r.to_dict() for r in self.roof_results],
        }


def triangle_count(parts: Dict[str, object]) -> int:
    """Display figure: total vertex count / 3, rounded."""
    vertices = sum(len(m.vertices) for m in parts.values() if is_valid_mesh(m))
    return int(round(vertices / 3))


def assemble_building(
    rect: FittedRectangle,
    flags: StyleFlags,
    build_height: float,
    ops: SolidOps = default_ops,
    place_id: str = "",
    color: Sequence[int] = DEFAULT_BUILDING_COLOR,
) -> BuildingMesh:
    """
    Build every floor and roof and merge them per material.

    Raises:
        ValueError: no fitted rectangle.
        SynthesisError: a solid operation failed.
    """
    if rect is None:
        raise ValueError("No fitted rectangle: nothing to build.")

    floors = max(floor_count(build_height), 1) if flags.storeys else 1
    building_solids, glass_solids = [], []
    floor_results, roof_results = [], []

    floor_index = 1
    while True:
        floor = build_floor(rect, flags, floor_index, floors=floors, ops=ops)
        roof = build_roof(rect, flags, floor_index, floors=floors, ops=ops)

        building_solids.append(floor.walls)
        building_solids.append(roof.roof)
        if roof.stairs is not None:
            building_solids.append(roof.stairs)
        glass_solids.extend(floor.glass)

        floor_results.append(floor)
        roof_results.append(roof)

        floor_index += 1
        if not (flags.storeys and floor_index <= floors):
            break

    parts = {BUILDING: ops.merge(building_solids)}
    if glass_solids:
        parts[GLASS] = ops.merge(glass_solids)

    if not is_valid_mesh(parts[BUILDING]):
        raise SynthesisError("Building solid is empty")

    color = tuple(color)
    color_mesh(parts[BUILDING], BUILDING, color)
    if GLASS in parts:
        color_mesh(parts[GLASS], GLASS)

    building = BuildingMesh(
        place_id=str(place_id),
        rect=rect,
        flags=flags,
        parts=parts,
        triangle_count=triangle_count(parts),
        floors=len(floor_results),
        color=color,
        floor_results=floor_results,
        roof_results=roof_results,
    )
    logger.info(f"Assembled building {place_id}: {building.floors} floor(s), "
                f"{building.triangle_count} triangles, roof {building.roof_kind}")
    return building


def generate_building(
    boundary: Optional[BoundaryMetadata],
    style_id: int = 1,
    storeys: bool = False,
    color: Sequence[int] = DEFAULT_BUILDING_COLOR,
    ops: SolidOps = default_ops,
) -> Optional[BuildingMesh]:
    """
    Entry point of the pipeline. Never raises for geometry problems.

    Returns None when there is no boundary, no rectangle fits, or synthesis
    failed (logged with traceback).
    """
    if boundary is None:
        logger.warning("No boundary data: building not generated")
        return None

    rect = fit_rectangle(boundary.polygon, boundary.build_height)
    if rect is None:
        logger.warning(f"Place {boundary.place_id}: no rectangle fits the boundary")
        return None

    flags = resolve_style(style_id, storeys)
    try:
        return assemble_building(rect, flags, boundary.build_height, ops=ops,
                                 place_id=boundary.place_id, color=color)
    except SynthesisError:
        logger.exception(f"Place {boundary.place_id}: building synthesis failed")
        return None


def retint(building: BuildingMesh, color: Sequence[int]) -> BuildingMesh:
    """Change the base colour of the building part in place. Geometry is untouched."""
    building.color = tuple(color)
    color_mesh(building.parts[BUILDING], BUILDING, building.color)
    logger.info(f"Building {building.place_id} retinted to {building.color}")
    return building
