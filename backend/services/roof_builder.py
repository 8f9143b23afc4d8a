"""
Roof Synthesizer: flat, gable or hole roof for one floor.

Flat and hole roofs are thin slabs 1% larger than the footprint in plan
(a visible lip). On multi-storey buildings they also carry the stairwell
opening, and the 45 degree ramp is returned with them. The gable roof is two
sloped panels hinged at a fixed-height ridge plus a triangular end prism; it
is never combined with a stairwell.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from shapely.geometry import Polygon

from services.building_constants import (
    FLOOR_HEIGHT, GABLE_HEIGHT, HOLE_FACTOR, HOLE_FACTOR_STAIRS_CLEARANCE,
    MIN_HOLE_FACTOR, ROOF_LIP_SCALE, STAIRS_WIDTH, WALL_THICKNESS, floor_offset,
)
from services.floor_builder import build_stairwell
from services.rect_fitter import FittedRectangle
from services.solid_ops import SolidOps, default_ops, rotate_about_axis, scale_plan
from services.style import RoofKind, StyleFlags

logger = logging.getLogger(__name__)


@dataclass
class RoofResult:
    kind: RoofKind
    roof: object
    stairs: object = None
    stairwell: bool = False
    hole_factor: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "stairwell": self.stairwell,
            "hole_factor": None if self.hole_factor is None else round(self.hole_factor, 4),
        }


def hole_factor_for(rect: FittedRectangle, storeys: bool) -> float:
    """Hole size as a fraction of the footprint; leaves room for the stairs."""
    if storeys:
        sw = rect.scaled_width
        return (sw - HOLE_FACTOR_STAIRS_CLEARANCE * STAIRS_WIDTH) / sw
    return HOLE_FACTOR


def _with_stairwell(result: RoofResult, rect, flags, floor_index, ops) -> RoofResult:
    if not flags.storeys:
        return result
    stairwell = build_stairwell(rect, floor_index, ops)
    if stairwell is None:
        logger.info(f"Floor {floor_index}: no space for stairs")
        return result
    cutter, ramp = stairwell
    result.roof = ops.subtract(result.roof, cutter)
    result.stairs = ramp
    result.stairwell = True
    return result


def _flat_roof(rect, floor_index, ops, hole_factor=None):
    sw, sh = rect.scaled_width, rect.scaled_height
    hole_x = hole_y = 0.0
    if hole_factor is not None and hole_factor > MIN_HOLE_FACTOR:
        hole_x, hole_y = sw * hole_factor, sh * hole_factor
    slab = ops.slab_with_hole(sw, sh, hole_x, hole_y,
                              floor_offset(floor_index) + FLOOR_HEIGHT, WALL_THICKNESS)
    return scale_plan(slab, ROOF_LIP_SCALE)


def _gable_roof(rect, floor_index, ops):
    sw, sh = rect.scaled_width, rect.scaled_height
    o = floor_offset(floor_index)
    angle = math.atan2(GABLE_HEIGHT, sh)
    length = sh / math.cos(angle) + WALL_THICKNESS
    ridge = o + FLOOR_HEIGHT + GABLE_HEIGHT
    eave = sw + WALL_THICKNESS

    back = ops.prism(-eave, eave, -length, 0.0, ridge - WALL_THICKNESS, ridge)
    back = rotate_about_axis(back, angle, [1, 0, 0], [0, 0, ridge])
    front = ops.prism(-eave, eave, 0.0, length, ridge - WALL_THICKNESS, ridge)
    front = rotate_about_axis(front, -angle, [1, 0, 0], [0, 0, ridge])

    # Triangle in the (y, z) plane extruded along x
    cap = ops.extrude_polygon(Polygon([(-sh, 0.0), (0.0, GABLE_HEIGHT), (sh, 0.0)]),
                              2 * sw - WALL_THICKNESS)
    cap.apply_transform(np.array([
        [0.0, 0.0, 1.0, -sw + WALL_THICKNESS / 2],
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, o + FLOOR_HEIGHT - WALL_THICKNESS],
        [0.0, 0.0, 0.0, 1.0],
    ]))
    return ops.merge([back, front, cap])


def build_roof(rect: FittedRectangle, flags: StyleFlags, floor_index: int,
               floors: int = 1, ops: SolidOps = default_ops) -> RoofResult:
    """Roof (and stairwell ramp, when multi-storey) sitting on ``floor_index``."""
    if rect is None:
        raise ValueError("No fitted rectangle: nothing to build.")

    logger.debug(f"Floor {floor_index}/{floors}: {flags.roof.value} roof")
    if flags.roof == RoofKind.GABLE:
        return RoofResult(kind=RoofKind.GABLE, roof=_gable_roof(rect, floor_index, ops))

    if flags.roof == RoofKind.HOLE:
        factor = hole_factor_for(rect, flags.storeys)
        if factor <= MIN_HOLE_FACTOR:
            logger.info(f"Floor {floor_index}: hole factor {factor:.2f} too small, no hole")
        result = RoofResult(kind=RoofKind.HOLE,
                            roof=_flat_roof(rect, floor_index, ops, hole_factor=factor),
                            hole_factor=factor)
    else:
        result = RoofResult(kind=RoofKind.FLAT, roof=_flat_roof(rect, floor_index, ops))

    return _with_stairwell(result, rect, flags, floor_index, ops)
