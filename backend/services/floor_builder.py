"""
Floor Synthesizer: one storey of walls with door, windows and glass.

Each floor starts as a hollow box (outer footprint minus a slightly smaller
inner block) and is then folded through the feature cuts in a fixed order:

    door -> door-side windows -> alternate-floor door-side window ->
    other-side windows -> round windows -> alternate-floor other-side
    window -> side window bands

Every feature is total: when there is no space for it the walls come back
unchanged and the feature is recorded as skipped. Glazed features also
produce glass panes by intersecting each cut block with the walls as they
were *before* that feature's cut.

Coordinates follow services.solid_ops (plan x/z -> mesh x/y, mesh z up).
The door faces +y (plan +Z); the building is centred on the origin.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from services.building_constants import (
    CUT_MARGIN, DOOR_DEPTH, DOOR_HEIGHT, DOOR_WIDTH, FLOOR_HEIGHT,
    INNER_HEIGHT_SCALE, INNER_PLAN_SCALE, ROUND_WINDOW_SECTIONS,
    ROUND_WINDOW_SECTIONS_LOW, SIDE_WINDOW_BASE, SIDE_WINDOW_HEIGHT,
    STAIRS_ANGLE, STAIRS_LENGTH, STAIRS_RAMP_LENGTH, STAIRS_WIDTH,
    WALL_THICKNESS, WINDOW_DEPTH, WINDOW_DIAMETER, WINDOW_HEIGHT,
    WINDOW_PADDING, WINDOW_WIDTH, floor_offset,
)
from services.rect_fitter import FittedRectangle
from services.solid_ops import (
    SolidOps, cylinder_along_x, default_ops, is_valid_mesh, rotate_about_axis,
)
from services.style import StyleFlags

logger = logging.getLogger(__name__)


@dataclass
class FloorContext:
    rect: FittedRectangle
    flags: StyleFlags
    floor_index: int
    floors: int
    ops: SolidOps

    @property
    def sw(self) -> float:
        return self.rect.scaled_width

    @property
    def sh(self) -> float:
        return self.rect.scaled_height

    @property
    def offset(self) -> float:
        return floor_offset(self.floor_index)

    @property
    def even_floor(self) -> bool:
        return self.floor_index % 2 == 0


@dataclass
class FeatureCut:
    """Blocks to subtract from the walls for one feature."""

    variant: str
    cutters: list
    glazed: bool = True


@dataclass
class FloorResult:
    floor_index: int
    walls: object
    glass: list = field(default_factory=list)
    applied: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "floor": self.floor_index,
            "applied": dict(self.applied),
            "skipped": list(self.skipped),
            "panes": len(self.glass),
        }


# ===========================================================================
# SHELL
# ===========================================================================

def _base_shell(ctx: FloorContext):
    """Hollow box for one floor; the ground floor keeps a thin floor slab."""
    ops, o, sw, sh = ctx.ops, ctx.offset, ctx.sw, ctx.sh
    outer = ops.prism(-sw, sw, -sh, sh, o, o + FLOOR_HEIGHT)

    iw, ih = sw * INNER_PLAN_SCALE, sh * INNER_PLAN_SCALE
    if ctx.floor_index == 1:
        bottom = o + WALL_THICKNESS
        top = bottom + FLOOR_HEIGHT * INNER_HEIGHT_SCALE
    else:
        top = o + FLOOR_HEIGHT + 2 * WALL_THICKNESS
        bottom = top - (FLOOR_HEIGHT + 4 * WALL_THICKNESS) * INNER_HEIGHT_SCALE
    inner = ops.prism(-iw, iw, -ih, ih, bottom, top)

    return ops.subtract(outer, inner)


# ===========================================================================
# CUT BLOCKS
# ===========================================================================

def _window_z_range(ctx):
    centre = ctx.offset + FLOOR_HEIGHT / 2
    return centre - WINDOW_HEIGHT / 2, centre + WINDOW_HEIGHT / 2


def _window_across_x(ctx, offset_x, y0, y1):
    """Window block facing +/-y, centred at ``offset_x``."""
    z0, z1 = _window_z_range(ctx)
    return ctx.ops.prism(offset_x - WINDOW_WIDTH / 2, offset_x + WINDOW_WIDTH / 2,
                         y0, y1, z0, z1)


def _window_across_y(ctx, offset_y, reach=None):
    """Window block along x (``±reach``, default ``±2·sw``), centred at ``offset_y``."""
    if reach is None:
        reach = 2 * ctx.sw
    z0, z1 = _window_z_range(ctx)
    return ctx.ops.prism(-reach, reach,
                         offset_y - WINDOW_WIDTH / 2, offset_y + WINDOW_WIDTH / 2, z0, z1)


def _back_face(ctx):
    return -ctx.sh - WINDOW_DEPTH / 2, -ctx.sh + WINDOW_DEPTH / 2


def _door_face(ctx):
    return ctx.sh - WINDOW_DEPTH / 2, ctx.sh + WINDOW_DEPTH / 2


# ===========================================================================
# FEATURES
# ===========================================================================

def _plan_door(ctx: FloorContext) -> Optional[FeatureCut]:
    if ctx.sw <= DOOR_WIDTH + 2 * WINDOW_PADDING:
        return None
    z0 = ctx.offset + WALL_THICKNESS
    y1 = ctx.sh + DOOR_DEPTH / 2
    if ctx.flags.double_door:
        y0, variant = -ctx.sh - DOOR_DEPTH / 2, "double"
    else:
        y0, variant = ctx.sh - DOOR_DEPTH / 2, "single"
    block = ctx.ops.prism(-DOOR_WIDTH / 2, DOOR_WIDTH / 2, y0, y1, z0, z0 + DOOR_HEIGHT)
    return FeatureCut(variant, [block], glazed=False)


def _plan_door_side_windows(ctx: FloorContext) -> Optional[FeatureCut]:
    span = 2 * ctx.sw
    if span > 2 * WINDOW_WIDTH + 4 * WINDOW_PADDING + DOOR_WIDTH:
        offset = (ctx.sw - DOOR_WIDTH / 2) / 2 + DOOR_WIDTH / 2
        y0, y1 = -2 * ctx.sh, 2 * ctx.sh
        return FeatureCut("flanking_door", [_window_across_x(ctx, offset, y0, y1),
                                            _window_across_x(ctx, -offset, y0, y1)])
    if span > 2 * WINDOW_WIDTH + 3 * WINDOW_PADDING:
        padding = (span - 2 * WINDOW_WIDTH) / 3
        offset = padding / 2 + WINDOW_WIDTH / 2
        y0, y1 = _back_face(ctx)
        return FeatureCut("two_across", [_window_across_x(ctx, offset, y0, y1),
                                         _window_across_x(ctx, -offset, y0, y1)])
    if span > WINDOW_WIDTH + 2 * WINDOW_PADDING:
        y0, y1 = _back_face(ctx)
        return FeatureCut("one_across", [_window_across_x(ctx, 0.0, y0, y1)])
    return None


def _plan_alternate_door_side_window(ctx: FloorContext) -> Optional[FeatureCut]:
    if 2 * ctx.sw <= WINDOW_WIDTH + 2 * WINDOW_PADDING:
        return None
    y0, y1 = _door_face(ctx)
    return FeatureCut("one_door_face", [_window_across_x(ctx, 0.0, y0, y1)])


def _plan_other_side_windows(ctx: FloorContext) -> Optional[FeatureCut]:
    span = 2 * ctx.sh
    if span > 2 * WINDOW_WIDTH + 3 * WINDOW_PADDING:
        padding = (span - 2 * WINDOW_WIDTH) / 3
        offset = padding / 2 + WINDOW_WIDTH / 2
        return FeatureCut("two", [_window_across_y(ctx, offset),
                                  _window_across_y(ctx, -offset)])
    if span > WINDOW_WIDTH + 2 * WINDOW_PADDING:
        return FeatureCut("one", [_window_across_y(ctx, 0.0)])
    return None


def _plan_round_windows(ctx: FloorContext) -> Optional[FeatureCut]:
    span = 2 * ctx.sh
    sections = ROUND_WINDOW_SECTIONS
    if ctx.flags.storeys and ctx.floors > 1:
        sections = ROUND_WINDOW_SECTIONS_LOW
    radius = WINDOW_DIAMETER / 2
    length = 3 * ctx.sw
    centre_z = ctx.offset + FLOOR_HEIGHT / 2

    if span > 2 * WINDOW_DIAMETER + 3 * WINDOW_PADDING:
        padding = (span - (2 * WINDOW_DIAMETER + 3 * WINDOW_PADDING)) / 3
        offset = padding / 2 + WINDOW_DIAMETER / 2
        return FeatureCut("two", [
            cylinder_along_x(radius, length, sections, (0.0, offset, centre_z)),
            cylinder_along_x(radius, length, sections, (0.0, -offset, centre_z)),
        ])
    if span > WINDOW_DIAMETER + 2 * WINDOW_PADDING:
        return FeatureCut("one", [cylinder_along_x(radius, length, sections,
                                                   (0.0, 0.0, centre_z))])
    return None


def _plan_alternate_other_side_window(ctx: FloorContext) -> Optional[FeatureCut]:
    if 2 * ctx.sh <= WINDOW_WIDTH + 2 * WINDOW_PADDING:
        return None
    # Reaches ±2·sh along x: on footprints wider than that it stays inside
    # the hollow floor and cuts nothing.
    return FeatureCut("one", [_window_across_y(ctx, 0.0, reach=2 * ctx.sh)])


def _plan_side_windows(ctx: FloorContext) -> Optional[FeatureCut]:
    # Full-height bands either side of the door; unguarded.
    z0 = ctx.offset + SIDE_WINDOW_BASE
    z1 = z0 + SIDE_WINDOW_HEIGHT
    y0, y1 = -2 * ctx.sh, 2 * ctx.sh
    left = ctx.ops.prism(-DOOR_WIDTH - ctx.sw, -DOOR_WIDTH, y0, y1, z0, z1)
    right = ctx.ops.prism(DOOR_WIDTH, DOOR_WIDTH + ctx.sw, y0, y1, z0, z1)
    return FeatureCut("bands", [right, left])


# (name, is active for this floor, planner) in cut order
FEATURES: List[tuple] = [
    ("door",
     lambda c: c.floor_index == 1 and (c.flags.single_door or c.flags.double_door),
     _plan_door),
    ("door_side_windows",
     lambda c: c.flags.windows_door_sides,
     _plan_door_side_windows),
    ("alternate_door_side_window",
     lambda c: c.flags.alternate_floor_door_side_windows and c.even_floor,
     _plan_alternate_door_side_window),
    ("other_side_windows",
     lambda c: c.flags.windows_other_sides,
     _plan_other_side_windows),
    ("round_windows",
     lambda c: c.flags.round_windows_other_sides and not c.even_floor,
     _plan_round_windows),
    ("alternate_other_side_window",
     lambda c: c.flags.alternate_floor_other_side_windows and c.even_floor,
     _plan_alternate_other_side_window),
    ("side_windows",
     lambda c: c.flags.windows_sides,
     _plan_side_windows),
]


def _apply_cut(ops: SolidOps, walls, cut: FeatureCut):
    """Subtract a feature's blocks; panes come from the uncut walls."""
    panes = []
    if cut.glazed:
        for block in cut.cutters:
            pane = ops.intersect(walls, block)
            if is_valid_mesh(pane):
                panes.append(pane)
    return ops.subtract(walls, *cut.cutters), panes


def build_floor(rect: FittedRectangle, flags: StyleFlags, floor_index: int,
                floors: int = 1, ops: SolidOps = default_ops) -> FloorResult:
    """
    Build the walls and window glass of one floor.

    Args:
        rect: fitted footprint (required).
        flags: resolved style.
        floor_index: 1-based storey.
        floors: storeys in the building (tessellation level of round windows).
        ops: solid operations implementation.
    """
    if rect is None:
        raise ValueError("No fitted rectangle: nothing to build.")
    if floor_index < 1:
        raise ValueError(f"Floor index must be 1 or more, got {floor_index}")

    ctx = FloorContext(rect=rect, flags=flags, floor_index=floor_index,
                       floors=max(floors, 1), ops=ops)
    walls = _base_shell(ctx)
    result = FloorResult(floor_index=floor_index, walls=walls)

    for name, is_active, plan in FEATURES:
        if not is_active(ctx):
            continue
        cut = plan(ctx)
        if cut is None:
            logger.info(f"Floor {floor_index}: no space for {name}")
            result.skipped.append(name)
            continue
        walls, panes = _apply_cut(ops, walls, cut)
        result.glass.extend(panes)
        result.applied[name] = cut.variant
        logger.debug(f"Floor {floor_index}: {name} ({cut.variant})")

    result.walls = walls
    return result


# ===========================================================================
# STAIRWELL
# ===========================================================================

def stairwell_fits(rect: FittedRectangle) -> bool:
    return rect.scaled_width > 2 * STAIRS_WIDTH


def build_stairwell(rect: FittedRectangle, floor_index: int,
                    ops: SolidOps = default_ops):
    """
    Opening block through the floor's roof slab and the 45 degree ramp.

    Returns ``(cutter, ramp)`` or None when the footprint is too narrow.
    """
    if not stairwell_fits(rect):
        return None
    o = floor_offset(floor_index)
    sh = rect.scaled_height
    y0 = -sh + WALL_THICKNESS

    cutter = ops.prism(-STAIRS_LENGTH / 2, STAIRS_LENGTH / 2, y0, -sh + STAIRS_WIDTH,
                       o - WALL_THICKNESS - CUT_MARGIN,
                       o + FLOOR_HEIGHT + WALL_THICKNESS + CUT_MARGIN)

    ramp = ops.prism(-STAIRS_RAMP_LENGTH / 2, STAIRS_RAMP_LENGTH / 2, y0, -sh + STAIRS_WIDTH,
                     -WALL_THICKNESS, 0.0)
    ramp = rotate_about_axis(ramp, STAIRS_ANGLE, [0, 1, 0], [0, 0, 0])
    ramp.apply_translation([0, 0, o + FLOOR_HEIGHT / 2 + WALL_THICKNESS])
    return cutter, ramp
