"""
Building Constants: dimensions shared by the fitter, floor, roof and
assembler modules.

All values are in scene units (one unit is one metre in the exported glTF).
The floor/roof builders and the rectangle fitter import from here instead of
defining their own numbers.
"""

import math

# ===========================================================================
# RECTANGLE FITTER SEARCH GRID
# ===========================================================================

# Search order matters: the first candidate of the largest area wins.
SCALES = (1.0, 0.9, 1.1, 0.8, 1.2, 0.7, 1.3, 0.5, 1.5)
DISPLACEMENTS = (0.0, 2.0, 4.0, 6.0, 8.0, 10.0, -2.0, -4.0, -6.0, -8.0, -10.0)
ROTATIONS = tuple(math.radians(d) for d in (0, 30, 60, 90, 120, 150))

# ===========================================================================
# FLOORS AND WALLS
# ===========================================================================

FLOOR_HEIGHT = 4.0
WALL_THICKNESS = 0.1
INNER_PLAN_SCALE = 0.99      # inner cut, leaves ~1% walls
INNER_HEIGHT_SCALE = 1.2

# ===========================================================================
# OPENINGS
# ===========================================================================

DOOR_WIDTH = 2.0
DOOR_HEIGHT = 3.0
DOOR_DEPTH = 2.0             # cut block depth across the wall

WINDOW_WIDTH = 4.0
WINDOW_HEIGHT = 2.0
WINDOW_PADDING = 0.2
WINDOW_DEPTH = 2.0           # single-face window cut depth

WINDOW_DIAMETER = 3.0
ROUND_WINDOW_SECTIONS = 32
ROUND_WINDOW_SECTIONS_LOW = ROUND_WINDOW_SECTIONS // 4

SIDE_WINDOW_HEIGHT = FLOOR_HEIGHT - 1.0
SIDE_WINDOW_BASE = 0.5

# ===========================================================================
# STAIRS
# ===========================================================================

STAIRS_WIDTH = 2.0
STAIRS_LENGTH = 4.0          # opening length along X
STAIRS_ANGLE = math.radians(45)
STAIRS_RAMP_LENGTH = FLOOR_HEIGHT / math.sin(STAIRS_ANGLE)

# ===========================================================================
# ROOFS
# ===========================================================================

ROOF_LIP_SCALE = 1.01
GABLE_HEIGHT = 1.85
HOLE_FACTOR = 2.0 / 3.0
HOLE_FACTOR_STAIRS_CLEARANCE = 2.5   # multiples of STAIRS_WIDTH kept clear
MIN_HOLE_FACTOR = 0.1

# Vertical overshoot for cut blocks whose faces would otherwise be coplanar
# with the slab they cut.
CUT_MARGIN = 0.01


def floor_count(build_height: float) -> int:
    """Number of storeys that fit a height budget."""
    if build_height is None or build_height <= 0:
        return 0
    return int(math.floor(build_height / (FLOOR_HEIGHT + WALL_THICKNESS)))


def floor_offset(floor_index: int) -> float:
    """Base elevation of a 1-based floor."""
    return (floor_index - 1) * FLOOR_HEIGHT
