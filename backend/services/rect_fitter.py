"""
Rectangle Fitter: largest building footprint inside a place boundary.

Bounded heuristic search (not an exact maximal inscribed rectangle):
an origin-centred rectangle, sized from the boundary extents, is tried at
every combination of

    9 scales x 11 X displacements x 11 Z displacements x 6 rotations

and a candidate is kept when its 4 corners and 4 edge mid-points are all
inside the boundary. Instead of moving the 8 probe points, the boundary is
rotated about the origin and then displaced, and the fixed probes are tested
against that transformed copy.

Notes:
  - Extents use only maxX / maxZ, so the boundary is expected to straddle
    the origin (places are authored around their own origin).
  - The fitted transform is reported for the boundary overlay; the building
    itself is always synthesized axis-aligned at the origin.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from services.boundary import polygon_area, to_coords, transform_polygon
from services.building_constants import DISPLACEMENTS, ROTATIONS, SCALES

logger = logging.getLogger(__name__)


# ===========================================================================
# POINT IN POLYGON
# ===========================================================================

def points_in_polygon(points, polygon) -> np.ndarray:
    """
    Even-odd crossing test of many (x, z) points against one polygon.

    Same rule as the classic PNPOLY loop: an edge (i, j) with j = i - 1
    counts when it straddles the point's z and the crossing lies to the
    right of the point. Points exactly on an edge are not guaranteed either
    way, but the answer is always the same for the same input.
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    poly = np.asarray(polygon, dtype=float).reshape(-1, 2)
    if poly.shape[0] < 3:
        return np.zeros(pts.shape[0], dtype=bool)

    xi = poly[:, 0][np.newaxis, :]
    zi = poly[:, 1][np.newaxis, :]
    xj = np.roll(poly[:, 0], 1)[np.newaxis, :]
    zj = np.roll(poly[:, 1], 1)[np.newaxis, :]
    x = pts[:, 0][:, np.newaxis]
    z = pts[:, 1][:, np.newaxis]

    straddles = (zi > z) != (zj > z)
    with np.errstate(divide="ignore", invalid="ignore"):
        crossing_x = (xj - xi) * (z - zi) / (zj - zi) + xi
    crosses = straddles & (x < crossing_x)
    return (np.count_nonzero(crosses, axis=1) % 2) == 1


def probe_points(scaled_width: float, scaled_height: float) -> np.ndarray:
    """The 4 corners then the 4 edge mid-points of an origin-centred rectangle."""
    w, h = scaled_width, scaled_height
    return np.array([
        (-w, -h), (w, -h), (w, h), (-w, h),
        (0.0, -h), (w, 0.0), (0.0, h), (-w, 0.0),
    ])


# ===========================================================================
# FITTED RECTANGLE
# ===========================================================================

@dataclass(frozen=True)
class FittedRectangle:
    """Winning candidate of the search. Read-only once created."""

    half_width: float
    half_height: float
    scale: float
    rotation: float
    displacement_x: float
    displacement_z: float

    @property
    def scaled_width(self) -> float:
        return self.half_width * self.scale

    @property
    def scaled_height(self) -> float:
        return self.half_height * self.scale

    @property
    def area(self) -> float:
        return 4.0 * self.half_width * self.half_height * self.scale ** 2

    def probes(self) -> np.ndarray:
        return probe_points(self.scaled_width, self.scaled_height)

    def corners(self) -> np.ndarray:
        return self.probes()[:4]

    def transformed_boundary(self, polygon) -> np.ndarray:
        """The boundary in the frame the rectangle was validated in (overlay)."""
        return transform_polygon(polygon, self.rotation,
                                 self.displacement_x, self.displacement_z)

    def fits(self, polygon) -> bool:
        """Re-check that all 8 probes are inside the transformed boundary."""
        return bool(points_in_polygon(self.probes(),
                                      self.transformed_boundary(polygon)).all())

    def to_dict(self) -> dict:
        return {
            "half_width": round(self.half_width, 4),
            "half_height": round(self.half_height, 4),
            "scale": self.scale,
            "rotation": round(self.rotation, 6),
            "displacement_x": self.displacement_x,
            "displacement_z": self.displacement_z,
            "scaled_width": round(self.scaled_width, 4),
            "scaled_height": round(self.scaled_height, 4),
            "area": round(self.area, 4),
            "corners": to_coords(self.corners()),
        }


# ===========================================================================
# SEARCH
# ===========================================================================

def base_half_extents(polygon) -> tuple:
    """
    Pre-scale half-extents from the boundary maxima.

    Width is made the larger of the two so the door lands on the wider face.
    """
    pts = np.asarray(polygon, dtype=float).reshape(-1, 2)
    width = float(pts[:, 0].max()) / 2
    height = float(pts[:, 1].max()) / 2
    if width < height:
        width, height = height, width
    return width, height


def fit_rectangle(
    polygon: Sequence,
    build_height: Optional[float] = None,
    scales: Sequence[float] = SCALES,
    rotations: Sequence[float] = ROTATIONS,
    displacements: Sequence[float] = DISPLACEMENTS,
) -> Optional[FittedRectangle]:
    """
    Find the highest-area rectangle candidate that fits ``polygon``.

    Args:
        polygon: (x, z) vertices, implicitly closed.
        build_height: height budget; a non-positive budget leaves nothing to fit.
        scales, rotations, displacements: search grid (defaults are the
            production grid; enumeration order is scale, X displacement,
            Z displacement, rotation).

    Returns:
        The first candidate of maximum area, or None when the polygon is
        degenerate or no candidate fits.
    """
    pts = np.asarray(polygon, dtype=float).reshape(-1, 2)
    if pts.shape[0] < 3 or polygon_area(pts) <= 0:
        logger.info("Rectangle fit skipped: degenerate boundary")
        return None
    if build_height is not None and build_height <= 0:
        logger.info("Rectangle fit skipped: no build height")
        return None

    width, height = base_half_extents(pts)
    if width <= 0 or height <= 0:
        logger.warning(f"Rectangle fit skipped: boundary does not straddle the origin "
                       f"(half extents {width:.2f} x {height:.2f})")
        return None

    scales = list(scales)
    rotations = list(rotations)
    displacements = list(displacements)

    all_probes = np.concatenate([probe_points(width * s, height * s) for s in scales])
    valid = np.zeros((len(scales), len(displacements), len(displacements), len(rotations)),
                     dtype=bool)

    for j, dx in enumerate(displacements):
        for k, dz in enumerate(displacements):
            for l, rotation in enumerate(rotations):
                moved = transform_polygon(pts, rotation, dx, dz)
                inside = points_in_polygon(all_probes, moved).reshape(len(scales), 8)
                valid[:, j, k, l] = inside.all(axis=1)

    best = None
    for i, scale in enumerate(scales):
        hits = np.argwhere(valid[i])
        if hits.shape[0] == 0:
            continue
        # argwhere is row-major, i.e. the enumeration order of the search
        j, k, l = (int(v) for v in hits[0])
        candidate = FittedRectangle(
            half_width=width,
            half_height=height,
            scale=float(scale),
            rotation=float(rotations[l]),
            displacement_x=float(displacements[j]),
            displacement_z=float(displacements[k]),
        )
        if best is None or candidate.area > best.area:
            best = candidate

    if best is None:
        logger.info(f"No rectangle fits boundary ({pts.shape[0]} vertices)")
    else:
        logger.info(f"Fitted rectangle: scale {best.scale}, "
                    f"rotation {np.degrees(best.rotation):.0f} deg, "
                    f"displacement ({best.displacement_x}, {best.displacement_z}), "
                    f"area {best.area:.2f}")
    return best
