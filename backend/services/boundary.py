"""Place boundary model.

Parses raw place metadata (as served by the place indexer) into a
``BoundaryMetadata`` record and provides the polygon helpers the rectangle
fitter and the boundary overlay need:

- decimal-string coordinate parsing (x and z of each ``[x, y, z]`` triple)
- validation with Shapely (>= 3 vertices, positive area)
- rotate/displace copies of a polygon (never in place)
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import Polygon

from services.building_constants import floor_count

logger = logging.getLogger(__name__)

Point2 = Tuple[float, float]


class NoBoundaryDataError(LookupError):
    """The place identifier has no metadata."""

    def __init__(self, place_id: str):
        super().__init__(f"Place {place_id} does not exist")
        self.place_id = place_id


class InvalidBoundaryError(ValueError):
    """Place metadata exists but does not describe a usable boundary."""


@dataclass(frozen=True)
class BoundaryMetadata:
    """Boundary polygon (x, z pairs, implicitly closed) and height budget."""

    place_id: str
    polygon: Tuple[Point2, ...]
    build_height: float

    @property
    def floors(self) -> int:
        return floor_count(self.build_height)

    @property
    def area(self) -> float:
        return polygon_area(self.polygon)

    def to_dict(self) -> dict:
        return {
            "place_id": self.place_id,
            "polygon": [[round(x, 4), round(z, 4)] for x, z in self.polygon],
            "build_height": self.build_height,
            "floors": self.floors,
            "area": round(self.area, 4),
        }


def _parse_decimal(value, what: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidBoundaryError(f"Invalid {what}: {value!r}")
    if not math.isfinite(number):
        raise InvalidBoundaryError(f"Invalid {what}: {value!r}")
    return number


def parse_boundary(place_id: str, metadata: Optional[dict]) -> BoundaryMetadata:
    """
    Build a ``BoundaryMetadata`` from indexer metadata.

    ``metadata["borderCoordinates"]`` is a list of ``[x, y, z]`` decimal
    strings (y is ignored, the boundary lies in the horizontal x/z plane) and
    ``metadata["buildHeight"]`` a decimal string.

    Raises NoBoundaryDataError when metadata is missing and
    InvalidBoundaryError when it cannot describe a polygon.
    """
    if not metadata:
        raise NoBoundaryDataError(place_id)

    raw_coords = metadata.get("borderCoordinates") or []
    polygon = []
    for coordinate in raw_coords:
        if not isinstance(coordinate, (list, tuple)) or len(coordinate) < 3:
            raise InvalidBoundaryError(f"Invalid border coordinate: {coordinate!r}")
        x = _parse_decimal(coordinate[0], "x coordinate")
        z = _parse_decimal(coordinate[2], "z coordinate")
        polygon.append((x, z))

    # Closed implicitly; drop an explicit closing vertex
    if len(polygon) > 1 and polygon[0] == polygon[-1]:
        polygon = polygon[:-1]

    if len(polygon) < 3:
        raise InvalidBoundaryError(
            f"Place {place_id}: only {len(polygon)} vertices found. Minimum 3 required."
        )

    build_height = _parse_decimal(metadata.get("buildHeight"), "build height")
    if build_height <= 0:
        raise InvalidBoundaryError(f"Place {place_id}: build height must be positive.")

    # Self-intersecting outlines are kept; the even-odd fit still works on them
    if not is_simple_polygon(polygon):
        logger.warning(f"Place {place_id}: boundary is not a simple polygon")

    boundary = BoundaryMetadata(place_id=str(place_id), polygon=tuple(polygon),
                                build_height=build_height)
    logger.info(f"Parsed place {place_id}: {len(polygon)} vertices, "
                f"height {build_height:.2f}, {boundary.floors} floors")
    return boundary


def polygon_area(polygon: Sequence[Point2]) -> float:
    """Unsigned area of an implicitly closed polygon (0 for < 3 vertices)."""
    if len(polygon) < 3:
        return 0.0
    return Polygon(polygon).area


def is_simple_polygon(polygon: Sequence[Point2]) -> bool:
    """True for a non-self-intersecting polygon with positive area."""
    if len(polygon) < 3:
        return False
    poly = Polygon(polygon)
    return poly.is_valid and poly.area > 0


def rotate_points(points, angle: float, origin: Point2 = (0.0, 0.0)) -> np.ndarray:
    """Rotate (x, z) points counter-clockwise by ``angle`` radians about ``origin``."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    ox, oz = origin
    c, s = math.cos(angle), math.sin(angle)
    dx = pts[:, 0] - ox
    dz = pts[:, 1] - oz
    return np.column_stack((c * dx - s * dz + ox, s * dx + c * dz + oz))


def transform_polygon(polygon, rotation: float, dx: float, dz: float) -> np.ndarray:
    """Copy of ``polygon`` rotated about the origin, then displaced."""
    rotated = rotate_points(polygon, rotation)
    rotated[:, 0] += dx
    rotated[:, 1] += dz
    return rotated


def to_coords(points) -> List[List[float]]:
    """Round an (N, 2) array to JSON-friendly ``[[x, z], ...]``."""
    return [[round(float(x), 4), round(float(z), 4)] for x, z in np.asarray(points)]
