"""Building styles: style id + storeys flag -> architectural feature switches."""

import enum
from dataclasses import asdict, dataclass


class RoofKind(enum.Enum):
    FLAT = "flat"
    GABLE = "gable"
    HOLE = "hole"


@dataclass(frozen=True)
class StyleFlags:
    style_id: int
    storeys: bool
    single_door: bool = False
    double_door: bool = False
    windows_door_sides: bool = False
    windows_other_sides: bool = False
    round_windows_other_sides: bool = False
    windows_sides: bool = False
    alternate_floor_door_side_windows: bool = False
    alternate_floor_other_side_windows: bool = False
    roof: RoofKind = RoofKind.FLAT

    @property
    def door_count(self) -> int:
        return 2 if self.double_door else 1

    def to_dict(self) -> dict:
        data = asdict(self)
        data["roof"] = self.roof.value
        return data


# Door arity, windows and roof per style id
_STYLE_TABLE = {
    1: dict(single_door=True, windows_door_sides=True, windows_other_sides=True,
            roof=RoofKind.GABLE),
    2: dict(single_door=True, windows_sides=True, roof=RoofKind.FLAT),
    3: dict(double_door=True, alternate_floor_other_side_windows=True,
            alternate_floor_door_side_windows=True, roof=RoofKind.HOLE),
    4: dict(double_door=True, round_windows_other_sides=True,
            alternate_floor_door_side_windows=True, roof=RoofKind.FLAT),
}

STYLE_IDS = tuple(sorted(_STYLE_TABLE))
DEFAULT_STYLE = 1


def resolve_style(style_id: int, storeys: bool = False) -> StyleFlags:
    """
    Feature flags for a style. Unknown ids behave as style 1.

    Multi-storey buildings always get a single door and a walkable roof for
    the stairwell: flat, except style 3 which keeps its hole roof.
    """
    if style_id not in _STYLE_TABLE:
        style_id = DEFAULT_STYLE
    features = dict(_STYLE_TABLE[style_id])

    if storeys:
        features["single_door"] = True
        features["double_door"] = False
        features["roof"] = RoofKind.HOLE if style_id == 3 else RoofKind.FLAT

    return StyleFlags(style_id=style_id, storeys=bool(storeys), **features)
