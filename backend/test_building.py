"""
End-to-end tests for the building pipeline.

Run: pytest test_building.py
"""

import sys
sys.path.insert(0, ".")

import asyncio

import numpy as np
import pytest

from services.boundary import BoundaryMetadata
from services.building import assemble_building, generate_building, retint
from services.building_constants import floor_count
from services.model3d import BUILDING, GLASS
from services.rect_fitter import FittedRectangle
from services.session import BuildingSession
from services.solid_ops import SolidOps, SynthesisError, TrimeshSolidOps, is_valid_mesh
from services.style import resolve_style

SQUARE = ((10.0, 10.0), (-10.0, 10.0), (-10.0, -10.0), (10.0, -10.0))
TINY_TRIANGLE = ((-1.0, -1.0), (1.0, -1.0), (0.0, 1.0))


def _boundary(polygon=SQUARE, height=8.0, place_id="1"):
    return BoundaryMetadata(place_id=place_id, polygon=polygon, build_height=height)


def _small_rect():
    return FittedRectangle(half_width=3, half_height=3, scale=1.0, rotation=0.0,
                           displacement_x=0.0, displacement_z=0.0)


def test_floor_count_law():
    assert floor_count(9) == 2
    assert floor_count(8) == 1
    assert floor_count(12.4) == 3
    assert floor_count(4.0) == 0
    assert floor_count(100) == 24
    assert floor_count(0) == 0


def test_scenario_single_floor_gable():
    """Square boundary, style 1, one floor with door, windows and gable roof."""
    building = generate_building(_boundary(height=8), style_id=1, storeys=False)
    print(f"  Building: {building.to_dict()}")

    assert building is not None
    assert building.rect.scale == 1.5
    assert building.floors == 1
    assert len(building.roof_results) == 1
    assert building.roof_kind == "gable"
    assert not building.has_stairwell

    applied = building.floor_results[0].applied
    assert applied["door"] == "single"
    assert applied["door_side_windows"] == "flanking_door"
    assert applied["other_side_windows"] == "two"

    assert is_valid_mesh(building.parts[BUILDING])
    assert is_valid_mesh(building.parts[GLASS])
    assert building.triangle_count > 0


def test_scenario_two_storeys():
    """Height 9 with storeys: two floors, flat roof forced, stairwells cut."""
    building = generate_building(_boundary(height=9), style_id=1, storeys=True)

    assert building is not None
    assert building.floors == 2
    assert building.roof_kind == "flat"
    assert all(r.stairwell for r in building.roof_results)
    assert "door" in building.floor_results[0].applied
    assert "door" not in building.floor_results[1].applied

    (_, _, z0), (_, _, z1) = building.parts[BUILDING].bounds
    assert z0 == pytest.approx(0.0)
    assert z1 > 8.0


def test_scenario_tiny_boundary():
    """A tiny triangle still gets a closed shell but no door or windows."""
    building = generate_building(_boundary(polygon=TINY_TRIANGLE), style_id=1)

    assert building is not None
    floor = building.floor_results[0]
    assert floor.applied == {}
    assert set(floor.skipped) == {"door", "door_side_windows", "other_side_windows"}
    assert GLASS not in building.parts
    assert is_valid_mesh(building.parts[BUILDING])


def test_scenario_missing_boundary():
    """No metadata: nothing is generated and the previous building goes away."""
    assert generate_building(None) is None

    session = BuildingSession()
    session.current["7"] = object()
    result = asyncio.run(session.regenerate("7", None))
    assert result is None
    assert session.get("7") is None


def test_storeys_false_builds_one_floor():
    """Without storeys the height budget does not matter."""
    building = assemble_building(_small_rect(), resolve_style(2), 100)
    assert building.floors == 1
    assert len(building.floor_results) == 1


def test_storeys_with_low_height_builds_one_floor():
    building = assemble_building(_small_rect(), resolve_style(2, storeys=True), 3)
    assert building.floors == 1


def test_triangle_count_from_vertices():
    building = assemble_building(_small_rect(), resolve_style(2), 8)
    vertices = sum(len(m.vertices) for m in building.parts.values())
    assert building.triangle_count == round(vertices / 3)


def test_generation_is_deterministic():
    first = generate_building(_boundary(), style_id=3)
    second = generate_building(_boundary(), style_id=3)
    assert first.triangle_count == second.triangle_count
    assert first.to_dict() == second.to_dict()


def test_retint_keeps_geometry():
    building = assemble_building(_small_rect(), resolve_style(2), 8)
    before = building.parts[BUILDING].vertices.copy()

    retint(building, (10, 20, 30))

    assert building.color == (10, 20, 30)
    assert np.array_equal(building.parts[BUILDING].vertices, before)
    colors = building.parts[BUILDING].visual.face_colors
    assert colors[0].tolist() == [10, 20, 30, 255]


class _FailingOps(TrimeshSolidOps):
    def subtract(self, solid, *cutters):
        raise SynthesisError("boom")


def test_synthesis_failure_is_contained():
    """A failing boolean yields no building instead of an exception."""
    assert generate_building(_boundary(), ops=_FailingOps()) is None


def test_solid_ops_interface_is_abstract():
    ops = SolidOps()
    with pytest.raises(NotImplementedError):
        ops.subtract(None)
    with pytest.raises(NotImplementedError):
        ops.intersect(None, None)
    with pytest.raises(NotImplementedError):
        ops.extrude_polygon(None, 1.0)
    with pytest.raises(NotImplementedError):
        ops.merge([])


def test_extrusion_failure_is_contained(monkeypatch):
    """A triangulation error surfaces as SynthesisError and yields no building."""
    import trimesh
    from shapely.geometry import box

    def broken_extrude(polygon, height, **kwargs):
        raise ValueError("triangulation failed")

    monkeypatch.setattr(trimesh.creation, "extrude_polygon", broken_extrude)

    with pytest.raises(SynthesisError):
        TrimeshSolidOps().extrude_polygon(box(0, 0, 1, 1), 1.0)
    assert generate_building(_boundary()) is None
