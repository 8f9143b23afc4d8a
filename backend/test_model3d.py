"""
Tests for materials and GLB export.

Run: pytest test_model3d.py
"""

import sys
sys.path.insert(0, ".")

import pytest
import trimesh

from services.model3d import (
    BUILDING, GLASS, MATERIALS, building_scene, color_mesh, export_glb, parse_color,
)


def _box():
    return trimesh.creation.box(extents=(2, 2, 2))


def test_parse_color():
    assert parse_color("10, 20,30") == (10, 20, 30)
    assert parse_color([255, 0, 128]) == (255, 0, 128)
    for bad in ("10,20", "a,b,c", [0, 0, 300], None):
        with pytest.raises(ValueError):
            parse_color(bad)


def test_glass_material():
    glass = MATERIALS[GLASS]
    assert glass["color"][3] == 26
    assert glass["metallic"] == 1.0
    assert glass["roughness"] == 0.1


def test_color_mesh_building_override():
    mesh = color_mesh(_box(), BUILDING, (1, 2, 3))
    assert mesh.visual.face_colors[0].tolist() == [1, 2, 3, 255]

    glass = color_mesh(_box(), GLASS, (1, 2, 3))
    assert glass.visual.face_colors[0].tolist() == MATERIALS[GLASS]["color"]


def test_scene_is_y_up():
    """The pipeline's z axis becomes glTF's y axis."""
    tall = trimesh.creation.box(extents=(1, 1, 6))
    scene = building_scene({BUILDING: tall})
    mesh = list(scene.geometry.values())[0]
    extents = mesh.extents
    assert extents[1] == pytest.approx(6)
    assert extents[2] == pytest.approx(1)


def test_export_only_building_parts(tmp_path):
    parts = {BUILDING: _box(), GLASS: trimesh.Trimesh()}
    path = export_glb(parts, str(tmp_path / "building-5"), color=(50, 60, 70))

    assert path.endswith("building-5.glb")
    with open(path, "rb") as f:
        assert f.read(4) == b"glTF"

    loaded = trimesh.load(path, force="scene")
    assert len(loaded.geometry) == 1


def test_export_empty_raises(tmp_path):
    with pytest.raises(ValueError):
        export_glb({BUILDING: trimesh.Trimesh()}, str(tmp_path / "empty.glb"))
