"""
Tests for the roof synthesizer.

Run: pytest test_roof_builder.py
"""

import sys
sys.path.insert(0, ".")

import pytest

from services.building_constants import HOLE_FACTOR
from services.rect_fitter import FittedRectangle
from services.roof_builder import build_roof, hole_factor_for
from services.solid_ops import is_valid_mesh
from services.style import RoofKind, resolve_style


def _rect(half_width, half_height=None):
    return FittedRectangle(half_width=half_width,
                           half_height=half_width if half_height is None else half_height,
                           scale=1.0, rotation=0.0,
                           displacement_x=0.0, displacement_z=0.0)


def test_flat_roof_lip():
    """Flat slab on top of the floor, 1% wider than the footprint."""
    result = build_roof(_rect(5), resolve_style(2), 1)
    assert result.kind == RoofKind.FLAT
    assert not result.stairwell and result.stairs is None

    (x0, y0, z0), (x1, y1, z1) = result.roof.bounds
    assert x1 == pytest.approx(5.05) and x0 == pytest.approx(-5.05)
    assert y1 == pytest.approx(5.05)
    assert z0 == pytest.approx(4.0) and z1 == pytest.approx(4.1)


def test_gable_roof():
    """Ridge sits 1.85 above the top of the floor."""
    result = build_roof(_rect(5), resolve_style(1), 2)
    assert result.kind == RoofKind.GABLE
    assert is_valid_mesh(result.roof)

    (_, _, z0), (_, _, z1) = result.roof.bounds
    assert z1 == pytest.approx(8 + 1.85, abs=0.01)
    assert z0 < 8


def test_hole_factor():
    assert hole_factor_for(_rect(7.5), storeys=False) == HOLE_FACTOR
    assert hole_factor_for(_rect(10), storeys=True) == pytest.approx(0.5)
    assert hole_factor_for(_rect(5.5), storeys=True) < 0.1


def test_hole_roof_has_hole():
    """The hole removes material compared to a flat slab."""
    flat = build_roof(_rect(6), resolve_style(2), 1)
    hole = build_roof(_rect(6), resolve_style(3), 1)
    assert hole.kind == RoofKind.HOLE
    assert hole.hole_factor == pytest.approx(2 / 3)
    assert hole.roof.volume < flat.roof.volume


def test_hole_too_small_keeps_slab():
    """With storeys the hole shrinks to nothing on narrow footprints."""
    result = build_roof(_rect(5.5), resolve_style(3, storeys=True), 1)
    assert result.kind == RoofKind.HOLE
    assert result.hole_factor < 0.1
    assert result.stairwell


def test_stairwell_cut_and_ramp():
    """Multi-storey flat roofs get the opening and the ramp."""
    plain = build_roof(_rect(6), resolve_style(2), 1)
    stairs = build_roof(_rect(6), resolve_style(2, storeys=True), 1)
    assert stairs.stairwell
    assert is_valid_mesh(stairs.stairs)
    assert stairs.roof.volume < plain.roof.volume


def test_stairwell_infeasible_keeps_uncut_roof():
    result = build_roof(_rect(3.9), resolve_style(2, storeys=True), 1)
    assert not result.stairwell
    assert result.stairs is None
    assert is_valid_mesh(result.roof)


def test_missing_rectangle():
    with pytest.raises(ValueError):
        build_roof(None, resolve_style(1), 1)
