"""
Tests for the regeneration session (serialization and coalescing).

Run: pytest test_session.py
"""

import sys
sys.path.insert(0, ".")

import asyncio
import threading
from types import SimpleNamespace

from services import session as session_module
from services.boundary import BoundaryMetadata
from services.session import BuildingSession, export_filename

BOUNDARY = BoundaryMetadata(place_id="5", polygon=((10.0, 10.0), (-10.0, 10.0), (-10.0, -10.0)),
                            build_height=8.0)


def _fake_generator(calls):
    def fake_generate(boundary, style_id, storeys, color):
        calls.append(style_id)
        return SimpleNamespace(place_id=boundary.place_id, style=style_id, color=color)
    return fake_generate


def test_regenerate_replaces_current(monkeypatch):
    calls = []
    monkeypatch.setattr(session_module, "generate_building", _fake_generator(calls))
    session = BuildingSession()

    first = asyncio.run(session.regenerate("5", BOUNDARY, style_id=1))
    second = asyncio.run(session.regenerate("5", BOUNDARY, style_id=2))

    assert calls == [1, 2]
    assert session.get("5") is second
    assert first is not second


def test_overlapping_requests_coalesce(monkeypatch):
    """A queued request that is superseded returns the newer result."""
    calls = []
    monkeypatch.setattr(session_module, "generate_building", _fake_generator(calls))
    session = BuildingSession()

    async def burst():
        return await asyncio.gather(
            session.regenerate("5", BOUNDARY, style_id=1),
            session.regenerate("5", BOUNDARY, style_id=2),
            session.regenerate("5", BOUNDARY, style_id=3),
        )

    a, b, c = asyncio.run(burst())
    assert calls == [1, 3]
    assert a.style == 1
    assert b is c
    assert session.get("5") is c


def test_failed_generation_keeps_last_building(monkeypatch):
    calls = []
    monkeypatch.setattr(session_module, "generate_building", _fake_generator(calls))
    session = BuildingSession()
    good = asyncio.run(session.regenerate("5", BOUNDARY))

    monkeypatch.setattr(session_module, "generate_building", lambda *args: None)
    assert asyncio.run(session.regenerate("5", BOUNDARY)) is None
    assert session.get("5") is good


def test_export_filename():
    assert export_filename("12") == "building-12.glb"


def test_cancelled_newest_request_does_not_strand_older(monkeypatch):
    """Cancelling the newest queued request lets the one before it build."""
    calls = []
    gate = threading.Event()
    fake = _fake_generator(calls)

    def gated_generate(boundary, style_id, storeys, color):
        if style_id == 1:
            gate.wait(5)
        return fake(boundary, style_id, storeys, color)

    monkeypatch.setattr(session_module, "generate_building", gated_generate)
    session = BuildingSession()

    async def scenario():
        a = asyncio.ensure_future(session.regenerate("5", BOUNDARY, style_id=1))
        await asyncio.sleep(0)
        b = asyncio.ensure_future(session.regenerate("5", BOUNDARY, style_id=2))
        c = asyncio.ensure_future(session.regenerate("5", BOUNDARY, style_id=3))
        await asyncio.sleep(0)
        c.cancel()
        await asyncio.sleep(0)
        gate.set()
        first = await asyncio.wait_for(a, timeout=5)
        second = await asyncio.wait_for(b, timeout=5)
        return first, second, c

    first, second, c = asyncio.run(scenario())
    assert c.cancelled()
    assert first.style == 1
    assert second.style == 2
    assert calls == [1, 2]
    assert session.get("5") is second


def test_export_holds_the_lock(monkeypatch, tmp_path):
    """Export runs under the session lock so a regeneration cannot interleave."""
    calls = []
    monkeypatch.setattr(session_module, "generate_building", _fake_generator(calls))
    session = BuildingSession()
    held = []

    def fake_export(parts, path, color, name):
        held.append(session._lock.locked())
        return path

    monkeypatch.setattr(session_module, "export_glb", fake_export)

    async def scenario():
        building = await session.regenerate("5", BOUNDARY)
        building.parts = {}
        return await session.export("5", tmp_path)

    path = asyncio.run(scenario())
    assert path.endswith(export_filename("5"))
    assert held == [True]
