"""
Regeneration session: the building currently shown for each place.

The pipeline itself is pure; the only shared state is the current
``BuildingMesh`` per place id, owned here. Regenerations are serialized with
an ``asyncio.Lock`` and run in a worker thread. When a newer request for the
same place is already queued, an older one does not build: it waits for the
newer request and returns its result (queue-and-coalesce to the latest).
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

from starlette.concurrency import run_in_threadpool

from services.boundary import BoundaryMetadata
from services.building import BuildingMesh, generate_building, retint
from services.model3d import DEFAULT_BUILDING_COLOR, export_glb

logger = logging.getLogger(__name__)


class _Request:
    def __init__(self):
        self.future = asyncio.get_running_loop().create_future()


def export_filename(place_id: str) -> str:
    return f"building-{place_id}.glb"


class BuildingSession:

    def __init__(self):
        self.current: Dict[str, BuildingMesh] = {}
        self._latest: Dict[str, _Request] = {}
        self._lock = asyncio.Lock()

    def get(self, place_id: str) -> Optional[BuildingMesh]:
        return self.current.get(str(place_id))

    def teardown(self, place_id: str):
        """Forget the current building of a place (e.g. the place is gone)."""
        if self.current.pop(str(place_id), None) is not None:
            logger.info(f"Place {place_id}: building torn down")

    async def regenerate(
        self,
        place_id: str,
        boundary: Optional[BoundaryMetadata],
        style_id: int = 1,
        storeys: bool = False,
        color: Sequence[int] = DEFAULT_BUILDING_COLOR,
    ) -> Optional[BuildingMesh]:
        """
        Replace the building of ``place_id``.

        Returns the new building, or None when there is no boundary (the
        current building is torn down) or synthesis produced nothing (the
        last good building stays current).
        """
        place_id = str(place_id)
        request = _Request()
        self._latest[place_id] = request

        try:
            async with self._lock:
                latest = self._latest.get(place_id)
                if latest is None or latest is request:
                    building = await self._build(place_id, boundary, style_id, storeys, color)
                    request.future.set_result(building)
                    return building

            logger.warning(f"Place {place_id}: regeneration superseded by a newer request")
            return await asyncio.shield(latest.future)
        finally:
            # A failed or cancelled request must not leave waiters hanging,
            # and must not stay registered as the latest one.
            if not request.future.done():
                request.future.set_result(None)
            if self._latest.get(place_id) is request:
                del self._latest[place_id]

    async def _build(self, place_id, boundary, style_id, storeys, color):
        if boundary is None:
            self.teardown(place_id)
            return None
        building = await run_in_threadpool(generate_building, boundary, style_id,
                                           storeys, tuple(color))
        if building is not None:
            self.current[place_id] = building
        return building

    async def retint(self, place_id: str, color: Sequence[int]) -> Optional[BuildingMesh]:
        async with self._lock:
            building = self.get(place_id)
            if building is None:
                return None
            return retint(building, color)

    async def export(self, place_id: str, export_dir: Path) -> Optional[str]:
        """Write the current building of a place to ``building-<id>.glb``."""
        async with self._lock:
            building = self.get(place_id)
            if building is None:
                return None
            path = Path(export_dir) / export_filename(place_id)
            return await run_in_threadpool(export_glb, building.parts, str(path),
                                           building.color, f"building-{place_id}")


session = BuildingSession()
