"""Building routes: generate, retint and download the GLB."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config import BUILDING_COLOR, EXPORT_DIR
from database import get_db
from models import Building, BuildStatus
from routes.places import load_boundary_or_error
from schemas import BuildRequest, BuildResponse, ColorRequest
from services.building import BuildingMesh
from services.model3d import parse_color
from services.session import export_filename, session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/building", tags=["building"])


def _parse_color_or_422(value):
    try:
        return parse_color(value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _to_response(building: BuildingMesh) -> dict:
    data = building.to_dict()
    data["download_url"] = f"/api/building/{building.place_id}/download"
    return data


async def _record(db: AsyncSession, req: BuildRequest, color, building=None, glb_path=None):
    row = Building(
        place_id=req.place_id,
        style=req.style,
        storeys=req.storeys,
        color=",".join(str(c) for c in color),
        triangle_count=building.triangle_count if building else None,
        floors=building.floors if building else None,
        glb_path=glb_path,
        status=BuildStatus.GENERATED if building else BuildStatus.FAILED,
    )
    db.add(row)
    await db.commit()
    return row


@router.post("/generate", response_model=BuildResponse)
async def generate(req: BuildRequest, db: AsyncSession = Depends(get_db)):
    """Regenerate the building of a place for a style and storeys setting."""
    color = _parse_color_or_422(req.color if req.color is not None else BUILDING_COLOR)
    boundary = await load_boundary_or_error(db, req.place_id, missing_ok=True)

    building = await session.regenerate(req.place_id, boundary, req.style, req.storeys, color)
    if boundary is None:
        raise HTTPException(status_code=404, detail=f"Place {req.place_id} does not exist")
    if building is None:
        await _record(db, req, color)
        raise HTTPException(status_code=500,
                            detail=f"No building could be generated for place {req.place_id}")

    glb_path = await session.export(req.place_id, EXPORT_DIR)
    await _record(db, req, color, building, glb_path)
    return _to_response(building)


@router.get("/{place_id}", response_model=BuildResponse)
async def get_building(place_id: str):
    """The building currently generated for a place."""
    building = session.get(place_id)
    if building is None:
        raise HTTPException(status_code=404, detail="No building for this place")
    return _to_response(building)


@router.put("/{place_id}/color", response_model=BuildResponse)
async def set_color(place_id: str, req: ColorRequest):
    """Retint the current building (no regeneration) and re-export it."""
    color = _parse_color_or_422(req.color)
    building = await session.retint(place_id, color)
    if building is None:
        raise HTTPException(status_code=404, detail="No building for this place")
    await session.export(place_id, EXPORT_DIR)
    return _to_response(building)


@router.get("/{place_id}/download")
async def download(place_id: str):
    """Download the current building as binary glTF."""
    path = EXPORT_DIR / export_filename(place_id)
    if session.get(place_id) is None or not path.exists():
        raise HTTPException(status_code=404, detail="No building for this place")
    return FileResponse(str(path), media_type="model/gltf-binary",
                        filename=export_filename(place_id))
