"""Place boundary route: metadata, fitted rectangle and overlay polygon."""

import logging

import requests
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from database import get_db
from schemas import PlaceOut
from services.boundary import BoundaryMetadata, NoBoundaryDataError, to_coords
from services.place_metadata import load_boundary
from services.rect_fitter import fit_rectangle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/places", tags=["places"])


async def load_boundary_or_error(db: AsyncSession, place_id: str,
                                 missing_ok: bool = False) -> BoundaryMetadata:
    """
    Boundary of a place, with loader errors mapped to HTTP errors.

    With ``missing_ok`` an unknown place yields None instead of a 404.
    """
    try:
        return await load_boundary(db, place_id)
    except NoBoundaryDataError as e:
        if missing_ok:
            return None
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except requests.RequestException as e:
        logger.error(f"Place indexer request failed for {place_id}: {e}")
        raise HTTPException(status_code=502, detail="Place indexer unavailable")


@router.get("/{place_id}", response_model=PlaceOut)
async def get_place(place_id: str, db: AsyncSession = Depends(get_db)):
    """Boundary, height budget and the rectangle a building would occupy."""
    boundary = await load_boundary_or_error(db, place_id)
    rect = await run_in_threadpool(fit_rectangle, boundary.polygon, boundary.build_height)

    data = boundary.to_dict()
    if rect is not None:
        data["rectangle"] = rect.to_dict()
        data["overlay"] = to_coords(rect.transformed_boundary(boundary.polygon))
    return data
