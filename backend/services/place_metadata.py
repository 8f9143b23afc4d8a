"""
Place metadata client.

Places are tokens on an indexer API; each token's metadata carries the
boundary (``borderCoordinates``, ``[x, y, z]`` decimal strings) and the
height budget (``buildHeight``). Metadata never changes once minted, so rows
are cached in the ``places`` table and served without refetching.
"""

import json
import logging
from typing import Optional

import requests
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from config import PLACES_API_URL, PLACES_CONTRACT, PLACES_TIMEOUT
from models import Place
from services.boundary import BoundaryMetadata, parse_boundary

logger = logging.getLogger(__name__)


def validate_place_id(place_id) -> str:
    """Place ids are strings of digits."""
    place_id = str(place_id).strip()
    if not place_id.isdigit():
        raise ValueError(f"Invalid place id: {place_id!r}")
    return place_id


def fetch_place_metadata(place_id: str) -> Optional[dict]:
    """
    Fetch one place's token metadata from the indexer.

    Returns None when the indexer knows no such token. HTTP and network
    errors propagate as ``requests.RequestException``.
    """
    place_id = validate_place_id(place_id)
    response = requests.get(
        PLACES_API_URL,
        params={"contract": PLACES_CONTRACT, "tokenId": place_id},
        timeout=PLACES_TIMEOUT,
    )
    response.raise_for_status()
    data = response.json()
    if not data:
        logger.warning(f"Place {place_id}: no token found")
        return None
    metadata = data[0].get("metadata")
    if not metadata:
        logger.warning(f"Place {place_id}: token has no metadata")
        return None
    logger.info(f"Fetched metadata for place {place_id}")
    return metadata


def place_to_metadata(row: Place) -> dict:
    return {
        "borderCoordinates": json.loads(row.border_coordinates),
        "buildHeight": row.build_height,
    }


async def get_cached_place(db: AsyncSession, place_id: str) -> Optional[Place]:
    result = await db.execute(select(Place).where(Place.place_id == place_id))
    return result.scalars().first()


async def get_place_metadata(db: AsyncSession, place_id: str) -> Optional[dict]:
    """Cached metadata for a place, fetched (in a worker thread) on first use."""
    place_id = validate_place_id(place_id)
    row = await get_cached_place(db, place_id)
    if row is not None:
        return place_to_metadata(row)

    metadata = await run_in_threadpool(fetch_place_metadata, place_id)
    if metadata is None:
        return None

    coords = metadata.get("borderCoordinates")
    height = metadata.get("buildHeight")
    if coords and height is not None:
        db.add(Place(place_id=place_id, border_coordinates=json.dumps(coords),
                     build_height=str(height)))
        await db.commit()
    return metadata


async def load_boundary(db: AsyncSession, place_id: str) -> BoundaryMetadata:
    """
    Metadata for ``place_id`` parsed into a boundary.

    Raises NoBoundaryDataError, InvalidBoundaryError, ValueError (bad id) or
    requests.RequestException.
    """
    metadata = await get_place_metadata(db, place_id)
    return parse_boundary(place_id, metadata)
