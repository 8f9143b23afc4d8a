"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, Field
from typing import Optional

from config import DEFAULT_PLACE_ID


# ---------- Place ----------
class RectangleOut(BaseModel):
    half_width: float
    half_height: float
    scale: float
    rotation: float
    displacement_x: float
    displacement_z: float
    scaled_width: float
    scaled_height: float
    area: float
    corners: list


class PlaceOut(BaseModel):
    place_id: str
    polygon: list
    build_height: float
    floors: int
    area: float
    rectangle: Optional[RectangleOut] = None
    overlay: Optional[list] = None


# ---------- Building ----------
class BuildRequest(BaseModel):
    place_id: str = Field(DEFAULT_PLACE_ID, pattern=r"^\d+$")
    style: int = Field(1, description="Style id 1-4; anything else behaves as 1")
    storeys: bool = False
    color: Optional[list[int]] = Field(None, min_length=3, max_length=3)


class ColorRequest(BaseModel):
    color: list[int] = Field(..., min_length=3, max_length=3)


class FloorOut(BaseModel):
    floor: int
    applied: dict
    skipped: list[str]
    panes: int


class BuildResponse(BaseModel):
    place_id: str
    style: int
    storeys: bool
    floors: int
    triangle_count: int
    color: list[int]
    roof: str
    stairwell: bool
    floor_details: list[FloorOut] = []
    download_url: Optional[str] = None
