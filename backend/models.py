"""SQLAlchemy ORM models: cached place metadata and building generations."""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, Enum as SAEnum
from database import Base
import enum


def generate_uuid():
    return str(uuid.uuid4())


class BuildStatus(enum.Enum):
    GENERATED = "generated"
    FAILED = "failed"


class Place(Base):
    __tablename__ = "places"

    place_id = Column(String, primary_key=True)
    border_coordinates = Column(Text, nullable=False)  # JSON string of [x, y, z] string triples
    build_height = Column(String, nullable=False)  # raw decimal string
    fetched_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


class Building(Base):
    __tablename__ = "buildings"

    id = Column(String, primary_key=True, default=generate_uuid)
    place_id = Column(String, index=True, nullable=False)
    style = Column(Integer, nullable=False, default=1)
    storeys = Column(Boolean, nullable=False, default=False)
    color = Column(String, nullable=True)  # "r,g,b"
    triangle_count = Column(Integer, nullable=True)
    floors = Column(Integer, nullable=True)
    glb_path = Column(String, nullable=True)
    status = Column(SAEnum(BuildStatus), default=BuildStatus.GENERATED)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
