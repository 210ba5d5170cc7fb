from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class SeatingMap(SQLModel, table=True):
    __tablename__ = "seating_maps"

    id: str = Field(default_factory=_uuid, primary_key=True)
    # Locations live outside this service; only the id is kept.
    location_id: str = Field(index=True)
    name: str

    created_at: datetime = Field(default_factory=_utc_now, index=True)


class SeatingTable(SQLModel, table=True):
    __tablename__ = "seating_tables"

    id: str = Field(default_factory=_uuid, primary_key=True)
    map_id: str = Field(index=True, foreign_key="seating_maps.id")
    label: str = ""
    shape: str = "rect"  # rect/circle
    object_type: str = "table"  # table/structure/seat

    # World coordinates; x,y is the top-left of the unrotated box.
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 80.0
    rotation: float = 0.0

    capacity: int = 4
    is_active: bool = True
