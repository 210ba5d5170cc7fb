from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from seat_map_editor.geometry import Table, make_table, new_table_id
from seat_map_editor.transform import MIN_COMMIT_SIZE

ObjectType = Literal["table", "structure", "seat"]


class MapCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class MapRename(MapCreate):
    pass


class MapOut(BaseModel):
    id: str
    name: str
    location_id: str


class MapList(BaseModel):
    maps: list[MapOut]
    current_map_id: str


class TablePayload(BaseModel):
    # New tables may omit the id; one is generated on save.
    id: Optional[str] = None
    label: str = ""
    shape: Literal["rect", "circle"] = "rect"
    x: float
    y: float
    width: float = Field(ge=MIN_COMMIT_SIZE)
    height: float = Field(ge=MIN_COMMIT_SIZE)
    rotation: float = 0.0
    capacity: int = Field(ge=0, default=4)
    object_type: ObjectType = "table"

    def to_table(self) -> Table:
        return make_table(
            self.shape,
            id=self.id or new_table_id(),
            label=self.label,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            rotation=self.rotation,
            capacity=self.capacity,
            is_active=True,
            object_type=self.object_type,
        )


class TableOut(BaseModel):
    id: str
    label: str
    shape: Literal["rect", "circle"]
    x: float
    y: float
    width: float
    height: float
    rotation: float
    capacity: int
    is_active: bool
    object_type: ObjectType


class SaveTablesRequest(BaseModel):
    tables: list[TablePayload] = Field(default_factory=list)


class SaveTablesResult(BaseModel):
    map_id: str
    upserted: int
    deleted: list[str]


class GeneratedTable(BaseModel):
    label: Optional[str] = None
    shape: Optional[Literal["rect", "circle"]] = None
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)
    capacity: Optional[int] = Field(default=None, ge=0)
    object_type: Optional[ObjectType] = None


class GeneratedLayoutRequest(BaseModel):
    name: Optional[str] = None
    tables: list[GeneratedTable]


class GeneratedLayoutResult(BaseModel):
    map_id: str
    tables_created: int
