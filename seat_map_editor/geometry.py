from __future__ import annotations

import math
import uuid
from dataclasses import asdict, dataclass
from typing import Literal, Optional, Sequence, Union

from shapely import affinity
from shapely.geometry import Point, Polygon, box
from shapely.ops import unary_union

from .errors import GeometryError

Shape = Literal["rect", "circle"]


@dataclass(frozen=True)
class _TableBase:
    id: str
    label: str
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0
    capacity: int = 4
    is_active: bool = True
    # Generated layouts also place walls, bars and loose seats.
    object_type: str = "table"

    def __post_init__(self) -> None:
        if _VARIANTS.get(getattr(self, "shape", None)) is not type(self):
            raise GeometryError(f"table {self.id}: shape does not match {type(self).__name__}")
        if not (self.width > 0 and self.height > 0):
            raise GeometryError(f"table {self.id}: width and height must be positive")
        if self.capacity < 0:
            raise GeometryError(f"table {self.id}: capacity must be >= 0")
        if self.object_type not in OBJECT_TYPES:
            raise GeometryError(f"table {self.id}: unknown object type: {self.object_type}")


@dataclass(frozen=True)
class RectTable(_TableBase):
    shape: Literal["rect"] = "rect"


@dataclass(frozen=True)
class CircleTable(_TableBase):
    """Circle drawn centered in its bounding box, radius taken from the width."""

    shape: Literal["circle"] = "circle"

    @property
    def radius(self) -> float:
        return self.width / 2.0


Table = Union[RectTable, CircleTable]

_VARIANTS: dict[Optional[str], type] = {"rect": RectTable, "circle": CircleTable}
SHAPES = ("rect", "circle")
OBJECT_TYPES = ("table", "structure", "seat")


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> tuple[float, float]:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)


def new_table_id() -> str:
    return str(uuid.uuid4())


def make_table(shape: str, **fields) -> Table:
    cls = _VARIANTS.get(shape)
    if cls is None:
        raise GeometryError(f"unknown table shape: {shape}")
    return cls(**fields)


def table_to_dict(table: Table) -> dict:
    return asdict(table)


def table_from_dict(data: dict) -> Table:
    try:
        return make_table(
            str(data.get("shape", "rect")),
            id=str(data["id"]),
            label=str(data.get("label", "")),
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
            rotation=float(data.get("rotation") or 0.0),
            capacity=int(data.get("capacity", 4)),
            is_active=bool(data.get("is_active", True)),
            object_type=str(data.get("object_type") or "table"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise GeometryError(f"invalid table data: {e}") from e


def _deg_to_rad(d: float) -> float:
    return d * math.pi / 180.0


def _rad_to_deg(r: float) -> float:
    return r * 180.0 / math.pi


def angle_deg(x1: float, y1: float, x2: float, y2: float) -> float:
    return _rad_to_deg(math.atan2(y2 - y1, x2 - x1))


def rotate_point(px: float, py: float, ox: float, oy: float, rotation_deg: float) -> tuple[float, float]:
    # Screen coordinates (y down): positive angles turn clockwise.
    a = _deg_to_rad(rotation_deg)
    dx = px - ox
    dy = py - oy
    return (ox + dx * math.cos(a) - dy * math.sin(a), oy + dx * math.sin(a) + dy * math.cos(a))


def center(table: Table) -> tuple[float, float]:
    return rotate_point(table.x + table.width / 2.0, table.y + table.height / 2.0, table.x, table.y, table.rotation)


def origin_for_center(cx: float, cy: float, width: float, height: float, rotation_deg: float) -> tuple[float, float]:
    ox, oy = rotate_point(width / 2.0, height / 2.0, 0.0, 0.0, rotation_deg)
    return (cx - ox, cy - oy)


def footprint(table: Table) -> Polygon:
    if table.shape == "rect":
        geom = box(table.x, table.y, table.x + table.width, table.y + table.height)
    elif table.shape == "circle":
        geom = Point(table.x + table.radius, table.y + table.height / 2.0).buffer(table.radius)
    else:
        raise GeometryError(f"unknown table shape: {table.shape}")
    if table.rotation:
        geom = affinity.rotate(geom, table.rotation, origin=(table.x, table.y))
    return geom


def bounding_box(table: Table) -> Bounds:
    return Bounds(*footprint(table).bounds)


def layout_bounds(tables: Sequence[Table]) -> Optional[Bounds]:
    if not tables:
        return None
    return Bounds(*unary_union([footprint(t) for t in tables]).bounds)


def hit_test(tables: Sequence[Table], x: float, y: float) -> Optional[Table]:
    """Return the topmost table under the world point, if any. Later tables draw on top."""
    pt = Point(x, y)
    for t in reversed(tables):
        if footprint(t).covers(pt):
            return t
    return None
