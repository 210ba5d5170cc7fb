from __future__ import annotations

import csv
import math
import json
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from .errors import GeometryError, LayoutFileError
from .geometry import Table, make_table, new_table_id, table_from_dict, table_to_dict

LAYOUT_VERSION = 1
CSV_FIELDS = ["id", "label", "shape", "x", "y", "width", "height", "rotation", "capacity", "object_type"]


class Layout:
    """A map header (optional) plus its tables, as stored in a layout JSON file."""

    def __init__(self, tables: Optional[Iterable[Table]] = None, map_info: Optional[dict] = None):
        self.tables: list[Table] = list(tables or [])
        self.map_info = map_info

    def to_dict(self) -> dict:
        return {
            "version": LAYOUT_VERSION,
            "map": self.map_info,
            "tables": [table_to_dict(t) for t in self.tables],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Layout":
        if int(data.get("version", 0)) != LAYOUT_VERSION:
            raise LayoutFileError("unsupported layout version")
        try:
            tables = [table_from_dict(t) for t in data.get("tables", [])]
        except GeometryError as e:
            raise LayoutFileError(str(e)) from e
        return cls(tables=tables, map_info=data.get("map"))


def load_layout(path: str | Path) -> Layout:
    p = Path(path)
    if not p.exists():
        raise LayoutFileError(f"layout file not found: {p}")

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:  # noqa: BLE001
        raise LayoutFileError(f"failed to read layout JSON: {e}") from e

    return Layout.from_dict(data)


def save_layout(layout: Layout, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(layout.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")


def maybe_init_layout(path: str | Path, *, overwrite: bool = False) -> Layout:
    p = Path(path)
    if p.exists() and not overwrite:
        return load_layout(p)
    layout = Layout()
    save_layout(layout, p)
    return layout


def write_tables_csv(tables: Sequence[Table], out: TextIO) -> None:
    w = csv.writer(out)
    w.writerow(CSV_FIELDS)
    for t in tables:
        w.writerow([t.id, t.label, t.shape, t.x, t.y, t.width, t.height, t.rotation, t.capacity, t.object_type])


def read_tables_csv(inp: TextIO) -> list[Table]:
    r = csv.DictReader(inp)
    required = set(CSV_FIELDS) - {"id", "object_type"}
    if not required.issubset(set(r.fieldnames or [])):
        raise LayoutFileError(f"CSV must have headers: {sorted(required)}")
    tables: list[Table] = []
    for row in r:
        data = dict(row)
        data["id"] = data.get("id") or new_table_id()
        try:
            tables.append(table_from_dict(data))
        except GeometryError as e:
            raise LayoutFileError(f"CSV line {r.line_num}: {e}") from e
    return tables


def _round_half_up(v) -> float:
    # Halves round up, so 2.5 -> 3 and -2.5 -> -2.
    return float(math.floor(float(v) + 0.5))


def tables_from_generated(items: Sequence[dict]) -> list[Table]:
    """
    Normalize tables produced by an external layout generator: fresh ids,
    rounded coordinates, and defaults for anything the generator left out.
    """
    out: list[Table] = []
    for item in items:
        try:
            capacity = int(item.get("capacity") or 4)
        except (TypeError, ValueError):
            capacity = 4
        try:
            table = make_table(
                str(item.get("shape") or "rect"),
                id=new_table_id(),
                label=str(item.get("label") or "Table"),
                x=_round_half_up(item.get("x") or 0),
                y=_round_half_up(item.get("y") or 0),
                width=_round_half_up(item.get("width") or 60),
                height=_round_half_up(item.get("height") or 60),
                rotation=0.0,
                capacity=capacity,
                is_active=True,
                object_type=str(item.get("object_type") or "table"),
            )
        except (TypeError, ValueError) as e:
            raise GeometryError(f"invalid generated table: {e}") from e
        out.append(table)
    return out
