from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from .errors import EditorError
from .geometry import Table, make_table, new_table_id

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 4
DEFAULT_SIZES: dict[str, tuple[float, float]] = {
    "rect": (100.0, 80.0),
    "circle": (80.0, 80.0),
}
EDITABLE_FIELDS = frozenset({"label", "x", "y", "width", "height", "rotation", "capacity"})


class TableController:
    """
    Canonical in-memory list of tables for the open map, plus the single selection.
    Nothing here touches storage; see reconcile.PersistenceReconciler for that.
    """

    def __init__(self, tables: Optional[Iterable[Table]] = None):
        self._tables: list[Table] = list(tables or [])
        self._selected_id: Optional[str] = None

    @property
    def tables(self) -> list[Table]:
        return list(self._tables)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected(self) -> Optional[Table]:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    @property
    def pan_enabled(self) -> bool:
        return self._selected_id is None

    def get(self, table_id: str) -> Optional[Table]:
        for t in self._tables:
            if t.id == table_id:
                return t
        return None

    def replace_all(self, tables: Iterable[Table]) -> None:
        self._tables = list(tables)
        self._selected_id = None

    def add_table(self, shape: str, center: tuple[float, float]) -> Table:
        if shape not in DEFAULT_SIZES:
            raise EditorError(f"cannot add table with shape {shape!r}")
        width, height = DEFAULT_SIZES[shape]
        cx, cy = center
        table = make_table(
            shape,
            id=new_table_id(),
            label=f"T{len(self._tables) + 1}",
            x=cx - width / 2.0,
            y=cy - height / 2.0,
            width=width,
            height=height,
            rotation=0.0,
            capacity=DEFAULT_CAPACITY,
            is_active=True,
        )
        self._tables.append(table)
        self._selected_id = table.id
        logger.debug("added %s table %s at (%.1f, %.1f)", shape, table.id, table.x, table.y)
        return table

    def update_table(self, table_id: str, **attrs) -> Optional[Table]:
        unknown = set(attrs) - EDITABLE_FIELDS
        if unknown:
            raise EditorError(f"cannot update table fields: {sorted(unknown)}")
        for i, t in enumerate(self._tables):
            if t.id == table_id:
                updated = replace(t, **attrs)
                self._tables[i] = updated
                return updated
        return None

    def delete_selected(self) -> Optional[Table]:
        if self._selected_id is None:
            return None
        removed = self.get(self._selected_id)
        self._tables = [t for t in self._tables if t.id != self._selected_id]
        self._selected_id = None
        return removed

    def select(self, table_id: Optional[str]) -> None:
        if table_id is not None and self.get(table_id) is None:
            raise EditorError(f"no table with id {table_id}")
        self._selected_id = table_id
