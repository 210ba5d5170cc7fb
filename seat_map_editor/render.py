from __future__ import annotations

from typing import Optional, Sequence

from shapely.geometry import Point

from .geometry import Bounds, Table, center, footprint, layout_bounds


def _fill_char(table: Table, selected: bool) -> str:
    if selected:
        return "*"
    if table.shape == "rect":
        return "#"
    if table.shape == "circle":
        return "o"
    return "?"


def render_ascii(
    tables: Sequence[Table],
    *,
    cell_size: float = 20.0,
    selected_id: Optional[str] = None,
    bounds: Optional[Bounds] = None,
) -> str:
    """Character-grid preview of a layout; one cell covers cell_size x cell_size world units."""
    cell_size = max(1.0, float(cell_size))
    bounds = bounds or layout_bounds(tables)
    if bounds is None:
        return "(empty map)"

    cols = max(1, int(bounds.width // cell_size) + 1)
    rows = max(1, int(bounds.height // cell_size) + 1)
    grid = [[" "] * cols for _ in range(rows)]

    shapes = [(t, footprint(t)) for t in tables]
    for r in range(rows):
        for c in range(cols):
            pt = Point(bounds.min_x + (c + 0.5) * cell_size, bounds.min_y + (r + 0.5) * cell_size)
            for t, geom in reversed(shapes):
                if geom.covers(pt):
                    grid[r][c] = _fill_char(t, t.id == selected_id)
                    break

    for t in tables:
        cx, cy = center(t)
        r = int((cy - bounds.min_y) // cell_size)
        c0 = int((cx - bounds.min_x) // cell_size) - len(t.label) // 2
        c0 = max(0, min(c0, cols - len(t.label)))
        if not (0 <= r < rows):
            continue
        for i, ch in enumerate(t.label):
            if 0 <= c0 + i < cols:
                grid[r][c0 + i] = ch

    return "\n".join("".join(line).rstrip() for line in grid)
