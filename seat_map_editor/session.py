from __future__ import annotations

import logging
from typing import Iterable, Optional

from .errors import EditorError
from .geometry import Table, hit_test, layout_bounds
from .tables import TableController
from .transform import GestureKind, TransformGesture
from .viewport import Viewport

logger = logging.getLogger(__name__)

DEFAULT_CANVAS = (800.0, 600.0)


class EditorSession:
    """
    Everything one editing session of a map holds: canvas size, camera,
    tables with their selection, and the live gesture (if any).

    Pointer coordinates passed in are screen coordinates; the session
    converts them to world space through the viewport.
    """

    def __init__(
        self,
        tables: Optional[Iterable[Table]] = None,
        *,
        canvas_width: float = DEFAULT_CANVAS[0],
        canvas_height: float = DEFAULT_CANVAS[1],
        viewport: Optional[Viewport] = None,
    ):
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.viewport = viewport or Viewport()
        self.controller = TableController(tables)
        self.gesture = TransformGesture()
        self._pan_start: Optional[tuple[float, float]] = None
        self._pan_origin: Optional[Viewport] = None

    @property
    def tables(self) -> list[Table]:
        return self.controller.tables

    @property
    def selected_id(self) -> Optional[str]:
        return self.controller.selected_id

    @property
    def panning(self) -> bool:
        return self._pan_start is not None

    def load(self, tables: Iterable[Table]) -> None:
        self.gesture.cancel()
        self._end_pan()
        self.controller.replace_all(tables)

    # -- entity operations -------------------------------------------------

    def add_table(self, shape: str) -> Table:
        self.commit_gesture()
        return self.controller.add_table(shape, self.viewport.visible_center(self.canvas_width, self.canvas_height))

    def update_table(self, table_id: str, **attrs) -> Optional[Table]:
        return self.controller.update_table(table_id, **attrs)

    def delete_selected(self) -> Optional[Table]:
        self.gesture.cancel()
        return self.controller.delete_selected()

    def select(self, table_id: Optional[str]) -> None:
        if self.gesture.active and self.gesture.table_id != table_id:
            self.commit_gesture()
        self.controller.select(table_id)

    # -- viewport ----------------------------------------------------------

    def wheel(self, pointer_x: float, pointer_y: float, delta: float) -> Viewport:
        self.viewport = self.viewport.zoom(pointer_x, pointer_y, delta)
        return self.viewport

    def fit_to_content(self) -> Viewport:
        bounds = layout_bounds(self.controller.tables)
        if bounds is not None:
            self.viewport = self.viewport.fit(bounds, self.canvas_width, self.canvas_height)
        return self.viewport

    def resize_canvas(self, width: float, height: float) -> None:
        self.canvas_width = width
        self.canvas_height = height

    def _end_pan(self) -> None:
        self._pan_start = None
        self._pan_origin = None

    # -- pointer gestures ----------------------------------------------------

    def pointer_down(self, sx: float, sy: float) -> Optional[Table]:
        """Select and start dragging the table under the pointer, or start panning empty canvas."""
        self.commit_gesture()
        wx, wy = self.viewport.screen_to_world(sx, sy)
        hit = hit_test(self.controller.tables, wx, wy)
        if hit is None:
            self.controller.select(None)
            self._pan_start = (sx, sy)
            self._pan_origin = self.viewport
            return None
        self.controller.select(hit.id)
        self.gesture.begin_drag(hit, (wx, wy))
        return hit

    def pointer_move(self, sx: float, sy: float) -> None:
        if self._pan_start is not None and self.controller.pan_enabled:
            self.viewport = self._pan_origin.panned(sx - self._pan_start[0], sy - self._pan_start[1])
        elif self.gesture.kind is GestureKind.dragging:
            self.gesture.drag_to(self.viewport.screen_to_world(sx, sy))

    def pointer_up(self, sx: float, sy: float) -> Optional[Table]:
        self.pointer_move(sx, sy)
        if self._pan_start is not None:
            logger.debug("pan committed at (%.1f, %.1f)", self.viewport.x, self.viewport.y)
            self._end_pan()
            return None
        return self.commit_gesture()

    def begin_transform(self) -> Table:
        selected = self.controller.selected
        if selected is None:
            raise EditorError("select a table before resizing or rotating")
        self.commit_gesture()
        self.gesture.begin_transform(selected)
        return selected

    def transform(self, scale_x: float, scale_y: float, **kwargs) -> Table:
        return self.gesture.transform_to(scale_x, scale_y, **kwargs)

    def rotate_towards(self, sx: float, sy: float) -> Table:
        return self.gesture.rotate_towards(self.viewport.screen_to_world(sx, sy))

    def commit_gesture(self) -> Optional[Table]:
        done = self.gesture.end()
        if done is None:
            return None
        table_id, attrs = done
        return self.controller.update_table(table_id, **attrs)

    def escape(self) -> None:
        """Drop a live gesture or pan; with nothing live, clear the selection."""
        if self.gesture.active:
            self.gesture.cancel()
            return
        if self._pan_start is not None:
            self.viewport = self._pan_origin
            self._end_pan()
            return
        self.controller.select(None)

    def preview_tables(self) -> list[Table]:
        live = self.gesture.preview()
        if live is None:
            return self.controller.tables
        return [live if t.id == live.id else t for t in self.controller.tables]
