from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .errors import EditorError
from .geometry import Table, angle_deg, center, origin_for_center

MIN_LIVE_SIZE = 30.0  # live handle box floor
MIN_COMMIT_SIZE = 5.0  # committed width/height floor


class GestureKind(str, Enum):
    idle = "idle"
    dragging = "dragging"
    transforming = "transforming"


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float
    rotation: float


def bound_box(old: Box, new: Box) -> Box:
    if new.width < MIN_LIVE_SIZE or new.height < MIN_LIVE_SIZE:
        return old
    return new


class TransformGesture:
    """
    Drag and resize/rotate gestures for one table at a time.

    Geometry is previewed while the gesture is live and only handed back as
    update attributes from end(); cancel() drops the gesture and returns the
    table as it was before the gesture started.
    """

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.kind = GestureKind.idle
        self._origin: Optional[Table] = None
        self._start = (0.0, 0.0)
        self._x = 0.0
        self._y = 0.0
        self._rotation = 0.0
        self._scale_x = 1.0
        self._scale_y = 1.0

    @property
    def active(self) -> bool:
        return self.kind is not GestureKind.idle

    @property
    def table_id(self) -> Optional[str]:
        return self._origin.id if self._origin is not None else None

    def _begin(self, kind: GestureKind, table: Table) -> None:
        if self.active:
            raise EditorError(f"a {self.kind.value} gesture is already in progress")
        self.kind = kind
        self._origin = table
        self._x = table.x
        self._y = table.y
        self._rotation = table.rotation
        self._scale_x = 1.0
        self._scale_y = 1.0

    def _require(self, kind: GestureKind) -> Table:
        if self.kind is not kind or self._origin is None:
            raise EditorError(f"no {kind.value} gesture in progress")
        return self._origin

    def begin_drag(self, table: Table, pointer: tuple[float, float]) -> None:
        self._begin(GestureKind.dragging, table)
        self._start = pointer

    def drag_to(self, pointer: tuple[float, float]) -> Table:
        origin = self._require(GestureKind.dragging)
        self._x = origin.x + (pointer[0] - self._start[0])
        self._y = origin.y + (pointer[1] - self._start[1])
        return self.preview()

    def begin_transform(self, table: Table) -> None:
        self._begin(GestureKind.transforming, table)

    def _live_box(self) -> Box:
        origin = self._origin
        return Box(self._x, self._y, origin.width * self._scale_x, origin.height * self._scale_y, self._rotation)

    def transform_to(
        self,
        scale_x: float,
        scale_y: float,
        *,
        rotation: Optional[float] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> Table:
        """Apply the scale factors (and optional rotation/origin) reported by a resize handle."""
        origin = self._require(GestureKind.transforming)
        old = self._live_box()
        new = Box(
            self._x if x is None else x,
            self._y if y is None else y,
            origin.width * scale_x,
            origin.height * scale_y,
            self._rotation if rotation is None else rotation,
        )
        if bound_box(old, new) is new:
            self._x, self._y, self._rotation = new.x, new.y, new.rotation
            self._scale_x, self._scale_y = scale_x, scale_y
        return self.preview()

    def rotate_towards(self, pointer: tuple[float, float]) -> Table:
        """Free rotation about the box center; the rotate handle sits above the box."""
        self._require(GestureKind.transforming)
        live = self.preview()
        cx, cy = center(live)
        rotation = (angle_deg(cx, cy, pointer[0], pointer[1]) + 90.0) % 360.0
        self._x, self._y = origin_for_center(cx, cy, live.width, live.height, rotation)
        self._rotation = rotation
        return self.preview()

    def preview(self) -> Optional[Table]:
        if self._origin is None:
            return None
        if self.kind is GestureKind.dragging:
            return replace(self._origin, x=self._x, y=self._y)
        box = self._live_box()
        return replace(self._origin, x=box.x, y=box.y, width=box.width, height=box.height, rotation=box.rotation)

    def end(self) -> Optional[tuple[str, dict]]:
        """Finish the live gesture; returns (table_id, attrs) to commit, or None when idle."""
        if not self.active:
            return None
        origin = self._origin
        if self.kind is GestureKind.dragging:
            attrs = {"x": self._x, "y": self._y, "rotation": self._rotation}
        else:
            attrs = {
                "x": self._x,
                "y": self._y,
                "width": max(MIN_COMMIT_SIZE, origin.width * self._scale_x),
                "height": max(MIN_COMMIT_SIZE, origin.height * self._scale_y),
                "rotation": self._rotation,
            }
        self._reset()
        return origin.id, attrs

    def cancel(self) -> Optional[Table]:
        origin = self._origin
        self._reset()
        return origin
