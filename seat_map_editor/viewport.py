from __future__ import annotations

from dataclasses import dataclass

from .errors import GeometryError
from .geometry import Bounds

ZOOM_STEP = 1.1
MIN_SCALE = 0.1
MAX_SCALE = 5.0


def _clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


@dataclass(frozen=True)
class Viewport:
    """
    Camera over the world plane: screen = world * scale + position.
    Never persisted; one per editing session.
    """

    scale: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def __post_init__(self) -> None:
        if not self.scale > 0:
            raise GeometryError("viewport scale must be positive")

    def screen_to_world(self, sx: float, sy: float) -> tuple[float, float]:
        return ((sx - self.x) / self.scale, (sy - self.y) / self.scale)

    def world_to_screen(self, wx: float, wy: float) -> tuple[float, float]:
        return (wx * self.scale + self.x, wy * self.scale + self.y)

    def visible_center(self, canvas_width: float, canvas_height: float) -> tuple[float, float]:
        return self.screen_to_world(canvas_width / 2.0, canvas_height / 2.0)

    def zoom(self, pointer_x: float, pointer_y: float, wheel_delta: float) -> "Viewport":
        # Wheel down (positive delta) zooms out.
        if wheel_delta == 0:
            return self
        if wheel_delta > 0:
            new_scale = _clamp_scale(self.scale / ZOOM_STEP)
        else:
            new_scale = _clamp_scale(self.scale * ZOOM_STEP)
        if new_scale == self.scale:
            return self
        wx, wy = self.screen_to_world(pointer_x, pointer_y)
        return Viewport(scale=new_scale, x=pointer_x - wx * new_scale, y=pointer_y - wy * new_scale)

    def panned(self, dx: float, dy: float) -> "Viewport":
        return Viewport(scale=self.scale, x=self.x + dx, y=self.y + dy)

    def fit(self, bounds: Bounds, canvas_width: float, canvas_height: float, *, padding: float = 40.0) -> "Viewport":
        avail_w = max(1.0, canvas_width - 2 * padding)
        avail_h = max(1.0, canvas_height - 2 * padding)
        if bounds.width <= 0 or bounds.height <= 0:
            scale = self.scale
        else:
            scale = _clamp_scale(min(avail_w / bounds.width, avail_h / bounds.height))
        cx, cy = bounds.center
        return Viewport(scale=scale, x=canvas_width / 2.0 - cx * scale, y=canvas_height / 2.0 - cy * scale)
