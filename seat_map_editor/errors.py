from __future__ import annotations


class SeatMapError(Exception):
    pass


class GeometryError(SeatMapError):
    pass


class EditorError(SeatMapError):
    pass


class StoreError(SeatMapError):
    pass


class ReconcileError(SeatMapError):
    pass


class MapNotFoundError(ReconcileError):
    pass


class LayoutFileError(SeatMapError):
    pass
