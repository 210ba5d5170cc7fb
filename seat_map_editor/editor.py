from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .errors import ReconcileError
from .reconcile import MapRecord, PersistenceReconciler, SaveResult
from .session import EditorSession

logger = logging.getLogger(__name__)


class EditorState(str, Enum):
    loading = "loading"
    ready = "ready"
    editing = "editing"
    saving = "saving"


class SeatMapEditor:
    """
    Drives an EditorSession for one location and talks to storage through
    the reconciler. Loading -> Ready -> (Editing <-> Saving) -> Ready.

    Storage failures have already been reported to the notifier by the
    reconciler; here they only decide which state the editor stays in, so the
    methods return False instead of raising.
    """

    def __init__(self, reconciler: PersistenceReconciler, location_id: str, session: Optional[EditorSession] = None):
        self.reconciler = reconciler
        self.location_id = location_id
        self.session = session or EditorSession()
        self.state = EditorState.loading
        self.maps: list[MapRecord] = []
        self.current_map: Optional[MapRecord] = None

    @property
    def dirty(self) -> bool:
        return self.state is EditorState.editing

    def open(self, preferred_map_id: Optional[str] = None) -> bool:
        try:
            maps, current = self.reconciler.load_maps(self.location_id, preferred_map_id)
        except ReconcileError:
            return False
        self.maps = maps
        return self.switch_map(current.id)

    def switch_map(self, map_id: str) -> bool:
        target = next((m for m in self.maps if m.id == map_id), None)
        if target is None:
            return False
        try:
            tables = self.reconciler.load_tables(map_id)
        except ReconcileError:
            # keep whatever is loaded
            return False
        self.current_map = target
        self.session.load(tables)
        self.state = EditorState.ready
        return True

    def reload(self) -> bool:
        if self.current_map is None:
            return self.open()
        return self.switch_map(self.current_map.id)

    def mark_edited(self) -> None:
        if self.state is EditorState.ready:
            self.state = EditorState.editing

    def add_table(self, shape: str):
        t = self.session.add_table(shape)
        self.mark_edited()
        return t

    def update_table(self, table_id: str, **attrs):
        t = self.session.update_table(table_id, **attrs)
        if t is not None:
            self.mark_edited()
        return t

    def delete_selected(self):
        t = self.session.delete_selected()
        if t is not None:
            self.mark_edited()
        return t

    def pointer_up(self, sx: float, sy: float):
        table_id = self.session.gesture.table_id
        before = self.session.controller.get(table_id) if table_id is not None else None
        t = self.session.pointer_up(sx, sy)
        # A click without movement commits an unchanged table.
        if t is not None and t != before:
            self.mark_edited()
        return t

    def create_map(self, name: str) -> bool:
        try:
            m = self.reconciler.create_map(self.location_id, name)
        except ReconcileError:
            return False
        self.maps = [*self.maps, m]
        self.current_map = m
        self.session.load([])
        self.state = EditorState.ready
        return True

    def rename_map(self, name: str) -> bool:
        if self.current_map is None:
            return False
        try:
            m = self.reconciler.rename_map(self.current_map.id, name)
        except ReconcileError:
            return False
        self.maps = [m if x.id == m.id else x for x in self.maps]
        self.current_map = m
        return True

    def save(self) -> Optional[SaveResult]:
        if self.current_map is None or self.state in (EditorState.loading, EditorState.saving):
            logger.debug("save ignored in state %s", self.state.value)
            return None
        self.session.commit_gesture()
        previous = self.state
        self.state = EditorState.saving
        try:
            result = self.reconciler.save_map(self.current_map.id, self.session.tables)
        except ReconcileError:
            self.state = previous
            return None
        self.state = EditorState.ready
        return result
