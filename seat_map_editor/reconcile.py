from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import ContextManager, Iterable, Iterator, Optional, Protocol, Sequence, runtime_checkable

from .errors import MapNotFoundError, ReconcileError, StoreError
from .geometry import Table
from .notify import LoggingNotifier, Notifier
from .storage import tables_from_generated

logger = logging.getLogger(__name__)

DEFAULT_MAP_NAME = "Main Floor"
GENERATED_MAP_NAME = "AI Generated Layout"


@dataclass(frozen=True)
class MapRecord:
    id: str
    name: str
    location_id: str


@dataclass(frozen=True)
class SaveResult:
    upserted: int
    deleted: tuple[str, ...]


@runtime_checkable
class SeatingStore(Protocol):
    """
    Row access the reconciler needs from the relational store.
    Implementations raise StoreError for any backend failure.
    """

    def list_maps(self, location_id: str) -> list[MapRecord]: ...

    def get_map(self, map_id: str) -> Optional[MapRecord]: ...

    def insert_map(self, location_id: str, name: str) -> MapRecord: ...

    def update_map_name(self, map_id: str, name: str) -> Optional[MapRecord]: ...

    def delete_map(self, map_id: str) -> bool: ...

    def list_tables(self, map_id: str) -> list[Table]: ...

    def upsert_tables(self, map_id: str, tables: Sequence[Table]) -> None: ...

    def list_table_ids(self, map_id: str) -> list[str]: ...

    def delete_tables(self, table_ids: Sequence[str]) -> None: ...


@runtime_checkable
class TransactionalStore(SeatingStore, Protocol):
    def transaction(self) -> ContextManager[None]: ...


def plan_deletions(persisted_ids: Iterable[str], keep_ids: Iterable[str]) -> list[str]:
    keep = set(keep_ids)
    return [i for i in persisted_ids if i not in keep]


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ReconcileError("map name must be a non-empty string")
    return name


class PersistenceReconciler:
    """
    Keeps durable map/table rows in line with the editor's in-memory state.

    Every store failure is logged, reported to the notifier and raised again
    as ReconcileError. Nothing is retried automatically.
    """

    def __init__(self, store: SeatingStore, notifier: Optional[Notifier] = None):
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        # map_id -> table ids a failed non-transactional save meant to keep
        self._pending_repairs: dict[str, set[str]] = {}

    def _fail(self, message: str, exc: Exception) -> ReconcileError:
        logger.error("%s: %s", message, exc)
        self.notifier.error(message)
        return ReconcileError(f"{message}: {exc}")

    @contextmanager
    def _unit_of_work(self) -> Iterator[None]:
        if isinstance(self.store, TransactionalStore):
            with self.store.transaction():
                yield
        else:
            yield

    def _require_map(self, map_id: str, message: str) -> MapRecord:
        m = self.store.get_map(map_id)
        if m is None:
            self.notifier.error(message)
            raise MapNotFoundError(f"map not found: {map_id}")
        return m

    def load_maps(self, location_id: str, preferred_map_id: Optional[str] = None) -> tuple[list[MapRecord], MapRecord]:
        try:
            maps = self.store.list_maps(location_id)
            if not maps:
                maps = [self.store.insert_map(location_id, DEFAULT_MAP_NAME)]
                logger.info("created default map %s for location %s", maps[0].id, location_id)
        except StoreError as e:
            raise self._fail("Failed to load maps", e) from e
        current = next((m for m in maps if m.id == preferred_map_id), maps[0])
        return maps, current

    def load_tables(self, map_id: str) -> list[Table]:
        try:
            self._repair(map_id)
            return self.store.list_tables(map_id)
        except StoreError as e:
            raise self._fail("Failed to load tables", e) from e

    def _repair(self, map_id: str) -> None:
        keep = self._pending_repairs.get(map_id)
        if keep is None:
            return
        stale = plan_deletions(self.store.list_table_ids(map_id), keep)
        if stale:
            logger.warning("repairing map %s: deleting %d leftover tables", map_id, len(stale))
            self.store.delete_tables(stale)
        del self._pending_repairs[map_id]

    def create_map(self, location_id: str, name: str) -> MapRecord:
        name = _clean_name(name)
        try:
            m = self.store.insert_map(location_id, name)
        except StoreError as e:
            raise self._fail("Failed to create section", e) from e
        self.notifier.success("Section added!")
        return m

    def rename_map(self, map_id: str, name: str) -> MapRecord:
        name = _clean_name(name)
        try:
            m = self.store.update_map_name(map_id, name)
        except StoreError as e:
            raise self._fail("Failed to update name", e) from e
        if m is None:
            self.notifier.error("Failed to update name")
            raise MapNotFoundError(f"map not found: {map_id}")
        self.notifier.success("Section renamed!")
        return m

    def delete_map(self, map_id: str) -> None:
        try:
            deleted = self.store.delete_map(map_id)
        except StoreError as e:
            raise self._fail("Failed to delete section", e) from e
        if not deleted:
            self.notifier.error("Failed to delete section")
            raise MapNotFoundError(f"map not found: {map_id}")
        self._pending_repairs.pop(map_id, None)
        self.notifier.success("Section deleted")

    def save_map(self, map_id: str, tables: Sequence[Table]) -> SaveResult:
        """
        Make the persisted tables of map_id equal to `tables`: upsert every
        table (active), then delete persisted rows that are no longer present.
        """
        rows = [replace(t, is_active=True) for t in tables]
        ids = [t.id for t in rows]
        if len(set(ids)) != len(ids):
            raise ReconcileError("table ids must be unique within a map")

        try:
            self._require_map(map_id, "Failed to save changes")
            if isinstance(self.store, TransactionalStore):
                with self.store.transaction():
                    self.store.upsert_tables(map_id, rows)
                    stale = plan_deletions(self.store.list_table_ids(map_id), ids)
                    if stale:
                        self.store.delete_tables(stale)
            else:
                # Diff from a snapshot taken before writing; if the delete
                # fails, the next load of this map deletes the leftovers.
                stale = plan_deletions(self.store.list_table_ids(map_id), ids)
                self.store.upsert_tables(map_id, rows)
                if stale:
                    self._pending_repairs[map_id] = set(ids)
                    self.store.delete_tables(stale)
                    del self._pending_repairs[map_id]
        except StoreError as e:
            raise self._fail("Failed to save changes", e) from e

        logger.info("saved map %s: %d upserted, %d deleted", map_id, len(rows), len(stale))
        self.notifier.success("Map saved successfully!")
        return SaveResult(upserted=len(rows), deleted=tuple(stale))

    def import_generated_layout(
        self, location_id: str, items: Sequence[dict], name: Optional[str] = None
    ) -> tuple[MapRecord, list[Table]]:
        """Create a new map holding tables produced by an external layout generator."""
        tables = tables_from_generated(items)
        map_name = (name or "").strip() or GENERATED_MAP_NAME
        try:
            with self._unit_of_work():
                m = self.store.insert_map(location_id, map_name)
                if tables:
                    self.store.upsert_tables(m.id, tables)
        except StoreError as e:
            raise self._fail("Failed to save generated layout", e) from e
        logger.info("imported generated layout into map %s (%d tables)", m.id, len(tables))
        self.notifier.success("Layout saved!")
        return m, tables
