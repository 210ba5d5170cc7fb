from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, delete, select

from seat_map_editor.errors import StoreError
from seat_map_editor.geometry import Table, make_table
from seat_map_editor.reconcile import MapRecord

from .models import SeatingMap, SeatingTable


def _map_record(m: SeatingMap) -> MapRecord:
    return MapRecord(id=m.id, name=m.name, location_id=m.location_id)


def _table_value(row: SeatingTable) -> Table:
    return make_table(
        row.shape,
        id=row.id,
        label=row.label,
        x=row.x,
        y=row.y,
        width=row.width,
        height=row.height,
        rotation=row.rotation,
        capacity=row.capacity,
        is_active=row.is_active,
        object_type=row.object_type,
    )


class SqlSeatingStore:
    """
    SeatingStore over a SQLModel session. Outside transaction() every call
    commits on its own; inside, calls only flush and the block commits (or
    rolls back) as a whole.
    """

    def __init__(self, session: Session):
        self.session = session
        self._in_tx = False

    def _done(self) -> None:
        if self._in_tx:
            self.session.flush()
        else:
            self.session.commit()

    @contextmanager
    def _errors(self) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            if not self._in_tx:
                self.session.rollback()
            raise StoreError(str(e)) from e

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_tx:
            yield
            return
        self._in_tx = True
        try:
            yield
            with self._errors():
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._in_tx = False

    def list_maps(self, location_id: str) -> list[MapRecord]:
        with self._errors():
            rows = self.session.exec(
                select(SeatingMap).where(SeatingMap.location_id == location_id).order_by(SeatingMap.created_at.asc())
            ).all()
            return [_map_record(m) for m in rows]

    def get_map(self, map_id: str) -> Optional[MapRecord]:
        with self._errors():
            m = self.session.get(SeatingMap, map_id)
            return _map_record(m) if m else None

    def insert_map(self, location_id: str, name: str) -> MapRecord:
        with self._errors():
            m = SeatingMap(location_id=location_id, name=name)
            record = _map_record(m)
            self.session.add(m)
            self._done()
            return record

    def update_map_name(self, map_id: str, name: str) -> Optional[MapRecord]:
        with self._errors():
            m = self.session.get(SeatingMap, map_id)
            if not m:
                return None
            m.name = name
            record = _map_record(m)
            self.session.add(m)
            self._done()
            return record

    def delete_map(self, map_id: str) -> bool:
        with self._errors():
            m = self.session.get(SeatingMap, map_id)
            if not m:
                return False
            self.session.exec(delete(SeatingTable).where(SeatingTable.map_id == map_id))
            self.session.delete(m)
            self._done()
            return True

    def list_tables(self, map_id: str) -> list[Table]:
        with self._errors():
            rows = self.session.exec(
                select(SeatingTable).where(SeatingTable.map_id == map_id, SeatingTable.is_active == True)  # noqa: E712
            ).all()
            return [_table_value(r) for r in rows]

    def upsert_tables(self, map_id: str, tables: Sequence[Table]) -> None:
        if not tables:
            return
        with self._errors():
            ids = [t.id for t in tables]
            existing = {r.id: r for r in self.session.exec(select(SeatingTable).where(SeatingTable.id.in_(ids))).all()}
            for t in tables:
                row = existing.get(t.id) or SeatingTable(id=t.id, map_id=map_id)
                row.map_id = map_id
                row.label = t.label
                row.shape = t.shape
                row.x = float(t.x)
                row.y = float(t.y)
                row.width = float(t.width)
                row.height = float(t.height)
                row.rotation = float(t.rotation)
                row.capacity = int(t.capacity)
                row.is_active = bool(t.is_active)
                row.object_type = t.object_type
                self.session.add(row)
            self._done()

    def list_table_ids(self, map_id: str) -> list[str]:
        with self._errors():
            return list(self.session.exec(select(SeatingTable.id).where(SeatingTable.map_id == map_id)).all())

    def delete_tables(self, table_ids: Sequence[str]) -> None:
        if not table_ids:
            return
        with self._errors():
            self.session.exec(delete(SeatingTable).where(SeatingTable.id.in_(list(table_ids))))
            self._done()
