from __future__ import annotations

import io
import logging
import os
from typing import NoReturn, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from sqlmodel import Session

from seat_map_editor.errors import MapNotFoundError, ReconcileError, SeatMapError, StoreError
from seat_map_editor.geometry import Table, table_to_dict
from seat_map_editor.notify import LoggingNotifier
from seat_map_editor.reconcile import MapRecord, PersistenceReconciler
from seat_map_editor.render import render_ascii
from seat_map_editor.storage import write_tables_csv

from .db import configure_logging, get_session, init_db
from .schemas import (
    GeneratedLayoutRequest,
    GeneratedLayoutResult,
    MapCreate,
    MapList,
    MapOut,
    MapRename,
    SaveTablesRequest,
    SaveTablesResult,
    TableOut,
)
from .store import SqlSeatingStore

logger = logging.getLogger(__name__)


app = FastAPI(title="Seat Map Editor API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.environ.get("SEAT_MAP_CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    init_db()


def _session() -> Session:
    return get_session()


def _reconciler(session: Session) -> PersistenceReconciler:
    return PersistenceReconciler(SqlSeatingStore(session), LoggingNotifier())


def _http_error(e: SeatMapError) -> NoReturn:
    if isinstance(e, MapNotFoundError):
        raise HTTPException(status_code=404, detail="map not found") from e
    if isinstance(e, StoreError) or isinstance(e.__cause__, StoreError):
        raise HTTPException(status_code=500, detail=str(e)) from e
    raise HTTPException(status_code=400, detail=str(e)) from e


def _map_out(m: MapRecord) -> MapOut:
    return MapOut(id=m.id, name=m.name, location_id=m.location_id)


def _table_out(t: Table) -> TableOut:
    return TableOut(**table_to_dict(t))


def _load_map_tables(map_id: str, session: Session) -> list[Table]:
    rec = _reconciler(session)
    try:
        if rec.store.get_map(map_id) is None:
            raise HTTPException(status_code=404, detail="map not found")
        return rec.load_tables(map_id)
    except SeatMapError as e:
        _http_error(e)


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/locations/{location_id}/maps", response_model=MapList)
def list_maps(location_id: str, map_id: Optional[str] = None, session: Session = Depends(_session)) -> MapList:
    try:
        maps, current = _reconciler(session).load_maps(location_id, map_id)
    except SeatMapError as e:
        _http_error(e)
    return MapList(maps=[_map_out(m) for m in maps], current_map_id=current.id)


@app.post("/locations/{location_id}/maps", response_model=MapOut)
def create_map(location_id: str, payload: MapCreate, session: Session = Depends(_session)) -> MapOut:
    try:
        m = _reconciler(session).create_map(location_id, payload.name)
    except SeatMapError as e:
        _http_error(e)
    return _map_out(m)


@app.post("/locations/{location_id}/maps/generated", response_model=GeneratedLayoutResult)
def save_generated_layout(
    location_id: str, payload: GeneratedLayoutRequest, session: Session = Depends(_session)
) -> GeneratedLayoutResult:
    items = [t.model_dump(exclude_none=True) for t in payload.tables]
    try:
        m, tables = _reconciler(session).import_generated_layout(location_id, items, payload.name)
    except SeatMapError as e:
        _http_error(e)
    return GeneratedLayoutResult(map_id=m.id, tables_created=len(tables))


@app.put("/maps/{map_id}", response_model=MapOut)
def rename_map(map_id: str, payload: MapRename, session: Session = Depends(_session)) -> MapOut:
    try:
        m = _reconciler(session).rename_map(map_id, payload.name)
    except SeatMapError as e:
        _http_error(e)
    return _map_out(m)


@app.delete("/maps/{map_id}")
def delete_map(map_id: str, session: Session = Depends(_session)) -> dict:
    try:
        _reconciler(session).delete_map(map_id)
    except SeatMapError as e:
        _http_error(e)
    return {"deleted": True}


@app.get("/maps/{map_id}/tables", response_model=list[TableOut])
def list_tables(map_id: str, session: Session = Depends(_session)) -> list[TableOut]:
    return [_table_out(t) for t in _load_map_tables(map_id, session)]


@app.put("/maps/{map_id}/tables", response_model=SaveTablesResult)
def save_tables(map_id: str, payload: SaveTablesRequest, session: Session = Depends(_session)) -> SaveTablesResult:
    try:
        tables = [t.to_table() for t in payload.tables]
        result = _reconciler(session).save_map(map_id, tables)
    except SeatMapError as e:
        _http_error(e)
    return SaveTablesResult(map_id=map_id, upserted=result.upserted, deleted=list(result.deleted))


@app.get("/maps/{map_id}/tables.csv")
def export_tables_csv(map_id: str, session: Session = Depends(_session)) -> Response:
    tables = _load_map_tables(map_id, session)
    out = io.StringIO()
    write_tables_csv(tables, out)
    return Response(
        content=out.getvalue(),
        media_type="text/csv",
        headers={"content-disposition": f'attachment; filename="map_{map_id}_tables.csv"'},
    )


@app.get("/maps/{map_id}/preview.txt", response_class=PlainTextResponse)
def preview_map(map_id: str, cell: float = 20.0, session: Session = Depends(_session)) -> str:
    return render_ascii(_load_map_tables(map_id, session), cell_size=cell)
