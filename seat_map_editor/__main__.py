from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .errors import SeatMapError
from .notify import MemoryNotifier
from .reconcile import PersistenceReconciler
from .render import render_ascii
from .session import EditorSession
from .storage import Layout, load_layout, maybe_init_layout, read_tables_csv, save_layout, write_tables_csv


DEFAULT_FILE = "seat_map.json"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--file",
        default=DEFAULT_FILE,
        help=f"Path to layout JSON file (default: {DEFAULT_FILE})",
    )


def _reconciler(notifier: MemoryNotifier) -> PersistenceReconciler:
    # Imported lazily so the file-only commands work without a database.
    from backend.app.db import get_session, init_db
    from backend.app.store import SqlSeatingStore

    init_db()
    return PersistenceReconciler(SqlSeatingStore(get_session()), notifier)


def _print_notes(notifier: MemoryNotifier) -> None:
    for level, message in notifier.messages:
        print(f"[{level}] {message}")


def cmd_init(args: argparse.Namespace) -> int:
    maybe_init_layout(args.file, overwrite=args.overwrite)
    print(f"Initialized layout at {args.file}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    if layout.map_info:
        print(f"Map: {layout.map_info.get('name')} ({layout.map_info.get('id')})")
    print(render_ascii(layout.tables, cell_size=args.cell))
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    session = EditorSession(layout.tables, canvas_width=args.canvas_width, canvas_height=args.canvas_height)
    t = session.add_table(args.shape)
    layout.tables = session.tables
    save_layout(layout, args.file)
    print(f"Added {t.label} ({t.shape}) id={t.id} at ({t.x:g}, {t.y:g})")
    return 0


def cmd_update(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    session = EditorSession(layout.tables)
    attrs = {
        k: getattr(args, k)
        for k in ("label", "x", "y", "width", "height", "rotation", "capacity")
        if getattr(args, k) is not None
    }
    t = session.update_table(args.id, **attrs)
    if t is None:
        print("Not found")
        return 1
    layout.tables = session.tables
    save_layout(layout, args.file)
    print(f"Updated {t.label}")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    session = EditorSession(layout.tables)
    session.select(args.id)
    t = session.delete_selected()
    layout.tables = session.tables
    save_layout(layout, args.file)
    print(f"Deleted {t.label}")
    return 0


def cmd_export_csv(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", newline="", encoding="utf-8") as f:
        write_tables_csv(layout.tables, f)
    print(f"Exported {len(layout.tables)} tables to {out}")
    return 0


def cmd_import_csv(args: argparse.Namespace) -> int:
    layout = maybe_init_layout(args.file)
    inp = Path(args.input)
    with inp.open("r", newline="", encoding="utf-8") as f:
        tables = read_tables_csv(f)
    layout.tables = tables if args.replace else [*layout.tables, *tables]
    save_layout(layout, args.file)
    print(f"Imported {len(tables)} tables from {inp} into {args.file}")
    return 0


def cmd_maps(args: argparse.Namespace) -> int:
    notifier = MemoryNotifier()
    maps, current = _reconciler(notifier).load_maps(args.location)
    _print_notes(notifier)
    for m in maps:
        marker = "*" if m.id == current.id else " "
        print(f"{marker} {m.id}  {m.name}")
    return 0


def cmd_pull(args: argparse.Namespace) -> int:
    notifier = MemoryNotifier()
    rec = _reconciler(notifier)
    _, current = rec.load_maps(args.location, args.map_id)
    tables = rec.load_tables(current.id)
    layout = Layout(tables=tables, map_info={"id": current.id, "name": current.name, "location_id": current.location_id})
    save_layout(layout, args.file)
    _print_notes(notifier)
    print(f"Pulled {len(tables)} tables of {current.name!r} into {args.file}")
    return 0


def cmd_push(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    if not layout.map_info or not layout.map_info.get("id"):
        raise SeatMapError("layout file is not linked to a map; run pull first")
    notifier = MemoryNotifier()
    try:
        result = _reconciler(notifier).save_map(str(layout.map_info["id"]), layout.tables)
    finally:
        _print_notes(notifier)
    print(f"Saved {result.upserted} tables, deleted {len(result.deleted)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="seat_map_editor", description="Restaurant seat map editor (CLI).")
    p.add_argument("--verbose", action="store_true", help="Log debug output")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create an empty layout JSON file")
    _add_common_args(p_init)
    p_init.add_argument("--overwrite", action="store_true", help="Overwrite existing layout file")
    p_init.set_defaults(func=cmd_init)

    p_show = sub.add_parser("show", help="Print an ASCII preview of the layout")
    _add_common_args(p_show)
    p_show.add_argument("--cell", type=float, default=20.0, help="World units per character cell")
    p_show.set_defaults(func=cmd_show)

    p_add = sub.add_parser("add", help="Add a table at the center of the view")
    _add_common_args(p_add)
    p_add.add_argument("--shape", choices=["rect", "circle"], required=True)
    p_add.add_argument("--canvas-width", type=float, default=800.0)
    p_add.add_argument("--canvas-height", type=float, default=600.0)
    p_add.set_defaults(func=cmd_add)

    p_update = sub.add_parser("update", help="Change a table's label, geometry or capacity")
    _add_common_args(p_update)
    p_update.add_argument("--id", required=True)
    p_update.add_argument("--label")
    p_update.add_argument("--x", type=float)
    p_update.add_argument("--y", type=float)
    p_update.add_argument("--width", type=float)
    p_update.add_argument("--height", type=float)
    p_update.add_argument("--rotation", type=float)
    p_update.add_argument("--capacity", type=int)
    p_update.set_defaults(func=cmd_update)

    p_delete = sub.add_parser("delete", help="Remove a table")
    _add_common_args(p_delete)
    p_delete.add_argument("--id", required=True)
    p_delete.set_defaults(func=cmd_delete)

    p_export = sub.add_parser("export-csv", help="Export tables to a CSV file")
    _add_common_args(p_export)
    p_export.add_argument("--output", required=True)
    p_export.set_defaults(func=cmd_export_csv)

    p_import = sub.add_parser("import-csv", help="Import tables from a CSV file")
    _add_common_args(p_import)
    p_import.add_argument("--input", required=True)
    p_import.add_argument("--replace", action="store_true", help="Replace existing tables instead of appending")
    p_import.set_defaults(func=cmd_import_csv)

    p_maps = sub.add_parser("maps", help="List the maps of a location (creates 'Main Floor' if none)")
    p_maps.add_argument("--location", required=True)
    p_maps.set_defaults(func=cmd_maps)

    p_pull = sub.add_parser("pull", help="Write a stored map's tables into a layout file")
    _add_common_args(p_pull)
    p_pull.add_argument("--location", required=True)
    p_pull.add_argument("--map-id")
    p_pull.set_defaults(func=cmd_pull)

    p_push = sub.add_parser("push", help="Save a layout file back to its stored map")
    _add_common_args(p_push)
    p_push.set_defaults(func=cmd_push)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return int(args.func(args))
    except SeatMapError as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
