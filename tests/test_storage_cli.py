import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from seat_map_editor.__main__ import main
from seat_map_editor.errors import GeometryError, LayoutFileError
from seat_map_editor.geometry import make_table
from seat_map_editor.render import render_ascii
from seat_map_editor.storage import (
    Layout,
    load_layout,
    read_tables_csv,
    save_layout,
    tables_from_generated,
    write_tables_csv,
)


def _table_a():
    return make_table("rect", id="a", label="A", x=100, y=100, width=100, height=80)


class TestLayoutFiles(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "layout.json"

    def tearDown(self):
        self._tmp.cleanup()

    def test_save_and_load(self):
        circle = make_table("circle", id="c", label="C", x=0, y=0, width=80, height=80)
        save_layout(Layout([_table_a(), circle], {"id": "m1", "name": "Main Floor"}), self.path)
        layout = load_layout(self.path)
        self.assertEqual(layout.tables, [_table_a(), circle])
        self.assertEqual(layout.map_info["name"], "Main Floor")

    def test_missing_file(self):
        with self.assertRaises(LayoutFileError):
            load_layout(self.path)

    def test_unsupported_version(self):
        self.path.write_text(json.dumps({"version": 7, "tables": []}), encoding="utf-8")
        with self.assertRaises(LayoutFileError):
            load_layout(self.path)

    def test_bad_table_in_file(self):
        self.path.write_text(json.dumps({"version": 1, "tables": [{"id": "x", "shape": "star"}]}), encoding="utf-8")
        with self.assertRaises(LayoutFileError):
            load_layout(self.path)


class TestCsv(unittest.TestCase):
    def test_export_then_import(self):
        out = io.StringIO()
        write_tables_csv([_table_a()], out)
        lines = out.getvalue().splitlines()
        self.assertEqual(lines[0], "id,label,shape,x,y,width,height,rotation,capacity,object_type")
        self.assertEqual(read_tables_csv(io.StringIO(out.getvalue())), [_table_a()])

    def test_import_generates_missing_ids(self):
        data = "label,shape,x,y,width,height,rotation,capacity\nB1,circle,0,0,80,80,0,2\n"
        (t,) = read_tables_csv(io.StringIO(data))
        self.assertTrue(t.id)
        self.assertEqual((t.label, t.shape, t.capacity), ("B1", "circle", 2))

    def test_object_type_survives_csv(self):
        bar = make_table("rect", id="w", label="Bar", x=0, y=0, width=200, height=40, object_type="structure")
        out = io.StringIO()
        write_tables_csv([bar], out)
        self.assertEqual(read_tables_csv(io.StringIO(out.getvalue())), [bar])

    def test_import_requires_headers(self):
        with self.assertRaises(LayoutFileError):
            read_tables_csv(io.StringIO("name,x\nA,1\n"))


class TestGeneratedTables(unittest.TestCase):
    def test_halves_round_up(self):
        (t,) = tables_from_generated([{"x": 10.5, "y": 2.5, "width": 59.5, "height": 60.5}])
        self.assertEqual((t.x, t.y, t.width, t.height), (11, 3, 60, 61))

    def test_object_type_kept(self):
        wall, seat, plain = tables_from_generated(
            [{"object_type": "structure", "label": "Wall"}, {"object_type": "seat", "shape": "circle"}, {}]
        )
        self.assertEqual((wall.object_type, seat.object_type, plain.object_type), ("structure", "seat", "table"))

    def test_unknown_object_type_rejected(self):
        with self.assertRaises(GeometryError):
            tables_from_generated([{"object_type": "plant"}])


class TestRender(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(render_ascii([]), "(empty map)")

    def test_shapes_and_labels(self):
        circle = make_table("circle", id="c", label="C", x=300, y=100, width=80, height=80)
        text = render_ascii([_table_a(), circle], cell_size=10)
        self.assertIn("#", text)
        self.assertIn("o", text)
        self.assertIn("A", text)
        self.assertIn("C", text)

    def test_selected_table_marked(self):
        text = render_ascii([_table_a()], cell_size=10, selected_id="a")
        self.assertIn("*", text)
        self.assertNotIn("#", text)


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.file = str(Path(self._tmp.name) / "layout.json")

    def tearDown(self):
        self._tmp.cleanup()

    def run_cli(self, *argv):
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(list(argv))
        return code, buf.getvalue()

    def test_edit_cycle(self):
        self.assertEqual(self.run_cli("init", "--file", self.file)[0], 0)
        code, out = self.run_cli("add", "--file", self.file, "--shape", "circle")
        self.assertEqual(code, 0)
        (t,) = load_layout(self.file).tables
        self.assertEqual((t.x, t.y, t.label), (360, 260, "T1"))

        code, _ = self.run_cli("update", "--file", self.file, "--id", t.id, "--label", "Window", "--capacity", "2")
        self.assertEqual(code, 0)
        (t,) = load_layout(self.file).tables
        self.assertEqual((t.label, t.capacity), ("Window", 2))

        code, out = self.run_cli("show", "--file", self.file, "--cell", "5")
        self.assertEqual(code, 0)
        self.assertIn("Window", out)

        csv_path = str(Path(self._tmp.name) / "tables.csv")
        self.assertEqual(self.run_cli("export-csv", "--file", self.file, "--output", csv_path)[0], 0)
        self.assertEqual(self.run_cli("delete", "--file", self.file, "--id", t.id)[0], 0)
        self.assertEqual(load_layout(self.file).tables, [])
        self.assertEqual(self.run_cli("import-csv", "--file", self.file, "--input", csv_path)[0], 0)
        self.assertEqual(load_layout(self.file).tables, [t])

    def test_errors_exit_2(self):
        self.run_cli("init", "--file", self.file)
        self.assertEqual(self.run_cli("delete", "--file", self.file, "--id", "nope")[0], 2)
        code, out = self.run_cli("push", "--file", self.file)
        self.assertEqual(code, 2)
        self.assertIn("pull first", out)

    def test_update_unknown_id(self):
        self.run_cli("init", "--file", self.file)
        self.assertEqual(self.run_cli("update", "--file", self.file, "--id", "nope", "--x", "1")[0], 1)


if __name__ == "__main__":
    unittest.main()
