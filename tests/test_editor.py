import unittest

from memory_store import MemoryStore

from seat_map_editor.editor import EditorState, SeatMapEditor
from seat_map_editor.geometry import make_table
from seat_map_editor.notify import MemoryNotifier
from seat_map_editor.reconcile import PersistenceReconciler


class TestSeatMapEditor(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.notes = MemoryNotifier()
        self.editor = SeatMapEditor(PersistenceReconciler(self.store, self.notes), "loc")

    def _seed(self):
        m1 = self.store.insert_map("loc", "M1")
        a = make_table("rect", id="a", label="A", x=100, y=100, width=100, height=80)
        self.store.upsert_tables(m1.id, [a])
        return m1, a

    def test_first_open_bootstraps(self):
        self.assertTrue(self.editor.open())
        self.assertEqual(self.editor.state, EditorState.ready)
        self.assertEqual(self.editor.current_map.name, "Main Floor")
        self.assertEqual(self.editor.session.tables, [])

    def test_failed_open_stays_loading(self):
        self.store.fail.add("list_maps")
        self.assertFalse(self.editor.open())
        self.assertEqual(self.editor.state, EditorState.loading)
        self.assertIsNone(self.editor.save())

    def test_add_delete_save_scenario(self):
        m1, a = self._seed()
        self.assertTrue(self.editor.open())
        self.assertEqual(self.editor.session.tables, [a])

        circle = self.editor.add_table("circle")
        self.assertEqual((circle.x, circle.y), (360, 260))
        self.assertEqual(self.editor.state, EditorState.editing)
        self.assertTrue(self.editor.dirty)

        self.editor.session.select("a")
        self.editor.delete_selected()
        result = self.editor.save()
        self.assertEqual(result.deleted, ("a",))
        self.assertEqual(self.editor.state, EditorState.ready)

        stored = self.store.list_tables(m1.id)
        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0].id, circle.id)

    def test_save_failure_keeps_edits(self):
        self._seed()
        self.editor.open()
        self.editor.update_table("a", label="Window")
        self.store.fail.add("upsert_tables")
        self.assertIsNone(self.editor.save())
        self.assertEqual(self.editor.state, EditorState.editing)
        self.assertEqual(self.editor.session.controller.get("a").label, "Window")
        self.assertIn("Failed to save changes", self.notes.errors)

    def test_save_commits_live_gesture(self):
        m1, _ = self._seed()
        self.editor.open()
        self.editor.session.pointer_down(150, 140)
        self.editor.session.pointer_move(160, 140)
        self.editor.save()
        self.assertEqual(self.store.list_tables(m1.id)[0].x, 110)

    def test_click_without_move_is_not_an_edit(self):
        self._seed()
        self.editor.open()
        self.editor.session.pointer_down(150, 140)
        self.editor.pointer_up(150, 140)
        self.assertFalse(self.editor.dirty)
        self.assertEqual(self.editor.state, EditorState.ready)

        self.editor.session.pointer_down(150, 140)
        self.editor.pointer_up(170, 140)
        self.assertTrue(self.editor.dirty)
        self.assertEqual(self.editor.session.controller.get("a").x, 120)

    def test_failed_switch_keeps_current_data(self):
        m1, a = self._seed()
        m2 = self.store.insert_map("loc", "Patio")
        self.editor.open()
        self.store.fail.add("list_tables")
        self.assertFalse(self.editor.switch_map(m2.id))
        self.assertEqual(self.editor.current_map, m1)
        self.assertEqual(self.editor.session.tables, [a])

    def test_open_preferred_map(self):
        self._seed()
        m2 = self.store.insert_map("loc", "Patio")
        self.editor.open(m2.id)
        self.assertEqual(self.editor.current_map, m2)

    def test_create_map_switches(self):
        self._seed()
        self.editor.open()
        self.assertTrue(self.editor.create_map("Patio"))
        self.assertEqual(self.editor.current_map.name, "Patio")
        self.assertEqual(len(self.editor.maps), 2)
        self.assertEqual(self.editor.session.tables, [])

    def test_create_map_failure_leaves_state(self):
        self._seed()
        self.editor.open()
        self.store.fail.add("insert_map")
        self.assertFalse(self.editor.create_map("Patio"))
        self.assertEqual([m.name for m in self.editor.maps], ["M1"])

    def test_rename_map(self):
        self._seed()
        self.editor.open()
        self.assertTrue(self.editor.rename_map("Main Room"))
        self.assertEqual(self.editor.current_map.name, "Main Room")
        self.assertEqual(self.editor.maps[0].name, "Main Room")
        self.assertFalse(self.editor.rename_map(""))
        self.assertEqual(self.editor.current_map.name, "Main Room")


if __name__ == "__main__":
    unittest.main()
