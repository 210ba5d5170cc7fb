import unittest

from seat_map_editor.errors import EditorError
from seat_map_editor.geometry import center, make_table
from seat_map_editor.transform import Box, GestureKind, TransformGesture, bound_box


def _table(width=100.0, height=80.0, x=100.0, y=100.0):
    return make_table("rect", id="a", label="A", x=x, y=y, width=width, height=height)


class TestDrag(unittest.TestCase):
    def test_drag_commits_position_on_release(self):
        g = TransformGesture()
        g.begin_drag(_table(), (110, 110))
        self.assertEqual(g.kind, GestureKind.dragging)
        preview = g.drag_to((160, 130))
        self.assertEqual((preview.x, preview.y), (150, 120))
        table_id, attrs = g.end()
        self.assertEqual(table_id, "a")
        self.assertEqual(attrs, {"x": 150, "y": 120, "rotation": 0.0})
        self.assertFalse(g.active)

    def test_end_when_idle(self):
        self.assertIsNone(TransformGesture().end())

    def test_one_gesture_at_a_time(self):
        g = TransformGesture()
        g.begin_drag(_table(), (0, 0))
        with self.assertRaises(EditorError):
            g.begin_transform(_table())
        with self.assertRaises(EditorError):
            g.transform_to(2, 2)


class TestTransform(unittest.TestCase):
    def test_bound_box_keeps_old_box_below_floor(self):
        old = Box(0, 0, 100, 80, 0)
        self.assertIs(bound_box(old, Box(0, 0, 29, 80, 0)), old)
        self.assertIs(bound_box(old, Box(0, 0, 100, -40, 0)), old)
        new = Box(0, 0, 30, 30, 0)
        self.assertIs(bound_box(old, new), new)

    def test_resize_applies_scale_on_release(self):
        g = TransformGesture()
        g.begin_transform(_table())
        preview = g.transform_to(1.5, 0.5, rotation=10, x=90, y=95)
        self.assertEqual((preview.width, preview.height), (150, 40))
        table_id, attrs = g.end()
        self.assertEqual(attrs, {"x": 90, "y": 95, "width": 150, "height": 40, "rotation": 10})

    def test_live_box_floor_rejects_shrink(self):
        g = TransformGesture()
        g.begin_transform(_table())
        g.transform_to(1.2, 1.0)
        preview = g.transform_to(0.2, 1.0)
        self.assertEqual(preview.width, 120)
        _, attrs = g.end()
        self.assertEqual(attrs["width"], 120)

    def test_committed_size_floor(self):
        for width, height in [(4.0, 4.0), (100.0, 80.0), (31.0, 2.0)]:
            for factor in [0.001, 0.1, 0.5, 1.0, 2.0, 10.0]:
                g = TransformGesture()
                g.begin_transform(_table(width, height))
                g.transform_to(factor, factor)
                _, attrs = g.end()
                self.assertGreaterEqual(attrs["width"], 5)
                self.assertGreaterEqual(attrs["height"], 5)

    def test_rotate_handle_keeps_center(self):
        t = _table(x=0, y=0)
        g = TransformGesture()
        g.begin_transform(t)
        preview = g.rotate_towards((150, 40))
        self.assertAlmostEqual(preview.rotation, 90)
        cx, cy = center(preview)
        self.assertAlmostEqual(cx, 50)
        self.assertAlmostEqual(cy, 40)
        preview = g.rotate_towards((50, -100))
        self.assertAlmostEqual(preview.rotation, 0)
        self.assertAlmostEqual(preview.x, 0)
        self.assertAlmostEqual(preview.y, 0)

    def test_cancel_restores_original(self):
        t = _table()
        g = TransformGesture()
        g.begin_transform(t)
        g.transform_to(2, 2)
        self.assertEqual(g.cancel(), t)
        self.assertFalse(g.active)
        self.assertIsNone(g.preview())


if __name__ == "__main__":
    unittest.main()
