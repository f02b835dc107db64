import unittest

from chessduel.cursor import HistoryCursor

BOARDS = ["start", "after-1", "after-2", "after-3"]


class HistoryCursorTests(unittest.TestCase):

    def test_starts_on_live_position(self):
        cursor = HistoryCursor(BOARDS)
        self.assertEqual(cursor.index, 3)
        self.assertEqual(cursor.board, "after-3")
        self.assertTrue(cursor.is_on_most_recent_state)

    def test_navigation_is_clamped(self):
        cursor = HistoryCursor(BOARDS)
        cursor.forward()
        self.assertEqual(cursor.index, 3)
        cursor.back()
        self.assertEqual(cursor.board, "after-2")
        self.assertFalse(cursor.is_on_most_recent_state)
        cursor.first()
        cursor.back()
        self.assertEqual(cursor.board, "start")
        cursor.latest()
        self.assertTrue(cursor.is_on_most_recent_state)

    def test_select_move_shows_position_after_it(self):
        cursor = HistoryCursor(BOARDS)
        cursor.select_move(0)
        self.assertEqual(cursor.board, "after-1")

    def test_live_cursor_follows_new_moves(self):
        cursor = HistoryCursor(BOARDS)
        cursor.sync(BOARDS + ["after-4"])
        self.assertEqual(cursor.board, "after-4")

    def test_history_cursor_stays_put(self):
        cursor = HistoryCursor(BOARDS)
        cursor.select_move(0)
        cursor.sync(BOARDS + ["after-4"])
        self.assertEqual(cursor.board, "after-1")

    def test_takeback_clamps_cursor(self):
        cursor = HistoryCursor(BOARDS)
        cursor.select_move(1)
        cursor.sync(BOARDS[:2])
        self.assertEqual(cursor.board, "after-1")
        self.assertTrue(cursor.is_on_most_recent_state)

    def test_empty_boards_rejected(self):
        with self.assertRaises(ValueError):
            HistoryCursor([])
