# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

import unittest

from richtext_editor.model.history import HistoryManager


class TestHistoryManager(unittest.TestCase):

    def setUp(self):
        self.history = HistoryManager("<p>0</p>")

    def test_initial_state(self):
        self.assertEqual(len(self.history), 1)
        self.assertEqual(self.history.current, "<p>0</p>")
        self.assertFalse(self.history.can_undo)
        self.assertFalse(self.history.can_redo)

    def test_push_identical_snapshot_is_ignored(self):
        self.assertTrue(self.history.push("<p>1</p>"))
        self.assertFalse(self.history.push("<p>1</p>"))
        self.assertEqual(len(self.history), 2)

    def test_undo_all_commits_returns_to_initial(self):
        for i in range(1, 6):
            self.history.push(f"<p>{i}</p>")
        for _ in range(5):
            self.assertIsNotNone(self.history.undo())
        self.assertEqual(self.history.current, "<p>0</p>")
        self.assertIsNone(self.history.undo())

    def test_redo_after_fresh_push_is_noop(self):
        self.history.push("<p>1</p>")
        self.assertIsNone(self.history.redo())
        self.assertEqual(self.history.current, "<p>1</p>")

    def test_undo_then_redo(self):
        self.history.push("<p>1</p>")
        self.assertEqual(self.history.undo(), "<p>0</p>")
        self.assertTrue(self.history.can_redo)
        self.assertEqual(self.history.redo(), "<p>1</p>")

    def test_push_after_undo_discards_redo_tail(self):
        self.history.push("<p>1</p>")
        self.history.push("<p>2</p>")
        self.history.undo()
        self.history.push("<p>3</p>")
        self.assertEqual(self.history.snapshots(), ["<p>0</p>", "<p>1</p>", "<p>3</p>"])
        self.assertFalse(self.history.can_redo)

    def test_cap_evicts_oldest(self):
        history = HistoryManager("s0", max_size=50)
        for i in range(1, 60):
            history.push(f"s{i}")
        self.assertEqual(len(history), 50)
        self.assertEqual(history.index, 49)

        reachable = [history.current]
        while history.can_undo:
            reachable.append(history.undo())
        self.assertEqual(reachable[-1], "s10")
        self.assertNotIn("s0", reachable)
        self.assertEqual(len(reachable), 50)

    def test_reset(self):
        self.history.push("<p>1</p>")
        self.history.reset("<p>draft</p>")
        self.assertEqual(self.history.snapshots(), ["<p>draft</p>"])
        self.assertEqual(self.history.index, 0)

    def test_invalid_cap(self):
        with self.assertRaises(ValueError):
            HistoryManager("", max_size=0)


if __name__ == '__main__':
    unittest.main()
