import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fx_replay.data.models import PriceBar
from fx_replay.replay.cursor import ReplayCursor

import unittest


def make_bars(n: int):
    return [PriceBar(label=str(i), timestamp=None, open=i, high=i, low=i, close=i) for i in range(n)]


class TestReplayCursor(unittest.TestCase):
    def test_empty_sequence(self) -> None:
        cursor = ReplayCursor()
        self.assertIsNone(cursor.current_index())
        self.assertIsNone(cursor.current_bar())
        self.assertIsNone(cursor.seek(5))
        self.assertIsNone(cursor.step_by(1))
        cursor.reset()
        self.assertIsNone(cursor.current_index())
        self.assertTrue(cursor.at_end())
        self.assertEqual(cursor.progress_pct(), 0.0)
        self.assertEqual(cursor.visible_window(), (0, ()))

    def test_seek_and_step_are_clamped(self) -> None:
        for n in (1, 2, 7):
            cursor = ReplayCursor(make_bars(n))
            for target in (-100, -1, 0, 3, n - 1, n, 10 ** 6):
                index = cursor.seek(target)
                self.assertTrue(0 <= index <= n - 1)
            for delta in (-10 ** 6, -10, -1, 0, 1, 10, 10 ** 6):
                index = cursor.step_by(delta)
                self.assertTrue(0 <= index <= n - 1)

    def test_step_and_rewind(self) -> None:
        cursor = ReplayCursor(make_bars(20))
        self.assertEqual(cursor.current_index(), 0)
        self.assertEqual(cursor.step_by(1), 1)
        self.assertEqual(cursor.step_by(10), 11)
        self.assertEqual(cursor.step_by(-10), 1)
        self.assertEqual(cursor.step_by(-10), 0)
        self.assertEqual(cursor.seek(25), 19)
        self.assertTrue(cursor.at_end())
        self.assertEqual(cursor.current_bar().close, 19)
        cursor.reset()
        self.assertEqual(cursor.current_index(), 0)

    def test_progress_pct(self) -> None:
        cursor = ReplayCursor(make_bars(3))
        self.assertEqual(cursor.progress_pct(), 33.3)
        cursor.seek(2)
        self.assertEqual(cursor.progress_pct(), 100.0)

    def test_visible_window(self) -> None:
        cursor = ReplayCursor(make_bars(150))
        start, bars = cursor.visible_window(100)
        self.assertEqual(start, 0)
        self.assertEqual(len(bars), 1)
        cursor.seek(120)
        start, bars = cursor.visible_window(100)
        self.assertEqual(start, 21)
        self.assertEqual(len(bars), 100)
        self.assertEqual(bars[-1].close, 120)


if __name__ == '__main__':
    unittest.main()
