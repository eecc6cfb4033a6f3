import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fx_replay.config.schema import TpSlConfig
from fx_replay.data.models import PriceBar
from fx_replay.execution.models import FLAT, CloseReason, Open, Side
from fx_replay.execution.trade_engine import TradeEngine, calc_pips

import unittest


def bar(close: float, label: str = "") -> PriceBar:
    return PriceBar(label=label, timestamp=None, open=close, high=close, low=close, close=close)


class TestCalcPips(unittest.TestCase):
    def test_scale_factor(self) -> None:
        self.assertAlmostEqual(calc_pips(100.0, 101.5, Side.LONG), 15.0)
        self.assertAlmostEqual(calc_pips(100.0, 101.5, Side.SHORT), -15.0)

    def test_long_short_symmetry(self) -> None:
        for entry, exit_ in ((100.0, 103.2), (141.05, 140.10), (1.0, 1.0)):
            self.assertEqual(calc_pips(entry, exit_, Side.LONG), -calc_pips(entry, exit_, Side.SHORT))


class TestTradeEngine(unittest.TestCase):
    def test_open_and_close_manual(self) -> None:
        engine = TradeEngine()
        self.assertTrue(engine.is_flat)
        self.assertEqual(engine.state, FLAT)
        result = engine.open_position(Side.LONG, bar(100.0, "a"), 0)
        self.assertTrue(result.ok)
        self.assertIsInstance(engine.state, Open)
        self.assertEqual(engine.position.entry_price, 100.0)
        self.assertEqual(engine.position.entry_label, "a")

        result = engine.close_position(bar(101.0, "b"), 4)
        self.assertTrue(result.ok)
        trade = result.trade
        self.assertEqual(trade.close_reason, CloseReason.MANUAL)
        self.assertAlmostEqual(trade.pips, 10.0)
        self.assertEqual((trade.entry_index, trade.exit_index), (0, 4))
        self.assertEqual((trade.entry_label, trade.exit_label), ("a", "b"))
        self.assertTrue(engine.is_flat)
        self.assertEqual(len(engine.trades), 1)

    def test_open_while_open_is_rejected(self) -> None:
        engine = TradeEngine()
        engine.open_position(Side.SHORT, bar(100.0), 2)
        original = engine.position
        result = engine.open_position(Side.LONG, bar(105.0), 5)
        self.assertFalse(result.ok)
        self.assertIn("already open", result.message)
        self.assertEqual(engine.position, original)

    def test_close_while_flat_is_rejected(self) -> None:
        engine = TradeEngine()
        result = engine.close_position(bar(100.0), 0)
        self.assertFalse(result.ok)
        self.assertEqual(engine.trades, ())

    def test_open_without_bar_is_rejected(self) -> None:
        engine = TradeEngine()
        result = engine.open_position(Side.LONG, None, None)
        self.assertFalse(result.ok)
        self.assertTrue(engine.is_flat)

    def test_unrealized_pips(self) -> None:
        engine = TradeEngine()
        self.assertIsNone(engine.unrealized_pips(bar(100.0)))
        engine.open_position(Side.SHORT, bar(100.0), 0)
        self.assertAlmostEqual(engine.unrealized_pips(bar(99.0)), 10.0)
        self.assertEqual(len(engine.trades), 0)

    def test_take_profit_fires_once(self) -> None:
        engine = TradeEngine()
        cfg = TpSlConfig(take_profit_pips=30)
        engine.open_position(Side.LONG, bar(100.0), 0)
        closes = [100.5, 102.9, 103.0, 104.0, 99.0]
        for i, close in enumerate(closes, start=1):
            engine.evaluate(bar(close), i, cfg)
        self.assertEqual(len(engine.trades), 1)
        trade = engine.trades[0]
        self.assertEqual(trade.close_reason, CloseReason.TAKE_PROFIT)
        self.assertEqual(trade.exit_index, 3)
        self.assertAlmostEqual(trade.exit_price, 103.0)
        self.assertTrue(engine.is_flat)

    def test_stop_loss(self) -> None:
        engine = TradeEngine()
        cfg = TpSlConfig(take_profit_pips=50, stop_loss_pips=20)
        engine.open_position(Side.SHORT, bar(100.0), 0)
        self.assertIsNone(engine.evaluate(bar(101.0), 1, cfg))
        trade = engine.evaluate(bar(102.5), 2, cfg)
        self.assertIsNotNone(trade)
        self.assertEqual(trade.close_reason, CloseReason.STOP_LOSS)
        self.assertAlmostEqual(trade.pips, -25.0)

    def test_gap_through_take_profit_closes_at_bar_close(self) -> None:
        engine = TradeEngine()
        cfg = TpSlConfig(take_profit_pips=10, stop_loss_pips=10)
        engine.open_position(Side.SHORT, bar(100.0), 0)
        trade = engine.evaluate(bar(90.0), 1, cfg)
        self.assertEqual(trade.close_reason, CloseReason.TAKE_PROFIT)
        self.assertAlmostEqual(trade.pips, 100.0)

    def test_disabled_thresholds(self) -> None:
        engine = TradeEngine()
        engine.open_position(Side.LONG, bar(100.0), 0)
        self.assertIsNone(engine.evaluate(bar(200.0), 1, TpSlConfig()))
        self.assertIsNone(engine.evaluate(bar(0.0), 2, TpSlConfig()))
        self.assertFalse(engine.is_flat)

    def test_negative_thresholds_are_folded(self) -> None:
        cfg = TpSlConfig(take_profit_pips=-20, stop_loss_pips=-15)
        self.assertEqual(cfg.take_profit_pips, 20.0)
        self.assertEqual(cfg.stop_loss_pips, 15.0)


if __name__ == '__main__':
    unittest.main()
