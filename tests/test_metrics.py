import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fx_replay.execution.models import CloseReason, Side, Trade
from fx_replay.reporting.metrics import compute_metrics, equity_curve

import unittest


def trade(pips: float) -> Trade:
    return Trade(
        side=Side.LONG,
        entry_price=100.0,
        exit_price=100.0 + pips / 10,
        entry_index=0,
        exit_index=1,
        entry_label="",
        exit_label="",
        pips=pips,
        close_reason=CloseReason.MANUAL,
    )


class TestComputeMetrics(unittest.TestCase):
    def test_empty_ledger(self) -> None:
        stats = compute_metrics([])
        self.assertEqual(stats.total_trades, 0)
        self.assertEqual(stats.win_rate, 0)
        self.assertEqual(stats.avg_pips, 0)
        self.assertEqual(stats.total_pips, 0)
        self.assertEqual(stats.equity_curve, [])
        self.assertEqual((stats.equity_min, stats.equity_max), (0.0, 0.0))

    def test_mixed_ledger(self) -> None:
        stats = compute_metrics([trade(12.0), trade(-5.0), trade(8.0)])
        self.assertEqual(stats.total_trades, 3)
        self.assertEqual(stats.win_rate, 66.7)
        self.assertEqual(stats.avg_pips, 5.0)
        self.assertEqual(stats.total_pips, 15.0)
        self.assertEqual(stats.equity_curve, [12.0, 7.0, 15.0])
        self.assertEqual(stats.equity_min, 0.0)
        self.assertEqual(stats.equity_max, 15.0)

    def test_flat_trade_is_not_a_win(self) -> None:
        stats = compute_metrics([trade(0.0), trade(-3.0)])
        self.assertEqual(stats.win_rate, 0.0)
        self.assertEqual(stats.equity_curve, [0.0, -3.0])
        self.assertEqual(stats.equity_min, -3.0)
        self.assertEqual(stats.equity_max, 0.0)

    def test_equity_curve_length_matches_ledger(self) -> None:
        trades = [trade(p) for p in (1.0, 2.0, -4.0, 0.5)]
        self.assertEqual(len(equity_curve(trades)), len(trades))

    def test_to_dict(self) -> None:
        data = compute_metrics([trade(10.0)]).to_dict()
        self.assertEqual(data['total_trades'], 1)
        self.assertEqual(data['equity_curve'], [10.0])


if __name__ == '__main__':
    unittest.main()
