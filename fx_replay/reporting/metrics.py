"""
Performance metrics calculations.

Statistics are derived from the trade ledger on demand; nothing is
accumulated incrementally.  All figures are expressed in pips.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Sequence

from ..execution.models import Trade


@dataclass
class PerformanceStats:
    """Summary of a trade ledger.

    Attributes
    ----------
    total_trades : int
        Number of closed trades.
    win_rate : float
        Percentage of trades with positive pips, one decimal.
    avg_pips : float
        Mean pips per trade, one decimal.
    total_pips : float
        Sum of pips, one decimal.
    equity_curve : list of float
        Running sum of pips, one point per trade.
    equity_min, equity_max : float
        Range of the equity curve including the zero it starts from.
    """

    total_trades: int = 0
    win_rate: float = 0.0
    avg_pips: float = 0.0
    total_pips: float = 0.0
    equity_curve: List[float] = field(default_factory=list)
    equity_min: float = 0.0
    equity_max: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def equity_curve(trades: Sequence[Trade]) -> List[float]:
    """Cumulative pips after each trade, in ledger order."""
    curve: List[float] = []
    running = 0.0
    for trade in trades:
        running += trade.pips
        curve.append(running)
    return curve


def compute_metrics(trades: Sequence[Trade]) -> PerformanceStats:
    """Compute summary statistics for a ledger.

    An empty ledger gives zeros everywhere and an empty curve.
    """
    if not trades:
        return PerformanceStats()

    total_trades = len(trades)
    total_pips = sum(t.pips for t in trades)
    wins = sum(1 for t in trades if t.pips > 0)
    curve = equity_curve(trades)

    return PerformanceStats(
        total_trades=total_trades,
        win_rate=round(wins / total_trades * 100, 1),
        avg_pips=round(total_pips / total_trades, 1),
        total_pips=round(total_pips, 1),
        equity_curve=curve,
        equity_min=min(min(curve), 0.0),
        equity_max=max(max(curve), 0.0),
    )
