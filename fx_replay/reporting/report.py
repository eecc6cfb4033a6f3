"""
Report generation utilities.

This module turns a replay session's trade ledger into human-readable
artefacts: CSV files of trades and the cumulative-pips curve, a JSON
summary of performance metrics and a PNG chart of the curve.
"""

from __future__ import annotations

import os
import json
from typing import Sequence
import pandas as pd
import matplotlib

# Use non-interactive backend for environments without display
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from ..execution.models import Trade
from .metrics import compute_metrics


def generate_replay_report(trades: Sequence[Trade], out_dir: str = "results") -> None:
    """Generate report files for a replay session.

    Creates the output directory if it does not exist and writes the
    following files:

    - `trades.csv` – detailed list of trades
    - `equity_curve.csv` – cumulative pips after each trade
    - `summary.json` – performance metrics
    - `equity_curve.png` – line chart of the cumulative pips
    """
    os.makedirs(out_dir, exist_ok=True)

    trades_data = [
        {
            'entry_time': t.entry_label,
            'exit_time': t.exit_label,
            'entry_index': t.entry_index,
            'exit_index': t.exit_index,
            'side': t.side.value,
            'entry': t.entry_price,
            'exit': t.exit_price,
            'pips': t.pips,
            'reason': t.close_reason.value,
        }
        for t in trades
    ]
    columns = ['entry_time', 'exit_time', 'entry_index', 'exit_index', 'side', 'entry', 'exit', 'pips', 'reason']
    df_trades = pd.DataFrame(trades_data, columns=columns)
    df_trades.to_csv(os.path.join(out_dir, 'trades.csv'), index=False)

    stats = compute_metrics(trades)

    df_eq = pd.DataFrame(
        {
            'trade': range(1, len(stats.equity_curve) + 1),
            'exit_time': [t.exit_label for t in trades],
            'cumulative_pips': stats.equity_curve,
        }
    )
    df_eq.to_csv(os.path.join(out_dir, 'equity_curve.csv'), index=False)

    with open(os.path.join(out_dir, 'summary.json'), 'w', encoding='utf-8') as fh:
        json.dump(stats.to_dict(), fh, indent=2, ensure_ascii=False)

    fig, ax = plt.subplots(figsize=(10, 4))
    if not df_eq.empty:
        ax.plot(df_eq['trade'], df_eq['cumulative_pips'], linewidth=1.5, marker='o')
        ax.axhline(0.0, color='#999999', linewidth=0.8)
        ax.set_ylim(stats.equity_min - 1, stats.equity_max + 1)
        ax.set_title('Cumulative Pips')
        ax.set_xlabel('Trade')
        ax.set_ylabel('Pips')
    fig.tight_layout()
    fig.savefig(os.path.join(out_dir, 'equity_curve.png'))
    plt.close(fig)
