"""
State persistence utilities.

A replay session can be resumed later from the dataset it was built
on, and its trade ledger can be kept alongside.  This module provides
simple JSON-based load/save functions for that purpose.

The dataset file looks like::

    {"bars": [{"time": "2024.01.02 00:00", "timestamp": 1704153600000,
               "open": 141.02, "high": 141.1, "low": 140.95,
               "close": 141.05, "volume": 532.0}, ...],
     "upload_info": {"header": [...], "total_rows": 1,
                     "preview": [[...]], "delimiter": ";"}}

Bars read back are checked again: records with missing or non-finite
prices are skipped and only the most recent ``max_bars`` are kept.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..data.models import MAX_BARS, Dataset, PriceBar
from ..execution.models import CloseReason, Side, Trade


logger = logging.getLogger(__name__)


def load_state(path: str) -> Optional[Dict[str, Any]]:
    """Load a JSON state file.

    Parameters
    ----------
    path : str
        Path to the JSON file.

    Returns
    -------
    dict or None
        The state dictionary if the file exists, otherwise `None`.
    """
    file_path = Path(path)
    if not file_path.exists():
        return None
    with file_path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def save_state(path: str, state: Dict[str, Any]) -> None:
    """Write a JSON state file to disk.

    Parameters
    ----------
    path : str
        Path to the output file.
    state : dict
        Arbitrary state dictionary.  Must be serialisable to JSON.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w", encoding="utf-8") as fh:
        json.dump(state, fh, ensure_ascii=False, indent=2, sort_keys=True)


def bar_to_record(bar: PriceBar) -> Dict[str, Any]:
    return {
        'time': bar.label,
        'timestamp': bar.timestamp,
        'open': bar.open,
        'high': bar.high,
        'low': bar.low,
        'close': bar.close,
        'volume': bar.volume,
    }


def _finite(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def bars_from_records(records: List[Dict[str, Any]], max_bars: int = MAX_BARS) -> Tuple[PriceBar, ...]:
    """Rebuild bars from persisted records, skipping invalid ones."""
    bars: List[PriceBar] = []
    for rec in records:
        if not isinstance(rec, dict):
            continue
        prices = [_finite(rec.get(k)) for k in ('open', 'high', 'low', 'close')]
        if any(p is None for p in prices):
            continue
        ts = rec.get('timestamp')
        bars.append(
            PriceBar(
                label=str(rec.get('time') or ""),
                timestamp=int(ts) if isinstance(ts, (int, float)) and math.isfinite(ts) else None,
                open=prices[0],
                high=prices[1],
                low=prices[2],
                close=prices[3],
                volume=_finite(rec.get('volume')) or 0.0,
            )
        )
    skipped = len(records) - len(bars)
    if skipped:
        logger.warning("Skipped %d invalid bar records", skipped)
    if len(bars) > max_bars:
        bars = bars[len(bars) - max_bars:]
    return tuple(bars)


def save_dataset(path: str, dataset: Dataset) -> None:
    """Persist a normalized dataset with its upload metadata."""
    save_state(path, {
        'bars': [bar_to_record(b) for b in dataset.bars],
        'upload_info': dataset.upload_info,
    })
    logger.info("Saved %d bars to %s", len(dataset.bars), path)


def load_dataset(path: str, max_bars: int = MAX_BARS) -> Optional[Dataset]:
    """Restore a dataset saved by `save_dataset`.

    Returns ``None`` if the file does not exist.

    Raises
    ------
    ValueError
        If the file is not a dataset document.
    """
    state = load_state(path)
    if state is None:
        return None
    if not isinstance(state, dict) or not isinstance(state.get('bars'), list):
        raise ValueError(f"Not a dataset file: {path}")
    info = state.get('upload_info') or {}
    bars = bars_from_records(state['bars'], max_bars=max_bars)
    logger.info("Restored %d bars from %s", len(bars), path)
    return Dataset(
        bars=bars,
        header=list(info.get('header') or []),
        total_rows=int(info.get('total_rows') or len(bars)),
        delimiter=str(info.get('delimiter') or ","),
        preview=[list(r) for r in info.get('preview') or []],
    )


def trade_to_record(trade: Trade) -> Dict[str, Any]:
    return {
        'side': trade.side.value,
        'entry_price': trade.entry_price,
        'exit_price': trade.exit_price,
        'entry_index': trade.entry_index,
        'exit_index': trade.exit_index,
        'entry_time': trade.entry_label,
        'exit_time': trade.exit_label,
        'pips': trade.pips,
        'close_reason': trade.close_reason.value,
    }


def trade_from_record(rec: Dict[str, Any]) -> Trade:
    return Trade(
        side=Side.parse(rec['side']),
        entry_price=float(rec['entry_price']),
        exit_price=float(rec['exit_price']),
        entry_index=int(rec['entry_index']),
        exit_index=int(rec['exit_index']),
        entry_label=str(rec.get('entry_time', "")),
        exit_label=str(rec.get('exit_time', "")),
        pips=float(rec['pips']),
        close_reason=CloseReason(rec.get('close_reason', CloseReason.MANUAL.value)),
    )


def save_trades(path: str, trades: List[Trade]) -> None:
    save_state(path, {'trades': [trade_to_record(t) for t in trades]})


def load_trades(path: str) -> List[Trade]:
    """Load a ledger saved by `save_trades`; a missing file gives an empty list."""
    state = load_state(path)
    if state is None:
        return []
    if not isinstance(state, dict) or not isinstance(state.get('trades'), list):
        raise ValueError(f"Not a trades file: {path}")
    try:
        return [trade_from_record(rec) for rec in state['trades']]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Not a trades file: {path} ({exc})") from exc
