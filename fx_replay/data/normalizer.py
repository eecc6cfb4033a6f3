"""
Bar normalization.

Turns the text cells of a `RawTable` into an ordered tuple of
`PriceBar`.  Columns are found by case-insensitive header lookup.  Rows
whose open, high, low or close do not parse as finite numbers are
dropped without raising: a large import has to tolerate some noise.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..utils.timeutils import make_label, parse_bar_timestamp
from .csv_data import parse_delimited_text
from .models import MAX_BARS, Dataset, IngestResult, PriceBar, RawTable


logger = logging.getLogger(__name__)

COLUMN_NAMES = ("date", "time", "open", "high", "low", "close", "volume")
PRICE_COLUMNS = ("open", "high", "low", "close")

NO_USABLE_DATA = "no usable data"


def resolve_columns(header: Sequence[str]) -> Dict[str, Optional[int]]:
    """Map each known column name to its position in `header`.

    Matching is case-insensitive and the first occurrence wins.  Columns
    missing from the header map to ``None``.
    """
    lower = [h.strip().lower() for h in header]
    return {name: (lower.index(name) if name in lower else None) for name in COLUMN_NAMES}


def _column(frame: pd.DataFrame, idx: Optional[int]) -> pd.Series:
    if idx is None or idx < 0 or idx >= frame.shape[1]:
        return pd.Series([None] * len(frame), index=frame.index, dtype=object)
    return frame[idx]


def _numeric(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").astype(float)


def _text(series: pd.Series) -> List[str]:
    return ["" if v is None or (isinstance(v, float) and np.isnan(v)) else str(v) for v in series]


def normalize(
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    column_map: Optional[Dict[str, Optional[int]]] = None,
    max_bars: int = MAX_BARS,
) -> Tuple[PriceBar, ...]:
    """Convert header and text rows into canonical price bars.

    Parameters
    ----------
    header : sequence of str
        Header cells used to locate the columns.
    rows : sequence of sequence of str
        Data rows.  Only the last `max_bars` rows are considered.
    column_map : dict, optional
        Explicit ``name -> index`` overrides applied on top of the header
        lookup.
    max_bars : int
        Row cap.

    Returns
    -------
    tuple of PriceBar
        Bars in source order.  Rows with unparseable or non-finite
        prices are absent.
    """
    columns = resolve_columns(header)
    if column_map:
        columns.update(column_map)

    rows = list(rows)
    if len(rows) > max_bars:
        rows = rows[len(rows) - max_bars:] if max_bars > 0 else []
    if not rows:
        return ()

    # short rows are padded so missing trailing cells read as undefined
    width = max(len(r) for r in rows)
    frame = pd.DataFrame([list(r) + [None] * (width - len(r)) for r in rows], dtype=object)

    prices = {name: _numeric(_column(frame, columns[name])) for name in PRICE_COLUMNS}
    valid = np.ones(len(frame), dtype=bool)
    for series in prices.values():
        valid &= np.isfinite(series.to_numpy())

    volume = _numeric(_column(frame, columns["volume"]))
    volume = volume.where(np.isfinite(volume.to_numpy()), 0.0)

    dropped = int((~valid).sum())
    if dropped:
        logger.debug("Dropped %d rows with unparseable prices", dropped)

    frame = frame[valid]
    dates = _text(_column(frame, columns["date"]))
    times = _text(_column(frame, columns["time"]))

    bars = [
        PriceBar(
            label=make_label(d, t),
            timestamp=parse_bar_timestamp(d, t),
            open=o,
            high=h,
            low=l,
            close=c,
            volume=v,
        )
        for d, t, o, h, l, c, v in zip(
            dates,
            times,
            prices["open"][valid].tolist(),
            prices["high"][valid].tolist(),
            prices["low"][valid].tolist(),
            prices["close"][valid].tolist(),
            volume[valid].tolist(),
        )
    ]
    return tuple(bars)


def ingest_table(table: RawTable, max_bars: int = MAX_BARS) -> IngestResult:
    """Normalize a `RawTable` and attach its metadata."""
    bars = normalize(table.header, table.rows, max_bars=max_bars)
    dataset = Dataset(
        bars=bars,
        header=list(table.header),
        total_rows=table.total_rows,
        delimiter=table.delimiter,
        preview=[list(r) for r in table.preview],
    )
    if not bars:
        logger.info("Ingestion produced no bars (%d source rows)", table.total_rows)
        return IngestResult(success=False, message=NO_USABLE_DATA, dataset=dataset)
    logger.info("Loaded %d bars from %d source rows", len(bars), table.total_rows)
    return IngestResult(success=True, message=f"loaded {len(bars)} bars", dataset=dataset)


def ingest_text(content: str, max_bars: int = MAX_BARS) -> IngestResult:
    """Read and normalize a delimited text payload in one call."""
    return ingest_table(parse_delimited_text(content, max_rows=max_bars), max_bars=max_bars)
