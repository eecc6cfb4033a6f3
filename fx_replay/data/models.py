"""
Bar and dataset models.

These dataclasses describe price data as it flows from the CSV reader
through the normalizer into a replay session.  Bars are frozen: once
created they are never modified, and a new ingestion replaces the whole
sequence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# Maximum number of bars retained from a single ingestion.  When a file
# holds more rows, the oldest ones are discarded.
MAX_BARS = 20_000

# Number of leading rows reported back to the caller as a preview.
PREVIEW_ROWS = 20


@dataclass(frozen=True)
class PriceBar:
    """One OHLCV interval."""
    label: str
    timestamp: Optional[int]  # epoch milliseconds, None if the date did not parse
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass
class RawTable:
    """Header and trimmed text cells read from a delimited payload.

    Attributes
    ----------
    header : list of str
        Header cells, trimmed.
    rows : list of list of str
        Data rows after the row cap has been applied.
    total_rows : int
        Number of data rows before the cap.
    delimiter : str
        Delimiter detected from the header line.
    preview : list of list of str
        The first rows of ``rows``, for display.
    """

    header: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)
    total_rows: int = 0
    delimiter: str = ","
    preview: List[List[str]] = field(default_factory=list)


@dataclass
class Dataset:
    """A normalized bar sequence together with its ingestion metadata."""
    bars: Tuple[PriceBar, ...] = ()
    header: List[str] = field(default_factory=list)
    total_rows: int = 0
    delimiter: str = ","
    preview: List[List[str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.bars)

    @property
    def upload_info(self) -> dict:
        return {
            'header': list(self.header),
            'total_rows': self.total_rows,
            'preview': [list(r) for r in self.preview],
            'delimiter': self.delimiter,
        }


@dataclass
class IngestResult:
    """Outcome of an ingestion.

    ``success`` is False when the payload held no usable bars; the
    dataset is still attached so the caller can show the header and
    preview.
    """
    success: bool
    message: str
    dataset: Dataset
