"""
CSV data loader.

This module reads delimited OHLCV text exported from MetaTrader (or any
spreadsheet) into a `RawTable`.  A typical MT4 export looks like:

```
Date;Time;Open;High;Low;Close;Volume
2024.01.02;00:00;141.020;141.100;140.950;141.050;532
```

The delimiter is guessed from the header line: a semicolon wins, then
a tab, and a comma is used otherwise.  This is a heuristic.  A file
whose header happens to contain a semicolon but whose rows are comma
separated will be misread; the priority order is kept as is so that
existing files keep loading the same way.

No quoting is supported.  Cells are split on the delimiter and trimmed.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

from .models import MAX_BARS, PREVIEW_ROWS, RawTable


logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")


def detect_delimiter(line: str) -> str:
    """Guess the delimiter used by `line`.

    Checks for ``;`` first, then a tab, and falls back to ``,``.
    """
    if ";" in line:
        return ";"
    if "\t" in line:
        return "\t"
    return ","


def split_cells(line: str, delimiter: str) -> List[str]:
    return [cell.strip() for cell in line.split(delimiter)]


def parse_delimited_text(content: str, max_rows: int = MAX_BARS) -> RawTable:
    """Split a delimited text payload into header and data rows.

    Parameters
    ----------
    content : str
        Whole file contents.
    max_rows : int
        Maximum number of data rows kept.  When the payload holds more,
        only the last `max_rows` rows are retained, in their original
        order.

    Returns
    -------
    RawTable
        Header, capped rows, row count before the cap, delimiter and a
        preview of the first retained rows.  An empty payload yields an
        empty table.
    """
    lines = [line for line in _LINE_SPLIT.split(content) if line.strip() != ""]
    if not lines:
        return RawTable()

    delimiter = detect_delimiter(lines[0])
    header = split_cells(lines[0], delimiter)
    data_lines = lines[1:]
    total_rows = len(data_lines)
    if max_rows >= 0 and total_rows > max_rows:
        data_lines = data_lines[total_rows - max_rows:] if max_rows else []
        logger.info("Row cap reached: keeping the last %d of %d rows", max_rows, total_rows)

    rows = [split_cells(line, delimiter) for line in data_lines]
    return RawTable(
        header=header,
        rows=rows,
        total_rows=total_rows,
        delimiter=delimiter,
        preview=rows[:PREVIEW_ROWS],
    )


class CSVDataLoader:
    """Load delimited OHLCV text from disk.

    Parameters
    ----------
    path : str
        Path to the CSV file.
    max_rows : int
        Row cap passed to `parse_delimited_text`.
    """

    def __init__(self, path: str, max_rows: int = MAX_BARS) -> None:
        self.path = Path(path)
        self.max_rows = max_rows

    def load(self) -> RawTable:
        if not self.path.exists():
            raise FileNotFoundError(f"CSV file not found: {self.path}")
        # utf-8-sig strips the BOM some spreadsheet exports prepend
        content = self.path.read_text(encoding="utf-8-sig")
        table = parse_delimited_text(content, max_rows=self.max_rows)
        logger.info(
            "Read %s: %d data rows, delimiter %r",
            self.path.name,
            table.total_rows,
            table.delimiter,
        )
        return table
