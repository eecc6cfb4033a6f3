"""
Date and time token parsing for bar data.

MetaTrader exports write the date as ``YYYY.MM.DD`` and the time as
``HH:MM`` in separate columns.  The helpers here turn those two cells
into a display label and an epoch timestamp.  Timestamps are composed
in local time without any timezone conversion: the values are taken
literally from the file.  Out-of-range fields roll over the way a
calendar would (``24:00`` is the next midnight) and two-digit years
are read as 19xx.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional, Tuple


def _to_int(token: Optional[str]) -> Optional[int]:
    """Parse a numeric token, returning ``None`` when it is not a number."""
    if token is None:
        return None
    token = token.strip()
    if not token:
        return None
    try:
        value = float(token)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value)


def split_date(date_str: str) -> Tuple[Optional[int], int, int]:
    """Split a ``Y.M.D`` string into year, month and day.

    Missing, zero or non-numeric month and day default to 1.  The year
    is ``None`` if it cannot be parsed.
    """
    parts = date_str.split(".")
    year = _to_int(parts[0])
    month = _to_int(parts[1]) if len(parts) > 1 else None
    day = _to_int(parts[2]) if len(parts) > 2 else None
    return year, month or 1, day or 1


def split_time(time_str: str) -> Tuple[int, int]:
    """Split an ``H:M`` string into hour and minute, defaulting to 0."""
    if not time_str:
        return 0, 0
    parts = time_str.split(":")
    hour = _to_int(parts[0])
    minute = _to_int(parts[1]) if len(parts) > 1 else None
    return hour or 0, minute or 0


def compose_datetime(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Build a naive datetime, rolling out-of-range fields over.

    Month 13 is January of the following year and ``24:00`` is midnight
    of the next day.  Years 0 to 99 are read as 1900 to 1999.
    """
    if 0 <= year <= 99:
        year += 1900
    y, m = divmod(year * 12 + month - 1, 12)
    return datetime(y, m + 1, 1) + timedelta(days=day - 1, hours=hour, minutes=minute)


def parse_bar_timestamp(date_str: str, time_str: str = "") -> Optional[int]:
    """Compose a local epoch timestamp in milliseconds from date/time cells.

    Parameters
    ----------
    date_str : str
        Date cell such as ``"2024.01.15"``.
    time_str : str
        Time cell such as ``"13:45"``.  May be empty.

    Returns
    -------
    int or None
        Milliseconds since the epoch, or ``None`` when the date is empty,
        the year is not numeric or the result falls outside the range
        `datetime` can represent.
    """
    if not date_str:
        return None
    year, month, day = split_date(date_str)
    if year is None:
        return None
    hour, minute = split_time(time_str)
    try:
        dt = compose_datetime(year, month, day, hour, minute)
        return int(round(dt.timestamp() * 1000))
    except (ValueError, OverflowError, OSError):
        return None


def make_label(date_str: str, time_str: str = "") -> str:
    """Return the display label for a bar.

    The raw cells are joined with a single space and not reformatted, so
    labels read exactly as they did in the source file.  A bar without a
    date gets an empty label.
    """
    if not date_str:
        return ""
    return f"{date_str} {time_str}"
