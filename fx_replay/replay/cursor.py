"""
Replay cursor.

Holds the index of the current bar over an immutable bar sequence.
Every move is clamped into ``[0, N-1]``; an empty sequence has no
current index at all.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..data.models import PriceBar

# Bars shown to the left of, and including, the current bar.
DEFAULT_WINDOW = 100


class ReplayCursor:
    """Index of the current bar in `bars`."""

    def __init__(self, bars: Sequence[PriceBar] = ()) -> None:
        self._bars: Tuple[PriceBar, ...] = tuple(bars)
        self._index: Optional[int] = 0 if self._bars else None

    @property
    def bars(self) -> Tuple[PriceBar, ...]:
        return self._bars

    def __len__(self) -> int:
        return len(self._bars)

    def current_index(self) -> Optional[int]:
        """Index of the current bar, or ``None`` when there are no bars."""
        return self._index

    def current_bar(self) -> Optional[PriceBar]:
        if self._index is None:
            return None
        return self._bars[self._index]

    def _clamp(self, index: int) -> Optional[int]:
        if not self._bars:
            return None
        return max(0, min(int(index), len(self._bars) - 1))

    def seek(self, index: int) -> Optional[int]:
        """Move to `index`, clamped into range.  Returns the new index."""
        self._index = self._clamp(index)
        return self._index

    def step_by(self, delta: int) -> Optional[int]:
        """Move by `delta` bars (negative rewinds), clamped into range."""
        if self._index is None:
            return None
        return self.seek(self._index + int(delta))

    def reset(self) -> None:
        self._index = 0 if self._bars else None

    def at_end(self) -> bool:
        """True when there are no bars or the cursor sits on the last bar."""
        return self._index is None or self._index >= len(self._bars) - 1

    def progress_pct(self) -> float:
        """Share of the sequence replayed so far, one decimal, 0 when empty."""
        if self._index is None:
            return 0.0
        return round((self._index + 1) / len(self._bars) * 100, 1)

    def visible_window(self, count: int = DEFAULT_WINDOW) -> Tuple[int, Tuple[PriceBar, ...]]:
        """Return the last `count` bars up to the current one.

        The first element is the sequence index of the first returned bar.
        """
        if self._index is None or count <= 0:
            return 0, ()
        start = max(0, self._index - count + 1)
        return start, self._bars[start:self._index + 1]
