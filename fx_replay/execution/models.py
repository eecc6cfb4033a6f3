"""
Position and trade models.

These dataclasses represent the objects passed between the replay
session and the trade engine.  Keeping them in a separate module
improves readability and makes unit testing easier.

The open position is held as a tagged variant: the engine's single
slot contains either `Flat` or `Open(position)`, so there is no way to
hold two positions at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Side(str, Enum):
    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, value: Union[str, "Side"]) -> "Side":
        """Accept ``long``/``short`` as well as ``buy``/``sell``."""
        if isinstance(value, Side):
            return value
        text = str(value).strip().lower()
        if text in ("long", "buy"):
            return cls.LONG
        if text in ("short", "sell"):
            return cls.SHORT
        raise ValueError(f"Unknown side: {value!r}")


class CloseReason(str, Enum):
    MANUAL = "manual"
    TAKE_PROFIT = "tp"
    STOP_LOSS = "sl"


@dataclass(frozen=True)
class Position:
    """Represents the open position."""
    side: Side
    entry_price: float
    entry_index: int
    entry_label: str


@dataclass(frozen=True)
class Flat:
    """No position is open."""


@dataclass(frozen=True)
class Open:
    position: Position


PositionState = Union[Flat, Open]

FLAT = Flat()


@dataclass(frozen=True)
class Trade:
    """Represents a completed trade."""
    side: Side
    entry_price: float
    exit_price: float
    entry_index: int
    exit_index: int
    entry_label: str
    exit_label: str
    pips: float
    close_reason: CloseReason


@dataclass(frozen=True)
class OrderResult:
    """Outcome of an open or close request.

    Rejected requests have ``ok=False`` and an advisory ``message``;
    they never raise.
    """
    ok: bool
    message: str
    position: Optional[Position] = None
    trade: Optional[Trade] = None
