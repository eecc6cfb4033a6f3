"""
Single-position trade engine.

The engine holds at most one open position and an append-only ledger
of closed trades.  Entries and exits are filled at the close of the
bar the caller passes in; there is no spread, slippage or sizing.  On
every cursor move the session calls `evaluate()` so that take-profit
and stop-loss thresholds close the position automatically.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..config.schema import TpSlConfig
from ..data.models import PriceBar
from .models import (
    FLAT,
    CloseReason,
    Open,
    OrderResult,
    Position,
    PositionState,
    Side,
    Trade,
)


logger = logging.getLogger(__name__)

# Price difference to pips.  Fixed for the quoted instrument (JPY
# crosses quoted to two decimals in the bundled data); every reported
# figure depends on it.
PIP_FACTOR = 10


def calc_pips(entry_price: float, exit_price: float, side: Side) -> float:
    """Signed pips earned by moving from `entry_price` to `exit_price`."""
    sign = 1 if side == Side.LONG else -1
    return (exit_price - entry_price) * sign * PIP_FACTOR


class TradeEngine:
    """Open, close and auto-close a single position."""

    def __init__(self) -> None:
        self._state: PositionState = FLAT
        self._trades: List[Trade] = []

    @property
    def state(self) -> PositionState:
        return self._state

    @property
    def position(self) -> Optional[Position]:
        """The open position, or ``None`` when flat."""
        if isinstance(self._state, Open):
            return self._state.position
        return None

    @property
    def is_flat(self) -> bool:
        return not isinstance(self._state, Open)

    @property
    def trades(self) -> Tuple[Trade, ...]:
        return tuple(self._trades)

    def clear(self) -> None:
        """Drop the open position and the ledger."""
        self._state = FLAT
        self._trades = []

    def open_position(self, side: Side, bar: Optional[PriceBar], index: Optional[int]) -> OrderResult:
        """Open a position at the close of `bar`.

        Rejected when a position is already open or there is no bar.
        """
        if bar is None or index is None:
            logger.warning("Open rejected: no bar data loaded")
            return OrderResult(ok=False, message="no bar data loaded")
        if isinstance(self._state, Open):
            logger.warning("Open rejected: a %s position is already open", self._state.position.side.value)
            return OrderResult(
                ok=False,
                message="a position is already open; close it first",
                position=self._state.position,
            )
        position = Position(
            side=Side.parse(side),
            entry_price=bar.close,
            entry_index=index,
            entry_label=bar.label,
        )
        self._state = Open(position)
        logger.info("Opened %s at %s (bar %d)", position.side.value, position.entry_price, index)
        return OrderResult(ok=True, message="position opened", position=position)

    def close_position(
        self,
        bar: Optional[PriceBar],
        index: Optional[int],
        reason: CloseReason = CloseReason.MANUAL,
    ) -> OrderResult:
        """Close the open position at the close of `bar` and record the trade."""
        if not isinstance(self._state, Open):
            logger.warning("Close rejected: no open position")
            return OrderResult(ok=False, message="no open position")
        if bar is None or index is None:
            logger.warning("Close rejected: no bar data loaded")
            return OrderResult(ok=False, message="no bar data loaded", position=self._state.position)
        position = self._state.position
        trade = Trade(
            side=position.side,
            entry_price=position.entry_price,
            exit_price=bar.close,
            entry_index=position.entry_index,
            exit_index=index,
            entry_label=position.entry_label,
            exit_label=bar.label,
            pips=calc_pips(position.entry_price, bar.close, position.side),
            close_reason=reason,
        )
        self._trades.append(trade)
        self._state = FLAT
        logger.info(
            "Closed %s at %s (bar %d): %.1f pips [%s]",
            trade.side.value,
            trade.exit_price,
            index,
            trade.pips,
            reason.value,
        )
        return OrderResult(ok=True, message="position closed", trade=trade)

    def unrealized_pips(self, bar: Optional[PriceBar]) -> Optional[float]:
        """Provisional pips against the close of `bar`, ``None`` when flat."""
        position = self.position
        if position is None or bar is None:
            return None
        return calc_pips(position.entry_price, bar.close, position.side)

    def evaluate(self, bar: Optional[PriceBar], index: Optional[int], tp_sl: TpSlConfig) -> Optional[Trade]:
        """Close the position if a take-profit or stop-loss threshold is hit.

        Take-profit is checked first, so when both thresholds are met on
        the same bar the trade is recorded as a take-profit.  Returns the
        closing trade, or ``None`` when nothing happened.
        """
        current = self.unrealized_pips(bar)
        if current is None:
            return None
        tp = tp_sl.take_profit_pips
        sl = tp_sl.stop_loss_pips
        reason: Optional[CloseReason] = None
        if tp > 0 and current >= tp:
            reason = CloseReason.TAKE_PROFIT
        elif sl > 0 and current <= -sl:
            reason = CloseReason.STOP_LOSS
        if reason is None:
            return None
        return self.close_position(bar, index, reason).trade
