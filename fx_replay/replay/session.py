"""
Replay session.

A `ReplaySession` ties one dataset, one cursor and one trade engine
together and is the only place their state is mutated.  Every cursor
move is followed by a take-profit/stop-loss check so that automatic
exits fire on the bar that triggers them.  Loading a new dataset resets
the cursor, clears the position and the ledger, and notifies reset
listeners.  Rewinding to the first bar notifies them too.  The autoplay
task stops itself through this hook.

All operations are synchronous and meant to run on a single thread.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from ..config.schema import TpSlConfig
from ..data.models import Dataset, PriceBar
from ..execution.models import OrderResult, Position, Side, Trade
from ..execution.trade_engine import TradeEngine
from ..reporting.metrics import PerformanceStats, compute_metrics
from .cursor import DEFAULT_WINDOW, ReplayCursor


logger = logging.getLogger(__name__)


class ReplaySession:
    """Step through bars and simulate a single position against them."""

    def __init__(
        self,
        dataset: Optional[Dataset] = None,
        tp_sl: Optional[TpSlConfig] = None,
        batch_step: int = 10,
    ) -> None:
        self.tp_sl = tp_sl or TpSlConfig()
        self.batch_step = batch_step
        self.engine = TradeEngine()
        self._dataset = Dataset()
        self._cursor = ReplayCursor()
        self._generation = 0
        self._reset_listeners: List[Callable[[], None]] = []
        if dataset is not None:
            self.load_dataset(dataset)

    # ------------------------------------------------------------------
    # Data

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def bars(self) -> Tuple[PriceBar, ...]:
        return self._cursor.bars

    @property
    def generation(self) -> int:
        """Incremented every time the bar sequence is replaced."""
        return self._generation

    def add_reset_listener(self, callback: Callable[[], None]) -> None:
        self._reset_listeners.append(callback)

    def remove_reset_listener(self, callback: Callable[[], None]) -> None:
        if callback in self._reset_listeners:
            self._reset_listeners.remove(callback)

    def _notify_reset(self) -> None:
        for callback in list(self._reset_listeners):
            callback()

    def load_dataset(self, dataset: Dataset) -> None:
        """Replace the bar sequence, discarding any simulation in progress."""
        self._notify_reset()
        self._generation += 1
        self._dataset = dataset
        self._cursor = ReplayCursor(dataset.bars)
        self.engine.clear()
        logger.info("Session loaded %d bars (generation %d)", len(dataset.bars), self._generation)

    def load_bars(self, bars: Sequence[PriceBar]) -> None:
        self.load_dataset(Dataset(bars=tuple(bars), total_rows=len(bars)))

    def shutdown(self) -> None:
        """Stop anything bound to this session (autoplay)."""
        self._notify_reset()

    # ------------------------------------------------------------------
    # Cursor

    @property
    def current_index(self) -> Optional[int]:
        return self._cursor.current_index()

    @property
    def current_bar(self) -> Optional[PriceBar]:
        return self._cursor.current_bar()

    @property
    def progress_pct(self) -> float:
        return self._cursor.progress_pct()

    def at_end(self) -> bool:
        return self._cursor.at_end()

    def visible_window(self, count: int = DEFAULT_WINDOW) -> Tuple[int, Tuple[PriceBar, ...]]:
        return self._cursor.visible_window(count)

    def seek(self, index: int) -> Optional[int]:
        self._cursor.seek(index)
        self.evaluate()
        return self.current_index

    def step_by(self, delta: int) -> Optional[int]:
        self._cursor.step_by(delta)
        self.evaluate()
        return self.current_index

    def step_forward(self) -> Optional[int]:
        return self.step_by(1)

    def step_back(self) -> Optional[int]:
        return self.step_by(-1)

    def batch_forward(self) -> Optional[int]:
        return self.step_by(self.batch_step)

    def batch_back(self) -> Optional[int]:
        return self.step_by(-self.batch_step)

    def reset(self) -> None:
        """Rewind to the first bar and stop autoplay.

        The position and ledger are kept.
        """
        self._notify_reset()
        self._cursor.reset()
        self.evaluate()

    def tick(self) -> bool:
        """Advance one bar for autoplay.

        Returns False, without moving, when already on the last bar.
        """
        if self._cursor.at_end():
            return False
        self.step_by(1)
        return True

    # ------------------------------------------------------------------
    # Trading

    @property
    def position(self) -> Optional[Position]:
        return self.engine.position

    @property
    def is_flat(self) -> bool:
        return self.engine.is_flat

    @property
    def trades(self) -> Tuple[Trade, ...]:
        return self.engine.trades

    @property
    def last_trade(self) -> Optional[Trade]:
        trades = self.engine.trades
        return trades[-1] if trades else None

    def unrealized_pips(self) -> Optional[float]:
        return self.engine.unrealized_pips(self.current_bar)

    def open_position(self, side) -> OrderResult:
        result = self.engine.open_position(Side.parse(side), self.current_bar, self.current_index)
        if result.ok:
            self.evaluate()
        return result

    def close_position(self) -> OrderResult:
        return self.engine.close_position(self.current_bar, self.current_index)

    def set_tp_sl(self, take_profit_pips: Optional[float] = None, stop_loss_pips: Optional[float] = None) -> None:
        """Update one or both thresholds and re-check the open position."""
        tp = self.tp_sl.take_profit_pips if take_profit_pips is None else take_profit_pips
        sl = self.tp_sl.stop_loss_pips if stop_loss_pips is None else stop_loss_pips
        self.tp_sl = TpSlConfig(take_profit_pips=tp, stop_loss_pips=sl)
        self.evaluate()

    def evaluate(self) -> Optional[Trade]:
        """Apply take-profit/stop-loss to the current bar.  Safe to call any time."""
        return self.engine.evaluate(self.current_bar, self.current_index, self.tp_sl)

    def stats(self) -> PerformanceStats:
        return compute_metrics(self.engine.trades)
