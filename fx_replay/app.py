"""
Application entry point.

This module defines a simple command-line interface for the replay
trainer.  Three modes are available:

- ``ingest``: read a CSV export, normalize it and save the dataset;
- ``replay``: step through bars interactively and trade by hand;
- ``autoplay``: play the bars on a timer with take-profit/stop-loss
  active and write a report at the end.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Callable, Iterable, List, Optional

from .config.schema import Config, load_config
from .data.csv_data import CSVDataLoader
from .data.models import Dataset
from .data.normalizer import ingest_table
from .execution.models import CloseReason
from .reporting.report import generate_replay_report
from .replay.autoplay import AutoPlayer
from .replay.session import ReplaySession
from .utils.persistence import load_dataset, save_dataset


HELP_TEXT = (
    "commands: n/b step, f/r batch step, seek I, reset, buy, sell, close, "
    "tp N, sl N, stats, q"
)


def _setup_logging(verbose: bool) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def describe(session: ReplaySession) -> str:
    """One-line status of the cursor and the open position."""
    bar = session.current_bar
    if bar is None:
        return "no data loaded"
    text = (
        f"[{session.current_index + 1}/{len(session.bars)} {session.progress_pct}%] "
        f"{bar.label} O={bar.open} H={bar.high} L={bar.low} C={bar.close}"
    )
    position = session.position
    if position is not None:
        text += f" | {position.side.value} @ {position.entry_price} ({session.unrealized_pips():+.1f} pips)"
    return text


def format_stats(session: ReplaySession) -> str:
    stats = session.stats()
    return (
        f"trades={stats.total_trades} win_rate={stats.win_rate}% "
        f"avg={stats.avg_pips} total={stats.total_pips} pips"
    )


def run_command(session: ReplaySession, line: str, out: Callable[[str], None] = print) -> bool:
    """Apply one console command to `session`.

    Returns False when the command asks to quit.
    """
    parts = line.strip().split()
    if not parts:
        out(describe(session))
        return True
    cmd, args = parts[0].lower(), parts[1:]
    trades_before = len(session.trades)

    if cmd in ('q', 'quit', 'exit'):
        return False
    if cmd in ('n', 'next'):
        session.step_forward()
    elif cmd in ('b', 'back'):
        session.step_back()
    elif cmd == 'f':
        session.batch_forward()
    elif cmd == 'r':
        session.batch_back()
    elif cmd == 'reset':
        session.reset()
    elif cmd == 'seek' and args:
        try:
            session.seek(int(args[0]))
        except ValueError:
            out(f"invalid index: {args[0]}")
            return True
    elif cmd in ('buy', 'long', 'sell', 'short'):
        result = session.open_position(cmd)
        if not result.ok:
            out(result.message)
    elif cmd == 'close':
        result = session.close_position()
        if not result.ok:
            out(result.message)
        elif result.trade is not None:
            out(f"closed: {result.trade.pips:+.1f} pips")
    elif cmd in ('tp', 'sl') and args:
        try:
            value = float(args[0])
        except ValueError:
            out(f"invalid pips: {args[0]}")
            return True
        if cmd == 'tp':
            session.set_tp_sl(take_profit_pips=value)
        else:
            session.set_tp_sl(stop_loss_pips=value)
    elif cmd == 'stats':
        out(format_stats(session))
        return True
    else:
        out(HELP_TEXT)
        return True

    last = session.last_trade
    if len(session.trades) > trades_before and last.close_reason != CloseReason.MANUAL:
        out(f"auto-closed ({last.close_reason.value}): {last.pips:+.1f} pips")
    out(describe(session))
    return True


def run_commands(session: ReplaySession, lines: Iterable[str], out: Callable[[str], None] = print) -> None:
    """Feed console commands to `session` until one of them quits."""
    for line in lines:
        if not run_command(session, line, out):
            break


def load_session_data(config: Config, csv_path: Optional[str], dataset_path: Optional[str]) -> Optional[Dataset]:
    """Load bars from a saved dataset or a CSV file.

    Returns ``None`` when no usable bars were found.
    """
    if dataset_path:
        dataset = load_dataset(dataset_path, max_bars=config.data.max_bars)
        if dataset is None:
            logging.error("Dataset file not found: %s", dataset_path)
            return None
        if not dataset.bars:
            logging.error("Dataset %s holds no usable bars", dataset_path)
            return None
        return dataset
    table = CSVDataLoader(csv_path or config.data.csv_path, max_rows=config.data.max_bars).load()
    result = ingest_table(table, max_bars=config.data.max_bars)
    if not result.success:
        logging.error("Ingestion failed: %s", result.message)
        return None
    return result.dataset


async def autoplay(session: ReplaySession, interval_ms: int, side: Optional[str] = None) -> None:
    """Play `session` to its last bar, optionally opening a position first."""
    player = AutoPlayer(session, interval_ms=interval_ms)
    try:
        if side:
            session.open_position(side)
        if player.start():
            await player.wait()
        if not session.is_flat:
            session.close_position()
    finally:
        player.close()


def main(argv: Optional[List[str]] = None) -> None:
    """Parse command-line arguments and dispatch to the appropriate mode."""
    parser = argparse.ArgumentParser(description="FX Replay Trainer")
    parser.add_argument('mode', choices=['ingest', 'replay', 'autoplay'], help="Operating mode")
    parser.add_argument('--config', default='config.yaml', help="Path to configuration YAML file")
    parser.add_argument('--csv', help="CSV file to ingest")
    parser.add_argument('--dataset', help="Saved dataset JSON to restore")
    parser.add_argument('--save', help="Where to save the normalized dataset (ingest mode)")
    parser.add_argument('--tp', type=float, help="Take-profit in pips (0 disables)")
    parser.add_argument('--sl', type=float, help="Stop-loss in pips (0 disables)")
    parser.add_argument('--interval-ms', type=int, help="Autoplay interval in milliseconds")
    parser.add_argument('--side', choices=['long', 'short'], help="Position opened on the first bar (autoplay mode)")
    parser.add_argument('--out-dir', help="Report output directory")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    config = load_config(args.config)
    if args.tp is not None:
        config.tp_sl.take_profit_pips = abs(args.tp)
    if args.sl is not None:
        config.tp_sl.stop_loss_pips = abs(args.sl)
    out_dir = args.out_dir or config.report.out_dir

    if args.mode == 'ingest':
        table = CSVDataLoader(args.csv or config.data.csv_path, max_rows=config.data.max_bars).load()
        result = ingest_table(table, max_bars=config.data.max_bars)
        logging.info(
            "Ingested %d bars from %d rows (delimiter %r): %s",
            len(result.dataset.bars),
            result.dataset.total_rows,
            result.dataset.delimiter,
            result.message,
        )
        if result.success:
            save_dataset(args.save or config.data.dataset_path, result.dataset)
        return

    dataset = load_session_data(config, args.csv, args.dataset)
    if dataset is None:
        return
    session = ReplaySession(dataset, tp_sl=config.tp_sl, batch_step=config.replay.batch_step)

    if args.mode == 'replay':
        print(HELP_TEXT)
        print(describe(session))
        run_commands(session, sys.stdin)
    else:
        interval = args.interval_ms or config.replay.interval_ms
        logging.info("Autoplaying %d bars at %d ms per bar...", len(session.bars), interval)
        asyncio.run(autoplay(session, interval, args.side))

    session.shutdown()
    logging.info(format_stats(session))
    generate_replay_report(session.trades, out_dir=out_dir)
    logging.info("Report saved to the '%s' directory.", out_dir)


if __name__ == '__main__':
    main()
