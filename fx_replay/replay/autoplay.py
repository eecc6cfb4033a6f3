"""
Timed autoplay.

`AutoPlayer` advances a `ReplaySession` by one bar every
``interval_ms`` milliseconds using an asyncio task on the running event
loop.  Play stops by itself on the last bar and never wraps around.

The task is cancelled, not just muted, whenever play is toggled off,
the interval changes, the session loads a new bar sequence, rewinds to
the first bar or shuts down.  A tick that still arrives for an older bar
sequence is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .session import ReplaySession


logger = logging.getLogger(__name__)


class AutoPlayer:
    """Drive `session.tick()` on a fixed interval."""

    def __init__(self, session: ReplaySession, interval_ms: int = 2000) -> None:
        self.session = session
        self._interval_ms = self._check_interval(interval_ms)
        self._task: Optional[asyncio.Task] = None
        session.add_reset_listener(self.stop)

    @staticmethod
    def _check_interval(interval_ms: int) -> int:
        if interval_ms <= 0:
            raise ValueError(f"Autoplay interval must be positive, got {interval_ms} ms")
        return int(interval_ms)

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def is_playing(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start playing.  Must be called with an event loop running.

        Returns False when there is nothing left to play.
        """
        if self.is_playing:
            return True
        if self.session.at_end():
            logger.info("Autoplay not started: already on the last bar")
            return False
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(self.session.generation))
        logger.info("Autoplay started (%d ms per bar)", self._interval_ms)
        return True

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.info("Autoplay stopped at bar %s", self.session.current_index)
        self._task = None

    def toggle(self) -> bool:
        """Flip the play state and return the new one."""
        if self.is_playing:
            self.stop()
        else:
            self.start()
        return self.is_playing

    def set_interval(self, interval_ms: int) -> None:
        """Change the tick interval, restarting the timer if playing."""
        self._interval_ms = self._check_interval(interval_ms)
        if self.is_playing:
            self.stop()
            self.start()

    async def wait(self) -> None:
        """Wait until play ends, whether it finished or was stopped."""
        if self._task is not None:
            await asyncio.wait([self._task])

    def close(self) -> None:
        self.stop()
        self.session.remove_reset_listener(self.stop)

    async def _run(self, generation: int) -> None:
        while True:
            await asyncio.sleep(self._interval_ms / 1000)
            if generation != self.session.generation:
                logger.debug("Discarding tick for replaced bar sequence")
                return
            if not self.session.tick():
                return
            logger.debug("Tick -> bar %s", self.session.current_index)
            if self.session.at_end():
                logger.info("Autoplay reached the last bar")
                return
