"""Periodic tick source on the running asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class Ticker:
    """Calls *callback* every *interval* seconds until stopped.

    Single-threaded: the callback runs on the event loop between other
    tasks. start() and stop() may be called any number of times.
    """

    def __init__(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self._callback = callback
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin ticking. Must be called from within a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self._interval
        while True:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            try:
                self._callback()
            except Exception:
                logger.exception("Tick callback failed")
            next_at += self._interval
            # Stalled loop: skip missed ticks instead of bursting them.
            if next_at < loop.time():
                next_at = loop.time() + self._interval
