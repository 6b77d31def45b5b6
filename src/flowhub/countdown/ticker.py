# src/flowhub/countdown/ticker.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Return True to stop ticking.
TickCallback = Callable[[], bool | None]


class Ticker:
    """
    Periodic tick source on the running event loop.

    Owns exactly one asyncio task while running. `stop()` cancels it
    synchronously; `aclose()` also waits for the cancellation to settle.
    Usable as an async context manager so the interval is released on every
    exit path.
    """

    def __init__(self, callback: TickCallback, *, interval_seconds: float = 1.0, name: str = "ticker") -> None:
        self._callback = callback
        self._interval = max(0.0, float(interval_seconds))
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=self._name)

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def aclose(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> Ticker:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.ticks += 1
            try:
                done = self._callback()
            except Exception:
                logger.exception("Tick callback failed ticker=%s", self._name)
                continue
            if done:
                logger.debug("Ticker %s finished after %d ticks", self._name, self.ticks)
                return
