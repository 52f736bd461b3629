"""Tick source for the simulation loop.

Single-threaded and cooperative: a tick always runs to completion before
the next one is scheduled, and :meth:`TickScheduler.stop` only suppresses
scheduling of the next tick.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Union

from .runner import SimulationRunner, TickResult

logger = logging.getLogger(__name__)

TickCallback = Callable[[TickResult], Union[None, Awaitable[None]]]


class TickScheduler:
    """Drive a :class:`SimulationRunner` at a fixed wall-clock period.

    Parameters
    ----------
    runner : SimulationRunner
        The simulation to advance.
    period_s : float or None
        Wall-clock delay between ticks.  Defaults to the runner's simulated
        period.  ``0`` runs ticks back to back (useful for replay).
    on_tick : callable or None
        Called with each :class:`TickResult`; may be a coroutine function.
        Exceptions raised by the callback are logged and do not stop the loop.
    """

    def __init__(
        self,
        runner: SimulationRunner,
        period_s: float | None = None,
        on_tick: TickCallback | None = None,
    ) -> None:
        self.runner = runner
        self.period_s = runner.config.period_s if period_s is None else period_s
        self._on_tick = on_tick
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def run(self, max_ticks: int | None = None) -> int:
        """Tick until stopped (or *max_ticks* ticks ran); return ticks run."""
        self._running = True
        return await self._loop(max_ticks)

    async def _loop(self, max_ticks: int | None) -> int:
        count = 0
        try:
            while self._running and (max_ticks is None or count < max_ticks):
                result = self.runner.tick()
                count += 1
                await self._emit(result)
                if not self._running or (max_ticks is not None and count >= max_ticks):
                    break
                await asyncio.sleep(self.period_s)
        finally:
            self._running = False
        return count

    def start(self) -> asyncio.Task:
        """Run the loop as a background task on the current event loop."""
        if self._task is not None and not self._task.done():
            # A stop was requested but the loop has not exited yet
            self._running = True
            return self._task
        self._running = True
        self._task = asyncio.get_running_loop().create_task(self._loop(None))
        logger.info("Tick scheduler started (period %.3f s)", self.period_s)
        return self._task

    def stop(self) -> None:
        """Suppress the next tick; a tick in progress still completes."""
        if self._running:
            logger.info("Tick scheduler stopping")
        self._running = False

    async def wait_stopped(self) -> None:
        if self._task is not None:
            await self._task

    async def _emit(self, result: TickResult) -> None:
        if self._on_tick is None:
            return
        try:
            out = self._on_tick(result)
            if inspect.isawaitable(out):
                await out
        except Exception:
            logger.exception("Tick callback failed at t=%.1f s", result.t_s)
