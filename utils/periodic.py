"""
Cancellable repeating timer built on asyncio.
"""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Invokes a synchronous callback every ``interval`` seconds on the running event loop.

    The callback runs to completion on the loop thread, so two invocations never
    overlap. When a callback overruns its slot the missed slots are skipped, not
    queued. ``cancel()`` disarms synchronously: once it returns the callback will
    not be invoked again. Both ``start()`` and ``cancel()`` must be called from
    the loop thread.
    """

    def __init__(self, callback: Callable[[], None], interval: float, name: str = "periodic-task"):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self.callback = callback
        self.interval = interval
        self.name = name
        self.fired = 0
        self.skipped = 0
        self._armed = False
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._armed

    def start(self) -> None:
        """Arm the timer; first invocation happens one interval from now."""
        if self._armed:
            logger.warning(f"{self.name} already armed; ignoring start()")
            return
        loop = asyncio.get_running_loop()
        self._armed = True
        self._task = loop.create_task(self._run(), name=self.name)
        logger.debug(f"{self.name} armed with interval {self.interval}s")

    def cancel(self) -> None:
        """Disarm the timer. Safe to call repeatedly."""
        was_armed = self._armed
        self._armed = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        if was_armed:
            logger.debug(f"{self.name} disarmed after {self.fired} runs ({self.skipped} slots skipped)")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.interval
        try:
            while self._armed:
                await asyncio.sleep(max(0.0, next_at - loop.time()))
                if not self._armed:
                    break
                self._fire()
                next_at += self.interval
                now = loop.time()
                if now > next_at:
                    missed = int((now - next_at) // self.interval) + 1
                    self.skipped += missed
                    next_at += missed * self.interval
                    logger.warning(f"{self.name} overran its interval; skipped {missed} slot(s)")
        except asyncio.CancelledError:
            logger.debug(f"{self.name} loop cancelled")

    def _fire(self) -> None:
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Error in {self.name} callback: {type(e).__name__}: {e}", exc_info=True)
        finally:
            self.fired += 1
