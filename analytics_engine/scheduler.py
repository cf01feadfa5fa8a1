"""Cancellable scheduled tasks for the engine's timers"""

import asyncio
import inspect
from typing import Any, Callable, Optional
import structlog

logger = structlog.get_logger(__name__)


class PeriodicTask:
    """Run a callback every `interval` seconds on the running event loop"""

    def __init__(self, interval: float, callback: Callable[[], Any], name: str = "periodic"):
        self.interval = interval
        self.callback = callback
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                result = self.callback()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("Scheduled task failed", task=self.name, error=str(e))


class DebouncedTask:
    """Coalesce bursts of triggers into one callback run `delay` seconds after the first"""

    def __init__(self, delay: float, callback: Callable[[], Any], name: str = "debounced"):
        self.delay = delay
        self.callback = callback
        self.name = name
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> bool:
        """Schedule a run unless one is already pending. Returns True if newly scheduled."""
        if self._handle is not None:
            return False
        self._handle = asyncio.get_running_loop().call_later(self.delay, self._fire)
        return True

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self):
        self._handle = None
        try:
            self.callback()
        except Exception as e:
            logger.error("Debounced task failed", task=self.name, error=str(e))
