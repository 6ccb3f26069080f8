from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

AsyncCallback = Callable[[], Awaitable[None]]


async def _run_callback(name: str, callback: AsyncCallback) -> None:
    try:
        await callback()
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("%s callback failed", name)


class PeriodicTimer:
    """Run ``callback`` every ``interval`` seconds until stopped."""

    def __init__(
        self,
        interval: float,
        callback: AsyncCallback,
        *,
        name: str = "timer",
        immediate: bool = False,
    ) -> None:
        self.interval = interval
        self.name = name
        self._callback = callback
        self._immediate = immediate
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Started %s (every %.2fs)", self.name, self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Stopped %s", self.name)

    async def _run(self) -> None:
        if self._immediate:
            await _run_callback(self.name, self._callback)
        while True:
            await asyncio.sleep(self.interval)
            await _run_callback(self.name, self._callback)


class Debouncer:
    """Call ``callback`` once ``trigger()`` has been quiet for ``delay`` seconds.

    Each trigger restarts the window, so only the last burst fires and the
    callback sees whatever state was current at that point.
    """

    def __init__(
        self, delay: float, callback: AsyncCallback, *, name: str = "debounce"
    ) -> None:
        self.delay = delay
        self.name = name
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self._firing: asyncio.Task[Any] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        if self._task is not None:
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire_later())

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def flush(self) -> None:
        if not self.pending:
            return
        self.cancel()
        await _run_callback(self.name, self._callback)

    async def wait(self) -> None:
        """Wait until nothing is pending or firing."""
        while True:
            task = self._task or self._firing
            if task is None or task.done():
                return
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _fire_later(self) -> None:
        await asyncio.sleep(self.delay)
        # Once the window closes the call belongs to _firing; a new trigger
        # must not cancel a dispatch already on the wire.
        current = asyncio.current_task()
        self._task = None
        self._firing = current
        try:
            await _run_callback(self.name, self._callback)
        finally:
            if self._firing is current:
                self._firing = None
