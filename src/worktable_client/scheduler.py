"""Cancellable debounce timer for autosave."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Run an async callback once *delay* seconds after the last ``schedule()``.

    Each ``schedule()`` cancels a timer that has not fired yet and starts a new
    one. Once a timer fires its callback is no longer cancellable; it runs to
    completion even if new calls to ``schedule()`` arrive meanwhile.
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[object]]) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self.delay = delay
        self._callback = callback
        self._timer: asyncio.Task | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is waiting to fire."""
        return self._timer is not None and not self._timer.done()

    def schedule(self) -> None:
        """(Re)start the quiet-period timer. Must be called from a running event loop."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_run())

    def cancel(self) -> bool:
        """Drop a timer that has not fired. Returns True if one was pending."""
        if not self.pending:
            return False
        self._timer.cancel()
        self._timer = None
        return True

    async def flush(self) -> None:
        """Run a pending callback now, after any callback already in progress."""
        was_pending = self.cancel()
        await self._wait_running()
        if was_pending:
            await self._callback()

    async def drain(self) -> None:
        """Wait until no timer is pending and no callback is running."""
        while self.pending or self._running:
            if self.pending:
                try:
                    await asyncio.shield(self._timer)
                except asyncio.CancelledError:
                    # Superseded by a newer timer; loop to wait for that one
                    if asyncio.current_task().cancelling():
                        raise
            await self._wait_running()

    async def _wait_running(self) -> None:
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    async def _wait_then_run(self) -> None:
        await asyncio.sleep(self.delay)
        task = asyncio.current_task()
        if self._timer is task:
            self._timer = None
        self._running.add(task)
        try:
            await self._callback()
        except Exception:
            logger.exception("Debounced callback failed")
        finally:
            self._running.discard(task)
