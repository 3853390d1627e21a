"""
Debouncer - coalesces rapid calls into a single delayed callback.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    Runs ``callback(value)`` once ``delay`` seconds have passed without a new
    ``schedule()`` call. Only the most recently scheduled value is delivered;
    earlier values inside the window are dropped.

    Must be used from within a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[[T], Awaitable[object]]) -> None:
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._value: Optional[T] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a value is waiting for the quiescence window to end."""
        return self._handle is not None

    def schedule(self, value: T) -> None:
        """Replace the pending value and restart the timer."""
        if self._handle is not None:
            self._handle.cancel()
        self._value = value
        self._handle = asyncio.get_running_loop().call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending value without running the callback."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._value = None
        return True

    async def flush(self) -> None:
        """Run the pending callback now instead of waiting for the timer."""
        if self._handle is None:
            return
        value = self._take()
        await self._callback(value)

    async def wait_idle(self) -> None:
        """Wait for callbacks already started by the timer to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _take(self) -> T:
        self._handle.cancel()
        self._handle = None
        value, self._value = self._value, None
        return value

    def _fire(self) -> None:
        value = self._take()
        task = asyncio.get_running_loop().create_task(self._run(value))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, value: T) -> None:
        try:
            await self._callback(value)
        except Exception:
            logger.exception("Debounced callback failed")
