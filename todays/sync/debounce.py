"""Cancellable debounce timer for async actions."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Run ``action`` once ``delay`` seconds after the last ``trigger()``.

    Triggering again while the timer is armed restarts the wait. Once the timer
    fires the action runs as its own task and is no longer cancelled by
    further triggers.
    """

    def __init__(self, delay: float, action: Callable[[], Awaitable[Any]], *, name: str = "debounce"):
        self.delay = delay
        self.action = action
        self.name = name
        self._handle: Optional[asyncio.TimerHandle] = None
        self._running: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        """Arm or re-arm the timer. Must be called from the event loop."""
        loop = asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.get_running_loop().create_task(self.action(), name=f"{self.name}-action")
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def flush(self) -> None:
        """Run the pending action now instead of waiting for the timer."""
        if self.cancel():
            await self.action()
        await self.wait()

    async def wait(self) -> None:
        """Wait for actions already fired."""
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)
