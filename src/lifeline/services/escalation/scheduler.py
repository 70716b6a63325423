"""
Scheduler

Clock and timer abstraction used by the escalation engine, so the
engine never sleeps and never blocks.

ARCHITECTURE: The engine only calls call_later() and spawn().
AsyncioScheduler binds these to the running event loop; tests
substitute a manually advanced clock.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Protocol

from lifeline.config.logging_config import get_logger

logger = get_logger(__name__)

# on_done(result, error): exactly one of the two is meaningful
DoneCallback = Callable[[Any, Optional[BaseException]], None]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(ABC):
    """Abstract clock, timer and background-task runner."""

    @abstractmethod
    def now(self) -> float:
        """Monotonic time in seconds."""
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds; return a cancellable handle."""
        pass

    @abstractmethod
    def spawn(self, awaitable: Awaitable[Any], on_done: DoneCallback) -> None:
        """Run awaitable in the background and report its outcome to on_done."""
        pass

    async def drain(self) -> None:
        """Wait for background work spawned so far. Nothing to wait for by default."""
        return None


class AsyncioScheduler(Scheduler):
    """
    Scheduler bound to an asyncio event loop.

    The loop is resolved lazily so the scheduler can be built
    before the application starts its loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._tasks: set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def running_tasks(self) -> int:
        return len(self._tasks)

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)

    def spawn(self, awaitable: Awaitable[Any], on_done: DoneCallback) -> None:
        task = self.loop.create_task(awaitable)
        self._tasks.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._tasks.discard(finished)
            if finished.cancelled():
                on_done(None, asyncio.CancelledError())
                return
            error = finished.exception()
            on_done(None if error else finished.result(), error)

        task.add_done_callback(_done)

    async def drain(self) -> None:
        """Wait for background tasks spawned so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
