"""
Timer Table

Engine-owned registry of pending timers keyed by
(session id, timer name).

SAFETY-CRITICAL: Resolving or cancelling a session must cancel
every timer it owns, each exactly once, so no notification can be
sent after the operator closes the session.
"""

from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID

from lifeline.config.logging_config import get_logger
from lifeline.services.escalation.scheduler import Scheduler, TimerHandle

logger = get_logger(__name__)

TimerKey = tuple[UUID, str]


@dataclass
class _Timer:
    handle: Optional[TimerHandle] = None
    cancelled: bool = False


class TimerTable:
    """
    Cancellable timers grouped by session.

    Scheduling a name that is already pending replaces (and cancels)
    the earlier timer. A timer removes itself when it fires.

    Usage:
        timers = TimerTable(scheduler)
        timers.schedule(session_id, "countdown", 10.0, on_elapsed)
        timers.cancel_session(session_id)
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._timers: dict[TimerKey, _Timer] = {}
        self._cancelled_total = 0

    @property
    def cancelled_total(self) -> int:
        """Timers cancelled since creation."""
        return self._cancelled_total

    def schedule(
        self,
        session_id: UUID,
        name: str,
        delay: float,
        callback: Callable[[], None],
    ) -> None:
        """
        Schedule callback after delay seconds.

        Args:
            session_id: Owning session
            name: Timer name, unique within the session
            delay: Seconds until the callback runs
            callback: Zero-argument callable
        """
        key = (session_id, name)
        self.cancel(session_id, name)

        timer = _Timer()

        def _fire() -> None:
            if timer.cancelled:
                return
            if self._timers.get(key) is timer:
                del self._timers[key]
            callback()

        timer.handle = self._scheduler.call_later(delay, _fire)
        self._timers[key] = timer

    def cancel(self, session_id: UUID, name: str) -> bool:
        """
        Cancel one timer.

        Returns:
            True if a pending timer was cancelled
        """
        timer = self._timers.pop((session_id, name), None)
        if timer is None:
            return False
        self._cancel(timer)
        return True

    def cancel_session(self, session_id: UUID) -> int:
        """
        Cancel every pending timer of a session.

        Returns:
            Number of timers cancelled
        """
        keys = [key for key in self._timers if key[0] == session_id]
        for key in keys:
            self._cancel(self._timers.pop(key))
        if keys:
            logger.debug(
                "Session timers cancelled",
                session_id=str(session_id),
                count=len(keys),
            )
        return len(keys)

    def has(self, session_id: UUID, name: str) -> bool:
        return (session_id, name) in self._timers

    def names(self, session_id: UUID) -> list[str]:
        """Pending timer names for a session."""
        return sorted(name for sid, name in self._timers if sid == session_id)

    def pending(self, session_id: Optional[UUID] = None) -> int:
        if session_id is None:
            return len(self._timers)
        return sum(1 for sid, _ in self._timers if sid == session_id)

    def _cancel(self, timer: _Timer) -> None:
        timer.cancelled = True
        if timer.handle is not None:
            timer.handle.cancel()
        self._cancelled_total += 1
