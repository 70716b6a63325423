"""
Test Support

Deterministic scheduler, scriptable dispatcher and frame generators
shared by the unit and integration tests.
"""

import heapq
import math
from typing import Any, Awaitable, Callable, Iterable

from lifeline.domain.enums.escalation import ContactChannel
from lifeline.domain.enums.tiers import RiskTier
from lifeline.domain.models.escalation import DispatchResult, EmergencyContact
from lifeline.domain.models.risk import RiskScore
from lifeline.domain.models.signal import SampleFrame
from lifeline.infrastructure.dispatch import NotificationDispatcher
from lifeline.services.escalation.scheduler import DoneCallback, Scheduler


# =============================================================================
# SCHEDULER
# =============================================================================

class ManualTimerHandle:
    """Timer handle that counts cancel() calls."""

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.cancel_calls = 0

    def cancel(self) -> None:
        self.cancel_calls += 1
        self.cancelled = True


class ManualScheduler(Scheduler):
    """
    Deterministic scheduler: time only moves on advance().

    Spawned coroutines are driven to completion immediately; they
    must not suspend (the fake dispatcher never does).
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = 0
        self._heap: list[tuple[float, int, ManualTimerHandle]] = []
        self.handles: list[ManualTimerHandle] = []
        self.spawned = 0

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimerHandle:
        handle = ManualTimerHandle(self._now + max(0.0, delay), callback)
        self._seq += 1
        heapq.heappush(self._heap, (handle.when, self._seq, handle))
        self.handles.append(handle)
        return handle

    def spawn(self, awaitable: Awaitable[Any], on_done: DoneCallback) -> None:
        self.spawned += 1
        try:
            awaitable.send(None)
        except StopIteration as stop:
            on_done(stop.value, None)
        except Exception as e:
            on_done(None, e)
        else:
            awaitable.close()
            on_done(None, RuntimeError("coroutine suspended"))

    def advance(self, seconds: float) -> None:
        """Move time forward, firing due timers in order."""
        target = self._now + seconds
        while self._heap and self._heap[0][0] <= target + 1e-9:
            when, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            self._now = when
            handle.callback()
        self._now = target

    def pending(self) -> int:
        return sum(1 for _, _, h in self._heap if not h.cancelled)


# =============================================================================
# DISPATCHER
# =============================================================================

class FakeDispatcher(NotificationDispatcher):
    """
    Scriptable dispatcher recording (time, contact_id, channel) per send.

    Outcomes are consumed per contact; contacts in `always_fail`
    fail every time. Exceptions in the outcome list are raised.
    """

    def __init__(self, scheduler: ManualScheduler) -> None:
        self._scheduler = scheduler
        self.calls: list[tuple[float, str, ContactChannel]] = []
        self.messages: list[str] = []
        self.outcomes: dict[str, list[Any]] = {}
        self.always_fail: set[str] = set()

    @property
    def name(self) -> str:
        return "fake"

    async def send(
        self,
        contact: EmergencyContact,
        channel: ContactChannel,
        message: str,
    ) -> DispatchResult:
        self.calls.append((self._scheduler.now(), contact.id, channel))
        self.messages.append(message)
        if contact.id in self.always_fail:
            return DispatchResult.failure("unreachable")
        queue = self.outcomes.get(contact.id)
        outcome = queue.pop(0) if queue else DispatchResult(delivered=True)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def calls_for(self, contact_id: str) -> list[float]:
        return [t for t, cid, _ in self.calls if cid == contact_id]

    def order(self) -> list[str]:
        return [cid for _, cid, _ in self.calls]


# =============================================================================
# FRAMES
# =============================================================================

def sine_frames(
    frequency_hz: float,
    seconds: float,
    sample_rate_hz: float = 30.0,
    amplitude: float = 10.0,
    start_index: int = 0,
) -> list[SampleFrame]:
    """Fingertip-like frames whose green channel carries a sine pulse."""
    count = int(round(seconds * sample_rate_hz))
    frames = []
    for i in range(start_index, start_index + count):
        t = i / sample_rate_hz
        pulse = amplitude * math.sin(2 * math.pi * frequency_hz * t)
        frames.append(SampleFrame(channels=(180.0, 100.0 + pulse, 60.0), timestamp=t))
    return frames


def pulse_train_frames(
    intervals: Iterable[int],
    sample_rate_hz: float = 30.0,
    amplitude: float = 10.0,
    width_seconds: float = 0.08,
) -> list[SampleFrame]:
    """
    Frames with Gaussian pulses separated by the given sample intervals.

    The first pulse sits one second in; the signal ends one second
    after the last pulse.
    """
    pulse_indices = []
    index = int(sample_rate_hz)
    for interval in intervals:
        pulse_indices.append(index)
        index += interval
    pulse_indices.append(index)
    total = index + int(sample_rate_hz)

    frames = []
    for i in range(total):
        t = i / sample_rate_hz
        value = sum(
            math.exp(-(((i - p) / sample_rate_hz) / width_seconds) ** 2)
            for p in pulse_indices
            if abs(i - p) < 3 * sample_rate_hz
        )
        frames.append(SampleFrame(channels=(180.0, 100.0 + amplitude * value, 60.0), timestamp=t))
    return frames


def risk_score(tier: RiskTier) -> RiskScore:
    return RiskScore(tier=tier)

