"""
Signal Buffer

Fixed-capacity rolling window of scalar samples with their
acquisition timestamps.

INVARIANT: Length never exceeds capacity; the oldest sample is
evicted first.
"""

from collections import deque

import numpy as np


class SignalBuffer:
    """
    Ring buffer of (timestamp, value) samples.

    Owned exclusively by the SignalProcessor; not thread-safe.

    Usage:
        buffer = SignalBuffer(capacity=300)
        buffer.push(41.2, timestamp=0.033)
        values = buffer.values()
    """

    def __init__(self, capacity: int) -> None:
        """
        Initialize buffer.

        Args:
            capacity: Maximum number of samples retained
        """
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._values: deque[float] = deque(maxlen=capacity)
        self._timestamps: deque[float] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._values)

    def is_full(self) -> bool:
        return len(self._values) == self._capacity

    def push(self, value: float, timestamp: float) -> bool:
        """
        Append a sample, evicting the oldest when full.

        Returns:
            True if a sample was evicted
        """
        evicted = self.is_full()
        self._values.append(float(value))
        self._timestamps.append(float(timestamp))
        return evicted

    def values(self) -> np.ndarray:
        """Buffered values, oldest first."""
        return np.fromiter(self._values, dtype=float, count=len(self._values))

    def timestamps(self) -> np.ndarray:
        """Buffered timestamps (seconds), oldest first."""
        return np.fromiter(self._timestamps, dtype=float, count=len(self._timestamps))

    def tail(self, count: int) -> np.ndarray:
        """The most recent `count` values (fewer if not yet buffered)."""
        values = self.values()
        return values[-count:] if count > 0 else values[:0]

    def duration(self) -> float:
        """Seconds spanned by the buffered samples."""
        if len(self._timestamps) < 2:
            return 0.0
        return self._timestamps[-1] - self._timestamps[0]

    def clear(self) -> None:
        self._values.clear()
        self._timestamps.clear()

    def __repr__(self) -> str:
        return f"<SignalBuffer({len(self)}/{self._capacity})>"
