"""
Sample Sources

Strategies that feed SampleFrames to the sampling loop.

ARCHITECTURE:
- CaptureSource is fed by the external capture shim (camera/torch
  access lives outside this package)
- SyntheticSource generates a deterministic waveform and is
  substituted when no capture device reports itself available
- select_source() performs capability probing once at startup

SAFETY_NOTE: Every frame from a simulated source produces readings
marked simulated=True with capped confidence. A simulated source
must never be mistaken for a real measurement.
"""

import asyncio
import math
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from lifeline.config.logging_config import get_logger
from lifeline.domain.errors import SourceUnavailableError
from lifeline.domain.models.signal import SampleFrame

logger = get_logger(__name__)


class SampleSource(ABC):
    """
    Abstract frame source for the sampling loop.

    Attributes:
        name: Source name for logging
        simulated: Frames are generated, not measured
    """

    name: str = "source"
    simulated: bool = False

    @abstractmethod
    async def check_available(self) -> bool:
        """Return True if the source can deliver frames."""
        pass

    @abstractmethod
    async def read(self) -> Optional[SampleFrame]:
        """Return the next frame, or None if none is ready this tick."""
        pass


class CaptureSource(SampleSource):
    """
    Frames pushed by the capture shim.

    The shim calls push() from its own callback; the sampling loop
    drains with read(). When the queue is full the oldest frame is
    dropped so the loop always sees recent data.
    """

    simulated = False

    def __init__(self, name: str = "camera", max_pending: int = 64) -> None:
        self.name = name
        self.available = False
        self._queue: asyncio.Queue[SampleFrame] = asyncio.Queue(maxsize=max_pending)
        self._dropped = 0

    @property
    def dropped(self) -> int:
        """Frames discarded because the loop fell behind."""
        return self._dropped

    def push(self, frame: SampleFrame) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self._dropped += 1
        self._queue.put_nowait(frame)

    async def check_available(self) -> bool:
        return self.available

    async def read(self) -> Optional[SampleFrame]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None


class SyntheticSource(SampleSource):
    """
    Deterministic PPG-like waveform.

    Produces a reflectance pattern consistent with a fingertip over a
    lit lens: a dominant red channel, and a green channel carrying the
    pulse plus slow respiratory wander and seeded noise.

    Usage:
        source = SyntheticSource(heart_rate=72, sample_rate_hz=30)
        frame = await source.read()
    """

    simulated = True

    def __init__(
        self,
        heart_rate: float = 72.0,
        sample_rate_hz: float = 30.0,
        seed: Optional[int] = 7,
        noise: float = 0.2,
        respiration_rate: float = 15.0,
        name: str = "synthetic",
    ) -> None:
        self.name = name
        self.heart_rate = heart_rate
        self.sample_rate_hz = sample_rate_hz
        self.noise = noise
        self.respiration_rate = respiration_rate
        self._rng = np.random.default_rng(seed)
        self._index = 0

    def frame_at(self, index: int) -> SampleFrame:
        """Frame for a given sample index (no noise advance)."""
        t = index / self.sample_rate_hz
        pulse = math.sin(2 * math.pi * (self.heart_rate / 60.0) * t)
        breath = math.sin(2 * math.pi * (self.respiration_rate / 60.0) * t)
        return SampleFrame(
            channels=(180.0 + 0.5 * pulse, 100.0 + 2.0 * pulse + 0.5 * breath, 60.0),
            timestamp=t,
        )

    async def check_available(self) -> bool:
        return True

    async def read(self) -> Optional[SampleFrame]:
        frame = self.frame_at(self._index)
        self._index += 1
        if self.noise:
            jitter = self._rng.normal(0.0, self.noise, size=3)
            frame = SampleFrame(
                channels=tuple(c + float(j) for c, j in zip(frame.channels, jitter)),
                timestamp=frame.timestamp,
            )
        return frame


async def select_source(
    primary: Optional[SampleSource],
    fallback: Optional[SampleSource],
) -> SampleSource:
    """
    Check the primary source and fall back when it cannot deliver.

    Args:
        primary: Preferred source (usually the capture shim)
        fallback: Substitute (usually SyntheticSource)

    Returns:
        The selected source

    Raises:
        SourceUnavailableError: Neither source is available
    """
    if primary is not None and await primary.check_available():
        logger.info("Sample source selected", source=primary.name, simulated=primary.simulated)
        return primary

    if fallback is not None and await fallback.check_available():
        logger.warning(
            "Capture source unavailable, using fallback",
            primary=primary.name if primary else None,
            source=fallback.name,
            simulated=fallback.simulated,
        )
        return fallback

    raise SourceUnavailableError(
        primary.name if primary else "none",
        reason="no source reported itself available",
    )
