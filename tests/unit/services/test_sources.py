"""
Unit Tests for Sample Sources

Tests capability probing, fallback selection and the capture queue.
"""

import pytest

from lifeline.domain.errors import SourceUnavailableError
from lifeline.domain.models.signal import SampleFrame
from lifeline.services.signal.sources import CaptureSource, SyntheticSource, select_source


def _frame(t: float) -> SampleFrame:
    return SampleFrame(channels=(180.0, 100.0, 60.0), timestamp=t)


class TestSelectSource:
    """Tests for startup source selection."""

    async def test_capture_source_preferred_when_available(self):
        capture = CaptureSource()
        capture.available = True

        selected = await select_source(capture, SyntheticSource())

        assert selected is capture
        assert not selected.simulated

    async def test_falls_back_to_synthetic(self):
        """No capture device: the synthetic source is substituted."""
        fallback = SyntheticSource()

        selected = await select_source(CaptureSource(), fallback)

        assert selected is fallback
        assert selected.simulated

    async def test_no_source_raises(self):
        with pytest.raises(SourceUnavailableError):
            await select_source(CaptureSource(), None)


class TestCaptureSource:
    """Tests for the frame queue fed by the capture shim."""

    async def test_read_returns_none_when_empty(self):
        assert await CaptureSource().read() is None

    async def test_frames_are_read_in_order(self):
        source = CaptureSource()
        source.push(_frame(0.0))
        source.push(_frame(0.1))

        assert (await source.read()).timestamp == 0.0
        assert (await source.read()).timestamp == 0.1

    async def test_full_queue_drops_oldest(self):
        source = CaptureSource(max_pending=2)
        for t in (0.0, 0.1, 0.2):
            source.push(_frame(t))

        assert source.dropped == 1
        assert (await source.read()).timestamp == 0.1


class TestSyntheticSource:
    """Tests for the deterministic generator."""

    async def test_same_seed_same_frames(self):
        a, b = SyntheticSource(seed=3), SyntheticSource(seed=3)
        frames_a = [await a.read() for _ in range(5)]
        frames_b = [await b.read() for _ in range(5)]

        assert frames_a == frames_b

    async def test_timestamps_advance_with_sample_rate(self):
        source = SyntheticSource(sample_rate_hz=30.0)
        frames = [await source.read() for _ in range(3)]

        assert [f.timestamp for f in frames] == pytest.approx([0.0, 1 / 30, 2 / 30])

    def test_frames_match_fingertip_profile(self):
        frame = SyntheticSource().frame_at(10)
        assert frame.effective_coverage() == 1.0
        assert frame.red > frame.green > frame.blue
