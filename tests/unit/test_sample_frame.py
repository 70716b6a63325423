"""
Unit Tests for Sample Frames

Tests image reduction and skin-coverage inference.
"""

import numpy as np
import pytest

from lifeline.domain.models.signal import SampleFrame


SKIN = (180.0, 100.0, 60.0)


class TestFromPixels:
    """Tests for reducing an RGB image to a frame."""

    def test_uniform_skin_image(self):
        pixels = np.tile(np.array(SKIN), (10, 10, 1))

        frame = SampleFrame.from_pixels(pixels, timestamp=1.5)

        assert frame.channels == pytest.approx(SKIN)
        assert frame.coverage == pytest.approx(1.0)
        assert frame.timestamp == 1.5

    def test_partial_coverage(self):
        """Left half dark, right half skin: the centre region straddles both."""
        pixels = np.zeros((10, 10, 3))
        pixels[:, 5:, :] = SKIN

        frame = SampleFrame.from_pixels(pixels, timestamp=0.0)

        assert frame.coverage == pytest.approx(0.5)
        assert frame.red == pytest.approx(90.0)

    def test_rejects_non_rgb_array(self):
        with pytest.raises(ValueError):
            SampleFrame.from_pixels(np.zeros((10, 10)), timestamp=0.0)


class TestEffectiveCoverage:
    """Tests for coverage inference from the mean colour."""

    def test_supplied_coverage_is_clamped(self):
        assert SampleFrame(SKIN, 0.0, coverage=1.7).effective_coverage() == 1.0

    def test_inferred_from_profile(self):
        assert SampleFrame(SKIN, 0.0).effective_coverage() == 1.0
        assert SampleFrame((10.0, 10.0, 10.0), 0.0).effective_coverage() == 0.0
