"""
Unit Tests for Signal Filters

Tests the moving-average band-pass, peak detection and
variability helpers.
"""

import numpy as np
import pytest

from lifeline.services.signal import filters


FS = 30.0


def _sine(freq_hz: float, seconds: float, amplitude: float = 1.0) -> np.ndarray:
    t = np.arange(int(seconds * FS)) / FS
    return amplitude * np.sin(2 * np.pi * freq_hz * t)


class TestMovingAverage:
    """Tests for the symmetric moving average."""

    def test_preserves_length(self):
        values = np.arange(50, dtype=float)
        assert filters.moving_average(values, 7).size == 50

    def test_constant_signal_unchanged(self):
        values = np.full(40, 3.5)
        assert np.allclose(filters.moving_average(values, 9), 3.5)

    def test_window_of_one_is_identity(self):
        values = np.array([1.0, 5.0, 2.0])
        assert np.array_equal(filters.moving_average(values, 1), values)


class TestBandpass:
    """Tests for the band-pass approximation."""

    def test_window_sizes(self):
        assert filters.bandpass_window_sizes(30.0, 0.5, 3.0) == (60, 5)

    def test_removes_dc_offset(self):
        values = 100.0 + _sine(1.2, 10.0)
        filtered = filters.bandpass(values, FS, 0.5, 3.0)
        assert abs(float(np.mean(filtered[30:-30]))) < 0.1

    def test_does_not_shift_peaks(self):
        values = 40.0 + _sine(1.5, 10.0, amplitude=10.0)
        filtered = filters.bandpass(values, FS, 0.5, 3.0)
        middle = slice(100, 200)
        period = 20
        assert np.argmax(filtered[middle]) % period == np.argmax(values[middle]) % period


class TestDetectPeaks:
    """Tests for adaptive peak detection."""

    def test_one_peak_per_cycle(self):
        signal = _sine(1.0, 10.0)
        peaks = filters.detect_peaks(signal, FS, max_heart_rate=180.0, threshold_ratio=0.5)
        assert peaks.size == 10

    def test_edges_are_ignored(self):
        signal = _sine(1.0, 10.0)
        peaks = filters.detect_peaks(signal, FS, 180.0, 0.5, edge=30)
        assert peaks.size > 0
        assert peaks.min() >= 30
        assert peaks.max() < signal.size - 30

    def test_flat_signal_has_no_peaks(self):
        peaks = filters.detect_peaks(np.zeros(300), FS, 180.0, 0.5)
        assert peaks.size == 0

    def test_short_signal_has_no_peaks(self):
        assert filters.detect_peaks(np.array([1.0, 2.0]), FS, 180.0, 0.5).size == 0


class TestVariability:
    """Tests for RR-interval statistics."""

    def test_regular_rhythm(self):
        rr = np.full(12, 800.0)
        assert filters.rmssd(rr) == 0.0
        assert filters.sdnn(rr) == 0.0
        assert filters.coefficient_of_variation(rr) == 0.0

    def test_alternating_rhythm(self):
        rr = np.array([600.0, 1000.0] * 6)
        assert filters.rmssd(rr) == pytest.approx(400.0)
        assert filters.sdnn(rr) == pytest.approx(200.0)
        assert filters.coefficient_of_variation(rr) == pytest.approx(0.25)

    def test_stability_of_still_signal(self):
        assert filters.signal_stability(np.full(20, 40.0)) == 1.0
        assert filters.signal_stability(np.array([1.0])) == 0.0


class TestPeriodicity:
    """Tests for the beat-to-beat autocorrelation score."""

    def test_sine_repeats_every_period(self):
        filtered = filters.bandpass(_sine(1.0, 10), FS, 0.5, 3.0)
        assert filters.periodicity(filtered, lag=30, edge=30) > 0.95

    def test_noise_does_not_repeat(self):
        scores = []
        for seed in range(5):
            noise = np.random.default_rng(seed).normal(0.0, 2.0, 300)
            filtered = filters.bandpass(noise, FS, 0.5, 3.0)
            scores.append(filters.periodicity(filtered, lag=33, edge=30))

        assert float(np.mean(scores)) < 0.3

    def test_flat_signal_scores_zero(self):
        assert filters.periodicity(np.zeros(300), lag=30) == 0.0

    def test_lag_longer_than_signal_scores_zero(self):
        assert filters.periodicity(_sine(1.0, 1), lag=40) == 0.0
