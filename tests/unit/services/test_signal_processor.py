"""
Unit Tests for Signal Processor

Tests heart-rate extraction, degradation behaviour, rhythm flags
and confidence capping.

SAFETY-CRITICAL: The processor must never raise on bad input and
never report 0 or NaN for a vital sign.
"""

import math

import numpy as np
import pytest

from lifeline.domain.enums.vitals import ArrhythmiaFlag, PlacementQuality, VitalMetric
from lifeline.domain.models.signal import SampleFrame
from lifeline.services.signal import filters
from lifeline.services.signal.processor import (
    SignalProcessor,
    classify_placement,
    frame_to_scalar,
)

from support import pulse_train_frames, sine_frames


@pytest.fixture
def processor(signal_settings):
    return SignalProcessor(signal_settings)


def _feed(processor: SignalProcessor, frames) -> None:
    for frame in frames:
        processor.ingest(frame)


class TestHeartRateExtraction:
    """Tests for peak-based heart rate on a full buffer."""

    @pytest.mark.parametrize("frequency_hz, expected_bpm", [
        (1.0, 60.0),
        (1.2, 72.0),
        (1.5, 90.0),
    ])
    def test_sine_heart_rate_within_tolerance(self, processor, frequency_hz, expected_bpm):
        """A clean pulse at f Hz reads as 60*f BPM within 3 BPM."""
        _feed(processor, sine_frames(frequency_hz, seconds=10))
        reading = processor.recompute()

        assert reading.heart_rate == pytest.approx(expected_bpm, abs=3.0)
        assert not reading.stale
        assert reading.sample_count == 300

    def test_reading_is_emitted_on_cadence(self, processor, signal_settings):
        """ingest() returns a reading every recompute_every frames."""
        frames = sine_frames(1.2, seconds=1)
        results = [processor.ingest(f) for f in frames[:signal_settings.recompute_every]]

        assert all(r is None for r in results[:-1])
        assert results[-1] is not None
        assert processor.latest is results[-1]

    def test_good_placement_on_fingertip_frames(self, processor):
        _feed(processor, sine_frames(1.2, seconds=10))
        reading = processor.recompute()

        assert reading.placement_quality == PlacementQuality.EXCELLENT
        assert 0.0 < reading.confidence <= PlacementQuality.EXCELLENT.confidence_cap

    def test_heuristic_metrics_are_marked(self, processor):
        _feed(processor, sine_frames(1.2, seconds=10))
        reading = processor.recompute()

        assert VitalMetric.SPO2 in reading.heuristic_metrics
        assert VitalMetric.HEART_RATE not in reading.heuristic_metrics
        assert 85.0 <= reading.spo2 <= 100.0
        assert 8.0 <= reading.respiratory_rate <= 30.0

    def test_metric_confidence_is_read_only(self, processor):
        _feed(processor, sine_frames(1.2, seconds=10))
        reading = processor.recompute()

        with pytest.raises(TypeError):
            reading.metric_confidence[VitalMetric.HEART_RATE] = 1.0
        assert processor.latest.metric_confidence[VitalMetric.HEART_RATE] == reading.confidence

    def test_blood_pressure_confidence_below_heart_rate(self, processor):
        _feed(processor, sine_frames(1.2, seconds=10))
        reading = processor.recompute()

        assert reading.blood_pressure is not None
        assert reading.blood_pressure.confidence < reading.metric_confidence[VitalMetric.HEART_RATE]


class TestDegradedReadings:
    """Tests for behaviour when the processor cannot measure."""

    def test_insufficient_samples_yield_default_reading(self, processor):
        """Below min_samples the default reading is reported with zero confidence."""
        _feed(processor, sine_frames(1.2, seconds=50 / 30))
        reading = processor.recompute()

        assert reading.heart_rate == 70.0
        assert reading.confidence == 0.0
        assert reading.stale
        assert reading.sample_count == 50

    def test_too_few_peaks_keeps_previous_heart_rate(self, processor, monkeypatch):
        """With fewer than two peaks the previous HR is kept and confidence decays."""
        _feed(processor, sine_frames(1.2, seconds=10))
        first = processor.recompute()

        monkeypatch.setattr(filters, "detect_peaks", lambda *args, **kwargs: np.array([], dtype=int))
        second = processor.recompute()

        assert second.heart_rate == first.heart_rate
        assert second.confidence < first.confidence
        assert second.stale

    def test_single_pulse_window_keeps_previous_heart_rate(self, signal_settings):
        """A window holding one real pulse carries the last heart rate forward."""
        processor = SignalProcessor(signal_settings.model_copy(update={"recompute_every": 10_000}))
        _feed(processor, sine_frames(1.2, seconds=10))
        measured = processor.recompute()

        frames = []
        for i in range(300):
            pulse = 10.0 * math.exp(-0.5 * ((i - 150) / 2.4) ** 2)
            frames.append(SampleFrame(channels=(180.0, 100.0 + pulse, 60.0), timestamp=(300 + i) / 30))
        _feed(processor, frames)
        carried = processor.recompute()

        assert not measured.stale
        assert carried.stale
        assert carried.heart_rate == measured.heart_rate
        assert 0.0 < carried.confidence < measured.confidence
        assert ArrhythmiaFlag.BRADYCARDIA not in carried.arrhythmia_flags

    @pytest.mark.parametrize("seed", [0, 2])
    def test_noise_without_pulse_has_low_confidence(self, processor, seed):
        """Peaks picked out of broadband noise never reach the scoring floor."""
        rng = np.random.default_rng(seed)
        frames = [
            SampleFrame(channels=(180.0, 100.0 + rng.normal(0.0, 2.0), 60.0), timestamp=i / 30)
            for i in range(300)
        ]
        _feed(processor, frames)

        reading = processor.recompute()

        assert reading.confidence < 0.3

    def test_flat_signal_never_reports_zero(self, processor):
        frames = [
            SampleFrame(channels=(180.0, 100.0, 60.0), timestamp=i / 30)
            for i in range(300)
        ]
        _feed(processor, frames)
        reading = processor.recompute()

        assert reading.heart_rate > 0
        assert math.isfinite(reading.heart_rate)
        assert math.isfinite(reading.spo2)

    def test_reset_discards_state(self, processor):
        _feed(processor, sine_frames(1.2, seconds=20))
        processor.recompute()

        processor.reset()

        assert processor.latest is None
        assert len(processor.buffer) == 0
        assert processor.rr_intervals == []


class TestFrameValidation:
    """Tests for malformed and out-of-order frames."""

    def test_malformed_frames_are_dropped(self, processor):
        malformed = [
            None,
            "frame",
            SampleFrame(channels=(1.0, float("nan"), 2.0), timestamp=0.0),
            SampleFrame(channels=(1.0, 2.0), timestamp=0.0),
            SampleFrame(channels=(1.0, 2.0, 3.0), timestamp=float("inf")),
        ]
        for frame in malformed:
            assert processor.ingest(frame) is None

        assert len(processor.buffer) == 0

    def test_out_of_order_frames_are_dropped(self, processor):
        processor.ingest(SampleFrame(channels=(180.0, 100.0, 60.0), timestamp=1.0))
        processor.ingest(SampleFrame(channels=(180.0, 101.0, 60.0), timestamp=0.5))
        processor.ingest(SampleFrame(channels=(180.0, 102.0, 60.0), timestamp=1.0))

        assert len(processor.buffer) == 1

    def test_frame_to_scalar_weights_green(self):
        frame = SampleFrame(channels=(180.0, 100.0, 60.0), timestamp=0.0)
        assert frame_to_scalar(frame) == pytest.approx(40.0)


class TestRhythmFlags:
    """Tests for HRV and arrhythmia flags."""

    def test_bradycardia_flag(self, processor):
        """A 0.75 Hz pulse over 20 s reads ~45 BPM and flags bradycardia."""
        _feed(processor, sine_frames(0.75, seconds=20))
        reading = processor.recompute()

        assert reading.heart_rate == pytest.approx(45.0, abs=3.0)
        assert reading.has_flag(ArrhythmiaFlag.BRADYCARDIA)
        assert not reading.has_flag(ArrhythmiaFlag.TACHYCARDIA)

    def test_tachycardia_flag(self, processor):
        _feed(processor, sine_frames(2.5, seconds=20))
        reading = processor.recompute()

        assert reading.heart_rate == pytest.approx(150.0, abs=3.0)
        assert reading.has_flag(ArrhythmiaFlag.TACHYCARDIA)

    def test_hrv_after_enough_intervals(self, processor):
        _feed(processor, sine_frames(1.2, seconds=20))
        reading = processor.recompute()

        assert len(processor.rr_intervals) >= 10
        assert reading.hrv is not None
        assert reading.hrv.rmssd == pytest.approx(0.0, abs=40.0)
        assert VitalMetric.HRV in reading.metric_confidence
        assert not reading.has_flag(ArrhythmiaFlag.IRREGULAR_RHYTHM)

    def test_no_hrv_with_short_history(self, processor):
        _feed(processor, sine_frames(1.2, seconds=5))
        reading = processor.recompute()

        assert reading.hrv is None

    def test_irregular_rhythm_flag(self, processor):
        """Alternating 0.6 s / 1.0 s beats have a CV of 0.25."""
        _feed(processor, pulse_train_frames([18, 30] * 12))
        reading = processor.recompute()

        assert reading.has_flag(ArrhythmiaFlag.IRREGULAR_RHYTHM)

    def test_rr_history_is_not_double_counted(self, processor):
        """Overlapping windows record each beat once."""
        _feed(processor, sine_frames(1.2, seconds=20))

        assert len(processor.rr_intervals) <= 24
        assert all(rr == pytest.approx(833.3, abs=40.0) for rr in processor.rr_intervals)


class TestConfidenceCaps:
    """Tests for placement and simulation confidence caps."""

    def test_simulated_readings_are_capped(self, processor, signal_settings):
        processor.simulated = True
        _feed(processor, sine_frames(1.2, seconds=10))
        reading = processor.recompute()

        assert reading.simulated
        assert reading.confidence <= signal_settings.synthetic_confidence_cap

    def test_dark_frames_have_no_placement(self, processor):
        frames = [
            SampleFrame(
                channels=(10.0, 10.0 + 2.0 * math.sin(2 * math.pi * 1.2 * i / 30), 10.0),
                timestamp=i / 30,
            )
            for i in range(300)
        ]
        _feed(processor, frames)
        reading = processor.recompute()

        assert reading.placement_quality == PlacementQuality.NONE
        assert reading.confidence <= PlacementQuality.NONE.confidence_cap

    @pytest.mark.parametrize("coverage, brightness, stability, expected", [
        (0.9, 120.0, 0.9, PlacementQuality.EXCELLENT),
        (0.9, 220.0, 0.9, PlacementQuality.GOOD),
        (0.7, 40.0, 0.6, PlacementQuality.GOOD),
        (0.5, 10.0, 0.1, PlacementQuality.POOR),
        (0.1, 120.0, 0.9, PlacementQuality.NONE),
    ])
    def test_classify_placement(self, coverage, brightness, stability, expected):
        assert classify_placement(coverage, brightness, stability) == expected
