"""
Signal Processor

Converts the stream of acquisition frames into VitalReadings.

SAFETY-CRITICAL: This component must never raise on bad input and
must never report 0 or NaN for a vital sign. When it cannot measure
it repeats the last reading with decayed confidence.

Pipeline per recompute:
1. Band-pass the buffered PPG scalar (symmetric moving averages)
2. Detect pulse peaks, derive RR intervals and heart rate
3. Derive amplitude features (AC/DC) and the heuristic proxies
4. Update RR history, HRV and arrhythmia flags
5. Estimate placement quality and cap confidence accordingly

CLINICAL_VALIDATION_REQUIRED: Only heart rate is a direct
measurement. Every other metric is a heuristic proxy.
"""

from collections import deque
from dataclasses import replace
from typing import Optional

import numpy as np

from lifeline.config.logging_config import get_logger
from lifeline.config.settings import SignalSettings, get_settings
from lifeline.domain.enums.vitals import ArrhythmiaFlag, PlacementQuality, VitalMetric
from lifeline.domain.models.signal import SampleFrame
from lifeline.domain.models.vitals import DEFAULT_HEART_RATE, HRVMetrics, VitalReading
from lifeline.infrastructure.metrics import (
    time_recompute,
    track_dropped_frame,
    track_vital_reading,
)
from lifeline.services.signal import filters
from lifeline.services.signal.buffer import SignalBuffer
from lifeline.services.signal.calibration import DEFAULT_CALIBRATION, CalibrationProfile

logger = get_logger(__name__)


# Channel weights reducing a frame to the PPG scalar (red, green, blue)
CHANNEL_WEIGHTS = (-0.3, 1.0, -0.1)

# Samples used for placement stability, brightness and coverage
PLACEMENT_WINDOW = 20


def frame_to_scalar(frame: SampleFrame) -> float:
    """Reduce a frame to the PPG scalar: green compensated by red and blue."""
    return sum(w * c for w, c in zip(CHANNEL_WEIGHTS, frame.channels))


def classify_placement(coverage: float, brightness: float, stability: float) -> PlacementQuality:
    """
    Placement quality from reflectance coverage, brightness and stability.

    Args:
        coverage: Fraction (0-1) of the frame matching the skin profile
        brightness: Mean channel intensity (0-255)
        stability: Short-term buffer stability (0-1)

    Returns:
        PlacementQuality level
    """
    if coverage > 0.8 and 50 < brightness < 200 and stability > 0.7:
        return PlacementQuality.EXCELLENT
    if coverage > 0.6 and brightness > 30 and stability > 0.5:
        return PlacementQuality.GOOD
    if coverage > 0.4:
        return PlacementQuality.POOR
    return PlacementQuality.NONE


class SignalProcessor:
    """
    Rolling-window vital-sign extractor.

    Owned by a single sampling task: ingest() and recompute() are
    not thread-safe. `latest` may be read from anywhere since
    readings are immutable.

    Usage:
        processor = SignalProcessor(settings.signal)
        reading = processor.ingest(frame)  # VitalReading every N frames
    """

    def __init__(
        self,
        settings: Optional[SignalSettings] = None,
        calibration: CalibrationProfile = DEFAULT_CALIBRATION,
    ) -> None:
        """
        Initialize processor.

        Args:
            settings: Signal settings (defaults to application settings)
            calibration: Constants for the heuristic proxies
        """
        self._settings = settings or get_settings().signal
        self._calibration = calibration
        self._buffer = SignalBuffer(self._settings.capacity)
        self._brightness: deque[float] = deque(maxlen=PLACEMENT_WINDOW)
        self._coverage: deque[float] = deque(maxlen=PLACEMENT_WINDOW)
        self._rr_history: deque[float] = deque(maxlen=self._settings.rr_history_size)
        self._last_peak_time: Optional[float] = None
        self._last_timestamp: Optional[float] = None
        self._frames_since_recompute = 0
        self._latest: Optional[VitalReading] = None
        self.simulated = False

    @property
    def latest(self) -> Optional[VitalReading]:
        """Most recent reading, or None before the first recompute."""
        return self._latest

    @property
    def buffer(self) -> SignalBuffer:
        return self._buffer

    @property
    def rr_intervals(self) -> list[float]:
        """Rolling RR history in milliseconds, oldest first."""
        return list(self._rr_history)

    def reset(self) -> None:
        """Discard buffered samples, RR history and the latest reading."""
        self._buffer.clear()
        self._brightness.clear()
        self._coverage.clear()
        self._rr_history.clear()
        self._last_peak_time = None
        self._last_timestamp = None
        self._frames_since_recompute = 0
        self._latest = None
        logger.info("Signal processor reset")

    def ingest(self, frame: SampleFrame) -> Optional[VitalReading]:
        """
        Buffer one frame and recompute on the configured cadence.

        Malformed or out-of-order frames are logged and dropped.

        Args:
            frame: Acquisition frame

        Returns:
            New VitalReading when a recompute ran, else None
        """
        if not self._is_well_formed(frame):
            logger.warning("Dropping malformed frame", frame_type=type(frame).__name__)
            track_dropped_frame("malformed")
            return None

        if self._last_timestamp is not None and frame.timestamp <= self._last_timestamp:
            logger.debug(
                "Dropping out-of-order frame",
                timestamp=frame.timestamp,
                last_timestamp=self._last_timestamp,
            )
            track_dropped_frame("out_of_order")
            return None

        self._last_timestamp = frame.timestamp
        self._buffer.push(frame_to_scalar(frame), frame.timestamp)
        self._brightness.append(frame.brightness)
        self._coverage.append(frame.effective_coverage())

        self._frames_since_recompute += 1
        if self._frames_since_recompute < self._settings.recompute_every:
            return None

        self._frames_since_recompute = 0
        return self.recompute()

    def recompute(self) -> VitalReading:
        """
        Produce a reading from the current buffer.

        Never raises. With too few samples the previous reading is
        returned with decayed confidence (or the default reading).

        Returns:
            VitalReading (also stored as `latest`)
        """
        with time_recompute():
            if len(self._buffer) < self._settings.min_samples:
                reading = self._degraded_reading()
            else:
                reading = self._measure()

        self._latest = reading
        track_vital_reading(reading.placement_quality.value, reading.stale, reading.confidence)
        return reading

    # =========================================================================
    # MEASUREMENT
    # =========================================================================

    def _measure(self) -> VitalReading:
        settings = self._settings
        calibration = self._calibration
        previous = self._latest

        values = self._buffer.values()
        timestamps = self._buffer.timestamps()
        sample_count = values.size

        filtered = filters.bandpass(
            values, settings.sample_rate_hz, settings.low_cut_hz, settings.high_cut_hz
        )
        baseline_window, _ = filters.bandpass_window_sizes(
            settings.sample_rate_hz, settings.low_cut_hz, settings.high_cut_hz
        )
        peaks = filters.detect_peaks(
            filtered,
            settings.sample_rate_hz,
            settings.max_heart_rate,
            settings.peak_threshold_ratio,
            edge=baseline_window // 2,
        )

        placement = self._placement_quality()
        cap = placement.confidence_cap
        if self.simulated:
            cap = min(cap, settings.synthetic_confidence_cap)

        measured = peaks.size >= 2
        if measured:
            peak_times = timestamps[peaks]
            rr_ms = np.diff(peak_times) * 1000.0
            self._record_rr(peak_times)
            heart_rate = float(np.clip(
                60000.0 / float(np.mean(rr_ms)),
                settings.min_heart_rate,
                settings.max_heart_rate,
            ))
            regularity = 1.0 - min(1.0, filters.coefficient_of_variation(rr_ms))
            lag = int(round(float(np.mean(rr_ms)) / 1000.0 * settings.sample_rate_hz))
            periodicity = filters.periodicity(filtered, lag, edge=baseline_window // 2)
            # Peaks found in noise have no repeating beat shape
            periodic_weight = float(np.clip(
                (periodicity - settings.periodicity_floor)
                / (settings.periodicity_full - settings.periodicity_floor),
                0.0,
                1.0,
            ))
            hr_confidence = cap * (0.5 + 0.5 * regularity) * periodic_weight
            logger.debug(
                "Heart rate measured",
                heart_rate=round(heart_rate, 1),
                peaks=int(peaks.size),
                periodicity=round(periodicity, 3),
            )
        else:
            heart_rate = previous.heart_rate if previous else settings.default_heart_rate
            hr_confidence = min(
                cap,
                (previous.confidence if previous else 0.0) * settings.confidence_decay,
            )
            logger.debug("Too few peaks, keeping previous heart rate", peaks=int(peaks.size))

        if not np.isfinite(heart_rate) or heart_rate <= 0:
            heart_rate = DEFAULT_HEART_RATE

        ac = filters.ac_component(filtered)
        dc = filters.dc_component(values)
        perfusion_index = calibration.perfusion_index(ac, dc)
        wander = float(np.std(filters.baseline_wander(
            values, settings.sample_rate_hz, settings.low_cut_hz
        )))

        metric_confidence = calibration.metric_confidence(hr_confidence)
        blood_pressure = calibration.blood_pressure(
            60000.0 / heart_rate, heart_rate, hr_confidence, sample_count
        )
        if blood_pressure is not None:
            metric_confidence[VitalMetric.BLOOD_PRESSURE] = blood_pressure.confidence

        hrv = self._hrv()
        if hrv is not None:
            metric_confidence[VitalMetric.HRV] = hr_confidence

        return VitalReading(
            heart_rate=heart_rate,
            spo2=calibration.spo2(ac, dc),
            temperature=calibration.temperature(perfusion_index),
            respiratory_rate=calibration.respiratory_rate(wander, ac, sample_count),
            perfusion_index=perfusion_index,
            hrv=hrv,
            blood_pressure=blood_pressure,
            arrhythmia_flags=self._arrhythmia_flags(heart_rate if measured else None),
            placement_quality=placement,
            confidence=hr_confidence,
            metric_confidence=metric_confidence,
            simulated=self.simulated,
            stale=not measured,
            sample_count=sample_count,
        )

    def _degraded_reading(self) -> VitalReading:
        if self._latest is None:
            return replace(
                VitalReading.default(simulated=self.simulated),
                sample_count=len(self._buffer),
            )
        return replace(
            self._latest.decayed(self._settings.confidence_decay),
            sample_count=len(self._buffer),
        )

    def _record_rr(self, peak_times: np.ndarray) -> None:
        """
        Append RR intervals ending at peaks not seen by earlier recomputes.

        Consecutive windows overlap, so a peak is new only when it lies
        later than the last recorded peak by more than half the shortest
        plausible beat.
        """
        tolerance = 0.5 * 60.0 / self._settings.max_heart_rate
        for previous, current in zip(peak_times[:-1], peak_times[1:]):
            if self._last_peak_time is not None and current <= self._last_peak_time + tolerance:
                continue
            self._rr_history.append(float(current - previous) * 1000.0)
            self._last_peak_time = float(current)

    def _hrv(self) -> Optional[HRVMetrics]:
        if len(self._rr_history) < self._settings.min_rr_for_hrv:
            return None
        rr = np.asarray(self._rr_history, dtype=float)
        rmssd = filters.rmssd(rr)
        return HRVMetrics(
            rmssd=rmssd,
            sdnn=filters.sdnn(rr),
            stress_index=float(np.clip(100.0 - rmssd / 2.0, 0.0, 100.0)),
            interval_count=int(rr.size),
        )

    def _arrhythmia_flags(self, heart_rate: Optional[float]) -> frozenset[ArrhythmiaFlag]:
        """
        Rhythm flags for this cycle.

        Args:
            heart_rate: Heart rate measured this cycle, None if carried over
        """
        settings = self._settings
        flags: set[ArrhythmiaFlag] = set()

        window = list(self._rr_history)[-settings.rhythm_window:]
        if len(window) >= settings.min_rr_for_hrv:
            rr = np.asarray(window, dtype=float)
            mean = float(np.mean(rr))
            if filters.coefficient_of_variation(rr) > settings.irregular_cv_threshold:
                flags.add(ArrhythmiaFlag.IRREGULAR_RHYTHM)
            if np.any(np.abs(rr - mean) > settings.premature_beat_fraction * mean):
                flags.add(ArrhythmiaFlag.POSSIBLE_PREMATURE_BEAT)

        if heart_rate is not None:
            if heart_rate < settings.bradycardia_below:
                flags.add(ArrhythmiaFlag.BRADYCARDIA)
            elif heart_rate > settings.tachycardia_above:
                flags.add(ArrhythmiaFlag.TACHYCARDIA)

        return frozenset(flags)

    def _placement_quality(self) -> PlacementQuality:
        if not self._brightness:
            return PlacementQuality.NONE
        return classify_placement(
            coverage=float(np.mean(self._coverage)),
            brightness=float(np.mean(self._brightness)),
            stability=filters.signal_stability(self._buffer.tail(PLACEMENT_WINDOW)),
        )

    @staticmethod
    def _is_well_formed(frame: object) -> bool:
        if not isinstance(frame, SampleFrame):
            return False
        try:
            channels = np.asarray(frame.channels, dtype=float)
            timestamp = float(frame.timestamp)
        except (TypeError, ValueError):
            return False
        return channels.shape == (3,) and bool(np.all(np.isfinite(channels))) and np.isfinite(timestamp)
