"""
Signal Filters

Pure numpy/scipy helpers used by the signal processor: symmetric
moving-average band-pass approximation, adaptive peak detection
and amplitude/variability features.

All functions are side-effect free and accept plain arrays.
"""

import numpy as np
from scipy import signal as scipy_signal


def moving_average(values: np.ndarray, window: int) -> np.ndarray:
    """
    Symmetric (zero-phase) moving average with edge padding.

    Args:
        values: Input samples
        window: Window length in samples; even lengths are widened by one

    Returns:
        Smoothed array of the same length
    """
    values = np.asarray(values, dtype=float)
    if window <= 1 or values.size == 0:
        return values.copy()
    if window % 2 == 0:
        window += 1

    pad = window // 2
    padded = np.pad(values, pad, mode="edge")
    kernel = np.ones(window) / window
    return np.convolve(padded, kernel, mode="valid")


def bandpass_window_sizes(sample_rate_hz: float, low_cut_hz: float, high_cut_hz: float) -> tuple[int, int]:
    """
    Moving-average lengths approximating a band-pass filter.

    Returns:
        (baseline_window, smoothing_window) in samples
    """
    baseline_window = max(3, int(round(sample_rate_hz / low_cut_hz)))
    smoothing_window = max(1, int(round(sample_rate_hz / (2.0 * high_cut_hz))))
    return baseline_window, smoothing_window


def bandpass(
    values: np.ndarray,
    sample_rate_hz: float,
    low_cut_hz: float,
    high_cut_hz: float,
) -> np.ndarray:
    """
    Restrict a signal to the physiological heart-rate band.

    A long moving average (about one low-cut period) is subtracted to
    remove baseline wander, then a short moving average suppresses
    content above the high cut. Both are symmetric, so peak positions
    are not shifted.
    """
    baseline_window, smoothing_window = bandpass_window_sizes(
        sample_rate_hz, low_cut_hz, high_cut_hz
    )
    values = np.asarray(values, dtype=float)
    baseline = moving_average(values, baseline_window)
    return moving_average(values - baseline, smoothing_window)


def baseline_wander(values: np.ndarray, sample_rate_hz: float, low_cut_hz: float) -> np.ndarray:
    """Slow component below the heart-rate band, mean removed."""
    baseline_window, _ = bandpass_window_sizes(sample_rate_hz, low_cut_hz, low_cut_hz * 2)
    baseline = moving_average(np.asarray(values, dtype=float), baseline_window)
    return baseline - np.mean(baseline)


def detect_peaks(
    filtered: np.ndarray,
    sample_rate_hz: float,
    max_heart_rate: float,
    threshold_ratio: float,
    edge: int = 0,
) -> np.ndarray:
    """
    Detect pulse peaks with an adaptive threshold.

    Peaks must exceed `threshold_ratio` of the local maximum and be at
    least one beat at `max_heart_rate` apart. Samples within `edge` of
    either end are ignored because the filters are unreliable there.

    Returns:
        Indices of detected peaks into `filtered`
    """
    filtered = np.asarray(filtered, dtype=float)
    if filtered.size - 2 * edge < 3:
        edge = 0
    segment = filtered[edge:filtered.size - edge] if edge else filtered
    if segment.size < 3:
        return np.array([], dtype=int)

    local_max = float(np.max(segment))
    if not np.isfinite(local_max) or local_max <= 0:
        return np.array([], dtype=int)

    min_distance = max(1, int(sample_rate_hz * 60.0 / max_heart_rate))
    peaks, _ = scipy_signal.find_peaks(
        segment,
        height=threshold_ratio * local_max,
        distance=min_distance,
    )
    return peaks + edge


def ac_component(values: np.ndarray) -> float:
    """Pulsatile amplitude: mean absolute deviation from the mean."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return 0.0
    return float(np.mean(np.abs(values - np.mean(values))))


def dc_component(values: np.ndarray) -> float:
    """Steady amplitude: magnitude of the mean."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return 0.0
    return float(abs(np.mean(values)))


def signal_stability(values: np.ndarray, scale: float = 50.0) -> float:
    """
    Short-term stability in [0, 1].

    One minus the mean absolute sample-to-sample change relative to `scale`.
    """
    values = np.asarray(values, dtype=float)
    if values.size < 2:
        return 0.0
    mean_step = float(np.mean(np.abs(np.diff(values))))
    return max(0.0, 1.0 - mean_step / scale)


def periodicity(filtered: np.ndarray, lag: int, tolerance: float = 0.1, edge: int = 0) -> float:
    """
    Normalised autocorrelation around one beat period, in [0, 1].

    A pulse repeats itself one RR interval later; broadband noise does
    not. The best correlation within `tolerance` of `lag` is returned,
    negative correlations count as zero.

    Args:
        filtered: Band-passed signal
        lag: Expected beat period in samples
        tolerance: Fraction of `lag` searched either side
        edge: Samples ignored at both ends

    Returns:
        Periodicity score (0 = none, 1 = identical beats)
    """
    filtered = np.asarray(filtered, dtype=float)
    if edge and filtered.size - 2 * edge > 0:
        filtered = filtered[edge:filtered.size - edge]
    if lag < 1 or filtered.size <= lag + 2:
        return 0.0

    spread = max(1, int(round(lag * tolerance)))
    best = 0.0
    for candidate in range(max(1, lag - spread), lag + spread + 1):
        if filtered.size <= candidate + 2:
            break
        head = filtered[:-candidate] - np.mean(filtered[:-candidate])
        tail = filtered[candidate:] - np.mean(filtered[candidate:])
        norm = float(np.sqrt(np.sum(head ** 2) * np.sum(tail ** 2)))
        if norm <= 0 or not np.isfinite(norm):
            continue
        best = max(best, float(np.sum(head * tail)) / norm)
    return min(1.0, best)


def coefficient_of_variation(values: np.ndarray) -> float:
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return 0.0
    mean = float(np.mean(values))
    if mean == 0:
        return 0.0
    return float(np.std(values)) / mean


def rmssd(rr_intervals_ms: np.ndarray) -> float:
    """Root mean square of successive RR differences."""
    rr = np.asarray(rr_intervals_ms, dtype=float)
    if rr.size < 2:
        return 0.0
    return float(np.sqrt(np.mean(np.diff(rr) ** 2)))


def sdnn(rr_intervals_ms: np.ndarray) -> float:
    """Standard deviation of RR intervals."""
    rr = np.asarray(rr_intervals_ms, dtype=float)
    if rr.size == 0:
        return 0.0
    return float(np.std(rr))
