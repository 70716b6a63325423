"""
Calibration Profile

Empirical constants mapping PPG amplitude features to the
derived vital-sign proxies.

CLINICAL_VALIDATION_REQUIRED: None of these mappings is diagnostic.
They are placeholders that produce plausible ranges from a
camera-based signal and MUST be replaced with device-calibrated
models before any clinical use. Keep them here, in one swappable
profile, so no other module hard-codes them.
"""

from dataclasses import dataclass
from typing import Optional

from lifeline.domain.enums.vitals import VitalMetric
from lifeline.domain.models.vitals import (
    BloodPressureEstimate,
    DEFAULT_RESPIRATORY_RATE,
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class CalibrationProfile:
    """
    Constants for the heuristic proxies.

    Attributes:
        spo2_intercept: SpO2 = intercept - slope * AC/DC
        spo2_slope: See spo2_intercept
        spo2_range: Clamp for the SpO2 proxy (%)
        perfusion_range: Clamp for the perfusion index (%)
        temperature_base: Temperature at perfusion index 1.0
        temperature_gain: Degrees per unit of perfusion index
        temperature_range: Clamp for the temperature proxy
        respiration_base: Breaths/min with no baseline wander
        respiration_gain: Breaths/min added at full relative wander
        respiration_range: Clamp for the respiratory rate proxy
        respiration_min_samples: Samples needed before estimating respiration
        bp_systolic: (intercept, ptt coefficient, heart-rate coefficient)
        bp_diastolic: (intercept, ptt coefficient, heart-rate coefficient)
        bp_systolic_range: Clamp for systolic estimate
        bp_diastolic_range: Clamp for diastolic estimate
        bp_reference_rate_hz: Sample rate the ptt coefficients assume
        bp_confidence_range: Base confidence span for the BP estimate
        metric_confidence_factors: Heuristic metric confidence relative to heart rate
    """

    spo2_intercept: float = 104.0
    spo2_slope: float = 17.0
    spo2_range: tuple[float, float] = (85.0, 100.0)

    perfusion_range: tuple[float, float] = (0.1, 5.0)

    temperature_base: float = 36.5
    temperature_gain: float = 0.5
    temperature_range: tuple[float, float] = (35.5, 37.8)

    respiration_base: float = 12.0
    respiration_gain: float = 8.0
    respiration_range: tuple[float, float] = (8.0, 30.0)
    respiration_min_samples: int = 200

    bp_systolic: tuple[float, float, float] = (120.0, 0.5, 0.3)
    bp_diastolic: tuple[float, float, float] = (80.0, 0.3, 0.2)
    bp_systolic_range: tuple[float, float] = (90.0, 200.0)
    bp_diastolic_range: tuple[float, float] = (60.0, 120.0)
    bp_reference_rate_hz: float = 20.0
    bp_confidence_range: tuple[float, float] = (0.5, 0.85)

    metric_confidence_factors: tuple[tuple[VitalMetric, float], ...] = (
        (VitalMetric.SPO2, 0.6),
        (VitalMetric.PERFUSION_INDEX, 0.7),
        (VitalMetric.RESPIRATORY_RATE, 0.5),
        (VitalMetric.TEMPERATURE, 0.4),
    )

    def spo2(self, ac: float, dc: float) -> float:
        """SpO2 proxy from the pulsatile/steady ratio."""
        ratio = ac / dc if dc > 0 else 0.0
        return _clamp(self.spo2_intercept - self.spo2_slope * ratio, *self.spo2_range)

    def perfusion_index(self, ac: float, dc: float) -> float:
        ratio = ac / dc if dc > 0 else 0.0
        return _clamp(100.0 * ratio, *self.perfusion_range)

    def temperature(self, perfusion_index: float) -> float:
        """Temperature proxy from peripheral perfusion."""
        value = self.temperature_base + (perfusion_index - 1.0) * self.temperature_gain
        return _clamp(value, *self.temperature_range)

    def respiratory_rate(self, wander: float, ac: float, sample_count: int) -> float:
        """
        Respiratory rate proxy from baseline wander relative to pulse amplitude.

        Returns the resting default until enough samples are buffered.
        """
        if sample_count < self.respiration_min_samples or ac <= 0:
            return DEFAULT_RESPIRATORY_RATE
        relative = min(1.0, wander / ac)
        value = self.respiration_base + self.respiration_gain * relative
        return _clamp(value, *self.respiration_range)

    def blood_pressure(
        self,
        mean_rr_ms: float,
        heart_rate: float,
        heart_rate_confidence: float,
        sample_count: int,
    ) -> Optional[BloodPressureEstimate]:
        """
        Heuristic blood pressure from inter-beat spacing and heart rate.

        SAFETY_NOTE: Confidence is kept strictly below the heart-rate
        confidence; no estimate is returned when that is zero.

        Args:
            mean_rr_ms: Mean inter-peak interval in milliseconds
            heart_rate: Heart rate the estimate is anchored to
            heart_rate_confidence: Confidence of that heart rate
            sample_count: Buffered samples (more samples, higher base confidence)

        Returns:
            BloodPressureEstimate or None
        """
        if heart_rate_confidence <= 0 or mean_rr_ms <= 0:
            return None

        ptt = mean_rr_ms / 1000.0 * self.bp_reference_rate_hz
        s0, s_ptt, s_hr = self.bp_systolic
        d0, d_ptt, d_hr = self.bp_diastolic
        systolic = _clamp(s0 - s_ptt * ptt + s_hr * heart_rate, *self.bp_systolic_range)
        diastolic = _clamp(d0 - d_ptt * ptt + d_hr * heart_rate, *self.bp_diastolic_range)

        low, high = self.bp_confidence_range
        base = _clamp(low + sample_count / 5000.0, low, high)
        confidence = min(base, heart_rate_confidence * 0.9)

        return BloodPressureEstimate(
            systolic=systolic,
            diastolic=diastolic,
            confidence=confidence,
        )

    def metric_confidence(self, heart_rate_confidence: float) -> dict[VitalMetric, float]:
        """Per-metric confidence derived from heart-rate confidence."""
        confidence = {VitalMetric.HEART_RATE: heart_rate_confidence}
        for metric, factor in self.metric_confidence_factors:
            confidence[metric] = heart_rate_confidence * factor
        return confidence


DEFAULT_CALIBRATION = CalibrationProfile()
