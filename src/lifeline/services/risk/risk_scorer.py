"""
Risk Scorer

Fuses vitals, environmental readings and discrete events into a
single RiskScore.

SAFETY-CRITICAL: The overall tier is the maximum of the category
tiers ("critical dominates"). A single critical input forces a
critical score regardless of how benign everything else is. The
weighted scalar exists only for trend display and never lowers
the tier.

ARCHITECTURE: Every operation mutates the held inputs and recomputes
the score atomically under one lock, so concurrent readers always
see a consistent RiskScore.
"""

import math
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from lifeline.config.logging_config import get_logger
from lifeline.config.settings import RiskSettings, get_settings
from lifeline.domain.enums.tiers import RiskTier, RiskTrend
from lifeline.domain.enums.vitals import ArrhythmiaFlag, VitalMetric
from lifeline.domain.models.risk import (
    ContributingFactor,
    EnvironmentalFactor,
    RiskCategory,
    RiskScore,
    SymptomEvent,
)
from lifeline.domain.models.vitals import VitalReading
from lifeline.infrastructure.metrics import track_risk_score

logger = get_logger(__name__)


# Scores compared on each side of the trend window
TREND_WINDOW = 5


@dataclass
class VitalThresholds:
    """
    Out-of-range limits for vital signs.

    CLINICAL_VALIDATION_REQUIRED: All threshold values
    require clinical validation before production use.
    """

    # Heart rate (BPM)
    heart_rate_critical_low: float = 40.0
    heart_rate_critical_high: float = 150.0
    heart_rate_low: float = 50.0
    heart_rate_high: float = 120.0

    # SpO2 (%)
    spo2_critical: float = 88.0
    spo2_high: float = 92.0
    spo2_low: float = 95.0

    # Temperature (Celsius)
    temperature_critical_low: float = 35.0
    temperature_critical_high: float = 39.0

    # Respiratory rate (breaths/min)
    respiration_critical_low: float = 8.0
    respiration_critical_high: float = 30.0
    respiration_low: float = 12.0
    respiration_high: float = 20.0

    # HRV stress index above which stress contributes to the scalar
    stress_index_high: float = 70.0


class RiskScorer:
    """
    Stateful multi-input risk scorer.

    Inputs:
    1. Latest VitalReading (ignored below the confidence floor)
    2. Latest environmental factor per kind
    3. Discrete events, expiring after a TTL

    Usage:
        scorer = RiskScorer(settings.risk)
        score = scorer.record_event(SymptomEvent(code=EventCode.FALL))
    """

    # Points per factor at full tier and confidence
    # CLINICAL_VALIDATION_REQUIRED
    FACTOR_WEIGHTS = {
        "fall": 40.0,
        "crash": 45.0,
        "distress_audio": 35.0,
        "low_spo2": 30.0,
        "abnormal_hr": 25.0,
        "stillness": 15.0,
        "stress": 20.0,
        "environmental": 25.0,
        "manual_sos": 50.0,
        "symptom": 30.0,
        "abnormal_temperature": 20.0,
        "abnormal_respiration": 20.0,
        "irregular_rhythm": 25.0,
    }

    def __init__(
        self,
        settings: Optional[RiskSettings] = None,
        thresholds: Optional[VitalThresholds] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialize risk scorer.

        Args:
            settings: Risk settings (defaults to application settings)
            thresholds: Vital sign limits
            clock: Returns the current UTC time (injectable for tests)
        """
        self._settings = settings or get_settings().risk
        self.thresholds = thresholds or VitalThresholds()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()

        self._vitals: Optional[VitalReading] = None
        self._environment: dict[str, EnvironmentalFactor] = {}
        self._events: list[SymptomEvent] = []
        self._history: deque[float] = deque(maxlen=self._settings.history_size)
        self._current = RiskScore(computed_at=self._clock())

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def current(self) -> RiskScore:
        """Most recently computed score."""
        with self._lock:
            return self._current

    def update_vitals(self, reading: VitalReading) -> RiskScore:
        with self._lock:
            self._vitals = reading
            return self._recompute()

    def record_event(self, event: SymptomEvent) -> RiskScore:
        """
        Add a discrete event.

        Args:
            event: Event with an optional explicit tier

        Returns:
            Updated RiskScore
        """
        with self._lock:
            self._events.append(event)
            logger.info(
                "Risk event recorded",
                code=event.code.value,
                tier=event.effective_tier.label,
                confidence=event.confidence,
            )
            return self._recompute()

    def update_environment(self, factors: Iterable[EnvironmentalFactor]) -> RiskScore:
        """Replace the latest reading for each factor kind."""
        with self._lock:
            for factor in factors:
                self._environment[factor.kind] = factor
            return self._recompute()

    def clear_environment(self) -> RiskScore:
        with self._lock:
            self._environment.clear()
            return self._recompute()

    def clear_events(self) -> RiskScore:
        with self._lock:
            self._events.clear()
            return self._recompute()

    def refresh(self) -> RiskScore:
        """Recompute with current inputs (drops expired events)."""
        with self._lock:
            return self._recompute()

    def history(self) -> list[float]:
        """Recent scalar scores, oldest first."""
        with self._lock:
            return list(self._history)

    # =========================================================================
    # SCORING
    # =========================================================================

    def _recompute(self) -> RiskScore:
        """Compute and store a new score. Caller holds the lock."""
        now = self._clock()
        self._expire_events(now)

        factors: list[ContributingFactor] = []
        factors.extend(self._vital_factors(self._vitals))
        factors.extend(self._environment_factors())
        factors.extend(self._event_factors(now))

        category_tiers = {category: RiskTier.LOW for category in RiskCategory}
        for factor in factors:
            if factor.tier > category_tiers[factor.category]:
                category_tiers[factor.category] = factor.tier

        # SAFETY: Overall tier is the maximum, never an average
        tier = max(category_tiers.values())
        scalar = min(100.0, max(0.0, sum(f.contribution for f in factors)))

        self._history.append(scalar)
        previous_tier = self._current.tier

        score = RiskScore(
            scalar=scalar,
            tier=tier,
            contributing_factors=tuple(factors),
            category_tiers=category_tiers,
            trend=self._trend(),
            computed_at=now,
        )
        self._current = score

        if tier != previous_tier:
            logger.info(
                "Risk tier changed",
                from_tier=previous_tier.label,
                to_tier=tier.label,
                scalar=round(scalar, 1),
                factor_count=len(factors),
            )
        track_risk_score(tier.label, scalar)
        return score

    def _expire_events(self, now: datetime) -> None:
        ttl = timedelta(seconds=self._settings.event_ttl_seconds)
        kept = [e for e in self._events if now - e.timestamp <= ttl]
        expired = len(self._events) - len(kept)
        if expired:
            logger.debug("Risk events expired", count=expired)
        self._events = kept

    def _factor(
        self,
        category: RiskCategory,
        name: str,
        weight_key: str,
        tier: RiskTier,
        confidence: float,
        detail: str,
    ) -> ContributingFactor:
        contribution = self.FACTOR_WEIGHTS[weight_key] * (tier / RiskTier.CRITICAL) * confidence
        return ContributingFactor(
            category=category,
            name=name,
            tier=tier,
            contribution=contribution,
            detail=detail,
        )

    def _vital_factors(self, reading: Optional[VitalReading]) -> list[ContributingFactor]:
        """
        Out-of-range vitals.

        SAFETY_NOTE: Readings below the confidence floor count as
        absent (tier low) so noise never escalates on its own.
        """
        if reading is None or reading.confidence < self._settings.min_vitals_confidence:
            return []

        t = self.thresholds
        confidence = reading.confidence
        metric_confidence = reading.metric_confidence
        factors: list[ContributingFactor] = []
        vitals = RiskCategory.VITALS

        hr = reading.heart_rate
        if hr < t.heart_rate_critical_low or hr > t.heart_rate_critical_high:
            factors.append(self._factor(
                vitals, "abnormal_hr", "abnormal_hr", RiskTier.CRITICAL, confidence,
                f"Heart rate {hr:.0f} BPM outside critical range",
            ))
        elif hr < t.heart_rate_low or hr > t.heart_rate_high:
            factors.append(self._factor(
                vitals, "abnormal_hr", "abnormal_hr", RiskTier.MEDIUM, confidence,
                f"Heart rate {hr:.0f} BPM out of range",
            ))

        spo2 = reading.spo2
        spo2_tier = None
        if spo2 < t.spo2_critical:
            spo2_tier = RiskTier.CRITICAL
        elif spo2 < t.spo2_high:
            spo2_tier = RiskTier.HIGH
        elif spo2 < t.spo2_low:
            spo2_tier = RiskTier.MEDIUM
        if spo2_tier is not None:
            factors.append(self._factor(
                vitals, "low_spo2", "low_spo2", spo2_tier,
                metric_confidence.get(VitalMetric.SPO2, confidence),
                f"SpO2 {spo2:.0f}% below {t.spo2_low:.0f}%",
            ))

        temperature = reading.temperature
        if temperature < t.temperature_critical_low or temperature > t.temperature_critical_high:
            factors.append(self._factor(
                vitals, "abnormal_temperature", "abnormal_temperature", RiskTier.CRITICAL,
                metric_confidence.get(VitalMetric.TEMPERATURE, confidence),
                f"Temperature {temperature:.1f} C outside critical range",
            ))

        rr = reading.respiratory_rate
        rr_tier = None
        if rr < t.respiration_critical_low or rr > t.respiration_critical_high:
            rr_tier = RiskTier.CRITICAL
        elif rr < t.respiration_low or rr > t.respiration_high:
            rr_tier = RiskTier.MEDIUM
        if rr_tier is not None:
            factors.append(self._factor(
                vitals, "abnormal_respiration", "abnormal_respiration", rr_tier,
                metric_confidence.get(VitalMetric.RESPIRATORY_RATE, confidence),
                f"Respiratory rate {rr:.0f}/min out of range",
            ))

        if reading.has_flag(ArrhythmiaFlag.IRREGULAR_RHYTHM):
            factors.append(self._factor(
                vitals, "irregular_rhythm", "irregular_rhythm", RiskTier.MEDIUM, confidence,
                "Irregular rhythm detected",
            ))

        if reading.hrv is not None and reading.hrv.stress_index > t.stress_index_high:
            factors.append(self._factor(
                vitals, "stress", "stress", RiskTier.LOW,
                confidence * reading.hrv.stress_index / 100.0,
                f"Stress index {reading.hrv.stress_index:.0f}",
            ))

        return factors

    def _environment_factors(self) -> list[ContributingFactor]:
        factors = []
        for factor in self._environment.values():
            tier = factor.tier.to_risk_tier()
            if tier == RiskTier.LOW:
                continue
            factors.append(self._factor(
                RiskCategory.ENVIRONMENT, factor.kind, "environmental", tier, 1.0,
                f"{factor.kind} reading {factor.value} is {factor.tier.value}",
            ))
        return factors

    def _event_factors(self, now: datetime) -> list[ContributingFactor]:
        """
        Recorded events, weighted down exponentially with age.

        SAFETY_NOTE: Decay only shrinks the scalar contribution. An
        event keeps its full tier until it expires.
        """
        factors = []
        decay_seconds = self._settings.event_decay_seconds
        for event in self._events:
            tier = event.effective_tier
            weight_key = event.code.value if event.code.value in self.FACTOR_WEIGHTS else "symptom"
            age = max(0.0, (now - event.timestamp).total_seconds())
            weight = event.confidence * math.exp(-age / decay_seconds)
            factors.append(self._factor(
                RiskCategory.EVENTS, event.code.value, weight_key, tier, weight,
                event.description or f"{event.code.value} event",
            ))
        return factors

    def _trend(self) -> RiskTrend:
        if len(self._history) < 2 * TREND_WINDOW:
            return RiskTrend.STABLE
        scores = list(self._history)
        recent = sum(scores[-TREND_WINDOW:]) / TREND_WINDOW
        previous = sum(scores[-2 * TREND_WINDOW:-TREND_WINDOW]) / TREND_WINDOW
        delta = recent - previous
        if delta >= self._settings.trend_delta:
            return RiskTrend.RISING
        if delta <= -self._settings.trend_delta:
            return RiskTrend.FALLING
        return RiskTrend.STABLE

