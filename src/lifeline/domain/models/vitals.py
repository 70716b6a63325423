"""
Vital Reading Models

Immutable snapshots produced by the signal processor on each
recompute cycle. A new reading replaces the previous one; readers
never observe a reading being mutated.

SAFETY-CRITICAL: Every value here is a heuristic estimate from a
camera PPG proxy. Confidence is the only signal of trustworthiness
and metrics listed in `heuristic_metrics` are indirect proxies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from lifeline.domain.enums.vitals import ArrhythmiaFlag, PlacementQuality, VitalMetric


# Values reported before any measurement exists
DEFAULT_HEART_RATE = 70.0
DEFAULT_SPO2 = 98.0
DEFAULT_TEMPERATURE = 36.6
DEFAULT_RESPIRATORY_RATE = 16.0
DEFAULT_PERFUSION_INDEX = 1.2

HEURISTIC_METRICS: frozenset[VitalMetric] = frozenset({
    VitalMetric.SPO2,
    VitalMetric.TEMPERATURE,
    VitalMetric.RESPIRATORY_RATE,
    VitalMetric.PERFUSION_INDEX,
    VitalMetric.BLOOD_PRESSURE,
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HRVMetrics:
    """
    Heart-rate variability from RR intervals.

    Attributes:
        rmssd: Root mean square of successive RR differences (ms)
        sdnn: Standard deviation of RR intervals (ms)
        stress_index: 0-100, inversely related to RMSSD
        interval_count: Number of RR intervals used
    """

    rmssd: float
    sdnn: float
    stress_index: float
    interval_count: int

    def to_dict(self) -> dict:
        return {
            "rmssd": round(self.rmssd, 1),
            "sdnn": round(self.sdnn, 1),
            "stress_index": round(self.stress_index),
            "interval_count": self.interval_count,
        }


@dataclass(frozen=True)
class BloodPressureEstimate:
    """
    Non-diagnostic blood pressure estimate.

    SAFETY_NOTE: Always reported with its own confidence, which is
    kept strictly below heart-rate confidence.
    """

    systolic: float
    diastolic: float
    confidence: float

    def to_dict(self) -> dict:
        return {
            "systolic": round(self.systolic),
            "diastolic": round(self.diastolic),
            "confidence": round(self.confidence, 3),
        }


@dataclass(frozen=True)
class VitalReading:
    """
    Complete vital-sign snapshot.

    Attributes:
        heart_rate: Beats per minute, never 0 or NaN
        spo2: Oxygen saturation proxy (%)
        temperature: Body temperature proxy (Celsius)
        respiratory_rate: Breaths per minute proxy
        perfusion_index: Pulsatile/steady amplitude ratio (%)
        hrv: HRV metrics once enough RR intervals exist
        blood_pressure: Heuristic blood pressure estimate
        arrhythmia_flags: Deduplicated rhythm flags
        placement_quality: Sensor placement estimate
        confidence: Overall confidence (0.0-1.0)
        metric_confidence: Per-metric confidence
        heuristic_metrics: Metrics that are indirect proxies
        simulated: Produced from the synthetic source
        stale: Values carried over from a previous cycle
        sample_count: Buffered samples at computation time
        timestamp: When the reading was produced
    """

    heart_rate: float = DEFAULT_HEART_RATE
    spo2: float = DEFAULT_SPO2
    temperature: float = DEFAULT_TEMPERATURE
    respiratory_rate: float = DEFAULT_RESPIRATORY_RATE
    perfusion_index: float = DEFAULT_PERFUSION_INDEX
    hrv: Optional[HRVMetrics] = None
    blood_pressure: Optional[BloodPressureEstimate] = None
    arrhythmia_flags: frozenset[ArrhythmiaFlag] = frozenset()
    placement_quality: PlacementQuality = PlacementQuality.NONE
    confidence: float = 0.0
    metric_confidence: Mapping[VitalMetric, float] = field(default_factory=dict)
    heuristic_metrics: frozenset[VitalMetric] = HEURISTIC_METRICS
    simulated: bool = False
    stale: bool = False
    sample_count: int = 0
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "metric_confidence", MappingProxyType(dict(self.metric_confidence)))

    @classmethod
    def default(cls, simulated: bool = False) -> "VitalReading":
        """Reading reported before any measurement exists."""
        return cls(simulated=simulated, stale=True)

    def decayed(self, factor: float) -> "VitalReading":
        """
        Copy of this reading with confidence multiplied by factor.

        Used when a cycle cannot produce fresh values.
        """
        return replace(
            self,
            confidence=self.confidence * factor,
            metric_confidence={k: v * factor for k, v in self.metric_confidence.items()},
            blood_pressure=(
                replace(self.blood_pressure, confidence=self.blood_pressure.confidence * factor)
                if self.blood_pressure else None
            ),
            stale=True,
            timestamp=_utcnow(),
        )

    def has_flag(self, flag: ArrhythmiaFlag) -> bool:
        return flag in self.arrhythmia_flags

    def to_dict(self) -> dict:
        return {
            "heart_rate": round(self.heart_rate),
            "spo2": round(self.spo2, 1),
            "temperature": round(self.temperature, 1),
            "respiratory_rate": round(self.respiratory_rate),
            "perfusion_index": round(self.perfusion_index, 2),
            "hrv": self.hrv.to_dict() if self.hrv else None,
            "blood_pressure": self.blood_pressure.to_dict() if self.blood_pressure else None,
            "arrhythmia_flags": sorted(f.value for f in self.arrhythmia_flags),
            "placement_quality": self.placement_quality.value,
            "confidence": round(self.confidence, 3),
            "metric_confidence": {
                k.value: round(v, 3) for k, v in self.metric_confidence.items()
            },
            "heuristic_metrics": sorted(m.value for m in self.heuristic_metrics),
            "simulated": self.simulated,
            "stale": self.stale,
            "sample_count": self.sample_count,
            "timestamp": self.timestamp.isoformat(),
        }
