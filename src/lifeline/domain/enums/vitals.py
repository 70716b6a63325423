"""
Vital Sign Enumerations

Placement quality, arrhythmia flags and metric identifiers
produced by the signal processor.
"""

from enum import StrEnum


class PlacementQuality(StrEnum):
    """
    Sensor placement / signal quality estimate.

    Combines brightness, reflectance coverage and short-term
    buffer stability into four levels.
    """

    NONE = "none"
    POOR = "poor"
    GOOD = "good"
    EXCELLENT = "excellent"

    @property
    def confidence_cap(self) -> float:
        """
        Highest confidence a reading may report at this quality.

        SAFETY_NOTE: none/poor placement can never yield a
        high-confidence reading, whatever else was computed.
        """
        caps = {
            PlacementQuality.NONE: 0.2,
            PlacementQuality.POOR: 0.4,
            PlacementQuality.GOOD: 0.8,
            PlacementQuality.EXCELLENT: 0.95,
        }
        return caps[self]


class ArrhythmiaFlag(StrEnum):
    """Rhythm irregularities detected from RR intervals."""

    IRREGULAR_RHYTHM = "irregular_rhythm"
    BRADYCARDIA = "bradycardia"
    TACHYCARDIA = "tachycardia"
    POSSIBLE_PREMATURE_BEAT = "possible_premature_beat"


class VitalMetric(StrEnum):
    """Identifiers for individual metrics within a reading."""

    HEART_RATE = "heart_rate"
    SPO2 = "spo2"
    TEMPERATURE = "temperature"
    RESPIRATORY_RATE = "respiratory_rate"
    PERFUSION_INDEX = "perfusion_index"
    BLOOD_PRESSURE = "blood_pressure"
    HRV = "hrv"
