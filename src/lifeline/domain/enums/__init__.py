"""Domain enumerations."""

from lifeline.domain.enums.tiers import RiskTier, EnvironmentalTier, RiskTrend
from lifeline.domain.enums.vitals import PlacementQuality, ArrhythmiaFlag, VitalMetric
from lifeline.domain.enums.escalation import (
    EscalationState,
    TriggerSource,
    SessionOutcome,
    ContactChannel,
    ContactRole,
    AttemptStatus,
    TimelineKind,
)

__all__ = [
    "RiskTier",
    "EnvironmentalTier",
    "RiskTrend",
    "PlacementQuality",
    "ArrhythmiaFlag",
    "VitalMetric",
    "EscalationState",
    "TriggerSource",
    "SessionOutcome",
    "ContactChannel",
    "ContactRole",
    "AttemptStatus",
    "TimelineKind",
]
