"""Domain models package."""

from lifeline.domain.models.signal import SampleFrame
from lifeline.domain.models.vitals import (
    VitalReading,
    HRVMetrics,
    BloodPressureEstimate,
)
from lifeline.domain.models.risk import (
    EventCode,
    RiskCategory,
    EnvironmentalFactor,
    SymptomEvent,
    ContributingFactor,
    RiskScore,
)
from lifeline.domain.models.escalation import (
    EmergencyContact,
    DispatchResult,
    ContactAttempt,
    TimelineEntry,
    EscalationSession,
    EscalationSnapshot,
)

__all__ = [
    # Signal
    "SampleFrame",
    # Vitals
    "VitalReading",
    "HRVMetrics",
    "BloodPressureEstimate",
    # Risk
    "EventCode",
    "RiskCategory",
    "EnvironmentalFactor",
    "SymptomEvent",
    "ContributingFactor",
    "RiskScore",
    # Escalation
    "EmergencyContact",
    "DispatchResult",
    "ContactAttempt",
    "TimelineEntry",
    "EscalationSession",
    "EscalationSnapshot",
]
