"""
LifeLine Domain Layer

Core entities and value objects for vital-sign extraction,
risk scoring and escalation, independent of infrastructure.
"""

from lifeline.domain.enums import (
    RiskTier,
    EnvironmentalTier,
    PlacementQuality,
    ArrhythmiaFlag,
    EscalationState,
    AttemptStatus,
)
from lifeline.domain.models import (
    SampleFrame,
    VitalReading,
    RiskScore,
    EnvironmentalFactor,
    SymptomEvent,
    EmergencyContact,
    ContactAttempt,
    EscalationSession,
)
from lifeline.domain.errors import (
    LifelineError,
    InvalidTransitionError,
    DispatchError,
    SourceUnavailableError,
    UnknownContactError,
)

__all__ = [
    # Enums
    "RiskTier",
    "EnvironmentalTier",
    "PlacementQuality",
    "ArrhythmiaFlag",
    "EscalationState",
    "AttemptStatus",
    # Models
    "SampleFrame",
    "VitalReading",
    "RiskScore",
    "EnvironmentalFactor",
    "SymptomEvent",
    "EmergencyContact",
    "ContactAttempt",
    "EscalationSession",
    # Errors
    "LifelineError",
    "InvalidTransitionError",
    "DispatchError",
    "SourceUnavailableError",
    "UnknownContactError",
]
