"""
Severity Tier Enumerations

Defines the ordinal tiers shared by the risk scorer and the
escalation engine, and the tier vocabulary used by external
environmental feeds.

SAFETY_NOTE: Ordering matters. Comparisons between tiers drive
the "critical dominates" rule and escalation thresholds.
"""

from enum import IntEnum, StrEnum


class RiskTier(IntEnum):
    """
    Overall risk classification.

    Higher values indicate higher risk requiring more
    immediate escalation.
    """

    LOW = 1
    """No concerning inputs, or inputs absent."""

    MEDIUM = 2
    """
    Out-of-range vital or moderate event.
    - Primary contact only when escalated
    """

    HIGH = 3
    """
    Serious event (e.g. fall) or markedly abnormal vital.
    - All non-backup contacts notified
    """

    CRITICAL = 4
    """
    Life-threatening input.
    - Countdown skipped
    - Medical and highest-priority contacts notified first

    SAFETY_NOTE: A single critical factor always forces this tier.
    """

    @property
    def label(self) -> str:
        """Lower-case label used in payloads."""
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "RiskTier":
        """
        Parse a tier from its label.

        Accepts "urgent" as an alias of MEDIUM, the wording
        used by the triage collaborator.
        """
        normalized = label.strip().lower()
        if normalized == "urgent":
            return cls.MEDIUM
        return cls[normalized.upper()]


class EnvironmentalTier(StrEnum):
    """
    Tier vocabulary of external environmental feeds
    (gas, temperature, wind, seismic, air quality).
    """

    SAFE = "safe"
    ELEVATED = "elevated"
    HIGH = "high"
    CRITICAL = "critical"

    def to_risk_tier(self) -> RiskTier:
        """Map the feed tier onto the shared risk tier scale."""
        mapping = {
            EnvironmentalTier.SAFE: RiskTier.LOW,
            EnvironmentalTier.ELEVATED: RiskTier.MEDIUM,
            EnvironmentalTier.HIGH: RiskTier.HIGH,
            EnvironmentalTier.CRITICAL: RiskTier.CRITICAL,
        }
        return mapping[self]


class RiskTrend(StrEnum):
    """Direction of the scalar risk score over recent history."""

    STABLE = "stable"
    RISING = "rising"
    FALLING = "falling"
