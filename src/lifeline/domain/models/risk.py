"""
Risk Models

Inputs and outputs of the risk scorer.

SAFETY-CRITICAL: The overall tier is the maximum of the category
tiers. The scalar score is for trend display only and never
overrides the tier.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from types import MappingProxyType
from typing import Mapping, Optional

from lifeline.domain.enums.tiers import EnvironmentalTier, RiskTier, RiskTrend


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventCode(StrEnum):
    """Discrete trigger codes from the triage collaborator and detectors."""

    FALL = "fall"
    CRASH = "crash"
    MANUAL_SOS = "manual_sos"
    DISTRESS_AUDIO = "distress_audio"
    STILLNESS = "stillness"
    SYMPTOM = "symptom"

    @property
    def default_tier(self) -> RiskTier:
        """Tier applied when the event carries no explicit severity."""
        defaults = {
            EventCode.FALL: RiskTier.HIGH,
            EventCode.CRASH: RiskTier.CRITICAL,
            EventCode.MANUAL_SOS: RiskTier.CRITICAL,
            EventCode.DISTRESS_AUDIO: RiskTier.HIGH,
            EventCode.STILLNESS: RiskTier.MEDIUM,
            EventCode.SYMPTOM: RiskTier.MEDIUM,
        }
        return defaults[self]


class RiskCategory(StrEnum):
    """Input categories reduced independently to a tier."""

    VITALS = "vitals"
    ENVIRONMENT = "environment"
    EVENTS = "events"


@dataclass(frozen=True)
class EnvironmentalFactor:
    """
    External environmental reading, pre-tagged with a tier.

    Attributes:
        kind: gas, temperature, wind, seismic, air_quality, ...
        value: Raw reading in the feed's unit
        tier: Feed-assigned tier
    """

    kind: str
    value: float
    tier: EnvironmentalTier
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "value": self.value,
            "tier": self.tier.value,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class SymptomEvent:
    """
    Discrete event (fall, manual SOS, severity-tagged symptom selection).

    Attributes:
        code: Event code
        tier: Explicit severity; the code default applies when None
        confidence: Detector confidence (0.0-1.0)
        description: Human-readable description
    """

    code: EventCode
    tier: Optional[RiskTier] = None
    confidence: float = 1.0
    description: str = ""
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def effective_tier(self) -> RiskTier:
        return self.tier if self.tier is not None else self.code.default_tier

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "tier": self.effective_tier.label,
            "confidence": round(self.confidence, 3),
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ContributingFactor:
    """
    A single input that contributed to the risk score.

    Attributes:
        category: Input category
        name: Identifier (e.g. "low_spo2", "seismic", "fall")
        tier: Tier implied by this factor alone
        contribution: Points added to the scalar score
        detail: Human-readable explanation
    """

    category: RiskCategory
    name: str
    tier: RiskTier
    contribution: float = 0.0
    detail: str = ""

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "name": self.name,
            "tier": self.tier.label,
            "contribution": round(self.contribution, 2),
            "detail": self.detail,
        }


@dataclass(frozen=True)
class RiskScore:
    """
    Atomic risk snapshot.

    Attributes:
        scalar: Weighted score 0-100 (display only)
        tier: Overall tier, the maximum of category tiers
        contributing_factors: Factors behind the score
        category_tiers: Tier per input category
        trend: Direction of the scalar over recent history
        computed_at: When the score was computed
    """

    scalar: float = 0.0
    tier: RiskTier = RiskTier.LOW
    contributing_factors: tuple[ContributingFactor, ...] = ()
    category_tiers: Mapping[RiskCategory, RiskTier] = field(default_factory=dict)
    trend: RiskTrend = RiskTrend.STABLE
    computed_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "category_tiers", MappingProxyType(dict(self.category_tiers)))

    @property
    def critical_factors(self) -> tuple[ContributingFactor, ...]:
        return tuple(f for f in self.contributing_factors if f.tier >= RiskTier.CRITICAL)

    def to_dict(self) -> dict:
        return {
            "scalar": round(self.scalar, 1),
            "tier": self.tier.label,
            "trend": self.trend.value,
            "category_tiers": {k.value: v.label for k, v in self.category_tiers.items()},
            "contributing_factors": [f.to_dict() for f in self.contributing_factors],
            "computed_at": self.computed_at.isoformat(),
        }
