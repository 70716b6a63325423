"""
Vitals and Risk Endpoints

Read the latest reading and risk score; feed discrete events and
environmental readings to the risk scorer.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator

from lifeline.api.dependencies import get_monitoring_service
from lifeline.config.logging_config import get_logger
from lifeline.domain.enums.tiers import EnvironmentalTier, RiskTier
from lifeline.domain.models.risk import EnvironmentalFactor, EventCode, SymptomEvent
from lifeline.services.monitoring import MonitoringService

logger = get_logger(__name__)
router = APIRouter()


# Request Models

class EventRequest(BaseModel):
    """Discrete event from a detector or the triage collaborator."""

    code: EventCode = Field(..., description="Event code")
    tier: Optional[str] = Field(
        default=None,
        description="Explicit severity (low/medium/urgent/high/critical)",
    )
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    description: str = Field(default="", max_length=500)

    @field_validator("tier")
    @classmethod
    def validate_tier(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            RiskTier.from_label(value)
        except KeyError:
            raise ValueError(f"Unknown tier: {value}")
        return value

    def to_event(self) -> SymptomEvent:
        return SymptomEvent(
            code=self.code,
            tier=RiskTier.from_label(self.tier) if self.tier else None,
            confidence=self.confidence,
            description=self.description,
        )


class EnvironmentalReading(BaseModel):
    """One environmental feed reading, pre-tagged with a tier."""

    kind: str = Field(..., min_length=1, max_length=50)
    value: float
    tier: EnvironmentalTier


class EnvironmentRequest(BaseModel):
    factors: list[EnvironmentalReading] = Field(..., min_length=1)


# Endpoints

@router.get("/vitals", summary="Latest vital-sign reading")
async def get_vitals(
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    return service.latest_vitals().to_dict()


@router.get("/risk", summary="Latest risk score")
async def get_risk(
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    return service.latest_risk().to_dict()


@router.post(
    "/events",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Report a discrete event",
)
async def report_event(
    request: EventRequest,
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    """
    Record an event with the risk scorer.

    The updated score is fed to the escalation engine immediately.
    """
    score = service.report_event(request.to_event())
    logger.info("Event reported", code=request.code.value, tier=score.tier.label)
    return score.to_dict()


@router.post(
    "/environment",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Update environmental readings",
)
async def update_environment(
    request: EnvironmentRequest,
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    score = service.update_environment(
        EnvironmentalFactor(kind=f.kind, value=f.value, tier=f.tier)
        for f in request.factors
    )
    return score.to_dict()
