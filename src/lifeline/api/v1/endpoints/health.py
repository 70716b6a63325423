"""
Health Check Endpoints

Kubernetes-style liveness and readiness checks.

ARCHITECTURE: Health checks must never fail the application.
They report status for orchestration decisions.

SAFETY_NOTE: A simulated sample source reports "degraded" so that
synthetic readings are never mistaken for a live measurement.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from lifeline import __version__
from lifeline.api.dependencies import get_monitoring_service
from lifeline.services.monitoring import MonitoringService

router = APIRouter()


class HealthStatus(BaseModel):
    """Health check response."""

    status: str  # healthy, degraded, unhealthy
    timestamp: str
    version: str = __version__
    checks: dict[str, dict] = {}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/live", response_model=HealthStatus)
async def liveness() -> HealthStatus:
    """
    Liveness check.

    Returns 200 if the process is alive.
    """
    return HealthStatus(
        status="healthy",
        timestamp=_now(),
        checks={"process": {"status": "alive"}},
    )


@router.get("/ready", response_model=HealthStatus)
async def readiness(
    response: Response,
    service: MonitoringService = Depends(get_monitoring_service),
) -> HealthStatus:
    """
    Readiness check.

    Checks:
    - Sampling loop running
    - Sample source live (simulated source -> degraded)
    """
    loop_status = service.status()
    checks = {
        "sampling": {
            "status": "healthy" if loop_status["running"] else "unhealthy",
            "buffered_samples": loop_status["buffered_samples"],
        },
        "source": {
            "status": "degraded" if loop_status["simulated"] else "healthy",
            "name": loop_status["source"],
            "simulated": loop_status["simulated"],
        },
        "escalation": {
            "status": "healthy",
            "state": loop_status["escalation_state"],
        },
    }

    statuses = [c["status"] for c in checks.values()]
    overall_status = "healthy"
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif "degraded" in statuses:
        overall_status = "degraded"

    return HealthStatus(
        status=overall_status,
        timestamp=_now(),
        checks=checks,
    )
