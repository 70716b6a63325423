"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from lifeline.api.v1.endpoints.escalation import router as escalation_router
from lifeline.api.v1.endpoints.health import router as health_router
from lifeline.api.v1.endpoints.vitals import router as vitals_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    vitals_router,
    tags=["Vitals"],
)

api_router.include_router(
    escalation_router,
    tags=["Escalation"],
)
