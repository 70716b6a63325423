"""
API Dependencies

Holds the process-wide MonitoringService and exposes it to
endpoints through FastAPI dependency injection.
"""

from typing import Optional

from lifeline.services.monitoring import MonitoringService

# Set during application startup
_service: Optional[MonitoringService] = None


def set_monitoring_service(service: Optional[MonitoringService]) -> None:
    global _service
    _service = service


def get_monitoring_service() -> MonitoringService:
    """Get the global monitoring service instance."""
    if _service is None:
        raise RuntimeError("Monitoring service not initialized")
    return _service
