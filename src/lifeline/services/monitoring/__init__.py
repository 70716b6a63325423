"""Monitoring coordinator package."""

from lifeline.services.monitoring.monitoring_service import MonitoringService

__all__ = ["MonitoringService"]
