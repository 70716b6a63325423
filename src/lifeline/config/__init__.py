"""
LifeLine Configuration Module

Provides centralized configuration management with:
- Environment-based settings loading
- Per-component nested settings (signal, risk, escalation)
"""

from lifeline.config.settings import (
    Settings,
    SignalSettings,
    RiskSettings,
    EscalationSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "SignalSettings",
    "RiskSettings",
    "EscalationSettings",
    "get_settings",
]
