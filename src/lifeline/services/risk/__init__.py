"""
Risk Scoring Service

Vitals, environment and events in; one RiskScore out.
"""

from lifeline.services.risk.risk_scorer import RiskScorer, VitalThresholds

__all__ = [
    "RiskScorer",
    "VitalThresholds",
]
