"""Metrics infrastructure package."""

from lifeline.infrastructure.metrics.prometheus_metrics import (
    # Signal metrics
    VITAL_RECOMPUTES_TOTAL,
    VITAL_RECOMPUTE_DURATION,
    VITAL_CONFIDENCE,
    FRAMES_DROPPED_TOTAL,
    SAMPLE_SOURCE_SIMULATED,
    # Risk metrics
    RISK_SCORES_TOTAL,
    RISK_SCALAR,
    # Escalation metrics
    ESCALATION_TRANSITIONS_TOTAL,
    ESCALATION_SESSIONS_TOTAL,
    ESCALATION_SESSION_DURATION,
    ACTIVE_ESCALATIONS,
    CONTACT_ATTEMPTS_TOTAL,
    CONTACT_HARD_FAILURES_TOTAL,
    # Helpers
    time_recompute,
    track_vital_reading,
    track_dropped_frame,
    track_source,
    track_risk_score,
    track_escalation_transition,
    track_escalation_session,
    track_contact_attempt,
    track_hard_failure,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "VITAL_RECOMPUTES_TOTAL",
    "VITAL_RECOMPUTE_DURATION",
    "VITAL_CONFIDENCE",
    "FRAMES_DROPPED_TOTAL",
    "SAMPLE_SOURCE_SIMULATED",
    "RISK_SCORES_TOTAL",
    "RISK_SCALAR",
    "ESCALATION_TRANSITIONS_TOTAL",
    "ESCALATION_SESSIONS_TOTAL",
    "ESCALATION_SESSION_DURATION",
    "ACTIVE_ESCALATIONS",
    "CONTACT_ATTEMPTS_TOTAL",
    "CONTACT_HARD_FAILURES_TOTAL",
    "time_recompute",
    "track_vital_reading",
    "track_dropped_frame",
    "track_source",
    "track_risk_score",
    "track_escalation_transition",
    "track_escalation_session",
    "track_contact_attempt",
    "track_hard_failure",
    "update_system_info",
    "metrics_router",
]
