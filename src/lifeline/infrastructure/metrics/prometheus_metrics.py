"""
Prometheus Metrics

Operational metrics for the LifeLine core.
Exposes metrics at /metrics endpoint for Prometheus scraping.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations.
"""

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)
from fastapi import APIRouter, Response

from lifeline.config.logging_config import get_logger

logger = get_logger(__name__)

# =============================================================================
# SIGNAL METRICS
# =============================================================================

VITAL_RECOMPUTES_TOTAL = Counter(
    "lifeline_vital_recomputes_total",
    "Vital-sign recompute cycles",
    ["placement_quality", "stale"],
)

VITAL_RECOMPUTE_DURATION = Histogram(
    "lifeline_vital_recompute_duration_seconds",
    "Time spent in one recompute cycle",
    buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05],
)

VITAL_CONFIDENCE = Gauge(
    "lifeline_vital_confidence",
    "Confidence of the latest vital reading",
)

FRAMES_DROPPED_TOTAL = Counter(
    "lifeline_frames_dropped_total",
    "Frames discarded before buffering",
    ["reason"],  # malformed, out_of_order
)

SAMPLE_SOURCE_SIMULATED = Gauge(
    "lifeline_sample_source_simulated",
    "1 when readings come from the synthetic source",
)

# =============================================================================
# RISK METRICS
# =============================================================================

RISK_SCORES_TOTAL = Counter(
    "lifeline_risk_scores_total",
    "Risk scores computed by tier",
    ["tier"],  # low, medium, high, critical
)

RISK_SCALAR = Gauge(
    "lifeline_risk_scalar",
    "Latest display risk scalar (0-100)",
)

# =============================================================================
# ESCALATION METRICS
# =============================================================================

ESCALATION_TRANSITIONS_TOTAL = Counter(
    "lifeline_escalation_transitions_total",
    "Escalation state transitions",
    ["from_state", "to_state"],
)

ESCALATION_SESSIONS_TOTAL = Counter(
    "lifeline_escalation_sessions_total",
    "Closed escalation sessions by outcome",
    ["outcome"],  # resolved, cancelled
)

ESCALATION_SESSION_DURATION = Histogram(
    "lifeline_escalation_session_duration_seconds",
    "Duration of escalation sessions",
    ["outcome"],
    buckets=[10, 30, 60, 120, 300, 600, 1800, 3600],
)

ACTIVE_ESCALATIONS = Gauge(
    "lifeline_active_escalations",
    "1 while an escalation session is open",
)

CONTACT_ATTEMPTS_TOTAL = Counter(
    "lifeline_contact_attempts_total",
    "Contact attempt status changes",
    ["channel", "status"],  # pending, delivered, failed, acknowledged
)

CONTACT_HARD_FAILURES_TOTAL = Counter(
    "lifeline_contact_hard_failures_total",
    "Contact attempts that exhausted their retries",
    ["channel"],
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "lifeline_system",
    "LifeLine core information",
)

SYSTEM_INFO.info({
    "version": "0.1.0",
    "environment": "development",  # Updated at runtime
})


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

@contextmanager
def time_recompute() -> Iterator[None]:
    """Observe the duration of a recompute cycle."""
    start_time = time.perf_counter()
    try:
        yield
    finally:
        VITAL_RECOMPUTE_DURATION.observe(time.perf_counter() - start_time)


def track_vital_reading(placement_quality: str, stale: bool, confidence: float) -> None:
    """Record a produced vital reading."""
    VITAL_RECOMPUTES_TOTAL.labels(
        placement_quality=placement_quality,
        stale=str(stale).lower(),
    ).inc()
    VITAL_CONFIDENCE.set(confidence)


def track_dropped_frame(reason: str) -> None:
    FRAMES_DROPPED_TOTAL.labels(reason=reason).inc()


def track_source(simulated: bool) -> None:
    """Record which kind of source feeds the sampling loop."""
    SAMPLE_SOURCE_SIMULATED.set(1 if simulated else 0)


def track_risk_score(tier: str, scalar: float) -> None:
    """Record risk score tier and scalar."""
    RISK_SCORES_TOTAL.labels(tier=tier).inc()
    RISK_SCALAR.set(scalar)


def track_escalation_transition(from_state: str, to_state: str) -> None:
    """Record escalation state transition."""
    ESCALATION_TRANSITIONS_TOTAL.labels(from_state=from_state, to_state=to_state).inc()
    ACTIVE_ESCALATIONS.set(1 if to_state in ("escalating", "active") else 0)


def track_escalation_session(outcome: str, duration_seconds: float) -> None:
    """Record escalation session completion metrics."""
    ESCALATION_SESSIONS_TOTAL.labels(outcome=outcome).inc()
    ESCALATION_SESSION_DURATION.labels(outcome=outcome).observe(duration_seconds)


def track_contact_attempt(channel: str, status: str) -> None:
    CONTACT_ATTEMPTS_TOTAL.labels(channel=channel, status=status).inc()


def track_hard_failure(channel: str) -> None:
    CONTACT_HARD_FAILURES_TOTAL.labels(channel=channel).inc()


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )


def update_system_info(environment: str, version: str = "0.1.0") -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })
